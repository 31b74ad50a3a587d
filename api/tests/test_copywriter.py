"""
Notification Copywriter Tests

Tests parsing of model-generated notification copy and the Anthropic call
path with a mocked client.

Run: cd api && python -m pytest tests/test_copywriter.py -v
"""

import asyncio
import os
import sys
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.proactive.copywriter import COPY_SYSTEM_PROMPT, CopyParseError, Copywriter, parse_copy


def test_parse_plain_json():
    copy = parse_copy('{"title": "Get ready", "message": "Interview at 3", "checklist": ["CV", "ID", "Pen", "Water"]}')
    assert copy.title == "Get ready"
    assert copy.message == "Interview at 3"
    assert copy.checklist == ("CV", "ID", "Pen")
    print("✅ parse_plain_json: PASSED")


def test_parse_fenced_json():
    text = 'Sure!\n```json\n{"title": "Prep", "message": "Bring slides"}\n```'
    copy = parse_copy(text)
    assert copy.title == "Prep"
    assert copy.checklist == ()
    print("✅ parse_fenced_json: PASSED")


def test_parse_rejects_malformed():
    for bad in (
        "I can't help with that",
        '["not", "an", "object"]',
        '{"message": "no title"}',
        '{"title": "T", "message": ""}',
        '{"title": "T", "message": "M", "checklist": "one"}',
    ):
        with pytest.raises(CopyParseError):
            parse_copy(bad)
    print("✅ parse_rejects_malformed: PASSED")


def test_copywriter_calls_anthropic():
    response = SimpleNamespace(content=[
        SimpleNamespace(type="text", text='{"title": "Presentation soon", '),
        SimpleNamespace(type="text", text='"message": "Run through it once", "checklist": ["Slides"]}'),
    ])
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response)

    copy = asyncio.run(Copywriter(client=client, model="test-model").schedule_prep("Presentation", "15:00", 150))

    assert copy.title == "Presentation soon"
    assert copy.checklist == ("Slides",)
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["system"] == COPY_SYSTEM_PROMPT
    assert "Presentation" in kwargs["messages"][0]["content"]
    print("✅ copywriter_calls_anthropic: PASSED")


def test_copywriter_prompt_includes_memory_hints():
    response = SimpleNamespace(content=[
        SimpleNamespace(type="text", text='{"title": "Pitch soon", "message": "You know this cold"}'),
    ])
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response)

    asyncio.run(Copywriter(client=client).schedule_prep(
        "Pitch", "15:00", 150, topics=("startups", "design"), motivators=("public praise",),
    ))

    prompt = client.messages.create.call_args.kwargs["messages"][0]["content"]
    assert "startups, design" in prompt
    assert "public praise" in prompt
    print("✅ copywriter_prompt_includes_memory_hints: PASSED")
