"""
Notification copywriter

Asks the model for short, structured notification copy. The model must return
a JSON object; anything else raises CopyParseError and the caller drops that
single candidate.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from services.anthropic import chat_completion

logger = logging.getLogger(__name__)


COPY_SYSTEM_PROMPT = """You write push notification copy for a personal planner app.

Respond with a single JSON object and nothing else:
{"title": "<= 40 characters", "message": "<= 160 characters", "checklist": ["short item", ...]}

Keep the tone warm and brief. The checklist has at most 3 items."""


class CopyParseError(ValueError):
    """The model's response could not be turned into notification copy."""


@dataclass(frozen=True)
class NotificationCopy:
    title: str
    message: str
    checklist: tuple[str, ...] = ()


def parse_copy(text: str) -> NotificationCopy:
    text = (text or "").strip()
    # Handle markdown code fences
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif text.startswith("```"):
        text = text.split("```")[1]

    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise CopyParseError(f"not JSON: {e}")

    if not isinstance(data, dict):
        raise CopyParseError("expected a JSON object")

    title = data.get("title")
    message = data.get("message")
    if not isinstance(title, str) or not title.strip():
        raise CopyParseError("missing title")
    if not isinstance(message, str) or not message.strip():
        raise CopyParseError("missing message")

    checklist = data.get("checklist") or []
    if not isinstance(checklist, list):
        raise CopyParseError("checklist must be a list")

    return NotificationCopy(
        title=title.strip(),
        message=message.strip(),
        checklist=tuple(str(item) for item in checklist[:3]),
    )


class Copywriter:
    """Generates notification copy through the Anthropic client."""

    def __init__(self, client=None, model: Optional[str] = None):
        self.client = client
        self.model = model

    async def complete(self, prompt: str) -> str:
        kwargs = {"model": self.model} if self.model else {}
        return await chat_completion(
            messages=[{"role": "user", "content": prompt}],
            system=COPY_SYSTEM_PROMPT,
            client=self.client,
            **kwargs,
        )

    async def schedule_prep(
        self,
        schedule_text: str,
        start_time: str,
        minutes_until: int,
        topics: Sequence[str] = (),
        motivators: Sequence[str] = (),
    ) -> NotificationCopy:
        prompt = (
            f'The user has "{schedule_text}" at {start_time}, '
            f"starting in about {minutes_until // 60} hours. "
            "Write a preparation reminder with a short checklist."
        )
        if topics:
            prompt += f"\nTopics they often talk about: {', '.join(topics[:3])}."
        if motivators:
            prompt += f"\nWhat tends to motivate them: {', '.join(motivators[:3])}."
        return parse_copy(await self.complete(prompt))
