"""
Anthropic client for Claude API calls

Used to phrase notification copy (schedule prep checklists). Callers own
parsing; this module only moves text in and out.
"""

import os
import logging
from anthropic import AsyncAnthropic

logger = logging.getLogger(__name__)

COPY_MODEL = os.environ.get("PROACTIVE_COPY_MODEL", "claude-sonnet-4-20250514")


def get_anthropic_client() -> AsyncAnthropic:
    """Get Anthropic client with API key from environment."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise ValueError("ANTHROPIC_API_KEY must be set")
    return AsyncAnthropic(api_key=api_key)


async def chat_completion(
    messages: list[dict],
    system: str,
    model: str = COPY_MODEL,
    max_tokens: int = 1024,
    client: AsyncAnthropic = None,
) -> str:
    """
    Non-streaming chat completion.

    Args:
        messages: List of {"role": "user"|"assistant", "content": str}
        system: System prompt
        model: Model ID
        max_tokens: Maximum response tokens
        client: Optional pre-built client (defaults to one from ANTHROPIC_API_KEY)

    Returns:
        Concatenated text blocks of the assistant response
    """
    client = client or get_anthropic_client()

    response = await client.messages.create(
        model=model,
        max_tokens=max_tokens,
        system=system,
        messages=messages,
    )

    text_parts = [block.text for block in response.content if block.type == "text"]
    return "".join(text_parts)
