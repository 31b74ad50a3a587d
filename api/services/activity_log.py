"""
Activity Log

Append-only provenance log of what the proactive engine did for a user.

Table: activity_log

Write points (all non-fatal, callers continue regardless of log failure):
  - proactive/engine.py: 'proactive_accepted' when the user accepts a notification
  - proactive/engine.py: 'schedule_converted' after one-off entries become a recurring entry
  - jobs/proactive_push.py: 'proactive_pushed' after a push is delivered
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

VALID_EVENT_TYPES = frozenset({
    "proactive_accepted",
    "schedule_converted",
    "proactive_pushed",
})


async def write_activity(
    client,
    user_id: str,
    event_type: str,
    summary: str,
    event_ref: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> Optional[str]:
    """
    Append an event to activity_log.

    Non-fatal: a log failure never blocks the primary operation.

    Args:
        client: Supabase service-role client
        user_id: The user this event belongs to
        event_type: One of VALID_EVENT_TYPES
        summary: Human-readable one-liner
        event_ref: Id of the related record (notification id, schedule id), optional
        metadata: Structured detail dict, optional

    Returns:
        activity_log row id, or None on error
    """
    if event_type not in VALID_EVENT_TYPES:
        logger.warning(f"[activity_log] Unknown event_type ignored: {event_type!r}")
        return None

    row: dict = {
        "user_id": user_id,
        "event_type": event_type,
        "summary": summary,
    }
    if event_ref is not None:
        row["event_ref"] = str(event_ref)
    if metadata is not None:
        row["metadata"] = metadata

    try:
        result = client.table("activity_log").insert(row).execute()
        inserted = result.data[0] if result.data else {}
        return inserted.get("id")
    except Exception as e:
        logger.error(f"[activity_log] write failed (event_type={event_type}): {e}")
        return None
