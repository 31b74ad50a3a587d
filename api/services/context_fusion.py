"""
Context Fusion signals

Cross-source signals (weather x outdoor schedule, back-to-back conflicts,
deadline pressure) written by the fusion pass into context_signals. The
proactive engine only reads today's unexpired rows.
"""

import logging
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

VALID_SEVERITIES = frozenset({"info", "warning", "critical"})


def get_active_signals(client: Any, user_id: str, now: datetime) -> list[dict]:
    """
    Fetch current fusion signals for a user.

    Returns:
        List of {type, severity, message} dicts. Rows with an unknown
        severity are dropped.
    """
    result = (
        client.table("context_signals")
        .select("signal_type, severity, message, expires_at")
        .eq("user_id", user_id)
        .gte("expires_at", now.isoformat())
        .order("created_at", desc=True)
        .limit(20)
        .execute()
    )

    signals = []
    for row in result.data or []:
        severity = row.get("severity")
        if severity not in VALID_SEVERITIES:
            logger.debug(f"[FUSION] Ignoring signal with severity {severity!r}")
            continue
        signals.append({
            "type": row.get("signal_type") or "unknown",
            "severity": severity,
            "message": row.get("message") or "",
        })
    return signals
