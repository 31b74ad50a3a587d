"""
Fused context alerts (weather x schedule, conflicts, ...) from the
context-fusion collaborator. Only critical and warning signals surface.
"""

from __future__ import annotations

from ..config import EngineConfig
from ..models import ContextSnapshot, Notification
from ..patterns import normalize_text

SEVERITY_PRIORITY = {"critical": "high", "warning": "medium"}


def fusion_alerts(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    notifications = []
    for signal in snapshot.signals:
        priority = SEVERITY_PRIORITY.get(signal.severity)
        if priority is None:
            continue
        notifications.append(Notification(
            id=f"fusion-{signal.type}-{normalize_text(signal.message)[:20]}-{snapshot.today_str}",
            type="fusion_alert",
            priority=priority,
            title="🚨 Heads up" if signal.severity == "critical" else "⚠️ Worth a look",
            message=signal.message,
            action_type="view_context",
            action_payload={"signalType": signal.type, "severity": signal.severity},
        ))
    return notifications
