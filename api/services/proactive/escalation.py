"""
Escalation Decision Engine

Adapts delivery per type from the user's dismiss streak:

    count >= strike threshold, last dismissal within window  -> suppress
    0 < count < threshold, last dismissal within window      -> soften
    otherwise                                                -> deliver

Softening keeps priority and id; it strips emoji from the title and shortens
the message. This stage only reads streaks. They change through feedback.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import date
from typing import Literal, Optional

from .config import EngineConfig
from .lifecycle import DismissStreak, LifecycleState
from .models import Notification

logger = logging.getLogger(__name__)

EMOJI_PATTERN = re.compile(
    "["
    "\U0001F000-\U0001FAFF"   # pictographs, emoticons, transport, symbols
    "\U00002600-\U000027BF"   # misc symbols, dingbats
    "\U00002300-\U000023FF"   # misc technical (clocks, hourglass)
    "\U00002B00-\U00002BFF"   # arrows, stars
    "\U0000FE0F\U0000200D"    # variation selector, zero-width joiner
    "]+"
)


@dataclass(frozen=True)
class EscalationDecision:
    action: Literal["deliver", "soften", "suppress"]
    reason: str = ""


def decide(streak: DismissStreak, today: date, config: EngineConfig) -> EscalationDecision:
    if streak.count <= 0 or streak.last_date is None:
        return EscalationDecision("deliver")

    days_since = (today - streak.last_date).days
    if days_since >= config.suppression_window_days:
        return EscalationDecision("deliver", "window lapsed")

    if streak.count >= config.dismiss_strike_threshold:
        return EscalationDecision("suppress", f"{streak.count} dismissals, last {days_since}d ago")
    return EscalationDecision("soften", f"{streak.count} dismissals")


def strip_emoji(text: str) -> str:
    return EMOJI_PATTERN.sub("", text).strip()


def soften(notification: Notification, max_length: int = 50) -> Notification:
    message = notification.message
    if len(message) > max_length:
        message = message[: max_length - 3].rstrip() + "..."
    return replace(notification, title=strip_emoji(notification.title), message=message)


def apply_escalation(
    notification: Notification,
    decision: EscalationDecision,
    config: EngineConfig,
) -> Optional[Notification]:
    if decision.action == "suppress":
        return None
    if decision.action == "soften":
        return soften(notification, config.soften_message_length)
    return notification


def escalate(
    candidates: list[Notification],
    state: LifecycleState,
    config: EngineConfig,
) -> list[Notification]:
    result = []
    for n in candidates:
        decision = decide(state.streak(n.type), state.day, config)
        escalated = apply_escalation(n, decision, config)
        if escalated is None:
            logger.info(f"[PROACTIVE] Suppressed {n.type}: {decision.reason}")
            continue
        result.append(escalated)
    return result
