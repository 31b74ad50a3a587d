"""
Deduplication & expiry filter

A sequential predicate chain over generator output. The first failing
predicate drops the candidate. Survivors of a singleton type are then
collapsed to one per call.
"""

from __future__ import annotations

import logging
from datetime import datetime

from .lifecycle import LifecycleState
from .models import Notification, NotificationKind

logger = logging.getLogger(__name__)


def _is_expired(notification: Notification, now: datetime) -> bool:
    expires_at = notification.expires_at
    if expires_at is None:
        return False
    # Compare in the same awareness as the evaluation clock
    if expires_at.tzinfo is not None and now.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=None)
    elif expires_at.tzinfo is None and now.tzinfo is not None:
        expires_at = expires_at.replace(tzinfo=now.tzinfo)
    return expires_at < now


def _passes(n: Notification, state: LifecycleState, now: datetime) -> bool:
    if n.id in state.dismissed_ids:
        return False
    if _is_expired(n, now):
        return False
    if n.kind is NotificationKind.SINGLETON:
        return n.type not in state.shown_types
    if n.id in state.shown_ids:
        return False
    # Type snoozed for the rest of the day
    return n.type not in state.shown_types


def filter_candidates(
    candidates: list[Notification],
    state: LifecycleState,
    now: datetime,
) -> list[Notification]:
    passed = [n for n in candidates if _passes(n, state, now)]

    # Highest priority wins per singleton type, first among equals
    best: dict[str, Notification] = {}
    for n in passed:
        if n.kind is NotificationKind.SINGLETON:
            current = best.get(n.type)
            if current is None or n.rank < current.rank:
                best[n.type] = n

    kept = [n for n in passed if n.kind is not NotificationKind.SINGLETON or best[n.type] is n]

    dropped = len(candidates) - len(kept)
    if dropped:
        logger.debug(f"[PROACTIVE] filter dropped {dropped}/{len(candidates)} candidates")
    return kept
