"""
Quota & Priority Scheduler
"""

from __future__ import annotations

from .models import Notification


def remaining_quota(daily_limit: int, shown_count: int, max_per_call: int = 5) -> int:
    """How many notifications this call may still return. -1 limit = unlimited."""
    if daily_limit == -1:
        return max_per_call
    return min(max(0, daily_limit - shown_count), max_per_call)


def schedule(
    candidates: list[Notification],
    daily_limit: int,
    shown_count: int,
    max_per_call: int = 5,
) -> list[Notification]:
    """Stable sort by priority rank, then cut to the remaining quota."""
    ordered = sorted(candidates, key=lambda n: n.rank)
    return ordered[: remaining_quota(daily_limit, shown_count, max_per_call)]
