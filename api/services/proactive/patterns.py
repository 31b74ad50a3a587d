"""
Recurring Pattern Miner

Two passes over the user's schedule entries:

1. Explicit patterns: recurring entries that run on 1..max_recurring_days
   weekdays project to (weekday, activity, time). Entries that run most of
   the week, or that look like a daily routine (wake, meals, commute...),
   are not habits worth reminding about.

2. Implicit candidates: one-off entries that keep being re-created on the
   same weekday in the same half-hour slot. Two or more of them suggest the
   user really wants a weekly recurring entry.
"""

from __future__ import annotations

import re
from collections import OrderedDict
from typing import Iterable

from .config import DAILY_ROUTINE_KEYWORDS, is_daily_routine
from .models import RecurringCandidate, RecurringPattern, ScheduleEntry, parse_hhmm, sunday_weekday


def normalize_text(text: str) -> str:
    """Trimmed, lowercased, all whitespace removed."""
    return re.sub(r"\s+", "", (text or "").strip().lower())


def time_bucket(start_time: str) -> str:
    """'14:05' -> '14:00', '14:40' -> '14:30'."""
    parsed = parse_hhmm(start_time)
    if parsed is None:
        return ""
    hour, minute = parsed
    return f"{hour:02d}:{(minute // 30) * 30:02d}"


def extract_explicit_patterns(
    entries: Iterable[ScheduleEntry],
    max_days: int = 3,
    routine_keywords: tuple[str, ...] = DAILY_ROUTINE_KEYWORDS,
) -> list[RecurringPattern]:
    patterns: list[RecurringPattern] = []
    for entry in entries:
        if not entry.days_of_week or len(entry.days_of_week) > max_days:
            continue
        if is_daily_routine(entry.text, routine_keywords):
            continue
        for day in entry.days_of_week:
            patterns.append(RecurringPattern(day_of_week=day, activity=entry.text, time=entry.start_time))
    return patterns


def detect_recurring_candidates(
    entries: Iterable[ScheduleEntry],
    min_occurrences: int = 2,
) -> list[RecurringCandidate]:
    """
    Group one-off entries by (normalized text, weekday, 30-minute bucket).

    Groups with at least min_occurrences members become candidates, unless a
    recurring entry with the same normalized text already exists. The most
    recent entry's exact start time is used as the representative time.
    Output order follows first appearance of each group, so repeated runs over
    the same data are stable.
    """
    entries = list(entries)
    existing_recurring = {normalize_text(e.text) for e in entries if e.is_recurring}

    groups: "OrderedDict[tuple[str, int, str], list[ScheduleEntry]]" = OrderedDict()
    for entry in entries:
        if not entry.is_one_off or not entry.start_time:
            continue
        bucket = time_bucket(entry.start_time)
        if not bucket:
            continue
        normalized = normalize_text(entry.text)
        if not normalized or normalized in existing_recurring:
            continue
        key = (normalized, sunday_weekday(entry.specific_date), bucket)
        groups.setdefault(key, []).append(entry)

    candidates: list[RecurringCandidate] = []
    for (normalized, day, _bucket), members in groups.items():
        if len(members) < min_occurrences:
            continue
        latest = max(members, key=lambda e: e.specific_date)
        first = members[0]
        candidates.append(RecurringCandidate(
            normalized_text=normalized,
            text=first.text,
            day_of_week=day,
            start_time=latest.start_time,
            schedule_ids=tuple(m.id for m in members),
            occurrences=len(members),
            color=first.color,
        ))
    return candidates
