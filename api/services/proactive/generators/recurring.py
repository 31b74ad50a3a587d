"""
Recurring-habit generators: conversion suggestions for mined candidates and
insights on weekly habits that keep getting skipped.
"""

from __future__ import annotations

from datetime import timedelta

from ..config import DAY_NAMES, EngineConfig, in_window, is_daily_routine
from ..models import ContextSnapshot, Notification, sunday_weekday
from ..patterns import normalize_text, time_bucket


def recurring_conversion(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    notifications = []
    for candidate in snapshot.recurring_candidates:
        day_name = DAY_NAMES[candidate.day_of_week]
        bucket = time_bucket(candidate.start_time).replace(":", "")
        notifications.append(Notification(
            id=f"recurring-suggest-{candidate.normalized_text}-{candidate.day_of_week}-{bucket}",
            type="recurring_suggestion",
            priority="medium",
            title="🔄 Make it weekly?",
            message=(
                f'You have added "{candidate.text}" on {day_name} at {candidate.start_time} '
                f"{candidate.occurrences} times. Turn it into a weekly schedule?"
            ),
            action_type="convert_to_recurring",
            action_payload={
                "text": candidate.text,
                "dayOfWeek": candidate.day_of_week,
                "startTime": candidate.start_time,
                "scheduleIds": list(candidate.schedule_ids),
                "color": candidate.color,
            },
        ))
    return notifications


def skipped_patterns(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    """
    Weekly habits due today whose recent dated instances were mostly missed.

    An instance counts as missed when it was skipped or never completed.
    """
    if not in_window(snapshot.now.hour, config.skipped_pattern_window):
        return []

    weekday = snapshot.weekday
    since = snapshot.today - timedelta(weeks=config.pattern_lookback_weeks)
    dated = [e for e in snapshot.all_schedules if e.specific_date is not None]

    notifications = []
    for habit in snapshot.all_schedules:
        if not habit.days_of_week or len(habit.days_of_week) > config.max_skip_pattern_days:
            continue
        if weekday not in habit.days_of_week:
            continue
        if is_daily_routine(habit.text, config.daily_routine_keywords):
            continue

        normalized = normalize_text(habit.text)
        instances = [
            e for e in dated
            if since <= e.specific_date < snapshot.today
            and sunday_weekday(e.specific_date) in habit.days_of_week
            and normalize_text(e.text) == normalized
        ]
        if len(instances) < config.min_recurring_occurrences:
            continue

        total = len(instances)
        completed = sum(1 for e in instances if e.completed)
        skipped = total - completed
        skip_rate = skipped / total
        if skip_rate < config.pattern_skip_rate or skipped < 2:
            continue

        day_name = DAY_NAMES[weekday]
        if skip_rate >= config.pattern_high_skip_rate:
            message = (
                f'You skipped {day_name} "{habit.text}" {skipped} of {total} times in the last '
                f"{config.pattern_lookback_weeks} weeks. Move it to another day or time?"
            )
        else:
            rate = round(completed / total * 100)
            message = f'{day_name} "{habit.text}" has a {rate}% completion rate. Give it a go today?'

        notifications.append(Notification(
            id=f"skip-pattern-{normalized}-{weekday}-{snapshot.today_str}",
            type="pattern_reminder",
            priority="medium",
            title="📊 Pattern insight",
            message=message,
            action_type="adjust_schedule",
            action_payload={
                "goalText": habit.text,
                "dayOfWeek": weekday,
                "skipRate": round(skip_rate * 100),
                "completedCount": completed,
                "skippedCount": skipped,
                "total": total,
            },
        ))
        if len(notifications) >= config.max_skipped_suggestions:
            break

    return notifications
