"""
Schedule-driven generators: upcoming reminders, prep checklists, the morning
briefing, uncompleted follow-ups, evening wind-down and stale goal nudges.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..config import EngineConfig, in_window, is_important_schedule
from ..copywriter import CopyParseError
from ..models import ContextSnapshot, Notification, ScheduleEntry, parse_hhmm

logger = logging.getLogger(__name__)


def start_of(entry: ScheduleEntry, now: datetime) -> Optional[datetime]:
    """Today's start datetime of an entry, in the same timezone as now."""
    parsed = parse_hhmm(entry.start_time)
    if parsed is None:
        return None
    hour, minute = parsed
    return now.replace(hour=hour, minute=minute, second=0, microsecond=0)


def minutes_until(start: datetime, now: datetime) -> int:
    return round((start - now).total_seconds() / 60)


def upcoming_reminders(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    """
    Exact-minute reminders: 10 minutes before any schedule (high), and 20
    minutes before important ones (medium). A poll that misses the minute
    misses the reminder unless reminder_tolerance_minutes widens the match.
    """
    notifications = []
    tolerance = config.reminder_tolerance_minutes
    important = config.important_keywords

    for entry in snapshot.today_schedules:
        if entry.completed or entry.skipped:
            continue
        start = start_of(entry, snapshot.now)
        if start is None:
            continue
        diff = minutes_until(start, snapshot.now)

        if abs(diff - config.reminder_late_minutes) <= tolerance:
            notifications.append(Notification(
                id=f"schedule-10min-{entry.id}-{snapshot.today_str}",
                type="schedule_reminder",
                priority="high",
                title="⏰ Starting in 10 minutes",
                message=f'"{entry.text}" starts in 10 minutes.',
                action_type="view_schedule",
                action_payload={"scheduleId": entry.id},
                expires_at=start,
            ))
        elif abs(diff - config.reminder_early_minutes) <= tolerance and is_important_schedule(entry.text, important):
            notifications.append(Notification(
                id=f"schedule-20min-{entry.id}-{snapshot.today_str}",
                type="schedule_reminder",
                priority="medium",
                title="📅 Important schedule in 20 minutes",
                message=f'"{entry.text}" starts in 20 minutes. Time to get ready!',
                action_type="view_schedule",
                action_payload={"scheduleId": entry.id},
                expires_at=start,
            ))
    return notifications


async def schedule_prep(snapshot: ContextSnapshot, config: EngineConfig, copywriter=None) -> list[Notification]:
    """Prep checklist for important schedules starting in 2-3 hours."""
    notifications = []
    low, high = config.prep_window_minutes

    for entry in snapshot.today_schedules:
        if entry.completed or entry.skipped:
            continue
        if not is_important_schedule(entry.text, config.important_keywords):
            continue
        start = start_of(entry, snapshot.now)
        if start is None:
            continue
        diff = minutes_until(start, snapshot.now)
        if not (low <= diff <= high):
            continue

        title = "📝 Get ready"
        message = f'"{entry.text}" is at {entry.start_time}. Anything to prepare beforehand?'
        checklist: list[str] = []

        if copywriter is not None:
            try:
                drafted = await copywriter.schedule_prep(
                    entry.text,
                    entry.start_time,
                    diff,
                    topics=snapshot.memory.frequent_topics,
                    motivators=snapshot.memory.motivation_triggers,
                )
                title, message, checklist = drafted.title, drafted.message, list(drafted.checklist)
            except CopyParseError as e:
                logger.warning(f"[PROACTIVE] Dropping prep for {entry.id}, bad copy: {e}")
                continue
            except Exception as e:
                logger.warning(f"[PROACTIVE] Copywriter unavailable, using template: {e}")

        notifications.append(Notification(
            id=f"schedule-prep-{entry.id}-{snapshot.today_str}",
            type="schedule_prep",
            priority="medium",
            title=title,
            message=message,
            action_type="view_schedule",
            action_payload={"scheduleId": entry.id, "checklist": checklist},
            expires_at=start,
        ))
    return notifications


def morning_briefing(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    hour = snapshot.now.hour
    notifications = []

    if in_window(hour, config.morning_window):
        important = [
            s for s in snapshot.today_schedules
            if is_important_schedule(s.text, config.important_keywords)
        ]
        if important:
            listed = important[: config.morning_briefing_items]
            lines = "\n".join(f"• {s.start_time or 'All day'}: {s.text}" for s in listed)
            notifications.append(Notification(
                id=f"morning-briefing-{snapshot.today_str}",
                type="morning_briefing",
                priority="high",
                title="☀️ Good morning!",
                message=f"You have {len(important)} important schedule(s) today:\n{lines}",
                action_type="open_briefing",
                action_payload={"type": "morning"},
            ))

        if snapshot.yesterday_uncompleted:
            notifications.append(_uncompleted(snapshot, "medium", "am"))

    elif in_window(hour, config.afternoon_window) and snapshot.yesterday_uncompleted:
        notifications.append(_uncompleted(snapshot, "low", "pm"))

    return notifications


def _uncompleted(snapshot: ContextSnapshot, priority: str, part: str) -> Notification:
    count = len(snapshot.yesterday_uncompleted)
    return Notification(
        id=f"uncompleted-{part}-{snapshot.today_str}",
        type="urgent_alert",
        priority=priority,
        title="📋 Left over from yesterday",
        message=f"{count} task(s) from yesterday are still open. Tackle them today?",
        action_type="view_uncompleted",
        action_payload={"scheduleIds": [s.id for s in snapshot.yesterday_uncompleted]},
    )


def evening(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    hour = snapshot.now.hour
    notifications = []

    sleep = parse_hhmm(snapshot.profile.sleep_time)
    if sleep is not None and hour == (sleep[0] - 1) % 24:
        notifications.append(Notification(
            id=f"sleep-prep-{snapshot.today_str}",
            type="context_suggestion",
            priority="low",
            title="🌙 Time to wind down",
            message="Your bedtime is an hour away. Start wrapping up the day.",
            action_type="start_wind_down",
        ))

    if hour == config.evening_check_hour and snapshot.today_schedules:
        done = sum(1 for s in snapshot.today_schedules if s.completed)
        notifications.append(Notification(
            id=f"evening-check-{snapshot.today_str}",
            type="context_suggestion",
            priority="medium",
            title="🌆 How did today go?",
            message=f"You finished {done} of {len(snapshot.today_schedules)} schedule(s) today. Want to review the day?",
            action_type="open_evening_check",
        ))

    return notifications


def goal_nudge(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    stale = []
    for goal in snapshot.goals:
        if goal.completed or goal.created_at is None:
            continue
        age = (snapshot.today - goal.created_at.date()).days
        if age >= config.stale_goal_days:
            stale.append((goal.created_at.date(), goal))
    if not stale:
        return []

    _, oldest = min(stale, key=lambda pair: pair[0])
    return [Notification(
        id=f"goal-nudge-{oldest.id}-{snapshot.today_str}",
        type="goal_nudge",
        priority="low",
        title="🎯 Still on your list",
        message=f'"{oldest.text}" is still in progress. Make some time for it today?',
        action_type="view_goal",
        action_payload={"goalId": oldest.id},
    )]
