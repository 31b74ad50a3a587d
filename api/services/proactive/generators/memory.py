"""
Memory-based generators: weekly habit days, productivity peaks, important
events, time-of-day preferences and follow-ups on recent notable schedules.
"""

from __future__ import annotations

from datetime import timedelta

from ..config import (
    DAY_NAMES,
    FOLLOWUP_KEYWORDS,
    PRODUCTIVITY_PEAK_HOURS,
    EngineConfig,
    in_window,
    is_daily_routine,
    is_important_schedule,
    matches_keyword,
)
from ..models import ContextSnapshot, Notification, parse_hhmm, sunday_weekday
from ..patterns import normalize_text


def _period(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return ""


def memory_based(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    notifications = []
    now = snapshot.now
    hour = now.hour
    today = snapshot.today_str

    # Weekly habit day
    for pattern in snapshot.recurring_patterns:
        if pattern.day_of_week != snapshot.weekday:
            continue
        if is_daily_routine(pattern.activity, config.daily_routine_keywords):
            continue
        usual = f" You usually do it around {pattern.time}." if pattern.time else ""
        notifications.append(Notification(
            id=f"pattern-{normalize_text(pattern.activity)}-{today}",
            type="pattern_reminder",
            priority="medium",
            title="📅 Weekly routine",
            message=f'Today is your "{pattern.activity}" day.{usual}',
            action_type="assist_pattern",
            action_payload={"activity": pattern.activity, "time": pattern.time, "dayOfWeek": pattern.day_of_week},
        ))

    # Productivity peak with nothing important scheduled nearby
    peaks = [p.lower() for p in snapshot.memory.productivity_peaks]
    is_peak = any(
        in_window(hour, window)
        for name, window in PRODUCTIVITY_PEAK_HOURS.items()
        if any(name in p for p in peaks)
    )
    if is_peak and 9 <= hour <= 11:
        busy = False
        for s in snapshot.today_schedules:
            parsed = parse_hhmm(s.start_time)
            if parsed and abs(parsed[0] - hour) <= 1 and is_important_schedule(s.text, config.important_keywords):
                busy = True
                break
        if not busy:
            notifications.append(Notification(
                id=f"productivity-peak-{today}-{hour}",
                type="memory_suggestion",
                priority="low",
                title="⚡ Prime focus time",
                message="This is usually when you focus best. Good moment for your most important task.",
                action_type="suggest_focus_task",
                action_payload={"peakTime": True},
            ))

    # Important events today/tomorrow
    for event in snapshot.memory.important_events:
        days = (event.date - snapshot.today).days
        key = f"{event.date.isoformat()}-{normalize_text(event.event)[:10]}"
        if days == 0:
            notifications.append(Notification(
                id=f"event-today-{key}",
                type="memory_suggestion",
                priority="high",
                title="📌 Today's big event",
                message=f'Today is "{event.event}"!',
                action_type="view_event",
                action_payload={"event": event.event, "date": event.date.isoformat()},
            ))
        elif days == 1:
            notifications.append(Notification(
                id=f"event-tomorrow-{key}",
                type="memory_suggestion",
                priority="medium",
                title="📆 Big event tomorrow",
                message=f'Tomorrow is "{event.event}". Anything to prepare?',
                action_type="prepare_event",
                action_payload={"event": event.event, "date": event.date.isoformat()},
            ))

    # Preferred activity for this part of the day, every third hour
    period = _period(hour)
    activity = snapshot.memory.time_preferences.get(period) if period else None
    if activity and hour % 3 == 0:
        notifications.append(Notification(
            id=f"time-pref-{today}-{period}",
            type="memory_suggestion",
            priority="low",
            title=f"✨ {period.capitalize()} idea",
            message=f'You often do "{activity}" in the {period}. Planning to today?',
            action_type="suggest_activity",
            action_payload={"activity": activity, "period": period},
        ))

    return notifications


def memory_surfacing(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    """Follow-up question about a notable one-off schedule from 2-7 days ago."""
    if not in_window(snapshot.now.hour, config.memory_surfacing_window):
        return []

    for days_ago in range(2, 8):
        past = snapshot.today - timedelta(days=days_ago)
        for entry in snapshot.all_schedules:
            if entry.specific_date != past:
                continue
            for keywords, question in FOLLOWUP_KEYWORDS:
                if not matches_keyword(entry.text, keywords):
                    continue
                if days_ago == 2:
                    label = "Two days ago"
                elif days_ago <= 4:
                    label = f"{days_ago} days ago"
                else:
                    label = f"Last {DAY_NAMES[sunday_weekday(past)]}"
                return [Notification(
                    id=f"memory-surface-{entry.id}-{snapshot.today_str}",
                    type="memory_suggestion",
                    priority="low",
                    title="💭 Following up",
                    message=f'{label} you had "{entry.text}". {question}',
                    action_type="memory_followup",
                    action_payload={
                        "scheduleName": entry.text,
                        "scheduleDate": past.isoformat(),
                        "daysAgo": days_ago,
                    },
                )]
    return []
