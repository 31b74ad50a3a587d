"""
Activity and wellbeing generators.

Most of these are plan-gated in the registry. Each reads only the
ActivitySummary / schedules already on the snapshot.
"""

from __future__ import annotations

from datetime import date, timedelta

from ..config import EngineConfig, in_window
from ..models import ContextSnapshot, Notification, parse_hhmm


def mood_checkin(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    if not in_window(snapshot.now.hour, config.mood_reminder_window):
        return []
    if any(log.date == snapshot.today for log in snapshot.activity.mood_logs):
        return []
    return [Notification(
        id=f"mood-checkin-{snapshot.today_str}",
        type="mood_reminder",
        priority="low",
        title="🙂 How are you feeling?",
        message="You haven't logged your mood today. Take a few seconds to check in?",
        action_type="log_mood",
    )]


def burnout_warning(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    since = snapshot.today - timedelta(days=config.burnout_lookback_days - 1)
    recent = [log for log in snapshot.activity.mood_logs if since <= log.date <= snapshot.today]
    if len(recent) < config.burnout_lookback_days:
        return []

    mood = sum(log.mood for log in recent) / len(recent)
    energy = sum(log.energy for log in recent) / len(recent)
    if mood > config.burnout_mood or energy > config.burnout_energy:
        return []

    return [Notification(
        id=f"burnout-{snapshot.today_str}",
        type="burnout_warning",
        priority="high",
        title="🫶 Running low lately",
        message=(
            f"Your mood and energy have averaged {mood:.1f} and {energy:.1f} over the last "
            f"{config.burnout_lookback_days} days. Consider lightening today's load."
        ),
        action_type="suggest_rest",
        action_payload={"avgMood": round(mood, 1), "avgEnergy": round(energy, 1)},
    )]


def _current_streak(days: set[date], today: date) -> int:
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def focus_streak(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    days = set(snapshot.activity.focus_days)
    if not days:
        return []

    streak = _current_streak(days, snapshot.today)
    if snapshot.today in days and streak in config.focus_streak_milestones:
        return [Notification(
            id=f"focus-streak-{streak}-{snapshot.today_str}",
            type="focus_streak",
            priority="medium",
            title=f"🔥 {streak}-day focus streak",
            message=f"You've focused {streak} days in a row. Keep it going!",
            action_type="start_focus",
            action_payload={"streak": streak},
        )]

    last = max(days)
    idle = (snapshot.today - last).days
    if idle >= config.focus_inactive_days and in_window(snapshot.now.hour, config.focus_day_window):
        return [Notification(
            id=f"focus-return-{snapshot.today_str}",
            type="focus_streak",
            priority="low",
            title="🎧 Ready for a focus session?",
            message=f"It's been {idle} days since your last focus session. A short one today?",
            action_type="start_focus",
            action_payload={"idleDays": idle},
        )]
    return []


def health_insight(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    nights = sorted(snapshot.activity.sleep_log, key=lambda entry: entry[0], reverse=True)
    needed = config.health_low_sleep_consecutive
    if len(nights) < needed:
        return []

    recent = nights[:needed]
    if (snapshot.today - recent[0][0]).days > 1:
        return []
    for (newer, _), (older, _) in zip(recent, recent[1:]):
        if (newer - older).days != 1:
            return []
    if any(hours >= config.health_low_sleep_hours for _, hours in recent):
        return []

    return [Notification(
        id=f"health-sleep-{snapshot.today_str}",
        type="health_insight",
        priority="medium",
        title="😴 Short on sleep",
        message=(
            f"You've slept under {config.health_low_sleep_hours:g} hours for {needed} nights running. "
            "Try an earlier night tonight."
        ),
        action_type="view_health",
        action_payload={"hours": [hours for _, hours in recent]},
    )]


def commit_streak(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    activity = snapshot.activity
    if not in_window(snapshot.now.hour, config.commit_streak_window):
        return []
    if activity.commits_today != 0 or activity.commit_streak < 1:
        return []
    return [Notification(
        id=f"commit-streak-{snapshot.today_str}",
        type="commit_streak",
        priority="medium",
        title="💻 Keep your streak alive",
        message=f"No commits yet today. One commit keeps your {activity.commit_streak}-day streak going.",
        action_type="open_github",
        action_payload={"streak": activity.commit_streak},
    )]


def _free_hours(snapshot: ContextSnapshot, window: tuple[int, int]) -> float:
    start_min, end_min = window[0] * 60, window[1] * 60
    intervals = []
    for s in snapshot.today_schedules:
        start, end = parse_hhmm(s.start_time), parse_hhmm(s.end_time)
        if start is None or end is None:
            continue
        a = max(start[0] * 60 + start[1], start_min)
        b = min(end[0] * 60 + end[1], end_min)
        if b > a:
            intervals.append((a, b))

    busy = 0
    cursor = start_min
    for a, b in sorted(intervals):
        a = max(a, cursor)
        if b > a:
            busy += b - a
            cursor = b
    return (end_min - start_min - busy) / 60


def schedule_overload(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    count = len(snapshot.today_schedules)
    if count == 0:
        return []
    free = _free_hours(snapshot, config.workday_window)
    if count < config.schedule_overload_count and free >= config.schedule_min_free_hours:
        return []
    return [Notification(
        id=f"overload-{snapshot.today_str}",
        type="schedule_overload",
        priority="medium",
        title="🧩 Packed day",
        message=f"{count} schedule(s) and about {free:.1f} free hours today. Anything you can move?",
        action_type="view_schedule",
        action_payload={"count": count, "freeHours": round(free, 1)},
    )]


def weekly_deadline(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    if snapshot.today.weekday() != 4:
        return []
    behind = [
        g for g in snapshot.goals
        if g.goal_type == "weekly" and not g.completed and g.progress < config.weekly_goal_low_progress
    ]
    if not behind:
        return []
    first = behind[0]
    return [Notification(
        id=f"weekly-deadline-{snapshot.today_str}",
        type="weekly_deadline",
        priority="medium",
        title="⏳ Week's almost over",
        message=f'{len(behind)} weekly goal(s) are under {config.weekly_goal_low_progress}%, including "{first.text}" at {first.progress}%.',
        action_type="view_goal",
        action_payload={"goalIds": [g.id for g in behind]},
    )]


def _completion_rate(entries) -> tuple[float, int]:
    entries = list(entries)
    if not entries:
        return 0.0, 0
    return sum(1 for e in entries if e.completed) / len(entries), len(entries)


def routine_break(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    """This week's completion rate against the previous weeks'."""
    today = snapshot.today
    week_start = today - timedelta(days=snapshot.weekday)
    history_start = week_start - timedelta(weeks=config.pattern_lookback_weeks - 1)
    dated = [e for e in snapshot.all_schedules if e.specific_date is not None and e.specific_date < today]

    current, current_n = _completion_rate(e for e in dated if e.specific_date >= week_start)
    usual, usual_n = _completion_rate(e for e in dated if history_start <= e.specific_date < week_start)
    if current_n < config.routine_min_data_points or usual_n < config.routine_min_data_points:
        return []
    if current >= config.routine_break_current or usual < config.routine_break_usual:
        return []

    return [Notification(
        id=f"routine-break-{snapshot.today_str}",
        type="routine_break",
        priority="medium",
        title="📉 Off your usual rhythm",
        message=f"You've finished {current:.0%} of schedules this week, compared to your usual {usual:.0%}. Everything okay?",
        action_type="view_stats",
        action_payload={"current": round(current * 100), "usual": round(usual * 100)},
    )]


def inactive_return(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    last = snapshot.activity.last_active
    if last is None:
        return []
    idle = (snapshot.today - last).days
    if idle < config.inactive_days:
        return []
    return [Notification(
        id=f"inactive-return-{last.isoformat()}",
        type="inactive_return",
        priority="medium",
        title="👋 Welcome back",
        message=f"It's been {idle} days. Want a quick rundown of what's coming up?",
        action_type="open_briefing",
        action_payload={"idleDays": idle},
    )]


def learning_reminder(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    activity = snapshot.activity
    if activity.learning_last_progress is None:
        return []
    idle = (snapshot.today - activity.learning_last_progress).days
    if idle < config.learning_stale_days:
        return []
    topic = f' on "{activity.learning_topic}"' if activity.learning_topic else ""
    return [Notification(
        id=f"learning-{snapshot.today_str}",
        type="learning_reminder",
        priority="low",
        title="📚 Pick up where you left off",
        message=f"No progress{topic} for {idle} days. Ten minutes today?",
        action_type="open_learning",
        action_payload={"idleDays": idle},
    )]


def energy_boost(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    if not in_window(snapshot.now.hour, config.energy_boost_window):
        return []
    return [Notification(
        id=f"energy-boost-{snapshot.today_str}",
        type="energy_boost",
        priority="low",
        title="☕ Post-lunch slump?",
        message="A short walk or some water now helps the afternoon go smoother.",
        action_type="suggest_break",
    )]


def daily_wrap(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    if snapshot.today.weekday() >= 5 or not in_window(snapshot.now.hour, config.daily_wrap_window):
        return []
    remaining = [s for s in snapshot.today_schedules if not s.completed and not s.skipped]
    return [Notification(
        id=f"daily-wrap-{snapshot.today_str}",
        type="daily_wrap",
        priority="low",
        title="🧳 Wrapping up",
        message=(
            f"{len(remaining)} schedule(s) still open today. Note where you stopped before heading out?"
            if remaining else "Everything's done for today. Nice work!"
        ),
        action_type="open_day_summary",
        action_payload={"remaining": len(remaining)},
    )]


def weekly_review(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    if snapshot.weekday != 0 or not in_window(snapshot.now.hour, config.weekly_review_window):
        return []
    return [Notification(
        id=f"weekly-review-{snapshot.today_str}",
        type="weekly_review",
        priority="low",
        title="🗒️ Weekly review",
        message="Look back on this week and set up the next one?",
        action_type="open_weekly_review",
    )]
