"""
Proactive engine configuration

Every threshold the decision pipeline reads lives here as a named default.
Values can be overridden per-process through environment variables
(PROACTIVE_*) or per-engine by passing a modified EngineConfig.

Time windows are local hours in the user's timezone, [start, end).
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field


# --- Keyword heuristics ---

IMPORTANT_SCHEDULE_KEYWORDS = (
    "meeting", "interview", "presentation", "deadline", "exam", "test",
    "appointment", "consultation", "doctor", "dentist", "reservation",
    "review", "pitch", "demo",
)

# Universal daily routines, never treated as a weekly habit
DAILY_ROUTINE_KEYWORDS = (
    "wake", "sleep", "bed", "meal", "breakfast", "lunch", "dinner",
    "commute", "work", "class",
)

# Past schedules worth a follow-up question, with the question to ask
FOLLOWUP_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("dentist", "hospital", "doctor", "checkup", "clinic"), "How did the appointment go?"),
    (("interview",), "How did the interview go?"),
    (("exam", "test", "certification"), "How did the exam go?"),
    (("presentation", "pitch", "demo"), "How did the presentation go?"),
    (("trip", "travel", "vacation"), "Did you enjoy the trip?"),
    (("move", "moving"), "Are you settling in to the new place?"),
    (("birthday", "anniversary", "wedding"), "Did you have a good time?"),
)

LIFESTYLE_EVENT_KEYWORDS = ("anniversary", "birthday", "celebration", "wedding")

PRODUCTIVITY_PEAK_HOURS = {
    "morning": (6, 10),
    "forenoon": (9, 12),
    "afternoon": (14, 18),
}

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class EngineConfig:
    """Tunable constants for one engine instance."""

    # Escalation
    suppression_window_days: int = 7
    dismiss_strike_threshold: int = 3
    soften_message_length: int = 50

    # Quota
    max_per_call: int = 5

    # Reminders (0 = exact-minute contract)
    reminder_late_minutes: int = 10
    reminder_early_minutes: int = 20
    reminder_tolerance_minutes: int = 0
    prep_window_minutes: tuple[int, int] = (120, 180)

    # Windows
    morning_window: tuple[int, int] = (6, 12)
    afternoon_window: tuple[int, int] = (12, 20)
    evening_check_hour: int = 21
    lifestyle_window: tuple[int, int] = (8, 12)
    memory_surfacing_window: tuple[int, int] = (7, 12)
    skipped_pattern_window: tuple[int, int] = (6, 12)
    mood_reminder_window: tuple[int, int] = (14, 20)
    energy_boost_window: tuple[int, int] = (13, 14)
    daily_wrap_window: tuple[int, int] = (17, 18)
    weekly_review_window: tuple[int, int] = (19, 21)
    commit_streak_window: tuple[int, int] = (20, 23)
    focus_day_window: tuple[int, int] = (9, 12)
    workday_window: tuple[int, int] = (9, 22)

    # Thresholds
    stale_goal_days: int = 3
    min_recurring_occurrences: int = 2
    max_recurring_days: int = 3
    max_skip_pattern_days: int = 4
    pattern_lookback_weeks: int = 4
    pattern_skip_rate: float = 0.5
    pattern_high_skip_rate: float = 0.75
    max_skipped_suggestions: int = 2
    break_scan_days: int = 8
    burnout_mood: float = 2
    burnout_energy: float = 2
    burnout_lookback_days: int = 3
    schedule_overload_count: int = 6
    schedule_min_free_hours: float = 2
    weekly_goal_low_progress: int = 50
    routine_break_current: float = 0.4
    routine_break_usual: float = 0.7
    routine_min_data_points: int = 3
    inactive_days: int = 3
    learning_stale_days: int = 3
    focus_streak_milestones: tuple[int, ...] = (3, 5, 7, 14, 30)
    focus_inactive_days: int = 2
    health_low_sleep_hours: float = 6
    health_low_sleep_consecutive: int = 2
    morning_briefing_items: int = 3

    # Collaborators
    default_timezone: str = "Asia/Seoul"
    collaborator_timeout_seconds: float = 3.0

    important_keywords: tuple[str, ...] = field(default=IMPORTANT_SCHEDULE_KEYWORDS)
    daily_routine_keywords: tuple[str, ...] = field(default=DAILY_ROUTINE_KEYWORDS)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config with PROACTIVE_* environment overrides applied."""
        return cls(
            suppression_window_days=_env_int("PROACTIVE_SUPPRESSION_WINDOW_DAYS", 7),
            dismiss_strike_threshold=_env_int("PROACTIVE_STRIKE_THRESHOLD", 3),
            max_per_call=_env_int("PROACTIVE_MAX_PER_CALL", 5),
            reminder_tolerance_minutes=_env_int("PROACTIVE_REMINDER_TOLERANCE_MINUTES", 0),
            default_timezone=os.environ.get("PROACTIVE_DEFAULT_TIMEZONE", "Asia/Seoul"),
            collaborator_timeout_seconds=_env_float("PROACTIVE_COLLABORATOR_TIMEOUT_SECONDS", 3.0),
        )


def in_window(hour: int, window: tuple[int, int]) -> bool:
    """True if hour falls in the half-open [start, end) window."""
    start, end = window
    return start <= hour < end


def matches_keyword(text: str, keywords: tuple[str, ...]) -> bool:
    """
    Whole-word keyword match, tolerating plural/gerund endings.

    "Team meetings" matches "meeting"; "workout" does not match "work".
    """
    lowered = (text or "").lower()
    if not lowered:
        return False
    for keyword in keywords:
        if re.search(rf"\b{re.escape(keyword)}(s|es|ing)?\b", lowered):
            return True
    return False


def is_important_schedule(text: str, keywords: tuple[str, ...] = IMPORTANT_SCHEDULE_KEYWORDS) -> bool:
    """Keyword heuristic for meetings, deadlines, interviews and similar."""
    return matches_keyword(text, keywords)


def is_daily_routine(text: str, keywords: tuple[str, ...] = DAILY_ROUTINE_KEYWORDS) -> bool:
    return matches_keyword(text, keywords)
