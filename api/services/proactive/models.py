"""
Proactive engine types

Internal read models and the Notification candidate type. Everything here is
a frozen dataclass: a ContextSnapshot is built once per evaluation and shared
read-only by every generator.

Schedule entries arrive from the client app as camelCase dicts stored under
users.profile.customGoals; ScheduleEntry.from_dict() is the single place that
knows that shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Literal, Optional


Priority = Literal["high", "medium", "low"]

PRIORITY_RANK: dict[str, int] = {"high": 0, "medium": 1, "low": 2}


class NotificationType(str, Enum):
    SCHEDULE_REMINDER = "schedule_reminder"
    SCHEDULE_PREP = "schedule_prep"
    MORNING_BRIEFING = "morning_briefing"
    URGENT_ALERT = "urgent_alert"
    CONTEXT_SUGGESTION = "context_suggestion"
    GOAL_NUDGE = "goal_nudge"
    MEMORY_SUGGESTION = "memory_suggestion"
    PATTERN_REMINDER = "pattern_reminder"
    LIFESTYLE_RECOMMEND = "lifestyle_recommend"
    RECURRING_SUGGESTION = "recurring_suggestion"
    FUSION_ALERT = "fusion_alert"
    MOOD_REMINDER = "mood_reminder"
    BURNOUT_WARNING = "burnout_warning"
    FOCUS_STREAK = "focus_streak"
    HEALTH_INSIGHT = "health_insight"
    COMMIT_STREAK = "commit_streak"
    SCHEDULE_OVERLOAD = "schedule_overload"
    WEEKLY_DEADLINE = "weekly_deadline"
    ROUTINE_BREAK = "routine_break"
    INACTIVE_RETURN = "inactive_return"
    LEARNING_REMINDER = "learning_reminder"
    ENERGY_BOOST = "energy_boost"
    DAILY_WRAP = "daily_wrap"
    WEEKLY_REVIEW = "weekly_review"


class NotificationKind(str, Enum):
    """How a notification is deduplicated within a day."""
    SINGLETON = "singleton"   # at most one of this type per day
    INSTANCE = "instance"     # deduplicated by its own id


TYPE_SINGLETONS = frozenset({
    NotificationType.MORNING_BRIEFING.value,
    NotificationType.GOAL_NUDGE.value,
    NotificationType.URGENT_ALERT.value,
    NotificationType.LIFESTYLE_RECOMMEND.value,
})


def kind_of(notification_type: str) -> NotificationKind:
    if notification_type in TYPE_SINGLETONS:
        return NotificationKind.SINGLETON
    return NotificationKind.INSTANCE


@dataclass(frozen=True)
class Notification:
    """A notification candidate. Ids are deterministic per logical event."""
    id: str
    type: str
    priority: Priority
    title: str
    message: str
    action_type: Optional[str] = None
    action_payload: Optional[dict] = None
    expires_at: Optional[datetime] = None

    @property
    def kind(self) -> NotificationKind:
        return kind_of(self.type)

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self.priority]


def parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        parsed = parse_date(value)
        return datetime(parsed.year, parsed.month, parsed.day) if parsed else None


def parse_hhmm(value: Optional[str]) -> Optional[tuple[int, int]]:
    """'14:05' -> (14, 5). Returns None for missing or malformed times."""
    if not value:
        return None
    try:
        hour, minute = str(value).split(":")[:2]
        h, m = int(hour), int(minute)
    except ValueError:
        return None
    if not (0 <= h < 24 and 0 <= m < 60):
        return None
    return h, m


@dataclass(frozen=True)
class ScheduleEntry:
    id: str
    text: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    specific_date: Optional[date] = None
    days_of_week: tuple[int, ...] = ()     # 0 = Sunday .. 6 = Saturday
    completed: bool = False
    skipped: bool = False
    created_at: Optional[datetime] = None
    color: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def is_recurring(self) -> bool:
        return bool(self.days_of_week)

    @property
    def is_one_off(self) -> bool:
        return self.specific_date is not None and not self.days_of_week

    def occurs_on(self, day: date) -> bool:
        if self.specific_date is not None:
            return self.specific_date == day
        if sunday_weekday(day) in self.days_of_week:
            if self.start_date and day < self.start_date:
                return False
            if self.end_date and day > self.end_date:
                return False
            return True
        return False

    @classmethod
    def from_dict(cls, raw: dict) -> "ScheduleEntry":
        days = raw.get("daysOfWeek") or []
        return cls(
            id=str(raw.get("id", "")),
            text=raw.get("text") or raw.get("content") or "",
            start_time=raw.get("startTime"),
            end_time=raw.get("endTime"),
            specific_date=parse_date(raw.get("specificDate")),
            days_of_week=tuple(int(d) for d in days),
            completed=raw.get("completed") is True,
            skipped=raw.get("skipped") is True,
            created_at=parse_datetime(raw.get("createdAt")),
            color=raw.get("color"),
            start_date=parse_date(raw.get("startDate")),
            end_date=parse_date(raw.get("endDate")),
        )


@dataclass(frozen=True)
class Goal:
    id: str
    text: str
    created_at: Optional[datetime] = None
    completed: bool = False
    progress: int = 0
    deadline: Optional[date] = None
    goal_type: str = "long_term"   # 'weekly' | 'long_term'

    @classmethod
    def from_row(cls, row: dict) -> "Goal":
        return cls(
            id=str(row.get("id", "")),
            text=row.get("title") or row.get("text") or "",
            created_at=parse_datetime(row.get("created_at")),
            completed=row.get("completed") is True,
            progress=int(row.get("progress") or 0),
            deadline=parse_date(row.get("deadline")),
            goal_type=row.get("type") or "long_term",
        )


@dataclass(frozen=True)
class ImportantEvent:
    date: date
    event: str
    category: str = ""


@dataclass(frozen=True)
class MemorySummary:
    """Behavioral memory distilled from user_memory rows."""
    productivity_peaks: tuple[str, ...] = ()
    motivation_triggers: tuple[str, ...] = ()
    frequent_topics: tuple[str, ...] = ()
    time_preferences: dict = field(default_factory=dict)  # period -> activity
    important_events: tuple[ImportantEvent, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (
            self.productivity_peaks or self.motivation_triggers or self.frequent_topics
            or self.time_preferences or self.important_events
        )


@dataclass(frozen=True)
class RecurringPattern:
    """An explicit weekly habit: a recurring schedule projected onto one weekday."""
    day_of_week: int
    activity: str
    time: Optional[str] = None


@dataclass(frozen=True)
class RecurringCandidate:
    """An implicit weekly habit inferred from repeated one-off entries."""
    normalized_text: str
    text: str
    day_of_week: int
    start_time: str
    schedule_ids: tuple[str, ...]
    occurrences: int
    color: Optional[str] = None


@dataclass(frozen=True)
class ContextSignal:
    type: str
    severity: Literal["info", "warning", "critical"]
    message: str


@dataclass(frozen=True)
class MoodLog:
    date: date
    mood: float
    energy: float


@dataclass(frozen=True)
class ActivitySummary:
    """Wellbeing/activity signals feeding the plan-gated generators."""
    mood_logs: tuple[MoodLog, ...] = ()
    focus_days: tuple[date, ...] = ()
    sleep_log: tuple[tuple[date, float], ...] = ()
    commits_today: Optional[int] = None
    commit_streak: int = 0
    learning_topic: Optional[str] = None
    learning_last_progress: Optional[date] = None
    last_active: Optional[date] = None


@dataclass(frozen=True)
class UserProfile:
    sleep_time: Optional[str] = None
    interests: tuple[str, ...] = ()
    timezone: Optional[str] = None

    @classmethod
    def from_dict(cls, profile: dict) -> "UserProfile":
        schedule = profile.get("schedule") or {}
        return cls(
            sleep_time=schedule.get("sleep"),
            interests=tuple(profile.get("interests") or ()),
            timezone=profile.get("timezone"),
        )


@dataclass(frozen=True)
class UserPlan:
    plan: str = "free"
    proactive_daily_limit: int = 5          # -1 for unlimited
    features: frozenset = frozenset()

    def has(self, feature: Optional[str]) -> bool:
        return feature is None or feature in self.features


@dataclass(frozen=True)
class ContextSnapshot:
    """Immutable read model for one evaluation pass."""
    user_id: str
    now: datetime
    today_schedules: tuple[ScheduleEntry, ...] = ()
    yesterday_uncompleted: tuple[ScheduleEntry, ...] = ()
    all_schedules: tuple[ScheduleEntry, ...] = ()
    goals: tuple[Goal, ...] = ()
    memory: MemorySummary = field(default_factory=MemorySummary)
    recurring_patterns: tuple[RecurringPattern, ...] = ()
    recurring_candidates: tuple[RecurringCandidate, ...] = ()
    signals: tuple[ContextSignal, ...] = ()
    activity: ActivitySummary = field(default_factory=ActivitySummary)
    profile: UserProfile = field(default_factory=UserProfile)
    plan: UserPlan = field(default_factory=UserPlan)

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def today_str(self) -> str:
        return self.now.date().isoformat()

    @property
    def weekday(self) -> int:
        """Sunday-based weekday (0 = Sunday) matching stored daysOfWeek."""
        return sunday_weekday(self.now.date())


def sunday_weekday(day: date) -> int:
    """Python's Monday=0 weekday converted to Sunday=0."""
    return (day.weekday() + 1) % 7
