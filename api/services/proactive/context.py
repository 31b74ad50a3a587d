"""
Context Snapshot Builder

Assembles the immutable ContextSnapshot one evaluation runs on.

Sources:
  users.profile - customGoals (schedules), sleep time, interests, timezone
  user_goals - uncompleted goals
  user_memory - behavioral memory (peaks, time preferences, events)
  user_subscriptions - plan + feature gates
  context_signals - fused context alerts
  mood_logs, focus_sessions, health_data, github_activity,
  learning_progress, user_events - activity summary

Every read runs off the event loop, is bounded by
collaborator_timeout_seconds, and fails soft: the field is left empty and a
warning is logged. The builder never aborts an evaluation.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterable, Optional

import pytz

from services.context_fusion import get_active_signals
from services.schedules import ScheduleStore
from services.user_plan import get_limits_for_tier, get_user_tier

from .config import EngineConfig
from .models import (
    ActivitySummary,
    ContextSignal,
    ContextSnapshot,
    Goal,
    ImportantEvent,
    MemorySummary,
    MoodLog,
    ScheduleEntry,
    UserPlan,
    UserProfile,
    parse_date,
)
from .patterns import detect_recurring_candidates, extract_explicit_patterns

logger = logging.getLogger(__name__)

MEMORY_ROW_LIMIT = 20
ACTIVITY_LOOKBACK_DAYS = 40
TIME_PREFERENCE_PERIODS = ("morning", "afternoon", "evening")


def to_local(now: datetime, tz_name: Optional[str], default_tz: str) -> datetime:
    """Aware timestamps move to the user's timezone; naive ones are taken as local."""
    if now.tzinfo is None:
        return now
    try:
        tz = pytz.timezone(tz_name or default_tz)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"[PROACTIVE] Unknown timezone {tz_name!r}, using {default_tz}")
        tz = pytz.timezone(default_tz)
    return now.astimezone(tz)


def summarize_memory(rows: list[dict]) -> MemorySummary:
    """Fold user_memory rows into a MemorySummary."""
    peaks, triggers, topics, events = [], [], [], []
    time_preferences: dict = {}

    for row in rows:
        content_type = row.get("content_type")
        content = row.get("content")
        metadata = row.get("metadata") or {}
        if not content:
            continue

        if content_type == "productivity_peak":
            peaks.extend(part.strip() for part in str(content).split(",") if part.strip())
        elif content_type == "motivation_trigger":
            triggers.append(str(content))
        elif content_type == "frequent_topic":
            topics.append(str(content))
        elif content_type == "pattern":
            period = metadata.get("key")
            if period in TIME_PREFERENCE_PERIODS and period not in time_preferences:
                time_preferences[period] = str(content)
        elif content_type == "important_event":
            event_date = parse_date(metadata.get("date"))
            if event_date is None:
                continue
            events.append(ImportantEvent(
                date=event_date,
                event=str(content),
                category=metadata.get("category") or "",
            ))

    return MemorySummary(
        productivity_peaks=tuple(peaks),
        motivation_triggers=tuple(triggers),
        frequent_topics=tuple(topics),
        time_preferences=time_preferences,
        important_events=tuple(events),
    )


def parse_rows(name: str, rows: Iterable[Any], parse: Callable[[dict], Any]) -> list:
    """Parse each row, skipping (and logging) the ones that don't fit the model."""
    parsed = []
    for raw in rows:
        if not isinstance(raw, dict):
            continue
        try:
            parsed.append(parse(raw))
        except (ValueError, TypeError) as e:
            logger.warning(f"[PROACTIVE] Skipping malformed {name} {raw.get('id')!r}: {e}")
    return parsed


class ContextSnapshotBuilder:
    """Builds ContextSnapshots from Supabase collaborators."""

    def __init__(self, client: Any, config: Optional[EngineConfig] = None, schedule_store: Optional[ScheduleStore] = None):
        self.client = client
        self.config = config or EngineConfig()
        self.schedules = schedule_store or ScheduleStore(client)

    async def _bounded(self, name: str, fn: Callable, *args, default: Any = None) -> Any:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args),
                timeout=self.config.collaborator_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[PROACTIVE] {name} timed out after {self.config.collaborator_timeout_seconds}s")
        except Exception as e:
            logger.warning(f"[PROACTIVE] {name} unavailable: {e}")
        return default

    async def build(self, user_id: str, now: datetime) -> ContextSnapshot:
        config = self.config

        profile_raw = await self._bounded("profile", self.schedules.get_profile, user_id, default={})
        profile = UserProfile.from_dict(profile_raw)
        local_now = to_local(now, profile.timezone, config.default_timezone)
        today = local_now.date()
        yesterday = today - timedelta(days=1)

        entries = tuple(parse_rows("schedule", profile_raw.get("customGoals") or [], ScheduleEntry.from_dict))
        today_schedules = tuple(sorted(
            (e for e in entries if e.occurs_on(today)),
            key=lambda e: e.start_time or "99:99",
        ))
        yesterday_uncompleted = tuple(e for e in entries if e.occurs_on(yesterday) and not e.completed)

        goal_rows = await self._bounded("goals", self.schedules.get_goals, user_id, default=[])
        goals = tuple(g for g in parse_rows("goal", goal_rows, Goal.from_row) if not g.completed)

        memory_rows = await self._bounded("memory", self._read_memory, user_id, default=[])
        plan = await self._bounded("plan", self._read_plan, user_id, default=UserPlan())
        signal_rows = await self._bounded("signals", get_active_signals, self.client, user_id, now, default=[])
        activity = await self._build_activity(user_id, today)

        return ContextSnapshot(
            user_id=user_id,
            now=local_now,
            today_schedules=today_schedules,
            yesterday_uncompleted=yesterday_uncompleted,
            all_schedules=entries,
            goals=goals,
            memory=summarize_memory(memory_rows),
            recurring_patterns=tuple(extract_explicit_patterns(
                entries, config.max_recurring_days, config.daily_routine_keywords,
            )),
            recurring_candidates=tuple(detect_recurring_candidates(entries, config.min_recurring_occurrences)),
            signals=tuple(
                ContextSignal(type=s["type"], severity=s["severity"], message=s["message"])
                for s in signal_rows
            ),
            activity=activity,
            profile=profile,
            plan=plan,
        )

    # -------------------------------------------------------------------------
    # Collaborator reads (sync; run in a worker thread)
    # -------------------------------------------------------------------------

    def _read_plan(self, user_id: str) -> UserPlan:
        tier = get_user_tier(self.client, user_id)
        limits = get_limits_for_tier(tier)
        return UserPlan(plan=tier, proactive_daily_limit=limits.proactive_daily, features=limits.features)

    def _read_memory(self, user_id: str) -> list[dict]:
        result = (
            self.client.table("user_memory")
            .select("content_type, content, metadata")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(MEMORY_ROW_LIMIT)
            .execute()
        )
        return result.data or []

    def _select_since(self, table: str, columns: str, user_id: str, date_column: str, since: date) -> list[dict]:
        result = (
            self.client.table(table)
            .select(columns)
            .eq("user_id", user_id)
            .gte(date_column, since.isoformat())
            .execute()
        )
        return result.data or []

    def _read_latest(self, table: str, columns: str, user_id: str, date_column: str, before: Optional[date] = None) -> Optional[dict]:
        query = self.client.table(table).select(columns).eq("user_id", user_id)
        if before is not None:
            query = query.lt(date_column, before.isoformat())
        result = query.order(date_column, desc=True).limit(1).execute()
        return result.data[0] if result.data else None

    async def _build_activity(self, user_id: str, today: date) -> ActivitySummary:
        since = today - timedelta(days=ACTIVITY_LOOKBACK_DAYS)

        mood_rows = await self._bounded(
            "mood_logs", self._select_since, "mood_logs", "logged_on, mood, energy",
            user_id, "logged_on", since, default=[],
        )
        focus_rows = await self._bounded(
            "focus_sessions", self._select_since, "focus_sessions", "started_at",
            user_id, "started_at", since, default=[],
        )
        health_rows = await self._bounded(
            "health_data", self._select_since, "health_data", "date, sleep_hours",
            user_id, "date", since, default=[],
        )
        commit_rows = await self._bounded(
            "github_activity", self._select_since, "github_activity", "date, commit_count",
            user_id, "date", since, default=None,
        )
        learning = await self._bounded(
            "learning_progress", self._read_latest, "learning_progress", "topic, updated_at",
            user_id, "updated_at", default=None,
        )
        last_event = await self._bounded(
            "user_events", self._read_latest, "user_events", "created_at",
            user_id, "created_at", today, default=None,
        )

        mood_logs = []
        for row in mood_rows:
            logged = parse_date(row.get("logged_on"))
            if logged is None or row.get("mood") is None:
                continue
            mood_logs.append(MoodLog(date=logged, mood=float(row["mood"]), energy=float(row.get("energy") or 0)))

        focus_days = {parse_date(row.get("started_at")) for row in focus_rows}
        focus_days.discard(None)

        sleep_log = []
        for row in health_rows:
            night = parse_date(row.get("date"))
            if night is not None and row.get("sleep_hours") is not None:
                sleep_log.append((night, float(row["sleep_hours"])))

        commits_today = None
        commit_streak = 0
        if commit_rows is not None:
            by_day = {}
            for row in commit_rows:
                day = parse_date(row.get("date"))
                if day is not None:
                    by_day[day] = by_day.get(day, 0) + int(row.get("commit_count") or 0)
            if by_day:
                commits_today = by_day.get(today, 0)
                cursor = today - timedelta(days=1)
                while by_day.get(cursor, 0) > 0:
                    commit_streak += 1
                    cursor -= timedelta(days=1)

        return ActivitySummary(
            mood_logs=tuple(sorted(mood_logs, key=lambda log: log.date)),
            focus_days=tuple(sorted(focus_days)),
            sleep_log=tuple(sorted(sleep_log)),
            commits_today=commits_today,
            commit_streak=commit_streak,
            learning_topic=(learning or {}).get("topic"),
            learning_last_progress=parse_date((learning or {}).get("updated_at")),
            last_active=parse_date((last_event or {}).get("created_at")),
        )
