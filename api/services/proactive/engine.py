"""
Proactive Engine

evaluate():
    Snapshot Builder -> Generator Bank -> Dedup/Expiry Filter
    -> Escalation -> Quota & Priority Scheduler -> caller

evaluate() is read-only: it never writes lifecycle state, so repeated polls
at the same instant return the same list. Callers report what happened
through dismiss / dismiss_today / mark_shown / accept.

Feedback methods return False when a lifecycle write failed.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

import pytz

from services.activity_log import write_activity
from services.schedules import ScheduleStore

from .config import EngineConfig
from .context import ContextSnapshotBuilder, to_local
from .copywriter import Copywriter
from .escalation import escalate
from .filters import filter_candidates
from .generators import run_generators
from .lifecycle import NotificationLifecycle, SupabaseKVStore
from .models import ContextSnapshot, Notification, NotificationKind, UserProfile, kind_of
from .quota import schedule

logger = logging.getLogger(__name__)


@dataclass
class Evaluation:
    """evaluate() output plus the snapshot it was computed from."""
    notifications: list[Notification]
    snapshot: ContextSnapshot
    candidate_count: int = 0

    def context_summary(self) -> dict:
        return {
            "todaySchedulesCount": len(self.snapshot.today_schedules),
            "uncompletedCount": len(self.snapshot.yesterday_uncompleted),
            "plan": self.snapshot.plan.plan,
        }


class ProactiveEngine:
    """Decides which proactive notifications a user sees right now."""

    def __init__(
        self,
        lifecycle: NotificationLifecycle,
        builder,
        schedule_store=None,
        copywriter=None,
        config: Optional[EngineConfig] = None,
        activity_client: Any = None,
    ):
        self.lifecycle = lifecycle
        self.builder = builder
        self.schedule_store = schedule_store
        self.copywriter = copywriter
        self.config = config or EngineConfig()
        self.activity_client = activity_client

    # -------------------------------------------------------------------------
    # Query
    # -------------------------------------------------------------------------

    async def evaluate_detailed(self, user_id: str, now: datetime) -> Evaluation:
        snapshot = await self.builder.build(user_id, now)
        candidates = await run_generators(snapshot, self.config, self.copywriter)

        state = await self.lifecycle.load_state(user_id, snapshot.today, {c.type for c in candidates})
        survivors = filter_candidates(candidates, state, snapshot.now)
        survivors = escalate(survivors, state, self.config)
        selected = schedule(
            survivors,
            daily_limit=snapshot.plan.proactive_daily_limit,
            shown_count=state.shown_count,
            max_per_call=self.config.max_per_call,
        )

        logger.info(
            f"[PROACTIVE] {user_id}: {len(candidates)} candidates -> {len(survivors)} eligible "
            f"-> {len(selected)} returned (shown today: {state.shown_count})"
        )
        return Evaluation(notifications=selected, snapshot=snapshot, candidate_count=len(candidates))

    async def evaluate(self, user_id: str, now: datetime) -> list[Notification]:
        return (await self.evaluate_detailed(user_id, now)).notifications

    # -------------------------------------------------------------------------
    # Feedback
    # -------------------------------------------------------------------------

    async def _user_timezone(self, user_id: str) -> Optional[str]:
        if self.schedule_store is None:
            return None
        try:
            profile = await asyncio.wait_for(
                asyncio.to_thread(self.schedule_store.get_profile, user_id),
                timeout=self.config.collaborator_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[PROACTIVE] profile timed out for {user_id}, using {self.config.default_timezone}")
            return None
        except Exception as e:
            logger.warning(f"[PROACTIVE] profile unavailable for {user_id}: {e}")
            return None
        return UserProfile.from_dict(profile or {}).timezone

    async def _local_day(self, user_id: str, now: Optional[datetime]) -> date:
        """The user's local day, resolved the same way evaluate() resolves it."""
        if now is None:
            now = datetime.now(pytz.UTC)
        tz_name = await self._user_timezone(user_id) if now.tzinfo is not None else None
        return to_local(now, tz_name, self.config.default_timezone).date()

    async def dismiss(
        self,
        user_id: str,
        notification_id: str,
        notification_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """Permanently hide one notification and count a dismissal of its type."""
        ok = await self.lifecycle.add_dismissed(user_id, notification_id)
        if notification_type:
            day = await self._local_day(user_id, now)
            streak = await self.lifecycle.record_dismiss(user_id, notification_type, day)
            if streak is None:
                ok = False
            else:
                logger.info(f"[PROACTIVE] {user_id} dismissed {notification_type} (streak {streak.count})")
        return ok

    async def dismiss_today(self, user_id: str, notification_type: str, now: Optional[datetime] = None) -> bool:
        """Snooze a whole type for the rest of the local day."""
        return await self.lifecycle.add_shown_type(user_id, notification_type, await self._local_day(user_id, now))

    async def mark_shown(
        self,
        user_id: str,
        notification_id: str,
        notification_type: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """Record a display. Idempotent per notification id and day."""
        day = await self._local_day(user_id, now)
        if await self.lifecycle.has_shown_id(user_id, notification_id, day):
            return True

        ok = await self.lifecycle.add_shown_id(user_id, notification_id, day)
        if kind_of(notification_type) is NotificationKind.SINGLETON:
            ok = await self.lifecycle.add_shown_type(user_id, notification_type, day) and ok
        ok = await self.lifecycle.increment_count(user_id, day) and ok
        return ok

    async def accept(
        self,
        user_id: str,
        notification_id: str,
        notification_type: Optional[str] = None,
        action_type: Optional[str] = None,
        action_payload: Optional[dict] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        The user acted on a notification: reset the type's dismiss streak and
        retire the id. convert_to_recurring* actions also rewrite schedules;
        if that fails nothing is recorded, so the suggestion can be accepted again.
        """
        if action_type and action_type.startswith("convert_to_recurring") and action_payload:
            if not await self._convert_to_recurring(user_id, action_payload):
                return False

        ok = True
        if notification_type:
            ok = await self.lifecycle.reset_streak(user_id, notification_type)
        ok = await self.lifecycle.add_dismissed(user_id, notification_id) and ok

        if self.activity_client is not None:
            await write_activity(
                self.activity_client,
                user_id,
                "proactive_accepted",
                f"Accepted {notification_type or 'notification'}",
                event_ref=notification_id,
                metadata={"actionType": action_type},
            )
        return ok

    async def _convert_to_recurring(self, user_id: str, payload: dict) -> bool:
        if self.schedule_store is None:
            logger.warning("[PROACTIVE] No schedule store configured, skipping conversion")
            return False
        try:
            entry = self.schedule_store.convert_to_recurring(
                user_id,
                text=payload.get("text", ""),
                day_of_week=int(payload.get("dayOfWeek", 0)),
                start_time=payload.get("startTime"),
                schedule_ids=list(payload.get("scheduleIds") or []),
                color=payload.get("color"),
            )
        except Exception as e:
            logger.error(f"[PROACTIVE] convert_to_recurring failed for {user_id}: {e}")
            return False

        if entry is None:
            return False
        if self.activity_client is not None:
            await write_activity(
                self.activity_client,
                user_id,
                "schedule_converted",
                f"Made \"{entry['text']}\" weekly",
                event_ref=entry["id"],
                metadata={"removed": list(payload.get("scheduleIds") or [])},
            )
        return True


def build_engine(client: Any, config: Optional[EngineConfig] = None) -> ProactiveEngine:
    """Wire a Supabase-backed engine. AI copy is enabled when ANTHROPIC_API_KEY is set."""
    config = config or EngineConfig.from_env()
    store = ScheduleStore(client)
    return ProactiveEngine(
        lifecycle=NotificationLifecycle(SupabaseKVStore(client), config.suppression_window_days),
        builder=ContextSnapshotBuilder(client, config, store),
        schedule_store=store,
        copywriter=Copywriter() if os.environ.get("ANTHROPIC_API_KEY") else None,
        config=config,
        activity_client=client,
    )
