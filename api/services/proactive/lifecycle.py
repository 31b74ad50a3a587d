"""
Notification Lifecycle Store

Per-user lifecycle state lives in user_kv_store as key -> JSON value:

    dismissed_proactive_notifications   list[str]   permanent dismissals
    proactive_shown_{YYYY-MM-DD}        list[str]   types shown/snoozed that day
    proactive_shown_ids_{YYYY-MM-DD}    list[str]   ids shown that day
    proactive_count_{YYYY-MM-DD}        int         notifications shown that day
    dismiss_streak_{type}               {count, lastDate}

Records are created lazily on first write and never deleted. Writes are
read-then-upsert with no locking, so two concurrent evaluations of the same
user can lose a list append (last writer wins).

Read failures degrade to empty state. Write failures are logged and reported
as False so feedback callers can surface them.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

DISMISSED_KEY = "dismissed_proactive_notifications"


def shown_types_key(day: date) -> str:
    return f"proactive_shown_{day.isoformat()}"


def shown_ids_key(day: date) -> str:
    return f"proactive_shown_ids_{day.isoformat()}"


def count_key(day: date) -> str:
    return f"proactive_count_{day.isoformat()}"


def streak_key(notification_type: str) -> str:
    return f"dismiss_streak_{notification_type}"


# =============================================================================
# Key-value backends
# =============================================================================

class KeyValueStore:
    """Per-user JSON key-value storage."""

    async def get(self, user_id: str, key: str) -> Any:
        raise NotImplementedError

    async def set(self, user_id: str, key: str, value: Any) -> bool:
        raise NotImplementedError


class SupabaseKVStore(KeyValueStore):
    """user_kv_store table, upserted on (user_id, key)."""

    TABLE = "user_kv_store"

    def __init__(self, client):
        self.client = client

    async def get(self, user_id: str, key: str) -> Any:
        result = (
            self.client.table(self.TABLE)
            .select("value")
            .eq("user_id", user_id)
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return result.data[0].get("value")

    async def set(self, user_id: str, key: str, value: Any) -> bool:
        try:
            self.client.table(self.TABLE).upsert(
                {
                    "user_id": user_id,
                    "key": key,
                    "value": value,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                on_conflict="user_id,key",
            ).execute()
            return True
        except Exception as e:
            logger.error(f"[LIFECYCLE] Failed to write {key} for {user_id}: {e}")
            return False


class InMemoryKVStore(KeyValueStore):
    """Process-local backend, used by tests and local runs without Supabase."""

    def __init__(self):
        self._data: dict[tuple[str, str], Any] = {}

    async def get(self, user_id: str, key: str) -> Any:
        return copy.deepcopy(self._data.get((user_id, key)))

    async def set(self, user_id: str, key: str, value: Any) -> bool:
        self._data[(user_id, key)] = copy.deepcopy(value)
        return True


# =============================================================================
# Lifecycle state
# =============================================================================

@dataclass(frozen=True)
class DismissStreak:
    count: int = 0
    last_date: Optional[date] = None

    @classmethod
    def from_value(cls, value: Any) -> "DismissStreak":
        if not isinstance(value, dict):
            return cls()
        last = value.get("lastDate")
        try:
            last_date = date.fromisoformat(last[:10]) if last else None
        except (TypeError, ValueError):
            last_date = None
        return cls(count=int(value.get("count") or 0), last_date=last_date)

    def to_value(self) -> dict:
        return {
            "count": self.count,
            "lastDate": self.last_date.isoformat() if self.last_date else None,
        }


@dataclass(frozen=True)
class LifecycleState:
    """Everything the filter, escalation and quota stages read for one day."""
    day: date
    dismissed_ids: frozenset = frozenset()
    shown_types: frozenset = frozenset()
    shown_ids: frozenset = frozenset()
    shown_count: int = 0
    streaks: dict = field(default_factory=dict)   # type -> DismissStreak

    def streak(self, notification_type: str) -> DismissStreak:
        return self.streaks.get(notification_type) or DismissStreak()


class NotificationLifecycle:
    """Reads and updates per-user notification lifecycle records."""

    def __init__(self, store: KeyValueStore, suppression_window_days: int = 7):
        self.store = store
        self.suppression_window_days = suppression_window_days

    async def _read(self, user_id: str, key: str, default: Any) -> Any:
        try:
            value = await self.store.get(user_id, key)
        except Exception as e:
            logger.warning(f"[LIFECYCLE] Read failed for {key}, treating as empty: {e}")
            return default
        return default if value is None else value

    async def _read_list(self, user_id: str, key: str) -> list:
        value = await self._read(user_id, key, [])
        return list(value) if isinstance(value, list) else []

    async def load_state(self, user_id: str, day: date, types: Iterable[str] = ()) -> LifecycleState:
        dismissed = await self._read_list(user_id, DISMISSED_KEY)
        shown_types = await self._read_list(user_id, shown_types_key(day))
        shown_ids = await self._read_list(user_id, shown_ids_key(day))
        count = await self._read(user_id, count_key(day), 0)

        streaks = {}
        for notification_type in set(types):
            raw = await self._read(user_id, streak_key(notification_type), None)
            streaks[notification_type] = DismissStreak.from_value(raw)

        return LifecycleState(
            day=day,
            dismissed_ids=frozenset(dismissed),
            shown_types=frozenset(shown_types),
            shown_ids=frozenset(shown_ids),
            shown_count=int(count) if isinstance(count, (int, float)) else 0,
            streaks=streaks,
        )

    async def _write(self, user_id: str, key: str, value: Any) -> bool:
        try:
            return await self.store.set(user_id, key, value)
        except Exception as e:
            logger.error(f"[LIFECYCLE] Write failed for {key} ({user_id}): {e}")
            return False

    async def _append(self, user_id: str, key: str, item: str) -> bool:
        items = await self._read_list(user_id, key)
        if item in items:
            return True
        items.append(item)
        return await self._write(user_id, key, items)

    async def add_dismissed(self, user_id: str, notification_id: str) -> bool:
        return await self._append(user_id, DISMISSED_KEY, notification_id)

    async def add_shown_type(self, user_id: str, notification_type: str, day: date) -> bool:
        return await self._append(user_id, shown_types_key(day), notification_type)

    async def has_shown_id(self, user_id: str, notification_id: str, day: date) -> bool:
        return notification_id in await self._read_list(user_id, shown_ids_key(day))

    async def add_shown_id(self, user_id: str, notification_id: str, day: date) -> bool:
        return await self._append(user_id, shown_ids_key(day), notification_id)

    async def increment_count(self, user_id: str, day: date, by: int = 1) -> bool:
        count = await self._read(user_id, count_key(day), 0)
        current = int(count) if isinstance(count, (int, float)) else 0
        return await self._write(user_id, count_key(day), current + by)

    async def record_dismiss(self, user_id: str, notification_type: str, day: date) -> Optional[DismissStreak]:
        """
        Count one dismissal of a type.

        A dismissal after the suppression window has lapsed starts a new
        streak at 1 rather than adding to the stale count.
        """
        raw = await self._read(user_id, streak_key(notification_type), None)
        streak = DismissStreak.from_value(raw)

        if streak.last_date and (day - streak.last_date).days >= self.suppression_window_days:
            updated = DismissStreak(count=1, last_date=day)
        else:
            updated = DismissStreak(count=streak.count + 1, last_date=day)

        ok = await self._write(user_id, streak_key(notification_type), updated.to_value())
        return updated if ok else None

    async def reset_streak(self, user_id: str, notification_type: str) -> bool:
        return await self._write(user_id, streak_key(notification_type), DismissStreak().to_value())
