"""
Schedule & Goal Store

Schedules are stored by the client app inside users.profile.customGoals as a
JSON list (one-off entries carry specificDate, recurring ones daysOfWeek).
Longer-lived goals live in user_goals.

Reads raise on failure; the context builder decides how to degrade.
"""

import logging
import time
import uuid
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ScheduleStore:
    """Supabase-backed schedule and goal collaborator."""

    def __init__(self, client: Any):
        self.client = client

    def get_profile(self, user_id: str) -> dict:
        result = (
            self.client.table("users")
            .select("profile")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return {}
        return result.data[0].get("profile") or {}

    def get_goals(self, user_id: str) -> list[dict]:
        result = (
            self.client.table("user_goals")
            .select("id, title, created_at, completed, progress, deadline, type")
            .eq("user_id", user_id)
            .eq("completed", False)
            .order("created_at")
            .execute()
        )
        return result.data or []

    def convert_to_recurring(
        self,
        user_id: str,
        text: str,
        day_of_week: int,
        start_time: str,
        schedule_ids: list[str],
        color: Optional[str] = None,
    ) -> Optional[dict]:
        """
        Replace the listed one-off entries with one weekly recurring entry.

        Returns the new entry, or None if the user has no profile.
        """
        result = (
            self.client.table("users")
            .select("profile")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            logger.warning(f"[SCHEDULES] No profile for {user_id}, cannot convert")
            return None

        profile = result.data[0].get("profile") or {}
        remove = set(schedule_ids or [])
        kept = [g for g in (profile.get("customGoals") or []) if g.get("id") not in remove]

        entry = {
            "id": f"recurring_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}",
            "text": text,
            "startTime": start_time,
            "daysOfWeek": [day_of_week],
            "completed": False,
        }
        if color:
            entry["color"] = color
        kept.append(entry)

        self.client.table("users").update(
            {"profile": {**profile, "customGoals": kept}}
        ).eq("id", user_id).execute()

        logger.info(
            f"[SCHEDULES] Converted \"{text}\" to recurring (day {day_of_week}), "
            f"removed {len(remove)} one-off entries"
        )
        return entry
