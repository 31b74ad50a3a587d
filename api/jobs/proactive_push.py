"""
Proactive Push Job

Pushes proactive notifications to users who don't have the app open.

Run every 5 minutes via Render cron:
  schedule: "*/5 * * * *"
  command: cd api && python -m jobs.proactive_push

Only acts inside push slots matched by PROACTIVE_PUSH_CRON in local time
(default: first five minutes of 07, 09, ..., 21). Users are swept in small
concurrent batches with a pause between batches; one user failing never
stops the sweep.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import pytz
from croniter import croniter
from dotenv import load_dotenv

from services.activity_log import write_activity
from services.notifications import record_delivered, send_push_notification
from services.proactive.config import EngineConfig
from services.proactive.engine import ProactiveEngine, build_engine

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PUSH_CRON = os.environ.get("PROACTIVE_PUSH_CRON", "0-4 7-21/2 * * *")
PUSH_BATCH_SIZE = int(os.environ.get("PROACTIVE_PUSH_BATCH_SIZE", "3"))
PUSH_BATCH_PAUSE_SECONDS = float(os.environ.get("PROACTIVE_PUSH_BATCH_PAUSE_SECONDS", "1.0"))
PUSH_MAX_PER_RUN = 3


@dataclass
class PushRunStats:
    processed: int = 0
    pushed: int = 0
    skipped: int = 0
    errors: int = 0


def is_push_slot(now: datetime, tz_name: str, cron_expr: str = PUSH_CRON) -> bool:
    """True if now (converted to tz_name) falls on a minute the cron expression matches."""
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(tz).replace(second=0, microsecond=0)
    return croniter.match(cron_expr, local)


async def push_for_user(
    engine: ProactiveEngine,
    db_client,
    user_id: str,
    now: datetime,
    max_pushes: int = PUSH_MAX_PER_RUN,
) -> int:
    """
    Evaluate one user and push the top notifications.

    Only notifications Expo accepted are recorded and marked shown, so a
    failed push is retried on the next slot.

    Returns:
        Number of notifications pushed
    """
    notifications = await engine.evaluate(user_id, now)
    pushed = 0
    for notification in notifications[:max_pushes]:
        result = await send_push_notification(db_client, user_id, notification)
        if result.status != "sent":
            logger.info(f"[PUSH] {user_id}: {notification.id} not delivered ({result.error})")
            continue

        record_delivered(db_client, user_id, notification)
        await engine.mark_shown(user_id, notification.id, notification.type, now)
        await write_activity(
            db_client,
            user_id,
            "proactive_pushed",
            f"Pushed {notification.type}: {notification.title}",
            event_ref=notification.id,
        )
        pushed += 1
    return pushed


async def _safe_push(engine, db_client, user_id: str, now: datetime) -> Optional[int]:
    try:
        return await push_for_user(engine, db_client, user_id, now)
    except Exception as e:
        logger.error(f"[PUSH] Failed for user {user_id}: {e}")
        return None


async def run_push_batches(
    engine: ProactiveEngine,
    db_client,
    user_ids: list[str],
    now: datetime,
    batch_size: int = PUSH_BATCH_SIZE,
    pause_seconds: float = PUSH_BATCH_PAUSE_SECONDS,
) -> PushRunStats:
    stats = PushRunStats()
    batch_size = max(1, batch_size)

    for start in range(0, len(user_ids), batch_size):
        batch = user_ids[start:start + batch_size]
        results = await asyncio.gather(*(_safe_push(engine, db_client, uid, now) for uid in batch))

        for result in results:
            stats.processed += 1
            if result is None:
                stats.errors += 1
            elif result == 0:
                stats.skipped += 1
            else:
                stats.pushed += result

        if start + batch_size < len(user_ids) and pause_seconds > 0:
            await asyncio.sleep(pause_seconds)

    return stats


async def run_proactive_push(now: Optional[datetime] = None) -> Optional[PushRunStats]:
    """
    Main job entry point.

    Called by Render cron every 5 minutes; exits early outside push slots.
    """
    from supabase import create_client

    now = now or datetime.now(timezone.utc)
    config = EngineConfig.from_env()

    if not is_push_slot(now, config.default_timezone):
        logger.info(f"[PUSH] {now.isoformat()} is outside push slots, skipping")
        return None

    supabase_url = os.environ.get("SUPABASE_URL")
    supabase_key = os.environ.get("SUPABASE_SERVICE_KEY")
    if not supabase_url or not supabase_key:
        logger.error("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
        return None

    supabase = create_client(supabase_url, supabase_key)
    engine = build_engine(supabase, config)

    users = supabase.table("users").select("id").execute()
    user_ids = [row["id"] for row in (users.data or []) if row.get("id")]
    logger.info(f"[PUSH] Starting sweep of {len(user_ids)} user(s)")

    stats = await run_push_batches(engine, supabase, user_ids, now)
    logger.info(
        f"[PUSH] Done: processed={stats.processed} pushed={stats.pushed} "
        f"skipped={stats.skipped} errors={stats.errors}"
    )
    return stats


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(run_proactive_push())
