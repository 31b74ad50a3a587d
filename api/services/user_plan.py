"""
User Plan Service

Plan lookup for proactive notification quotas and feature gates.

Tier Structure:
- Free: 5 proactive notifications/day, rule-based suggestions
- Pro: 10/day, + risk alerts, smart briefing, mood patterns, health sync
- Max: unlimited, + GitHub sync

An inactive or expired subscription is treated as free. Lookup failures
fail soft to free so a plan outage never blocks notifications.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytz

logger = logging.getLogger(__name__)


@dataclass
class PlanLimits:
    """Proactive limits for a plan."""
    proactive_daily: int      # -1 for unlimited
    features: frozenset


BASE_FEATURES = frozenset({"proactive_suggestions"})
PRO_FEATURES = BASE_FEATURES | {"risk_alerts", "smart_briefing", "mood_patterns", "health_sync"}
MAX_FEATURES = PRO_FEATURES | {"github_sync", "jarvis_memory"}

TIER_LIMITS = {
    "free": PlanLimits(proactive_daily=5, features=BASE_FEATURES),
    "pro": PlanLimits(proactive_daily=10, features=PRO_FEATURES),
    "max": PlanLimits(proactive_daily=-1, features=MAX_FEATURES),
}


def _is_expired(expires_at: Optional[str]) -> bool:
    if not expires_at:
        return False
    try:
        expiry = datetime.fromisoformat(str(expires_at).replace("Z", "+00:00"))
    except ValueError:
        return False
    if expiry.tzinfo is None:
        expiry = pytz.UTC.localize(expiry)
    return expiry < datetime.now(pytz.UTC)


def get_user_tier(client, user_id: str) -> str:
    """
    Get user's plan from user_subscriptions.

    Returns 'free', 'pro', or 'max'.
    """
    try:
        result = (
            client.table("user_subscriptions")
            .select("plan, is_active, expires_at")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return "free"

        row = result.data[0]
        plan = row.get("plan", "free")
        if plan not in TIER_LIMITS:
            return "free"
        if row.get("is_active") is False or _is_expired(row.get("expires_at")):
            return "free"
        return plan

    except Exception as e:
        logger.warning(f"[PLAN] Tier lookup failed for {user_id}, defaulting to free: {e}")
        return "free"


def get_limits_for_tier(tier: str) -> PlanLimits:
    return TIER_LIMITS.get(tier, TIER_LIMITS["free"])
