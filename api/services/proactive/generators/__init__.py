"""
Candidate Generator Bank

Fixed, ordered registry of generators. Each one maps a ContextSnapshot to a
list of Notification candidates and knows nothing about lifecycle state.

Generators are isolated: one raising is logged and skipped, siblings still
run. A generator with a feature only runs when the snapshot's plan has it.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..config import EngineConfig
from ..models import ContextSnapshot, Notification
from . import lifestyle, memory, recurring, schedule, signals, wellbeing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Generator:
    name: str
    fn: Callable
    feature: Optional[str] = None   # plan feature required to run
    is_async: bool = False           # async fn(snapshot, config, copywriter)


GENERATORS: tuple[Generator, ...] = (
    Generator("upcoming_reminders", schedule.upcoming_reminders),
    Generator("schedule_prep", schedule.schedule_prep, is_async=True),
    Generator("morning_briefing", schedule.morning_briefing),
    Generator("evening", schedule.evening),
    Generator("goal_nudge", schedule.goal_nudge),
    Generator("memory_based", memory.memory_based),
    Generator("memory_surfacing", memory.memory_surfacing),
    Generator("recurring_conversion", recurring.recurring_conversion),
    Generator("lifestyle", lifestyle.lifestyle),
    Generator("skipped_patterns", recurring.skipped_patterns),
    Generator("fusion_alerts", signals.fusion_alerts),
    Generator("mood_checkin", wellbeing.mood_checkin, feature="proactive_suggestions"),
    Generator("burnout_warning", wellbeing.burnout_warning, feature="mood_patterns"),
    Generator("focus_streak", wellbeing.focus_streak, feature="proactive_suggestions"),
    Generator("health_insight", wellbeing.health_insight, feature="health_sync"),
    Generator("commit_streak", wellbeing.commit_streak, feature="github_sync"),
    Generator("schedule_overload", wellbeing.schedule_overload, feature="risk_alerts"),
    Generator("weekly_deadline", wellbeing.weekly_deadline, feature="risk_alerts"),
    Generator("routine_break", wellbeing.routine_break, feature="risk_alerts"),
    Generator("inactive_return", wellbeing.inactive_return, feature="proactive_suggestions"),
    Generator("learning_reminder", wellbeing.learning_reminder, feature="proactive_suggestions"),
    Generator("energy_boost", wellbeing.energy_boost, feature="proactive_suggestions"),
    Generator("daily_wrap", wellbeing.daily_wrap, feature="smart_briefing"),
    Generator("weekly_review", wellbeing.weekly_review, feature="smart_briefing"),
)


async def run_generators(
    snapshot: ContextSnapshot,
    config: EngineConfig,
    copywriter=None,
    generators: tuple[Generator, ...] = GENERATORS,
) -> list[Notification]:
    """Run every enabled generator in registry order and concatenate output."""
    candidates: list[Notification] = []
    for gen in generators:
        if not snapshot.plan.has(gen.feature):
            continue
        try:
            if gen.is_async:
                produced = await gen.fn(snapshot, config, copywriter)
            else:
                produced = gen.fn(snapshot, config)
        except Exception as e:
            logger.warning(f"[PROACTIVE] Generator {gen.name} failed for {snapshot.user_id}, skipping: {e}")
            continue
        candidates.extend(produced)
    return candidates
