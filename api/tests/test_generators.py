"""
Candidate Generator Tests

Tests individual generators against hand-built ContextSnapshots, plus the
registry's plan gating and per-generator failure isolation.

Run: cd api && python -m pytest tests/test_generators.py -v
"""

import asyncio
import os
import sys
from datetime import date, datetime

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.proactive.config import EngineConfig
from services.proactive.copywriter import CopyParseError, NotificationCopy
from services.proactive.generators import Generator, run_generators
from services.proactive.generators.lifestyle import lifestyle
from services.proactive.generators.memory import memory_surfacing
from services.proactive.generators.recurring import recurring_conversion, skipped_patterns
from services.proactive.generators.schedule import goal_nudge, morning_briefing, schedule_prep, upcoming_reminders
from services.proactive.generators.signals import fusion_alerts
from services.proactive.generators.wellbeing import burnout_warning, schedule_overload
from services.proactive.models import (
    ContextSignal,
    ContextSnapshot,
    Goal,
    ImportantEvent,
    MemorySummary,
    MoodLog,
    ActivitySummary,
    Notification,
    RecurringCandidate,
    ScheduleEntry,
    UserPlan,
)
from services.proactive.patterns import detect_recurring_candidates

CONFIG = EngineConfig()


def snapshot_at(now, **kwargs):
    return ContextSnapshot(user_id="u1", now=now, **kwargs)


# =============================================================================
# Schedule reminders
# =============================================================================

def test_reminder_exact_minute():
    """14:00 schedule: reminder at 13:50 only."""
    entry = ScheduleEntry(id="s1", text="Gym", start_time="14:00", days_of_week=(1,))

    at_1350 = upcoming_reminders(snapshot_at(datetime(2026, 10, 19, 13, 50), today_schedules=(entry,)), CONFIG)
    assert len(at_1350) == 1
    reminder = at_1350[0]
    assert reminder.priority == "high"
    assert "s1" in reminder.id
    assert reminder.expires_at == datetime(2026, 10, 19, 14, 0)

    for minute in (49, 51):
        snap = snapshot_at(datetime(2026, 10, 19, 13, minute), today_schedules=(entry,))
        assert upcoming_reminders(snap, CONFIG) == []
    print("✅ reminder_exact_minute: PASSED")


def test_reminder_twenty_minutes_only_for_important():
    meeting = ScheduleEntry(id="m1", text="Team meeting", start_time="14:00")
    gym = ScheduleEntry(id="g1", text="Gym", start_time="14:00")
    snap = snapshot_at(datetime(2026, 10, 19, 13, 40), today_schedules=(meeting, gym))

    reminders = upcoming_reminders(snap, CONFIG)
    assert [r.id for r in reminders] == ["schedule-20min-m1-2026-10-19"]
    assert reminders[0].priority == "medium"
    print("✅ reminder_twenty_minutes_only_for_important: PASSED")


def test_reminder_tolerance_widens_match():
    entry = ScheduleEntry(id="s1", text="Gym", start_time="14:00")
    snap = snapshot_at(datetime(2026, 10, 19, 13, 49), today_schedules=(entry,))
    assert len(upcoming_reminders(snap, EngineConfig(reminder_tolerance_minutes=1))) == 1
    print("✅ reminder_tolerance_widens_match: PASSED")


def test_completed_schedule_not_reminded():
    entry = ScheduleEntry(id="s1", text="Gym", start_time="14:00", completed=True)
    snap = snapshot_at(datetime(2026, 10, 19, 13, 50), today_schedules=(entry,))
    assert upcoming_reminders(snap, CONFIG) == []
    print("✅ completed_schedule_not_reminded: PASSED")


# =============================================================================
# Schedule prep (AI copy)
# =============================================================================

class FakeCopywriter:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    async def schedule_prep(self, schedule_text, start_time, minutes_until, topics=(), motivators=()):
        self.hints = (tuple(topics), tuple(motivators))
        if self.error:
            raise self.error
        return self.result


def _prep_snapshot():
    entry = ScheduleEntry(id="c1", text="Client presentation", start_time="14:00")
    memory = MemorySummary(frequent_topics=("design reviews",), motivation_triggers=("deadlines",))
    return snapshot_at(datetime(2026, 10, 19, 11, 30), today_schedules=(entry,), memory=memory)


def test_schedule_prep_uses_copy():
    copywriter = FakeCopywriter(NotificationCopy("Prep time", "Print the deck", ("Slides", "Laptop")))
    [prep] = asyncio.run(schedule_prep(_prep_snapshot(), CONFIG, copywriter))

    assert prep.id == "schedule-prep-c1-2026-10-19"
    assert prep.title == "Prep time"
    assert prep.action_payload["checklist"] == ["Slides", "Laptop"]
    assert copywriter.hints == (("design reviews",), ("deadlines",))
    print("✅ schedule_prep_uses_copy: PASSED")


def test_schedule_prep_drops_malformed_copy():
    copywriter = FakeCopywriter(error=CopyParseError("not JSON"))
    assert asyncio.run(schedule_prep(_prep_snapshot(), CONFIG, copywriter)) == []
    print("✅ schedule_prep_drops_malformed_copy: PASSED")


def test_schedule_prep_falls_back_when_copywriter_down():
    copywriter = FakeCopywriter(error=RuntimeError("API down"))
    [prep] = asyncio.run(schedule_prep(_prep_snapshot(), CONFIG, copywriter))
    assert "Client presentation" in prep.message
    assert prep.action_payload["checklist"] == []
    print("✅ schedule_prep_falls_back_when_copywriter_down: PASSED")


# =============================================================================
# Briefing, goals
# =============================================================================

def test_morning_briefing_and_uncompleted():
    schedules = (
        ScheduleEntry(id="a", text="Doctor appointment", start_time="10:00"),
        ScheduleEntry(id="b", text="Groceries", start_time="17:00"),
    )
    leftover = (ScheduleEntry(id="y1", text="Laundry", specific_date=date(2026, 10, 18)),)

    morning = morning_briefing(
        snapshot_at(datetime(2026, 10, 19, 8, 0), today_schedules=schedules, yesterday_uncompleted=leftover),
        CONFIG,
    )
    assert [(n.type, n.priority) for n in morning] == [("morning_briefing", "high"), ("urgent_alert", "medium")]

    afternoon = morning_briefing(
        snapshot_at(datetime(2026, 10, 19, 15, 0), today_schedules=schedules, yesterday_uncompleted=leftover),
        CONFIG,
    )
    assert [(n.id, n.priority) for n in afternoon] == [("uncompleted-pm-2026-10-19", "low")]
    print("✅ morning_briefing_and_uncompleted: PASSED")


def test_goal_nudge_picks_oldest_stale_goal():
    goals = (
        Goal(id="g-new", text="New", created_at=datetime(2026, 10, 18)),
        Goal(id="g-mid", text="Mid", created_at=datetime(2026, 10, 10)),
        Goal(id="g-old", text="Old", created_at=datetime(2026, 9, 1)),
    )
    [nudge] = goal_nudge(snapshot_at(datetime(2026, 10, 19, 10, 0), goals=goals), CONFIG)
    assert nudge.id == "goal-nudge-g-old-2026-10-19"
    assert nudge.priority == "low"
    print("✅ goal_nudge_picks_oldest_stale_goal: PASSED")


# =============================================================================
# Recurring
# =============================================================================

def test_recurring_conversion_payload():
    candidate = RecurringCandidate(
        normalized_text="bookclub",
        text="Book club",
        day_of_week=1,
        start_time="19:10",
        schedule_ids=("s1", "s2"),
        occurrences=2,
    )
    [n] = recurring_conversion(snapshot_at(datetime(2026, 10, 19, 10, 0), recurring_candidates=(candidate,)), CONFIG)

    assert n.id == "recurring-suggest-bookclub-1-1900"
    assert n.action_type == "convert_to_recurring"
    assert n.action_payload["scheduleIds"] == ["s1", "s2"]
    assert n.action_payload["dayOfWeek"] == 1
    assert "Monday" in n.message
    print("✅ recurring_conversion_payload: PASSED")


def test_recurring_conversion_ids_per_time_bucket():
    """Same text and weekday in two buckets -> two suggestions with distinct ids."""
    entries = (
        ScheduleEntry(id="a1", text="Gym", start_time="07:00", specific_date=date(2026, 10, 5)),
        ScheduleEntry(id="b1", text="Gym", start_time="19:00", specific_date=date(2026, 10, 5)),
        ScheduleEntry(id="a2", text="Gym", start_time="07:10", specific_date=date(2026, 10, 12)),
        ScheduleEntry(id="b2", text="Gym", start_time="19:00", specific_date=date(2026, 10, 12)),
    )
    candidates = tuple(detect_recurring_candidates(entries))
    assert len(candidates) == 2

    morning, evening = recurring_conversion(snapshot_at(datetime(2026, 10, 19, 10, 0), recurring_candidates=candidates), CONFIG)
    assert morning.id == "recurring-suggest-gym-1-0700"
    assert evening.id == "recurring-suggest-gym-1-1900"
    assert morning.action_payload["scheduleIds"] == ["a1", "a2"]
    assert evening.action_payload["scheduleIds"] == ["b1", "b2"]
    print("✅ recurring_conversion_ids_per_time_bucket: PASSED")


def test_skipped_patterns():
    habit = ScheduleEntry(id="r1", text="Guitar practice", start_time="19:00", days_of_week=(1,))
    history = (
        ScheduleEntry(id="d1", text="Guitar practice", specific_date=date(2026, 9, 28)),
        ScheduleEntry(id="d2", text="Guitar practice", specific_date=date(2026, 10, 5), skipped=True),
        ScheduleEntry(id="d3", text="Guitar practice", specific_date=date(2026, 10, 12), completed=True),
    )
    snap = snapshot_at(datetime(2026, 10, 19, 8, 0), all_schedules=(habit,) + history)

    [n] = skipped_patterns(snap, CONFIG)
    assert n.type == "pattern_reminder"
    assert n.action_payload["skippedCount"] == 2
    assert n.action_payload["total"] == 3

    all_done = tuple(
        ScheduleEntry(id=e.id, text=e.text, specific_date=e.specific_date, completed=True) for e in history
    )
    assert skipped_patterns(snapshot_at(snap.now, all_schedules=(habit,) + all_done), CONFIG) == []
    print("✅ skipped_patterns: PASSED")


# =============================================================================
# Lifestyle
# =============================================================================

def test_lifestyle_holiday_week_ahead():
    """A week before Chuseok 2026 (Thu Sep 24) yields the D-7 notice."""
    notifications = lifestyle(snapshot_at(datetime(2026, 9, 17, 10, 0)), CONFIG)
    assert [n.id for n in notifications] == ["lifestyle-7d-20260924"]
    assert notifications[0].priority == "low"

    assert lifestyle(snapshot_at(datetime(2026, 9, 17, 7, 0)), CONFIG) == []
    print("✅ lifestyle_holiday_week_ahead: PASSED")


def test_lifestyle_friday_weekend():
    notifications = lifestyle(snapshot_at(datetime(2026, 10, 23, 9, 0)), CONFIG)
    assert [n.id for n in notifications] == ["lifestyle-weekend-20261024"]
    print("✅ lifestyle_friday_weekend: PASSED")


def test_lifestyle_anniversary_escalates():
    memory = MemorySummary(important_events=(
        ImportantEvent(date=date(2026, 10, 21), event="Wedding anniversary", category="anniversary"),
    ))
    [n] = lifestyle(snapshot_at(datetime(2026, 10, 19, 9, 0), memory=memory), CONFIG)
    assert n.id.startswith("lifestyle-anniv-2d-")
    assert n.priority == "medium"
    print("✅ lifestyle_anniversary_escalates: PASSED")


# =============================================================================
# Memory, signals, wellbeing
# =============================================================================

def test_memory_surfacing_follow_up():
    past = ScheduleEntry(id="d1", text="Job interview", specific_date=date(2026, 10, 16))
    [n] = memory_surfacing(snapshot_at(datetime(2026, 10, 19, 9, 0), all_schedules=(past,)), CONFIG)
    assert n.id == "memory-surface-d1-2026-10-19"
    assert "interview" in n.message
    assert n.action_payload["daysAgo"] == 3
    print("✅ memory_surfacing_follow_up: PASSED")


def test_fusion_alerts_severity():
    signals = (
        ContextSignal(type="weather", severity="critical", message="Storm during your hike"),
        ContextSignal(type="conflict", severity="warning", message="Two meetings overlap"),
        ContextSignal(type="tip", severity="info", message="Nice day"),
    )
    notifications = fusion_alerts(snapshot_at(datetime(2026, 10, 19, 9, 0), signals=signals), CONFIG)
    assert [n.priority for n in notifications] == ["high", "medium"]
    print("✅ fusion_alerts_severity: PASSED")


def test_burnout_warning():
    logs = tuple(MoodLog(date=date(2026, 10, d), mood=2, energy=1) for d in (17, 18, 19))
    snap = snapshot_at(datetime(2026, 10, 19, 9, 0), activity=ActivitySummary(mood_logs=logs))
    [n] = burnout_warning(snap, CONFIG)
    assert n.priority == "high"

    two_days = ActivitySummary(mood_logs=logs[1:])
    assert burnout_warning(snapshot_at(snap.now, activity=two_days), CONFIG) == []
    print("✅ burnout_warning: PASSED")


def test_schedule_overload_by_free_time():
    busy = (
        ScheduleEntry(id="a", text="Work block", start_time="09:00", end_time="14:00"),
        ScheduleEntry(id="b", text="Workshop", start_time="13:00", end_time="21:00"),
    )
    [n] = schedule_overload(snapshot_at(datetime(2026, 10, 19, 8, 0), today_schedules=busy), CONFIG)
    assert n.action_payload["freeHours"] == 1.0

    light = (ScheduleEntry(id="a", text="Work block", start_time="09:00", end_time="12:00"),)
    assert schedule_overload(snapshot_at(datetime(2026, 10, 19, 8, 0), today_schedules=light), CONFIG) == []
    print("✅ schedule_overload_by_free_time: PASSED")


# =============================================================================
# Registry
# =============================================================================

def test_run_generators_gates_and_isolates():
    def boom(snapshot, config):
        raise RuntimeError("generator bug")

    def ok(snapshot, config):
        return [Notification(id="ok-1", type="energy_boost", priority="low", title="t", message="m")]

    def gated(snapshot, config):
        return [Notification(id="gated-1", type="schedule_overload", priority="medium", title="t", message="m")]

    registry = (
        Generator("boom", boom),
        Generator("ok", ok),
        Generator("gated", gated, feature="risk_alerts"),
    )

    free = snapshot_at(datetime(2026, 10, 19, 9, 0), plan=UserPlan("free", 5, frozenset({"proactive_suggestions"})))
    produced = asyncio.run(run_generators(free, CONFIG, generators=registry))
    assert [n.id for n in produced] == ["ok-1"]

    pro = snapshot_at(free.now, plan=UserPlan("pro", 10, frozenset({"proactive_suggestions", "risk_alerts"})))
    produced = asyncio.run(run_generators(pro, CONFIG, generators=registry))
    assert [n.id for n in produced] == ["ok-1", "gated-1"]
    print("✅ run_generators_gates_and_isolates: PASSED")
