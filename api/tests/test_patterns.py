"""
Recurring Pattern Miner Tests

Tests text normalization, 30-minute bucketing, explicit weekly patterns and
implicit recurring candidates mined from repeated one-off entries.

Run: cd api && python -m pytest tests/test_patterns.py -v
"""

import os
import sys
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.proactive.models import ScheduleEntry
from services.proactive.patterns import (
    detect_recurring_candidates,
    extract_explicit_patterns,
    normalize_text,
    time_bucket,
)


def one_off(entry_id, text, day, start, **kwargs):
    return ScheduleEntry(id=entry_id, text=text, start_time=start, specific_date=day, **kwargs)


def test_normalize_and_bucket():
    assert normalize_text("  Book  Club ") == "bookclub"
    assert normalize_text("") == ""
    assert time_bucket("14:05") == "14:00"
    assert time_bucket("14:40") == "14:30"
    assert time_bucket("9:30") == "09:30"
    assert time_bucket("not a time") == ""
    print("✅ normalize_and_bucket: PASSED")


def test_book_club_two_mondays():
    """Two Mondays in the same half hour become one candidate."""
    entries = [
        one_off("s1", "Book club", date(2026, 10, 5), "19:00", color="#ff0"),
        one_off("s2", "Book club", date(2026, 10, 12), "19:10"),
    ]
    candidates = detect_recurring_candidates(entries)

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.occurrences == 2
    assert candidate.day_of_week == 1          # Monday, Sunday-based
    assert candidate.normalized_text == "bookclub"
    assert candidate.schedule_ids == ("s1", "s2")
    assert candidate.start_time == "19:10"     # most recent entry's time
    assert candidate.color == "#ff0"
    print("✅ book_club_two_mondays: PASSED")


def test_third_entry_updates_occurrences():
    entries = [
        one_off("s1", "Book club", date(2026, 10, 5), "19:00"),
        one_off("s2", "Book club", date(2026, 10, 12), "19:10"),
        one_off("s3", "book  club", date(2026, 10, 19), "19:20"),
    ]
    candidates = detect_recurring_candidates(entries)

    assert len(candidates) == 1
    assert candidates[0].occurrences == 3
    assert candidates[0].schedule_ids == ("s1", "s2", "s3")
    print("✅ third_entry_updates_occurrences: PASSED")


def test_existing_recurring_entry_blocks_candidate():
    entries = [
        one_off("s1", "Book club", date(2026, 10, 5), "19:00"),
        one_off("s2", "Book club", date(2026, 10, 12), "19:10"),
        ScheduleEntry(id="r1", text="Book Club", start_time="19:00", days_of_week=(1,)),
    ]
    assert detect_recurring_candidates(entries) == []
    print("✅ existing_recurring_entry_blocks_candidate: PASSED")


def test_different_bucket_or_weekday_does_not_group():
    entries = [
        one_off("s1", "Book club", date(2026, 10, 5), "19:00"),
        one_off("s2", "Book club", date(2026, 10, 12), "19:40"),   # other bucket
        one_off("s3", "Book club", date(2026, 10, 13), "19:00"),   # Tuesday
    ]
    assert detect_recurring_candidates(entries) == []
    print("✅ different_bucket_or_weekday_does_not_group: PASSED")


def test_candidates_are_stable_across_runs():
    entries = [
        one_off("a1", "Swim", date(2026, 10, 6), "07:00"),
        one_off("b1", "Book club", date(2026, 10, 5), "19:00"),
        one_off("a2", "Swim", date(2026, 10, 13), "07:15"),
        one_off("b2", "Book club", date(2026, 10, 12), "19:10"),
    ]
    first = detect_recurring_candidates(entries)
    second = detect_recurring_candidates(entries)

    assert [c.normalized_text for c in first] == ["swim", "bookclub"]
    assert first == second
    print("✅ candidates_are_stable_across_runs: PASSED")


def test_explicit_patterns():
    entries = [
        ScheduleEntry(id="r1", text="Guitar lesson", start_time="18:00", days_of_week=(1, 3)),
        ScheduleEntry(id="r2", text="Lunch", start_time="12:00", days_of_week=(2,)),
        ScheduleEntry(id="r3", text="Stretching", days_of_week=(1, 2, 3, 4, 5)),
        one_off("s1", "Dentist", date(2026, 10, 5), "10:00"),
    ]
    patterns = extract_explicit_patterns(entries)

    assert [(p.day_of_week, p.activity, p.time) for p in patterns] == [
        (1, "Guitar lesson", "18:00"),
        (3, "Guitar lesson", "18:00"),
    ]
    print("✅ explicit_patterns: PASSED")
