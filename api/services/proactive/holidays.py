"""
Korean public holiday calendar (2025-2027) and upcoming-break detection.

Fixed-date holidays repeat every year. Lunar holidays (Seollal, Chuseok,
Buddha's Birthday) move, so they are tabulated per year; dates outside the
table only see fixed holidays and weekends.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

FIXED_HOLIDAYS = {
    "01-01": "New Year's Day",
    "03-01": "Independence Movement Day",
    "05-05": "Children's Day",
    "06-06": "Memorial Day",
    "08-15": "Liberation Day",
    "10-03": "National Foundation Day",
    "10-09": "Hangul Day",
    "12-25": "Christmas",
}

LUNAR_HOLIDAYS = {
    2025: {
        "01-28": "Seollal Holiday", "01-29": "Seollal", "01-30": "Seollal Holiday",
        "05-05": "Buddha's Birthday",
        "10-05": "Chuseok Holiday", "10-06": "Chuseok", "10-07": "Chuseok Holiday",
    },
    2026: {
        "02-16": "Seollal Holiday", "02-17": "Seollal", "02-18": "Seollal Holiday",
        "05-24": "Buddha's Birthday",
        "09-24": "Chuseok Holiday", "09-25": "Chuseok", "09-26": "Chuseok Holiday",
    },
    2027: {
        "02-06": "Seollal Holiday", "02-07": "Seollal", "02-08": "Seollal Holiday",
        "05-13": "Buddha's Birthday",
        "10-14": "Chuseok Holiday", "10-15": "Chuseok", "10-16": "Chuseok Holiday",
    },
}

LONG_WEEKEND_DAYS = 3


@dataclass(frozen=True)
class UpcomingBreak:
    date: date
    name: str
    is_long_weekend: bool
    days_until: int
    is_holiday: bool


def holiday_name(day: date) -> Optional[str]:
    mmdd = day.strftime("%m-%d")
    if mmdd in FIXED_HOLIDAYS:
        return FIXED_HOLIDAYS[mmdd]
    return LUNAR_HOLIDAYS.get(day.year, {}).get(mmdd)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def is_day_off(day: date) -> bool:
    return is_weekend(day) or holiday_name(day) is not None


def upcoming_breaks(today: date, scan_days: int = 8) -> list[UpcomingBreak]:
    """
    Days off in [today, today + scan_days], one entry per block.

    A block's run length counts consecutive days off starting at that day
    (capped at 6); three or more make it a long weekend. A day within two days
    of an already-reported block of the same kind is folded into it.
    """
    breaks: list[UpcomingBreak] = []
    for offset in range(scan_days + 1):
        day = today + timedelta(days=offset)
        if not is_day_off(day):
            continue

        streak = 1
        for i in range(1, 6):
            if is_day_off(day + timedelta(days=i)):
                streak += 1
            else:
                break
        is_long = streak >= LONG_WEEKEND_DAYS

        if any(abs((b.date - day).days) < 2 and b.is_long_weekend == is_long for b in breaks):
            continue

        name = holiday_name(day)
        breaks.append(UpcomingBreak(
            date=day,
            name=name or ("Sunday" if day.weekday() == 6 else "Saturday"),
            is_long_weekend=is_long,
            days_until=offset,
            is_holiday=name is not None,
        ))
    return breaks
