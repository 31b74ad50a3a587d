"""
Lifestyle recommendations ahead of holidays, long weekends, weekends and
personal anniversaries.

Holidays and long weekends escalate D-7 (low) -> D-2 (medium) -> D-0
(medium). Plain weekends get one Friday notice. Anniversaries from memory
escalate D-7 (low) -> D-2 (medium) -> D-0 (high). Each phase has its own id,
so dismissing one phase does not silence the next.
"""

from __future__ import annotations

from ..config import LIFESTYLE_EVENT_KEYWORDS, EngineConfig, in_window, matches_keyword
from ..holidays import upcoming_breaks
from ..models import ContextSnapshot, Notification
from ..patterns import normalize_text

TRAVEL_INTERESTS = {"travel", "health", "selfdev"}


def _break_notifications(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    notifications = []
    likes_travel = bool(TRAVEL_INTERESTS.intersection(snapshot.profile.interests))
    friday = snapshot.today.weekday() == 4

    for brk in upcoming_breaks(snapshot.today, config.break_scan_days):
        key = brk.date.strftime("%Y%m%d")
        label = f"{brk.name} long weekend" if brk.is_long_weekend and not brk.is_holiday else brk.name
        payload = {"breakDate": brk.date.isoformat(), "breakName": brk.name, "isLong": brk.is_long_weekend}

        if brk.is_long_weekend or brk.is_holiday:
            if brk.days_until == 7:
                idea = "Start planning a trip?" if likes_travel else "Plan a food spot or an outing?"
                notifications.append(Notification(
                    id=f"lifestyle-7d-{key}",
                    type="lifestyle_recommend",
                    priority="low",
                    title="🗓️ Break coming up",
                    message=f"{label} is a week away! {idea}",
                    action_type="lifestyle_suggest",
                    action_payload={**payload, "phase": "early"},
                ))
            elif brk.days_until == 2:
                idea = (
                    "Booked a place to stay or eat yet? Want some ideas?"
                    if brk.is_long_weekend else "Want some restaurant or cafe ideas?"
                )
                notifications.append(Notification(
                    id=f"lifestyle-2d-{key}",
                    type="lifestyle_recommend",
                    priority="medium",
                    title=f"🍽️ {brk.name} in two days",
                    message=f"{label} is in two days! {idea}",
                    action_type="lifestyle_suggest",
                    action_payload={**payload, "phase": "mid"},
                ))
            elif brk.days_until == 0:
                idea = (
                    "Enjoying the break? Want ideas for things to do nearby?"
                    if brk.is_long_weekend else "Any plans? Want restaurant or cafe ideas?"
                )
                notifications.append(Notification(
                    id=f"lifestyle-0d-{key}",
                    type="lifestyle_recommend",
                    priority="medium",
                    title=f"🎉 {brk.name}",
                    message=f"Today is {brk.name}! {idea}",
                    action_type="lifestyle_suggest",
                    action_payload={**payload, "phase": "day_of"},
                ))
        elif friday and brk.days_until == 1 and brk.name == "Saturday":
            notifications.append(Notification(
                id=f"lifestyle-weekend-{key}",
                type="lifestyle_recommend",
                priority="low",
                title="🌟 Weekend's here!",
                message="The weekend is almost here! Want ideas for food or an outing?",
                action_type="lifestyle_suggest",
                action_payload={**payload, "breakName": "Weekend", "phase": "friday"},
            ))
    return notifications


def _anniversary_notifications(snapshot: ContextSnapshot) -> list[Notification]:
    notifications = []
    for event in snapshot.memory.important_events:
        text = f"{event.category} {event.event}"
        if not event.category or not matches_keyword(text, LIFESTYLE_EVENT_KEYWORDS):
            continue
        days = (event.date - snapshot.today).days
        key = f"{event.date.strftime('%Y%m%d')}_{normalize_text(event.event)[:6]}"
        payload = {"breakDate": event.date.isoformat(), "breakName": event.event, "isAnniversary": True}

        if days == 7:
            notifications.append(Notification(
                id=f"lifestyle-anniv-7d-{key}",
                type="lifestyle_recommend",
                priority="low",
                title=f"💝 {event.event} D-7",
                message=f'"{event.event}" is a week away! Sort out a restaurant or a gift early?',
                action_type="lifestyle_suggest",
                action_payload={**payload, "phase": "early"},
            ))
        elif days == 2:
            notifications.append(Notification(
                id=f"lifestyle-anniv-2d-{key}",
                type="lifestyle_recommend",
                priority="medium",
                title=f"💝 {event.event} D-2",
                message=f'"{event.event}" is in two days! Reservations all set?',
                action_type="lifestyle_suggest",
                action_payload={**payload, "phase": "mid"},
            ))
        elif days == 0:
            notifications.append(Notification(
                id=f"lifestyle-anniv-0d-{key}",
                type="lifestyle_recommend",
                priority="high",
                title=f"🎂 {event.event}",
                message=f'Today is "{event.event}"! Have a special day. Find a place nearby?',
                action_type="lifestyle_suggest",
                action_payload={**payload, "phase": "day_of"},
            ))
    return notifications


def lifestyle(snapshot: ContextSnapshot, config: EngineConfig) -> list[Notification]:
    if not in_window(snapshot.now.hour, config.lifestyle_window):
        return []
    return _break_notifications(snapshot, config) + _anniversary_notifications(snapshot)
