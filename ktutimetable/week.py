"""
Week navigation.

The viewer always shows one ISO week (Monday to Friday). Navigation moves by
whole weeks and never leaves the window

    [current week, current week + MAX_WEEKS_AHEAD]

where "current week" skips to next week on Saturdays and Sundays, so the
default view always shows the next set of weekday classes.
"""

from __future__ import annotations

from datetime import date, timedelta

from ktutimetable.model import IsoWeek

MAX_WEEKS_AHEAD = 48


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def current_week(today: date) -> IsoWeek:
    if is_weekend(today):
        return IsoWeek.of(today + timedelta(days=7))
    return IsoWeek.of(today)


def shift_week(
    shown: IsoWeek,
    shift: int,
    today: date,
    max_weeks_ahead: int = MAX_WEEKS_AHEAD,
) -> IsoWeek:
    """
    Move `shown` by `shift` weeks, clamped to the navigable window.
    """
    first = current_week(today).monday()
    last = first + timedelta(weeks=max_weeks_ahead)

    target = shown.monday() + timedelta(weeks=shift)
    target = max(first, min(target, last))
    return IsoWeek.of(target)
