"""
Central data model definitions used across the project.

This module defines the canonical structure of Event, IsoWeek and Timetable
objects so that:
- the parser, the layout engine and the display layers share the same fields
- a fetched timetable is immutable and always sorted by (date, start_time)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple


class EventCategory(Enum):
    """
    Visual classification tag of a calendar event (drives the card colour).
    """

    DEFAULT = "Default"
    YELLOW = "Yellow Category"
    GREEN = "Green Category"
    RED = "Red Category"
    BLUE = "Blue Category"

    @classmethod
    def from_text(cls, value: Optional[str]) -> "EventCategory":
        """
        Map a raw CATEGORIES value to a category.

        Only the four literal colour names are recognized; anything else
        (including a missing value) is DEFAULT.
        """
        if value is None:
            return cls.DEFAULT
        for category in cls:
            if category is not cls.DEFAULT and category.value == value:
                return category
        return cls.DEFAULT


@dataclass(frozen=True, order=True)
class IsoWeek:
    """
    A (year, week) pair of the ISO-8601 week calendar.

    Ordering is lexicographic on (year, week).
    """

    year: int
    week: int

    @classmethod
    def of(cls, d: date) -> "IsoWeek":
        iso = d.isocalendar()
        return cls(iso[0], iso[1])

    @classmethod
    def parse(cls, text: str) -> "IsoWeek":
        """
        Parse 'YYYY-Www' (e.g. '2024-W05'). Raises ValueError for other shapes.
        """
        raw = text.strip().upper()
        if "-W" not in raw:
            raise ValueError(f"Invalid ISO week: {text!r}")
        year_s, week_s = raw.split("-W", 1)
        week = cls(int(year_s), int(week_s))
        # round trip rejects week 53 in 52-week years
        week.monday()
        return week

    def monday(self) -> date:
        return date.fromisocalendar(self.year, self.week, 1)

    def days(self) -> List[date]:
        """
        Business days (Monday to Friday) of this week.
        """
        monday = self.monday()
        return [monday + timedelta(days=i) for i in range(5)]

    def shifted(self, weeks: int) -> "IsoWeek":
        return IsoWeek.of(self.monday() + timedelta(weeks=weeks))

    def __str__(self) -> str:
        return f"{self.year}-W{self.week:02d}"


@dataclass(frozen=True)
class Event:
    """
    One scheduled calendar occurrence.

    start_time and end_time belong to `date`; events spanning midnight are
    not supported.
    """

    category: EventCategory
    date: date
    start_time: time
    end_time: time
    description: str
    summary: str
    location: str
    module_name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.module_name if self.module_name is not None else self.summary

    @property
    def iso_week(self) -> IsoWeek:
        return IsoWeek.of(self.date)

    @property
    def sort_key(self) -> Tuple[date, time]:
        return (self.date, self.start_time)


class Timetable:
    """
    The full, ordered collection of events for one identifier.

    Built once per fetch and replaced wholesale on refresh.
    """

    def __init__(self, events: Iterable[Event] = ()) -> None:
        # sorted() is stable: equal keys keep their calendar order
        self._events: Tuple[Event, ...] = tuple(sorted(events, key=lambda ev: ev.sort_key))

    @property
    def events(self) -> Tuple[Event, ...]:
        return self._events

    def by_week(self, week: IsoWeek) -> List[Event]:
        return [ev for ev in self._events if ev.iso_week == week]

    def max_end_time(self) -> Optional[time]:
        if not self._events:
            return None
        return max(ev.end_time for ev in self._events)

    def weeks(self) -> List[IsoWeek]:
        return sorted({ev.iso_week for ev in self._events})

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __repr__(self) -> str:
        return f"Timetable(events={len(self._events)})"
