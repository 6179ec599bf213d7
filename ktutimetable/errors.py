"""
Error types raised while fetching and parsing a timetable.

Only two kinds reach callers of the fetcher:
- TimetableNotFoundError: transport failure, non-2xx status, unparseable body
- EmptyTimetableError: the calendar parsed fine but holds no events
"""

from __future__ import annotations


class FetchError(Exception):
    """
    Base class for a failed timetable fetch. Never retried by the fetcher.
    """


class TimetableNotFoundError(FetchError):
    def __init__(self, message: str = "Timetable not found or unreachable") -> None:
        super().__init__(message)


class EmptyTimetableError(FetchError):
    def __init__(self, message: str = "Timetable contains no events") -> None:
        super().__init__(message)


class MalformedEventError(ValueError):
    """
    One VEVENT could not be turned into an Event (missing or broken property).

    Internal to the parser: the event is skipped, the fetch continues.
    """

    def __init__(self, prop: str, reason: str = "missing") -> None:
        super().__init__(f"Property '{prop}' {reason}")
        self.prop = prop
        self.reason = reason
