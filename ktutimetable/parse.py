"""
Parsing (iCalendar -> Timetable).

- Reads the calendar document returned by the KTU timetable endpoint
- Extracts EACH VEVENT of the first calendar block as exactly ONE Event
- Returns the events sorted by (date, start_time)

Important rules:
- 1 VEVENT = 1 Event
- No recurrence / RRULE logic
- An event missing a required property is skipped (logged), never half-filled
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time
from typing import Any, List, Optional, Tuple

from icalendar import Calendar

from ktutimetable.errors import EmptyTimetableError, MalformedEventError, TimetableNotFoundError
from ktutimetable.model import Event, EventCategory, Timetable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

REQUIRED_PROPERTIES = ("CATEGORIES", "DTSTART", "DTEND", "DESCRIPTION", "SUMMARY", "LOCATION")

# e.g. "P170B115 Skaitiniai metodai" -> "Skaitiniai metodai"
MODULE_CODE_RE = re.compile(r"^\w\d{3}\w\d{3} (.+)")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def guess_module_name(summary: str) -> Optional[str]:
    """
    Return the module name behind a course-code prefix, or None.
    """
    match = MODULE_CODE_RE.match(summary)
    if match:
        return match.group(1)
    return None


def split_ical_datetime(value: str) -> Tuple[date, time]:
    """
    Split 'YYYYMMDDTHHMMSS' into (date, time). No timezone handling.
    """
    raw = value.strip()
    if "T" not in raw:
        raise ValueError(f"Invalid date-time value: {value!r}")

    date_part, time_part = raw.split("T", 1)
    parsed_date = datetime.strptime(date_part, "%Y%m%d").date()
    parsed_time = datetime.strptime(time_part, "%H%M%S").time()
    return parsed_date, parsed_time


def _first(prop: Any) -> Any:
    # a property repeated in one VEVENT comes back as a list
    if isinstance(prop, list):
        return prop[0] if prop else None
    return prop


def _find_property(component: Any, name: str) -> Any:
    prop = _first(component.get(name))
    if prop is None:
        raise MalformedEventError(name)
    return prop


def _raw_value(prop: Any) -> str:
    """
    Serialized value of a property as it appeared in the document.
    """
    to_ical = getattr(prop, "to_ical", None)
    if to_ical is None:
        return str(prop)
    raw = to_ical()
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


def _category_text(prop: Any) -> Optional[str]:
    cats = getattr(prop, "cats", None)
    if cats is not None:
        # "CATEGORIES:" without a value
        if not cats:
            return None
        return ",".join(str(c) for c in cats)
    return str(prop)


# ---------------------------------------------------------------------------
# Event parsing (CORE LOGIC)
# ---------------------------------------------------------------------------


def parse_event(component: Any) -> Event:
    """
    Convert one VEVENT component into an Event.

    Raises MalformedEventError if a required property is absent or
    DTSTART / DTEND do not have the 'YYYYMMDDTHHMMSS' shape.
    """
    props = {name: _find_property(component, name) for name in REQUIRED_PROPERTIES}

    try:
        event_date, start_time = split_ical_datetime(_raw_value(props["DTSTART"]))
    except ValueError as e:
        raise MalformedEventError("DTSTART", f"invalid ({e})") from e

    try:
        # the end date is dropped: overnight events are not supported
        _end_date, end_time = split_ical_datetime(_raw_value(props["DTEND"]))
    except ValueError as e:
        raise MalformedEventError("DTEND", f"invalid ({e})") from e

    summary = str(props["SUMMARY"])

    return Event(
        category=EventCategory.from_text(_category_text(props["CATEGORIES"])),
        date=event_date,
        start_time=start_time,
        end_time=end_time,
        description=str(props["DESCRIPTION"]),
        summary=summary,
        location=str(props["LOCATION"]),
        module_name=guess_module_name(summary),
    )


# ---------------------------------------------------------------------------
# Calendar parsing
# ---------------------------------------------------------------------------


def parse_calendar(text: str) -> Timetable:
    """
    Parse an iCalendar document into a Timetable.

    - unparseable text or no VCALENDAR block -> TimetableNotFoundError
    - only the first VCALENDAR block is read
    - no (valid) VEVENT in that block -> EmptyTimetableError
    """
    try:
        components = Calendar.from_ical(text, multiple=True)
    except ValueError as e:
        logger.warning("Calendar body could not be parsed: %s", e)
        raise TimetableNotFoundError("Calendar body could not be parsed") from e

    calendars = [c for c in components if c.name == "VCALENDAR"]
    if not calendars:
        raise TimetableNotFoundError("No calendar found in response")

    if len(calendars) > 1:
        logger.debug("Response holds %d calendars, reading the first one", len(calendars))

    vevents = [c for c in calendars[0].subcomponents if c.name == "VEVENT"]
    if not vevents:
        raise EmptyTimetableError()

    events: List[Event] = []
    for component in vevents:
        try:
            events.append(parse_event(component))
        except MalformedEventError as e:
            logger.warning(
                "Skipping event %r: %s",
                str(component.get("UID") or component.get("SUMMARY") or "?"),
                e,
            )

    if not events:
        raise EmptyTimetableError("Timetable contains no valid events")

    return Timetable(events)
