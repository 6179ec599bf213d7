from __future__ import annotations

import logging
from typing import Dict, Optional

import requests

from ktutimetable.errors import FetchError, TimetableNotFoundError
from ktutimetable.model import Timetable
from ktutimetable.parse import parse_calendar

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

TIMETABLE_URL = "https://uais.cr.ktu.lt/ktuis/tv_rprt2.ical1"
TIMETABLE_FORMAT = "basic.ics"
DEFAULT_TIMEOUT = 30


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def build_request_params(vidko: str) -> Dict[str, str]:
    return {"p": vidko, "t": TIMETABLE_FORMAT}


def fetch_timetable(
    vidko: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Timetable:
    """
    Download and parse the timetable of one identifier ("vidko").

    Raises:
        TimetableNotFoundError: network failure, non-2xx status or a body
            that is not a calendar.
        EmptyTimetableError: the calendar holds no events.
    """
    http = session if session is not None else requests
    logger.debug("Fetching timetable for %s", vidko)

    try:
        resp = http.get(TIMETABLE_URL, params=build_request_params(vidko), timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Timetable request for %s failed: %s", vidko, e)
        raise TimetableNotFoundError(f"Timetable for '{vidko}' could not be downloaded") from e

    # text/calendar without charset would be decoded as latin-1 by requests
    body = resp.content.decode("utf-8", errors="replace")

    timetable = parse_calendar(body)
    logger.debug("Fetched %d events for %s", len(timetable), vidko)
    return timetable


# ---------------------------------------------------------------------------
# Getters (injected into the viewer)
# ---------------------------------------------------------------------------


class TimetableGetter:
    """
    Capability: turn an identifier into a Timetable or raise FetchError.
    """

    def get(self, vidko: str) -> Timetable:
        raise NotImplementedError


class BlockingTimetableGetter(TimetableGetter):
    """
    Fetches over the network; blocks the calling thread for the round trip.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.session = session
        self.timeout = timeout

    def get(self, vidko: str) -> Timetable:
        return fetch_timetable(vidko, session=self.session, timeout=self.timeout)


class DummyTimetableGetter(TimetableGetter):
    """
    Returns a fixed timetable (or raises a fixed error) for every identifier.
    """

    def __init__(self, timetable: Optional[Timetable] = None, error: Optional[FetchError] = None) -> None:
        self.timetable = timetable
        self.error = error
        self.calls: list[str] = []

    def get(self, vidko: str) -> Timetable:
        self.calls.append(vidko)
        if self.error is not None:
            raise self.error
        if self.timetable is None:
            raise TimetableNotFoundError()
        return self.timetable
