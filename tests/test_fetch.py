"""
Tests for the network fetcher and the timetable getters.

The network is never touched: requests.get is patched.
"""

import unittest
from datetime import date
from typing import Optional
from unittest import mock

import requests

from ktutimetable.errors import EmptyTimetableError, TimetableNotFoundError
from ktutimetable.fetch import (
    TIMETABLE_URL,
    BlockingTimetableGetter,
    DummyTimetableGetter,
    build_request_params,
    fetch_timetable,
)
from ktutimetable.model import EventCategory, Timetable

ONE_EVENT = "\r\n".join(
    [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "BEGIN:VEVENT",
        "UID:1",
        "DTSTART:20240129T090000",
        "DTEND:20240129T103000",
        "SUMMARY:P123B123 Dummy module",
        "DESCRIPTION:Paskaita",
        "LOCATION:Studentų g. 50",
        "CATEGORIES:Yellow Category",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]
)

EMPTY = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nEND:VCALENDAR\r\n"


def fake_response(body: str, status_error: Optional[Exception] = None) -> mock.Mock:
    resp = mock.Mock()
    resp.content = body.encode("utf-8")
    resp.raise_for_status = mock.Mock(side_effect=status_error)
    return resp


class TestFetchTimetable(unittest.TestCase):
    def test_request_params(self) -> None:
        self.assertEqual(build_request_params("E1810"), {"p": "E1810", "t": "basic.ics"})

    @mock.patch("ktutimetable.fetch.requests.get")
    def test_fetch_parses_calendar(self, get: mock.Mock) -> None:
        get.return_value = fake_response(ONE_EVENT)

        timetable = fetch_timetable("E1810")

        get.assert_called_once()
        args, kwargs = get.call_args
        self.assertEqual(args[0], TIMETABLE_URL)
        self.assertEqual(kwargs["params"], {"p": "E1810", "t": "basic.ics"})

        self.assertEqual(len(timetable), 1)
        ev = timetable.events[0]
        self.assertEqual(ev.category, EventCategory.YELLOW)
        self.assertEqual(ev.module_name, "Dummy module")
        self.assertEqual(ev.date, date(2024, 1, 29))
        # body is decoded as UTF-8 regardless of the response headers
        self.assertEqual(ev.location, "Studentų g. 50")

    @mock.patch("ktutimetable.fetch.requests.get")
    def test_transport_error_is_not_found(self, get: mock.Mock) -> None:
        get.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(TimetableNotFoundError):
            fetch_timetable("E1810")

    @mock.patch("ktutimetable.fetch.requests.get")
    def test_http_error_is_not_found(self, get: mock.Mock) -> None:
        get.return_value = fake_response("", status_error=requests.HTTPError("404"))
        with self.assertRaises(TimetableNotFoundError):
            fetch_timetable("E1810")

    @mock.patch("ktutimetable.fetch.requests.get")
    def test_empty_calendar(self, get: mock.Mock) -> None:
        get.return_value = fake_response(EMPTY)
        with self.assertRaises(EmptyTimetableError):
            fetch_timetable("E1810")

    def test_session_is_used_when_given(self) -> None:
        session = mock.Mock()
        session.get.return_value = fake_response(ONE_EVENT)

        getter = BlockingTimetableGetter(session=session, timeout=5)
        timetable = getter.get("E1810")

        self.assertEqual(len(timetable), 1)
        self.assertEqual(session.get.call_args[1]["timeout"], 5)


class TestDummyGetter(unittest.TestCase):
    def test_returns_fixed_timetable(self) -> None:
        timetable = Timetable()
        getter = DummyTimetableGetter(timetable)
        self.assertIs(getter.get("X"), timetable)
        self.assertEqual(getter.calls, ["X"])

    def test_raises_fixed_error(self) -> None:
        getter = DummyTimetableGetter(error=EmptyTimetableError())
        with self.assertRaises(EmptyTimetableError):
            getter.get("X")


if __name__ == "__main__":
    unittest.main()
