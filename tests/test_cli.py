"""
Tests for CLI entry points.

These tests focus on:
- exit codes of the one-shot commands
- persisting the identifier into a temporary config file
  (to avoid touching real user data during tests)
"""

import io
import tempfile
import unittest
from contextlib import redirect_stdout
from datetime import date, time
from pathlib import Path

from ktutimetable.app import Environment
from ktutimetable.cli import main
from ktutimetable.config import Config, JsonConfigStore, MemoryConfigStore
from ktutimetable.errors import TimetableNotFoundError
from ktutimetable.fetch import DummyTimetableGetter
from ktutimetable.model import Event, EventCategory, Timetable

TIMETABLE = Timetable(
    [
        Event(
            category=EventCategory.RED,
            date=date(2024, 1, 30),
            start_time=time(11, 0),
            end_time=time(12, 30),
            description="",
            summary="P123B123 Dummy module",
            location="XI r.-521",
            module_name="Dummy module",
        )
    ]
)


def run(argv, env):
    out = io.StringIO()
    with redirect_stdout(out):
        try:
            main(argv, env=env)
        except SystemExit as e:
            return e.code, out.getvalue()
    raise AssertionError("main() did not exit")


class TestCLI(unittest.TestCase):
    def env(self, vidko=None, error=None) -> Environment:
        return Environment(
            timetable_getter=DummyTimetableGetter(TIMETABLE, error=error),
            config_store=MemoryConfigStore(Config(vidko=vidko) if vidko else None),
        )

    def test_show_with_explicit_identifier(self) -> None:
        code, out = run(["show", "--vidko", "E1810", "--week", "2024-W05"], self.env())
        self.assertEqual(code, 0)
        self.assertIn("Dummy", out)

    def test_show_with_layout_size(self) -> None:
        argv = ["show", "--vidko", "E1810", "--week", "2024-W05", "--width", "1000", "--height", "530"]
        code, _ = run(argv, self.env())
        self.assertEqual(code, 0)

    def test_show_uses_saved_identifier(self) -> None:
        env = self.env(vidko="E1810")
        code, _ = run(["show", "--week", "2024-W05"], env)
        self.assertEqual(code, 0)
        self.assertEqual(env.timetable_getter.calls, ["E1810"])

    def test_show_without_identifier_fails(self) -> None:
        code, out = run(["show"], self.env())
        self.assertNotEqual(code, 0)
        self.assertIn("set-vidko", out)

    def test_show_with_bad_week_fails(self) -> None:
        code, _ = run(["show", "--vidko", "E1810", "--week", "next"], self.env())
        self.assertNotEqual(code, 0)

    def test_show_fetch_failure(self) -> None:
        code, out = run(["show", "--vidko", "NOPE"], self.env(error=TimetableNotFoundError()))
        self.assertNotEqual(code, 0)
        self.assertIn("NOPE", out)

    def test_set_vidko_writes_config(self) -> None:
        # Use a temporary file instead of the real user config.
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "KTU Timetable" / "config.json"
            env = Environment(timetable_getter=DummyTimetableGetter(TIMETABLE), config_store=JsonConfigStore(p))

            code, out = run(["set-vidko", " E1810 "], env)

            self.assertEqual(code, 0)
            self.assertIn("E1810", out)
            self.assertEqual(JsonConfigStore(p).load(), Config(vidko="E1810"))

    def test_set_vidko_requires_text(self) -> None:
        code, _ = run(["set-vidko", "  "], self.env())
        self.assertNotEqual(code, 0)

    def test_config_path(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "config.json"
            env = Environment(timetable_getter=DummyTimetableGetter(), config_store=JsonConfigStore(p))
            code, out = run(["config-path"], env)
            self.assertEqual(code, 0)
            self.assertEqual(out.strip(), str(p))


if __name__ == "__main__":
    unittest.main()
