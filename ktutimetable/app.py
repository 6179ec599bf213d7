"""
Viewer state shared by the display adapters.

TimetableViewer owns the identifier, the fetched timetable and the week
cursor; the display layer only asks it for a layout and forwards key presses.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple, Union

from ktutimetable.config import (
    Config,
    ConfigStore,
    JsonConfigStore,
    LoadConfigError,
    SaveConfigError,
    normalize_vidko,
)
from ktutimetable.errors import FetchError, TimetableNotFoundError
from ktutimetable.fetch import BlockingTimetableGetter, TimetableGetter
from ktutimetable.layout import Theme, WeekLayout, layout_week
from ktutimetable.model import Event, IsoWeek, Timetable
from ktutimetable.week import MAX_WEEKS_AHEAD, current_week, shift_week

logger = logging.getLogger(__name__)


@dataclass
class Environment:
    """
    The two external capabilities, chosen by explicit construction.
    """

    timetable_getter: TimetableGetter
    config_store: ConfigStore

    @classmethod
    def default(cls) -> "Environment":
        return cls(timetable_getter=BlockingTimetableGetter(), config_store=JsonConfigStore())


FetchOutcome = Tuple[str, Union[Timetable, FetchError]]


class FetchWorker:
    """
    Runs one fetch on a daemon thread and hands the outcome over a queue.

    The display layer polls `poll()` from its own event loop, so the network
    round trip never blocks rendering.
    """

    def __init__(self, getter: TimetableGetter) -> None:
        self.getter = getter
        self.results: "queue.Queue[FetchOutcome]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    @property
    def busy(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, vidko: str) -> None:
        self._thread = threading.Thread(target=self._run, args=(vidko,), daemon=True)
        self._thread.start()

    def _run(self, vidko: str) -> None:
        try:
            self.results.put((vidko, self.getter.get(vidko)))
        except FetchError as e:
            self.results.put((vidko, e))
        except Exception:
            # the poller waits on the queue, so every run must post an outcome
            logger.exception("Unexpected error while fetching timetable for %s", vidko)
            self.results.put((vidko, TimetableNotFoundError()))

    def poll(self) -> Optional[FetchOutcome]:
        try:
            return self.results.get_nowait()
        except queue.Empty:
            return None

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)


class TimetableViewer:
    def __init__(
        self,
        env: Environment,
        today_fn: Callable[[], date] = date.today,
        max_weeks_ahead: int = MAX_WEEKS_AHEAD,
    ) -> None:
        self.env = env
        self.today_fn = today_fn
        self.max_weeks_ahead = max_weeks_ahead

        self.vidko: Optional[str] = None
        self.timetable: Optional[Timetable] = None
        self.shown_week: IsoWeek = current_week(today_fn())
        self.shown_events: List[Event] = []
        self.last_error: Optional[FetchError] = None

    # -- config ---------------------------------------------------------------

    def load_config(self) -> Optional[str]:
        """
        Load the saved identifier. Any load error means "nothing saved".
        """
        try:
            config = self.env.config_store.load()
        except LoadConfigError as e:
            logger.info("No saved identifier (%s)", e)
            self.vidko = None
            return None

        self.vidko = config.vidko
        return self.vidko

    def save_config(self) -> bool:
        try:
            self.env.config_store.save(Config(vidko=self.vidko))
        except SaveConfigError as e:
            logger.error("Failed to save config: %s", e)
            return False
        return True

    def set_vidko(self, vidko: Optional[str]) -> None:
        self.vidko = normalize_vidko(vidko)
        self.save_config()

    # -- timetable ------------------------------------------------------------

    def refresh(self) -> bool:
        """
        Fetch the timetable of the current identifier (blocking).

        On failure the previous timetable stays and `last_error` is set.
        """
        if self.vidko is None:
            self.timetable = None
            self.shown_events = []
            return False

        try:
            timetable = self.env.timetable_getter.get(self.vidko)
        except FetchError as e:
            logger.warning("Refreshing timetable for %s failed: %s", self.vidko, e)
            self.last_error = e
            return False

        self.install_timetable(timetable)
        return True

    def install_timetable(self, timetable: Timetable) -> None:
        self.timetable = timetable
        self.last_error = None
        self._update_shown_events()

    def apply_fetch_result(self, outcome: FetchOutcome) -> bool:
        """
        Install the outcome of a FetchWorker run. Stale results (fetched for
        an identifier that has since changed) are ignored.
        """
        vidko, result = outcome
        if vidko != self.vidko:
            logger.debug("Dropping stale fetch result for %s", vidko)
            return False
        if isinstance(result, FetchError):
            self.last_error = result
            return False
        self.install_timetable(result)
        return True

    # -- week cursor ----------------------------------------------------------

    def set_shown_week(self, week: IsoWeek) -> None:
        self.shown_week = week
        self._update_shown_events()

    def shift_shown_week(self, shift: int) -> IsoWeek:
        self.set_shown_week(shift_week(self.shown_week, shift, self.today_fn(), self.max_weeks_ahead))
        return self.shown_week

    def show_current_week(self) -> IsoWeek:
        self.set_shown_week(current_week(self.today_fn()))
        return self.shown_week

    def _update_shown_events(self) -> None:
        if self.timetable is None:
            self.shown_events = []
        else:
            self.shown_events = self.timetable.by_week(self.shown_week)

    # -- layout ---------------------------------------------------------------

    def layout(
        self,
        width: float,
        height: float,
        theme: Optional[Theme] = None,
        now: Optional[datetime] = None,
        **kwargs,
    ) -> WeekLayout:
        return layout_week(
            self.shown_events,
            self.shown_week,
            now if now is not None else datetime.now(),
            width,
            height,
            theme,
            **kwargs,
        )
