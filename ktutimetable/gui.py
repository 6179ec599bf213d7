"""
Desktop display adapter (tkinter).

Turns a WeekLayout into canvas items and wires the keyboard:

    A / D   previous / next week
    S       current week
    F2      toggle light / dark theme
    F5      refresh
    F3      change identifier

The fetch runs on a FetchWorker thread; the window polls it with `after`
so the UI stays responsive during the network round trip.
"""

from __future__ import annotations

import logging
import tkinter as tk
from tkinter import simpledialog, ttk
from typing import Optional

from ktutimetable.app import Environment, FetchWorker, TimetableViewer
from ktutimetable.layout import Line, Rect, Theme, WeekLayout
from ktutimetable.terminal import describe_fetch_error

logger = logging.getLogger(__name__)

WINDOW_TITLE = "KTU timetable"
MIN_SIZE = (480, 320)
INITIAL_SIZE = "500x320"
POLL_MS = 100
REDRAW_MS = 60_000


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------


def _rect(canvas: tk.Canvas, r: Rect, fill: str, outline: str = "", width: float = 0, **kw) -> None:
    canvas.create_rectangle(r.left, r.top, r.right, r.bottom, fill=fill, outline=outline, width=width, **kw)


def _line(canvas: tk.Canvas, line: Line) -> None:
    canvas.create_line(line.x0, line.y0, line.x1, line.y1, fill=line.color.hex, width=line.width)


def draw_layout(canvas: tk.Canvas, layout: WeekLayout) -> None:
    """
    Paint one WeekLayout onto a canvas (in back-to-front order).
    """
    canvas.delete("all")

    # header
    _rect(canvas, layout.header_rect, layout.header_fill.hex)
    for label in layout.day_labels + layout.date_labels:
        family = "TkFixedFont" if label.monospace else "TkDefaultFont"
        canvas.create_text(
            label.x,
            label.y,
            text=label.text,
            anchor=label.anchor,
            fill=label.color.hex,
            # negative size = pixels
            font=(family, -int(label.size)),
        )

    # body
    _rect(canvas, layout.body_rect, layout.body_fill.hex)
    if layout.day_highlight is not None:
        _rect(canvas, layout.day_highlight, layout.highlight_fill.hex)

    for separator in layout.separators:
        _line(canvas, separator)

    for band in layout.break_bands:
        if band.textured:
            for tile in band.tiles:
                _rect(canvas, tile.rect, band.tint.hex, stipple="gray50")
        else:
            _rect(canvas, band.rect, band.tint.hex, stipple="gray25")

    for card in layout.cards:
        _rect(canvas, card.rect, card.fill.hex)
        _rect(canvas, card.rect.shrink(card.border_width / 2), "", card.border.hex, card.border_width)
        text = "\n".join(card.title_lines + ("", card.time_label))
        canvas.create_text(
            card.text_rect.left,
            card.text_rect.top,
            text=text,
            anchor="nw",
            fill=card.text_color.hex,
            font=("TkDefaultFont", -int(card.font_size)),
        )

    if layout.now_marker is not None:
        _line(canvas, layout.now_marker.outline)
        _line(canvas, layout.now_marker.line)


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------


class TimetableWindow(ttk.Frame):
    def __init__(self, master: tk.Tk, viewer: TimetableViewer) -> None:
        super().__init__(master)
        self.master = master
        self.viewer = viewer
        self.worker = FetchWorker(viewer.env.timetable_getter)
        self.theme = Theme.dark()
        self.status: Optional[str] = None

        master.title(WINDOW_TITLE)
        self.canvas = tk.Canvas(self, highlightthickness=0, background=self.theme.background.hex)
        self.canvas.pack(fill=tk.BOTH, expand=True)
        self.pack(fill=tk.BOTH, expand=True)

        self.canvas.bind("<Configure>", lambda e: self.redraw())
        for key, action in (
            ("a", lambda: self.viewer.shift_shown_week(-1)),
            ("d", lambda: self.viewer.shift_shown_week(1)),
            ("s", self.viewer.show_current_week),
        ):
            master.bind(f"<KeyPress-{key}>", self._nav(action))
            master.bind(f"<KeyPress-{key.upper()}>", self._nav(action))
        master.bind("<F2>", lambda e: self.toggle_theme())
        master.bind("<F3>", lambda e: self.ask_vidko())
        master.bind("<F5>", lambda e: self.refresh())

        self.after(REDRAW_MS, self._tick)

    def _nav(self, action):
        def handler(event: tk.Event) -> None:
            action()
            self.redraw()

        return handler

    def _tick(self) -> None:
        # keeps the now marker moving
        self.redraw()
        self.after(REDRAW_MS, self._tick)

    def toggle_theme(self) -> None:
        self.theme = Theme.light() if self.theme == Theme.dark() else Theme.dark()
        self.redraw()

    def ask_vidko(self) -> None:
        vidko = simpledialog.askstring(
            WINDOW_TITLE,
            "Timetable identifier (vidko):",
            initialvalue=self.viewer.vidko or "",
            parent=self.master,
        )
        if vidko is None or not vidko.strip():
            if self.viewer.vidko is None:
                self.status = "No identifier set. Press F3 to enter one."
                self.redraw()
            return
        self.viewer.set_vidko(vidko)
        self.refresh()

    def refresh(self) -> None:
        if self.viewer.vidko is None or self.worker.busy:
            return
        self.status = f"Loading timetable {self.viewer.vidko}…"
        self.redraw()
        self.worker.start(self.viewer.vidko)
        self.after(POLL_MS, self._poll)

    def _poll(self) -> None:
        outcome = self.worker.poll()
        if outcome is None:
            self.after(POLL_MS, self._poll)
            return
        # the thread has posted its outcome and is about to exit
        self.worker.join()
        if self.viewer.apply_fetch_result(outcome):
            self.status = None
        elif outcome[0] != self.viewer.vidko:
            # identifier changed while fetching
            self.status = None
            self.refresh()
        elif self.viewer.last_error is not None:
            self.status = "Could not load timetable: " + describe_fetch_error(self.viewer.last_error)
        self.redraw()

    def redraw(self) -> None:
        width = self.canvas.winfo_width()
        height = self.canvas.winfo_height()
        if width <= 1 or height <= 1:
            return
        layout = self.viewer.layout(width, height, self.theme)
        draw_layout(self.canvas, layout)
        if self.status:
            self.canvas.create_text(
                width / 2,
                layout.body_rect.top + layout.body_rect.height / 2,
                text=self.status,
                fill=self.theme.foreground.hex,
                width=max(1, width - 40),
            )


def run_window(env: Optional[Environment] = None) -> None:
    """
    Open the timetable window and run the Tk event loop until it is closed.

    Raises tk.TclError when no display is available.
    """
    viewer = TimetableViewer(env if env is not None else Environment.default())
    viewer.load_config()

    root = tk.Tk()
    root.geometry(INITIAL_SIZE)
    root.minsize(*MIN_SIZE)
    window = TimetableWindow(root, viewer)

    if viewer.vidko is None:
        root.after_idle(window.ask_vidko)
    else:
        root.after_idle(window.refresh)

    root.mainloop()
