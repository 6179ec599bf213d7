"""
Terminal display adapter (rich).

Renders a WeekLayout as a rich table: one column per weekday, one row per
slice of the time axis (periods and breaks). Cards land in the row in which
they start; the row holding "now" is marked in the time column and the
current day column is tinted with the theme highlight.

Also hosts the interactive loop used by `ktutimetable interactive`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ktutimetable.app import TimetableViewer
from ktutimetable.errors import EmptyTimetableError
from ktutimetable.layout import EventCard, Theme, WeekLayout, minutes_of_day

# Virtual canvas the terminal view is laid out on
TERMINAL_WIDTH = 800
TERMINAL_HEIGHT = 480

MENU = escape(
    "\n[a] Previous week  [d] Next week  [s] Current week\n"
    "[v] Change identifier  [r] Refresh  [0] Exit\n"
    "Select: "
)


def _row_index(layout: WeekLayout, minutes: int) -> int:
    """
    Index of the axis slice a start minute falls into (clamped to the axis).
    """
    bounds = layout.axis.boundary_minutes
    for i in range(len(bounds) - 1):
        if minutes < bounds[i + 1]:
            return i
    return len(bounds) - 2


def _card_text(card: EventCard) -> Text:
    style = f"{card.text_color.hex} on {card.fill.hex}"
    text = Text()
    for line in card.title_lines:
        text.append(line + "\n", style=f"bold {style}")
    text.append(card.time_label, style=style)
    if card.event.location:
        text.append("\n" + card.event.location, style=f"italic {style}")
    return text


def render_week(layout: WeekLayout) -> Table:
    """
    Build the rich table for one WeekLayout.
    """
    theme = layout.theme
    highlight_day: Optional[int] = None
    if layout.day_highlight is not None and layout.column_width > 0:
        highlight_day = int(round((layout.day_highlight.x - layout.body_rect.x) / layout.column_width))

    table = Table(
        title=f"Timetable {layout.week}",
        box=box.SIMPLE,
        show_lines=True,
        header_style=f"bold {theme.foreground.hex} on {layout.header_fill.hex}",
    )
    table.add_column("", justify="right", no_wrap=True)
    for i, (name, date_label) in enumerate(zip(layout.day_labels, layout.date_labels)):
        style = f"on {layout.highlight_fill.hex}" if i == highlight_day else ""
        table.add_column(f"{name.text}\n{date_label.text}", style=style, ratio=1)

    intervals = layout.axis.intervals()
    cells: List[Dict[int, List[EventCard]]] = [dict() for _ in intervals]
    for card in layout.cards:
        row = _row_index(layout, minutes_of_day(card.event.start_time))
        cells[row].setdefault(card.day, []).append(card)

    now_row: Optional[int] = None
    if layout.now_marker is not None:
        now_row = _row_index(layout, layout.now_marker.minutes)

    for row, (start, end, is_break) in enumerate(intervals):
        time_label = f"{start:%H:%M}\n{end:%H:%M}"
        if row == now_row:
            time_label = f"▶ {layout.now:%H:%M}\n" + time_label
        row_cells: List[Text] = [Text(time_label, style="bold" if row == now_row else "dim")]

        for day in range(len(layout.day_labels)):
            cards = cells[row].get(day, [])
            if not cards:
                row_cells.append(Text("░" * 3 if is_break else "", style="dim"))
                continue
            cell = Text()
            for k, card in enumerate(cards):
                if k:
                    cell.append("\n\n")
                cell.append_text(_card_text(card))
            row_cells.append(cell)

        table.add_row(*row_cells, style="dim" if is_break else None)

    return table


def print_week(
    console: Console,
    viewer: TimetableViewer,
    theme: Optional[Theme] = None,
    now: Optional[datetime] = None,
    width: float = TERMINAL_WIDTH,
    height: float = TERMINAL_HEIGHT,
) -> WeekLayout:
    layout = viewer.layout(width, height, theme, now)
    console.print(render_week(layout))
    if not layout.cards:
        console.print("No events this week.")
    return layout


# ---------------------------------------------------------------------------
# Interactive loop
# ---------------------------------------------------------------------------


def _print_status(console: Console, viewer: TimetableViewer) -> None:
    vidko = escape(viewer.vidko) if viewer.vidko else "(not set)"
    events = len(viewer.timetable) if viewer.timetable is not None else 0
    console.print("\n=== KTU Timetable (interactive) ===")
    console.print(f"Identifier: [bold cyan]{vidko}[/] | events: [yellow]{events}[/] | week: {viewer.shown_week}")
    if viewer.last_error is not None:
        console.print(f"[red]Last refresh failed:[/] {describe_fetch_error(viewer.last_error)}")


def describe_fetch_error(error: Optional[Exception]) -> str:
    if isinstance(error, EmptyTimetableError):
        return "the identifier is valid but its timetable is empty."
    return "the identifier is invalid or the timetable server is unreachable."


def _flow_set_vidko(console: Console, viewer: TimetableViewer, prompt: Callable[[str], str]) -> None:
    vidko = prompt(escape("Timetable identifier (vidko) [blank = keep]: ")).strip()
    if not vidko:
        return
    viewer.set_vidko(vidko)
    _flow_refresh(console, viewer)


def _flow_refresh(console: Console, viewer: TimetableViewer) -> None:
    if viewer.vidko is None:
        console.print(escape("No identifier set. Use [v] first."))
        return
    with console.status(f"Fetching timetable for {viewer.vidko}..."):
        ok = viewer.refresh()
    if ok:
        console.print(f"Loaded {len(viewer.timetable or ())} events.")
    else:
        console.print(f"[red]Refresh failed:[/] {describe_fetch_error(viewer.last_error)}")


def run_interactive(
    viewer: TimetableViewer,
    console: Optional[Console] = None,
    prompt: Optional[Callable[[str], str]] = None,
) -> None:
    """
    Interactive menu loop: navigate weeks, change identifier, refresh.
    """
    console = console if console is not None else Console()
    prompt = prompt if prompt is not None else console.input

    if viewer.vidko is None:
        _flow_set_vidko(console, viewer, prompt)
    elif viewer.timetable is None:
        _flow_refresh(console, viewer)

    while True:
        _print_status(console, viewer)
        print_week(console, viewer)

        choice = prompt(MENU).strip().lower()

        if choice == "0":
            console.print("Bye.")
            return

        if choice == "a":
            viewer.shift_shown_week(-1)
        elif choice == "d":
            viewer.shift_shown_week(1)
        elif choice == "s":
            viewer.show_current_week()
        elif choice == "v":
            _flow_set_vidko(console, viewer, prompt)
        elif choice == "r":
            _flow_refresh(console, viewer)
        else:
            console.print("Invalid choice.")
