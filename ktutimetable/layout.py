"""
Week grid layout.

Turns (events, week, now) plus a target size and a theme into plain geometry
records: header labels, body fills, break bands, the current-day highlight,
the "now" marker line and positioned event cards. Nothing here draws; the
display adapters (terminal.py, gui.py) turn a WeekLayout into draw calls.

Coordinates are pixels relative to the top-left corner of the widget.
The time axis is affine:

    y = (minutes - first_boundary) * body_height / (last_boundary - first_boundary)

Minutes outside the axis are not clipped.
"""

from __future__ import annotations

import math
import textwrap
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from ktutimetable.model import Event, EventCategory, IsoWeek
from ktutimetable.week import is_weekend


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PERIOD_BOUNDARIES: Tuple[time, ...] = (
    time(9, 0),
    time(10, 30),
    time(11, 0),
    time(12, 30),
    time(13, 30),
    time(15, 0),
    time(15, 30),
    time(17, 0),
)

DAY_NAMES = ("Pir", "Ant", "Tre", "Ket", "Pen")
DAYS_SHOWN = 5

HEADER_HEIGHT = 50.0
COLUMN_GAP = 3.0

DEFAULT_TEXT_SIZE = 14.0
# average glyph width of a proportional font, relative to its size
GLYPH_WIDTH_RATIO = 0.55

CARD_GUTTER = 10.0
CARD_PADDING = 6.0
CARD_BORDER = 4.0
CARD_ROUNDING = 5.0
CARD_MIN_WIDTH_CHARS = 6
CARD_FONT_SCALE = 0.8
CARD_TITLE_LINES = 2
BORDER_LIGHTEN = 1.25

NOW_LINE_THICKNESS = 2.0
NOW_LINE_BORDER = 2.0


# ---------------------------------------------------------------------------
# Geometry records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        raw = value.lstrip("#")
        if len(raw) != 6:
            raise ValueError(f"Invalid colour: {value!r}")
        return cls(int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16))

    @classmethod
    def gray(cls, level: int) -> "Color":
        return cls(level, level, level)

    def lighten(self, factor: float) -> "Color":
        """
        Multiply every channel by `factor`, clamped to 0..255.

        factor < 1 darkens.
        """

        def channel(value: int) -> int:
            return max(0, min(255, int(value * factor)))

        return Color(channel(self.r), channel(self.g), channel(self.b))

    @property
    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


BLACK = Color(0, 0, 0)
WHITE = Color(255, 255, 255)

CATEGORY_COLORS: Dict[EventCategory, Color] = {
    EventCategory.DEFAULT: Color.gray(160),
    EventCategory.YELLOW: Color(251, 184, 41),
    EventCategory.GREEN: Color(152, 188, 55),
    EventCategory.RED: Color(247, 83, 65),
    EventCategory.BLUE: Color(10, 174, 179),
}


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def shrink(self, amount: float) -> "Rect":
        return Rect(self.x + amount, self.y + amount, self.width - 2 * amount, self.height - 2 * amount)

    def shrink_x(self, amount: float) -> "Rect":
        return Rect(self.x + amount, self.y, self.width - 2 * amount, self.height)

    def with_min_width(self, width: float) -> "Rect":
        # keeps the left edge in place
        return Rect(self.x, self.y, max(self.width, width), self.height)


@dataclass(frozen=True)
class Theme:
    """
    Colours injected by the display layer (light or dark toolkit theme).
    """

    highlight: Color
    background: Color
    foreground: Color

    @property
    def dark_background(self) -> Color:
        return self.background.lighten(0.5)

    @property
    def now_line(self) -> Color:
        return self.highlight.lighten(1.5)

    @classmethod
    def dark(cls) -> "Theme":
        return cls(highlight=Color(0, 92, 128), background=Color.gray(27), foreground=WHITE)

    @classmethod
    def light(cls) -> "Theme":
        return cls(highlight=Color(144, 209, 255), background=Color.gray(248), foreground=BLACK)


@dataclass(frozen=True)
class TextLabel:
    text: str
    x: float
    y: float
    # tk-style anchor: "center", "se", "nw"
    anchor: str
    size: float
    color: Color
    monospace: bool = False


@dataclass(frozen=True)
class Line:
    x0: float
    y0: float
    x1: float
    y1: float
    width: float
    color: Color


@dataclass(frozen=True)
class Tile:
    """
    One texture tile; (u, v) is the visible fraction of the texture.
    """

    rect: Rect
    u: float
    v: float


@dataclass(frozen=True)
class BreakBand:
    rect: Rect
    tint: Color
    start: time
    end: time
    tiles: Tuple[Tile, ...] = ()

    @property
    def textured(self) -> bool:
        return bool(self.tiles)


@dataclass(frozen=True)
class EventCard:
    event: Event
    day: int
    rect: Rect
    text_rect: Rect
    fill: Color
    border: Color
    title_lines: Tuple[str, ...]
    time_label: str
    font_size: float
    text_color: Color = BLACK
    border_width: float = CARD_BORDER
    rounding: float = CARD_ROUNDING


@dataclass(frozen=True)
class NowMarker:
    y: float
    minutes: int
    outline: Line
    line: Line


@dataclass
class WeekLayout:
    week: IsoWeek
    now: datetime
    theme: Theme
    header_rect: Rect
    body_rect: Rect
    column_width: float
    axis: TimeAxis
    day_labels: List[TextLabel] = field(default_factory=list)
    date_labels: List[TextLabel] = field(default_factory=list)
    day_highlight: Optional[Rect] = None
    separators: List[Line] = field(default_factory=list)
    break_bands: List[BreakBand] = field(default_factory=list)
    cards: List[EventCard] = field(default_factory=list)
    now_marker: Optional[NowMarker] = None

    @property
    def header_fill(self) -> Color:
        return self.theme.dark_background

    @property
    def body_fill(self) -> Color:
        return self.theme.background

    @property
    def highlight_fill(self) -> Color:
        return self.theme.highlight


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def minutes_of_day(t: time) -> int:
    return t.hour * 60 + t.minute


def format_time_range(start: time, end: time) -> str:
    return f"{start:%H:%M}-{end:%H:%M}"


def wrap_text(text: str, max_chars: int, max_lines: int = CARD_TITLE_LINES) -> List[str]:
    """
    Word-wrap `text` to at most `max_lines` lines of `max_chars` characters.

    Overflow is cut and marked with an ellipsis on the last line.
    """
    max_chars = max(1, max_chars)
    lines = textwrap.wrap(text, width=max_chars)
    if len(lines) <= max_lines:
        return lines

    lines = lines[:max_lines]
    last = lines[-1]
    if len(last) >= max_chars:
        last = last[: max_chars - 1]
    lines[-1] = last.rstrip() + "…"
    return lines


def tile_rects(rect: Rect, texture_size: Tuple[float, float]) -> List[Tile]:
    """
    Cover `rect` with texture tiles anchored at its top-left corner.

    Full tiles first, then the partial right column, the partial bottom row
    and the bottom-right corner.
    """
    tex_w, tex_h = texture_size
    if tex_w <= 0 or tex_h <= 0 or rect.width <= 0 or rect.height <= 0:
        return []

    h_count = rect.width / tex_w
    v_count = rect.height / tex_h
    full_x = int(math.floor(h_count))
    full_y = int(math.floor(v_count))
    frac_x = h_count - full_x
    frac_y = v_count - full_y

    def tile(ix: int, iy: int, u: float, v: float) -> Tile:
        return Tile(Rect(rect.x + tex_w * ix, rect.y + tex_h * iy, tex_w * u, tex_h * v), u, v)

    tiles = [tile(ix, iy, 1.0, 1.0) for ix in range(full_x) for iy in range(full_y)]

    # right edge
    if frac_x > 0:
        tiles.extend(tile(full_x, iy, frac_x, 1.0) for iy in range(full_y))

    # bottom edge
    if frac_y > 0:
        tiles.extend(tile(ix, full_y, 1.0, frac_y) for ix in range(full_x))

    # bottom right corner
    if frac_x > 0 and frac_y > 0:
        tiles.append(tile(full_x, full_y, frac_x, frac_y))

    return tiles


class TimeAxis:
    """
    Maps clock times onto the vertical pixel axis of the grid body.
    """

    def __init__(self, height: float, boundaries: Sequence[time] = PERIOD_BOUNDARIES) -> None:
        if len(boundaries) < 2:
            raise ValueError("At least two period boundaries are required")
        self.boundaries = tuple(boundaries)
        self.boundary_minutes = [minutes_of_day(t) for t in self.boundaries]
        self.first = self.boundary_minutes[0]
        self.last = self.boundary_minutes[-1]
        self.height = height
        self.scale = height / (self.last - self.first)

    def minute_to_pixel(self, minutes: float) -> float:
        return (minutes - self.first) * self.scale

    def time_to_pixel(self, t: time) -> float:
        return self.minute_to_pixel(minutes_of_day(t))

    def duration_to_pixel(self, minutes: float) -> float:
        return minutes * self.scale

    def contains(self, minutes: float) -> bool:
        return self.first < minutes < self.last

    def break_spans(self) -> List[Tuple[time, time]]:
        """
        Break intervals: boundary pairs (1, 2), (3, 4), (5, 6).
        """
        return [(self.boundaries[i], self.boundaries[i + 1]) for i in range(1, len(self.boundaries) - 1, 2)]

    def intervals(self) -> List[Tuple[time, time, bool]]:
        """
        Every (start, end, is_break) slice of the axis, top to bottom.
        """
        return [
            (self.boundaries[i], self.boundaries[i + 1], i % 2 == 1)
            for i in range(len(self.boundaries) - 1)
        ]


# ---------------------------------------------------------------------------
# Layout (CORE LOGIC)
# ---------------------------------------------------------------------------


def _layout_header(layout: WeekLayout, week: IsoWeek, theme: Theme, text_size: float) -> None:
    rect = layout.header_rect
    column_width = layout.column_width

    for i, name in enumerate(DAY_NAMES):
        layout.day_labels.append(
            TextLabel(
                text=name,
                x=rect.x + column_width * (i + 0.5),
                y=rect.y + rect.height / 2.5,
                anchor="center",
                size=text_size * 1.2,
                color=theme.foreground,
                monospace=True,
            )
        )

    day = week.monday()
    for i in range(DAYS_SHOWN):
        layout.date_labels.append(
            TextLabel(
                text=day.strftime("%m-%d"),
                x=rect.x + column_width * (i + 1) - 3.0,
                y=rect.bottom - 3.0,
                anchor="se",
                size=text_size * 0.85,
                color=theme.foreground,
            )
        )
        day = day + timedelta(days=1)


def layout_event_card(
    event: Event,
    axis: TimeAxis,
    body: Rect,
    column_width: float,
    text_size: float = DEFAULT_TEXT_SIZE,
) -> EventCard:
    """
    Place one event in its day column.

    An end time before the start time gives a negative height; it is kept as
    is so a broken event shows up wrong instead of failing the whole view.
    """
    day = event.date.weekday()
    start = minutes_of_day(event.start_time)
    duration = minutes_of_day(event.end_time) - start

    rect = Rect(
        body.x + column_width * day,
        body.y + axis.minute_to_pixel(start),
        column_width,
        axis.duration_to_pixel(duration),
    ).shrink_x(CARD_GUTTER)
    rect = rect.with_min_width(text_size * CARD_MIN_WIDTH_CHARS)

    text_rect = rect.shrink(CARD_PADDING)
    font_size = text_size * CARD_FONT_SCALE
    max_chars = int(text_rect.width // (font_size * GLYPH_WIDTH_RATIO))

    fill = CATEGORY_COLORS[event.category]
    return EventCard(
        event=event,
        day=day,
        rect=rect,
        text_rect=text_rect,
        fill=fill,
        border=fill.lighten(BORDER_LIGHTEN),
        title_lines=tuple(wrap_text(event.label, max_chars)),
        time_label=format_time_range(event.start_time, event.end_time),
        font_size=font_size,
    )


def layout_week(
    events: Sequence[Event],
    week: IsoWeek,
    now: datetime,
    width: float,
    height: float,
    theme: Optional[Theme] = None,
    text_size: float = DEFAULT_TEXT_SIZE,
    texture_size: Optional[Tuple[float, float]] = None,
    boundaries: Sequence[time] = PERIOD_BOUNDARIES,
    header_height: float = HEADER_HEIGHT,
) -> WeekLayout:
    """
    Compute the full week grid for one frame.

    Args:
        events: the events of `week` (others are placed by weekday anyway).
        week: the displayed ISO week.
        now: naive local timestamp driving the day highlight and now marker.
        width, height: widget size in pixels, header included.
        theme: injected colours; defaults to Theme.dark().
        texture_size: size of the break texture, or None for flat bands.
    """
    theme = theme if theme is not None else Theme.dark()

    header = Rect(0.0, 0.0, width, header_height)
    body = Rect(0.0, header_height, width, max(0.0, height - header_height))
    column_width = body.width / DAYS_SHOWN
    axis = TimeAxis(body.height, boundaries)

    layout = WeekLayout(
        week=week,
        now=now,
        theme=theme,
        header_rect=header,
        body_rect=body,
        column_width=column_width,
        axis=axis,
    )

    _layout_header(layout, week, theme, text_size)

    today: date = now.date()
    weekend = is_weekend(today)

    # highlight current day column (drawn beneath the cards)
    if IsoWeek.of(today) == week and not weekend:
        layout.day_highlight = Rect(body.x + column_width * today.weekday(), body.y, column_width, body.height)

    # gaps between columns
    for i in range(1, DAYS_SHOWN):
        x = body.x + column_width * i
        layout.separators.append(Line(x, body.top, x, body.bottom, COLUMN_GAP, theme.dark_background))

    # break times
    for start, end in axis.break_spans():
        top = body.y + axis.time_to_pixel(start)
        band = Rect(body.x, top, body.width, body.y + axis.time_to_pixel(end) - top)
        tiles = tuple(tile_rects(band, texture_size)) if texture_size else ()
        layout.break_bands.append(BreakBand(band, theme.dark_background, start, end, tiles))

    for event in events:
        if is_weekend(event.date):
            continue
        layout.cards.append(layout_event_card(event, axis, body, column_width, text_size))

    now_minutes = now.hour * 60 + now.minute
    if axis.contains(now_minutes) and not weekend:
        y = body.y + axis.minute_to_pixel(now_minutes)
        layout.now_marker = NowMarker(
            y=y,
            minutes=now_minutes,
            outline=Line(
                body.left,
                y,
                body.right,
                y,
                NOW_LINE_THICKNESS + 2 * NOW_LINE_BORDER,
                theme.dark_background,
            ),
            line=Line(body.left, y, body.right, y, NOW_LINE_THICKNESS, theme.now_line),
        )

    return layout
