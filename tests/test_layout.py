"""
Unit tests for the week grid layout.

Most tests use a 1000 x 530 widget: the body is then 480 px high for the
480 minutes between 09:00 and 17:00, i.e. exactly one pixel per minute.
"""

import unittest
from datetime import date, datetime, time

from ktutimetable.layout import (
    CATEGORY_COLORS,
    HEADER_HEIGHT,
    Color,
    Rect,
    Theme,
    TimeAxis,
    layout_week,
    tile_rects,
    wrap_text,
)
from ktutimetable.model import Event, EventCategory, IsoWeek

WEEK = IsoWeek(2024, 5)
MONDAY = date(2024, 1, 29)
WIDTH = 1000
HEIGHT = HEADER_HEIGHT + 480


def make_event(
    d: date = MONDAY,
    start: time = time(9, 0),
    end: time = time(10, 30),
    summary: str = "P123B123 Dummy module",
    module_name: str = "Dummy module",
    category: EventCategory = EventCategory.YELLOW,
) -> Event:
    return Event(
        category=category,
        date=d,
        start_time=start,
        end_time=end,
        description="",
        summary=summary,
        location="XI r.-521",
        module_name=module_name,
    )


class TestColor(unittest.TestCase):
    def test_lighten_multiplies_and_clamps(self) -> None:
        self.assertEqual(Color(200, 100, 10).lighten(1.5), Color(255, 150, 15))
        self.assertEqual(Color(27, 27, 27).lighten(0.5), Color(13, 13, 13))

    def test_hex(self) -> None:
        self.assertEqual(Color(251, 184, 41).hex, "#fbb829")
        self.assertEqual(Color.from_hex("#fbb829"), Color(251, 184, 41))

    def test_theme_derived_colors(self) -> None:
        theme = Theme(highlight=Color(100, 100, 100), background=Color(40, 40, 40), foreground=Color(0, 0, 0))
        self.assertEqual(theme.dark_background, Color(20, 20, 20))
        self.assertEqual(theme.now_line, Color(150, 150, 150))


class TestTimeAxis(unittest.TestCase):
    def test_affine_mapping(self) -> None:
        axis = TimeAxis(960)
        self.assertEqual(axis.time_to_pixel(time(9, 0)), 0)
        self.assertEqual(axis.time_to_pixel(time(17, 0)), 960)
        self.assertAlmostEqual(axis.time_to_pixel(time(10, 30)), 960 * 90 / 480)

    def test_before_axis_is_negative(self) -> None:
        axis = TimeAxis(480)
        self.assertEqual(axis.time_to_pixel(time(8, 0)), -60)

    def test_break_spans(self) -> None:
        spans = TimeAxis(480).break_spans()
        self.assertEqual(
            spans,
            [(time(10, 30), time(11, 0)), (time(12, 30), time(13, 30)), (time(15, 0), time(15, 30))],
        )

    def test_intervals_alternate(self) -> None:
        flags = [is_break for _, _, is_break in TimeAxis(480).intervals()]
        self.assertEqual(flags, [False, True, False, True, False, True, False])


class TestHelpers(unittest.TestCase):
    def test_wrap_fits(self) -> None:
        self.assertEqual(wrap_text("Intro to Systems", 8), ["Intro to", "Systems"])

    def test_wrap_truncates_to_two_lines(self) -> None:
        self.assertEqual(wrap_text("a b c d e f g h", 3), ["a b", "c…"])

    def test_tile_rects_cover_band(self) -> None:
        band = Rect(0, 0, 25, 10)
        tiles = tile_rects(band, (10, 4))

        self.assertEqual(len(tiles), 9)
        self.assertEqual(sum(1 for t in tiles if t.u == 1.0 and t.v == 1.0), 4)
        area = sum(t.rect.width * t.rect.height for t in tiles)
        self.assertAlmostEqual(area, 250)
        self.assertAlmostEqual(max(t.rect.right for t in tiles), 25)
        self.assertAlmostEqual(max(t.rect.bottom for t in tiles), 10)

    def test_tile_rects_exact_fit(self) -> None:
        self.assertEqual(len(tile_rects(Rect(0, 0, 20, 8), (10, 4))), 4)


class TestLayoutWeek(unittest.TestCase):
    def layout(self, events=(), now=datetime(2024, 1, 29, 10, 0), **kwargs):
        return layout_week(list(events), WEEK, now, WIDTH, HEIGHT, **kwargs)

    def test_header_labels(self) -> None:
        layout = self.layout()
        self.assertEqual([label.text for label in layout.day_labels], ["Pir", "Ant", "Tre", "Ket", "Pen"])
        self.assertEqual(
            [label.text for label in layout.date_labels],
            ["01-29", "01-30", "01-31", "02-01", "02-02"],
        )
        self.assertEqual(layout.column_width, 200)

    def test_break_bands(self) -> None:
        layout = self.layout()
        self.assertEqual(len(layout.break_bands), 3)
        first = layout.break_bands[0]
        self.assertEqual(first.rect.top, HEADER_HEIGHT + 90)
        self.assertEqual(first.rect.height, 30)
        self.assertEqual(first.rect.width, WIDTH)
        self.assertFalse(first.textured)

    def test_break_bands_textured(self) -> None:
        layout = self.layout(texture_size=(16, 16))
        self.assertTrue(all(band.textured for band in layout.break_bands))

    def test_card_placement(self) -> None:
        event = make_event(d=date(2024, 1, 31), start=time(11, 0), end=time(12, 30))
        card = self.layout([event]).cards[0]

        self.assertEqual(card.day, 2)
        self.assertEqual(card.rect.x, 2 * 200 + 10)
        self.assertEqual(card.rect.width, 180)
        self.assertEqual(card.rect.top, HEADER_HEIGHT + 120)
        self.assertEqual(card.rect.height, 90)
        self.assertEqual(card.time_label, "11:00-12:30")
        self.assertEqual(card.title_lines, ("Dummy module",))

    def test_card_colors(self) -> None:
        card = self.layout([make_event(category=EventCategory.YELLOW)]).cards[0]
        self.assertEqual(card.fill, CATEGORY_COLORS[EventCategory.YELLOW])
        self.assertEqual(card.border, Color(255, 230, 51))

    def test_card_min_width(self) -> None:
        layout = layout_week([make_event()], WEEK, datetime(2024, 1, 29, 10, 0), 300, HEIGHT, text_size=14)
        # column 60 - 2 * 10 gutter = 40 < 6 characters of 14 px
        self.assertEqual(layout.cards[0].rect.width, 84)

    def test_summary_used_without_module_name(self) -> None:
        event = make_event(summary="Intro to Systems", module_name=None)
        card = self.layout([event]).cards[0]
        self.assertEqual(card.title_lines, ("Intro to Systems",))

    def test_long_title_is_truncated(self) -> None:
        event = make_event(module_name="Very long module name " * 10)
        card = layout_week([event], WEEK, datetime(2024, 1, 29, 10, 0), 500, HEIGHT).cards[0]
        self.assertEqual(len(card.title_lines), 2)
        self.assertTrue(card.title_lines[-1].endswith("…"))

    def test_weekend_event_not_placed(self) -> None:
        layout = self.layout([make_event(d=date(2024, 2, 3))])
        self.assertEqual(layout.cards, [])

    def test_malformed_event_does_not_crash(self) -> None:
        card = self.layout([make_event(start=time(12, 0), end=time(11, 0))]).cards[0]
        self.assertLess(card.rect.height, 0)

    def test_event_before_axis_is_not_clipped(self) -> None:
        card = self.layout([make_event(start=time(8, 0), end=time(9, 0))]).cards[0]
        self.assertEqual(card.rect.top, HEADER_HEIGHT - 60)

    def test_day_highlight_and_now_marker(self) -> None:
        layout = self.layout(now=datetime(2024, 1, 30, 10, 0))

        self.assertEqual(layout.day_highlight, Rect(200, HEADER_HEIGHT, 200, 480))
        self.assertIsNotNone(layout.now_marker)
        self.assertEqual(layout.now_marker.y, HEADER_HEIGHT + 60)
        self.assertGreater(layout.now_marker.outline.width, layout.now_marker.line.width)

    def test_weekend_has_no_highlight_or_marker(self) -> None:
        layout = layout_week([], IsoWeek(2024, 5), datetime(2024, 2, 3, 10, 0), WIDTH, HEIGHT)
        self.assertIsNone(layout.day_highlight)
        self.assertIsNone(layout.now_marker)

    def test_marker_outside_axis(self) -> None:
        self.assertIsNone(self.layout(now=datetime(2024, 1, 29, 9, 0)).now_marker)
        self.assertIsNone(self.layout(now=datetime(2024, 1, 29, 17, 0)).now_marker)
        self.assertIsNone(self.layout(now=datetime(2024, 1, 29, 7, 30)).now_marker)

    def test_other_week_has_marker_but_no_highlight(self) -> None:
        layout = self.layout(now=datetime(2024, 2, 7, 12, 0))
        self.assertIsNone(layout.day_highlight)
        self.assertIsNotNone(layout.now_marker)

    def test_separators(self) -> None:
        xs = [line.x0 for line in self.layout().separators]
        self.assertEqual(xs, [200, 400, 600, 800])


if __name__ == "__main__":
    unittest.main()
