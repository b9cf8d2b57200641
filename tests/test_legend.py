from __future__ import annotations

import pytest

from chart_plotter.constants import DashStyle, LegendAnchor, MarkerShape
from chart_plotter.legend import LegendEntry, anchor_position, layout, measure
from chart_plotter.models import SeriesStyle
from chart_plotter.primitives import Circle, Group, Path, Polygon, Text, child_names, iter_primitives


def test_no_entries_no_legend():
    assert layout([], LegendAnchor.NORTH_EAST, (300, 200)) is None


def test_rows_are_stacked_in_order():
    entries = [LegendEntry("alpha"), LegendEntry("b", dash=DashStyle.DOTTED, marker=MarkerShape.CIRCLE)]
    group = layout(entries, LegendAnchor.NORTH_WEST, (300, 200))
    assert group.name == "legend"
    assert child_names(group) == ("legend-entry-0", "legend-entry-1")
    assert isinstance(group.children[0], Polygon)

    texts = [p for p in iter_primitives(group) if isinstance(p, Text)]
    assert [t.text for t in texts] == ["alpha", "b"]
    assert texts[1].position[1] > texts[0].position[1]

    second = group.children[2]
    swatch = next(p for p in second.children if isinstance(p, Path))
    assert swatch.dash == (1.0, 2.0)
    assert any(isinstance(p, Circle) for p in second.children)


def test_box_width_follows_widest_label():
    narrow = measure([LegendEntry("ab")])
    wide = measure([LegendEntry("ab"), LegendEntry("a much longer label")])
    assert wide[0] > narrow[0]
    assert wide[1] > narrow[1]


@pytest.mark.parametrize(
    "anchor, expected",
    [
        (LegendAnchor.NORTH_EAST, (200.0, 20.0)),
        (LegendAnchor.NORTH_WEST, (20.0, 20.0)),
        (LegendAnchor.SOUTH_EAST, (200.0, 130.0)),
        (LegendAnchor.SOUTH_WEST, (20.0, 130.0)),
        (LegendAnchor.OUTER_NORTH_EAST, (320.0, 0.0)),
    ],
)
def test_anchor_positions(anchor, expected):
    assert anchor_position(anchor, (80.0, 50.0), (300.0, 200.0)) == pytest.approx(expected)


def test_anchor_respects_origin():
    assert anchor_position(LegendAnchor.NORTH_WEST, (10, 10), (100, 100), origin=(60, 20)) == (80, 40)


def test_entry_from_style():
    style = SeriesStyle(color="#abcdef", marker=MarkerShape.STAR, only_marks=True)
    entry = LegendEntry.from_style("$\\alpha^{2}$", style)
    assert entry.label == "α^2"
    assert entry.show_line is False
    assert entry.marker is MarkerShape.STAR

    group = layout([entry], LegendAnchor.NORTH_EAST, (300, 200))
    row = group.children[1]
    assert isinstance(row, Group)
    assert not any(isinstance(p, Path) for p in row.children)
