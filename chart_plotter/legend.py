"""
legend.py — Legend box for labelled series

This file contains ONLY:
- LegendEntry (what a row shows)
- measure() / anchor_position() / layout()

It intentionally does NOT contain:
- series or axis rendering
- deciding which series get a row (plotter.py does that)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .charts import marker_primitives
from .constants import LEGEND_DASH_PATTERNS, DashStyle, LegendAnchor, LegendStyle, MarkerShape, SeriesDefaults
from .geometry_common import rect_points
from .models import SeriesStyle
from .primitives import Group, Path, Point, Polygon, Primitive, Subpath, Text
from .utils import clean_label_text


@dataclass(frozen=True)
class LegendEntry:
    label: str
    color: str = SeriesDefaults.COLOR
    line_width: float = SeriesDefaults.LINE_WIDTH
    dash: DashStyle = DashStyle.SOLID
    marker: MarkerShape = MarkerShape.NONE
    marker_size: float = SeriesDefaults.MARKER_SIZE
    show_line: bool = True

    @classmethod
    def from_style(cls, label: str, style: SeriesStyle) -> "LegendEntry":
        shape = style.marker if style.marker is not None else MarkerShape.NONE
        return cls(
            label=clean_label_text(label),
            color=style.color or SeriesDefaults.COLOR,
            line_width=style.line_width,
            dash=style.dash,
            marker=MarkerShape.NONE if style.no_marks else shape,
            marker_size=style.marker_size,
            show_line=not style.only_marks,
        )


def text_width(text: str, font_size: float = LegendStyle.FONT_SIZE) -> float:
    """Rough advance width; there is no font metrics backend at this layer."""
    return len(text) * font_size * LegendStyle.CHAR_WIDTH


def measure(entries: Sequence[LegendEntry]) -> Tuple[float, float]:
    """(width, height) of the legend box."""
    if not entries:
        return (0.0, 0.0)
    widest = max(text_width(e.label) for e in entries)
    row = LegendStyle.FONT_SIZE + LegendStyle.ROW_SPACING
    width = LegendStyle.ICON_WIDTH + LegendStyle.ICON_GAP + widest + 2 * LegendStyle.PADDING
    height = len(entries) * row + 2 * LegendStyle.PADDING
    return (width, height)


def anchor_position(
    anchor: LegendAnchor,
    box: Tuple[float, float],
    container_size: Tuple[float, float],
    origin: Point = (0.0, 0.0),
) -> Point:
    """Top-left corner of the legend box inside (or beside) the container."""
    w, h = box
    cw, ch = container_size
    ox, oy = origin
    m = LegendStyle.MARGIN
    if anchor is LegendAnchor.NORTH_EAST:
        return (ox + cw - w - m, oy + m)
    if anchor is LegendAnchor.NORTH_WEST:
        return (ox + m, oy + m)
    if anchor is LegendAnchor.SOUTH_EAST:
        return (ox + cw - w - m, oy + ch - h - m)
    if anchor is LegendAnchor.SOUTH_WEST:
        return (ox + m, oy + ch - h - m)
    if anchor is LegendAnchor.OUTER_NORTH_EAST:
        return (ox + cw + m, oy)
    raise ValueError(f"Unhandled legend anchor {anchor!r}")


def _row(entry: LegendEntry, x: float, y: float) -> List[Primitive]:
    cy = y + LegendStyle.FONT_SIZE / 2.0
    out: List[Primitive] = []
    if entry.show_line:
        out.append(Path(
            (Subpath(((x, cy), (x + LegendStyle.ICON_WIDTH, cy))),),
            stroke=entry.color,
            stroke_width=entry.line_width,
            dash=LEGEND_DASH_PATTERNS[entry.dash],
        ))
    if entry.marker is not MarkerShape.NONE:
        out.extend(marker_primitives(
            entry.marker,
            (x + LegendStyle.ICON_WIDTH / 2.0, cy),
            entry.marker_size,
            entry.color,
        ))
    out.append(Text(
        (x + LegendStyle.ICON_WIDTH + LegendStyle.ICON_GAP, cy),
        entry.label,
        font_size=LegendStyle.FONT_SIZE,
        anchor="start",
        color=LegendStyle.TEXT_COLOR,
    ))
    return out


def layout(
    entries: Sequence[LegendEntry],
    anchor: LegendAnchor,
    container_size: Tuple[float, float],
    origin: Point = (0.0, 0.0),
) -> Optional[Group]:
    """Legend group, or None when there is nothing to list."""
    if not entries:
        return None

    box = measure(entries)
    x, y = anchor_position(anchor, box, container_size, origin)

    children: List[Primitive] = [
        Polygon(
            tuple(rect_points(x, y, box[0], box[1])),
            fill=LegendStyle.BACKGROUND,
            stroke=LegendStyle.BORDER,
            stroke_width=1.0,
            opacity=LegendStyle.BACKGROUND_OPACITY,
        )
    ]
    row_h = LegendStyle.FONT_SIZE + LegendStyle.ROW_SPACING
    for i, entry in enumerate(entries):
        row_y = y + LegendStyle.PADDING + i * row_h
        children.append(Group(f"legend-entry-{i}", tuple(_row(entry, x + LegendStyle.PADDING, row_y))))

    return Group("legend", tuple(children))
