"""
charts.py — Series rendering (points -> path/marker primitives)

This file contains ONLY the per-series rendering:
- projection of data points to device space
- run splitting at invalid points (gaps never get bridged)
- straight or smoothed (cubic) subpaths
- marker primitives and optional filled regions

It intentionally does NOT include:
- axes / ticks (axes.py)
- legend (legend.py)
- the ChartManager / dispatcher (plotter.py)

General utilities live in utils.py.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .constants import DASH_PATTERNS, GeometryKind, MarkerShape, SeriesDefaults
from .coordinates import CoordinateTransform
from .geometry_common import (
    cross_segments,
    plus_segments,
    square_points,
    star_points,
    triangle_points,
    unit_vector,
)
from .models import DataPoint, SeriesStyle
from .primitives import Circle, Group, Path, Point, Polygon, Primitive, Rect, Subpath


@dataclass(frozen=True)
class RenderedSeries:
    path: Optional[Path]
    markers: Tuple[Primitive, ...] = ()
    fills: Tuple[Polygon, ...] = ()

    def to_group(self, name: str, clip: Optional[Rect] = None) -> Group:
        children: List[Primitive] = list(self.fills)
        if self.path is not None:
            children.append(self.path)
        if self.markers:
            children.append(Group("markers", self.markers))
        return Group(name, tuple(children), clip=clip)


# ============================================================================
# POINTS / RUNS
# ============================================================================

def project_points(points: Sequence[DataPoint], transform: CoordinateTransform) -> List[Optional[Point]]:
    """Device position per point; None where the point is invalid."""
    out: List[Optional[Point]] = []
    for p in points:
        if not p.valid or not (math.isfinite(p.x) and math.isfinite(p.y)):
            out.append(None)
            continue
        dx, dy = transform.to_device(p.x, p.y)
        out.append((dx, dy) if math.isfinite(dx) and math.isfinite(dy) else None)
    return out


def split_runs(device_points: Sequence[Optional[Point]]) -> List[List[Point]]:
    """Maximal runs of consecutive valid points."""
    runs: List[List[Point]] = []
    current: List[Point] = []
    for p in device_points:
        if p is None:
            if current:
                runs.append(current)
            current = []
        else:
            current.append(p)
    if current:
        runs.append(current)
    return runs


# ============================================================================
# SUBPATHS
# ============================================================================

def _tangents(run: Sequence[Point]) -> List[Point]:
    n = len(run)
    out: List[Point] = []
    for i in range(n):
        if i == 0:
            out.append(unit_vector(run[1][0] - run[0][0], run[1][1] - run[0][1]))
        elif i == n - 1:
            out.append(unit_vector(run[i][0] - run[i - 1][0], run[i][1] - run[i - 1][1]))
        else:
            ix, iy = unit_vector(run[i][0] - run[i - 1][0], run[i][1] - run[i - 1][1])
            ox, oy = unit_vector(run[i + 1][0] - run[i][0], run[i + 1][1] - run[i][1])
            out.append(((ix + ox) / 2.0, (iy + oy) / 2.0))
    return out


def smooth_subpath(run: Sequence[Point], tension: float = SeriesDefaults.SMOOTHING) -> Subpath:
    """
    Cubic segments through every point. Control points sit along each end's
    tangent at `tension` times the segment length.
    """
    pts = tuple(run)
    if len(pts) < 3:
        return Subpath(pts)
    tangents = _tangents(pts)
    controls = []
    for i in range(len(pts) - 1):
        (x0, y0), (x1, y1) = pts[i], pts[i + 1]
        d = math.hypot(x1 - x0, y1 - y0) * tension
        t0, t1 = tangents[i], tangents[i + 1]
        controls.append(((x0 + t0[0] * d, y0 + t0[1] * d), (x1 - t1[0] * d, y1 - t1[1] * d)))
    return Subpath(pts, controls=tuple(controls))


def build_subpaths(runs: Sequence[Sequence[Point]], smooth: bool) -> Tuple[Subpath, ...]:
    out = []
    for run in runs:
        if smooth and len(run) >= 3:
            out.append(smooth_subpath(run))
        else:
            out.append(Subpath(tuple(run)))
    return tuple(out)


# ============================================================================
# MARKERS
# ============================================================================

def marker_primitives(
    shape: MarkerShape,
    center: Point,
    size: float,
    color: str,
    stroke_width: float = SeriesDefaults.MARKER_STROKE,
    opacity: float = 1.0,
) -> List[Primitive]:
    x, y = center
    if shape is MarkerShape.NONE:
        return []
    if shape is MarkerShape.CIRCLE:
        return [Circle(center, size, fill=color, stroke=color, stroke_width=stroke_width, opacity=opacity)]
    if shape is MarkerShape.SQUARE:
        return [Polygon(tuple(square_points(x, y, size)), fill=color, stroke=color, stroke_width=stroke_width, opacity=opacity)]
    if shape is MarkerShape.TRIANGLE:
        return [Polygon(tuple(triangle_points(x, y, size)), fill=color, stroke=color, stroke_width=stroke_width, opacity=opacity)]
    if shape is MarkerShape.STAR:
        return [Polygon(tuple(star_points(x, y, size)), fill=color, stroke=color, stroke_width=stroke_width, opacity=opacity)]
    if shape is MarkerShape.CROSS:
        segs = cross_segments(x, y, size)
    elif shape is MarkerShape.PLUS:
        segs = plus_segments(x, y, size)
    else:
        raise ValueError(f"Unhandled marker shape {shape!r}")
    return [Path(tuple(Subpath(s) for s in segs), stroke=color, stroke_width=stroke_width, opacity=opacity)]


# ============================================================================
# FILL
# ============================================================================

def _baseline(transform: CoordinateTransform) -> float:
    """Device y of data y=0, clamped into the plot area."""
    lo, hi = transform.y_range
    if transform.y_is_log or lo > 0.0:
        return transform.plot_bottom
    if hi < 0.0:
        return transform.plot_top
    return transform.y_to_device(0.0)


def fill_polygons(runs: Sequence[Sequence[Point]], transform: CoordinateTransform, color: str, opacity: float) -> Tuple[Polygon, ...]:
    out = []
    for run in runs:
        if len(run) < 2:
            continue
        if transform.geometry is GeometryKind.POLAR:
            pts = [transform.center, *run]
        else:
            base = _baseline(transform)
            pts = [(run[0][0], base), *run, (run[-1][0], base)]
        out.append(Polygon(tuple(pts), fill=color, opacity=opacity))
    return tuple(out)


# ============================================================================
# SERIES
# ============================================================================

def render_series(points: Sequence[DataPoint], style: SeriesStyle, transform: CoordinateTransform) -> RenderedSeries:
    """
    Path unless only_marks; markers unless no_marks or shape none. Each run of
    valid points is its own subpath. `style.color`/`style.marker` should be
    resolved by the caller (see SeriesStyle.with_defaults).
    """
    color = style.color or SeriesDefaults.COLOR
    shape = style.marker if style.marker is not None else MarkerShape.CIRCLE

    device = project_points(points, transform)
    runs = split_runs(device)

    path: Optional[Path] = None
    if not style.only_marks and runs:
        path = Path(
            build_subpaths(runs, style.smooth),
            stroke=color,
            stroke_width=style.line_width,
            dash=DASH_PATTERNS[style.dash],
            opacity=style.opacity,
        )

    markers: List[Primitive] = []
    if not style.no_marks and shape is not MarkerShape.NONE:
        for p in device:
            if p is not None:
                markers.extend(marker_primitives(shape, p, style.marker_size, color, opacity=style.opacity))

    fills: Tuple[Polygon, ...] = ()
    if style.fill:
        fills = fill_polygons(runs, transform, style.fill, style.fill_opacity)

    return RenderedSeries(path=path, markers=tuple(markers), fills=fills)
