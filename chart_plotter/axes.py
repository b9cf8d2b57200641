"""
axes.py — Tick planning and axis primitives

This file contains ONLY:
- nice-number tick planning (linear, log, polar angle)
- tick label formatting
- compose_axes(): grid, axis lines (+ arrowheads), tick marks/labels,
  axis labels and title for one chart

It intentionally does NOT contain:
- range resolution (geometry_bounds.py)
- series rendering (charts.py)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from config import settings

from .constants import AxisLines, GeometryKind, GridMode, Layout
from .coordinates import CoordinateTransform
from .geometry_common import arrowhead_points
from .models import ChartSpec, Tick
from .primitives import Circle, Group, Path, Polygon, Primitive, Subpath, Text
from .utils import clean_label_text


# ============================================================================
# TICK VALUES
# ============================================================================

def nice_step(span: float, target_count: int) -> float:
    """range/target snapped to 1, 2, 5 or 10 times a power of ten."""
    raw = abs(span) / max(1, int(target_count))
    if raw <= 0 or not math.isfinite(raw):
        return 1.0
    magnitude = 10.0 ** math.floor(math.log10(raw))
    normalized = raw / magnitude
    if normalized <= 1.0:
        nice = 1.0
    elif normalized <= 2.0:
        nice = 2.0
    elif normalized <= 5.0:
        nice = 5.0
    else:
        nice = 10.0
    return nice * magnitude


def tick_values(vmin: float, vmax: float, target_count: int = settings.TARGET_TICK_COUNT) -> List[float]:
    """
    Multiples of the nice step inside [vmin, vmax], strictly increasing.
    Values are snapped to the step grid to drop float noise (0.30000000000000004).
    """
    if not (math.isfinite(vmin) and math.isfinite(vmax)) or vmax <= vmin:
        return []
    step = nice_step(vmax - vmin, target_count)
    eps = step * 1e-9
    first = math.ceil((vmin - eps) / step)
    values: List[float] = []
    k = first
    while True:
        v = float("%.12g" % (k * step))
        if v > vmax + eps:
            break
        values.append(min(max(v, vmin), vmax))
        k += 1
        if len(values) > 10000:
            break
    return _dedupe(values)


def _dedupe(values: Sequence[float]) -> List[float]:
    out: List[float] = []
    for v in values:
        if not out or v > out[-1]:
            out.append(v)
    return out


def log_tick_values(vmin: float, vmax: float, epsilon: float = settings.LOG_EPSILON) -> List[float]:
    """Powers of ten in range; 2/3/5 multiples too when the range spans few decades."""
    lo = max(vmin, epsilon)
    hi = max(vmax, epsilon)
    if hi <= lo:
        return []
    d0 = math.floor(math.log10(lo))
    d1 = math.ceil(math.log10(hi))
    multiples = (1.0, 2.0, 3.0, 5.0) if (d1 - d0) <= 2 else (1.0,)
    values = []
    for d in range(d0, d1 + 1):
        for m in multiples:
            v = m * 10.0 ** d
            if lo * (1 - 1e-9) <= v <= hi * (1 + 1e-9):
                values.append(v)
    return _dedupe(sorted(values))


def polar_angle_values(tmin: float, tmax: float, step: float = Layout.POLAR_ANGLE_STEP) -> List[float]:
    """
    Every `step` degrees from the first multiple at or after tmin up to tmax.
    A full turn ends where it started, so the closing angle is dropped.
    """
    if tmax <= tmin:
        return []
    values: List[float] = []
    k = math.ceil(tmin / step - 1e-9)
    while k * step <= tmax + 1e-9:
        values.append(k * step)
        k += 1
    if len(values) > 1 and abs((values[-1] - values[0]) - 360.0) < 1e-9:
        values.pop()
    return values


# ============================================================================
# LABELS
# ============================================================================

def format_tick_label(value: float) -> str:
    """
    0 for |v| < 1e-10; one-digit exponential for |v| >= 1000 or < 0.01;
    else at most two decimals with trailing zeros trimmed.
    """
    if abs(value) < 1e-10:
        return "0"
    if abs(value) >= 1000 or abs(value) < 0.01:
        mantissa, exp = f"{value:.1e}".split("e")
        return f"{mantissa}e{int(exp):+d}"
    s = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if s in {"-0", ""} else s


def format_angle_label(value: float) -> str:
    return f"{value:g}°"


def ticks(
    vmin: float,
    vmax: float,
    target_count: int = settings.TARGET_TICK_COUNT,
    to_device: Optional[Callable[[float], float]] = None,
) -> List[Tick]:
    """Linear ticks with labels. Without `to_device` the device position is the value."""
    project = to_device or (lambda v: v)
    return [Tick(v, project(v), format_tick_label(v)) for v in tick_values(vmin, vmax, target_count)]


def log_ticks(vmin: float, vmax: float, to_device: Optional[Callable[[float], float]] = None) -> List[Tick]:
    project = to_device or (lambda v: v)
    return [Tick(v, project(v), format_tick_label(v)) for v in log_tick_values(vmin, vmax)]


def polar_angle_ticks(tmin: float, tmax: float) -> List[Tick]:
    """Device position is the angle in radians from the polar origin direction."""
    span = tmax - tmin
    return [
        Tick(v, (v - tmin) / span * 2.0 * math.pi, format_angle_label(v))
        for v in polar_angle_values(tmin, tmax)
    ]


# ============================================================================
# COMPOSITION
# ============================================================================

@dataclass(frozen=True)
class AxisLayer:
    grid: Group
    axis_lines: Group
    ticks: Group
    labels: Group
    x_ticks: Tuple[Tick, ...] = ()
    y_ticks: Tuple[Tick, ...] = ()


def _line(p0: Tuple[float, float], p1: Tuple[float, float]) -> Subpath:
    return Subpath((p0, p1))


def _grid_path(subpaths: List[Subpath], minor: bool = False) -> Path:
    return Path(
        tuple(subpaths),
        stroke=Layout.GRID_COLOR,
        stroke_width=Layout.GRID_WIDTH,
        opacity=Layout.MINOR_GRID_OPACITY if minor else Layout.GRID_OPACITY,
    )


def _arrow(tip: Tuple[float, float], direction: Tuple[float, float]) -> Polygon:
    pts = arrowhead_points(tip, direction, Layout.ARROW_SIZE, Layout.ARROW_SIZE / 2.0)
    return Polygon(tuple(pts), fill=Layout.AXIS_COLOR)


def _minor_values(major: Sequence[float], lo: float, hi: float, log_scale: bool) -> List[float]:
    out: List[float] = []
    if log_scale:
        decades = sorted({math.floor(math.log10(v) + 1e-9) for v in major}) if major else []
        if decades:
            decades = [decades[0] - 1] + decades
        for d in decades:
            for m in range(2, 10):
                v = m * 10.0 ** d
                if lo <= v <= hi:
                    out.append(v)
        return [v for v in out if all(abs(v - m) > 1e-12 * max(1.0, abs(m)) for m in major)]

    if len(major) < 2:
        return out
    step = (major[1] - major[0]) / Layout.MINOR_DIVISIONS
    v = major[0] - step * Layout.MINOR_DIVISIONS
    while v <= hi + step * 1e-9:
        if v >= lo - step * 1e-9 and all(abs(v - m) > step * 1e-6 for m in major):
            out.append(v)
        v += step
    return out


def _axis_text(spec: ChartSpec, t: CoordinateTransform, polar: bool) -> List[Primitive]:
    out: List[Primitive] = []
    cx = t.plot_left + t.plot_width / 2.0
    if spec.title:
        out.append(Text(
            (cx, t.plot_top / 2.0),
            clean_label_text(spec.title),
            font_size=Layout.TITLE_FONT_SIZE,
            weight="bold",
        ))
    if polar:
        return out
    if spec.xlabel:
        out.append(Text(
            (cx, t.plot_bottom + Layout.AXIS_LABEL_OFFSET),
            clean_label_text(spec.xlabel),
            font_size=Layout.AXIS_LABEL_FONT_SIZE,
            weight="bold",
        ))
    if spec.ylabel:
        out.append(Text(
            (15.0, t.plot_top + t.plot_height / 2.0),
            clean_label_text(spec.ylabel),
            font_size=Layout.AXIS_LABEL_FONT_SIZE,
            weight="bold",
            rotation=-90.0,
        ))
    return out


def _cartesian_layer(spec: ChartSpec, t: CoordinateTransform, target: int) -> AxisLayer:
    x0, x1 = t.x_range
    y0, y1 = t.y_range

    if t.x_is_log:
        xt = log_ticks(x0, x1, t.x_to_device)
    else:
        xt = ticks(x0, x1, target, t.x_to_device)
    if t.y_is_log:
        yt = log_ticks(y0, y1, t.y_to_device)
    else:
        yt = ticks(y0, y1, target, t.y_to_device)

    left, right = t.plot_left, t.plot_right
    top, bottom = t.plot_top, t.plot_bottom

    # --- grid ---
    grid_children: List[Primitive] = []
    if spec.grid in (GridMode.MINOR, GridMode.BOTH):
        minor: List[Subpath] = []
        for v in _minor_values([k.value for k in xt], x0, x1, t.x_is_log):
            dx = t.x_to_device(v)
            minor.append(_line((dx, top), (dx, bottom)))
        for v in _minor_values([k.value for k in yt], y0, y1, t.y_is_log):
            dy = t.y_to_device(v)
            minor.append(_line((left, dy), (right, dy)))
        if minor:
            grid_children.append(_grid_path(minor, minor=True))
    if spec.grid in (GridMode.MAJOR, GridMode.BOTH):
        major = [_line((k.device_position, top), (k.device_position, bottom)) for k in xt]
        major += [_line((left, k.device_position), (right, k.device_position)) for k in yt]
        if major:
            grid_children.append(_grid_path(major))

    # --- where the axis lines sit ---
    mode = spec.axis_lines
    axis_y = bottom
    axis_x = right if mode is AxisLines.RIGHT else left
    if mode is AxisLines.CENTER:
        if not t.y_is_log and y0 <= 0.0 <= y1:
            axis_y = t.y_to_device(0.0)
        if not t.x_is_log and x0 <= 0.0 <= x1:
            axis_x = t.x_to_device(0.0)

    arrows = spec.arrows if spec.arrows is not None else mode in (AxisLines.LEFT, AxisLines.RIGHT, AxisLines.CENTER)

    line_children: List[Primitive] = []
    if mode is AxisLines.BOX:
        line_children.append(Path(
            (Subpath(((left, top), (right, top), (right, bottom), (left, bottom)), closed=True),),
            stroke=Layout.AXIS_COLOR,
            stroke_width=Layout.AXIS_WIDTH,
        ))
    elif mode is not AxisLines.NONE:
        line_children.append(Path(
            (_line((left, axis_y), (right, axis_y)), _line((axis_x, bottom), (axis_x, top))),
            stroke=Layout.AXIS_COLOR,
            stroke_width=Layout.AXIS_WIDTH,
        ))
    if arrows and mode is not AxisLines.NONE:
        if mode is AxisLines.BOX:
            line_children.append(_arrow((right + Layout.ARROW_SIZE, bottom), (1.0, 0.0)))
            line_children.append(_arrow((left, top - Layout.ARROW_SIZE), (0.0, -1.0)))
        else:
            line_children.append(_arrow((right + Layout.ARROW_SIZE, axis_y), (1.0, 0.0)))
            line_children.append(_arrow((axis_x, top - Layout.ARROW_SIZE), (0.0, -1.0)))

    # --- tick marks + labels ---
    tick_children: List[Primitive] = []
    if mode is not AxisLines.NONE:
        marks: List[Subpath] = []
        texts: List[Primitive] = []
        label_side = 1.0 if mode is not AxisLines.RIGHT else -1.0
        for k in xt:
            marks.append(_line((k.device_position, axis_y), (k.device_position, axis_y + Layout.TICK_LENGTH)))
            if mode is AxisLines.CENTER and abs(k.value) < 1e-10 and axis_x != left:
                continue
            texts.append(Text(
                (k.device_position, axis_y + Layout.TICK_LABEL_OFFSET),
                k.label,
                font_size=Layout.TICK_FONT_SIZE,
            ))
        for k in yt:
            marks.append(_line(
                (axis_x, k.device_position),
                (axis_x - label_side * Layout.TICK_LENGTH, k.device_position),
            ))
            if mode is AxisLines.CENTER and abs(k.value) < 1e-10 and axis_y != bottom:
                continue
            texts.append(Text(
                (axis_x - label_side * (Layout.TICK_LENGTH + 3.0), k.device_position),
                k.label,
                font_size=Layout.TICK_FONT_SIZE,
                anchor="end" if label_side > 0 else "start",
            ))
        if marks:
            tick_children.append(Path(tuple(marks), stroke=Layout.AXIS_COLOR, stroke_width=Layout.AXIS_WIDTH))
        tick_children.extend(texts)

    return AxisLayer(
        grid=Group("grid", tuple(grid_children)),
        axis_lines=Group("axis-lines", tuple(line_children)),
        ticks=Group("ticks", tuple(tick_children)),
        labels=Group("axis-labels", tuple(_axis_text(spec, t, polar=False))),
        x_ticks=tuple(xt),
        y_ticks=tuple(yt),
    )


def _polar_layer(spec: ChartSpec, t: CoordinateTransform, target: int) -> AxisLayer:
    r0, r1 = t.x_range
    t0, t1 = t.y_range
    cx, cy = t.center
    rmax = t.max_radius

    rt = [k for k in ticks(r0, r1, target, t.radius_to_device) if k.value > r0]
    at = polar_angle_ticks(t0, t1)

    def spoke_end(a: float, radius: float) -> Tuple[float, float]:
        return (cx + radius * math.cos(a), cy - radius * math.sin(a))

    grid_children: List[Primitive] = []
    if spec.grid is not GridMode.NONE:
        for k in rt:
            grid_children.append(Circle(
                (cx, cy), k.device_position,
                stroke=Layout.GRID_COLOR, stroke_width=Layout.GRID_WIDTH, opacity=Layout.GRID_OPACITY,
            ))
        spokes = [_line((cx, cy), spoke_end(k.device_position, rmax)) for k in at]
        if spokes:
            grid_children.append(_grid_path(spokes))

    line_children: List[Primitive] = []
    if spec.axis_lines is not AxisLines.NONE:
        line_children.append(Circle((cx, cy), rmax, stroke=Layout.AXIS_COLOR, stroke_width=Layout.AXIS_WIDTH))

    tick_children: List[Primitive] = []
    if spec.axis_lines is not AxisLines.NONE:
        for k in at:
            tick_children.append(Text(
                spoke_end(k.device_position, rmax + Layout.TICK_LABEL_OFFSET),
                k.label,
                font_size=Layout.TICK_FONT_SIZE,
            ))
        for k in rt:
            tick_children.append(Text(
                (cx + k.device_position, cy + Layout.TICK_LABEL_OFFSET * 0.8),
                k.label,
                font_size=Layout.TICK_FONT_SIZE,
            ))

    return AxisLayer(
        grid=Group("grid", tuple(grid_children)),
        axis_lines=Group("axis-lines", tuple(line_children)),
        ticks=Group("ticks", tuple(tick_children)),
        labels=Group("axis-labels", tuple(_axis_text(spec, t, polar=True))),
        x_ticks=tuple(rt),
        y_ticks=tuple(at),
    )


def compose_axes(spec: ChartSpec, transform: CoordinateTransform) -> AxisLayer:
    target = spec.tick_count or settings.TARGET_TICK_COUNT
    if transform.geometry is GeometryKind.POLAR:
        return _polar_layer(spec, transform, target)
    return _cartesian_layer(spec, transform, target)
