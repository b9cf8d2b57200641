"""
geometry_bounds.py — Axis range resolution for chart_plotter

This file contains ONLY:
- auto-ranging from sampled series (padded so data stays in-frame)
- explicit bound overrides and degenerate-range widening
- the axis-equal adjustment

It intentionally does NOT contain:
- ChartManager / render orchestration (plotter.py)
- tick planning (axes.py)
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from config import settings

from .models import ChartSpec, DataPoint
from .utils import setup_logger

logger = setup_logger(__name__)

Range = Tuple[float, float]

MIN_SPAN = 1.0  # widen zero-width data ranges to this span


def _valid_values(series: Iterable[Sequence[DataPoint]], axis: str, positive_only: bool = False) -> List[float]:
    out: List[float] = []
    for points in series:
        for p in points:
            if not p.valid:
                continue
            v = getattr(p, axis)
            if not math.isfinite(v):
                continue
            if positive_only and v <= 0:
                continue
            out.append(float(v))
    return out


def _pad_linear(lo: float, hi: float, pad_frac: float) -> Range:
    if hi - lo < 1e-12:
        c = 0.5 * (lo + hi)
        return (c - 0.5 * MIN_SPAN, c + 0.5 * MIN_SPAN)
    pad = (hi - lo) * pad_frac
    return (lo - pad, hi + pad)


def _pad_log(lo: float, hi: float, pad_frac: float) -> Range:
    llo, lhi = math.log10(lo), math.log10(hi)
    if lhi - llo < 1e-12:
        return (10.0 ** (llo - 0.5), 10.0 ** (lhi + 0.5))
    pad = (lhi - llo) * pad_frac
    return (10.0 ** (llo - pad), 10.0 ** (lhi + pad))


def _apply_bounds(auto: Range, lo: Optional[float], hi: Optional[float], log_scale: bool) -> Range:
    a = auto[0] if lo is None else lo
    b = auto[1] if hi is None else hi
    if a > b:
        a, b = b, a
    if log_scale and b <= 0:
        logger.warning("Bounds: log axis needs a positive bound, got [%g, %g]; using [%g, %g]", a, b, auto[0], auto[1])
        a, b = auto
    if b - a < 1e-12:
        if log_scale and a > 0:
            a, b = a / math.sqrt(10.0), b * math.sqrt(10.0)
        else:
            a, b = a - 0.5 * MIN_SPAN, b + 0.5 * MIN_SPAN
    if log_scale and a <= 0:
        a = min(settings.LOG_EPSILON, b / 10.0)
    return (a, b)


def resolve_axis_range(
    values: Sequence[float],
    lo: Optional[float],
    hi: Optional[float],
    log_scale: bool = False,
    pad_frac: float = settings.AUTO_RANGE_PADDING,
) -> Range:
    """
    Explicit bounds win; an unset bound comes from the padded data extent,
    or from the configured default range when there is no data.
    """
    if values:
        vmin, vmax = min(values), max(values)
        auto = _pad_log(vmin, vmax, pad_frac) if log_scale else _pad_linear(vmin, vmax, pad_frac)
    elif log_scale:
        auto = (1.0, 10.0)
    else:
        auto = (settings.DEFAULT_RANGE_MIN, settings.DEFAULT_RANGE_MAX)
    return _apply_bounds(auto, lo, hi, log_scale)


def compute_ranges(
    spec: ChartSpec,
    series: Sequence[Sequence[DataPoint]],
    log_x: bool = False,
    log_y: bool = False,
    pad_frac: float = settings.AUTO_RANGE_PADDING,
) -> Tuple[Range, Range]:
    """(x_range, y_range) for a cartesian or log chart."""
    xs = _valid_values(series, "x", positive_only=log_x)
    ys = _valid_values(series, "y", positive_only=log_y)
    x_range = resolve_axis_range(xs, spec.xmin, spec.xmax, log_x, pad_frac)
    y_range = resolve_axis_range(ys, spec.ymin, spec.ymax, log_y, pad_frac)
    return x_range, y_range


def compute_polar_ranges(
    spec: ChartSpec,
    series: Sequence[Sequence[DataPoint]],
    pad_frac: float = settings.AUTO_RANGE_PADDING,
) -> Tuple[Range, Range]:
    """
    (radius_range, angle_range). Radius starts at 0 unless xmin says otherwise
    and grows to the largest radius plus padding; angles default to a full turn.
    """
    radii = [abs(v) for v in _valid_values(series, "x")]
    r_lo = 0.0 if spec.xmin is None else spec.xmin
    if spec.xmax is not None:
        r_hi = spec.xmax
    elif radii:
        r_hi = max(radii) * (1.0 + pad_frac)
    else:
        r_hi = 1.0
    if r_hi <= r_lo:
        r_hi = r_lo + MIN_SPAN

    t_lo = 0.0 if spec.ymin is None else spec.ymin
    t_hi = 360.0 if spec.ymax is None else spec.ymax
    if t_hi <= t_lo:
        t_lo, t_hi = 0.0, 360.0
    return (r_lo, r_hi), (t_lo, t_hi)


def apply_axis_equal(x_range: Range, y_range: Range, plot_width: float, plot_height: float) -> Tuple[Range, Range]:
    """Grow the range with fewer data units per device unit so both axes share one scale."""
    ux = (x_range[1] - x_range[0]) / plot_width
    uy = (y_range[1] - y_range[0]) / plot_height
    if math.isclose(ux, uy):
        return x_range, y_range
    if ux > uy:
        c = 0.5 * (y_range[0] + y_range[1])
        half = 0.5 * ux * plot_height
        return x_range, (c - half, c + half)
    c = 0.5 * (x_range[0] + x_range[1])
    half = 0.5 * uy * plot_width
    return (c - half, c + half), y_range
