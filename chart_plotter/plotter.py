"""
plotter.py — Chart Plotter entry point (controller/orchestrator)

This file contains ONLY:
- render_chart (ChartSpec + device size -> primitive tree)
- ChartManager (load/render session state)
- RenderCache (caller-owned, bounded)
- dynamic_chart_plotter (one-shot entry point)

Series rendering lives in `charts.py`, axes in `axes.py`, the legend in
`legend.py`, range resolution in `geometry_bounds.py`.
"""

from __future__ import annotations

import math
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from config import settings

from .axes import compose_axes
from .charts import render_series
from .constants import GeometryKind, LegendAnchor, LegendStyle, MarkerShape, SourceKind
from .coordinates import CoordinateTransform, compute_margins, make_transform
from .errors import ParseError, SeriesError
from .geometry_bounds import apply_axis_equal, compute_polar_ranges, compute_ranges
from .legend import LegendEntry, layout, measure
from .models import ChartSpec, DataPoint, SeriesDeclaration
from .parser import parse
from .primitives import Group, Primitive
from .series import clamp_samples, produce_series
from .utils import get_color_cycle, setup_logger, truncate

logger = setup_logger(__name__)

Range = Tuple[float, float]


# ============================================================================
# RESULT
# ============================================================================

@dataclass(frozen=True)
class RenderResult:
    tree: Group
    x_range: Range
    y_range: Range
    width: float
    height: float
    warnings: Tuple[str, ...] = ()
    transform: Optional[CoordinateTransform] = field(default=None, compare=False)


# ============================================================================
# SERIES RESOLUTION
# ============================================================================

def _series_domain(decl: SeriesDeclaration, spec: ChartSpec) -> Range:
    """Series domain > axis domain > axis x bounds (functions) > configured default."""
    if decl.domain is not None:
        return decl.domain
    if spec.domain is not None:
        return spec.domain
    if decl.source in (SourceKind.PARAMETRIC, SourceKind.POLAR):
        return (0.0, 2.0 * math.pi)
    if spec.geometry is not GeometryKind.POLAR and spec.xmin is not None and spec.xmax is not None:
        return (spec.xmin, spec.xmax)
    return (settings.DEFAULT_DOMAIN_MIN, settings.DEFAULT_DOMAIN_MAX)


def _default_marker(decl: SeriesDeclaration) -> MarkerShape:
    if decl.source in (SourceKind.COORDINATES, SourceKind.TABLE):
        return MarkerShape.CIRCLE
    return MarkerShape.NONE


def _log_flags(spec: ChartSpec) -> Tuple[bool, bool]:
    if spec.geometry is not GeometryKind.LOG:
        return (False, False)
    if not spec.log_x and not spec.log_y:
        return (True, True)
    return (spec.log_x, spec.log_y)


def produce_all(spec: ChartSpec) -> Tuple[List[Tuple[int, SeriesDeclaration, List[DataPoint]]], List[str]]:
    """Points for every series that can be produced, plus warnings for the rest."""
    produced: List[Tuple[int, SeriesDeclaration, List[DataPoint]]] = []
    warnings: List[str] = []
    polar_axis = spec.geometry is GeometryKind.POLAR
    for i, decl in enumerate(spec.series):
        domain = _series_domain(decl, spec)
        samples = clamp_samples(decl.samples or spec.samples)
        try:
            points = produce_series(decl, domain, samples, polar_axis=polar_axis)
        except SeriesError as e:
            msg = f"series {i} skipped: {e}"
            logger.warning("Render: %s", msg)
            warnings.append(msg)
            continue
        produced.append((i, decl, points))
    return produced, warnings


# ============================================================================
# RENDER
# ============================================================================

def render_chart(spec: ChartSpec, width: Optional[float] = None, height: Optional[float] = None) -> RenderResult:
    """
    Pure render of one specification. Raises ValueError only for an unusable
    canvas size; bad series are skipped and reported in `warnings`.
    """
    w = float(width if width is not None else (spec.width or settings.DEFAULT_WIDTH))
    h = float(height if height is not None else (spec.height or settings.DEFAULT_HEIGHT))
    if not (math.isfinite(w) and math.isfinite(h)) or w <= 0 or h <= 0:
        raise ValueError(f"Invalid canvas size {w:g}x{h:g}")

    produced, warnings = produce_all(spec)
    log_x, log_y = _log_flags(spec)

    # --- ranges ---
    point_lists = [pts for _, _, pts in produced]
    if spec.geometry is GeometryKind.POLAR:
        x_range, y_range = compute_polar_ranges(spec, point_lists)
    else:
        x_range, y_range = compute_ranges(spec, point_lists, log_x, log_y)

    # --- styles + legend rows ---
    styled = []
    entries: List[LegendEntry] = []
    for i, decl, points in produced:
        style = decl.style.with_defaults(get_color_cycle(i), _default_marker(decl))
        styled.append((i, points, style))
        if decl.label:
            entries.append(LegendEntry.from_style(decl.label, style))

    extra_right = 0.0
    if entries and spec.legend_anchor is LegendAnchor.OUTER_NORTH_EAST:
        extra_right = measure(entries)[0] + LegendStyle.MARGIN
    margins = compute_margins(bool(spec.title), bool(spec.xlabel), extra_right)

    if spec.axis_equal and spec.geometry is GeometryKind.CARTESIAN:
        pw = w - margins.left - margins.right
        ph = h - margins.top - margins.bottom
        if pw > 0 and ph > 0:
            x_range, y_range = apply_axis_equal(x_range, y_range, pw, ph)

    transform = make_transform(spec.geometry, x_range, y_range, w, h, margins, log_x, log_y)

    # --- primitives in paint order ---
    axes = compose_axes(spec, transform)
    series_groups: List[Primitive] = []
    for i, points, style in styled:
        rendered = render_series(points, style, transform)
        series_groups.append(rendered.to_group(f"series-{i}", clip=transform.plot_area))

    legend = layout(
        entries,
        spec.legend_anchor,
        (transform.plot_width, transform.plot_height),
        origin=(transform.plot_left, transform.plot_top),
    )

    children: List[Primitive] = [axes.grid, axes.axis_lines, axes.ticks, *series_groups, axes.labels]
    if legend is not None:
        children.append(legend)

    logger.debug(
        "Render: %gx%g, %d/%d series, x=[%g, %g] y=[%g, %g]",
        w, h, len(series_groups), len(spec.series), x_range[0], x_range[1], y_range[0], y_range[1],
    )
    return RenderResult(
        tree=Group("chart", tuple(children)),
        x_range=x_range,
        y_range=y_range,
        width=w,
        height=h,
        warnings=tuple(warnings),
        transform=transform,
    )


# ============================================================================
# CACHE
# ============================================================================

class RenderCache:
    """Bounded LRU of render results keyed by (source, width, height). Owned by the caller."""

    def __init__(self, maxsize: int = settings.RENDER_CACHE_SIZE) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        self.maxsize = maxsize
        self._data: "OrderedDict[Tuple[str, Optional[float], Optional[float]], RenderResult]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._data)

    def get(self, source: str, width: Optional[float], height: Optional[float]) -> Optional[RenderResult]:
        key = (source, width, height)
        with self._lock:
            result = self._data.get(key)
            if result is None:
                self.misses += 1
                return None
            self._data.move_to_end(key)
            self.hits += 1
            return result

    def put(self, source: str, width: Optional[float], height: Optional[float], result: RenderResult) -> None:
        key = (source, width, height)
        with self._lock:
            self._data[key] = result
            self._data.move_to_end(key)
            while len(self._data) > self.maxsize:
                self._data.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


# ============================================================================
# MANAGER
# ============================================================================

class ChartState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


class ChartManager:
    """
    Holds the current ChartSpec. A failed load keeps the previous spec;
    each render works on the spec it saw when it started.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._spec: Optional[ChartSpec] = None
        self._last: Optional[RenderResult] = None

    @property
    def state(self) -> ChartState:
        return ChartState.LOADED if self._spec is not None else ChartState.UNLOADED

    @property
    def spec(self) -> Optional[ChartSpec]:
        return self._spec

    @property
    def last_range(self) -> Optional[Tuple[Range, Range]]:
        last = self._last
        return (last.x_range, last.y_range) if last is not None else None

    def load_source(self, text: str) -> ChartSpec:
        try:
            spec = parse(text)
        except ParseError as e:
            logger.warning("ChartManager: load failed, keeping previous chart: %s", e)
            raise
        self.load_spec(spec)
        logger.info("ChartManager: loaded %d series from '%s'", len(spec.series), truncate(str(text).strip(), 60))
        return spec

    def load_spec(self, spec: ChartSpec) -> None:
        with self._lock:
            self._spec = spec
            self._last = None

    def unload(self) -> None:
        with self._lock:
            self._spec = None
            self._last = None

    def render_report(self, width: Optional[float] = None, height: Optional[float] = None) -> Optional[RenderResult]:
        with self._lock:
            spec = self._spec
        if spec is None:
            return None
        try:
            result = render_chart(spec, width, height)
        except ValueError as e:
            logger.warning("ChartManager: cannot render: %s", e)
            return None
        with self._lock:
            if self._spec is spec:
                self._last = result
        return result

    def render(self, width: Optional[float] = None, height: Optional[float] = None) -> Optional[Group]:
        result = self.render_report(width, height)
        return result.tree if result is not None else None


# ============================================================================
# MAIN DYNAMIC CHART PLOTTER FUNCTION
# ============================================================================

def dynamic_chart_plotter(
    source: str,
    width: Optional[float] = None,
    height: Optional[float] = None,
    cache: Optional[RenderCache] = None,
) -> RenderResult:
    """
    Parse + render in one call. Raises ParseError for bad source and
    ValueError for an unusable canvas size.
    """
    if cache is not None:
        hit = cache.get(source, width, height)
        if hit is not None:
            return hit

    result = render_chart(parse(source), width, height)

    if cache is not None:
        cache.put(source, width, height, result)
    return result
