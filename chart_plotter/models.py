"""
models.py — Value types shared across chart_plotter

This file contains ONLY:
- ChartSpec / SeriesDeclaration / SeriesStyle / TableOptions (parser output)
- DataPoint and Tick (derived per render)

Everything here is frozen: a new parse replaces a ChartSpec wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple, Union

from .constants import (
    AxisLines,
    DashStyle,
    GeometryKind,
    GridMode,
    LegendAnchor,
    MarkerShape,
    SeriesDefaults,
    SourceKind,
)

Payload = Union[str, Tuple[str, str]]
Column = Union[int, str]


@dataclass(frozen=True)
class DataPoint:
    x: float
    y: float
    valid: bool = True
    label: Optional[str] = None


@dataclass(frozen=True)
class Tick:
    value: float
    device_position: float
    label: str


@dataclass(frozen=True)
class TableOptions:
    """Column selection for table payloads. header=None means auto-detect."""
    header: Optional[bool] = None
    delimiter: Optional[str] = None  # None: comma if present, else whitespace
    x: Column = 0
    y: Column = 1
    label: Optional[Column] = None


@dataclass(frozen=True)
class SeriesStyle:
    color: Optional[str] = None  # None: palette colour by series index
    line_width: float = SeriesDefaults.LINE_WIDTH
    dash: DashStyle = DashStyle.SOLID
    opacity: float = SeriesDefaults.OPACITY
    marker: Optional[MarkerShape] = None  # None: circle for data series, none for curves
    marker_size: float = SeriesDefaults.MARKER_SIZE
    only_marks: bool = False
    no_marks: bool = False
    smooth: bool = False
    fill: Optional[str] = None  # "auto": same as the stroke colour
    fill_opacity: float = SeriesDefaults.FILL_OPACITY

    def with_defaults(self, color: str, marker: MarkerShape) -> "SeriesStyle":
        """Return a copy with the palette colour and default marker filled in."""
        resolved = self.color or color
        return replace(
            self,
            color=resolved,
            marker=self.marker if self.marker is not None else marker,
            fill=resolved if self.fill == "auto" else self.fill,
        )


@dataclass(frozen=True)
class SeriesDeclaration:
    source: SourceKind
    payload: Payload
    style: SeriesStyle = field(default_factory=SeriesStyle)
    domain: Optional[Tuple[float, float]] = None
    samples: Optional[int] = None
    variable: Optional[str] = None
    table: TableOptions = field(default_factory=TableOptions)
    label: Optional[str] = None

    def __post_init__(self) -> None:
        if self.source is SourceKind.PARAMETRIC:
            if not (isinstance(self.payload, tuple) and len(self.payload) == 2):
                raise ValueError("parametric series need an (x, y) expression pair")
        elif not isinstance(self.payload, str):
            raise ValueError(f"{self.source.value} series need a text payload")
        if self.samples is not None and self.samples < 2:
            raise ValueError("samples must be >= 2")

    def with_label(self, label: str) -> "SeriesDeclaration":
        return replace(self, label=label)


@dataclass(frozen=True)
class ChartSpec:
    title: str = ""
    xlabel: str = ""
    ylabel: str = ""
    xmin: Optional[float] = None
    xmax: Optional[float] = None
    ymin: Optional[float] = None
    ymax: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    grid: GridMode = GridMode.MAJOR
    axis_lines: AxisLines = AxisLines.BOX
    axis_equal: bool = False
    legend_anchor: LegendAnchor = LegendAnchor.NORTH_EAST
    domain: Optional[Tuple[float, float]] = None
    samples: Optional[int] = None
    geometry: GeometryKind = GeometryKind.CARTESIAN
    log_x: bool = False
    log_y: bool = False
    tick_count: Optional[int] = None
    arrows: Optional[bool] = None  # None: arrowheads on open axis lines only
    series: Tuple[SeriesDeclaration, ...] = ()
