# chart_plotter/constants.py
"""
Package-wide small constants & enums.

Import examples:
    from .constants import GeometryKind, MarkerShape, DASH_PATTERNS, Layout
"""

from enum import Enum
from typing import Dict, Final, Optional, Tuple


# --------- Closed enums (parser maps option strings onto these) ---------

class GeometryKind(str, Enum):
    CARTESIAN = "cartesian"
    POLAR = "polar"
    LOG = "log"


class SourceKind(str, Enum):
    COORDINATES = "coordinates"
    TABLE = "table"
    FUNCTION = "function"
    PARAMETRIC = "parametric"
    POLAR = "polar"


class MarkerShape(str, Enum):
    CIRCLE = "circle"
    STAR = "star"
    CROSS = "cross"
    PLUS = "plus"
    SQUARE = "square"
    TRIANGLE = "triangle"
    NONE = "none"

    @classmethod
    def from_option(cls, value: Optional[str]) -> "MarkerShape":
        """Map a DSL mark name (pgfplots spellings too) onto a shape; unknown names draw circles."""
        s = str(value or "").strip().lower()
        aliases = {
            "*": cls.CIRCLE,
            "o": cls.CIRCLE,
            "x": cls.CROSS,
            "+": cls.PLUS,
            "|": cls.PLUS,
            "square*": cls.SQUARE,
            "triangle*": cls.TRIANGLE,
            "star*": cls.STAR,
        }
        if s in aliases:
            return aliases[s]
        try:
            return cls(s)
        except ValueError:
            return cls.CIRCLE


class DashStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"
    DASHDOTTED = "dashdotted"


class GridMode(str, Enum):
    NONE = "none"
    MAJOR = "major"
    MINOR = "minor"
    BOTH = "both"


class AxisLines(str, Enum):
    BOX = "box"
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"
    NONE = "none"


class LegendAnchor(str, Enum):
    NORTH_EAST = "north east"
    NORTH_WEST = "north west"
    SOUTH_EAST = "south east"
    SOUTH_WEST = "south west"
    OUTER_NORTH_EAST = "outer north east"


# --------- Dash arrays (device units) ---------

DASH_PATTERNS: Final[Dict[DashStyle, Tuple[float, ...]]] = {
    DashStyle.SOLID: (),
    DashStyle.DASHED: (5.0, 5.0),
    DashStyle.DOTTED: (2.0, 2.0),
    DashStyle.DASHDOTTED: (10.0, 5.0, 2.0, 5.0),
}

# Shorter repeats so the pattern is visible inside a legend swatch
LEGEND_DASH_PATTERNS: Final[Dict[DashStyle, Tuple[float, ...]]] = {
    DashStyle.SOLID: (),
    DashStyle.DASHED: (3.0, 3.0),
    DashStyle.DOTTED: (1.0, 2.0),
    DashStyle.DASHDOTTED: (6.0, 2.0, 1.0, 2.0),
}


# --------- Layout (device units) ---------

class Layout:
    """Margins, tick and label metrics around the plot area."""
    MARGIN_LEFT: Final[float] = 60.0
    MARGIN_RIGHT: Final[float] = 20.0
    MARGIN_TOP: Final[float] = 20.0
    MARGIN_TOP_WITH_TITLE: Final[float] = 40.0
    MARGIN_BOTTOM: Final[float] = 40.0
    MARGIN_BOTTOM_WITH_LABEL: Final[float] = 60.0

    TICK_LENGTH: Final[float] = 5.0
    TICK_LABEL_OFFSET: Final[float] = 15.0
    TICK_FONT_SIZE: Final[float] = 12.0
    AXIS_LABEL_FONT_SIZE: Final[float] = 14.0
    AXIS_LABEL_OFFSET: Final[float] = 45.0
    TITLE_FONT_SIZE: Final[float] = 16.0
    ARROW_SIZE: Final[float] = 8.0
    AXIS_COLOR: Final[str] = "#000000"
    AXIS_WIDTH: Final[float] = 1.0

    GRID_COLOR: Final[str] = "#e0e0e0"
    GRID_WIDTH: Final[float] = 0.5
    GRID_OPACITY: Final[float] = 0.7
    MINOR_GRID_OPACITY: Final[float] = 0.4
    MINOR_DIVISIONS: Final[int] = 5

    POLAR_ANGLE_STEP: Final[float] = 45.0  # degrees


class SeriesDefaults:
    COLOR: Final[str] = "#0066cc"
    LINE_WIDTH: Final[float] = 1.5
    MARKER_SIZE: Final[float] = 3.0
    MARKER_STROKE: Final[float] = 1.5
    OPACITY: Final[float] = 1.0
    FILL_OPACITY: Final[float] = 0.3
    SMOOTHING: Final[float] = 0.3  # tangent scale as a fraction of segment length


class LegendStyle:
    FONT_SIZE: Final[float] = 12.0
    PADDING: Final[float] = 8.0
    ROW_SPACING: Final[float] = 4.0
    ICON_WIDTH: Final[float] = 20.0
    ICON_GAP: Final[float] = 8.0
    MARGIN: Final[float] = 20.0
    CHAR_WIDTH: Final[float] = 0.6  # approx glyph width as a fraction of font size
    BACKGROUND: Final[str] = "#ffffff"
    BACKGROUND_OPACITY: Final[float] = 0.9
    BORDER: Final[str] = "#cccccc"
    TEXT_COLOR: Final[str] = "#000000"


# --------- Length units -> device units (px) ---------

UNIT_FACTORS: Final[Dict[str, float]] = {
    "cm": 37.8,
    "mm": 3.78,
    "in": 96.0,
    "pt": 1.33,
    "px": 1.0,
}
