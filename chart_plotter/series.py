"""
series.py — Point sequences from series sources

This file contains ONLY:
- explicit coordinate payloads -> points
- delimited tables (CSV / whitespace) -> points
- symbolic sampling: y(x), (x(t), y(t)), r(theta)
- produce_series(): one SeriesDeclaration -> points

Invalid samples are kept as DataPoint(valid=False) so renderers can break
the path there. Statistics / filtering / resampling live in processing.py.
"""

from __future__ import annotations

import csv
import io
import math
import re
from typing import List, Optional, Sequence, Tuple

import numpy as np

from config import settings

from .constants import SourceKind
from .errors import ExpressionError, SeriesError
from .evaluator import CompiledExpression, compile_expression, evaluate_constant
from .models import Column, DataPoint, SeriesDeclaration, TableOptions
from .utils import setup_logger, truncate

logger = setup_logger(__name__)

Domain = Tuple[float, float]

_COORD_RE = re.compile(r"\(([^()]*)\)\s*(?:\[([^\]]*)\])?")
_POLE_BISECTIONS = 48
_POLE_GROWTH = 10.0


def clamp_samples(n: Optional[int], default: int = settings.DEFAULT_SAMPLES) -> int:
    if n is None:
        n = default
    return max(2, min(int(n), settings.MAX_SAMPLES))


def _number(cell: str) -> Optional[float]:
    s = cell.strip()
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        pass
    # pi, 2*pi, 1/3 ...
    return evaluate_constant(s)


# ============================================================================
# COORDINATES
# ============================================================================

def parse_coordinates(payload: str) -> List[DataPoint]:
    """
    `(1,2) (3,4) [label] ...` -> points. A pair that is not two finite numbers
    (e.g. `(2,nan)`) becomes an invalid point so the path breaks there.
    """
    points: List[DataPoint] = []
    for m in _COORD_RE.finditer(payload or ""):
        parts = [p.strip() for p in m.group(1).split(",")]
        label = (m.group(2) or "").strip() or None
        if len(parts) < 2:
            points.append(DataPoint(math.nan, math.nan, False, label))
            continue
        x = _number(parts[0])
        y = _number(parts[1])
        if x is None or y is None or not (math.isfinite(x) and math.isfinite(y)):
            points.append(DataPoint(x if x is not None else math.nan, math.nan, False, label))
            continue
        points.append(DataPoint(x, y, True, label))
    return points


# ============================================================================
# TABLES
# ============================================================================

def _data_lines(payload: str) -> List[str]:
    out = []
    for raw in (payload or "").splitlines():
        s = raw.strip()
        if not s or s.startswith("#") or s.startswith("%"):
            continue
        out.append(s)
    return out


def _split_rows(lines: Sequence[str], delimiter: Optional[str]) -> List[List[str]]:
    if delimiter is None:
        delimiter = "," if any("," in ln for ln in lines) else None
    if delimiter is None or delimiter.isspace():
        return [ln.split() for ln in lines]
    reader = csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter, skipinitialspace=True)
    return [list(row) for row in reader]


def _resolve_column(col: Column, header: Optional[List[str]], what: str) -> int:
    if isinstance(col, int):
        return col
    if header is None:
        raise SeriesError(f"Table column {col!r} for {what} needs a header row")
    names = [h.strip() for h in header]
    if col in names:
        return names.index(col)
    lowered = [h.lower() for h in names]
    if col.lower() in lowered:
        return lowered.index(col.lower())
    raise SeriesError(f"Table has no column {col!r} for {what} (columns: {', '.join(names)})")


def parse_table(payload: str, options: TableOptions = TableOptions()) -> List[DataPoint]:
    """
    Rows whose x or y cell is missing or non-numeric are skipped.
    header=None treats the first row as a header when any of its cells is not a number.
    """
    rows = _split_rows(_data_lines(payload), options.delimiter)
    if not rows:
        return []

    has_header = options.header
    if has_header is None:
        has_header = any(_number(c) is None for c in rows[0])
    header = rows[0] if has_header else None
    body = rows[1:] if has_header else rows

    xi = _resolve_column(options.x, header, "x")
    yi = _resolve_column(options.y, header, "y")
    li = _resolve_column(options.label, header, "label") if options.label is not None else None

    points: List[DataPoint] = []
    skipped = 0
    for row in body:
        if max(xi, yi) >= len(row):
            skipped += 1
            continue
        x = _number(row[xi])
        y = _number(row[yi])
        if x is None or y is None or not (math.isfinite(x) and math.isfinite(y)):
            skipped += 1
            continue
        label = row[li].strip() if li is not None and li < len(row) else None
        points.append(DataPoint(x, y, True, label or None))

    if skipped:
        logger.debug("Table: skipped %d malformed row(s)", skipped)
    return points


# ============================================================================
# SYMBOLIC SAMPLING
# ============================================================================

def _compile(text: str, variable: str) -> CompiledExpression:
    try:
        return compile_expression(text, (variable,))
    except ExpressionError as e:
        raise SeriesError(f"Cannot compile '{truncate(text, 60)}': {e}") from e


def _pole_between(fn: CompiledExpression, variable: str, a: float, ya: float, b: float, yb: float) -> Optional[float]:
    """
    Bisect a sign change. Returns the location when |f| keeps growing
    (a pole), None when it shrinks towards a root.
    """
    scale = max(abs(ya), abs(yb))
    lo, hi, ylo = a, b, ya
    mid = 0.5 * (lo + hi)
    for _ in range(_POLE_BISECTIONS):
        mid = 0.5 * (lo + hi)
        res = fn.try_evaluate({variable: mid})
        if not res.valid:
            return mid
        if (res.value > 0) == (ylo > 0):
            lo, ylo = mid, res.value
        else:
            hi = mid
        if abs(res.value) > _POLE_GROWTH * scale and abs(res.value) > 1e6:
            return mid
    return None


def sample_function(
    expression: str,
    domain: Domain,
    samples: int = settings.DEFAULT_SAMPLES,
    variable: str = "x",
    detect_poles: bool = settings.DETECT_POLES,
) -> List[DataPoint]:
    fn = _compile(expression, variable)
    xs = np.linspace(float(domain[0]), float(domain[1]), clamp_samples(samples))

    points: List[DataPoint] = []
    prev: Optional[DataPoint] = None
    for xv in xs:
        x = float(xv)
        res = fn.try_evaluate({variable: x})
        cur = DataPoint(x, res.value, res.valid)
        if (
            detect_poles
            and prev is not None
            and prev.valid
            and cur.valid
            and prev.y * cur.y < 0
        ):
            pole = _pole_between(fn, variable, prev.x, prev.y, cur.x, cur.y)
            if pole is not None:
                points.append(DataPoint(pole, math.nan, False))
        points.append(cur)
        prev = cur

    invalid = sum(1 for p in points if not p.valid)
    logger.debug(
        "Series: sampled %d pts (%d invalid) for '%s' on [%g, %g]",
        len(points), invalid, truncate(expression, 60), domain[0], domain[1],
    )
    return points


def sample_parametric(
    x_expression: str,
    y_expression: str,
    domain: Domain,
    samples: int = settings.DEFAULT_SAMPLES,
    variable: str = "t",
) -> List[DataPoint]:
    fx = _compile(x_expression, variable)
    fy = _compile(y_expression, variable)
    ts = np.linspace(float(domain[0]), float(domain[1]), clamp_samples(samples))

    points: List[DataPoint] = []
    for tv in ts:
        b = {variable: float(tv)}
        rx = fx.try_evaluate(b)
        ry = fy.try_evaluate(b)
        points.append(DataPoint(rx.value, ry.value, rx.valid and ry.valid))

    logger.debug(
        "Series: sampled %d parametric pts for ('%s', '%s')",
        len(points), truncate(x_expression, 40), truncate(y_expression, 40),
    )
    return points


def sample_polar(
    expression: str,
    domain: Domain,
    samples: int = settings.DEFAULT_SAMPLES,
    variable: str = "theta",
    cartesian: bool = True,
) -> List[DataPoint]:
    """
    r(theta) with theta in radians. cartesian=True gives (r cos, r sin);
    cartesian=False keeps (r, theta in degrees) for a polar axis.
    Negative radii are invalid.
    """
    fn = _compile(expression, variable)
    ts = np.linspace(float(domain[0]), float(domain[1]), clamp_samples(samples))

    points: List[DataPoint] = []
    for tv in ts:
        theta = float(tv)
        res = fn.try_evaluate({variable: theta})
        if not res.valid or res.value < 0:
            points.append(DataPoint(math.nan, math.nan, False))
        elif cartesian:
            points.append(DataPoint(res.value * math.cos(theta), res.value * math.sin(theta), True))
        else:
            points.append(DataPoint(res.value, math.degrees(theta), True))

    logger.debug("Series: sampled %d polar pts for '%s'", len(points), truncate(expression, 60))
    return points


# ============================================================================
# DECLARATION -> POINTS
# ============================================================================

def produce_series(
    decl: SeriesDeclaration,
    domain: Domain,
    samples: int,
    polar_axis: bool = False,
) -> List[DataPoint]:
    """
    Points for one declaration; `domain`/`samples` are already resolved by
    the caller. Raises SeriesError when nothing plottable comes out.
    """
    if decl.source is SourceKind.COORDINATES:
        points = parse_coordinates(str(decl.payload))
    elif decl.source is SourceKind.TABLE:
        points = parse_table(str(decl.payload), decl.table)
    elif decl.source is SourceKind.FUNCTION:
        points = sample_function(str(decl.payload), domain, samples, decl.variable or "x")
    elif decl.source is SourceKind.PARAMETRIC:
        x_expr, y_expr = decl.payload  # type: ignore[misc]
        points = sample_parametric(x_expr, y_expr, domain, samples, decl.variable or "t")
    elif decl.source is SourceKind.POLAR:
        points = sample_polar(str(decl.payload), domain, samples, decl.variable or "theta", cartesian=not polar_axis)
    else:
        raise SeriesError(f"Unsupported source kind {decl.source!r}")

    if not any(p.valid for p in points):
        raise SeriesError(f"{decl.source.value} series has no valid points")
    return points
