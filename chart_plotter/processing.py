"""
processing.py — Pure utilities over point lists

This file contains ONLY independent helpers; none of them is called while
rendering:
- summarize()        statistics of the valid points
- filter_points()    range / predicate filtering
- resample()         uniform, random or curvature-adaptive down-sampling
- interpolate()      linear re-sampling to a target count
- moving_average()   odd-window smoothing
- to_delimited() / to_json()  export
"""

from __future__ import annotations

import csv
import io
import json
import math
from dataclasses import asdict, dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .models import DataPoint

ADAPTIVE_CURVATURE_THRESHOLD = 0.01


# ============================================================================
# STATISTICS
# ============================================================================

@dataclass(frozen=True)
class Summary:
    count: int
    mean: float
    median: float
    std: float
    min: float
    max: float
    q1: float
    q3: float

    def to_dict(self) -> dict:
        return asdict(self)


def summarize(points: Sequence[DataPoint], axis: str = "y") -> Summary:
    """Population statistics over the valid points' x or y values."""
    if axis not in ("x", "y"):
        raise ValueError("axis must be 'x' or 'y'")
    vals = np.array([getattr(p, axis) for p in points if p.valid], dtype=float)
    if vals.size == 0:
        nan = math.nan
        return Summary(0, nan, nan, nan, nan, nan, nan, nan)
    q1, median, q3 = np.percentile(vals, [25, 50, 75])
    return Summary(
        count=int(vals.size),
        mean=float(vals.mean()),
        median=float(median),
        std=float(vals.std()),
        min=float(vals.min()),
        max=float(vals.max()),
        q1=float(q1),
        q3=float(q3),
    )


# ============================================================================
# FILTERING
# ============================================================================

def filter_points(
    points: Sequence[DataPoint],
    x_range: Optional[Tuple[float, float]] = None,
    y_range: Optional[Tuple[float, float]] = None,
    predicate: Optional[Callable[[DataPoint], bool]] = None,
    keep_gaps: bool = False,
) -> List[DataPoint]:
    """
    Keep valid points inside the (inclusive) ranges that pass `predicate`.
    keep_gaps=True marks rejected points invalid instead of dropping them,
    so a rendered path breaks where the filter cut it.
    """
    out: List[DataPoint] = []
    for p in points:
        ok = p.valid
        if ok and x_range is not None:
            ok = x_range[0] <= p.x <= x_range[1]
        if ok and y_range is not None:
            ok = y_range[0] <= p.y <= y_range[1]
        if ok and predicate is not None:
            ok = bool(predicate(p))
        if ok:
            out.append(p)
        elif keep_gaps:
            out.append(DataPoint(p.x, p.y, False, p.label))
    return out


# ============================================================================
# RESAMPLING
# ============================================================================

def _uniform(points: Sequence[DataPoint], target: int) -> List[DataPoint]:
    step = (len(points) - 1) / (target - 1)
    # half-up, not round()'s half-even
    return [points[int(math.floor(i * step + 0.5))] for i in range(target)]


def _random(points: Sequence[DataPoint], target: int, seed: Optional[int]) -> List[DataPoint]:
    rng = np.random.default_rng(seed)
    idx = np.sort(rng.choice(len(points), size=target, replace=False))
    return [points[int(i)] for i in idx]


def _adaptive(points: Sequence[DataPoint], target: int) -> List[DataPoint]:
    n = len(points)
    step = max(1, n // target)
    out = [points[0]]
    for i in range(step, n - step, step):
        prev, cur, nxt = points[i - step], points[i], points[i + step]
        curvature = abs((nxt.y - 2.0 * cur.y + prev.y) / (step * step))
        if curvature > ADAPTIVE_CURVATURE_THRESHOLD:
            out.append(cur)
    out.append(points[-1])
    return out


def resample(
    points: Sequence[DataPoint],
    target: int,
    method: str = "uniform",
    seed: Optional[int] = None,
) -> List[DataPoint]:
    """
    Down-sample to about `target` points. Lists already at or under the target
    come back unchanged. 'adaptive' keeps first/last plus high-curvature points,
    so its length is not exactly `target`.
    """
    if target < 2:
        raise ValueError("target must be >= 2")
    if len(points) <= target:
        return list(points)
    if method == "uniform":
        return _uniform(points, target)
    if method == "random":
        return _random(points, target, seed)
    if method == "adaptive":
        return _adaptive(points, target)
    raise ValueError(f"Unknown resample method {method!r}")


def interpolate(points: Sequence[DataPoint], target: int) -> List[DataPoint]:
    """Linear interpolation in index space; a segment touching an invalid point yields invalid output."""
    if target < 2:
        raise ValueError("target must be >= 2")
    if len(points) < 2:
        return list(points)
    step = (len(points) - 1) / (target - 1)
    out: List[DataPoint] = []
    for i in range(target):
        pos = i * step
        lo = min(int(math.floor(pos)), len(points) - 1)
        hi = min(lo + 1, len(points) - 1)
        frac = pos - lo
        a, b = points[lo], points[hi]
        if frac < 1e-12:
            out.append(DataPoint(a.x, a.y, a.valid))
            continue
        valid = a.valid and b.valid
        out.append(DataPoint(a.x + frac * (b.x - a.x), a.y + frac * (b.y - a.y), valid))
    return out


def moving_average(points: Sequence[DataPoint], window: int = 3) -> List[DataPoint]:
    """Centered moving average of x and y over valid neighbours; the window shrinks at the ends."""
    if window < 1 or window % 2 == 0:
        raise ValueError("window must be a positive odd number")
    if len(points) < window:
        return list(points)

    xs = np.array([p.x for p in points], dtype=float)
    ys = np.array([p.y for p in points], dtype=float)
    ok = np.array([p.valid for p in points], dtype=bool)
    half = window // 2

    out: List[DataPoint] = []
    for i, p in enumerate(points):
        if not p.valid:
            out.append(p)
            continue
        lo, hi = max(0, i - half), min(len(points), i + half + 1)
        m = ok[lo:hi]
        out.append(DataPoint(float(xs[lo:hi][m].mean()), float(ys[lo:hi][m].mean()), True, p.label))
    return out


# ============================================================================
# EXPORT
# ============================================================================

def to_delimited(
    points: Sequence[DataPoint],
    delimiter: str = ",",
    include_header: bool = True,
    precision: int = 6,
) -> str:
    """x,y,label rows; invalid points keep their row with empty number cells."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, lineterminator="\n")
    if include_header:
        writer.writerow(["x", "y", "label"])
    for p in points:
        x = f"{p.x:.{precision}f}" if p.valid else ""
        y = f"{p.y:.{precision}f}" if p.valid else ""
        writer.writerow([x, y, p.label or ""])
    return buf.getvalue().rstrip("\n")


def to_json(points: Sequence[DataPoint], indent: Optional[int] = 2) -> str:
    def clean(v: float) -> Optional[float]:
        return v if math.isfinite(v) else None

    rows = []
    for p in points:
        row = {"x": clean(p.x), "y": clean(p.y), "valid": p.valid}
        if p.label is not None:
            row["label"] = p.label
        rows.append(row)
    return json.dumps(rows, indent=indent)
