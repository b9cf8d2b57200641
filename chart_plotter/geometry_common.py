"""
geometry_common.py — Shared geometry helpers for chart_plotter

This file contains ONLY:
- small, dependency-light geometry helpers shared by:
  - charts.py  (marker shapes)
  - axes.py    (arrowheads)
  - legend.py  (marker samples)

Everything returns plain point tuples in device units; wrapping into
primitives happens in the callers.

Keep this file free of imports from other project modules to avoid cycles.
"""

from __future__ import annotations

from typing import List, Tuple
import math

Point = Tuple[float, float]
Segment = Tuple[Point, Point]


def unit_vector(dx: float, dy: float) -> Point:
    n = math.hypot(dx, dy)
    if n == 0:
        return (0.0, 0.0)
    return (dx / n, dy / n)


# ============================================================================
# MARKER SHAPES (centered on (x, y), size = half-extent)
# ============================================================================

def square_points(x: float, y: float, size: float) -> List[Point]:
    return [
        (x - size, y - size),
        (x + size, y - size),
        (x + size, y + size),
        (x - size, y + size),
    ]


def triangle_points(x: float, y: float, size: float) -> List[Point]:
    """Apex up on screen."""
    return [
        (x, y - size),
        (x - size, y + size),
        (x + size, y + size),
    ]


def star_points(x: float, y: float, size: float, spikes: int = 5, inner_ratio: float = 0.4) -> List[Point]:
    """
    Alternating outer/inner vertices, first spike pointing straight up.
    """
    pts: List[Point] = []
    step = math.pi / spikes
    inner = size * inner_ratio
    for i in range(2 * spikes):
        r = size if i % 2 == 0 else inner
        a = -math.pi / 2.0 + i * step
        pts.append((x + r * math.cos(a), y + r * math.sin(a)))
    return pts


def cross_segments(x: float, y: float, size: float) -> List[Segment]:
    return [
        ((x - size, y - size), (x + size, y + size)),
        ((x - size, y + size), (x + size, y - size)),
    ]


def plus_segments(x: float, y: float, size: float) -> List[Segment]:
    return [
        ((x - size, y), (x + size, y)),
        ((x, y - size), (x, y + size)),
    ]


# ============================================================================
# ARROWS / BOXES
# ============================================================================

def arrowhead_points(tip: Point, direction: Point, length: float = 8.0, half_width: float = 4.0) -> List[Point]:
    """
    Four-point arrowhead: tip, one barb, a notch on the shaft, the other barb.
    `direction` points from the shaft towards the tip.
    """
    ux, uy = unit_vector(*direction)
    nx, ny = -uy, ux
    tx, ty = tip
    bx, by = tx - ux * length, ty - uy * length
    notch = (tx - ux * length * 0.7, ty - uy * length * 0.7)
    return [
        (tx, ty),
        (bx + nx * half_width, by + ny * half_width),
        notch,
        (bx - nx * half_width, by - ny * half_width),
    ]


def rect_points(x: float, y: float, w: float, h: float) -> List[Point]:
    return [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]
