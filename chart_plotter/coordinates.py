"""
coordinates.py — Data space <-> device space transforms

This file contains ONLY:
- Margins (device-unit padding around the plot area)
- CoordinateTransform for cartesian / polar / log geometries
- make_transform() convenience constructor

A transform is immutable: a new range or geometry means a new transform,
and every tick or primitive derived from the old one is stale.

Polar convention: the first data coordinate is the radius, the second the
angle. The declared angle range is stretched to one full counter-clockwise
turn starting on the positive device x axis.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from config import settings

from .constants import GeometryKind, Layout

Range = Tuple[float, float]


@dataclass(frozen=True)
class Margins:
    left: float = Layout.MARGIN_LEFT
    right: float = Layout.MARGIN_RIGHT
    top: float = Layout.MARGIN_TOP
    bottom: float = Layout.MARGIN_BOTTOM


def compute_margins(has_title: bool, has_xlabel: bool, extra_right: float = 0.0) -> Margins:
    return Margins(
        left=Layout.MARGIN_LEFT,
        right=Layout.MARGIN_RIGHT + extra_right,
        top=Layout.MARGIN_TOP_WITH_TITLE if has_title else Layout.MARGIN_TOP,
        bottom=Layout.MARGIN_BOTTOM_WITH_LABEL if has_xlabel else Layout.MARGIN_BOTTOM,
    )


@dataclass(frozen=True)
class CoordinateTransform:
    geometry: GeometryKind
    x_range: Range
    y_range: Range
    width: float
    height: float
    margins: Margins = Margins()
    log_x: bool = False
    log_y: bool = False
    epsilon: float = settings.LOG_EPSILON

    def __post_init__(self) -> None:
        if self.plot_width <= 0 or self.plot_height <= 0:
            raise ValueError(f"Plot area is empty for a {self.width:g}x{self.height:g} canvas")
        for name, (lo, hi) in (("x", self._scaled_x), ("y", self._scaled_y)):
            if not (math.isfinite(lo) and math.isfinite(hi)) or hi == lo:
                raise ValueError(f"Degenerate {name} range [{lo:g}, {hi:g}]")

    # --- plot area ---
    @property
    def plot_left(self) -> float:
        return self.margins.left

    @property
    def plot_top(self) -> float:
        return self.margins.top

    @property
    def plot_width(self) -> float:
        return self.width - self.margins.left - self.margins.right

    @property
    def plot_height(self) -> float:
        return self.height - self.margins.top - self.margins.bottom

    @property
    def plot_right(self) -> float:
        return self.plot_left + self.plot_width

    @property
    def plot_bottom(self) -> float:
        return self.plot_top + self.plot_height

    @property
    def plot_area(self) -> Tuple[float, float, float, float]:
        return (self.plot_left, self.plot_top, self.plot_width, self.plot_height)

    # --- polar frame ---
    @property
    def center(self) -> Tuple[float, float]:
        return (self.plot_left + self.plot_width / 2.0, self.plot_top + self.plot_height / 2.0)

    @property
    def max_radius(self) -> float:
        return min(self.plot_width, self.plot_height) / 2.0

    # --- log handling ---
    @property
    def x_is_log(self) -> bool:
        return self.geometry is GeometryKind.LOG and (self.log_x or not self.log_y)

    @property
    def y_is_log(self) -> bool:
        return self.geometry is GeometryKind.LOG and (self.log_y or not self.log_x)

    def _log(self, v: float) -> float:
        # values <= 0 have no logarithm; pin them just above zero
        return math.log10(max(v, self.epsilon))

    @property
    def _scaled_x(self) -> Range:
        lo, hi = self.x_range
        return (self._log(lo), self._log(hi)) if self.x_is_log else (lo, hi)

    @property
    def _scaled_y(self) -> Range:
        lo, hi = self.y_range
        return (self._log(lo), self._log(hi)) if self.y_is_log else (lo, hi)

    # --- mapping ---
    def to_device(self, x: float, y: float) -> Tuple[float, float]:
        if self.geometry is GeometryKind.POLAR:
            return self._polar_to_device(x, y)

        sx = self._log(x) if self.x_is_log else x
        sy = self._log(y) if self.y_is_log else y
        x0, x1 = self._scaled_x
        y0, y1 = self._scaled_y
        dx = self.plot_left + (sx - x0) / (x1 - x0) * self.plot_width
        dy = self.plot_bottom - (sy - y0) / (y1 - y0) * self.plot_height
        return (dx, dy)

    def from_device(self, dx: float, dy: float) -> Tuple[float, float]:
        if self.geometry is GeometryKind.POLAR:
            return self._polar_from_device(dx, dy)

        x0, x1 = self._scaled_x
        y0, y1 = self._scaled_y
        sx = x0 + (dx - self.plot_left) / self.plot_width * (x1 - x0)
        sy = y0 + (self.plot_bottom - dy) / self.plot_height * (y1 - y0)
        x = 10.0 ** sx if self.x_is_log else sx
        y = 10.0 ** sy if self.y_is_log else sy
        return (x, y)

    def x_to_device(self, x: float) -> float:
        """Horizontal device position of a data x (cartesian / log only)."""
        return self.to_device(x, self.y_range[0])[0]

    def y_to_device(self, y: float) -> float:
        return self.to_device(self.x_range[0], y)[1]

    def radius_to_device(self, r: float) -> float:
        r0, r1 = self.x_range
        return (r - r0) / (r1 - r0) * self.max_radius

    def angle_to_device(self, theta: float) -> float:
        """Device angle in radians (counter-clockwise from +x) for a data angle."""
        t0, t1 = self.y_range
        return (theta - t0) / (t1 - t0) * 2.0 * math.pi

    def _polar_to_device(self, r: float, theta: float) -> Tuple[float, float]:
        cx, cy = self.center
        rr = self.radius_to_device(r)
        a = self.angle_to_device(theta)
        return (cx + rr * math.cos(a), cy - rr * math.sin(a))

    def _polar_from_device(self, dx: float, dy: float) -> Tuple[float, float]:
        cx, cy = self.center
        ox = dx - cx
        oy = cy - dy
        rr = math.hypot(ox, oy)
        a = math.atan2(oy, ox) % (2.0 * math.pi)
        r0, r1 = self.x_range
        t0, t1 = self.y_range
        r = r0 + rr / self.max_radius * (r1 - r0)
        theta = t0 + a / (2.0 * math.pi) * (t1 - t0)
        return (r, theta)

    def contains(self, dx: float, dy: float, slack: float = 0.5) -> bool:
        return (
            self.plot_left - slack <= dx <= self.plot_right + slack
            and self.plot_top - slack <= dy <= self.plot_bottom + slack
        )


def make_transform(
    geometry: GeometryKind,
    x_range: Range,
    y_range: Range,
    width: float,
    height: float,
    margins: Margins = Margins(),
    log_x: bool = False,
    log_y: bool = False,
) -> CoordinateTransform:
    return CoordinateTransform(
        geometry=geometry,
        x_range=(float(x_range[0]), float(x_range[1])),
        y_range=(float(y_range[0]), float(y_range[1])),
        width=float(width),
        height=float(height),
        margins=margins,
        log_x=log_x,
        log_y=log_y,
    )
