from __future__ import annotations

import pytest

from chart_plotter.axes import (
    compose_axes,
    format_angle_label,
    format_tick_label,
    log_tick_values,
    nice_step,
    polar_angle_values,
    tick_values,
    ticks,
)
from chart_plotter.constants import AxisLines, GeometryKind, GridMode
from chart_plotter.coordinates import make_transform
from chart_plotter.models import ChartSpec
from chart_plotter.primitives import Polygon, Text, iter_primitives


def test_ticks_snap_to_twenty():
    assert tick_values(0, 97, 6) == [0, 20, 40, 60, 80]


@pytest.mark.parametrize(
    "span, target, step",
    [
        (97, 6, 20),
        (10, 5, 2),
        (1, 4, 0.5),
        (0.3, 6, 0.05),
        (1000, 10, 100),
    ],
)
def test_nice_step(span, target, step):
    assert nice_step(span, target) == pytest.approx(step)


@pytest.mark.parametrize(
    "vmin, vmax, target",
    [
        (-5, 5, 6),
        (0.1, 0.7, 6),
        (-123.4, 9876.5, 8),
        (1e-6, 3e-6, 5),
        (-1, -0.25, 3),
        (3.14159, 3.14160, 6),
    ],
)
def test_ticks_strictly_increasing_and_in_range(vmin, vmax, target):
    values = tick_values(vmin, vmax, target)
    assert values
    assert all(b > a for a, b in zip(values, values[1:]))
    assert all(vmin <= v <= vmax for v in values)


def test_ticks_empty_for_inverted_or_degenerate_range():
    assert tick_values(5, 5) == []
    assert tick_values(5, 1) == []


def test_float_noise_is_snapped():
    assert 0.3 in tick_values(0.1, 0.7, 6)


def test_ticks_with_device_projection():
    out = ticks(0, 10, 5, to_device=lambda v: v * 2)
    assert [k.device_position for k in out] == [2 * k.value for k in out]
    assert out[0].label == "0"


@pytest.mark.parametrize(
    "value, label",
    [
        (0.0, "0"),
        (1e-12, "0"),
        (0.5, "0.5"),
        (2.0, "2"),
        (-1.25, "-1.25"),
        (1000.0, "1.0e+3"),
        (0.005, "5.0e-3"),
        (123.456, "123.46"),
    ],
)
def test_format_tick_label(value, label):
    assert format_tick_label(value) == label


def test_log_tick_values():
    assert log_tick_values(1, 10000) == [1, 10, 100, 1000, 10000]
    few = log_tick_values(1, 100)
    assert 2 in few and 50 in few


def test_polar_angle_values_full_turn_drops_closing_angle():
    assert polar_angle_values(0, 360) == [0, 45, 90, 135, 180, 225, 270, 315]


def test_polar_angle_values_start_at_declared_minimum():
    assert polar_angle_values(30, 200) == [45, 90, 135, 180]
    assert format_angle_label(90) == "90°"


def _spec(**kw) -> ChartSpec:
    return ChartSpec(**kw)


def test_compose_axes_box_has_no_arrows_by_default():
    t = make_transform(GeometryKind.CARTESIAN, (-5, 5), (-5, 5), 400, 300)
    layer = compose_axes(_spec(), t)
    assert not [p for p in iter_primitives(layer.axis_lines) if isinstance(p, Polygon)]
    assert layer.grid.children  # major grid by default


def test_compose_axes_center_lines_get_arrows_and_skip_zero_labels():
    t = make_transform(GeometryKind.CARTESIAN, (-5, 5), (-5, 5), 400, 300)
    layer = compose_axes(_spec(axis_lines=AxisLines.CENTER, grid=GridMode.NONE), t)
    arrows = [p for p in iter_primitives(layer.axis_lines) if isinstance(p, Polygon)]
    assert len(arrows) == 2
    labels = [p.text for p in iter_primitives(layer.ticks) if isinstance(p, Text)]
    assert "0" not in labels
    assert not layer.grid.children


def test_compose_axes_titles_and_labels():
    t = make_transform(GeometryKind.CARTESIAN, (0, 1), (0, 1), 400, 300)
    layer = compose_axes(_spec(title="T", xlabel="$x_{1}$", ylabel="y"), t)
    texts = [p for p in iter_primitives(layer.labels) if isinstance(p, Text)]
    assert [p.text for p in texts] == ["T", "x_1", "y"]
    assert texts[2].rotation == -90.0


def test_compose_axes_polar_rings_and_spokes():
    t = make_transform(GeometryKind.POLAR, (0, 2), (0, 360), 400, 400)
    layer = compose_axes(_spec(geometry=GeometryKind.POLAR), t)
    assert [k.value for k in layer.y_ticks] == [0, 45, 90, 135, 180, 225, 270, 315]
    assert all(k.value > 0 for k in layer.x_ticks)
    labels = [p.text for p in iter_primitives(layer.ticks) if isinstance(p, Text)]
    assert "90°" in labels
