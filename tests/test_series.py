from __future__ import annotations

import math

import pytest

from chart_plotter.constants import SourceKind
from chart_plotter.errors import SeriesError
from chart_plotter.models import SeriesDeclaration, TableOptions
from chart_plotter.series import (
    clamp_samples,
    parse_coordinates,
    parse_table,
    produce_series,
    sample_function,
    sample_parametric,
    sample_polar,
)


def test_reciprocal_is_invalid_only_at_zero():
    points = sample_function("1/x", (-2.0, 2.0), 5)
    assert [p.x for p in points] == [-2.0, -1.0, 0.0, 1.0, 2.0]
    assert [p.valid for p in points] == [True, True, False, True, True]


def test_tangent_has_gaps_at_poles():
    points = sample_function("tan(x)", (-math.pi, math.pi), 100)
    invalid = [p for p in points if not p.valid]
    assert invalid
    assert any(abs(abs(p.x) - math.pi / 2) < 0.05 for p in invalid)


def test_roots_are_not_mistaken_for_poles():
    points = sample_function("x^3 - x", (-2.0, 2.0), 41)
    assert all(p.valid for p in points)


def test_pole_detection_can_be_turned_off():
    points = sample_function("tan(x)", (-math.pi, math.pi), 100, detect_poles=False)
    assert len(points) == 100


def test_samples_are_clamped():
    assert clamp_samples(None) == 100
    assert clamp_samples(1) == 2
    assert clamp_samples(10 ** 9) == 10000
    assert len(sample_function("x", (0, 1), 1)) == 2


def test_table_skips_malformed_rows():
    points = parse_table("1,2\n3,4\n,5", TableOptions(header=False))
    assert [(p.x, p.y) for p in points] == [(1.0, 2.0), (3.0, 4.0)]

    runaway = "1,2\n3," + "0" + "!" * 1000 + "\n5,6"
    points = parse_table(runaway, TableOptions(header=False))
    assert [(p.x, p.y) for p in points] == [(1.0, 2.0), (5.0, 6.0)]


def test_table_header_and_named_columns():
    text = """
    # comment
    time  speed  note
    0     1.5    start
    1     2.5    mid
    2     oops   bad
    """
    points = parse_table(text, TableOptions(x="time", y="Speed", label="note"))
    assert [(p.x, p.y, p.label) for p in points] == [(0.0, 1.5, "start"), (1.0, 2.5, "mid")]


def test_table_unknown_column_raises():
    with pytest.raises(SeriesError):
        parse_table("a,b\n1,2", TableOptions(y="c"))
    with pytest.raises(SeriesError):
        parse_table("1 2\n3 4", TableOptions(header=False, y="b"))


def test_table_explicit_delimiter_and_indices():
    points = parse_table("1;2;3\n4;5;6", TableOptions(delimiter=";", x=2, y=0))
    assert [(p.x, p.y) for p in points] == [(3.0, 1.0), (6.0, 4.0)]


def test_coordinates_with_labels_and_bad_pairs():
    points = parse_coordinates("(0,0) (1, 2*pi) [top] (2,nan) (3)")
    assert points[0].valid and points[0].y == 0.0
    assert points[1].y == pytest.approx(2 * math.pi)
    assert points[1].label == "top"
    assert not points[2].valid
    assert not points[3].valid


def test_parametric_circle():
    points = sample_parametric("cos(t)", "sin(t)", (0, 2 * math.pi), 33)
    assert all(p.valid for p in points)
    assert all(math.hypot(p.x, p.y) == pytest.approx(1.0) for p in points)


def test_polar_negative_radius_is_invalid():
    points = sample_polar("cos(theta)", (0, math.pi), 5)
    # theta = 3pi/4 and pi give negative radii
    assert [p.valid for p in points] == [True, True, True, False, False]
    assert points[0].x == pytest.approx(1.0)


def test_polar_samples_for_polar_axis_keep_degrees():
    points = sample_polar("2", (0, math.pi), 3, cartesian=False)
    assert [p.x for p in points] == [2.0, 2.0, 2.0]
    assert [p.y for p in points] == pytest.approx([0.0, 90.0, 180.0])


def test_produce_series_dispatch_and_errors():
    decl = SeriesDeclaration(SourceKind.FUNCTION, "x^2", variable="u")
    with pytest.raises(SeriesError):
        produce_series(decl, (0, 1), 10)  # x is not the variable

    decl = SeriesDeclaration(SourceKind.FUNCTION, "u^2", variable="u")
    assert len(produce_series(decl, (0, 1), 10)) == 10

    empty = SeriesDeclaration(SourceKind.TABLE, "", table=TableOptions(header=False))
    with pytest.raises(SeriesError):
        produce_series(empty, (0, 1), 10)

    nothing = SeriesDeclaration(SourceKind.FUNCTION, "sqrt(-1 - x^2)")
    with pytest.raises(SeriesError):
        produce_series(nothing, (-1, 1), 10)


def test_declaration_invariants():
    with pytest.raises(ValueError):
        SeriesDeclaration(SourceKind.PARAMETRIC, "cos(t)")
    with pytest.raises(ValueError):
        SeriesDeclaration(SourceKind.FUNCTION, ("x", "y"))
    with pytest.raises(ValueError):
        SeriesDeclaration(SourceKind.FUNCTION, "x", samples=1)
