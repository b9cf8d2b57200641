from __future__ import annotations

import pytest

from chart_plotter.constants import AxisLines, DashStyle, GeometryKind, GridMode, LegendAnchor, MarkerShape, SourceKind
from chart_plotter.errors import ParseError
from chart_plotter.parser import parse, parse_length, parse_options, strip_comments


def test_minimal_axis_with_function():
    spec = parse("begin-axis[xmin=-5,xmax=5] plot{sin(x)} end-axis")
    assert spec.xmin == -5
    assert spec.xmax == 5
    assert spec.ymin is None and spec.ymax is None
    assert len(spec.series) == 1
    decl = spec.series[0]
    assert decl.source is SourceKind.FUNCTION
    assert decl.payload == "sin(x)"
    assert decl.domain is None
    assert decl.samples is None


def test_pgfplots_spelling():
    src = r"""
    \begin{tikzpicture}
    \begin{axis}[title={Growth, fast}, xlabel=$t$, ylabel=y, grid=both,
                 axis lines=middle, legend pos=south west, width=10cm, height=200]
      \addplot[red, thick, dashed, domain=0:2, samples=50] {exp(x)};
      \addlegendentry{$e^x$}
      \addplot+[mark=*, only marks] coordinates {(0,1) (1,2) (2,3)};
    \end{axis}
    \end{tikzpicture}
    """
    spec = parse(src)
    assert spec.title == "Growth, fast"
    assert spec.xlabel == "$t$"
    assert spec.grid is GridMode.BOTH
    assert spec.axis_lines is AxisLines.CENTER
    assert spec.legend_anchor is LegendAnchor.SOUTH_WEST
    assert spec.width == pytest.approx(378.0)
    assert spec.height == pytest.approx(200.0)

    first, second = spec.series
    assert first.source is SourceKind.FUNCTION
    assert first.style.color == "#ff0000"
    assert first.style.line_width == 2.0
    assert first.style.dash is DashStyle.DASHED
    assert first.domain == (0.0, 2.0)
    assert first.samples == 50
    assert first.label == "$e^x$"

    assert second.source is SourceKind.COORDINATES
    assert second.style.marker is MarkerShape.CIRCLE
    assert second.style.only_marks is True
    assert second.label is None


def test_comments_are_ignored():
    src = "begin-axis % [xmin=100]\n plot{x} % plot{y}\n end-axis"
    spec = parse(src)
    assert spec.xmin is None
    assert len(spec.series) == 1
    assert strip_comments("a \\% b % c") == "a \\% b "


def test_table_and_parametric_payloads():
    src = """
    begin-axis
      plot table[header=false, col sep=comma]{1,2
      3,4}
      plot[samples=20, domain=0:2*pi] ({cos(t)}, {sin(t)})
      plot expression {x^2}
    end-axis
    """
    table, param, expr = parse(src).series
    assert table.source is SourceKind.TABLE
    assert table.table.header is False
    assert table.table.delimiter == ","
    assert param.source is SourceKind.PARAMETRIC
    assert param.payload == ("cos(t)", "sin(t)")
    assert param.domain[1] == pytest.approx(6.283185307, rel=1e-9)
    assert expr.source is SourceKind.FUNCTION
    assert expr.payload == "x^2"


def test_legend_entry_binds_to_preceding_series_only():
    src = """
    begin-axis
      legend-entry{orphan}
      plot{x}
      plot{2*x}
      legend-entry{double}
    end-axis
    """
    spec = parse(src)
    assert [s.label for s in spec.series] == [None, "double"]


def test_legend_list_assigns_in_order():
    src = r"\begin{axis} \addplot{x}; \addplot{x^2}; \legend{linear, {square, of x}} \end{axis}"
    spec = parse(src)
    assert [s.label for s in spec.series] == ["linear", "square, of x"]


def test_polar_and_log_environments():
    polar = parse(r"\begin{polaraxis} \addplot{1 + cos(theta)}; \addplot coordinates {(1,45)}; \end{polaraxis}")
    assert polar.geometry is GeometryKind.POLAR
    assert polar.series[0].source is SourceKind.POLAR
    assert polar.series[1].source is SourceKind.COORDINATES

    loglog = parse(r"\begin{loglogaxis} \addplot{x}; \end{loglogaxis}")
    assert loglog.geometry is GeometryKind.LOG
    assert loglog.log_x and loglog.log_y

    semi = parse("begin-axis[ymode=log] plot{x} end-axis")
    assert semi.geometry is GeometryKind.LOG
    assert (semi.log_x, semi.log_y) == (False, True)


def test_runaway_bound_expression_is_ignored():
    spec = parse("begin-axis[xmin=0" + "!" * 1000 + ", xmax=2*pi] plot{x} end-axis")
    assert spec.xmin is None
    assert spec.xmax == pytest.approx(6.283185307179586)


def test_polar_plot_option_in_cartesian_axis():
    spec = parse("begin-axis plot[data cs=polar]{2} end-axis")
    assert spec.geometry is GeometryKind.CARTESIAN
    assert spec.series[0].source is SourceKind.POLAR


def test_malformed_numbers_leave_option_unset():
    spec = parse("begin-axis[xmin=abc, xmax=2*pi, samples=1, ymax=nan] plot{x} end-axis")
    assert spec.xmin is None
    assert spec.xmax == pytest.approx(6.283185307, rel=1e-9)
    assert spec.samples is None
    assert spec.ymax is None


def test_unknown_statements_are_skipped():
    spec = parse("begin-axis \\draw (0,0) -- (1,1); \\node{hi}; plot{x} end-axis")
    assert len(spec.series) == 1


def test_plot_style_flags():
    spec = parse("begin-axis plot[blue!50, smooth, no marks, mark size=4, fill, opacity=2]{x} end-axis")
    style = spec.series[0].style
    assert style.color == "#8080ff"
    assert style.smooth is True
    assert style.no_marks is True
    assert style.marker_size == 4.0
    assert style.fill == "auto"
    assert style.opacity == 1.0


@pytest.mark.parametrize(
    "src",
    [
        "plot{sin(x)}",
        "begin-axis plot{sin(x)}",
        "begin-axis[xmin=1 plot{x} end-axis",
        "begin-axis plot{sin(x) end-axis",
        "begin-axis plot end-axis",
        "begin-axis plot{ } end-axis",
        "begin-axis plot(x) end-axis",
        r"\begin{axis} \addplot{x}; \end{polaraxis}",
    ],
)
def test_parse_errors(src):
    with pytest.raises(ParseError):
        parse(src)


def test_parse_error_names_the_fragment():
    with pytest.raises(ParseError) as exc:
        parse("begin-axis plot{sin(x) end-axis")
    assert "sin(x)" in str(exc.value)
    assert exc.value.fragment


def test_parse_options_and_lengths():
    opts = parse_options("a=1, b={x, y}, Only Marks, mark_size = 3")
    assert opts == {"a": "1", "b": "x, y", "only-marks": None, "mark-size": "3"}
    assert parse_length("2cm") == pytest.approx(75.6)
    assert parse_length("1in") == pytest.approx(96.0)
    assert parse_length("120") == pytest.approx(120.0)
    assert parse_length("3furlongs") is None
