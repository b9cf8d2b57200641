from __future__ import annotations

import threading

import pytest

from chart_plotter.constants import GeometryKind, SourceKind
from chart_plotter.errors import ParseError
from chart_plotter.models import ChartSpec, SeriesDeclaration
from chart_plotter.plotter import ChartManager, ChartState, RenderCache, dynamic_chart_plotter, render_chart
from chart_plotter.primitives import Path, child_names, find_group, iter_primitives, to_dict

SINE = "begin-axis[xmin=-5,xmax=5] plot{sin(x)} end-axis"


def test_unloaded_manager_renders_nothing():
    manager = ChartManager()
    assert manager.state is ChartState.UNLOADED
    assert manager.render(400, 300) is None


def test_paint_order():
    src = """
    begin-axis[title=T]
      plot{sin(x)}
      legend-entry{sine}
      plot coordinates {(0,0) (1,1)}
    end-axis
    """
    tree = dynamic_chart_plotter(src, 400, 300).tree
    assert tree.name == "chart"
    assert child_names(tree) == ("grid", "axis-lines", "ticks", "series-0", "series-1", "axis-labels", "legend")


def test_no_labels_means_no_legend_group():
    tree = dynamic_chart_plotter(SINE, 400, 300).tree
    assert "legend" not in child_names(tree)


def test_render_is_idempotent():
    manager = ChartManager()
    manager.load_source(SINE)
    first = manager.render(400, 300)
    second = manager.render(400, 300)
    assert first == second
    assert to_dict(first) == to_dict(second)


def test_failed_load_keeps_previous_chart():
    manager = ChartManager()
    spec = manager.load_source(SINE)
    with pytest.raises(ParseError):
        manager.load_source("begin-axis plot{sin(x) end-axis")
    assert manager.state is ChartState.LOADED
    assert manager.spec is spec
    assert manager.render(400, 300) is not None


def test_unload():
    manager = ChartManager()
    manager.load_source(SINE)
    manager.unload()
    assert manager.state is ChartState.UNLOADED
    assert manager.render() is None


def test_bad_series_is_skipped_with_warning():
    src = """
    begin-axis
      plot{sqrt(-1 - x^2)}
      plot{bogus(x)}
      plot{x}
    end-axis
    """
    result = dynamic_chart_plotter(src, 400, 300)
    assert len(result.warnings) == 2
    names = child_names(result.tree)
    assert "series-2" in names
    assert "series-0" not in names and "series-1" not in names


def test_explicit_bounds_and_auto_range():
    result = dynamic_chart_plotter(SINE, 400, 300)
    assert result.x_range == (-5.0, 5.0)
    lo, hi = result.y_range
    assert lo < -1.0 < 1.0 < hi
    assert hi - lo == pytest.approx(2.4, rel=0.01)


def test_function_domain_defaults_to_axis_bounds():
    result = dynamic_chart_plotter("begin-axis[xmin=0, xmax=1] plot{x} end-axis", 400, 300)
    series = find_group(result.tree, "series-0")
    path = next(p for p in series.children if isinstance(p, Path))
    xs = [x for x, _ in path.subpaths[0].points]
    assert min(xs) == pytest.approx(result.transform.x_to_device(0))
    assert max(xs) == pytest.approx(result.transform.x_to_device(1))


def test_empty_chart_uses_default_ranges():
    result = render_chart(ChartSpec(), 400, 300)
    assert result.x_range == (-5.0, 5.0)
    assert result.y_range == (-5.0, 5.0)


def test_invalid_canvas_size():
    with pytest.raises(ValueError):
        render_chart(ChartSpec(), 0, 300)
    manager = ChartManager()
    manager.load_source(SINE)
    assert manager.render(10, 10) is None


def test_size_from_source_and_settings():
    sized = dynamic_chart_plotter("begin-axis[width=500, height=250] plot{x} end-axis")
    assert (sized.width, sized.height) == (500.0, 250.0)
    default = dynamic_chart_plotter(SINE)
    assert (default.width, default.height) == (400.0, 300.0)


def test_polar_chart_renders():
    result = dynamic_chart_plotter(r"\begin{polaraxis} \addplot{1 + cos(theta)}; \end{polaraxis}", 400, 400)
    assert result.transform.geometry is GeometryKind.POLAR
    assert result.x_range[0] == 0.0
    assert result.y_range == (0.0, 360.0)
    assert find_group(result.tree, "series-0") is not None


def test_log_chart_renders():
    result = dynamic_chart_plotter(r"\begin{loglogaxis} \addplot coordinates {(1,10) (10,100) (100,1000)}; \end{loglogaxis}", 400, 300)
    assert result.x_range[0] > 0 and result.y_range[0] > 0


def test_log_chart_with_non_positive_bounds_still_renders():
    src = r"\begin{loglogaxis}[xmin=-1, xmax=-0.5] \addplot coordinates {(1,1) (10,10)}; \end{loglogaxis}"
    manager = ChartManager()
    manager.load_source(src)
    result = manager.render_report(400, 300)
    assert result is not None
    assert 0 < result.x_range[0] < 1.0 and result.x_range[1] > 10.0
    assert find_group(result.tree, "series-0") is not None


def test_runaway_expression_is_skipped_not_fatal():
    manager = ChartManager()
    manager.load_source("begin-axis[] plot{x" + "!" * 1000 + "} plot{sin(x)} end-axis")
    result = manager.render_report(400, 300)
    assert result is not None
    assert len(result.warnings) == 1
    names = child_names(result.tree)
    assert "series-1" in names and "series-0" not in names


def test_outer_legend_reserves_right_margin():
    inner = dynamic_chart_plotter("begin-axis plot{x} legend-entry{line} end-axis", 400, 300)
    outer = dynamic_chart_plotter("begin-axis[legend pos=outer north east] plot{x} legend-entry{line} end-axis", 400, 300)
    assert outer.transform.plot_width < inner.transform.plot_width


def test_axis_equal_gives_one_scale():
    result = dynamic_chart_plotter("begin-axis[axis equal, xmin=-1, xmax=1, ymin=-1, ymax=1] plot{x} end-axis", 400, 300)
    t = result.transform
    ux = (t.x_range[1] - t.x_range[0]) / t.plot_width
    uy = (t.y_range[1] - t.y_range[0]) / t.plot_height
    assert ux == pytest.approx(uy)


def test_palette_colours_by_series_index():
    result = dynamic_chart_plotter("begin-axis plot{x} plot{2*x} end-axis", 400, 300)
    strokes = []
    for name in ("series-0", "series-1"):
        group = find_group(result.tree, name)
        strokes.append(next(p for p in iter_primitives(group) if isinstance(p, Path)).stroke)
    assert strokes[0] != strokes[1]


def test_render_uses_a_spec_snapshot():
    manager = ChartManager()
    manager.load_source(SINE)
    results = []

    def worker():
        results.append(manager.render(400, 300))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    manager.load_source("begin-axis plot{x^2} end-axis")
    for t in threads:
        t.join()
    assert all(r is not None for r in results)


def test_render_cache_is_bounded_and_counts():
    cache = RenderCache(maxsize=2)
    a = dynamic_chart_plotter(SINE, 400, 300, cache=cache)
    b = dynamic_chart_plotter(SINE, 400, 300, cache=cache)
    assert a is b
    assert (cache.hits, cache.misses) == (1, 1)

    dynamic_chart_plotter("begin-axis plot{x} end-axis", 400, 300, cache=cache)
    dynamic_chart_plotter("begin-axis plot{x^2} end-axis", 400, 300, cache=cache)
    assert len(cache) == 2
    assert cache.get(SINE, 400, 300) is None

    cache.clear()
    assert len(cache) == 0
    with pytest.raises(ValueError):
        RenderCache(maxsize=0)


def test_load_spec_directly():
    manager = ChartManager()
    spec = ChartSpec(series=(SeriesDeclaration(SourceKind.COORDINATES, "(0,0) (1,1)"),))
    manager.load_spec(spec)
    tree = manager.render(400, 300)
    assert find_group(tree, "series-0") is not None
    assert manager.last_range is not None
