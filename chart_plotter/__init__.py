from .errors import EvaluationError, ExpressionError, ParseError, PlotterError, SeriesError
from .evaluator import compile_expression, evaluate
from .parser import parse
from .plotter import ChartManager, ChartState, RenderCache, RenderResult, dynamic_chart_plotter, render_chart
from .processing import Summary, filter_points, interpolate, moving_average, resample, summarize, to_delimited, to_json

__all__ = [
    "ChartManager",
    "ChartState",
    "EvaluationError",
    "ExpressionError",
    "ParseError",
    "PlotterError",
    "RenderCache",
    "RenderResult",
    "SeriesError",
    "Summary",
    "compile_expression",
    "dynamic_chart_plotter",
    "evaluate",
    "filter_points",
    "interpolate",
    "moving_average",
    "parse",
    "render_chart",
    "resample",
    "summarize",
    "to_delimited",
    "to_json",
]
