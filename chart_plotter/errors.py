"""
errors.py — Exception types for chart_plotter

ParseError fails a load. ExpressionError fails a compile. EvaluationError
marks one sample invalid. SeriesError drops one series from a render.
"""

from typing import Optional


class PlotterError(Exception):
    """Base class for chart_plotter errors."""


class ParseError(PlotterError):
    def __init__(self, message: str, fragment: str = "") -> None:
        self.fragment = fragment
        if fragment:
            message = f"{message} near {fragment!r}"
        super().__init__(message)


class ExpressionError(PlotterError, ValueError):
    """Expression text rejected before evaluation (syntax, unknown name, limits)."""


class EvaluationError(PlotterError, ArithmeticError):
    """A single evaluation failed (domain error, overflow, step limit)."""


class SeriesError(PlotterError):
    def __init__(self, message: str, series_index: Optional[int] = None) -> None:
        self.series_index = series_index
        super().__init__(message)
