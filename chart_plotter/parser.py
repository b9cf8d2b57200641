"""
parser.py — Chart DSL text -> ChartSpec

This file contains ONLY:
- a small scanner over the source text (balanced groups, comments)
- option-list parsing (key=value pairs and bare flags)
- axis / plot / legend statement handling

Accepted spellings (both can be mixed):

    begin-axis[xmin=-5, xmax=5, grid=major]      \\begin{axis}[...]
      plot[red, smooth]{sin(x)}                   \\addplot[red, smooth] {sin(x)};
      legend-entry{$\\sin x$}                      \\addlegendentry{$\\sin x$}
      plot coordinates {(0,0) (1,1)}              \\addplot coordinates {(0,0) (1,1)};
      plot table[header=false]{1,2\\n3,4}          \\addplot table {...};
      plot ({cos(t)}, {sin(t)})                   \\legend{a, b}
    end-axis                                      \\end{axis}

The parser checks structure only. Numbers are coerced where an option
expects one; anything it cannot read leaves that option unset.
"""

from __future__ import annotations

import math
import re
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from config import settings

from .constants import (
    UNIT_FACTORS,
    AxisLines,
    DashStyle,
    GeometryKind,
    GridMode,
    LegendAnchor,
    MarkerShape,
    SourceKind,
)
from .errors import ParseError
from .evaluator import evaluate_constant
from .models import ChartSpec, Column, SeriesDeclaration, SeriesStyle, TableOptions
from .utils import resolve_color, setup_logger, truncate

logger = setup_logger(__name__)

Options = Dict[str, Optional[str]]

_FRAGMENT_LIMIT = 40

_BEGIN_RE = re.compile(
    r"\\begin\s*\{\s*(axis|polaraxis|loglogaxis|semilogxaxis|semilogyaxis)\s*\}"
    r"|\bbegin-axis\b"
)

_ENV_GEOMETRY = {
    "axis": (GeometryKind.CARTESIAN, False, False),
    "polaraxis": (GeometryKind.POLAR, False, False),
    "loglogaxis": (GeometryKind.LOG, True, True),
    "semilogxaxis": (GeometryKind.LOG, True, False),
    "semilogyaxis": (GeometryKind.LOG, False, True),
}

_PLOT_RE = re.compile(r"(?:\\addplot\+?|\bplot\b)")
_LEGEND_ENTRY_RE = re.compile(r"(?:\\addlegendentry|\blegend-entry\b)")
_LEGEND_LIST_RE = re.compile(r"\\legend\b")

_LINE_WIDTHS = {
    "ultra-thin": 0.25,
    "very-thin": 0.5,
    "thin": 1.0,
    "semithick": 1.2,
    "thick": 2.0,
    "very-thick": 2.5,
    "ultra-thick": 3.5,
}

_DASH_FLAGS = {
    "solid": DashStyle.SOLID,
    "dashed": DashStyle.DASHED,
    "densely-dashed": DashStyle.DASHED,
    "loosely-dashed": DashStyle.DASHED,
    "dotted": DashStyle.DOTTED,
    "densely-dotted": DashStyle.DOTTED,
    "loosely-dotted": DashStyle.DOTTED,
    "dashdotted": DashStyle.DASHDOTTED,
    "dash-dot": DashStyle.DASHDOTTED,
    "dashdot": DashStyle.DASHDOTTED,
}

_COL_SEPS = {
    "comma": ",",
    "space": " ",
    "tab": "\t",
    "semicolon": ";",
    "colon": ":",
    "&": "&",
    "ampersand": "&",
}


# ============================================================================
# SCANNER
# ============================================================================

def strip_comments(text: str) -> str:
    """Drop `%` comments to end of line (an escaped `\\%` stays)."""
    return re.sub(r"(?<!\\)%[^\n]*", "", text)


def _fragment(text: str, pos: int) -> str:
    return truncate(text[pos:].strip().replace("\n", " "), _FRAGMENT_LIMIT)


class _Scanner:
    def __init__(self, text: str, pos: int = 0, end: Optional[int] = None) -> None:
        self.text = text
        self.pos = pos
        self.end = len(text) if end is None else end

    def at_end(self) -> bool:
        self.skip_ws()
        return self.pos >= self.end

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < self.end else ""

    def skip_ws(self) -> None:
        while self.pos < self.end and self.text[self.pos].isspace():
            self.pos += 1

    def match(self, pattern: "re.Pattern[str]") -> Optional["re.Match[str]"]:
        self.skip_ws()
        m = pattern.match(self.text, self.pos, self.end)
        if m:
            self.pos = m.end()
        return m

    def read_group(self, open_ch: str, close_ch: str, what: str) -> str:
        """
        Balanced group starting at the current char; returns the inside.
        Braces nest inside any group, so `[label={a]b}]` reads correctly.
        """
        self.skip_ws()
        start = self.pos
        if self.peek() != open_ch:
            raise ParseError(f"Expected '{open_ch}' to open {what}", _fragment(self.text, start))
        depth = 0
        brace = 0
        i = self.pos
        while i < self.end:
            ch = self.text[i]
            if ch == "\\" and i + 1 < self.end:
                i += 2
                continue
            if open_ch != "{" and ch == "{":
                brace += 1
            elif open_ch != "{" and ch == "}":
                brace -= 1
            elif brace == 0 and ch == open_ch:
                depth += 1
            elif brace == 0 and ch == close_ch:
                depth -= 1
                if depth == 0:
                    self.pos = i + 1
                    return self.text[start + 1:i]
            i += 1
        raise ParseError(f"Unterminated {what}", _fragment(self.text, start))

    def skip_statement(self) -> None:
        """Skip an unknown statement up to `;` or end of line, stepping over groups."""
        while self.pos < self.end:
            ch = self.text[self.pos]
            if ch in ";\n":
                self.pos += 1
                return
            if ch == "{":
                self.read_group("{", "}", "group")
                continue
            if ch == "[":
                self.read_group("[", "]", "option list")
                continue
            self.pos += 1


# ============================================================================
# OPTIONS
# ============================================================================

def _split_top_level(s: str, sep: str = ",") -> List[str]:
    parts: List[str] = []
    depth = 0
    buf: List[str] = []
    for ch in s:
        if ch in "{[(":
            depth += 1
        elif ch in "}])":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
    parts.append("".join(buf))
    return [p.strip() for p in parts if p.strip()]


def _unbrace(s: str) -> str:
    s = s.strip()
    while len(s) >= 2 and s[0] == "{" and s[-1] == "}":
        s = s[1:-1].strip()
    return s


def normalize_key(key: str) -> str:
    k = key.strip().lower().rstrip("*").strip()
    return re.sub(r"[\s_]+", "-", k)


def parse_options(text: str) -> Options:
    """`a=1, b={x, y}, flag` -> {'a': '1', 'b': 'x, y', 'flag': None}. Later keys win."""
    out: Options = {}
    for item in _split_top_level(text or ""):
        if "=" in item:
            key, value = item.split("=", 1)
            out[normalize_key(key)] = _unbrace(value)
        else:
            out[normalize_key(item)] = None
    return out


def coerce_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    try:
        v = float(s)
    except ValueError:
        return evaluate_constant(s)
    return v if math.isfinite(v) else None


def coerce_int(value: Optional[str]) -> Optional[int]:
    v = coerce_float(value)
    if v is None or abs(v - round(v)) > 1e-9:
        return None
    return int(round(v))


def coerce_bool(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    s = value.strip().lower()
    if s in {"true", "yes", "on", "1"}:
        return True
    if s in {"false", "no", "off", "0"}:
        return False
    return default


def parse_length(value: Optional[str]) -> Optional[float]:
    """`5cm` / `200pt` / `3in` / `120` -> device units (px)."""
    if value is None:
        return None
    m = re.fullmatch(r"\s*([-+]?(?:\d+\.?\d*|\.\d+))\s*([a-zA-Z]*)\s*", value)
    if not m:
        return None
    unit = m.group(2).lower() or "px"
    factor = UNIT_FACTORS.get(unit)
    if factor is None:
        return None
    return float(m.group(1)) * factor


def parse_domain(value: Optional[str]) -> Optional[Tuple[float, float]]:
    if value is None or ":" not in value:
        return None
    lo_s, hi_s = value.split(":", 1)
    lo, hi = coerce_float(lo_s), coerce_float(hi_s)
    if lo is None or hi is None:
        return None
    return (lo, hi)


def _normalize_words(value: str) -> str:
    return re.sub(r"[\s_\-]+", " ", value.strip().lower())


def _normalize_variable(value: str) -> str:
    v = value.strip().lstrip("\\")
    return "theta" if v in {"θ", "theta"} else v


# ============================================================================
# AXIS OPTIONS
# ============================================================================

def _grid_mode(value: Optional[str]) -> Optional[GridMode]:
    if value is None:
        return GridMode.MAJOR
    s = value.strip().lower()
    if s in {"true", "yes", "on"}:
        return GridMode.MAJOR
    if s in {"false", "no", "off"}:
        return GridMode.NONE
    try:
        return GridMode(s)
    except ValueError:
        return None


def _axis_lines(value: Optional[str]) -> Optional[AxisLines]:
    s = (value or "").strip().lower()
    if s in {"middle", "centre"}:
        s = "center"
    try:
        return AxisLines(s)
    except ValueError:
        return None


def _legend_anchor(value: Optional[str]) -> Optional[LegendAnchor]:
    s = _normalize_words(value or "")
    try:
        return LegendAnchor(s)
    except ValueError:
        return None


def _apply_axis_options(spec: ChartSpec, opts: Options) -> ChartSpec:
    changes: Dict[str, object] = {}
    log_x, log_y = spec.log_x, spec.log_y

    for key, value in opts.items():
        if key in {"title", "xlabel", "ylabel"}:
            changes[key] = value or ""
        elif key in {"xmin", "xmax", "ymin", "ymax"}:
            num = coerce_float(value)
            if num is None:
                logger.debug("Parser: ignoring non-numeric %s=%r", key, value)
            changes[key] = num
        elif key in {"width", "height"}:
            changes[key] = parse_length(value)
        elif key in {"grid", "xmajorgrids", "ymajorgrids", "majorgrids"}:
            mode = _grid_mode(value) if key == "grid" else GridMode.MAJOR
            if mode is not None:
                changes["grid"] = mode
        elif key in {"minorgrids", "xminorgrids", "yminorgrids"}:
            changes["grid"] = GridMode.BOTH
        elif key == "axis-lines":
            mode = _axis_lines(value)
            if mode is not None:
                changes["axis_lines"] = mode
        elif key in {"axis-equal", "axis-equal-image"}:
            changes["axis_equal"] = coerce_bool(value)
        elif key in {"legend-pos", "legend-position"}:
            anchor = _legend_anchor(value)
            if anchor is not None:
                changes["legend_anchor"] = anchor
        elif key == "domain":
            changes["domain"] = parse_domain(value)
        elif key == "samples":
            n = coerce_int(value)
            changes["samples"] = n if n is not None and n >= 2 else None
        elif key in {"tick-count", "max-ticks"}:
            n = coerce_int(value)
            changes["tick_count"] = n if n is not None and n >= 2 else None
        elif key == "arrows":
            changes["arrows"] = coerce_bool(value)
        elif key == "no-arrows":
            changes["arrows"] = False
        elif key == "xmode":
            log_x = (value or "").strip().lower() == "log"
        elif key == "ymode":
            log_y = (value or "").strip().lower() == "log"
        elif key == "polar":
            changes["geometry"] = GeometryKind.POLAR
        # anything else is forward-compatible noise

    if log_x or log_y:
        changes["log_x"] = log_x
        changes["log_y"] = log_y
        if changes.get("geometry", spec.geometry) is GeometryKind.CARTESIAN:
            changes["geometry"] = GeometryKind.LOG
    return replace(spec, **changes)  # type: ignore[arg-type]


# ============================================================================
# PLOT OPTIONS
# ============================================================================

def _column(value: Optional[str]) -> Optional[Column]:
    if value is None or not value.strip():
        return None
    n = coerce_int(value) if value.strip().lstrip("-").isdigit() else None
    return n if n is not None else value.strip()


def _table_options(opts: Options, base: TableOptions = TableOptions()) -> TableOptions:
    changes: Dict[str, object] = {}
    for key, value in opts.items():
        if key == "header":
            if value is not None and value.strip().lower() == "auto":
                changes["header"] = None
            else:
                changes["header"] = coerce_bool(value)
        elif key in {"col-sep", "delimiter"}:
            v = (value or "").strip()
            changes["delimiter"] = _COL_SEPS.get(v.lower(), v or None)
        elif key in {"x", "x-index", "x-column"}:
            col = _column(value)
            if col is not None:
                changes["x"] = col
        elif key in {"y", "y-index", "y-column"}:
            col = _column(value)
            if col is not None:
                changes["y"] = col
        elif key in {"meta", "label-column", "meta-index", "point-meta"}:
            changes["label"] = _column(value)
    return replace(base, **changes)  # type: ignore[arg-type]


class _PlotOptions:
    """Plot option list -> style + series settings."""

    def __init__(self, opts: Options) -> None:
        self.style_changes: Dict[str, object] = {}
        self.domain: Optional[Tuple[float, float]] = None
        self.samples: Optional[int] = None
        self.variable: Optional[str] = None
        self.label: Optional[str] = None
        self.polar = False
        self.table = _table_options(opts)

        for key, value in opts.items():
            self._apply(key, value)

    def _apply(self, key: str, value: Optional[str]) -> None:
        sc = self.style_changes
        if key in {"color", "draw"}:
            color = resolve_color(value)
            if color is not None:
                sc["color"] = color
        elif key in {"line-width", "linewidth"}:
            width = parse_length(value)
            if width is not None and width > 0:
                sc["line_width"] = width
        elif key in _LINE_WIDTHS and value is None:
            sc["line_width"] = _LINE_WIDTHS[key]
        elif key == "mark":
            sc["marker"] = MarkerShape.from_option(value)
        elif key == "mark-size":
            size = parse_length(value)
            if size is not None and size > 0:
                sc["marker_size"] = size
        elif key in {"style", "dash", "line-style"}:
            dash = _DASH_FLAGS.get(normalize_key(value or ""))
            if dash is not None:
                sc["dash"] = dash
        elif key in _DASH_FLAGS and value is None:
            sc["dash"] = _DASH_FLAGS[key]
        elif key == "opacity":
            op = coerce_float(value)
            if op is not None:
                sc["opacity"] = min(1.0, max(0.0, op))
        elif key == "smooth":
            sc["smooth"] = coerce_bool(value)
        elif key == "sharp-plot":
            sc["smooth"] = False
        elif key == "only-marks":
            sc["only_marks"] = coerce_bool(value)
        elif key in {"no-marks", "no-markers"}:
            sc["no_marks"] = coerce_bool(value)
        elif key == "fill":
            if value is None:
                sc["fill"] = "auto"
            else:
                color = resolve_color(value)
                if color is not None:
                    sc["fill"] = color
        elif key == "fill-opacity":
            op = coerce_float(value)
            if op is not None:
                sc["fill_opacity"] = min(1.0, max(0.0, op))
        elif key == "domain":
            self.domain = parse_domain(value)
        elif key == "samples":
            n = coerce_int(value)
            self.samples = n if n is not None and n >= 2 else None
        elif key == "variable":
            if value:
                self.variable = _normalize_variable(value)
        elif key in {"legend", "legend-entry"}:
            self.label = value or None
        elif key == "polar" or (key == "data-cs" and (value or "").strip().lower() == "polar"):
            self.polar = True
        elif value is None and "color" not in sc:
            # bare colour flag: [red], [blue!50]
            color = resolve_color(key)
            if color is not None:
                sc["color"] = color

    def style(self) -> SeriesStyle:
        return replace(SeriesStyle(), **self.style_changes)  # type: ignore[arg-type]


# ============================================================================
# STATEMENTS
# ============================================================================

_WORD_RE = {
    "coordinates": re.compile(r"coordinates\b"),
    "table": re.compile(r"table\b"),
    "expression": re.compile(r"expression\b"),
}


def _parse_plot(sc: _Scanner, spec: ChartSpec) -> SeriesDeclaration:
    sc.skip_ws()
    opts: Options = {}
    if sc.peek() == "[":
        opts = parse_options(sc.read_group("[", "]", "plot options"))
    po = _PlotOptions(opts)
    polar = po.polar or spec.geometry is GeometryKind.POLAR

    sc.skip_ws()
    start = sc.pos
    table = po.table
    if sc.match(_WORD_RE["coordinates"]):
        source = SourceKind.COORDINATES
        payload: object = sc.read_group("{", "}", "coordinates")
    elif sc.match(_WORD_RE["table"]):
        sc.skip_ws()
        if sc.peek() == "[":
            table = _table_options(parse_options(sc.read_group("[", "]", "table options")), table)
        source = SourceKind.TABLE
        payload = sc.read_group("{", "}", "table")
    elif sc.match(_WORD_RE["expression"]):
        source = SourceKind.POLAR if polar else SourceKind.FUNCTION
        payload = sc.read_group("{", "}", "expression").strip()
    elif sc.peek() == "{":
        source = SourceKind.POLAR if polar else SourceKind.FUNCTION
        payload = sc.read_group("{", "}", "expression").strip()
    elif sc.peek() == "(":
        inner = sc.read_group("(", ")", "parametric expression")
        parts = _split_top_level(inner)
        if len(parts) != 2:
            raise ParseError("Parametric plot needs exactly two expressions", _fragment(sc.text, start))
        source = SourceKind.PARAMETRIC
        payload = (_unbrace(parts[0]), _unbrace(parts[1]))
    else:
        raise ParseError("Expected plot payload", _fragment(sc.text, start))

    if source in (SourceKind.FUNCTION, SourceKind.POLAR) and not str(payload):
        raise ParseError("Empty plot expression", _fragment(sc.text, start))

    sc.skip_ws()
    if sc.peek() == ";":
        sc.pos += 1

    return SeriesDeclaration(
        source=source,
        payload=payload,  # type: ignore[arg-type]
        style=po.style(),
        domain=po.domain,
        samples=po.samples,
        variable=po.variable,
        table=table,
        label=po.label,
    )


def _find_end(text: str, begin: "re.Match[str]") -> Tuple[int, int]:
    env = begin.group(1)
    if env:
        end_re = re.compile(r"\\end\s*\{\s*" + env + r"\s*\}")
    else:
        end_re = re.compile(r"\bend-axis\b")
    m = end_re.search(text, begin.end())
    if not m:
        raise ParseError("Unterminated axis block", _fragment(text, begin.start()))
    return m.start(), m.end()


def parse(text: str) -> ChartSpec:
    """Parse chart source into a ChartSpec, or raise ParseError."""
    if not isinstance(text, str):
        raise ParseError("Chart source must be text")
    src = strip_comments(text)

    begin = _BEGIN_RE.search(src)
    if not begin:
        raise ParseError("Missing axis block", _fragment(src, 0))
    body_end, _ = _find_end(src, begin)

    spec = ChartSpec()
    env = begin.group(1)
    if env:
        geometry, log_x, log_y = _ENV_GEOMETRY[env]
        spec = replace(spec, geometry=geometry, log_x=log_x, log_y=log_y)

    sc = _Scanner(src, begin.end(), body_end)
    sc.skip_ws()
    if sc.peek() == "[":
        spec = _apply_axis_options(spec, parse_options(sc.read_group("[", "]", "axis options")))

    series: List[SeriesDeclaration] = []
    while not sc.at_end():
        ch = sc.peek()
        if ch == ";":
            sc.pos += 1
            continue
        if sc.match(_PLOT_RE):
            series.append(_parse_plot(sc, spec))
        elif sc.match(_LEGEND_ENTRY_RE):
            label = sc.read_group("{", "}", "legend entry").strip()
            if series:
                series[-1] = series[-1].with_label(label)
            else:
                logger.warning("Parser: legend entry %r before any plot, ignored", truncate(label, 40))
        elif sc.match(_LEGEND_LIST_RE):
            labels = _split_top_level(sc.read_group("{", "}", "legend list"))
            for i, label in enumerate(labels[:len(series)]):
                series[i] = series[i].with_label(_unbrace(label))
        else:
            start = sc.pos
            sc.skip_statement()
            logger.debug("Parser: skipped unknown statement %r", _fragment(src[:sc.pos], start))

    spec = replace(spec, series=tuple(series))
    logger.debug(
        "Parser: parsed %d series (geometry=%s, samples=%s)",
        len(series), spec.geometry.value, spec.samples or settings.DEFAULT_SAMPLES,
    )
    return spec
