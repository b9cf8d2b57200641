"""
utils.py — Shared helpers for the chart_plotter package

This file contains small, reusable utilities used by:
- parser.py   (colour and label coercion)
- plotter.py  (logging, palette)
- charts.py / legend.py / axes.py (colours, text cleanup)

It intentionally does NOT contain:
- dynamic_chart_plotter() / ChartManager
- any primitive composition (axes, series, legend)

Keep it “boring + stable”.
"""

import logging
import re
from typing import Optional, Tuple

import matplotlib.colors as mcolors

from config import settings


# ============================================================================
# LOGGING
# ============================================================================

def setup_logger(name, level_str=settings.LOG_LEVEL):
    """
    Sets up a module logger with a console stream handler.
    Propagation stays ON so applications can attach their own root handlers.
    """
    log_level = getattr(logging, str(level_str).upper(), logging.INFO)
    formatter = logging.Formatter('%(asctime)s - %(levelname)5s | %(name)s | %(message)s')

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Avoid duplicate console handlers on repeated imports
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        logger.addHandler(handler)

    logger.propagate = True
    return logger


def truncate(text: str, limit: int = 120, ellipsis: str = "…") -> str:
    """Shorten text to 'limit' characters with a tidy word boundary if possible."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    cut = text[:limit].rsplit(" ", 1)[0]
    return (cut if cut else text[:limit]) + ellipsis


# ============================================================================
# COLOR
# ============================================================================

PALETTE = (
    "tab:blue",
    "tab:orange",
    "tab:green",
    "tab:red",
    "tab:purple",
    "tab:brown",
    "tab:pink",
    "tab:gray",
)

# xcolor base names that differ from (or are missing in) matplotlib's CSS table
XCOLOR_NAMES = {
    "red": "#ff0000",
    "green": "#00ff00",
    "blue": "#0000ff",
    "cyan": "#00ffff",
    "magenta": "#ff00ff",
    "yellow": "#ffff00",
    "black": "#000000",
    "white": "#ffffff",
    "gray": "#808080",
    "darkgray": "#404040",
    "lightgray": "#bfbfbf",
    "brown": "#bf8040",
    "lime": "#bfff00",
    "olive": "#808000",
    "orange": "#ff8000",
    "pink": "#ffbfbf",
    "purple": "#bf0040",
    "teal": "#008080",
    "violet": "#800080",
}

_RGB_FUNC = re.compile(r"^rgba?\(\s*([^)]*)\)$", re.IGNORECASE)


def get_color_cycle(index: int) -> str:
    """Deterministic palette colour for the n-th series, as hex."""
    return mcolors.to_hex(PALETTE[index % len(PALETTE)])


def _base_rgb(name: str) -> Optional[Tuple[float, float, float]]:
    s = name.strip().lower()
    if not s:
        return None
    if s in XCOLOR_NAMES:
        return mcolors.to_rgb(XCOLOR_NAMES[s])

    m = _RGB_FUNC.match(s)
    if m:
        parts = [p.strip() for p in m.group(1).split(",")]
        if len(parts) < 3:
            return None
        try:
            vals = [float(p) for p in parts[:3]]
        except ValueError:
            return None
        scale = 255.0 if any(v > 1.0 for v in vals) else 1.0
        return tuple(min(1.0, max(0.0, v / scale)) for v in vals)  # type: ignore[return-value]

    try:
        return mcolors.to_rgb(s)
    except ValueError:
        return None


def resolve_color(value: Optional[str]) -> Optional[str]:
    """
    Resolve a colour spec to '#rrggbb', or None if it is not a colour.

    Accepts matplotlib/CSS names, hex, rgb(...) and xcolor mixes:
      red!30          30% red, 70% white
      red!30!blue     30% red, 70% blue
      red!30!blue!50  the above at 50%, rest white
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None

    parts = s.split("!")
    rgb = _base_rgb(parts[0])
    if rgb is None:
        return None

    rest = parts[1:]
    while rest:
        try:
            pct = float(rest[0])
        except ValueError:
            return None
        pct = min(100.0, max(0.0, pct)) / 100.0
        other = _base_rgb(rest[1]) if len(rest) > 1 else (1.0, 1.0, 1.0)
        if other is None:
            return None
        rgb = tuple(pct * a + (1.0 - pct) * b for a, b in zip(rgb, other))  # type: ignore[assignment]
        rest = rest[2:]

    return mcolors.to_hex(rgb)


# ============================================================================
# TEXT
# ============================================================================

def latex_to_unicode(text: str) -> str:
    latex_map = {
        r"\leq": "≤",
        r"\le": "≤",
        r"\geq": "≥",
        r"\ge": "≥",
        r"\neq": "≠",
        r"\ne": "≠",
        r"\times": "×",
        r"\cdot": "·",
        r"\div": "÷",
        r"\pm": "±",
        r"\infty": "∞",
        r"\theta": "θ",
        r"\alpha": "α",
        r"\beta": "β",
        r"\lambda": "λ",
        r"\mu": "μ",
        r"\sigma": "σ",
        r"\pi": "π",
        r"\degree": "°",
    }

    s = str(text).replace("$", "")
    for k, v in latex_map.items():
        s = s.replace(k, v)
    return s


def clean_label_text(text: str) -> str:
    """Legend/axis label cleanup: unicode symbols, no TeX grouping or escapes."""
    s = str(text)
    s = s.replace("\\\\", "\\")
    s = latex_to_unicode(s)
    s = re.sub(r"\^\{([^{}]*)\}", r"^\1", s)
    s = re.sub(r"_\{([^{}]*)\}", r"_\1", s)
    s = s.replace("{", "").replace("}", "")
    return s.strip()
