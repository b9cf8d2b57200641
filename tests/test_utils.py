from __future__ import annotations

import pytest

from chart_plotter.primitives import Circle, Group, Text, find_group, to_dict
from chart_plotter.utils import clean_label_text, get_color_cycle, resolve_color, truncate


@pytest.mark.parametrize(
    "value, expected",
    [
        ("red", "#ff0000"),
        ("Teal", "#008080"),
        ("#abcdef", "#abcdef"),
        ("rgb(255, 0, 0)", "#ff0000"),
        ("rgb(0, 0.5, 1)", "#0080ff"),
        ("tab:blue", "#1f77b4"),
        ("black!50", "#808080"),
        ("red!50!blue", "#800080"),
        ("red!0", "#ffffff"),
        ("red!100!blue", "#ff0000"),
    ],
)
def test_resolve_color(value, expected):
    assert resolve_color(value) == expected


@pytest.mark.parametrize("value", [None, "", "smooth", "red!x", "red!50!nope", "rgb(1,2)"])
def test_resolve_color_rejects(value):
    assert resolve_color(value) is None


def test_palette_cycles():
    assert get_color_cycle(0) == get_color_cycle(8)
    assert get_color_cycle(0) != get_color_cycle(1)


def test_clean_label_text():
    assert clean_label_text("$\\theta \\leq \\pi$") == "θ ≤ π"
    assert clean_label_text("$x^{2} + y_{i}$") == "x^2 + y_i"


def test_truncate():
    assert truncate("short") == "short"
    assert truncate("alpha beta gamma", 12) == "alpha beta…"
    assert truncate("", 5) == ""


def test_tree_helpers():
    tree = Group("root", (Group("inner", (Circle((1.0, 2.0), 3.0, fill="#000000"),)), Text((0.0, 0.0), "hi")))
    assert find_group(tree, "inner").children[0].radius == 3.0
    assert find_group(tree, "missing") is None
    d = to_dict(tree)
    assert d["children"][0]["children"][0] == {
        "type": "circle",
        "center": [1.0, 2.0],
        "radius": 3.0,
        "fill": "#000000",
        "stroke": None,
        "stroke_width": 1.0,
        "opacity": 1.0,
    }
    assert d["children"][1]["text"] == "hi"
