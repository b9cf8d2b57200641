from __future__ import annotations

import math

import pytest

from chart_plotter.errors import ExpressionError
from chart_plotter.evaluator import compile_expression, evaluate, evaluate_constant, normalize, tokenize


@pytest.mark.parametrize(
    "text, bindings, expected",
    [
        ("1 + 2 * 3", {}, 7.0),
        ("(1 + 2) * 3", {}, 9.0),
        ("2^3^2", {}, 512.0),
        ("-x^2", {"x": 3.0}, -9.0),
        ("2x", {"x": 4.0}, 8.0),
        ("(x+1)(x-1)", {"x": 3.0}, 8.0),
        ("x(x+1)", {"x": 2.0}, 6.0),
        ("2 pi", {}, 2.0 * math.pi),
        ("sin(pi/2)", {}, 1.0),
        ("arctan(1)", {}, math.pi / 4.0),
        ("log(100, 10)", {}, 2.0),
        ("ln(e)", {}, 1.0),
        ("max(1, 5, 3)", {}, 5.0),
        ("round(2.5)", {}, 3.0),
        ("sign(-4)", {}, -1.0),
        ("cbrt(-27)", {}, -3.0),
        ("deg(pi)", {}, 180.0),
        ("5!", {}, 120.0),
        ("3!2", {}, 12.0),
        ("x**2", {"x": 5.0}, 25.0),
        ("\\frac{1}{2} \\cdot 4", {}, 2.0),
        ("\\sin{\\pi}", {}, 0.0),
        ("2θ", {"theta": 1.5}, 3.0),
    ],
)
def test_evaluate_values(text, bindings, expected):
    res = evaluate(text, bindings)
    assert res.valid, res.error
    assert res.value == pytest.approx(expected, abs=1e-9)


def test_gamma_matches_factorial():
    for n in range(1, 8):
        res = evaluate("gamma(n + 1)", {"n": float(n)})
        assert res.valid
        assert res.value == pytest.approx(math.factorial(n), rel=1e-9)
    assert evaluate("gamma(0.5)").value == pytest.approx(math.sqrt(math.pi), rel=1e-9)


@pytest.mark.parametrize(
    "text, bindings",
    [
        ("1/0", {}),
        ("sqrt(-1)", {}),
        ("ln(0)", {}),
        ("(-8)^(1/3)", {}),
        ("exp(1000)", {}),
        ("factorial(2.5)", {}),
        ("gamma(-2)", {}),
        ("tan(x)", {"x": math.nan}),
        ("x - x", {"x": math.inf}),
        ("1e999 * 0", {}),
        ("sign(1e308*10 - 1e308*10)", {}),
        ("max(1, 1e308*10*0)", {}),
        ("1/(1e308*10)", {}),
        ("min(-1e308*10, 2)", {}),
    ],
)
def test_numeric_failures_are_invalid(text, bindings):
    res = evaluate(text, bindings)
    assert res.valid is False
    assert math.isnan(res.value)


@pytest.mark.parametrize(
    "text",
    [
        "__import__('os').system('echo hi')",
        "os.system('ls')",
        "x if x else 1",
        "[1, 2]",
        "lambda: 1",
        "open('f')",
        "(1 + 2",
        "1 + 2)",
        "2 3",
        "sin()",
        "atan2(1)",
        "",
        "   ",
        "1 +",
        "y + 1",
        "\"1\"",
    ],
)
def test_rejects_anything_outside_the_language(text):
    res = evaluate(text, {"x": 1.0})
    assert res.valid is False
    assert res.error


def test_compile_raises_expression_error():
    with pytest.raises(ExpressionError):
        compile_expression("import os")
    with pytest.raises(ExpressionError):
        compile_expression("sin(x)", variables=("sin",))


def test_length_depth_and_step_limits():
    with pytest.raises(ExpressionError):
        compile_expression("1+" * 40 + "1", max_length=20)
    with pytest.raises(ExpressionError):
        compile_expression("(" * 30 + "1" + ")" * 30, max_depth=10)

    fn = compile_expression("x+x+x+x+x+x+x+x", max_steps=5)
    res = fn.try_evaluate({"x": 1.0})
    assert res.valid is False
    assert "step" in res.error


def test_deep_trees_are_rejected_not_recursed():
    res = evaluate("0" + "!" * 1000)
    assert res.valid is False
    assert "deep" in res.error

    assert evaluate("+" * 1000 + "1").valid is False
    assert evaluate("-" * 1000 + "1").valid is False
    with pytest.raises(ExpressionError):
        compile_expression("1+" * 5000 + "1", max_length=20000)
    with pytest.raises(ExpressionError):
        compile_expression("x" + "*x" * 5000, max_length=20000)

    assert evaluate("3!!").value == pytest.approx(720.0)
    assert evaluate("1+" * 100 + "1").value == pytest.approx(101.0)
    assert evaluate_constant("0" + "!" * 1000) is None


def test_compiled_expression_is_reusable():
    fn = compile_expression("x^2 - 1")
    assert fn(x=3.0).value == pytest.approx(8.0)
    assert fn(x=0.0).value == pytest.approx(-1.0)
    assert fn.try_evaluate({}).valid is False  # unbound


def test_evaluate_constant():
    assert evaluate_constant("2*pi") == pytest.approx(2.0 * math.pi)
    assert evaluate_constant("-3") == pytest.approx(-3.0)
    assert evaluate_constant("x") is None
    assert evaluate_constant("abc") is None


def test_normalize_and_tokenize():
    assert normalize("\\frac{a}{b}") == "((a)/(b))"
    assert normalize("π·2") == "pi*2"
    assert tokenize("2**x") == [("num", "2"), ("op", "^"), ("name", "x")]
    with pytest.raises(ExpressionError):
        tokenize("1 ; 2")
