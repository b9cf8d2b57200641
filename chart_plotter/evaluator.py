"""
evaluator.py — Sandboxed math expression evaluation

This file contains ONLY:
- the tokenizer (with LaTeX-ish normalization and implicit multiplication)
- a recursive-descent parser producing a small expression tree
- a tree-walking evaluator over a fixed allow-list of constants/functions

It intentionally does NOT contain:
- any host `eval`/`exec` call (nothing here ever runs text as code)
- sampling over domains (that lives in series.py)

Grammar (lowest to highest precedence):
    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | power
    power   := postfix ('^' unary)?          right-assoc, so -x^2 == -(x^2)
    postfix := primary '!'*
    primary := NUMBER | NAME '(' args ')' | NAME | '(' expr ')'
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from config import settings

from .errors import EvaluationError, ExpressionError


# ============================================================================
# ALLOW-LIST
# ============================================================================

CONSTANTS: Dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
    "sqrt2": math.sqrt(2.0),
    "sqrt1_2": math.sqrt(0.5),
    "ln2": math.log(2.0),
    "ln10": math.log(10.0),
    "log2e": 1.0 / math.log(2.0),
    "log10e": 1.0 / math.log(10.0),
}

_LANCZOS_G = 7
_LANCZOS_COEFFS = (
    0.99999999999980993,
    676.5203681218851,
    -1259.1392167224028,
    771.32342877765313,
    -176.61502916214059,
    12.507343278686905,
    -0.13857109526572012,
    9.9843695780195716e-6,
    1.5056327351493116e-7,
)


def _gamma(x: float) -> float:
    """Lanczos approximation, with reflection for x < 0.5."""
    if x <= 0 and float(x).is_integer():
        raise EvaluationError(f"gamma pole at {x:g}")
    if x < 0.5:
        return math.pi / (math.sin(math.pi * x) * _gamma(1.0 - x))
    x -= 1.0
    a = _LANCZOS_COEFFS[0]
    t = x + _LANCZOS_G + 0.5
    for i in range(1, _LANCZOS_G + 2):
        a += _LANCZOS_COEFFS[i] / (x + i)
    return math.sqrt(2.0 * math.pi) * t ** (x + 0.5) * math.exp(-t) * a


def _factorial(x: float) -> float:
    n = round(x)
    if abs(x - n) > 1e-9 or n < 0:
        raise EvaluationError(f"factorial needs a non-negative integer, got {x:g}")
    if n > 170:
        raise EvaluationError("factorial overflow")
    return float(math.factorial(int(n)))


def _log(x: float, base: Optional[float] = None) -> float:
    if base is None:
        return math.log(x)
    return math.log(x) / math.log(base)


def _sign(x: float) -> float:
    if x > 0:
        return 1.0
    if x < 0:
        return -1.0
    return 0.0


def _cbrt(x: float) -> float:
    return math.copysign(abs(x) ** (1.0 / 3.0), x)


def _recip(fn: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(value: float) -> float:
        return 1.0 / fn(value)

    return wrapped


# name -> (callable, min arity, max arity or None for variadic)
FUNCTIONS: Dict[str, Tuple[Callable[..., float], int, Optional[int]]] = {
    "sin": (math.sin, 1, 1),
    "cos": (math.cos, 1, 1),
    "tan": (math.tan, 1, 1),
    "sec": (_recip(math.cos), 1, 1),
    "csc": (_recip(math.sin), 1, 1),
    "cot": (_recip(math.tan), 1, 1),
    "asin": (math.asin, 1, 1),
    "acos": (math.acos, 1, 1),
    "atan": (math.atan, 1, 1),
    "atan2": (math.atan2, 2, 2),
    "sinh": (math.sinh, 1, 1),
    "cosh": (math.cosh, 1, 1),
    "tanh": (math.tanh, 1, 1),
    "asinh": (math.asinh, 1, 1),
    "acosh": (math.acosh, 1, 1),
    "atanh": (math.atanh, 1, 1),
    "exp": (math.exp, 1, 1),
    "log": (_log, 1, 2),
    "ln": (math.log, 1, 1),
    "log10": (math.log10, 1, 1),
    "log2": (math.log2, 1, 1),
    "sqrt": (math.sqrt, 1, 1),
    "cbrt": (_cbrt, 1, 1),
    "pow": (math.pow, 2, 2),
    "abs": (abs, 1, 1),
    "floor": (lambda x: float(math.floor(x)), 1, 1),
    "ceil": (lambda x: float(math.ceil(x)), 1, 1),
    "round": (lambda x: float(math.floor(x + 0.5)), 1, 1),
    "sign": (_sign, 1, 1),
    "min": (min, 1, None),
    "max": (max, 1, None),
    "mod": (math.fmod, 2, 2),
    "deg": (math.degrees, 1, 1),
    "rad": (math.radians, 1, 1),
    "factorial": (_factorial, 1, 1),
    "gamma": (_gamma, 1, 1),
}

# pgfplots / LaTeX spellings
_ALIASES = {
    "arcsin": "asin",
    "arccos": "acos",
    "arctan": "atan",
}


# ============================================================================
# TREE
# ============================================================================

@dataclass(frozen=True)
class Num:
    value: float


@dataclass(frozen=True)
class Var:
    name: str


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: Tuple["Node", ...]


@dataclass(frozen=True)
class Factorial:
    operand: "Node"


Node = Union[Num, Var, Unary, Binary, Call, Factorial]


# ============================================================================
# TOKENIZER
# ============================================================================

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<num>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z_0-9]*)"
    r"|(?P<op>\*\*|[-+*/^!(),])"
    r")"
)

_UNICODE = {
    "π": "pi",
    "θ": "theta",
    "·": "*",
    "×": "*",
    "÷": "/",
    "−": "-",
    "√": "sqrt",
}


def _expand_frac(s: str) -> str:
    """\\frac{a}{b} -> ((a)/(b)), innermost first."""
    marker = "\\frac"
    while True:
        i = s.rfind(marker)
        if i < 0:
            return s
        j = i + len(marker)
        groups: List[str] = []
        for _ in range(2):
            while j < len(s) and s[j].isspace():
                j += 1
            if j >= len(s) or s[j] != "{":
                raise ExpressionError("Malformed \\frac")
            depth = 0
            start = j
            while j < len(s):
                if s[j] == "{":
                    depth += 1
                elif s[j] == "}":
                    depth -= 1
                    if depth == 0:
                        break
                j += 1
            if depth != 0:
                raise ExpressionError("Unbalanced braces in \\frac")
            groups.append(s[start + 1:j])
            j += 1
        s = f"{s[:i]}(({groups[0]})/({groups[1]})){s[j:]}"


def normalize(text: str) -> str:
    """LaTeX-ish input -> plain infix text."""
    s = str(text)
    for k, v in _UNICODE.items():
        s = s.replace(k, v)
    s = _expand_frac(s)
    s = s.replace("\\cdot", "*").replace("\\times", "*")
    s = s.replace("\\left", "").replace("\\right", "")
    s = re.sub(r"\\([A-Za-z]+)", r"\1", s)
    return s.replace("{", "(").replace("}", ")")


def tokenize(text: str) -> List[Tuple[str, str]]:
    s = normalize(text)
    tokens: List[Tuple[str, str]] = []
    pos = 0
    while pos < len(s):
        if s[pos:].isspace():
            break
        m = _TOKEN_RE.match(s, pos)
        if not m or m.end() == pos:
            bad = s[pos:].lstrip()[:1]
            raise ExpressionError(f"Unexpected character {bad!r}")
        pos = m.end()
        if m.group("num") is not None:
            tokens.append(("num", m.group("num")))
        elif m.group("name") is not None:
            name = m.group("name")
            tokens.append(("name", _ALIASES.get(name, name)))
        else:
            op = m.group("op")
            tokens.append(("op", "^" if op == "**" else op))
    return tokens


def _insert_implicit_multiplication(tokens: Sequence[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """2x -> 2*x, (a)(b) -> (a)*(b), x(x+1) -> x*(x+1), 3! x -> 3!*x."""
    out: List[Tuple[str, str]] = []
    for tok in tokens:
        if out:
            prev_kind, prev_val = out[-1]
            kind, val = tok
            left_ends_operand = (
                prev_kind == "num"
                or (prev_kind == "name" and prev_val not in FUNCTIONS)
                or (prev_kind == "op" and prev_val in {")", "!"})
            )
            # "2 3" stays a syntax error
            right_starts_operand = (
                kind == "name"
                or (kind == "op" and val == "(")
                or (kind == "num" and prev_kind != "num")
            )
            if left_ends_operand and right_starts_operand:
                out.append(("op", "*"))
        out.append(tok)
    return out


# ============================================================================
# PARSER
# ============================================================================

class _Parser:
    def __init__(self, tokens: Sequence[Tuple[str, str]], variables: Iterable[str], max_depth: int) -> None:
        self.tokens = list(tokens)
        self.pos = 0
        self.variables = set(variables)
        self.max_depth = max_depth
        self.depth = 0
        # long operator chains nest on the left without recursing in the parser
        self.max_height = max_depth * 4
        self.heights: Dict[int, int] = {}

    # --- token helpers ---
    def _peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _accept(self, op: str) -> bool:
        tok = self._peek()
        if tok == ("op", op):
            self.pos += 1
            return True
        return False

    def _expect(self, op: str) -> None:
        if not self._accept(op):
            tok = self._peek()
            found = tok[1] if tok else "end of input"
            raise ExpressionError(f"Expected {op!r}, found {found!r}")

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > self.max_depth:
            raise ExpressionError("Expression nested too deeply")

    def _leave(self) -> None:
        self.depth -= 1

    def _node(self, node: Node, *children: Node) -> Node:
        height = 1 + max(self.heights.get(id(c), 1) for c in children)
        if height > self.max_height:
            raise ExpressionError("Expression nested too deeply")
        self.heights[id(node)] = height
        return node

    # --- grammar ---
    def parse(self) -> Node:
        if not self.tokens:
            raise ExpressionError("Empty expression")
        node = self._expr()
        if self.pos != len(self.tokens):
            raise ExpressionError(f"Unexpected token {self.tokens[self.pos][1]!r}")
        return node

    def _expr(self) -> Node:
        self._enter()
        node = self._term()
        while True:
            if self._accept("+"):
                right = self._term()
                node = self._node(Binary("+", node, right), node, right)
            elif self._accept("-"):
                right = self._term()
                node = self._node(Binary("-", node, right), node, right)
            else:
                break
        self._leave()
        return node

    def _term(self) -> Node:
        node = self._unary()
        while True:
            if self._accept("*"):
                right = self._unary()
                node = self._node(Binary("*", node, right), node, right)
            elif self._accept("/"):
                right = self._unary()
                node = self._node(Binary("/", node, right), node, right)
            else:
                return node

    def _unary(self) -> Node:
        if self._accept("-"):
            self._enter()
            operand = self._unary()
            node = self._node(Unary("-", operand), operand)
            self._leave()
            return node
        if self._accept("+"):
            self._enter()
            node = self._unary()
            self._leave()
            return node
        return self._power()

    def _power(self) -> Node:
        base = self._postfix()
        if self._accept("^"):
            self._enter()
            exponent = self._unary()
            self._leave()
            return self._node(Binary("^", base, exponent), base, exponent)
        return base

    def _postfix(self) -> Node:
        node = self._primary()
        bangs = 0
        while self._accept("!"):
            self._enter()
            bangs += 1
            node = self._node(Factorial(node), node)
        self.depth -= bangs
        return node

    def _primary(self) -> Node:
        tok = self._peek()
        if tok is None:
            raise ExpressionError("Unexpected end of expression")
        kind, val = tok

        if kind == "num":
            self.pos += 1
            return Num(float(val))

        if kind == "name":
            self.pos += 1
            if val in FUNCTIONS:
                return self._call(val)
            if val in self.variables:
                return Var(val)
            if val in CONSTANTS:
                return Num(CONSTANTS[val])
            raise ExpressionError(f"Unknown identifier {val!r}")

        if val == "(":
            self.pos += 1
            node = self._expr()
            self._expect(")")
            return node

        raise ExpressionError(f"Unexpected token {val!r}")

    def _call(self, name: str) -> Node:
        self._expect("(")
        args: List[Node] = []
        if not self._accept(")"):
            args.append(self._expr())
            while self._accept(","):
                args.append(self._expr())
            self._expect(")")

        _, lo, hi = FUNCTIONS[name]
        if len(args) < lo or (hi is not None and len(args) > hi):
            raise ExpressionError(f"Wrong number of arguments for {name}()")
        if not args:
            return Call(name, ())
        return self._node(Call(name, tuple(args)), *args)


# ============================================================================
# EVALUATION
# ============================================================================

@dataclass(frozen=True)
class EvalResult:
    value: float
    valid: bool
    error: Optional[str] = None


class _Budget:
    __slots__ = ("left",)

    def __init__(self, steps: int) -> None:
        self.left = steps

    def spend(self) -> None:
        self.left -= 1
        if self.left < 0:
            raise EvaluationError("Evaluation step limit exceeded")


def _finite(value: float, where: str) -> float:
    if not math.isfinite(value):
        raise EvaluationError(f"{where}: non-finite value {value}")
    return value


def _eval(node: Node, env: Mapping[str, float], budget: _Budget) -> float:
    """Every intermediate value must be finite; NaN and inf never reach a result."""
    budget.spend()

    if isinstance(node, Num):
        return _finite(node.value, "number")

    if isinstance(node, Var):
        try:
            return _finite(float(env[node.name]), node.name)
        except KeyError:
            raise EvaluationError(f"Unbound variable {node.name!r}") from None

    if isinstance(node, Unary):
        return -_eval(node.operand, env, budget)

    if isinstance(node, Binary):
        left = _eval(node.left, env, budget)
        right = _eval(node.right, env, budget)
        try:
            if node.op == "+":
                value = left + right
            elif node.op == "-":
                value = left - right
            elif node.op == "*":
                value = left * right
            elif node.op == "/":
                value = left / right
            else:
                # math.pow raises on negative base with fractional exponent instead of going complex
                value = math.pow(left, right)
        except (ZeroDivisionError, ValueError, OverflowError) as e:
            raise EvaluationError(f"{left:g} {node.op} {right:g}: {e}") from None
        return _finite(value, f"{left:g} {node.op} {right:g}")

    if isinstance(node, Call):
        fn = FUNCTIONS[node.name][0]
        args = [_eval(a, env, budget) for a in node.args]
        try:
            value = float(fn(*args))
        except EvaluationError:
            raise
        except (ZeroDivisionError, ValueError, OverflowError) as e:
            raise EvaluationError(f"{node.name}(): {e}") from None
        return _finite(value, f"{node.name}()")

    if isinstance(node, Factorial):
        return _factorial(_eval(node.operand, env, budget))

    raise EvaluationError(f"Unsupported node {type(node).__name__}")


class CompiledExpression:
    """A parsed expression bound to a fixed set of free variable names."""

    def __init__(self, text: str, tree: Node, variables: Tuple[str, ...], max_steps: int) -> None:
        self.text = text
        self.tree = tree
        self.variables = variables
        self.max_steps = max_steps

    def __repr__(self) -> str:
        return f"CompiledExpression({self.text!r}, variables={self.variables!r})"

    def evaluate(self, bindings: Optional[Mapping[str, float]] = None) -> float:
        """Evaluate or raise EvaluationError. Non-finite results raise too."""
        try:
            value = _eval(self.tree, bindings or {}, _Budget(self.max_steps))
        except RecursionError:
            raise EvaluationError("Expression nested too deeply") from None
        if not math.isfinite(value):
            raise EvaluationError(f"Non-finite result {value}")
        return value

    def try_evaluate(self, bindings: Optional[Mapping[str, float]] = None) -> EvalResult:
        try:
            return EvalResult(self.evaluate(bindings), True)
        except EvaluationError as e:
            return EvalResult(math.nan, False, str(e))

    def __call__(self, **bindings: float) -> EvalResult:
        return self.try_evaluate(bindings)


def compile_expression(
    text: str,
    variables: Iterable[str] = ("x",),
    *,
    max_length: Optional[int] = None,
    max_depth: Optional[int] = None,
    max_steps: Optional[int] = None,
) -> CompiledExpression:
    """Parse `text` once; raise ExpressionError if it is not in the language."""
    if not isinstance(text, str) or not text.strip():
        raise ExpressionError("Expression is required")
    limit = settings.MAX_EXPR_LENGTH if max_length is None else max_length
    if len(text) > limit:
        raise ExpressionError("Expression is too long")

    names = tuple(_ALIASES.get(v, v) for v in variables)
    for name in names:
        if name in FUNCTIONS:
            raise ExpressionError(f"Variable name {name!r} shadows a function")

    tokens = _insert_implicit_multiplication(tokenize(text))
    parser = _Parser(tokens, names, settings.MAX_EXPR_DEPTH if max_depth is None else max_depth)
    try:
        tree = parser.parse()
    except RecursionError:
        raise ExpressionError("Expression nested too deeply") from None
    steps = settings.MAX_EVAL_STEPS if max_steps is None else max_steps
    return CompiledExpression(text.strip(), tree, names, steps)


def evaluate(expression: str, bindings: Optional[Mapping[str, float]] = None) -> EvalResult:
    """
    One-shot evaluation. Never raises for bad input: anything outside the
    language (unknown names, control flow, unbalanced parens) is valid=False.
    """
    bindings = dict(bindings or {})
    try:
        compiled = compile_expression(expression, tuple(bindings))
    except ExpressionError as e:
        return EvalResult(math.nan, False, str(e))
    return compiled.try_evaluate(bindings)


def evaluate_constant(text: str) -> Optional[float]:
    """Numeric value of a variable-free expression like '2*pi' or '-3', else None."""
    result = evaluate(text)
    return result.value if result.valid else None
