"""Safe evaluation of conversion formulas.

Formulas are data: strings such as ``"value * 1.94384"`` or
``"(value - 273.15) * 9/5 + 32"`` supplied by the conversion catalog and
evaluated against the single variable ``value``.  Parsing goes through
Python's ``ast`` module and only numeric literals, arithmetic operators,
a whitelist of math functions and the constants ``pi`` and ``e`` are
accepted.  ``^`` is read as exponentiation.

Formula strings naming a duration formatter (``formatDurationHMS(value)``)
are dispatched to ``sk_units.core.durations`` and return a string.
"""

from __future__ import annotations

import ast
import math
import operator
from functools import lru_cache
from typing import Any, Callable

from sk_units.core.durations import format_duration, is_duration_formula
from sk_units.core.errors import FormulaError, NonFiniteResult, TypeMismatch
from sk_units.utils.constants import FORMULA_VARIABLE

_MAX_FORMULA_LENGTH = 512


def _round(x: float, digits: float = 0) -> float:
    return round(x, int(digits))


def _log(x: float, base: float = math.e) -> float:
    return math.log(x, base)


_FUNCTIONS: dict[str, Callable[..., float]] = {
    "abs": abs,
    "sqrt": math.sqrt,
    "pow": math.pow,
    "round": _round,
    "floor": math.floor,
    "ceil": math.ceil,
    "min": min,
    "max": max,
    "exp": math.exp,
    "log": _log,
    "log10": math.log10,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "atan2": math.atan2,
}

_CONSTANTS = {"pi": math.pi, "e": math.e}

_BINARY_OPS: dict[type[ast.operator], Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Pow: lambda base, exponent: float(base) ** exponent,
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def _check_node(node: ast.AST, formula: str) -> None:
    if isinstance(node, ast.Expression):
        _check_node(node.body, formula)
    elif isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FormulaError(formula, "only numeric literals are allowed")
    elif isinstance(node, ast.Name):
        if node.id != FORMULA_VARIABLE and node.id not in _CONSTANTS:
            raise FormulaError(formula, f"unknown name '{node.id}'")
    elif isinstance(node, ast.BinOp):
        if type(node.op) not in _BINARY_OPS:
            raise FormulaError(formula, "operator not permitted")
        _check_node(node.left, formula)
        _check_node(node.right, formula)
    elif isinstance(node, ast.UnaryOp):
        if type(node.op) not in _UNARY_OPS:
            raise FormulaError(formula, "unary operator not permitted")
        _check_node(node.operand, formula)
    elif isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            raise FormulaError(formula, "function not permitted")
        if node.keywords:
            raise FormulaError(formula, "keyword arguments are not supported")
        for arg in node.args:
            _check_node(arg, formula)
    else:
        raise FormulaError(formula, f"unsupported syntax ({type(node).__name__})")


@lru_cache(maxsize=512)
def parse_formula(formula: str) -> ast.Expression:
    """Parse and validate a numeric formula.

    Raises:
        FormulaError: If the formula is empty, too long, not valid syntax or
            uses anything outside the whitelist.
    """
    if not isinstance(formula, str) or not formula.strip():
        raise FormulaError(str(formula), "formula is required")
    if len(formula) > _MAX_FORMULA_LENGTH:
        raise FormulaError(formula[:40] + "...", "formula is too long")
    try:
        tree = ast.parse(formula.strip().replace("^", "**"), mode="eval")
    except SyntaxError as exc:
        raise FormulaError(formula, f"invalid syntax: {exc.msg}") from exc
    _check_node(tree, formula)
    return tree


def _eval(node: ast.AST, value: float) -> Any:
    if isinstance(node, ast.Expression):
        return _eval(node.body, value)
    if isinstance(node, ast.Constant):
        return node.value
    if isinstance(node, ast.Name):
        return value if node.id == FORMULA_VARIABLE else _CONSTANTS[node.id]
    if isinstance(node, ast.BinOp):
        return _BINARY_OPS[type(node.op)](_eval(node.left, value), _eval(node.right, value))
    if isinstance(node, ast.UnaryOp):
        return _UNARY_OPS[type(node.op)](_eval(node.operand, value))
    # ast.Call, guaranteed whitelisted by parse_formula
    args = [_eval(arg, value) for arg in node.args]
    return _FUNCTIONS[node.func.id](*args)


def evaluate_formula(formula: str, value: float) -> float | str:
    """Evaluate *formula* with ``value`` bound to *value*.

    Returns:
        The numeric result, or a formatted string when the formula names a
        duration formatter.

    Raises:
        TypeMismatch: If *value* is not a real number.
        NonFiniteResult: If *value* or the result is NaN or infinite.
        FormulaError: If the formula is malformed or evaluation fails.
        UnknownDurationFormat: For an unrecognised duration formula.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeMismatch(value, "value", formula)
    if not math.isfinite(value):
        raise NonFiniteResult(formula, value)

    if is_duration_formula(formula):
        return format_duration(formula, value)

    tree = parse_formula(formula)
    try:
        result = _eval(tree, value)
    except ZeroDivisionError as exc:
        raise NonFiniteResult(formula, "division by zero") from exc
    except OverflowError as exc:
        raise NonFiniteResult(formula, "overflow") from exc
    except (ValueError, TypeError) as exc:
        raise FormulaError(formula, str(exc)) from exc

    if isinstance(result, bool) or not isinstance(result, (int, float)):
        raise FormulaError(formula, f"formula must return a number, got {type(result).__name__}")
    try:
        result = float(result)
    except OverflowError as exc:
        raise NonFiniteResult(formula, "overflow") from exc
    if not math.isfinite(result):
        raise NonFiniteResult(formula, result)
    return result


def decimal_places(display_format: str | None) -> int:
    """Number of fractional digits a display format asks for (``"0.00"`` → 2)."""
    if not display_format or "." not in display_format:
        return 0
    return len(display_format.split(".", 1)[1])


def format_number(value: float, display_format: str | None) -> str:
    """Format *value* with the fixed number of decimals in *display_format*."""
    return f"{value:.{decimal_places(display_format)}f}"
