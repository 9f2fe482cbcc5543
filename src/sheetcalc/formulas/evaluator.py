"""Formula evaluation over a grid snapshot.

Formulas are matched against an ordered table of (pattern, handler) pairs;
the first match wins and anything unmatched falls through to plain
arithmetic.  Function names match case-insensitively.  Evaluation never
mutates the grid and never raises: failures become ``"#ERROR"``.
"""

from __future__ import annotations

import logging
import math
import re
from re import Match
from typing import Any, Callable

from lark import Token, Tree

from sheetcalc.cells import number_text
from sheetcalc.formulas.context import CellSource, EvalContext
from sheetcalc.formulas.errors import (
    ENGINE_ERRORS,
    ERROR_MARKER,
    FormulaError,
    FormulaParseError,
)
from sheetcalc.formulas.fn_logical import LOGICAL_FUNCTIONS
from sheetcalc.formulas.fn_range import RANGE_FUNCTIONS
from sheetcalc.formulas.fn_text import TEXT_FUNCTIONS
from sheetcalc.formulas.parser import parse_arithmetic
from sheetcalc.refs import parse_cell_ref

logger = logging.getLogger(__name__)

Handler = Callable[[Match[str], EvalContext], Any]


def _call(name: str, args: str = r"\(([^)]+)\)") -> re.Pattern[str]:
    return re.compile(rf"^=\s*{name}\s*{args}$", re.IGNORECASE | re.DOTALL)


def _fn_ref(m: Match[str], ctx: EvalContext) -> Any:
    """Bare reference ``=A1``: the cell's value, 0 when empty.

    A formula cell yields its computed value, not its formula text, so
    ``=A1`` chains the same way ``=A1+0`` does.
    """
    ref = parse_cell_ref(m.group(1))
    if ref is None:
        return 0
    value = ctx.value(ref)
    return 0 if value is None else value


# Precedence order matters: first match wins.
_DISPATCH: tuple[tuple[re.Pattern[str], Handler], ...] = (
    (_call("TODAY", r"\(\s*\)"), TEXT_FUNCTIONS["TODAY"]),
    (_call("SUM"), RANGE_FUNCTIONS["SUM"]),
    (_call("(?:AVERAGE|AVG)"), RANGE_FUNCTIONS["AVERAGE"]),
    (_call("COUNT"), RANGE_FUNCTIONS["COUNT"]),
    (_call("MIN"), RANGE_FUNCTIONS["MIN"]),
    (_call("MAX"), RANGE_FUNCTIONS["MAX"]),
    (_call("IF", r"\((.*)\)"), LOGICAL_FUNCTIONS["IF"]),
    (_call("CONCAT(?:ENATE)?", r"\((.*)\)"), TEXT_FUNCTIONS["CONCAT"]),
    (re.compile(r"^=\s*([A-Z]+[0-9]+)\s*$", re.IGNORECASE), _fn_ref),
)

_REF_TOKEN_RE = re.compile(r"[A-Z]+[0-9]+", re.IGNORECASE)


def evaluate(formula: str, grid: CellSource) -> Any:
    """Evaluate *formula* against *grid*.

    Args:
        formula: Formula source, e.g. ``"=SUM(A1:A3)"``.
        grid: Cell source to read from; it is never modified.

    Returns:
        A number, string, boolean or None, or ``"#ERROR"`` if the formula
        is malformed or cannot be computed.
    """
    try:
        return dispatch(formula, EvalContext(grid))
    except ENGINE_ERRORS as exc:
        logger.debug("Formula %r evaluated to %s: %s", formula, ERROR_MARKER, exc)
        return ERROR_MARKER


def dispatch(formula: str, ctx: EvalContext) -> Any:
    """Evaluate *formula* in an existing context; errors propagate."""
    text = formula.strip()
    if not text.startswith("="):
        raise FormulaParseError("Formula must start with '='", position=0)
    for pattern, handler in _DISPATCH:
        m = pattern.match(text)
        if m:
            return handler(m, ctx)
    return _arithmetic(text[1:], ctx)


# ---------- Arithmetic ----------


def _arithmetic(expr: str, ctx: EvalContext) -> int | float:
    """Substitute references with numeric values, then evaluate the expression."""

    def substitute(m: Match[str]) -> str:
        ref = parse_cell_ref(m.group(0))
        if ref is None:
            return "0"
        return f"({number_text(ctx.numeric(ref))})"

    tree = parse_arithmetic(_REF_TOKEN_RE.sub(substitute, expr))
    result = _eval(tree)
    if isinstance(result, float) and not math.isfinite(result):
        raise ArithmeticError("Non-finite arithmetic result")
    return result


def _eval(node: Tree | Token) -> int | float:
    """Recursively evaluate an arithmetic tree node."""
    if isinstance(node, Token):
        return _parse_number(node)

    rule = node.data

    if rule == "start":
        return _eval(node.children[0])
    if rule == "number":
        return _parse_number(node.children[0])
    if rule == "add":
        return _eval(node.children[0]) + _eval(node.children[1])
    if rule == "sub":
        return _eval(node.children[0]) - _eval(node.children[1])
    if rule == "mul":
        return _eval(node.children[0]) * _eval(node.children[1])
    if rule == "div":
        left = _eval(node.children[0])
        right = _eval(node.children[1])
        if right == 0:
            raise ZeroDivisionError("Division by zero in formula")
        return left / right
    if rule == "neg":
        return -_eval(node.children[0])
    if rule == "pos":
        return _eval(node.children[0])

    raise FormulaError(f"Unknown node type: {rule}")


def _parse_number(token: Token) -> int | float:
    """Parse a NUMBER token to int or float."""
    s = str(token)
    if "." in s:
        return float(s)
    return int(s)
