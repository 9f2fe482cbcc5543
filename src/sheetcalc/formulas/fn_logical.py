"""Logical formula functions: IF with a single binary comparison."""

from __future__ import annotations

from re import Match
from typing import Any

from sheetcalc.cells import parse_number
from sheetcalc.formulas.context import EvalContext
from sheetcalc.formulas.errors import FormulaFunctionError, FormulaParseError
from sheetcalc.formulas.parser import (
    is_string_literal,
    split_args,
    split_comparison,
    unquote,
)
from sheetcalc.refs import parse_cell_ref


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare(left: Any, op: str, right: Any) -> bool:
    """Compare two resolved operands.

    Numbers compare numerically and strings lexicographically.  Mixed
    operands are never equal and never ordered.
    """
    if op == "!=":
        op = "<>"
    comparable = (_is_number(left) and _is_number(right)) or (
        isinstance(left, str) and isinstance(right, str)
    )
    if not comparable:
        return op == "<>"
    if op == "=":
        return left == right
    if op == "<>":
        return left != right
    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    if op == "<=":
        return left <= right
    raise FormulaParseError(f"Unknown comparison operator: {op!r}")


def _nested(text: str, ctx: EvalContext) -> Any:
    if not text:
        raise FormulaParseError("Empty IF argument")
    return ctx.evaluate("=" + text)


def resolve_operand(text: str, ctx: EvalContext) -> Any:
    """Condition operand: string literal, number, or a reference's numeric value."""
    if is_string_literal(text):
        return unquote(text)
    number = parse_number(text)
    if number is not None:
        return number
    ref = parse_cell_ref(text)
    if ref is not None:
        return ctx.numeric(ref)
    return _nested(text, ctx)


def resolve_branch(text: str, ctx: EvalContext) -> Any:
    """Branch result: string literal, number, or a reference's stored value."""
    if is_string_literal(text):
        return unquote(text)
    number = parse_number(text)
    if number is not None:
        return number
    ref = parse_cell_ref(text)
    if ref is not None:
        return ctx.value(ref)
    return _nested(text, ctx)


def _fn_if(m: Match[str], ctx: EvalContext) -> Any:
    """IF(condition, then_value [, else_value])."""
    args = split_args(m.group(1))
    if len(args) < 2 or len(args) > 3:
        raise FormulaFunctionError("IF", "IF requires 2-3 arguments")
    left, op, right = split_comparison(args[0])
    condition = compare(resolve_operand(left, ctx), op, resolve_operand(right, ctx))
    if condition:
        return resolve_branch(args[1], ctx)
    if len(args) == 3:
        return resolve_branch(args[2], ctx)
    return False


LOGICAL_FUNCTIONS = {
    "IF": _fn_if,
}
