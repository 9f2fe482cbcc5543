"""Text and date formula functions: CONCAT, TODAY."""

from __future__ import annotations

import datetime
from re import Match
from typing import Any

from sheetcalc.cells import format_date, number_text, parse_number
from sheetcalc.formulas.context import EvalContext
from sheetcalc.formulas.errors import FormulaFunctionError
from sheetcalc.formulas.parser import is_string_literal, split_args, unquote
from sheetcalc.refs import parse_cell_ref


def to_text(value: Any) -> str:
    """String form of a value as CONCAT joins it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return number_text(value)
    return str(value)


def _concat_part(text: str, ctx: EvalContext) -> str:
    if is_string_literal(text):
        return unquote(text)
    if parse_number(text) is not None:
        return text
    ref = parse_cell_ref(text)
    if ref is not None:
        return to_text(ctx.value(ref))
    if not text:
        raise FormulaFunctionError("CONCAT", "CONCAT arguments must not be empty")
    return to_text(ctx.evaluate("=" + text))


def _fn_concat(m: Match[str], ctx: EvalContext) -> str:
    """CONCAT(arg, ...): join literals and referenced values as text."""
    args = split_args(m.group(1))
    if not args:
        raise FormulaFunctionError("CONCAT", "CONCAT requires at least 1 argument")
    return "".join(_concat_part(arg, ctx) for arg in args)


def _fn_today(m: Match[str], ctx: EvalContext) -> str:
    """TODAY(): current local date."""
    return format_date(datetime.date.today())


TEXT_FUNCTIONS = {
    "CONCAT": _fn_concat,
    "TODAY": _fn_today,
}
