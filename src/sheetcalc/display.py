"""Render cells as display strings.

Formatting is a pure read: formulas are re-evaluated on every call and
nothing is cached on the cell or the grid.
"""

from __future__ import annotations

from typing import Any

from sheetcalc.cells import Cell, CellType, currency_symbol, format_date, parse_date
from sheetcalc.formulas import CellSource, evaluate

CHECKED_GLYPH = "☑"
UNCHECKED_GLYPH = "☐"


def group_number(value: int | float) -> str:
    """Thousands-grouped number with at most 3 fraction digits, zeros trimmed."""
    if isinstance(value, int) or value.is_integer():
        return f"{int(value):,}"
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_currency(value: int | float, symbol: str) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_result(result: Any, fmt: str | None = None, default_symbol: str = "$") -> str:
    """Display string for an evaluated formula result."""
    if result is None:
        return ""
    if isinstance(result, bool):
        return "TRUE" if result else "FALSE"
    if isinstance(result, (int, float)):
        symbol = currency_symbol(fmt, default_symbol)
        if symbol is not None:
            return format_currency(result, symbol)
        return group_number(result)
    return str(result)


def format_cell(cell: Cell | None, grid: CellSource, default_symbol: str = "$") -> str:
    """Display string for *cell*, evaluating formulas against *grid*.

    Args:
        cell: The cell to render (None renders as an empty string).
        grid: Cell source that formula references resolve against.
        default_symbol: Symbol for a bare ``"currency"`` format hint.
    """
    if cell is None or cell.value is None:
        return ""
    value = cell.value
    if isinstance(value, bool):
        return CHECKED_GLYPH if value else UNCHECKED_GLYPH
    source = cell.source
    if source is not None:
        return format_result(evaluate(source, grid), cell.format, default_symbol)
    if cell.type == CellType.currency and isinstance(value, (int, float)):
        return format_currency(value, currency_symbol(cell.format, default_symbol) or default_symbol)
    if cell.type == CellType.date:
        parsed = parse_date(str(value))
        return format_date(parsed) if parsed is not None else str(value)
    if isinstance(value, (int, float)):
        return group_number(value)
    return str(value)
