"""Tests for display formatting."""

from __future__ import annotations

from sheetcalc.cells import Cell, make_cell
from sheetcalc.display import (
    CHECKED_GLYPH,
    UNCHECKED_GLYPH,
    format_cell,
    format_currency,
    format_result,
    group_number,
)
from sheetcalc.grid import Grid


class TestGroupNumber:
    def test_integers(self) -> None:
        assert group_number(0) == "0"
        assert group_number(1234567) == "1,234,567"
        assert group_number(-1000) == "-1,000"
        assert group_number(5.0) == "5"

    def test_fractions(self) -> None:
        assert group_number(1234.5) == "1,234.5"
        assert group_number(1234.5678) == "1,234.568"
        assert group_number(0.1 + 0.2) == "0.3"

    def test_currency(self) -> None:
        assert format_currency(1200.5, "$") == "$1,200.50"
        assert format_currency(-3, "€") == "-€3.00"


class TestFormatResult:
    def test_values(self) -> None:
        assert format_result(None) == ""
        assert format_result(True) == "TRUE"
        assert format_result(False) == "FALSE"
        assert format_result(2500) == "2,500"
        assert format_result("#ERROR") == "#ERROR"

    def test_currency_hint(self) -> None:
        assert format_result(2000, "currency") == "$2,000.00"
        assert format_result(2000, "currency:£") == "£2,000.00"
        assert format_result(2000, "currency", default_symbol="€") == "€2,000.00"


class TestFormatCell:
    def test_empty(self) -> None:
        grid = Grid()
        assert format_cell(None, grid) == ""
        assert format_cell(Cell(), grid) == ""

    def test_checkbox(self) -> None:
        grid = Grid()
        assert format_cell(make_cell("[x]"), grid) == CHECKED_GLYPH
        assert format_cell(make_cell("[ ]"), grid) == UNCHECKED_GLYPH

    def test_number_and_currency(self) -> None:
        grid = Grid()
        assert format_cell(make_cell("1234567"), grid) == "1,234,567"
        assert format_cell(make_cell("$1,200.5"), grid) == "$1,200.50"
        assert format_cell(make_cell("€7"), grid) == "€7.00"

    def test_date(self) -> None:
        grid = Grid()
        assert format_cell(make_cell("2024-01-05"), grid) == "1/5/2024"
        assert format_cell(make_cell("03/04/2024"), grid) == "3/4/2024"

    def test_text(self) -> None:
        assert format_cell(make_cell("hello"), Grid()) == "hello"

    def test_formula(self, grid_factory) -> None:
        grid = grid_factory([["1000", "=A1*2", "=A1/0", '=IF(A1>1,"ok")']])
        assert format_cell(grid.get_cell(1, 0), grid) == "2,000"
        assert format_cell(grid.get_cell(2, 0), grid) == "#ERROR"
        assert format_cell(grid.get_cell(3, 0), grid) == "ok"

    def test_formula_with_currency_hint(self, grid_factory) -> None:
        grid = grid_factory([["1000"]])
        cell = Cell(value="=A1*2", type="formula", format="currency")
        assert format_cell(cell, grid) == "$2,000.00"

    def test_text_starting_with_equals_is_evaluated(self, grid_factory) -> None:
        grid = grid_factory([["4"]])
        assert format_cell(Cell(value="=A1+1", type="text"), grid) == "5"

    def test_idempotent(self, grid_factory) -> None:
        grid = grid_factory([["3", "=A1*2", "=SUM(A1:B1)"]])
        cell = grid.get_cell(2, 0)
        before = grid.rows()
        first = format_cell(cell, grid)
        second = format_cell(cell, grid)
        assert first == second == "9"
        assert grid.rows() == before
