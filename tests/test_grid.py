"""Tests for the grid store: cell edits, history, structural edits, sort, export."""

from __future__ import annotations

import pytest

from sheetcalc.cells import Cell, CellType
from sheetcalc.grid import Grid
from sheetcalc.history import UndoAction, UndoHistory


def _values(grid: Grid, col: int = 0) -> list:
    return [cell.value if cell is not None else None for cell in (row[col] for row in grid.rows())]


# ────────────────────────────────────────────────────────────────
# Shape and reads
# ────────────────────────────────────────────────────────────────


class TestGridShape:
    def test_default_grid(self) -> None:
        grid = Grid()
        assert grid.row_count == 5
        assert grid.column_count == 10

    def test_column_floor(self) -> None:
        grid = Grid([[Cell(value=1, type="number")]])
        assert grid.column_count == 10
        assert grid.row_count == 1

    def test_column_count_follows_widest_row(self) -> None:
        grid = Grid([[None] * 3, [None] * 14])
        assert grid.column_count == 14

    def test_empty_data_keeps_one_row(self) -> None:
        assert Grid([]).row_count == 1

    def test_out_of_range_reads(self) -> None:
        grid = Grid()
        assert grid.get_cell(99, 0) is None
        assert grid.get_cell(0, 99) is None
        assert grid.get_cell(-1, 0) is None

    def test_rows_are_copies(self, grid_factory) -> None:
        grid = grid_factory([["1"]])
        snapshot = grid.rows()
        snapshot[0][0] = None
        snapshot.append([])
        assert grid.get_cell(0, 0).value == 1
        assert grid.row_count == 1

    def test_rows_padded(self) -> None:
        grid = Grid([[None], [None] * 12])
        assert [len(row) for row in grid.rows()] == [12, 12]


# ────────────────────────────────────────────────────────────────
# Cell edits
# ────────────────────────────────────────────────────────────────


class TestSetCell:
    def test_detects_type(self) -> None:
        grid = Grid()
        cell = grid.set_cell(0, 0, "=A2+1")
        assert cell.type == CellType.formula
        assert cell.formula == "=A2+1"
        assert grid.get_cell(0, 0) == cell

    def test_grows_grid(self) -> None:
        grid = Grid()
        grid.set_cell(12, 7, "x")
        assert grid.row_count == 8
        assert grid.column_count == 13
        assert grid.get_cell(11, 7) is None
        assert grid.get_cell(12, 7).value == "x"

    def test_empty_input_clears(self) -> None:
        grid = Grid()
        grid.set_cell(1, 1, "5")
        assert grid.set_cell(1, 1, "   ") is None
        assert grid.get_cell(1, 1) is None

    def test_negative_coordinates(self) -> None:
        with pytest.raises(ValueError):
            Grid().set_cell(-1, 0, "x")

    def test_numeric_value(self, grid_factory) -> None:
        grid = grid_factory([["$1,000", "=A1/4", "abc"]])
        assert grid.numeric_value(0, 0) == 1000
        assert grid.numeric_value(1, 0) == 250
        assert grid.numeric_value(2, 0) == 0
        assert grid.numeric_value(5, 5) == 0


# ────────────────────────────────────────────────────────────────
# Undo / redo
# ────────────────────────────────────────────────────────────────


class TestUndoRedo:
    def test_undo_then_redo(self) -> None:
        grid = Grid()
        grid.set_cell(0, 0, "5")
        grid.set_cell(0, 0, "9")
        grid.undo()
        assert grid.get_cell(0, 0).value == 5
        grid.redo()
        assert grid.get_cell(0, 0).value == 9

    def test_new_edit_discards_redo(self) -> None:
        grid = Grid()
        grid.set_cell(0, 0, "5")
        grid.set_cell(0, 0, "9")
        grid.undo()
        grid.set_cell(1, 0, "new")
        assert grid.redo() is None
        assert grid.get_cell(0, 0).value == 5

    def test_undo_to_empty(self) -> None:
        grid = Grid()
        grid.set_cell(2, 2, "x")
        grid.undo()
        assert grid.get_cell(2, 2) is None

    def test_noop_when_empty(self) -> None:
        grid = Grid()
        assert grid.undo() is None
        assert grid.redo() is None

    def test_replay_not_recorded(self) -> None:
        grid = Grid()
        grid.set_cell(0, 0, "1")
        grid.undo()
        assert grid.history.undo_depth == 0
        assert grid.history.redo_depth == 1
        grid.redo()
        assert grid.history.undo_depth == 1
        assert grid.history.redo_depth == 0

    def test_record_false(self) -> None:
        grid = Grid()
        grid.set_cell(0, 0, "1", record=False)
        assert not grid.history.can_undo

    def test_unchanged_commit_not_recorded(self) -> None:
        grid = Grid()
        grid.set_cell(0, 0, "1")
        grid.set_cell(0, 0, "1")
        assert grid.history.undo_depth == 1

    def test_bounded(self) -> None:
        grid = Grid(undo_limit=3)
        for i in range(5):
            grid.set_cell(0, 0, str(i))
        assert grid.history.undo_depth == 3
        assert grid.undo() is not None
        assert grid.undo() is not None
        assert grid.undo() is not None
        assert grid.undo() is None
        # oldest surviving action restored the value written by edit #1
        assert grid.get_cell(0, 0).value == 1


class TestUndoHistory:
    def test_invalid_limit(self) -> None:
        with pytest.raises(ValueError):
            UndoHistory(lambda col, row, cell: None, limit=0)

    def test_apply_callback(self) -> None:
        applied = []
        history = UndoHistory(lambda col, row, cell: applied.append((col, row, cell)))
        new = Cell(value=2, type="number")
        history.push(UndoAction(col=1, row=2, old_cell=None, new_cell=new))
        history.undo()
        history.redo()
        assert applied == [(1, 2, None), (1, 2, new)]

    def test_clear(self) -> None:
        history = UndoHistory(lambda col, row, cell: None)
        history.push(UndoAction(col=0, row=0))
        history.undo()
        history.clear()
        assert not history.can_undo and not history.can_redo


# ────────────────────────────────────────────────────────────────
# Structural edits
# ────────────────────────────────────────────────────────────────


class TestStructuralEdits:
    def test_insert_row_shifts_down(self, grid_factory) -> None:
        grid = grid_factory([["a"], ["b"]])
        assert grid.insert_row(1)
        assert _values(grid) == ["a", None, "b"]

    def test_insert_row_append(self, grid_factory) -> None:
        grid = grid_factory([["a"]])
        assert grid.insert_row(1)
        assert grid.row_count == 2
        assert not grid.insert_row(5)

    def test_add_row_and_column(self) -> None:
        grid = Grid()
        assert grid.add_row()
        assert grid.add_column()
        assert grid.row_count == 6
        assert grid.column_count == 11

    def test_insert_column_shifts_right(self, grid_factory) -> None:
        grid = grid_factory([["a", "b"]])
        assert grid.insert_column(0)
        assert grid.get_cell(0, 0) is None
        assert grid.get_cell(1, 0).value == "a"
        assert grid.get_cell(2, 0).value == "b"
        assert grid.column_count == 11

    def test_delete_row(self, grid_factory) -> None:
        grid = grid_factory([["a"], ["b"], ["c"]])
        assert grid.delete_row(1)
        assert _values(grid) == ["a", "c"]

    def test_delete_last_row_rejected(self) -> None:
        grid = Grid([[Cell(value=1, type="number")]])
        assert not grid.delete_row(0)
        assert grid.row_count == 1
        assert grid.get_cell(0, 0).value == 1

    def test_delete_row_out_of_range(self) -> None:
        assert not Grid().delete_row(5)
        assert not Grid().delete_row(-1)

    def test_delete_column(self, grid_factory) -> None:
        grid = grid_factory([["a", "b", "c"]], columns=3, min_columns=1)
        assert grid.column_count == 3
        assert grid.delete_column(1)
        assert grid.get_cell(1, 0).value == "c"
        assert grid.column_count == 2

    def test_delete_last_column_rejected(self) -> None:
        grid = Grid([[Cell(value="x", type="text")]], min_columns=1)
        assert grid.column_count == 1
        assert not grid.delete_column(0)
        assert grid.get_cell(0, 0).value == "x"

    def test_structural_edit_clears_history(self) -> None:
        grid = Grid()
        grid.set_cell(0, 0, "1")
        grid.insert_row(0)
        assert not grid.history.can_undo


# ────────────────────────────────────────────────────────────────
# Sort
# ────────────────────────────────────────────────────────────────


class TestSort:
    def test_mixed_column_sorts_numerically(self, grid_factory) -> None:
        grid = grid_factory([["Header"], ["30"], ["apple"], ["5"]])
        assert grid.sort_by_column(0, ascending=True)
        # "apple" coerces to 0
        assert _values(grid) == ["Header", "apple", 5, 30]

    def test_numeric_descending(self, grid_factory) -> None:
        grid = grid_factory([["Qty"], ["2"], ["10"], ["$7"]])
        grid.sort_by_column(0, ascending=False)
        assert _values(grid) == ["Qty", 10, 7.0, 2]

    def test_text_column_sorts_lexicographically(self, grid_factory) -> None:
        grid = grid_factory([["Fruit"], ["pear"], ["apple"], ["fig"]])
        grid.sort_by_column(0)
        assert _values(grid) == ["Fruit", "apple", "fig", "pear"]

    def test_stable_for_equal_keys(self, grid_factory) -> None:
        grid = grid_factory([["k", "id"], ["b", "1"], ["a", "2"], ["b", "3"], ["a", "4"]])
        grid.sort_by_column(0)
        assert _values(grid, 1) == ["id", 2, 4, 1, 3]
        grid.sort_by_column(0, ascending=False)
        assert _values(grid, 1) == ["id", 1, 3, 2, 4]

    def test_whole_rows_move(self, grid_factory) -> None:
        grid = grid_factory([["n", "label"], ["3", "three"], ["1", "one"], ["2", "two"]])
        grid.sort_by_column(0)
        assert _values(grid, 1) == ["label", "one", "two", "three"]

    def test_no_frozen_rows(self, grid_factory) -> None:
        grid = grid_factory([["3"], ["1"], ["2"]])
        grid.sort_by_column(0, frozen_rows=0)
        assert _values(grid) == [1, 2, 3]

    def test_formula_values_used(self, grid_factory) -> None:
        grid = grid_factory([["h", "base"], ["=B2*10", "1"], ["=B3*10", "-1"]])
        grid.sort_by_column(0)
        assert _values(grid, 1) == ["base", -1, 1]

    def test_invalid_column(self) -> None:
        assert not Grid().sort_by_column(99)

    def test_sort_clears_history(self, grid_factory) -> None:
        grid = grid_factory([["h"], ["2"], ["1"]])
        grid.set_cell(1, 0, "x")
        grid.sort_by_column(0)
        assert not grid.history.can_undo


# ────────────────────────────────────────────────────────────────
# Delimited export
# ────────────────────────────────────────────────────────────────


class TestExport:
    def test_quotes_special_fields(self) -> None:
        grid = Grid.empty(1)
        grid.set_cell(0, 0, 'Hello, "World"')
        assert grid.export_delimited() == '"Hello, ""World"""'

    def test_newline_quoted(self) -> None:
        grid = Grid.empty(1)
        grid.set_cell(0, 0, "two\nlines")
        grid.set_cell(1, 0, "plain")
        assert grid.export_delimited() == '"two\nlines",plain'

    def test_carriage_return_quoted(self) -> None:
        grid = Grid.empty(1)
        grid.set_cell(0, 0, "a\rb")
        grid.set_cell(1, 0, "c")
        assert grid.export_delimited() == '"a\rb",c'

    def test_computed_values(self, grid_factory) -> None:
        grid = grid_factory([["2", "=A1*2", "[x]", "$1,200.50", "=A1/0"]])
        assert grid.export_delimited() == "2,4,TRUE,1200.5,#ERROR"

    def test_padded_to_widest_column(self, grid_factory) -> None:
        grid = grid_factory([["a"], ["", "", "c"], []])
        assert grid.export_delimited() == "a,,\n,,c\n,,"

    def test_no_trailing_newline(self, grid_factory) -> None:
        grid = grid_factory([["a"], ["b"]])
        text = grid.export_delimited()
        assert text == "a\nb"

    def test_empty_rows(self) -> None:
        assert Grid.empty(2).export_delimited() == "\n"

    def test_delimiter(self, grid_factory) -> None:
        grid = grid_factory([["a;b", "c"]])
        assert grid.export_delimited(";") == '"a;b";c'

    def test_export_does_not_mutate(self, grid_factory) -> None:
        grid = grid_factory([["1", "=A1+1"]])
        before = grid.rows()
        grid.export_delimited()
        assert grid.rows() == before
