"""Tests for the selection model and column view state."""

from __future__ import annotations

import pytest

from sheetcalc.refs import CellReference
from sheetcalc.selection import Selection, SelectionRange
from sheetcalc.view import ColumnMeta, ViewState


# ────────────────────────────────────────────────────────────────
# Selection
# ────────────────────────────────────────────────────────────────


class TestSelection:
    def test_starts_empty(self) -> None:
        sel = Selection()
        assert sel.range is None
        assert sel.active_cell is None
        assert not sel.contains(0, 0)

    def test_start_is_single_cell(self) -> None:
        sel = Selection()
        sel.start_selection(2, 3)
        rng = sel.range
        assert (rng.start_col, rng.start_row, rng.end_col, rng.end_row) == (2, 3, 2, 3)
        assert sel.contains(2, 3)
        assert not sel.contains(2, 4)

    def test_extend_moves_cursor_only(self) -> None:
        sel = Selection()
        sel.start_selection(1, 1)
        sel.extend_selection(3, 4)
        rng = sel.range
        assert (rng.start_col, rng.start_row) == (1, 1)
        assert (rng.end_col, rng.end_row) == (3, 4)
        assert sel.active_cell == CellReference(1, 1)

    def test_contains_any_drag_direction(self) -> None:
        sel = Selection()
        sel.start_selection(3, 4)
        sel.extend_selection(1, 1)
        for col in range(1, 4):
            for row in range(1, 5):
                assert sel.contains(col, row)
        assert not sel.contains(0, 1)
        assert not sel.contains(4, 4)
        assert not sel.contains(2, 5)

    def test_extend_without_start(self) -> None:
        sel = Selection()
        sel.extend_selection(2, 2)
        assert sel.active_cell == CellReference(2, 2)

    def test_range_is_a_copy(self) -> None:
        sel = Selection()
        sel.start_selection(0, 0)
        rng = sel.range
        rng.end_col = 9
        assert not sel.contains(9, 0)

    def test_label(self) -> None:
        assert SelectionRange(start_col=0, start_row=0, end_col=0, end_row=0).label == "A1"
        assert SelectionRange(start_col=2, start_row=3, end_col=0, end_row=0).label == "A1:C4"

    def test_clear(self) -> None:
        sel = Selection()
        sel.start_selection(0, 0)
        sel.clear()
        assert sel.range is None


class TestKeyboardMove:
    def test_move_and_collapse(self) -> None:
        sel = Selection()
        sel.start_selection(1, 1)
        sel.extend_selection(3, 3)
        assert sel.move(0, 1, column_count=10, row_count=5) == CellReference(1, 2)
        assert sel.range.label == "B3"

    def test_clamped_to_grid(self) -> None:
        sel = Selection()
        sel.start_selection(0, 0)
        assert sel.move(-1, -1, 10, 5) == CellReference(0, 0)
        sel.start_selection(9, 4)
        assert sel.move(1, 1, 10, 5) == CellReference(9, 4)

    def test_without_selection(self) -> None:
        assert Selection().move(1, 0, 10, 5) is None


# ────────────────────────────────────────────────────────────────
# View state
# ────────────────────────────────────────────────────────────────


class TestViewState:
    def test_defaults(self) -> None:
        view = ViewState()
        assert view.frozen_rows == 1
        assert view.frozen_columns == 0
        assert view.width(3) == 100
        assert not view.is_hidden(3)

    def test_resize_clamped(self) -> None:
        view = ViewState()
        assert view.resize_column(2, 180) == 180
        assert view.width(2) == 180
        assert view.resize_column(2, 5) == 40
        assert view.width(2) == 40

    def test_resize_negative_column(self) -> None:
        with pytest.raises(ValueError):
            ViewState().resize_column(-1, 120)

    def test_hide_show(self) -> None:
        view = ViewState()
        view.set_hidden(4, True)
        view.set_hidden(1, True)
        assert view.hidden_columns() == [1, 4]
        view.set_hidden(4, False)
        assert view.hidden_columns() == [1]
        assert 4 not in view.columns

    def test_frozen_clamped(self) -> None:
        view = ViewState()
        assert view.set_frozen_rows(-2) == 0
        assert view.set_frozen_columns(2) == 2

    def test_shift_on_insert(self) -> None:
        view = ViewState(columns={0: ColumnMeta(width=50), 2: ColumnMeta(hidden=True)})
        view.shift_columns(1, 1)
        assert view.width(0) == 50
        assert view.is_hidden(3)
        assert not view.is_hidden(2)

    def test_shift_on_delete(self) -> None:
        view = ViewState(
            columns={
                0: ColumnMeta(width=50),
                1: ColumnMeta(width=70),
                3: ColumnMeta(width=90),
            }
        )
        view.shift_columns(1, -1)
        assert view.width(0) == 50
        assert view.width(1) == 100
        assert view.width(2) == 90
        assert 3 not in view.columns
