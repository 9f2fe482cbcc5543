"""Rectangular selection between an anchor and a live cursor."""

from __future__ import annotations

from pydantic import BaseModel

from sheetcalc.refs import CellReference, format_ref


class SelectionRange(BaseModel):
    """Anchor (``start_*``, mouse-down point) and cursor (``end_*``)."""

    start_col: int
    start_row: int
    end_col: int
    end_row: int

    @property
    def min_col(self) -> int:
        return min(self.start_col, self.end_col)

    @property
    def max_col(self) -> int:
        return max(self.start_col, self.end_col)

    @property
    def min_row(self) -> int:
        return min(self.start_row, self.end_row)

    @property
    def max_row(self) -> int:
        return max(self.start_row, self.end_row)

    def contains(self, col: int, row: int) -> bool:
        return self.min_col <= col <= self.max_col and self.min_row <= row <= self.max_row

    @property
    def label(self) -> str:
        """``"A1"`` for a single cell, ``"A1:C4"`` for a rectangle."""
        top_left = format_ref((self.min_col, self.min_row))
        bottom_right = format_ref((self.max_col, self.max_row))
        return top_left if top_left == bottom_right else f"{top_left}:{bottom_right}"


class Selection:
    """Selection state for one sheet view.  Empty until the first click."""

    def __init__(self) -> None:
        self._range: SelectionRange | None = None

    @property
    def range(self) -> SelectionRange | None:
        """Copy of the current selection rectangle."""
        return self._range.model_copy() if self._range is not None else None

    @property
    def active_cell(self) -> CellReference | None:
        """The focused cell: always the anchor, never the cursor."""
        if self._range is None:
            return None
        return CellReference(self._range.start_col, self._range.start_row)

    def start_selection(self, col: int, row: int) -> None:
        """Collapse the selection to a single cell at (col, row)."""
        self._range = SelectionRange(start_col=col, start_row=row, end_col=col, end_row=row)

    def extend_selection(self, col: int, row: int) -> None:
        """Move the cursor, keeping the anchor; starts a selection if none."""
        if self._range is None:
            self.start_selection(col, row)
            return
        self._range = self._range.model_copy(update={"end_col": col, "end_row": row})

    def contains(self, col: int, row: int) -> bool:
        return self._range is not None and self._range.contains(col, row)

    def clear(self) -> None:
        self._range = None

    def move(self, dcol: int, drow: int, column_count: int, row_count: int) -> CellReference | None:
        """Keyboard navigation: step the active cell, clamped to the grid.

        The selection collapses to the new active cell.
        """
        active = self.active_cell
        if active is None:
            return None
        col = min(max(0, active.col + dcol), max(0, column_count - 1))
        row = min(max(0, active.row + drow), max(0, row_count - 1))
        self.start_selection(col, row)
        return CellReference(col, row)
