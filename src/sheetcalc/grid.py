"""Grid store: the two-dimensional cell array and its mutations.

Rows are sparse: a row shorter than the grid's column count is treated as
ending in empty cells.  Reads outside the current bounds return None.
Structural edits that would leave the grid without a row or column are
rejected as no-ops (the method returns False).
"""

from __future__ import annotations

import csv
import io
from typing import Iterable

import polars as pl

from sheetcalc.cells import Cell, make_cell, number_text, raw_input
from sheetcalc.formulas import EvalContext, evaluate
from sheetcalc.formulas.errors import ENGINE_ERRORS, ERROR_MARKER
from sheetcalc.history import DEFAULT_UNDO_LIMIT, UndoAction, UndoHistory
from sheetcalc.refs import CellReference

DEFAULT_MIN_COLUMNS = 10
DEFAULT_ROWS = 5

_ROW_IDX_COL = "__sort_row_idx__"

Row = list[Cell | None]


class Grid:
    """Owned, mutable cell storage with undoable single-cell edits.

    Parameters
    ----------
    data : Iterable[Iterable[Cell | None]] | None
        Initial rows.  ``None`` creates the default empty grid.
    min_columns : int
        Floor for :attr:`column_count`.
    undo_limit : int
        Maximum number of undoable edits kept.
    """

    def __init__(
        self,
        data: Iterable[Iterable[Cell | None]] | None = None,
        *,
        min_columns: int = DEFAULT_MIN_COLUMNS,
        undo_limit: int = DEFAULT_UNDO_LIMIT,
    ) -> None:
        self.min_columns = max(1, min_columns)
        if data is None:
            self._rows: list[Row] = [
                [None] * self.min_columns for _ in range(DEFAULT_ROWS)
            ]
        else:
            self._rows = [_normalize_row(row) for row in data]
        if not self._rows:
            self._rows = [[None] * self.min_columns]
        self.history = UndoHistory(self._put, undo_limit)

    @classmethod
    def empty(
        cls,
        rows: int = DEFAULT_ROWS,
        columns: int = DEFAULT_MIN_COLUMNS,
        **kwargs,
    ) -> Grid:
        """Grid of *rows* x *columns* empty cells."""
        return cls([[None] * columns for _ in range(max(1, rows))], **kwargs)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        widest = max((len(row) for row in self._rows), default=0)
        return max(self.min_columns, widest)

    def get_cell(self, col: int, row: int) -> Cell | None:
        """Cell at (col, row); None when empty or outside the grid."""
        if row < 0 or col < 0 or row >= len(self._rows):
            return None
        cells = self._rows[row]
        if col >= len(cells):
            return None
        return cells[col]

    def row(self, index: int) -> Row:
        """Copy of one row padded to :attr:`column_count`."""
        width = self.column_count
        cells = list(self._rows[index])
        return cells + [None] * (width - len(cells))

    def rows(self) -> list[Row]:
        """Snapshot of every row padded to :attr:`column_count`.

        The lists are fresh copies; cells are immutable, so callers can't
        reach engine state through the snapshot.
        """
        return [self.row(i) for i in range(len(self._rows))]

    def numeric_value(self, col: int, row: int) -> int | float:
        """Coerced numeric value of one cell (formulas are evaluated)."""
        try:
            return EvalContext(self).numeric(CellReference(col, row))
        except ENGINE_ERRORS:
            return 0

    # ------------------------------------------------------------------
    # Cell edits
    # ------------------------------------------------------------------

    def set_cell(self, col: int, row: int, raw: str, *, record: bool = True) -> Cell | None:
        """Commit raw input at (col, row).

        Non-empty input is classified into a typed cell; empty input clears
        the position.  The grid grows as needed.  Unless *record* is False,
        the change is pushed onto the undo history.

        Returns:
            The stored cell (None when cleared).
        """
        cell = make_cell(raw)
        self.put_cell(col, row, cell, record=record)
        return cell

    def put_cell(self, col: int, row: int, cell: Cell | None, *, record: bool = True) -> None:
        """Store an already-built cell at (col, row)."""
        if col < 0 or row < 0:
            raise ValueError(f"Cell coordinates must be non-negative: ({col}, {row})")
        if cell is not None and cell.value is None:
            cell = None
        old = self.get_cell(col, row)
        if old == cell:
            return
        self._put(col, row, cell)
        if record:
            self.history.push(UndoAction(col=col, row=row, old_cell=old, new_cell=cell))

    def _put(self, col: int, row: int, cell: Cell | None) -> None:
        """Write without touching history (used for undo/redo replay)."""
        if cell is None and self.get_cell(col, row) is None:
            return
        width = self.column_count
        while len(self._rows) <= row:
            self._rows.append([None] * width)
        cells = self._rows[row]
        if len(cells) <= col:
            cells.extend([None] * (col + 1 - len(cells)))
        cells[col] = cell

    def undo(self) -> UndoAction | None:
        return self.history.undo()

    def redo(self) -> UndoAction | None:
        return self.history.redo()

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------
    # Recorded undo coordinates stop addressing the same cells once rows
    # or columns move, so every structural edit clears the history.

    def insert_row(self, at: int) -> bool:
        """Insert an empty row before index *at* (``at == row_count`` appends)."""
        if at < 0 or at > len(self._rows):
            return False
        self._rows.insert(at, [None] * self.column_count)
        self.history.clear()
        return True

    def insert_column(self, at: int) -> bool:
        """Insert an empty column before index *at* (``at == column_count`` appends)."""
        if at < 0 or at > self.column_count:
            return False
        width = self.column_count
        for cells in self._rows:
            if len(cells) < width:
                cells.extend([None] * (width - len(cells)))
            cells.insert(at, None)
        self.history.clear()
        return True

    def add_row(self) -> bool:
        return self.insert_row(len(self._rows))

    def add_column(self) -> bool:
        return self.insert_column(self.column_count)

    def delete_row(self, index: int) -> bool:
        """Remove row *index*.  Rejected for the last remaining row."""
        if len(self._rows) <= 1 or index < 0 or index >= len(self._rows):
            return False
        del self._rows[index]
        self.history.clear()
        return True

    def delete_column(self, index: int) -> bool:
        """Remove column *index*.  Rejected for the last remaining column."""
        if self.column_count <= 1 or index < 0 or index >= self.column_count:
            return False
        for cells in self._rows:
            if index < len(cells):
                del cells[index]
        self.history.clear()
        return True

    def sort_by_column(self, col: int, ascending: bool = True, frozen_rows: int = 1) -> bool:
        """Stable sort of the rows below *frozen_rows* by column *col*.

        Rows are ordered by the column's numeric value when at least one of
        them is nonzero, otherwise by the raw text.  Equal keys keep their
        relative order in both directions.
        """
        if col < 0 or col >= self.column_count:
            return False
        frozen = max(0, frozen_rows)
        head, body = self._rows[:frozen], self._rows[frozen:]
        if len(body) < 2:
            return True

        ctx = EvalContext(self)
        numeric_keys: list[float] = []
        for offset in range(len(body)):
            try:
                numeric_keys.append(float(ctx.numeric(CellReference(col, frozen + offset))))
            except ENGINE_ERRORS:
                numeric_keys.append(0.0)

        if any(key != 0 for key in numeric_keys):
            keys = pl.Series("key", numeric_keys, dtype=pl.Float64)
        else:
            texts = [raw_input(cells[col] if col < len(cells) else None) for cells in body]
            keys = pl.Series("key", texts, dtype=pl.Utf8)

        # Row index as the secondary key keeps ties in original order.
        frame = pl.DataFrame([keys, pl.Series(_ROW_IDX_COL, list(range(len(body))))])
        order = frame.sort(
            by=["key", _ROW_IDX_COL],
            descending=[not ascending, False],
            maintain_order=True,
        )[_ROW_IDX_COL].to_list()

        self._rows = head + [body[i] for i in order]
        self.history.clear()
        return True

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_delimited(self, delimiter: str = ",") -> str:
        """Serialize computed values, one line per row, RFC 4180 quoting.

        Rows are padded to the widest non-empty column.  No trailing newline.
        """
        width = 1
        for cells in self._rows:
            for idx in range(len(cells) - 1, -1, -1):
                if cells[idx] is not None:
                    width = max(width, idx + 1)
                    break

        buf = io.StringIO()
        # CR and LF both sit in the terminator, so a field holding either is quoted.
        writer = csv.writer(
            buf,
            delimiter=delimiter,
            lineterminator="\r\n",
            quoting=csv.QUOTE_MINIMAL,
        )
        lines: list[str] = []
        for cells in self._rows:
            values = [self._plain_value(cells[i] if i < len(cells) else None) for i in range(width)]
            if not any(values):
                # csv would write a lone empty field as '""'
                lines.append(delimiter * (width - 1))
                continue
            buf.seek(0)
            buf.truncate()
            writer.writerow(values)
            lines.append(buf.getvalue()[: -len("\r\n")])
        return "\n".join(lines)

    def _plain_value(self, cell: Cell | None) -> str:
        if cell is None or cell.value is None:
            return ""
        value = cell.value
        source = cell.source
        if source is not None:
            value = evaluate(source, self)
            if value is None:
                return ""
            if value == ERROR_MARKER:
                return ERROR_MARKER
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, (int, float)):
            return number_text(value)
        return str(value)


def _normalize_row(row: Iterable[Cell | None]) -> Row:
    return [cell if cell is not None and cell.value is not None else None for cell in row]
