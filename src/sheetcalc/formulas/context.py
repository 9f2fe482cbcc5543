"""Per-evaluation view of the grid used by formula handlers.

A context lives for one top-level ``evaluate()`` call.  Formula cells that
are referenced are computed on demand and memoized for the rest of that
call; a reference that re-enters a cell still being computed is an error.
"""

from __future__ import annotations

from typing import Any, Protocol

from sheetcalc.cells import Cell, coerce_value
from sheetcalc.formulas.errors import FormulaRefError
from sheetcalc.refs import CellReference, format_ref


class CellSource(Protocol):
    """Anything that can hand out cells by 0-based coordinate."""

    @property
    def row_count(self) -> int: ...

    @property
    def column_count(self) -> int: ...

    def get_cell(self, col: int, row: int) -> Cell | None:
        """Return the cell at (col, row), or None when empty or out of range."""
        ...


class EvalContext:
    """Read-only evaluation state over a :class:`CellSource`."""

    def __init__(self, source: CellSource) -> None:
        self._source = source
        self._cache: dict[CellReference, Any] = {}
        self._in_progress: set[CellReference] = set()

    @property
    def bounds(self) -> tuple[int, int]:
        """(columns, rows) of the source; every cell outside is empty."""
        return self._source.column_count, self._source.row_count

    def cell(self, ref: CellReference) -> Cell | None:
        return self._source.get_cell(ref.col, ref.row)

    def is_empty(self, ref: CellReference) -> bool:
        cell = self.cell(ref)
        return cell is None or cell.value is None

    def value(self, ref: CellReference) -> Any:
        """Stored value of a cell, or the computed result for formula cells."""
        cell = self.cell(ref)
        if cell is None or cell.value is None:
            return None
        source = cell.source
        if source is None:
            return cell.value
        if ref in self._cache:
            return self._cache[ref]
        if ref in self._in_progress:
            raise FormulaRefError(
                format_ref(ref), f"Re-entrant reference to {format_ref(ref)}"
            )
        self._in_progress.add(ref)
        try:
            result = self.evaluate(source)
        finally:
            self._in_progress.discard(ref)
        self._cache[ref] = result
        return result

    def numeric(self, ref: CellReference) -> int | float:
        """Coerced numeric value; empty and non-numeric cells count as 0."""
        return coerce_value(self.value(ref))

    def evaluate(self, formula: str) -> Any:
        """Evaluate a nested formula in this context (errors propagate)."""
        # Local import to avoid circular dependency
        from sheetcalc.formulas.evaluator import dispatch

        return dispatch(formula, self)
