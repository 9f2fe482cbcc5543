"""Shared service layer for the sheetcalc CLI and local HTTP API.

This module wraps one sheet document file.  It validates addresses and
indices coming from the outside (raising ``ValueError`` with a readable
message), applies edits through the :class:`~sheetcalc.sheet.Sheet`
engine, and returns plain dicts ready for JSON.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from sheetcalc.config import load_config
from sheetcalc.formulas import ERROR_MARKER
from sheetcalc.logging.events import set_log_dir
from sheetcalc.refs import CellReference, col_letter_to_index, format_ref, parse_cell_ref
from sheetcalc.sheet import Sheet

_COLUMN_RE = re.compile(r"^[A-Za-z]+$")


# ---------------------------------------------------------------------------
# Address helpers
# ---------------------------------------------------------------------------


def parse_addr(addr: str) -> CellReference:
    """Parse ``'B3'`` -> ``CellReference(col=1, row=2)``.

    Raises ValueError on a bad address.
    """
    ref = parse_cell_ref(addr.strip()) if isinstance(addr, str) else None
    if ref is None:
        raise ValueError(f"Invalid cell address: {addr!r}")
    return ref


def parse_column(label: str | int) -> int:
    """Parse a column given as letters (``'C'``) or a 0-based index."""
    if isinstance(label, int):
        if label < 0:
            raise ValueError(f"Invalid column: {label}")
        return label
    text = label.strip()
    if text.isdigit():
        return int(text)
    if not _COLUMN_RE.match(text):
        raise ValueError(f"Invalid column: {label!r}")
    return col_letter_to_index(text.upper())


def _cell_entry(sheet: Sheet, col: int, row: int) -> dict[str, Any]:
    cell = sheet.get_cell(col, row)
    return {
        "addr": format_ref((col, row)),
        "row": row,
        "col": col,
        "raw": sheet.raw_value(col, row),
        "display": sheet.display_value(col, row),
        "type": cell.type.value if cell is not None else None,
    }


# ---------------------------------------------------------------------------
# SheetService
# ---------------------------------------------------------------------------


class SheetService:
    """In-memory session over a single sheet document.

    Parameters
    ----------
    document_path : Path
        The ``.json`` document.  It need not exist yet; saving creates it.
    strict : bool
        Refuse to open a malformed document instead of starting empty.
    """

    def __init__(self, document_path: Path | None = None, *, strict: bool = False) -> None:
        if document_path is None:
            raise ValueError("document_path is required")

        self.document_path = Path(document_path).resolve()
        self.directory = self.document_path.parent
        self.config = load_config(self.directory)
        set_log_dir(self.directory, fsync=bool(self.config.get("logging_fsync")))

        self.sheet = Sheet.load(self.document_path, config=self.config, strict=strict)
        self._dirty = False

    @property
    def dirty(self) -> bool:
        return self._dirty

    def _result(self, ok: bool = True, **extra: Any) -> dict[str, Any]:
        result: dict[str, Any] = {
            "ok": ok,
            "n_rows": self.sheet.row_count,
            "n_cols": self.sheet.column_count,
            "dirty": self._dirty,
        }
        result.update(extra)
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_sheet_viewport(
        self,
        r0: int = 0,
        c0: int = 0,
        rows: int = 30,
        cols: int = 15,
    ) -> dict[str, Any]:
        """Return a viewport of cells for rendering.

        Returns dict with:
          - cells: list of {addr, row, col, raw, display, type} for non-empty cells
          - n_rows, n_cols: sheet dimensions
          - view: frozen boundaries, widths of the viewport columns, hidden columns
          - r0, c0, rows, cols: the requested viewport
        """
        if r0 < 0 or c0 < 0:
            raise ValueError("Viewport origin must be non-negative")
        sheet = self.sheet
        n_rows = sheet.row_count
        n_cols = sheet.column_count

        cells = []
        for r in range(r0, min(r0 + rows, n_rows)):
            for c in range(c0, min(c0 + cols, n_cols)):
                if sheet.get_cell(c, r) is None:
                    continue
                cells.append(_cell_entry(sheet, c, r))

        view = sheet.view
        return {
            "n_rows": n_rows,
            "n_cols": n_cols,
            "r0": r0,
            "c0": c0,
            "rows": rows,
            "cols": cols,
            "cells": cells,
            "view": {
                "frozen_rows": view.frozen_rows,
                "frozen_columns": view.frozen_columns,
                "widths": {
                    str(c): view.width(c) for c in range(c0, min(c0 + cols, n_cols))
                },
                "hidden": view.hidden_columns(),
            },
            "selection": self.get_selection(),
            "can_undo": sheet.can_undo,
            "can_redo": sheet.can_redo,
            "dirty": self._dirty,
        }

    def get_cell(self, addr: str) -> dict[str, Any]:
        ref = parse_addr(addr)
        return _cell_entry(self.sheet, ref.col, ref.row)

    def evaluate(self, formula: str) -> dict[str, Any]:
        """Evaluate an ad-hoc formula without storing it."""
        text = formula.strip()
        if not text.startswith("="):
            text = "=" + text
        result = self.sheet.evaluate(text)
        return {
            "formula": text,
            "result": result,
            "error": result == ERROR_MARKER,
        }

    # ------------------------------------------------------------------
    # Cell edits
    # ------------------------------------------------------------------

    def update_cells(self, edits: list[dict[str, Any]]) -> dict[str, Any]:
        """Apply batch cell edits.

        Args:
            edits: List of dicts with ``addr`` and ``value`` (raw input text;
                empty or missing clears the cell).

        Returns:
            Dict with ``ok``, ``dirty``, ``errors`` (per-cell structured errors)
            and ``cells`` (the committed cells, rendered).
        """
        errors: list[dict[str, Any]] = []
        committed: list[dict[str, Any]] = []

        for edit in edits:
            addr = str(edit.get("addr", ""))
            try:
                ref = parse_addr(addr)
            except ValueError:
                errors.append({
                    "addr": addr,
                    "code": "invalid_address",
                    "message": f"Invalid cell address: {addr!r}",
                })
                continue

            raw = edit.get("value")
            self.sheet.commit_cell(ref.col, ref.row, "" if raw is None else str(raw))
            self._dirty = True
            committed.append(_cell_entry(self.sheet, ref.col, ref.row))

        return {
            "ok": len(errors) == 0,
            "dirty": self._dirty,
            "errors": errors,
            "cells": committed,
        }

    def undo(self) -> dict[str, Any]:
        ok = self.sheet.undo()
        if ok:
            self._dirty = True
        return self._result(ok, can_undo=self.sheet.can_undo, can_redo=self.sheet.can_redo)

    def redo(self) -> dict[str, Any]:
        ok = self.sheet.redo()
        if ok:
            self._dirty = True
        return self._result(ok, can_undo=self.sheet.can_undo, can_redo=self.sheet.can_redo)

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def sort(self, column: str | int, ascending: bool = True) -> dict[str, Any]:
        col = parse_column(column)
        if col >= self.sheet.column_count:
            raise ValueError(f"column {col} out of range [0, {self.sheet.column_count})")
        self.sheet.sort(col, ascending)
        self._dirty = True
        return self._result()

    def insert_row(self, row_idx: int) -> dict[str, Any]:
        n_rows = self.sheet.row_count
        if row_idx < 0 or row_idx > n_rows:
            raise ValueError(f"row_idx {row_idx} out of range [0, {n_rows}]")
        self.sheet.insert_row(row_idx)
        self._dirty = True
        return self._result()

    def delete_row(self, row_idx: int) -> dict[str, Any]:
        n_rows = self.sheet.row_count
        if row_idx < 0 or row_idx >= n_rows:
            raise ValueError(f"row_idx {row_idx} out of range [0, {n_rows})")
        if not self.sheet.delete_row(row_idx):
            raise ValueError("Cannot delete the last remaining row")
        self._dirty = True
        return self._result()

    def insert_col(self, col_idx: int) -> dict[str, Any]:
        n_cols = self.sheet.column_count
        if col_idx < 0 or col_idx > n_cols:
            raise ValueError(f"col_idx {col_idx} out of range [0, {n_cols}]")
        self.sheet.insert_column(col_idx)
        self._dirty = True
        return self._result()

    def delete_col(self, col_idx: int) -> dict[str, Any]:
        n_cols = self.sheet.column_count
        if col_idx < 0 or col_idx >= n_cols:
            raise ValueError(f"col_idx {col_idx} out of range [0, {n_cols})")
        if not self.sheet.delete_column(col_idx):
            raise ValueError("Cannot delete the last remaining column")
        self._dirty = True
        return self._result()

    # ------------------------------------------------------------------
    # View state
    # ------------------------------------------------------------------

    def _check_col(self, col_idx: int) -> None:
        if col_idx < 0 or col_idx >= self.sheet.column_count:
            raise ValueError(
                f"col_idx {col_idx} out of range [0, {self.sheet.column_count})"
            )

    def resize_col(self, col_idx: int, width: int) -> dict[str, Any]:
        self._check_col(col_idx)
        stored = self.sheet.resize_column(col_idx, width)
        self._dirty = True
        return self._result(col_idx=col_idx, width=stored)

    def set_col_hidden(self, col_idx: int, hidden: bool) -> dict[str, Any]:
        self._check_col(col_idx)
        if hidden:
            self.sheet.hide_column(col_idx)
        else:
            self.sheet.show_column(col_idx)
        self._dirty = True
        return self._result(hidden=self.sheet.view.hidden_columns())

    def freeze(self, rows: int | None = None, columns: int | None = None) -> dict[str, Any]:
        if rows is not None:
            if rows < 0:
                raise ValueError("frozen rows must be >= 0")
            self.sheet.set_frozen_rows(rows)
        if columns is not None:
            if columns < 0:
                raise ValueError("frozen columns must be >= 0")
            self.sheet.set_frozen_columns(columns)
        self._dirty = True
        return self._result(
            frozen_rows=self.sheet.view.frozen_rows,
            frozen_columns=self.sheet.view.frozen_columns,
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def start_selection(self, addr: str) -> dict[str, Any]:
        ref = parse_addr(addr)
        self.sheet.start_selection(ref.col, ref.row)
        return self.get_selection()

    def extend_selection(self, addr: str) -> dict[str, Any]:
        ref = parse_addr(addr)
        self.sheet.extend_selection(ref.col, ref.row)
        return self.get_selection()

    def move_selection(self, dcol: int, drow: int) -> dict[str, Any]:
        self.sheet.move_selection(dcol, drow)
        return self.get_selection()

    def get_selection(self) -> dict[str, Any]:
        rng = self.sheet.selection_range
        active = self.sheet.active_cell
        if rng is None or active is None:
            return {"active": None, "range": None}
        return {
            "active": format_ref(active),
            "range": rng.label,
            "start_col": rng.start_col,
            "start_row": rng.start_row,
            "end_col": rng.end_col,
            "end_row": rng.end_row,
        }

    # ------------------------------------------------------------------
    # Persistence / export
    # ------------------------------------------------------------------

    def save(self) -> dict[str, Any]:
        self.sheet.save(self.document_path)
        self._dirty = False
        return {"ok": True, "path": str(self.document_path), "dirty": False}

    def export_delimited(self, delimiter: str | None = None) -> str:
        if delimiter is not None and len(delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")
        return self.sheet.export_csv(delimiter)
