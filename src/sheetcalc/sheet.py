"""Sheet engine facade.

A :class:`Sheet` bundles the grid, its view state and the selection, and
exposes the edit intents and read-only queries a UI layer needs.  Every
operation is synchronous; persistence is explicit via :meth:`Sheet.save`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sheetcalc.cells import Cell, raw_input
from sheetcalc.config import DEFAULT_CONFIG
from sheetcalc.display import format_cell
from sheetcalc.document import (
    SheetDocument,
    default_document,
    dump_document,
    load_document,
    save_document,
    serialize,
    to_grid,
    to_view,
)
from sheetcalc.formulas import evaluate
from sheetcalc.grid import Grid
from sheetcalc.logging.events import (
    INDEX_OUT_OF_RANGE,
    LAST_ROW_OR_COLUMN,
    EventType,
    emit_info,
    emit_warning,
)
from sheetcalc.refs import CellReference, format_ref, index_to_col_letter
from sheetcalc.selection import Selection, SelectionRange
from sheetcalc.view import ViewState


class Sheet:
    """One editable sheet: grid + view state + selection.

    Parameters
    ----------
    grid : Grid | None
        Cell storage.  ``None`` builds the default empty grid from config.
    view : ViewState | None
        Column widths, hidden columns and frozen boundaries.
    config : dict | None
        Overrides for :data:`sheetcalc.config.DEFAULT_CONFIG`.
    """

    def __init__(
        self,
        grid: Grid | None = None,
        view: ViewState | None = None,
        *,
        config: dict[str, Any] | None = None,
    ) -> None:
        self.config = dict(DEFAULT_CONFIG)
        if config:
            self.config.update(config)
        if grid is None:
            grid = Grid.empty(
                self.config["default_rows"],
                self.config["min_columns"],
                min_columns=self.config["min_columns"],
                undo_limit=self.config["undo_limit"],
            )
        if view is None:
            view = ViewState(
                frozen_rows=self.config["frozen_rows"],
                frozen_columns=self.config["frozen_columns"],
                default_width=self.config["default_column_width"],
                min_width=self.config["min_column_width"],
            )
        self.grid = grid
        self.view = view
        self.selection = Selection()

    # ------------------------------------------------------------------
    # Construction / persistence
    # ------------------------------------------------------------------

    @classmethod
    def from_document(cls, document: SheetDocument, *, config: dict[str, Any] | None = None) -> Sheet:
        merged = dict(DEFAULT_CONFIG)
        if config:
            merged.update(config)
        grid = to_grid(
            document,
            min_columns=merged["min_columns"],
            undo_limit=merged["undo_limit"],
        )
        view = to_view(
            document,
            default_width=merged["default_column_width"],
            min_width=merged["min_column_width"],
        )
        return cls(grid, view, config=merged)

    @classmethod
    def new(cls, *, config: dict[str, Any] | None = None) -> Sheet:
        merged = dict(DEFAULT_CONFIG)
        if config:
            merged.update(config)
        document = default_document(
            merged["default_rows"],
            merged["min_columns"],
            frozen_rows=merged["frozen_rows"],
            frozen_columns=merged["frozen_columns"],
        )
        return cls.from_document(document, config=merged)

    @classmethod
    def load(cls, path: Path, *, config: dict[str, Any] | None = None, strict: bool = False) -> Sheet:
        """Open a document file (a missing file gives an empty sheet)."""
        path = Path(path)
        if not path.exists():
            return cls.new(config=config)
        sheet = cls.from_document(load_document(path, strict=strict), config=config)
        emit_info(
            EventType.document_loaded,
            f"Loaded {path.name}",
            {
                "path": str(path),
                "rows": sheet.row_count,
                "columns": sheet.column_count,
            },
        )
        return sheet

    def save(self, path: Path) -> Path:
        saved = save_document(path, self.grid, self.view)
        emit_info(EventType.document_saved, f"Saved {saved.name}", {"path": str(saved)})
        return saved

    def serialize(self) -> dict[str, Any]:
        """Current serialized state (grid and view)."""
        return serialize(self.grid, self.view)

    def to_json(self) -> str:
        return dump_document(self.grid, self.view)

    # ------------------------------------------------------------------
    # Cell edits and history
    # ------------------------------------------------------------------

    def commit_cell(self, col: int, row: int, raw: str) -> Cell | None:
        """Commit raw text at (col, row); empty text clears the cell."""
        cell = self.grid.set_cell(col, row, raw)
        emit_info(
            EventType.cell_committed,
            f"Committed {format_ref((col, row))}",
            {"cell": format_ref((col, row)), "type": cell.type.value if cell else None},
        )
        return cell

    def clear_cell(self, col: int, row: int) -> None:
        self.commit_cell(col, row, "")

    def undo(self) -> bool:
        action = self.grid.undo()
        if action is None:
            return False
        emit_info(
            EventType.history_undo,
            f"Undid edit at {format_ref((action.col, action.row))}",
            {"cell": format_ref((action.col, action.row))},
        )
        return True

    def redo(self) -> bool:
        action = self.grid.redo()
        if action is None:
            return False
        emit_info(
            EventType.history_redo,
            f"Redid edit at {format_ref((action.col, action.row))}",
            {"cell": format_ref((action.col, action.row))},
        )
        return True

    @property
    def can_undo(self) -> bool:
        return self.grid.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.grid.history.can_redo

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    def sort(self, col: int, ascending: bool = True) -> bool:
        """Sort rows below the frozen boundary by column *col*."""
        ok = self.grid.sort_by_column(col, ascending, frozen_rows=self.view.frozen_rows)
        if ok:
            emit_info(
                EventType.sort_applied,
                f"Sorted by column {index_to_col_letter(col)}",
                {"column": col, "ascending": ascending, "frozen_rows": self.view.frozen_rows},
            )
        else:
            self._rejected("sort", col, INDEX_OUT_OF_RANGE)
        return ok

    def insert_row(self, at: int) -> bool:
        return self._structural("insert_row", at, self.grid.insert_row(at))

    def add_row(self) -> bool:
        return self.insert_row(self.row_count)

    def delete_row(self, index: int) -> bool:
        active = self.selection.active_cell
        ok = self._structural("delete_row", index, self.grid.delete_row(index))
        if ok and active is not None and active.row == index:
            self.selection.clear()
        return ok

    def insert_column(self, at: int) -> bool:
        ok = self._structural("insert_column", at, self.grid.insert_column(at))
        if ok:
            self.view.shift_columns(at, 1)
        return ok

    def add_column(self) -> bool:
        return self.insert_column(self.column_count)

    def delete_column(self, index: int) -> bool:
        active = self.selection.active_cell
        ok = self._structural("delete_column", index, self.grid.delete_column(index))
        if ok:
            self.view.shift_columns(index, -1)
            if active is not None and active.col == index:
                self.selection.clear()
        return ok

    def _structural(self, op: str, index: int, ok: bool) -> bool:
        if ok:
            emit_info(
                EventType.structural_edit,
                f"{op} at {index}",
                {"op": op, "index": index, "rows": self.row_count, "columns": self.column_count},
            )
            return True
        if op.startswith("delete") and (self.row_count <= 1 or self.column_count <= 1):
            self._rejected(op, index, LAST_ROW_OR_COLUMN)
        else:
            self._rejected(op, index, INDEX_OUT_OF_RANGE)
        return False

    def _rejected(self, op: str, index: int, code: str) -> None:
        emit_warning(
            EventType.structural_edit_rejected,
            f"{op} at {index} rejected",
            {"op": op, "index": index},
            error_code=code,
        )

    # ------------------------------------------------------------------
    # View state
    # ------------------------------------------------------------------

    def resize_column(self, col: int, width: int) -> int:
        return self.view.resize_column(col, width)

    def hide_column(self, col: int) -> None:
        self.view.set_hidden(col, True)

    def show_column(self, col: int) -> None:
        self.view.set_hidden(col, False)

    def set_frozen_rows(self, count: int) -> int:
        return self.view.set_frozen_rows(count)

    def set_frozen_columns(self, count: int) -> int:
        return self.view.set_frozen_columns(count)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def start_selection(self, col: int, row: int) -> None:
        self.selection.start_selection(col, row)

    def extend_selection(self, col: int, row: int) -> None:
        self.selection.extend_selection(col, row)

    def move_selection(self, dcol: int, drow: int) -> CellReference | None:
        return self.selection.move(dcol, drow, self.column_count, self.row_count)

    @property
    def selection_range(self) -> SelectionRange | None:
        return self.selection.range

    @property
    def active_cell(self) -> CellReference | None:
        return self.selection.active_cell

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def row_count(self) -> int:
        return self.grid.row_count

    @property
    def column_count(self) -> int:
        return self.grid.column_count

    def get_cell(self, col: int, row: int) -> Cell | None:
        return self.grid.get_cell(col, row)

    def raw_value(self, col: int, row: int) -> str:
        """Edit-mode text for (col, row)."""
        return raw_input(self.grid.get_cell(col, row))

    def display_value(self, col: int, row: int) -> str:
        """Render-mode text for (col, row)."""
        return format_cell(
            self.grid.get_cell(col, row),
            self.grid,
            self.config["currency_symbol"],
        )

    def evaluate(self, formula: str) -> Any:
        """Evaluate an ad-hoc formula against the current grid."""
        return evaluate(formula, self.grid)

    def export_csv(self, delimiter: str | None = None) -> str:
        delimiter = delimiter or self.config["csv_delimiter"]
        text = self.grid.export_delimited(delimiter)
        emit_info(
            EventType.export_completed,
            "Exported delimited text",
            {"rows": self.row_count, "delimiter": delimiter},
        )
        return text
