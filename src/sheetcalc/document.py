"""Persisted sheet document: JSON shape, parsing and serialization.

Document shape::

    {
      "data": [[{"value": 1, "type": "number"}, null, ...], ...],
      "frozenRows": 1,
      "frozenColumns": 0,
      "columnMeta": {"2": {"width": 160, "hidden": false}}
    }

``null`` is an empty cell.  Only ``data`` is required.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sheetcalc.cells import Cell
from sheetcalc.grid import DEFAULT_MIN_COLUMNS, DEFAULT_ROWS, Grid
from sheetcalc.history import DEFAULT_UNDO_LIMIT
from sheetcalc.logging.events import (
    DOCUMENT_PARSE_FAILED,
    DOCUMENT_SHAPE_INVALID,
    EventType,
    emit_warning,
)
from sheetcalc.view import DEFAULT_COLUMN_WIDTH, MIN_COLUMN_WIDTH, ColumnMeta, ViewState


class DocumentError(ValueError):
    """Raised by strict parsing when a document is malformed."""


class SheetDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: list[list[Cell | None]]
    frozen_rows: int = Field(1, alias="frozenRows", ge=0)
    frozen_columns: int = Field(0, alias="frozenColumns", ge=0)
    column_meta: dict[int, ColumnMeta] = Field(default_factory=dict, alias="columnMeta")


def default_document(
    rows: int = DEFAULT_ROWS,
    columns: int = DEFAULT_MIN_COLUMNS,
    frozen_rows: int = 1,
    frozen_columns: int = 0,
) -> SheetDocument:
    """Empty *rows* x *columns* document used when none exists."""
    return SheetDocument(
        data=[[None] * max(1, columns) for _ in range(max(1, rows))],
        frozen_rows=frozen_rows,
        frozen_columns=frozen_columns,
    )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_document(text: str, *, strict: bool = False, source: str | None = None) -> SheetDocument:
    """Parse document JSON.

    By default a malformed document is replaced by :func:`default_document`
    and a ``document_invalid`` warning event is emitted.

    Args:
        text: Raw JSON text.
        strict: Raise instead of falling back to the default document.
        source: Path or label reported in the warning event.

    Raises:
        DocumentError: In strict mode, on invalid JSON or an invalid shape.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        if strict:
            raise DocumentError(f"Invalid document JSON: {exc}") from exc
        emit_warning(
            EventType.document_invalid,
            f"Document is not valid JSON, using default: {exc}",
            {"source": source},
            error_code=DOCUMENT_PARSE_FAILED,
        )
        return default_document()

    try:
        return SheetDocument.model_validate(payload)
    except ValidationError as exc:
        if strict:
            raise DocumentError(f"Invalid document shape: {exc}") from exc
        emit_warning(
            EventType.document_invalid,
            f"Document shape is invalid, using default ({exc.error_count()} errors)",
            {"source": source},
            error_code=DOCUMENT_SHAPE_INVALID,
        )
        return default_document()


def to_grid(
    document: SheetDocument,
    *,
    min_columns: int = DEFAULT_MIN_COLUMNS,
    undo_limit: int = DEFAULT_UNDO_LIMIT,
) -> Grid:
    return Grid(document.data, min_columns=min_columns, undo_limit=undo_limit)


def to_view(
    document: SheetDocument,
    *,
    default_width: int = DEFAULT_COLUMN_WIDTH,
    min_width: int = MIN_COLUMN_WIDTH,
) -> ViewState:
    return ViewState(
        columns={col: meta.model_copy() for col, meta in document.column_meta.items()},
        frozen_rows=document.frozen_rows,
        frozen_columns=document.frozen_columns,
        default_width=default_width,
        min_width=min_width,
    )


def deserialize(payload: dict[str, Any], **kwargs: Any) -> Grid:
    """Grid from an already-decoded document dict (strict)."""
    try:
        document = SheetDocument.model_validate(payload)
    except ValidationError as exc:
        raise DocumentError(f"Invalid document shape: {exc}") from exc
    return to_grid(document, **kwargs)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def serialize(grid: Grid, view: ViewState | None = None) -> dict[str, Any]:
    """Current serialized state of *grid* (and *view*) as a JSON-ready dict."""
    data = [
        [
            cell.model_dump(mode="json", exclude_none=True) if cell is not None else None
            for cell in row
        ]
        for row in grid.rows()
    ]
    payload: dict[str, Any] = {"data": data}
    if view is not None:
        payload["frozenRows"] = view.frozen_rows
        payload["frozenColumns"] = view.frozen_columns
        payload["columnMeta"] = {
            str(col): view.columns[col].model_dump(mode="json")
            for col in sorted(view.columns)
        }
    return payload


def dump_document(grid: Grid, view: ViewState | None = None) -> str:
    return json.dumps(serialize(grid, view), indent=2, ensure_ascii=False, allow_nan=False) + "\n"


def load_document(path: Path, *, strict: bool = False) -> SheetDocument:
    """Read a document file; a missing file yields the default document."""
    path = Path(path)
    if not path.exists():
        return default_document()
    return parse_document(path.read_text(encoding="utf-8"), strict=strict, source=str(path))


def save_document(path: Path, grid: Grid, view: ViewState | None = None) -> Path:
    """Write the document atomically (tmp file + rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(dump_document(grid, view), encoding="utf-8")
    tmp.replace(path)
    return path
