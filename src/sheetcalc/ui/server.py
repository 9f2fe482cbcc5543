"""FastAPI server for the sheetcalc local HTTP API.

Routes are thin wrappers over the shared :class:`SheetService`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from sheetcalc.ui.service import SheetService

# The singleton service is set at startup by ``create_app()``.
_service: SheetService | None = None


def create_app(document_path: Path) -> FastAPI:
    """Create the FastAPI application for one sheet document.

    Args:
        document_path: The ``.json`` document to serve.

    Returns:
        Configured FastAPI instance.
    """
    global _service
    _service = SheetService(document_path)

    from sheetcalc import __version__

    app = FastAPI(title="sheetcalc", version=__version__)
    app.include_router(_api_router())
    return app


def _svc() -> SheetService:
    """Get the singleton service, raising if not initialised."""
    if _service is None:
        raise HTTPException(500, "Service not initialised")
    return _service


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CellEdit(BaseModel):
    addr: str
    value: str | None = None


class CellUpdateRequest(BaseModel):
    edits: list[CellEdit]


class SortRequest(BaseModel):
    column: str
    ascending: bool = True


class RowRequest(BaseModel):
    row_idx: int


class ColRequest(BaseModel):
    col_idx: int


class ColResizeRequest(BaseModel):
    col_idx: int
    width: int


class FreezeRequest(BaseModel):
    rows: int | None = None
    columns: int | None = None


class SelectionRequest(BaseModel):
    addr: str


class SelectionMoveRequest(BaseModel):
    dcol: int = 0
    drow: int = 0


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


def _api_router():
    from fastapi import APIRouter

    router = APIRouter(prefix="/api")

    # -- Sheet --

    @router.get("/sheet")
    async def get_sheet(
        r0: int = Query(0, ge=0),
        c0: int = Query(0, ge=0),
        rows: int = Query(30, ge=1, le=500),
        cols: int = Query(15, ge=1, le=200),
    ) -> dict[str, Any]:
        try:
            return _svc().get_sheet_viewport(r0, c0, rows, cols)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.get("/cell")
    async def get_cell(addr: str = Query(...)) -> dict[str, Any]:
        try:
            return _svc().get_cell(addr)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/sheet/cells")
    async def update_cells(req: CellUpdateRequest) -> dict[str, Any]:
        edits = [e.model_dump() for e in req.edits]
        try:
            return _svc().update_cells(edits)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/sheet/sort")
    async def sort(req: SortRequest) -> dict[str, Any]:
        try:
            return _svc().sort(req.column, req.ascending)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    # -- Row/column insert & delete --

    @router.post("/sheet/rows/insert")
    async def insert_row(req: RowRequest) -> dict[str, Any]:
        try:
            return _svc().insert_row(req.row_idx)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/sheet/rows/delete")
    async def delete_row(req: RowRequest) -> dict[str, Any]:
        try:
            return _svc().delete_row(req.row_idx)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/sheet/cols/insert")
    async def insert_col(req: ColRequest) -> dict[str, Any]:
        try:
            return _svc().insert_col(req.col_idx)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/sheet/cols/delete")
    async def delete_col(req: ColRequest) -> dict[str, Any]:
        try:
            return _svc().delete_col(req.col_idx)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    # -- Column view state --

    @router.post("/sheet/cols/resize")
    async def resize_col(req: ColResizeRequest) -> dict[str, Any]:
        try:
            return _svc().resize_col(req.col_idx, req.width)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/sheet/cols/hide")
    async def hide_col(req: ColRequest) -> dict[str, Any]:
        try:
            return _svc().set_col_hidden(req.col_idx, True)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/sheet/cols/show")
    async def show_col(req: ColRequest) -> dict[str, Any]:
        try:
            return _svc().set_col_hidden(req.col_idx, False)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/sheet/freeze")
    async def freeze(req: FreezeRequest) -> dict[str, Any]:
        try:
            return _svc().freeze(req.rows, req.columns)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    # -- History --

    @router.post("/undo")
    async def undo() -> dict[str, Any]:
        return _svc().undo()

    @router.post("/redo")
    async def redo() -> dict[str, Any]:
        return _svc().redo()

    # -- Selection --

    @router.get("/selection")
    async def get_selection() -> dict[str, Any]:
        return _svc().get_selection()

    @router.post("/selection/start")
    async def start_selection(req: SelectionRequest) -> dict[str, Any]:
        try:
            return _svc().start_selection(req.addr)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/selection/extend")
    async def extend_selection(req: SelectionRequest) -> dict[str, Any]:
        try:
            return _svc().extend_selection(req.addr)
        except ValueError as exc:
            raise HTTPException(400, str(exc))

    @router.post("/selection/move")
    async def move_selection(req: SelectionMoveRequest) -> dict[str, Any]:
        return _svc().move_selection(req.dcol, req.drow)

    # -- Save / export --

    @router.post("/save")
    async def save() -> dict[str, Any]:
        return _svc().save()

    @router.get("/export", response_class=PlainTextResponse)
    async def export(delimiter: str | None = Query(None, min_length=1, max_length=1)) -> PlainTextResponse:
        try:
            text = _svc().export_delimited(delimiter)
        except ValueError as exc:
            raise HTTPException(400, str(exc))
        return PlainTextResponse(text, media_type="text/csv")

    return router
