"""Bounded undo/redo history of single-cell edits."""

from __future__ import annotations

from collections import deque
from typing import Callable

from pydantic import BaseModel, ConfigDict

from sheetcalc.cells import Cell

DEFAULT_UNDO_LIMIT = 50


class UndoAction(BaseModel):
    """One committed cell change at (col, row)."""

    model_config = ConfigDict(frozen=True)

    col: int
    row: int
    old_cell: Cell | None = None
    new_cell: Cell | None = None


class UndoHistory:
    """Undo and redo stacks over an *apply* callback.

    *apply* writes a cell back into the grid without recording history.
    The undo stack keeps at most *limit* actions, dropping the oldest.
    """

    def __init__(
        self,
        apply: Callable[[int, int, Cell | None], None],
        limit: int = DEFAULT_UNDO_LIMIT,
    ) -> None:
        if limit < 1:
            raise ValueError(f"Undo limit must be >= 1, got {limit}")
        self._apply = apply
        self._undo: deque[UndoAction] = deque(maxlen=limit)
        self._redo: list[UndoAction] = []

    @property
    def limit(self) -> int:
        return self._undo.maxlen or DEFAULT_UNDO_LIMIT

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def push(self, action: UndoAction) -> None:
        """Record a new edit; forward history is discarded."""
        self._undo.append(action)
        self._redo.clear()

    def undo(self) -> UndoAction | None:
        """Restore the most recent action's old cell.  No-op when empty."""
        if not self._undo:
            return None
        action = self._undo.pop()
        self._apply(action.col, action.row, action.old_cell)
        self._redo.append(action)
        return action

    def redo(self) -> UndoAction | None:
        """Re-apply the most recently undone action.  No-op when empty."""
        if not self._redo:
            return None
        action = self._redo.pop()
        self._apply(action.col, action.row, action.new_cell)
        self._undo.append(action)
        return action

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
