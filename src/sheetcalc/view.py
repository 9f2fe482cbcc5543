"""Presentation state: column widths, hidden columns, frozen boundaries."""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_COLUMN_WIDTH = 100
MIN_COLUMN_WIDTH = 40


class ColumnMeta(BaseModel):
    width: int | None = None
    hidden: bool = False


class ViewState(BaseModel):
    """Per-column widths and hidden flags plus frozen row/column counts.

    Columns at index < ``frozen_columns`` stay pinned during horizontal
    scroll; rows at index < ``frozen_rows`` are pinned and excluded from
    sorting.
    """

    columns: dict[int, ColumnMeta] = Field(default_factory=dict)
    frozen_rows: int = 1
    frozen_columns: int = 0
    default_width: int = DEFAULT_COLUMN_WIDTH
    min_width: int = MIN_COLUMN_WIDTH

    def width(self, col: int) -> int:
        meta = self.columns.get(col)
        if meta is None or meta.width is None:
            return self.default_width
        return meta.width

    def is_hidden(self, col: int) -> bool:
        meta = self.columns.get(col)
        return meta is not None and meta.hidden

    def hidden_columns(self) -> list[int]:
        return sorted(col for col, meta in self.columns.items() if meta.hidden)

    def resize_column(self, col: int, width: int) -> int:
        """Set a column width, clamped to the minimum; returns the stored width."""
        width = max(self.min_width, int(width))
        self._meta(col).width = width
        return width

    def set_hidden(self, col: int, hidden: bool) -> None:
        self._meta(col).hidden = hidden
        self._prune(col)

    def set_frozen_rows(self, count: int) -> int:
        self.frozen_rows = max(0, int(count))
        return self.frozen_rows

    def set_frozen_columns(self, count: int) -> int:
        self.frozen_columns = max(0, int(count))
        return self.frozen_columns

    def shift_columns(self, index: int, count: int) -> None:
        """Follow a structural column edit.

        Args:
            index: 0-based column where the insert/delete happened.
            count: Positive for inserted columns, negative for deleted ones.
        """
        shifted: dict[int, ColumnMeta] = {}
        for col, meta in self.columns.items():
            if col < index:
                shifted[col] = meta
            elif count > 0:
                shifted[col + count] = meta
            elif col >= index - count:
                shifted[col + count] = meta
        self.columns = shifted

    def _meta(self, col: int) -> ColumnMeta:
        if col < 0:
            raise ValueError(f"Column index must be non-negative: {col}")
        return self.columns.setdefault(col, ColumnMeta())

    def _prune(self, col: int) -> None:
        meta = self.columns.get(col)
        if meta is not None and meta.width is None and not meta.hidden:
            del self.columns[col]
