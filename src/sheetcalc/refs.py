"""A1-style cell reference and range helpers.

Coordinates are always ``(col, row)``, both 0-based.  Column letters use
bijective base-26 numbering (A=0, Z=25, AA=26), rows are 1-based in labels.
"""

from __future__ import annotations

import re
from typing import Iterator, NamedTuple

_REF_RE = re.compile(r"^([A-Z]+)([0-9]+)$", re.IGNORECASE)


class CellReference(NamedTuple):
    col: int
    row: int


class CellRange:
    """Rectangle between two corner references, normalized on both axes."""

    def __init__(self, start: CellReference, end: CellReference) -> None:
        self.start = start
        self.end = end

    @property
    def min_col(self) -> int:
        return min(self.start.col, self.end.col)

    @property
    def max_col(self) -> int:
        return max(self.start.col, self.end.col)

    @property
    def min_row(self) -> int:
        return min(self.start.row, self.end.row)

    @property
    def max_row(self) -> int:
        return max(self.start.row, self.end.row)

    def __iter__(self) -> Iterator[CellReference]:
        # Row-major, so aggregation order is stable for any corner order.
        for row in range(self.min_row, self.max_row + 1):
            for col in range(self.min_col, self.max_col + 1):
                yield CellReference(col, row)

    def __len__(self) -> int:
        return (self.max_col - self.min_col + 1) * (self.max_row - self.min_row + 1)

    def __contains__(self, ref: object) -> bool:
        if not isinstance(ref, tuple) or len(ref) != 2:
            return False
        col, row = ref
        return self.min_col <= col <= self.max_col and self.min_row <= row <= self.max_row

    def clipped(self, columns: int, rows: int) -> CellRange | None:
        """The part of this range inside a *columns* x *rows* grid, or None."""
        max_col = min(self.max_col, columns - 1)
        max_row = min(self.max_row, rows - 1)
        if max_col < self.min_col or max_row < self.min_row:
            return None
        return CellRange(
            CellReference(self.min_col, self.min_row), CellReference(max_col, max_row)
        )

    def __repr__(self) -> str:
        return f"CellRange({format_ref(self.start)}:{format_ref(self.end)})"


def col_letter_to_index(letters: str) -> int:
    """Convert column letter(s) to 0-based index.  A=0, B=1, ..., Z=25, AA=26."""
    idx = 0
    for ch in letters.upper():
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx - 1


def index_to_col_letter(idx: int) -> str:
    """Convert 0-based column index to letter(s).  0=A, 25=Z, 26=AA."""
    if idx < 0:
        raise ValueError(f"Column index must be non-negative: {idx}")
    result = ""
    n = idx + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        result = chr(65 + rem) + result
    return result


def parse_cell_ref(label: str) -> CellReference | None:
    """Parse ``"AA10"`` -> ``CellReference(col=26, row=9)``.

    Returns None for anything outside the ``letters+digits`` grammar,
    including row ``0``.
    """
    m = _REF_RE.match(label.strip())
    if not m:
        return None
    row = int(m.group(2)) - 1
    if row < 0:
        return None
    return CellReference(col_letter_to_index(m.group(1)), row)


def format_ref(ref: tuple[int, int]) -> str:
    """Build a label from a 0-based ``(col, row)`` pair."""
    col, row = ref
    return f"{index_to_col_letter(col)}{row + 1}"


def parse_range_obj(label: str) -> CellRange | None:
    """Parse ``"A1:B3"`` into a :class:`CellRange`, or None if malformed."""
    parts = label.split(":")
    if len(parts) != 2:
        return None
    start = parse_cell_ref(parts[0])
    end = parse_cell_ref(parts[1])
    if start is None or end is None:
        return None
    return CellRange(start, end)


def parse_range(label: str) -> list[CellReference]:
    """Expand ``"A1:B3"`` into every coordinate of the rectangle (row-major).

    Returns an empty list unless the label holds exactly one ``:``
    separating two valid references.
    """
    rng = parse_range_obj(label)
    if rng is None:
        return []
    return list(rng)
