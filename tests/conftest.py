from __future__ import annotations

import pytest

from sheetcalc.grid import Grid
from sheetcalc.logging.events import reset_log_dir


@pytest.fixture(autouse=True)
def _detach_event_sink():
    """Keep the module-level event sink from leaking between tests."""
    yield
    reset_log_dir()


@pytest.fixture
def grid_factory():
    """Build a grid from rows of raw input (history left empty)."""

    def _make(rows: list[list[str]], **kwargs) -> Grid:
        grid = Grid.empty(max(1, len(rows)), **kwargs)
        for r, row in enumerate(rows):
            for c, raw in enumerate(row):
                if raw:
                    grid.set_cell(c, r, raw, record=False)
        return grid

    return _make
