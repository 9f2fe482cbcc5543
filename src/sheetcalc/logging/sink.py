"""NDJSON file sink for sheet events.

Each event is one ``json.dumps(..., sort_keys=True)`` line in
``<log_root>/logs/events.ndjson``.  Writers take an exclusive ``flock``
and readers a shared one; reads only look at the tail of the file.
"""

from __future__ import annotations

import json
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO, Iterator

from sheetcalc.logging.events import SheetEvent

try:
    import fcntl
except ImportError:  # Windows: no advisory locks
    fcntl = None
    print("[sheetcalc] fcntl not available; event log locking disabled", file=sys.stderr)

LOG_FILENAME = "events.ndjson"
TAIL_BYTES = 2 * 1024 * 1024
MAX_LIMIT = 2000


@contextmanager
def _flocked(handle: BinaryIO, exclusive: bool) -> Iterator[BinaryIO]:
    if fcntl is None:
        yield handle
        return
    fcntl.flock(handle.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
    try:
        yield handle
    finally:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


class EventSink:
    """Append events to, and query, one sheet directory's event log."""

    def __init__(self, log_root: Path, *, fsync: bool = False, tail_bytes: int | None = None) -> None:
        self.logs_dir = Path(log_root) / "logs"
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.fsync = fsync
        self.tail_bytes = TAIL_BYTES if tail_bytes is None else tail_bytes

    @property
    def path(self) -> Path:
        return self.logs_dir / LOG_FILENAME

    def write(self, event: SheetEvent) -> None:
        payload = json.dumps(event.model_dump(mode="json"), sort_keys=True, default=str)
        with open(self.path, "ab") as fh, _flocked(fh, exclusive=True):
            fh.write(payload.encode("utf-8") + b"\n")
            fh.flush()
            if self.fsync:
                os.fsync(fh.fileno())

    def read_global(
        self,
        *,
        level: str | None = None,
        event_type: str | None = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        """Most recent events first, filtered by *level* / *event_type*."""
        limit = min(limit, MAX_LIMIT)
        selected: list[dict[str, Any]] = []
        for event in reversed(list(self._events())):
            if level and event.get("level") != level:
                continue
            if event_type and event.get("event_type") != event_type:
                continue
            selected.append(event)
            if len(selected) >= limit:
                break
        return selected

    def _events(self) -> Iterator[dict[str, Any]]:
        """Parse the tail of the log; blank or corrupt lines are skipped."""
        for raw in self._tail().splitlines():
            if not raw.strip():
                continue
            try:
                yield json.loads(raw)
            except json.JSONDecodeError:
                continue

    def _tail(self) -> str:
        if not self.path.exists():
            return ""
        with open(self.path, "rb") as fh, _flocked(fh, exclusive=False):
            size = fh.seek(0, os.SEEK_END)
            start = max(0, size - self.tail_bytes)
            fh.seek(start)
            data = fh.read()
        if start:
            # The first line is probably cut in half.
            _, _, data = data.partition(b"\n")
        return data.decode("utf-8", errors="replace")
