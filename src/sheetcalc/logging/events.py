"""Structured sheet events and the helpers that record them.

Events are pydantic models written as NDJSON by the sink configured with
:func:`set_log_dir`.  Recording an event must never break an edit, so the
``emit*`` helpers swallow sink failures and report them on stderr at most
once a minute.
"""

from __future__ import annotations

import sys
import time
import traceback
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class EventLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class EventType(str, Enum):
    document_loaded = "document_loaded"
    document_invalid = "document_invalid"
    document_saved = "document_saved"
    cell_committed = "cell_committed"
    structural_edit = "structural_edit"
    structural_edit_rejected = "structural_edit_rejected"
    sort_applied = "sort_applied"
    history_undo = "history_undo"
    history_redo = "history_redo"
    export_completed = "export_completed"


# Stable machine-readable codes carried by warning/error events.
DOCUMENT_PARSE_FAILED = "document_parse_failed"
DOCUMENT_SHAPE_INVALID = "document_shape_invalid"
LAST_ROW_OR_COLUMN = "last_row_or_column"
INDEX_OUT_OF_RANGE = "index_out_of_range"


def _timestamp() -> str:
    # e.g. 2024-03-01T12:00:00.123456Z
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SheetEvent(BaseModel):
    """One line of ``logs/events.ndjson``."""

    schema_version: int = 1
    ts: str = Field(default_factory=_timestamp)
    level: EventLevel
    event_type: EventType
    message: str = ""
    context: dict[str, Any] = Field(default_factory=dict)
    error_code: str | None = None


# ---------------------------------------------------------------------------
# Process-wide sink
# ---------------------------------------------------------------------------


class _EventHub:
    """Holds the active sink and throttles stderr reports of its failures."""

    warn_interval = 60.0

    def __init__(self) -> None:
        self.sink: Any = None  # EventSink | None
        self.last_warning = float("-inf")

    def report_failure(self) -> None:
        now = time.monotonic()
        if now - self.last_warning < self.warn_interval:
            return
        self.last_warning = now
        try:
            sys.stderr.write(f"[sheetcalc] logging failed: {traceback.format_exc()}\n")
        except OSError:
            pass


_hub = _EventHub()


def set_log_dir(log_root: Path | str, *, fsync: bool = False) -> None:
    """Send events to ``<log_root>/logs/events.ndjson`` from now on.

    Until this is called events are dropped.
    """
    from sheetcalc.logging.sink import EventSink

    _hub.sink = EventSink(Path(log_root), fsync=fsync)


def reset_log_dir() -> None:
    """Stop recording events."""
    _hub.sink = None


def emit(event: SheetEvent) -> None:
    """Record *event* on the active sink, if any.  Never raises."""
    sink = _hub.sink
    if sink is None:
        return
    try:
        sink.write(event)
    except Exception:
        _hub.report_failure()


def _emit_at(
    level: EventLevel,
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None,
    error_code: str | None = None,
) -> None:
    emit(
        SheetEvent(
            level=level,
            event_type=event_type,
            message=message,
            context=dict(context or {}),
            error_code=error_code,
        )
    )


def emit_info(event_type: EventType, message: str, context: dict[str, Any] | None = None) -> None:
    _emit_at(EventLevel.info, event_type, message, context)


def emit_warning(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    _emit_at(EventLevel.warning, event_type, message, context, error_code)


def emit_error(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    _emit_at(EventLevel.error, event_type, message, context, error_code)
