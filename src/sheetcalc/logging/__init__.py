"""Structured event logging for sheetcalc.

Provides the event schema, a filesystem NDJSON sink, and emit helpers
that never raise.
"""

from sheetcalc.logging.events import (
    EventLevel,
    EventType,
    SheetEvent,
    emit,
    emit_error,
    emit_info,
    emit_warning,
    reset_log_dir,
    set_log_dir,
)
from sheetcalc.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "SheetEvent",
    "emit",
    "emit_error",
    "emit_info",
    "emit_warning",
    "reset_log_dir",
    "set_log_dir",
]
