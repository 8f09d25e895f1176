"""Structured event logging for sheetcalc.

Provides the event schema, a filesystem NDJSON sink, and emit helpers
that never raise.
"""

from sheetcalc.logging.events import (
    EventLevel,
    EventType,
    SheetcalcEvent,
    clip_context,
    emit,
    emit_info,
    emit_warning,
    reset_sink,
    set_project_dir,
)
from sheetcalc.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "SheetcalcEvent",
    "clip_context",
    "emit",
    "emit_info",
    "emit_warning",
    "reset_sink",
    "set_project_dir",
]
