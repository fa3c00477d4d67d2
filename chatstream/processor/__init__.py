"""Unified processing of live and replayed protocol events."""

from chatstream.processor.context import ProcessingContext, ProcessingOptions
from chatstream.processor.permissions import is_permission_error, is_tool_use_error
from chatstream.processor.processor import UnifiedMessageProcessor, event_timestamp
from chatstream.processor.sinks import CollectingSink, EventSink, StreamingSink


__all__ = [
    "CollectingSink",
    "EventSink",
    "ProcessingContext",
    "ProcessingOptions",
    "StreamingSink",
    "UnifiedMessageProcessor",
    "event_timestamp",
    "is_permission_error",
    "is_tool_use_error",
]
