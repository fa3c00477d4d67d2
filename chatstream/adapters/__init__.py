"""Adapters that drive the processor from a live stream or from history."""

from chatstream.adapters.batch import (
    BatchAdapter,
    convert_conversation_history,
    convert_timestamped_event,
)
from chatstream.adapters.streaming import (
    FileChunkReader,
    StreamingAdapter,
    StreamState,
    read_chunks,
)


__all__ = [
    "BatchAdapter",
    "FileChunkReader",
    "StreamState",
    "StreamingAdapter",
    "convert_conversation_history",
    "convert_timestamped_event",
    "read_chunks",
]
