"""Assistant protocol events and NDJSON wire frames."""

from chatstream.protocol.events import (
    AbortedFrame,
    AssistantEvent,
    ClaudeJsonFrame,
    DoneFrame,
    ErrorFrame,
    ProtocolEventModel,
    ResultEvent,
    StreamFrameModel,
    SystemEvent,
    TextItem,
    ThinkingItem,
    ToolResultItem,
    ToolUseItem,
    UnknownContentItem,
    UnknownEvent,
    UserEvent,
    decode_frame,
    parse_event,
)


__all__ = [
    "AbortedFrame",
    "AssistantEvent",
    "ClaudeJsonFrame",
    "DoneFrame",
    "ErrorFrame",
    "ProtocolEventModel",
    "ResultEvent",
    "StreamFrameModel",
    "SystemEvent",
    "TextItem",
    "ThinkingItem",
    "ToolResultItem",
    "ToolUseItem",
    "UnknownContentItem",
    "UnknownEvent",
    "UserEvent",
    "decode_frame",
    "parse_event",
]
