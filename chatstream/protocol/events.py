# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Raw protocol events emitted by the assistant backend.

The backend speaks a versioned protocol, so every model here allows extra
fields and keeps them. Event and content-item unions fall back to an
``Unknown*`` variant for tags this client does not understand, which lets the
processor log and skip them instead of failing the whole event.

The NDJSON transport wraps each event in a frame; see ``StreamFrame``.
"""
import json
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
)

from chatstream.core.exceptions import FrameDecodeError


Timestamp = str | int | float

_CONTENT_ITEM_TYPES = frozenset({"text", "tool_use", "tool_result", "thinking"})
_EVENT_TYPES = frozenset({"system", "assistant", "user", "result"})


class _ProtocolModel(BaseModel):
    model_config = ConfigDict(extra="allow")


# Content items


class TextItem(_ProtocolModel):
    """Plain text block."""

    type: Literal["text"] = "text"
    text: str = ""


class ToolUseItem(_ProtocolModel):
    """Tool invocation requested by the assistant.

    Attributes:
        id: Invocation id, later echoed by the matching tool_result.
        name: Tool name (e.g. Bash, Write, TodoWrite).
        input: Tool arguments.
    """

    type: Literal["tool_use"] = "tool_use"
    id: str | None = None
    name: str | None = None
    input: dict[str, Any] | None = None


class ToolResultItem(_ProtocolModel):
    """Output of a tool invocation, carried inside a user event.

    Attributes:
        tool_use_id: Id of the tool_use this result answers.
        content: Result text, or a list of content blocks.
        is_error: Whether the tool failed or was denied.
    """

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str | None = None
    content: str | list[Any] | dict[str, Any] | None = ""
    is_error: bool | None = None

    def content_text(self) -> str:
        """Return the content as a string, JSON-encoding structured content."""
        if isinstance(self.content, str):
            return self.content
        if self.content is None:
            return ""
        return json.dumps(self.content, separators=(",", ":"), ensure_ascii=False)


class ThinkingItem(_ProtocolModel):
    """Extended-thinking trace."""

    type: Literal["thinking"] = "thinking"
    thinking: str | None = None


class UnknownContentItem(_ProtocolModel):
    """Content item with a type this client does not handle."""

    type: str = ""


def _content_item_tag(value: Any) -> str:
    item_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return item_type if item_type in _CONTENT_ITEM_TYPES else "unknown"


ContentItem = Annotated[
    Annotated[TextItem, Tag("text")]
    | Annotated[ToolUseItem, Tag("tool_use")]
    | Annotated[ToolResultItem, Tag("tool_result")]
    | Annotated[ThinkingItem, Tag("thinking")]
    | Annotated[UnknownContentItem, Tag("unknown")],
    Discriminator(_content_item_tag),
]


# Events


class AssistantPayload(_ProtocolModel):
    """The ``message`` field of an assistant event."""

    id: str | None = None
    role: str | None = None
    content: list[ContentItem] = Field(default_factory=list)


class UserPayload(_ProtocolModel):
    """The ``message`` field of a user event."""

    role: str | None = None
    content: str | list[ContentItem] = Field(default_factory=list)


class _Event(_ProtocolModel):
    session_id: str | None = None
    timestamp: Timestamp | None = None


class SystemEvent(_Event):
    """System event; subtype ``init`` opens a session."""

    type: Literal["system"] = "system"
    subtype: str | None = None


class AssistantEvent(_Event):
    """Assistant turn carrying text, tool_use and thinking items."""

    type: Literal["assistant"] = "assistant"
    message: AssistantPayload = Field(default_factory=AssistantPayload)


class UserEvent(_Event):
    """User turn; tool results come back to the client as user events."""

    type: Literal["user"] = "user"
    message: UserPayload = Field(default_factory=UserPayload)


class ResultEvent(_Event):
    """End of one request, with cost and duration statistics."""

    type: Literal["result"] = "result"
    subtype: str | None = None


class UnknownEvent(_Event):
    """Event with a type this client does not handle."""

    type: str = ""


def _event_tag(value: Any) -> str:
    event_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return event_type if event_type in _EVENT_TYPES else "unknown"


ProtocolEvent = Annotated[
    Annotated[SystemEvent, Tag("system")]
    | Annotated[AssistantEvent, Tag("assistant")]
    | Annotated[UserEvent, Tag("user")]
    | Annotated[ResultEvent, Tag("result")]
    | Annotated[UnknownEvent, Tag("unknown")],
    Discriminator(_event_tag),
]

ProtocolEventModel = SystemEvent | AssistantEvent | UserEvent | ResultEvent | UnknownEvent

_event_adapter: TypeAdapter[ProtocolEventModel] = TypeAdapter(ProtocolEvent)


def parse_event(data: dict[str, Any]) -> ProtocolEventModel:
    """Validate a decoded event object.

    Args:
        data: Event as decoded from JSON.

    Returns:
        The typed event.

    Raises:
        pydantic.ValidationError: If the object does not match any event shape.
    """
    return _event_adapter.validate_python(data)


# Wire frames


class ClaudeJsonFrame(BaseModel):
    """Frame carrying one protocol event."""

    type: Literal["claude_json"]
    data: ProtocolEvent


class ErrorFrame(BaseModel):
    """Stream-level error reported by the transport."""

    type: Literal["error"]
    error: str | None = None


class AbortedFrame(BaseModel):
    """The request was aborted upstream."""

    type: Literal["aborted"]


class DoneFrame(BaseModel):
    """The request finished normally."""

    type: Literal["done"]


StreamFrame = Annotated[
    ClaudeJsonFrame | ErrorFrame | AbortedFrame | DoneFrame,
    Field(discriminator="type"),
]

StreamFrameModel = ClaudeJsonFrame | ErrorFrame | AbortedFrame | DoneFrame

_frame_adapter: TypeAdapter[StreamFrameModel] = TypeAdapter(StreamFrame)


def decode_frame(line: str) -> StreamFrameModel | None:
    """Decode one NDJSON line from the transport.

    Args:
        line: Raw line, with or without trailing newline.

    Returns:
        The decoded frame, or None for blank lines.

    Raises:
        FrameDecodeError: If the line is not JSON or not a known frame shape.
    """
    stripped = line.strip()
    if not stripped:
        return None

    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise FrameDecodeError(f"Failed to parse stream JSON: {e}", line=stripped) from e

    try:
        return _frame_adapter.validate_python(data)
    except ValidationError as e:
        raise FrameDecodeError(
            f"Invalid stream frame: {e.error_count()} validation error(s)", line=stripped
        ) from e
