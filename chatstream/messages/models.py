# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""UI-ready output messages.

Every message carries a ``timestamp`` in milliseconds since the epoch. It is
used for display ordering only.
"""
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """User or assistant chat text.

    Attributes:
        role: Who wrote the message.
        content: Message text.
        timestamp: Display time in epoch milliseconds.
    """

    type: Literal["chat"] = "chat"
    role: Literal["user", "assistant"]
    content: str
    timestamp: int


class SystemMessage(BaseModel):
    """System event as shown to the user.

    The raw event fields (model, session_id, tools, cwd, ...) are kept as
    extra attributes.
    """

    model_config = ConfigDict(extra="allow")

    type: Literal["system"] = "system"
    subtype: str | None = None
    timestamp: int


class ResultMessage(BaseModel):
    """End-of-request summary.

    The raw result fields (duration_ms, total_cost_usd, usage, ...) are kept
    as extra attributes.
    """

    model_config = ConfigDict(extra="allow")

    type: Literal["result"] = "result"
    subtype: str | None = None
    timestamp: int


class ErrorMessage(BaseModel):
    """Stream-level error reported by the transport."""

    type: Literal["error"] = "error"
    subtype: Literal["stream_error"] = "stream_error"
    message: str
    timestamp: int


class AbortMessage(BaseModel):
    """Marks the point where a request was aborted."""

    type: Literal["abort"] = "abort"
    subtype: Literal["abort"] = "abort"
    message: str
    timestamp: int


class ToolMessage(BaseModel):
    """Tool invocation display, e.g. ``Read(/src/app.py)``."""

    type: Literal["tool"] = "tool"
    content: str
    timestamp: int


class ToolResultMessage(BaseModel):
    """Tool output with a short derived summary.

    Attributes:
        tool_name: Resolved name of the tool that produced the output.
        content: Full output text.
        summary: Short display form, e.g. ``"3 lines"`` or ``"Found 12"``.
        timestamp: Display time in epoch milliseconds.
    """

    type: Literal["tool_result"] = "tool_result"
    tool_name: str
    content: str
    summary: str
    timestamp: int


class ThinkingMessage(BaseModel):
    """Extended-thinking trace."""

    type: Literal["thinking"] = "thinking"
    content: str
    timestamp: int


class TodoItem(BaseModel):
    """One entry of a TodoWrite list.

    Attributes:
        content: Task description.
        status: Progress state.
        active_form: Present-tense label shown while in progress
            (``activeForm`` on the wire).
    """

    model_config = ConfigDict(strict=True, populate_by_name=True, frozen=True)

    content: str
    status: Literal["pending", "in_progress", "completed"]
    active_form: str = Field(alias="activeForm")


class TodoMessage(BaseModel):
    """Snapshot of the assistant's todo list."""

    type: Literal["todo"] = "todo"
    todos: list[TodoItem]
    timestamp: int


class PlanMessage(BaseModel):
    """Plan proposed by the assistant when leaving plan mode."""

    type: Literal["plan"] = "plan"
    plan: str
    tool_use_id: str
    timestamp: int


Message = (
    ChatMessage
    | SystemMessage
    | ResultMessage
    | ErrorMessage
    | AbortMessage
    | ToolMessage
    | ToolResultMessage
    | ThinkingMessage
    | TodoMessage
    | PlanMessage
)


def message_to_dict(message: Message) -> dict[str, Any]:
    """Serialize a message for the UI layer, using wire aliases."""
    return message.model_dump(mode="json", by_alias=True)
