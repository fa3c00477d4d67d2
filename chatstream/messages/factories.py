# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Constructors that turn protocol pieces into output messages.

Each factory takes an optional ``timestamp``; when it is omitted the current
time is used.
"""
import re
from typing import Any

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from chatstream.core.constants import (
    DEFAULT_TOOL_NAME,
    SUMMARY_MAX_LENGTH,
    ToolName,
)
from chatstream.core.utils import now_ms
from chatstream.messages.models import (
    AbortMessage,
    ChatMessage,
    ErrorMessage,
    PlanMessage,
    ResultMessage,
    SystemMessage,
    ThinkingMessage,
    TodoItem,
    TodoMessage,
    ToolMessage,
    ToolResultMessage,
)
from chatstream.protocol.events import ResultEvent, SystemEvent, ToolUseItem
from chatstream.tools.patterns import format_tool_arguments


_FOUND_PATTERN = re.compile(r"Found (\d+)")
_FILES_PATTERN = re.compile(r"(\d+)\s+files?")

_todo_list_adapter = TypeAdapter(list[TodoItem])


def _resolve(timestamp: int | None) -> int:
    return timestamp if timestamp is not None else now_ms()


def generate_summary(content: str, max_length: int = SUMMARY_MAX_LENGTH) -> str:
    """Derive a short display summary from tool output.

    Rules, first match wins:
        - multi-line output: ``"<n> line(s)"`` counting non-blank lines
        - ``Found <n>``: ``"Found <n>"``
        - ``<n> files``: ``"<n> files"``
        - shorter than ``max_length``: the trimmed output itself
        - otherwise: ``"<len> chars"``

    Args:
        content: Tool output text.
        max_length: Length below which the output is shown verbatim.

    Returns:
        The summary string.

    Example:
        >>> generate_summary("a\\nb\\nc")
        '3 lines'
        >>> generate_summary("Found 12 matches")
        'Found 12'
    """
    if "\n" in content:
        lines = [line for line in content.split("\n") if line.strip()]
        if lines:
            return f"{len(lines)} {'line' if len(lines) == 1 else 'lines'}"
    elif "Found" in content:
        match = _FOUND_PATTERN.search(content)
        if match:
            return f"Found {match.group(1)}"
    elif "files" in content:
        match = _FILES_PATTERN.search(content)
        if match:
            return f"{match.group(1)} files"
    elif len(content) < max_length:
        return content.strip()

    return f"{len(content)} chars"


def convert_system_message(event: SystemEvent, timestamp: int | None = None) -> SystemMessage:
    """Convert a system event, keeping its raw fields."""
    data = event.model_dump(exclude={"type", "timestamp"}, exclude_none=True)
    return SystemMessage(**data, timestamp=_resolve(timestamp))


def convert_result_message(event: ResultEvent, timestamp: int | None = None) -> ResultMessage:
    """Convert a result event, keeping its statistics."""
    data = event.model_dump(exclude={"type", "timestamp"}, exclude_none=True)
    return ResultMessage(**data, timestamp=_resolve(timestamp))


def create_chat_message(role: str, content: str, timestamp: int | None = None) -> ChatMessage:
    return ChatMessage(role=role, content=content, timestamp=_resolve(timestamp))


def create_tool_message(item: ToolUseItem, timestamp: int | None = None) -> ToolMessage:
    """Create the generic ``Name(args)`` display for a tool invocation."""
    tool_name = item.name or DEFAULT_TOOL_NAME
    return ToolMessage(
        content=f"{tool_name}{format_tool_arguments(item.input)}",
        timestamp=_resolve(timestamp),
    )


def create_tool_result_message(
    tool_name: str,
    content: str,
    timestamp: int | None = None,
    summary_max_length: int = SUMMARY_MAX_LENGTH,
) -> ToolResultMessage:
    """Create a tool result display with a derived summary."""
    return ToolResultMessage(
        tool_name=tool_name,
        content=content,
        summary=generate_summary(content, summary_max_length),
        timestamp=_resolve(timestamp),
    )


def create_thinking_message(content: str, timestamp: int | None = None) -> ThinkingMessage:
    return ThinkingMessage(content=content, timestamp=_resolve(timestamp))


def create_plan_message(item: ToolUseItem, timestamp: int | None = None) -> PlanMessage:
    """Create a plan proposal from an ExitPlanMode invocation.

    A missing or non-string ``plan`` argument yields an empty plan.
    """
    plan = (item.input or {}).get("plan")
    return PlanMessage(
        plan=plan if isinstance(plan, str) else "",
        tool_use_id=item.id or "",
        timestamp=_resolve(timestamp),
    )


def create_error_message(message: str, timestamp: int | None = None) -> ErrorMessage:
    return ErrorMessage(message=message, timestamp=_resolve(timestamp))


def create_abort_message(message: str, timestamp: int | None = None) -> AbortMessage:
    return AbortMessage(message=message, timestamp=_resolve(timestamp))


def extract_todo_data_from_input(tool_input: dict[str, Any]) -> list[TodoItem] | None:
    """Validate the ``todos`` argument of a TodoWrite invocation.

    Every item needs string ``content``, a ``status`` of pending,
    in_progress or completed, and a string ``activeForm``.

    Args:
        tool_input: TodoWrite arguments.

    Returns:
        The parsed items, or None if the list is missing or any item is malformed.
    """
    todos = tool_input.get("todos")
    if not isinstance(todos, list):
        return None
    try:
        return _todo_list_adapter.validate_python(todos)
    except ValidationError as e:
        logger.debug(f"Invalid todo item structure in input: {e.error_count()} error(s)")
        return None


def create_todo_message_from_input(
    tool_input: dict[str, Any], timestamp: int | None = None
) -> TodoMessage | None:
    """Create a todo snapshot from TodoWrite arguments, or None if malformed."""
    todos = extract_todo_data_from_input(tool_input)
    if todos is None:
        return None
    return TodoMessage(todos=todos, timestamp=_resolve(timestamp))


def is_todo_tool(tool_name: str | None) -> bool:
    """Check whether a tool name is the todo list tool."""
    return tool_name == ToolName.TODO_WRITE
