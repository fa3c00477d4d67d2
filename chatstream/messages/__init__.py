"""UI-ready output messages and the factories that build them."""

from chatstream.messages.factories import (
    create_abort_message,
    create_error_message,
    create_plan_message,
    create_thinking_message,
    create_todo_message_from_input,
    create_tool_message,
    create_tool_result_message,
    generate_summary,
    is_todo_tool,
)
from chatstream.messages.models import (
    AbortMessage,
    ChatMessage,
    ErrorMessage,
    Message,
    PlanMessage,
    ResultMessage,
    SystemMessage,
    ThinkingMessage,
    TodoItem,
    TodoMessage,
    ToolMessage,
    ToolResultMessage,
    message_to_dict,
)


__all__ = [
    "AbortMessage",
    "ChatMessage",
    "ErrorMessage",
    "Message",
    "PlanMessage",
    "ResultMessage",
    "SystemMessage",
    "ThinkingMessage",
    "TodoItem",
    "TodoMessage",
    "ToolMessage",
    "ToolResultMessage",
    "create_abort_message",
    "create_error_message",
    "create_plan_message",
    "create_thinking_message",
    "create_todo_message_from_input",
    "create_tool_message",
    "create_tool_result_message",
    "generate_summary",
    "is_todo_tool",
    "message_to_dict",
]
