"""Loading of persisted conversation history."""

from chatstream.history.loader import (
    ConversationHistory,
    ConversationMetadata,
    calculate_metadata,
    load_conversation,
    load_history_file,
    parse_history_lines,
    process_conversation_messages,
    restore_timestamps,
    sort_by_timestamp,
    validate_session_id,
)


__all__ = [
    "ConversationHistory",
    "ConversationMetadata",
    "calculate_metadata",
    "load_conversation",
    "load_history_file",
    "parse_history_lines",
    "process_conversation_messages",
    "restore_timestamps",
    "sort_by_timestamp",
    "validate_session_id",
]
