# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Loading persisted conversations from JSONL history files.

Each line of a history file is one protocol event with a ``timestamp``.
When a conversation is continued, the backend rewrites earlier assistant
lines with new timestamps, so the original ones are restored before sorting.
"""
import json
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from chatstream.adapters.batch import convert_conversation_history
from chatstream.config import ProcessorConfig
from chatstream.core.exceptions import HistoryLoadError
from chatstream.core.utils import to_epoch_ms
from chatstream.messages.models import Message


HistoryLine = dict[str, Any]

_UNSAFE_SESSION_CHARS = re.compile(r'[<>:"|?*\x00-\x1f/\\]')
_MAX_SESSION_ID_LENGTH = 255


class ConversationMetadata(BaseModel):
    """Time span and size of a conversation.

    Attributes:
        start_time: Timestamp of the earliest line.
        end_time: Timestamp of the latest line.
        message_count: Number of lines.
    """

    start_time: str | int | float
    end_time: str | int | float
    message_count: int


class ConversationHistory(BaseModel):
    """A loaded conversation, sorted and ready for replay."""

    session_id: str
    messages: list[HistoryLine] = Field(default_factory=list)
    metadata: ConversationMetadata

    def to_messages(self, config: ProcessorConfig | None = None) -> list[Message]:
        """Convert the conversation into display messages."""
        return convert_conversation_history(self.messages, config)


def _sort_key(line: HistoryLine) -> int:
    try:
        return to_epoch_ms(line["timestamp"])
    except (KeyError, TypeError, ValueError):
        return 0


def parse_history_lines(text: str, source: str = "<history>") -> list[HistoryLine]:
    """Parse JSONL text, skipping lines that are not JSON objects.

    Args:
        text: File contents.
        source: Name used in log messages.

    Returns:
        Decoded lines in file order.
    """
    lines: list[HistoryLine] = []
    for number, raw in enumerate(text.splitlines(), start=1):
        if not raw.strip():
            continue
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse line {number} in {source}: {e}")
            continue
        if not isinstance(parsed, dict):
            logger.warning(f"Skipping non-object line {number} in {source}")
            continue
        lines.append(parsed)
    return lines


def restore_timestamps(lines: list[HistoryLine]) -> list[HistoryLine]:
    """Give every assistant line the earliest timestamp seen for its message id.

    Args:
        lines: Decoded history lines.

    Returns:
        New list; changed lines are copies, the input is not modified.
    """
    earliest: dict[str, Any] = {}
    for line in lines:
        message_id = _assistant_message_id(line)
        if message_id is None or "timestamp" not in line:
            continue
        current = earliest.get(message_id)
        if current is None or _sort_key(line) < _sort_key({"timestamp": current}):
            earliest[message_id] = line["timestamp"]

    restored: list[HistoryLine] = []
    for line in lines:
        message_id = _assistant_message_id(line)
        if message_id is not None and message_id in earliest:
            restored.append({**line, "timestamp": earliest[message_id]})
        else:
            restored.append(line)
    return restored


def _assistant_message_id(line: HistoryLine) -> str | None:
    if line.get("type") != "assistant":
        return None
    message = line.get("message")
    if not isinstance(message, dict):
        return None
    message_id = message.get("id")
    return message_id if isinstance(message_id, str) and message_id else None


def sort_by_timestamp(lines: list[HistoryLine]) -> list[HistoryLine]:
    """Sort lines chronologically; lines with equal timestamps keep their order."""
    return sorted(lines, key=_sort_key)


def calculate_metadata(lines: list[HistoryLine]) -> ConversationMetadata:
    """Compute the time span and size of a conversation.

    An empty conversation starts and ends now.
    """
    if not lines:
        now = datetime.now(UTC).isoformat()
        return ConversationMetadata(start_time=now, end_time=now, message_count=0)

    ordered = sort_by_timestamp(lines)
    return ConversationMetadata(
        start_time=ordered[0].get("timestamp", ""),
        end_time=ordered[-1].get("timestamp", ""),
        message_count=len(lines),
    )


def process_conversation_messages(lines: list[HistoryLine], session_id: str) -> ConversationHistory:
    """Restore timestamps, sort, and attach metadata."""
    ordered = sort_by_timestamp(restore_timestamps(lines))
    return ConversationHistory(
        session_id=session_id,
        messages=ordered,
        metadata=calculate_metadata(ordered),
    )


def validate_session_id(session_id: str) -> bool:
    """Check that a session id is safe to use as a file name.

    Rejects empty ids, path separators, characters that are invalid in file
    names, control characters, ids longer than 255 characters and ids
    starting with a dot.
    """
    if not session_id:
        return False
    if _UNSAFE_SESSION_CHARS.search(session_id):
        return False
    if len(session_id) > _MAX_SESSION_ID_LENGTH:
        return False
    return not session_id.startswith(".")


def load_history_file(path: Path, session_id: str | None = None) -> ConversationHistory:
    """Load a JSONL history file.

    Args:
        path: The history file.
        session_id: Session id to report; defaults to the file stem.

    Returns:
        The sorted conversation.

    Raises:
        HistoryLoadError: If the file cannot be read or has no lines.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise HistoryLoadError(f"Failed to read history file {path}: {e}") from e

    if not text.strip():
        raise HistoryLoadError(f"Empty conversation file: {path}")

    lines = parse_history_lines(text, source=str(path))
    logger.debug(f"Loaded {len(lines)} history lines", path=str(path))
    return process_conversation_messages(lines, session_id or path.stem)


def load_conversation(history_dir: Path, session_id: str) -> ConversationHistory | None:
    """Load ``<history_dir>/<session_id>.jsonl``.

    Args:
        history_dir: Directory holding the project's history files.
        session_id: Session to load.

    Returns:
        The conversation, or None when no history file exists for the session.

    Raises:
        HistoryLoadError: If the session id is unsafe or the file is empty.
    """
    if not validate_session_id(session_id):
        raise HistoryLoadError("Invalid session ID format")

    path = history_dir / f"{session_id}.jsonl"
    if not path.exists():
        return None

    return load_history_file(path, session_id)
