# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Output strategies for the message processor.

The processor builds the same messages in both modes; only where they go
differs. ``StreamingSink`` forwards each message to the UI immediately and
merges assistant text into one growing chat message. ``CollectingSink`` keeps
messages for the caller and orders them per assistant event: thinking first,
then tool activity, then the assistant text.
"""
from typing import Protocol

from chatstream.messages.factories import create_chat_message
from chatstream.messages.models import Message, ThinkingMessage
from chatstream.processor.context import ProcessingContext


class EventSink(Protocol):
    """Destination for the messages produced while processing one event."""

    def emit(self, message: Message) -> None:
        """Accept a tool, todo, plan, tool result or user chat message."""
        ...

    def emit_thinking(self, message: ThinkingMessage) -> None:
        """Accept a thinking trace."""
        ...

    def append_text(self, text: str) -> None:
        """Accept a piece of assistant text."""
        ...

    def finish(self) -> list[Message]:
        """Return the messages the caller should receive for this event."""
        ...


class StreamingSink:
    """Push messages straight to the context as they are produced.

    Args:
        context: Context whose ``add_message`` receives the messages.
        timestamp: Timestamp for a newly opened assistant message.
    """

    def __init__(self, context: ProcessingContext, timestamp: int) -> None:
        self._context = context
        self._timestamp = timestamp

    def emit(self, message: Message) -> None:
        self._context.add_message(message)

    def emit_thinking(self, message: ThinkingMessage) -> None:
        self._context.add_message(message)

    def append_text(self, text: str) -> None:
        """Append text to the open assistant message, opening one if needed.

        The message is added to the context empty when it opens; every
        append then reports the full text through ``update_last_message``.
        """
        current = self._context.current_assistant_message
        if current is None:
            current = create_chat_message("assistant", "", self._timestamp)
            self._context.set_current_assistant_message(current)
            self._context.add_message(current)

        updated_content = current.content + text
        self._context.set_current_assistant_message(
            current.model_copy(update={"content": updated_content})
        )
        if self._context.update_last_message is not None:
            self._context.update_last_message(updated_content)

    def finish(self) -> list[Message]:
        return []


class CollectingSink:
    """Collect messages for return, ordered the way history is displayed.

    Args:
        timestamp: Timestamp for the assistant text message.
    """

    def __init__(self, timestamp: int) -> None:
        self._timestamp = timestamp
        self._thinking: list[ThinkingMessage] = []
        self._messages: list[Message] = []
        self._text_parts: list[str] = []

    def emit(self, message: Message) -> None:
        self._messages.append(message)

    def emit_thinking(self, message: ThinkingMessage) -> None:
        self._thinking.append(message)

    def append_text(self, text: str) -> None:
        self._text_parts.append(text)

    def finish(self) -> list[Message]:
        ordered: list[Message] = [*self._thinking, *self._messages]
        text = "".join(self._text_parts).strip()
        if text:
            ordered.append(create_chat_message("assistant", text, self._timestamp))
        return ordered
