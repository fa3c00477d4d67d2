# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Caller-supplied state and callbacks for message processing."""
from collections.abc import Callable
from dataclasses import dataclass, field

from chatstream.messages.models import ChatMessage, Message


PermissionErrorCallback = Callable[[str, list[str], str], None]


@dataclass(frozen=True)
class ProcessingOptions:
    """Per-call processing options.

    Attributes:
        is_streaming: Live stream (True) or history replay (False).
        timestamp: Override for every message produced by the call, in epoch
            milliseconds. When None, the event's own timestamp is used, or the
            current time if the event has none.
    """

    is_streaming: bool = False
    timestamp: int | None = None


@dataclass
class ProcessingContext:
    """Message sink plus the optional hooks of the surrounding UI.

    Only ``add_message`` is required. Every hook left as None is skipped.
    The mutable fields carry streaming state between events and are owned by
    whoever owns the context (normally a StreamingAdapter).

    Attributes:
        add_message: Receives every message produced outside batch collection.
        update_last_message: Receives the full text of the open assistant
            message each time it grows.
        on_session_id: Receives the session id once per distinct session.
        should_show_init_message: Decides whether the init system event is shown.
        on_init_message_shown: Called after the init system event was shown.
        on_permission_error: Receives (tool name, patterns, tool_use_id) for a
            denied tool invocation.
        on_abort_request: Asks the transport to abort the in-flight request.
        current_assistant_message: The open assistant chat message, if any.
        has_received_init: Whether the init system event was seen.
        reported_session_id: Last session id passed to ``on_session_id``.
        denied_tool_use_ids: Invocations already reported as denied.
    """

    add_message: Callable[[Message], None]
    update_last_message: Callable[[str], None] | None = None
    on_session_id: Callable[[str], None] | None = None
    should_show_init_message: Callable[[], bool] | None = None
    on_init_message_shown: Callable[[], None] | None = None
    on_permission_error: PermissionErrorCallback | None = None
    on_abort_request: Callable[[], None] | None = None
    current_assistant_message: ChatMessage | None = None
    has_received_init: bool = False
    reported_session_id: str | None = None
    denied_tool_use_ids: set[str] = field(default_factory=set)

    def set_current_assistant_message(self, message: ChatMessage | None) -> None:
        self.current_assistant_message = message

    def set_has_received_init(self, received: bool) -> None:
        self.has_received_init = received

    def close_assistant_message(self) -> None:
        """Finish the open assistant message.

        Text is shown untrimmed while it streams in. On close the message
        gets its final, trimmed text, the same text history replay shows.
        """
        current = self.current_assistant_message
        if current is None:
            return
        trimmed = current.content.strip()
        if trimmed != current.content and self.update_last_message is not None:
            self.update_last_message(trimmed)
        self.current_assistant_message = None

    def reset_request_state(self) -> None:
        """Forget per-request streaming state before a new request starts."""
        self.current_assistant_message = None
        self.has_received_init = False
