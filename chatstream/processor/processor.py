# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Conversion of protocol events into UI messages.

One processor serves both the live stream and history replay so that the two
produce the same messages. The mode only selects the sink the handlers write
to (see ``chatstream.processor.sinks``).
"""
import dataclasses
from collections.abc import Iterable
from typing import Any

from loguru import logger
from pydantic import ValidationError

from chatstream.config import ProcessorConfig
from chatstream.core.constants import DEFAULT_TOOL_RESULT_NAME, ToolName
from chatstream.core.utils import now_ms, to_epoch_ms
from chatstream.messages.factories import (
    convert_result_message,
    convert_system_message,
    create_chat_message,
    create_plan_message,
    create_thinking_message,
    create_todo_message_from_input,
    create_tool_message,
    create_tool_result_message,
    is_todo_tool,
)
from chatstream.messages.models import Message
from chatstream.processor.context import ProcessingContext, ProcessingOptions
from chatstream.processor.permissions import is_permission_error
from chatstream.processor.sinks import CollectingSink, EventSink, StreamingSink
from chatstream.protocol.events import (
    AssistantEvent,
    ProtocolEventModel,
    ResultEvent,
    SystemEvent,
    TextItem,
    ThinkingItem,
    ToolResultItem,
    ToolUseItem,
    UserEvent,
    parse_event,
)
from chatstream.tools.correlator import ToolUseCorrelator
from chatstream.tools.patterns import extract_tool_info, generate_tool_patterns


def event_timestamp(event: ProtocolEventModel) -> int | None:
    """Return the event's own timestamp in epoch milliseconds, if it has a usable one."""
    if event.timestamp is None:
        return None
    try:
        return to_epoch_ms(event.timestamp)
    except ValueError:
        logger.debug(f"Ignoring unparseable event timestamp: {event.timestamp!r}")
        return None


class UnifiedMessageProcessor:
    """Turns protocol events into ordered UI messages.

    The processor owns a tool-use correlator, so one instance must serve one
    session. Never share an instance between sessions.

    Attributes:
        config: Display policy (summary length, unmatched result handling).
        correlator: Cache of observed tool invocations.
    """

    def __init__(self, config: ProcessorConfig | None = None) -> None:
        self.config = config or ProcessorConfig()
        self.correlator = ToolUseCorrelator()

    def clear_cache(self) -> None:
        """Forget every observed tool invocation."""
        self.correlator.clear()

    def process_message(
        self,
        event: ProtocolEventModel | dict[str, Any],
        context: ProcessingContext,
        options: ProcessingOptions | None = None,
    ) -> list[Message]:
        """Process one protocol event.

        System and result messages always go to ``context.add_message``. In
        streaming mode every other message does too; in batch mode the
        messages of assistant and user events are returned instead, ordered
        thinking first, then tool activity, then assistant text.

        Args:
            event: The event, typed or as decoded JSON.
            context: Message sink and UI hooks.
            options: Mode and timestamp override.

        Returns:
            The messages produced for the caller to collect. Always empty in
            streaming mode.
        """
        options = options or ProcessingOptions()

        if isinstance(event, dict):
            try:
                event = parse_event(event)
            except ValidationError as e:
                logger.warning(f"Skipping invalid event: {e.error_count()} validation error(s)")
                return []

        timestamp = options.timestamp
        if timestamp is None:
            timestamp = event_timestamp(event)
        if timestamp is None:
            timestamp = now_ms()

        sink: EventSink = (
            StreamingSink(context, timestamp) if options.is_streaming else CollectingSink(timestamp)
        )

        if isinstance(event, SystemEvent):
            self._process_system(event, context, options, timestamp)
        elif isinstance(event, AssistantEvent):
            self._process_assistant(event, context, options, sink, timestamp)
        elif isinstance(event, ResultEvent):
            self._process_result(event, context, options, timestamp)
        elif isinstance(event, UserEvent):
            self._process_user(event, context, sink, timestamp)
        else:
            logger.warning(f"Unknown message type: {event.type}")

        return sink.finish()

    def process_messages_batch(
        self,
        events: Iterable[ProtocolEventModel | dict[str, Any]],
        context: ProcessingContext | None = None,
    ) -> list[Message]:
        """Replay persisted events into one ordered message list.

        The tool-use cache is cleared first, so a replay never sees
        invocations from an earlier one.

        Args:
            events: Events in display order, each carrying its own timestamp.
            context: Optional hooks. Its ``add_message`` is replaced by the
                collector.

        Returns:
            Every produced message, in event order.
        """
        all_messages: list[Message] = []
        if context is None:
            batch_context = ProcessingContext(add_message=all_messages.append)
        else:
            batch_context = dataclasses.replace(context, add_message=all_messages.append)

        self.clear_cache()

        for event in events:
            if isinstance(event, dict):
                try:
                    event = parse_event(event)
                except ValidationError as e:
                    logger.warning(f"Skipping invalid event: {e.error_count()} validation error(s)")
                    continue
            options = ProcessingOptions(is_streaming=False, timestamp=event_timestamp(event))
            all_messages.extend(self.process_message(event, batch_context, options))

        return all_messages

    def _process_system(
        self,
        event: SystemEvent,
        context: ProcessingContext,
        options: ProcessingOptions,
        timestamp: int,
    ) -> None:
        if options.is_streaming and event.subtype == "init":
            context.set_has_received_init(True)
            should_show = (
                context.should_show_init_message() if context.should_show_init_message else True
            )
            if should_show:
                context.add_message(convert_system_message(event, timestamp))
                if context.on_init_message_shown:
                    context.on_init_message_shown()
            return

        context.add_message(convert_system_message(event, timestamp))

    def _process_assistant(
        self,
        event: AssistantEvent,
        context: ProcessingContext,
        options: ProcessingOptions,
        sink: EventSink,
        timestamp: int,
    ) -> None:
        if options.is_streaming:
            self._report_session_id(event, context)

        for item in event.message.content:
            if isinstance(item, TextItem):
                sink.append_text(item.text)
            elif isinstance(item, ToolUseItem):
                self._handle_tool_use(item, sink, timestamp)
            elif isinstance(item, ThinkingItem):
                if item.thinking is not None:
                    sink.emit_thinking(create_thinking_message(item.thinking, timestamp))
            else:
                logger.debug(f"Skipping assistant content item of type {item.type!r}")

    def _report_session_id(self, event: AssistantEvent, context: ProcessingContext) -> None:
        if not (context.has_received_init and event.session_id and context.on_session_id):
            return
        if event.session_id == context.reported_session_id:
            return
        context.reported_session_id = event.session_id
        context.on_session_id(event.session_id)

    def _handle_tool_use(self, item: ToolUseItem, sink: EventSink, timestamp: int) -> None:
        if item.id and item.name:
            self.correlator.record(item.id, item.name, item.input)

        if item.name == ToolName.EXIT_PLAN_MODE:
            sink.emit(create_plan_message(item, timestamp))
            return

        if is_todo_tool(item.name):
            todo_message = create_todo_message_from_input(item.input or {}, timestamp)
            if todo_message is not None:
                sink.emit(todo_message)
                return

        sink.emit(create_tool_message(item, timestamp))

    def _process_result(
        self,
        event: ResultEvent,
        context: ProcessingContext,
        options: ProcessingOptions,
        timestamp: int,
    ) -> None:
        context.add_message(convert_result_message(event, timestamp))
        if options.is_streaming:
            context.close_assistant_message()

    def _process_user(
        self,
        event: UserEvent,
        context: ProcessingContext,
        sink: EventSink,
        timestamp: int,
    ) -> None:
        content = event.message.content
        if isinstance(content, str):
            sink.emit(create_chat_message("user", content, timestamp))
            return

        for item in content:
            if isinstance(item, ToolResultItem):
                self._process_tool_result(item, context, sink, timestamp)
            elif isinstance(item, TextItem):
                sink.emit(create_chat_message("user", item.text, timestamp))
            else:
                logger.debug(f"Skipping user content item of type {item.type!r}")

    def _process_tool_result(
        self,
        item: ToolResultItem,
        context: ProcessingContext,
        sink: EventSink,
        timestamp: int,
    ) -> None:
        if is_permission_error(item):
            self._handle_permission_error(item, context)
            return

        cached = self.correlator.lookup(item.tool_use_id)
        if cached is None and self.config.unmatched_tool_result == "drop":
            logger.debug("Dropping unmatched tool result", tool_use_id=item.tool_use_id)
            return

        tool_name = cached.name if cached else DEFAULT_TOOL_RESULT_NAME
        if is_todo_tool(tool_name):
            return

        sink.emit(
            create_tool_result_message(
                tool_name,
                item.content_text(),
                timestamp,
                self.config.summary_max_length,
            )
        )

    def _handle_permission_error(self, item: ToolResultItem, context: ProcessingContext) -> None:
        tool_use_id = item.tool_use_id or ""
        if tool_use_id and tool_use_id in context.denied_tool_use_ids:
            logger.debug("Permission denial already reported", tool_use_id=tool_use_id)
            return
        if tool_use_id:
            context.denied_tool_use_ids.add(tool_use_id)

        if context.on_abort_request:
            context.on_abort_request()

        cached = self.correlator.lookup(tool_use_id)
        tool_info = extract_tool_info(
            cached.name if cached else None,
            cached.input if cached else None,
        )
        patterns = generate_tool_patterns(tool_info.tool_name, tool_info.commands)
        logger.info(
            "Tool permission denied",
            tool_name=tool_info.tool_name,
            tool_use_id=tool_use_id,
        )

        if context.on_permission_error:
            context.on_permission_error(tool_info.tool_name, patterns, tool_use_id)
