# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""History replay adapter around the message processor."""
from collections.abc import Iterable
from typing import Any

from loguru import logger
from pydantic import BaseModel, ValidationError

from chatstream.config import ProcessorConfig
from chatstream.messages.models import Message
from chatstream.processor.context import ProcessingContext
from chatstream.processor.processor import UnifiedMessageProcessor
from chatstream.protocol.events import ProtocolEventModel, parse_event


class BatchAdapter:
    """Converts persisted, timestamped events into display messages.

    Every ``convert`` call starts from an empty tool-use cache, so converting
    the same history twice gives the same result.

    Args:
        processor: Processor to replay through. A new one is created if omitted.
        config: Configuration; defaults are used if omitted.
    """

    def __init__(
        self,
        processor: UnifiedMessageProcessor | None = None,
        config: ProcessorConfig | None = None,
    ) -> None:
        self.processor = processor or UnifiedMessageProcessor(config)

    def convert(
        self,
        events: Iterable[ProtocolEventModel | dict[str, Any] | Any],
        context: ProcessingContext | None = None,
    ) -> list[Message]:
        """Replay events into one ordered message list.

        Entries that are not event objects, or lack a ``type`` or
        ``timestamp``, are logged and skipped.

        Args:
            events: Persisted events in display order.
            context: Optional hooks, e.g. for permission denials in history.

        Returns:
            The produced messages in event order.
        """
        valid_events: list[ProtocolEventModel] = []
        for index, raw_event in enumerate(events):
            event = self._validate(index, raw_event)
            if event is not None:
                valid_events.append(event)
        return self.processor.process_messages_batch(valid_events, context)

    def _validate(self, index: int, event: Any) -> ProtocolEventModel | None:
        if isinstance(event, BaseModel):
            event = event.model_dump(by_alias=True)

        if not isinstance(event, dict):
            logger.warning(f"Skipping history entry {index}: not an object")
            return None
        if "type" not in event or event.get("timestamp") is None:
            logger.warning(f"Skipping history entry {index}: missing type or timestamp")
            return None

        try:
            return parse_event(event)
        except ValidationError as e:
            logger.warning(f"Skipping history entry {index}: {e.error_count()} validation error(s)")
            return None


def convert_conversation_history(
    events: Iterable[ProtocolEventModel | dict[str, Any]],
    config: ProcessorConfig | None = None,
) -> list[Message]:
    """Convert a whole persisted conversation with a fresh processor."""
    return BatchAdapter(config=config).convert(events)


def convert_timestamped_event(
    event: ProtocolEventModel | dict[str, Any],
    config: ProcessorConfig | None = None,
) -> list[Message]:
    """Convert a single persisted event with a fresh processor.

    A tool result in the event cannot be correlated with an invocation from
    another event, so it resolves to the placeholder name.
    """
    return BatchAdapter(config=config).convert([event])
