# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Live-stream adapter around the message processor.

The transport delivers newline-delimited JSON frames in arbitrary chunks.
``StreamingAdapter`` reassembles lines, decodes frames, and keeps the message
list a chat UI would render, including the assistant message that grows while
text streams in.
"""
import asyncio
import codecs
from collections.abc import AsyncIterable, AsyncIterator, Callable
from enum import StrEnum
from typing import BinaryIO, Protocol

from loguru import logger

from chatstream.config import ProcessorConfig
from chatstream.core.constants import ABORT_MESSAGE_TEXT, UNKNOWN_ERROR_TEXT
from chatstream.core.exceptions import FrameDecodeError
from chatstream.messages.factories import create_abort_message, create_error_message
from chatstream.messages.models import Message
from chatstream.processor.context import (
    PermissionErrorCallback,
    ProcessingContext,
    ProcessingOptions,
)
from chatstream.processor.processor import UnifiedMessageProcessor
from chatstream.protocol.events import (
    AbortedFrame,
    ClaudeJsonFrame,
    DoneFrame,
    ErrorFrame,
    decode_frame,
)


class StreamState(StrEnum):
    """Lifecycle of one streamed request."""

    WAITING_FOR_INIT = "waiting_for_init"
    ACTIVE = "active"
    ABORTED = "aborted"


class ChunkReader(Protocol):
    """Anything with an awaitable ``read``, such as asyncio.StreamReader."""

    async def read(self, n: int = -1) -> bytes: ...


class FileChunkReader:
    """ChunkReader over a binary file; reads run in a worker thread."""

    def __init__(self, file: BinaryIO) -> None:
        self._file = file

    async def read(self, n: int = -1) -> bytes:
        return await asyncio.to_thread(self._file.read, n)


async def read_chunks(
    stream: ChunkReader,
    chunk_size: int = 64 * 1024,  # 64KB chunks
) -> AsyncIterator[bytes]:
    """Read a stream in fixed-size chunks until end of stream.

    Lines are not split here; a single frame may span many chunks, which
    avoids the line-length limit of ``readline()``.

    Args:
        stream: The stream to read from.
        chunk_size: Size of chunks to read at a time.

    Yields:
        Raw chunks, never empty.
    """
    while True:
        chunk = await stream.read(chunk_size)
        if not chunk:
            break
        yield chunk


class StreamingAdapter:
    """Feeds a live frame stream through a processor.

    Args:
        processor: Processor for this session. A new one is created if omitted.
        config: Configuration; defaults are used if omitted.
        on_session_id: Receives the session id once per distinct session.
        on_permission_error: Receives (tool name, patterns, tool_use_id) for
            a denied tool invocation.
        on_abort_request: Asks the transport to stop the in-flight request.
        should_show_init_message: Decides whether the init system event is
            shown. Defaults to ``config.show_init_message``.
        on_init_message_shown: Called after the init system event was shown.
    """

    def __init__(
        self,
        processor: UnifiedMessageProcessor | None = None,
        config: ProcessorConfig | None = None,
        *,
        on_session_id: Callable[[str], None] | None = None,
        on_permission_error: PermissionErrorCallback | None = None,
        on_abort_request: Callable[[], None] | None = None,
        should_show_init_message: Callable[[], bool] | None = None,
        on_init_message_shown: Callable[[], None] | None = None,
    ) -> None:
        self.config = config or (processor.config if processor else ProcessorConfig())
        self.processor = processor or UnifiedMessageProcessor(self.config)
        self._on_abort_request = on_abort_request
        self._state = StreamState.WAITING_FOR_INIT
        self._messages: list[Message] = []
        self._open_index: int | None = None
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")()

        self.context = ProcessingContext(
            add_message=self._add_message,
            update_last_message=self._update_last_message,
            on_session_id=on_session_id,
            should_show_init_message=should_show_init_message or self._default_show_init,
            on_init_message_shown=on_init_message_shown,
            on_permission_error=on_permission_error,
            on_abort_request=self.request_abort,
        )

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def messages(self) -> list[Message]:
        """Messages collected so far, in display order."""
        return list(self._messages)

    def process_line(self, line: str) -> None:
        """Decode and process one NDJSON line.

        Malformed lines are logged and skipped. After an abort every line is
        ignored until ``restart``.

        Args:
            line: One line of the stream, with or without trailing newline.
        """
        if self._state == StreamState.ABORTED:
            logger.debug("Ignoring stream line after abort")
            return

        try:
            frame = decode_frame(line)
        except FrameDecodeError as e:
            logger.bind(line=e.line).warning(f"Skipping malformed stream line: {e}")
            return

        if frame is None:
            return

        if isinstance(frame, ClaudeJsonFrame):
            self.processor.process_message(
                frame.data, self.context, ProcessingOptions(is_streaming=True)
            )
            if self._state == StreamState.WAITING_FOR_INIT and self.context.has_received_init:
                self._state = StreamState.ACTIVE
        elif isinstance(frame, ErrorFrame):
            logger.warning(f"Stream error: {frame.error}")
            self._add_message(create_error_message(frame.error or UNKNOWN_ERROR_TEXT))
        elif isinstance(frame, AbortedFrame):
            self._add_message(create_abort_message(ABORT_MESSAGE_TEXT))
            self._close_open_message()
            self._state = StreamState.ABORTED
        elif isinstance(frame, DoneFrame):
            logger.debug("Stream done")

    def feed(self, chunk: str | bytes) -> None:
        """Process every complete line in a chunk, buffering the rest.

        Byte chunks are decoded as UTF-8; a character split across chunks is
        reassembled.
        """
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            self.process_line(line)

    def flush(self) -> None:
        """Process a trailing line that had no newline."""
        remaining = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if remaining.strip():
            self.process_line(remaining)

    async def consume(self, chunks: AsyncIterable[str | bytes]) -> list[Message]:
        """Read the transport until it ends or the request is aborted.

        Args:
            chunks: Chunks as delivered by the transport.

        Returns:
            The messages collected so far.
        """
        async for chunk in chunks:
            self.feed(chunk)
            if self._state == StreamState.ABORTED:
                logger.info("Stopped reading stream after abort")
                break
        else:
            self.flush()
        return self.messages

    def request_abort(self) -> None:
        """Abort the in-flight request.

        Idempotent. The transport is asked to stop through the
        ``on_abort_request`` callback.
        """
        if self._state == StreamState.ABORTED:
            return
        self._state = StreamState.ABORTED
        self._close_open_message()
        if self._on_abort_request:
            self._on_abort_request()

    def restart(self) -> None:
        """Prepare for the next request of the same session.

        Messages and the tool-use cache are kept.
        """
        self._state = StreamState.WAITING_FOR_INIT
        self.context.reset_request_state()
        self._open_index = None
        self._buffer = ""
        self._decoder.reset()

    def _default_show_init(self) -> bool:
        return self.config.show_init_message

    def _add_message(self, message: Message) -> None:
        self._messages.append(message)
        if message is self.context.current_assistant_message:
            self._open_index = len(self._messages) - 1

    def _update_last_message(self, content: str) -> None:
        if self._open_index is None:
            logger.debug("No open assistant message to update")
            return
        self._messages[self._open_index] = self._messages[self._open_index].model_copy(
            update={"content": content}
        )

    def _close_open_message(self) -> None:
        self.context.close_assistant_message()
        self._open_index = None
