# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Tests for the live-stream adapter."""
import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from chatstream.adapters.streaming import (
    FileChunkReader,
    StreamingAdapter,
    StreamState,
    read_chunks,
)
from chatstream.config import ProcessorConfig
from tests.conftest import AsyncIteratorMock, EventFactory


Frame = Callable[[dict[str, Any]], str]


class TestFrames:
    """Handling of each wire frame type."""

    def test_claude_json_frames(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()

        adapter.feed(frame(events.system_init()) + frame(events.assistant(events.text("Hi"))))

        assert [m.type for m in adapter.messages] == ["system", "chat"]
        assert adapter.messages[1].content == "Hi"

    def test_error_frame_keeps_session_going(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()

        adapter.process_line(frame(events.system_init()))
        adapter.process_line(json.dumps({"type": "error", "error": "Backend unavailable"}))
        adapter.process_line(frame(events.assistant(events.text("still here"))))

        assert [m.type for m in adapter.messages] == ["system", "error", "chat"]
        assert adapter.messages[1].message == "Backend unavailable"
        assert adapter.messages[1].subtype == "stream_error"
        assert adapter.state == StreamState.ACTIVE

    def test_error_frame_without_text(self) -> None:
        adapter = StreamingAdapter()

        adapter.process_line('{"type": "error"}')

        assert adapter.messages[0].message == "Unknown error"

    def test_aborted_frame(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()

        adapter.process_line(frame(events.assistant(events.text("partial\n"))))
        adapter.process_line('{"type": "aborted"}')
        adapter.process_line(frame(events.assistant(events.text("ignored"))))

        assert [m.type for m in adapter.messages] == ["chat", "abort"]
        assert adapter.messages[0].content == "partial"
        assert adapter.messages[1].message == "Operation was aborted by user"
        assert adapter.state == StreamState.ABORTED
        assert adapter.context.current_assistant_message is None

    def test_done_frame_adds_nothing(self) -> None:
        adapter = StreamingAdapter()

        adapter.process_line('{"type": "done"}')

        assert adapter.messages == []

    def test_malformed_line_is_skipped(
        self, events: EventFactory, frame: Frame, log_messages: list[str]
    ) -> None:
        adapter = StreamingAdapter()

        adapter.feed("{broken\n" + '{"type": "mystery"}\n' + frame(events.user("ok")))

        assert [m.content for m in adapter.messages] == ["ok"]
        assert sum(line.startswith("WARNING Skipping malformed stream line") for line in log_messages) == 2

    @pytest.mark.parametrize("timestamp", ["1e400", float("inf")])
    def test_non_finite_timestamp_keeps_stream_going(
        self, events: EventFactory, frame: Frame, timestamp: object
    ) -> None:
        adapter = StreamingAdapter()

        adapter.feed(frame(events.user("first", timestamp=timestamp)) + frame(events.user("second", timestamp=7)))

        assert [m.content for m in adapter.messages] == ["first", "second"]
        assert adapter.messages[1].timestamp == 7


class TestStateMachine:
    """State transitions of one request."""

    def test_init_activates(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()
        assert adapter.state == StreamState.WAITING_FOR_INIT

        adapter.process_line(frame(events.system_init()))
        adapter.process_line(frame(events.result()))

        assert adapter.state == StreamState.ACTIVE

    def test_hidden_init_still_activates(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter(config=ProcessorConfig(show_init_message=False))

        adapter.process_line(frame(events.system_init()))

        assert adapter.messages == []
        assert adapter.state == StreamState.ACTIVE

    def test_init_gate_callback(self, events: EventFactory, frame: Frame) -> None:
        shown = MagicMock()
        adapter = StreamingAdapter(
            should_show_init_message=lambda: True, on_init_message_shown=shown
        )

        adapter.process_line(frame(events.system_init()))

        shown.assert_called_once()

    def test_request_abort_is_idempotent(self) -> None:
        on_abort_request = MagicMock()
        adapter = StreamingAdapter(on_abort_request=on_abort_request)

        adapter.request_abort()
        adapter.request_abort()

        assert adapter.state == StreamState.ABORTED
        on_abort_request.assert_called_once()

    def test_restart_keeps_cache_and_messages(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()
        adapter.process_line(frame(events.system_init()))
        adapter.process_line(
            frame(events.assistant(events.tool_use("toolu_1", "Glob", {"pattern": "*.py"})))
        )
        adapter.process_line('{"type": "aborted"}')

        adapter.restart()
        adapter.process_line(frame(events.user(events.tool_result("toolu_1", "a.py"))))

        assert adapter.state == StreamState.WAITING_FOR_INIT
        assert adapter.context.has_received_init is False
        assert [m.type for m in adapter.messages] == ["system", "tool", "abort", "tool_result"]
        assert adapter.messages[-1].tool_name == "Glob"


class TestOpenAssistantMessage:
    """Updates of the growing assistant message."""

    def test_update_targets_open_message_not_last(self, events: EventFactory, frame: Frame) -> None:
        """Text after a tool message still extends the earlier chat message."""
        adapter = StreamingAdapter()

        adapter.process_line(frame(events.assistant(events.text("Reading "))))
        adapter.process_line(
            frame(events.assistant(events.tool_use("toolu_1", "Read", {"file_path": "/a"})))
        )
        adapter.process_line(frame(events.assistant(events.text("now."))))

        messages = adapter.messages
        assert [m.type for m in messages] == ["chat", "tool"]
        assert messages[0].content == "Reading now."
        assert messages[1].content == "Read(/a)"

    def test_result_starts_new_message(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()

        adapter.process_line(frame(events.assistant(events.text("first"))))
        adapter.process_line(frame(events.result()))
        adapter.process_line(frame(events.assistant(events.text("second"))))

        contents = [m.content for m in adapter.messages if m.type == "chat"]
        assert contents == ["first", "second"]

    def test_messages_returns_copy(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()
        adapter.process_line(frame(events.user("x")))

        adapter.messages.clear()

        assert len(adapter.messages) == 1


class TestCallbacks:
    """Session id and permission callbacks."""

    def test_session_id(self, events: EventFactory, frame: Frame) -> None:
        on_session_id = MagicMock()
        adapter = StreamingAdapter(on_session_id=on_session_id)

        adapter.process_line(frame(events.system_init(session_id="abc")))
        adapter.process_line(frame(events.assistant(events.text("a"), session_id="abc")))
        adapter.process_line(frame(events.assistant(events.text("b"), session_id="abc")))

        on_session_id.assert_called_once_with("abc")

    def test_permission_denial_aborts(self, events: EventFactory, frame: Frame) -> None:
        on_permission_error = MagicMock()
        on_abort_request = MagicMock()
        adapter = StreamingAdapter(
            on_permission_error=on_permission_error, on_abort_request=on_abort_request
        )

        adapter.process_line(frame(events.system_init()))
        adapter.process_line(
            frame(events.assistant(events.tool_use("toolu_1", "Bash", {"command": "rm -rf build"})))
        )
        adapter.process_line(
            frame(events.user(events.tool_result("toolu_1", "This command requires approval", is_error=True)))
        )
        adapter.process_line(frame(events.assistant(events.text("ignored"))))

        assert adapter.state == StreamState.ABORTED
        on_abort_request.assert_called_once()
        on_permission_error.assert_called_once_with("Bash", ["Bash(rm:*)"], "toolu_1")
        assert [m.type for m in adapter.messages] == ["system", "tool"]


class TestChunking:
    """Line reassembly across chunks."""

    def test_lines_split_across_chunks(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()
        line = json.dumps({"type": "claude_json", "data": events.user("héllo wörld")}, ensure_ascii=False)
        data = (line + "\n").encode()

        for start in range(0, len(data), 3):
            adapter.feed(data[start:start + 3])

        assert adapter.messages[0].content == "héllo wörld"

    def test_flush_processes_trailing_line(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()

        adapter.feed(frame(events.user("no newline")).rstrip("\n"))
        assert adapter.messages == []

        adapter.flush()

        assert adapter.messages[0].content == "no newline"

    def test_flush_with_empty_buffer(self) -> None:
        adapter = StreamingAdapter()

        adapter.flush()

        assert adapter.messages == []


class TestConsume:
    """The async read loop."""

    async def test_consume_reads_until_end(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()
        text = frame(events.system_init()) + frame(events.user("done")).rstrip("\n")
        chunks = AsyncIteratorMock([text[:10], text[10:25], text[25:]])

        messages = await adapter.consume(chunks)

        assert [m.type for m in messages] == ["system", "chat"]

    async def test_consume_stops_after_abort(self, events: EventFactory, frame: Frame) -> None:
        adapter = StreamingAdapter()
        chunks = AsyncIteratorMock(
            [
                frame(events.user("before")),
                '{"type": "aborted"}\n',
                frame(events.user("after")),
            ]
        )

        messages = await adapter.consume(chunks)

        assert [m.type for m in messages] == ["chat", "abort"]
        assert chunks.index == 2

    async def test_read_chunks_from_stream_reader(self, events: EventFactory, frame: Frame) -> None:
        reader = asyncio.StreamReader()
        reader.feed_data((frame(events.user("one")) + frame(events.user("two"))).encode())
        reader.feed_eof()
        adapter = StreamingAdapter()

        chunks = [chunk async for chunk in read_chunks(reader, chunk_size=16)]
        for chunk in chunks:
            adapter.feed(chunk)

        assert all(0 < len(chunk) <= 16 for chunk in chunks)
        assert [m.content for m in adapter.messages] == ["one", "two"]

    async def test_consume_file_reader(self, events: EventFactory, frame: Frame, tmp_path: Path) -> None:
        path = tmp_path / "frames.ndjson"
        path.write_text(frame(events.system_init()) + frame(events.user("from file")), encoding="utf-8")
        adapter = StreamingAdapter()

        with open(path, "rb") as f:
            messages = await adapter.consume(read_chunks(FileChunkReader(f), chunk_size=8))

        assert [m.type for m in messages] == ["system", "chat"]
        assert messages[1].content == "from file"
