# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Shared fixtures and helpers for all tests.

This module provides factory fixtures for building raw protocol events,
wire frames and processing contexts used throughout the test suite.
"""
import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import yaml
from loguru import logger
from typer.testing import CliRunner

from chatstream.messages.models import Message
from chatstream.processor.context import ProcessingContext


class AsyncIteratorMock:
    """Mock async iterator for testing async generators.

    Usage:
        mock_stream = AsyncIteratorMock(["chunk-a", "chunk-b"])
        async for item in mock_stream:
            print(item)
    """

    def __init__(self, items: list[Any]) -> None:
        self.items = items
        self.index = 0

    def __aiter__(self) -> "AsyncIteratorMock":
        return self

    async def __anext__(self) -> Any:
        if self.index >= len(self.items):
            raise StopAsyncIteration
        item = self.items[self.index]
        self.index += 1
        return item


class EventFactory:
    """Builders for raw protocol events as they appear on the wire.

    Every builder returns a plain dict, the same shape the backend sends.
    Timestamps are ISO strings a second apart unless given explicitly.
    """

    def __init__(self) -> None:
        self._second = 0

    def _next_timestamp(self) -> str:
        self._second += 1
        return f"2025-01-01T00:00:{self._second:02d}.000Z"

    def _stamp(self, event: dict[str, Any], timestamp: Any) -> dict[str, Any]:
        if timestamp is not False:
            event["timestamp"] = timestamp if timestamp is not None else self._next_timestamp()
        return event

    @staticmethod
    def text(text: str) -> dict[str, Any]:
        return {"type": "text", "text": text}

    @staticmethod
    def tool_use(tool_use_id: str, name: str, tool_input: dict[str, Any] | None = None) -> dict[str, Any]:
        return {"type": "tool_use", "id": tool_use_id, "name": name, "input": tool_input or {}}

    @staticmethod
    def tool_result(tool_use_id: str, content: Any = "ok", is_error: bool = False) -> dict[str, Any]:
        item: dict[str, Any] = {"type": "tool_result", "tool_use_id": tool_use_id, "content": content}
        if is_error:
            item["is_error"] = True
        return item

    @staticmethod
    def thinking(thinking: str) -> dict[str, Any]:
        return {"type": "thinking", "thinking": thinking}

    def system_init(
        self,
        session_id: str = "session-1",
        timestamp: Any = None,
        **fields: Any,
    ) -> dict[str, Any]:
        event = {
            "type": "system",
            "subtype": "init",
            "session_id": session_id,
            "model": "claude-sonnet",
            "cwd": "/work",
            "tools": ["Bash", "Read"],
            **fields,
        }
        return self._stamp(event, timestamp)

    def assistant(
        self,
        *items: dict[str, Any],
        session_id: str | None = "session-1",
        message_id: str | None = None,
        timestamp: Any = None,
    ) -> dict[str, Any]:
        message: dict[str, Any] = {"role": "assistant", "content": list(items)}
        if message_id is not None:
            message["id"] = message_id
        event: dict[str, Any] = {"type": "assistant", "message": message}
        if session_id is not None:
            event["session_id"] = session_id
        return self._stamp(event, timestamp)

    def user(self, *items: dict[str, Any] | str, timestamp: Any = None) -> dict[str, Any]:
        content: Any = items[0] if len(items) == 1 and isinstance(items[0], str) else list(items)
        event = {"type": "user", "message": {"role": "user", "content": content}}
        return self._stamp(event, timestamp)

    def result(self, subtype: str = "success", timestamp: Any = None, **fields: Any) -> dict[str, Any]:
        event = {
            "type": "result",
            "subtype": subtype,
            "duration_ms": 1200,
            "total_cost_usd": 0.0123,
            **fields,
        }
        return self._stamp(event, timestamp)


def frame_line(event: dict[str, Any]) -> str:
    """Wrap an event in a claude_json frame, newline terminated."""
    return json.dumps({"type": "claude_json", "data": event}) + "\n"


@pytest.fixture
def events() -> EventFactory:
    """Fresh event builder with its own timestamp sequence."""
    return EventFactory()


@pytest.fixture
def frame() -> Callable[[dict[str, Any]], str]:
    """Factory fixture wrapping an event in a claude_json NDJSON line."""
    return frame_line


@pytest.fixture
def async_iterator_mock_factory() -> Callable[[list[Any]], AsyncIteratorMock]:
    """Factory fixture for creating AsyncIteratorMock instances."""
    def _create(items: list[Any]) -> AsyncIteratorMock:
        return AsyncIteratorMock(items)
    return _create


@pytest.fixture
def context_factory() -> Callable[..., tuple[ProcessingContext, list[Message]]]:
    """Factory fixture for a ProcessingContext that records added messages.

    Keyword arguments are passed to ProcessingContext as hooks.
    """
    def _create(**hooks: Any) -> tuple[ProcessingContext, list[Message]]:
        added: list[Message] = []
        return ProcessingContext(add_message=added.append, **hooks), added
    return _create


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Capture loguru output as "LEVEL message" strings."""
    captured: list[str] = []
    handler_id = logger.add(
        lambda message: captured.append(
            f"{message.record['level'].name} {message.record['message']}"
        ),
        level="DEBUG",
    )
    yield captured
    logger.remove(handler_id)


@pytest.fixture
def config_file_factory(tmp_path: Path) -> Callable[[Any], Path]:
    """Factory fixture writing a YAML configuration file."""
    def _create(config_data: Any) -> Path:
        config_path = tmp_path / "chatstream.yaml"
        with open(config_path, "w") as f:
            yaml.dump(config_data, f)
        return config_path
    return _create


@pytest.fixture
def cli_runner() -> CliRunner:
    """Typer CLI test runner for command testing."""
    return CliRunner()
