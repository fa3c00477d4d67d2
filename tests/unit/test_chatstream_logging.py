# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Tests for chatstream.logging module."""
import re
import sys
from collections.abc import Iterator
from io import StringIO
from types import SimpleNamespace
from typing import Any
from unittest import mock

import pytest
from loguru import logger

from chatstream.logging import COLORS, LEVEL_COLORS, _log_format, configure_logging


def _strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def _record(level: str = "INFO", extra: dict[str, Any] | None = None, exception: Any = None) -> Any:
    return {"level": SimpleNamespace(name=level), "extra": extra or {}, "exception": exception}


@pytest.fixture
def restore_logger() -> Iterator[None]:
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestLogFormat:
    """Tests for _log_format."""

    def test_level_colour(self) -> None:
        fmt = _log_format(_record("WARNING"))

        assert f"<fg {LEVEL_COLORS['WARNING']}>{{level: <8}}</>" in fmt
        assert fmt.endswith("{message}</>\n")

    def test_unknown_level_uses_default_colour(self) -> None:
        assert f"<fg {COLORS['text']}>{{level: <8}}</>" in _log_format(_record("CUSTOM"))

    def test_extra_fields_appended(self) -> None:
        fmt = _log_format(_record(extra={"tool_use_id": "toolu_1"}))

        assert "tool_use_id='toolu_1'" in fmt

    def test_extra_fields_escaped(self) -> None:
        fmt = _log_format(_record(extra={"path": "{a}<b>"}))

        assert "path='{{a}}\\<b>'" in fmt

    def test_raw_line_on_own_row(self) -> None:
        fmt = _log_format(_record(extra={"line": '{"type": "<b>"}', "index": 3}))

        assert "index=3" in fmt
        assert "line=" not in fmt
        assert '\n    <fg ' in fmt
        assert '{{"type": "\\<b>"}}' in fmt

    def test_exception_placeholder(self) -> None:
        assert _log_format(_record(exception=object())).endswith("{exception}\n")


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.mark.usefixtures("restore_logger")
    def test_writes_to_stderr_at_level(self) -> None:
        with mock.patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            configure_logging("warning")
            logger.info("hidden message")
            logger.bind(line='{"a": 1}').warning("Skipping malformed stream line")

            output = _strip_ansi(mock_stderr.getvalue())

        assert "hidden message" not in output
        assert "WARNING" in output
        assert "Skipping malformed stream line" in output
        assert '\n    {"a": 1}\n' in output
