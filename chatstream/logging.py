# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Logging configuration for the chatstream command line tool.

Records are written to stderr as ``time level module message`` followed by
any structured fields. A raw stream line bound as ``line`` (see
``StreamingAdapter.process_line``) is printed on its own indented row so a
malformed frame can be read in full.
"""

import sys
from typing import TYPE_CHECKING

from loguru import logger


if TYPE_CHECKING:
    from loguru import Record


COLORS = {
    "time": "#7D8A96",
    "name": "#7D8A96",
    "text": "#ECEAE3",
    "fields": "#5C9ECF",
    "raw": "#4F5A63",
}

LEVEL_COLORS = {
    "TRACE": "#4F5A63",
    "DEBUG": "#7D8A96",
    "INFO": "#5C9ECF",
    "SUCCESS": "#6BA36F",
    "WARNING": "#E5A84B",
    "ERROR": "#C2483A",
    "CRITICAL": "#C2483A",
}

RAW_LINE_FIELD = "line"


def _escape(text: str) -> str:
    """Make payload text inert inside a loguru format string."""
    return text.replace("{", "{{").replace("}", "}}").replace("<", r"\<")


def _log_format(record: "Record") -> str:
    """Build the loguru format string for one record.

    Args:
        record: Loguru record containing log metadata, message, and level.

    Returns:
        Format string with loguru colour tags.
    """
    level_color = LEVEL_COLORS.get(record["level"].name, COLORS["text"])
    fmt = (
        f"<fg {COLORS['time']}>{{time:HH:mm:ss.SSS}}</> "
        f"<fg {level_color}>{{level: <8}}</> "
        f"<fg {COLORS['name']}>{{name}}</> "
        f"<fg {COLORS['text']}>{{message}}</>"
    )

    fields = dict(record["extra"])
    raw_line = fields.pop(RAW_LINE_FIELD, None)
    if fields:
        rendered = " ".join(f"{key}={value!r}" for key, value in fields.items())
        fmt += f" <fg {COLORS['fields']}>{_escape(rendered)}</>"
    if raw_line is not None:
        fmt += f"\n    <fg {COLORS['raw']}>{_escape(str(raw_line))}</>"

    fmt += "\n"
    if record["exception"]:
        fmt += "{exception}\n"
    return fmt


def configure_logging(level: str = "INFO") -> None:
    """Send chatstream logs to stderr at the given minimum level.

    Args:
        level: Minimum log level to display (e.g., "DEBUG", "INFO", "WARNING").
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_log_format, colorize=True)
