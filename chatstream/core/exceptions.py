# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Custom exceptions for chatstream."""


class ChatStreamError(Exception):
    """Base exception for all chatstream errors."""

    pass


class ConfigurationError(ChatStreamError):
    """Raised when required configuration is missing or invalid."""

    pass


class FrameDecodeError(ChatStreamError):
    """Raised when a stream line is not a valid wire frame.

    Attributes:
        line: The raw line that failed to decode (truncated for display).
    """

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message)
        self.line = line[:200]


class HistoryLoadError(ChatStreamError):
    """Raised when a persisted conversation cannot be loaded."""

    pass
