# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Core utility functions for chatstream."""
import math
import time
from datetime import UTC, datetime, timedelta


_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def now_ms() -> int:
    """Return the current time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def to_epoch_ms(value: str | int | float | datetime) -> int:
    """Convert a persisted timestamp into milliseconds since the epoch.

    Accepts ISO-8601 strings (a trailing ``Z`` is understood), numeric
    strings, epoch numbers in milliseconds and datetimes. Naive datetimes
    are treated as UTC.

    Args:
        value: Timestamp in any of the supported forms.

    Returns:
        Milliseconds since the epoch.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp, or is
            an infinite or NaN number.

    Example:
        >>> to_epoch_ms("1970-01-01T00:00:01.500Z")
        1500
        >>> to_epoch_ms(1500)
        1500
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")

    if isinstance(value, int | float):
        return _number_to_ms(value)

    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValueError("Empty timestamp")
        try:
            number = float(stripped)
        except ValueError:
            number = None
        if number is not None:
            return _number_to_ms(number)
        if stripped.endswith(("Z", "z")):
            stripped = stripped[:-1] + "+00:00"
        value = datetime.fromisoformat(stripped)

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - _EPOCH) // timedelta(milliseconds=1)


def _number_to_ms(value: int | float) -> int:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"Not a finite timestamp: {value!r}")
    return int(value)
