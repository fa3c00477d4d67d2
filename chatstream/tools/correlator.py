# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Correlation of tool results with the tool invocations that produced them."""
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field


class CachedToolUse(BaseModel):
    """Name and arguments of an observed tool invocation.

    Attributes:
        name: Tool name.
        input: Invocation arguments.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolUseCorrelator:
    """Cache of tool invocations keyed by invocation id.

    A tool_result only carries the id of its tool_use, so the name and
    arguments have to be remembered from the earlier event. Entries are read,
    never removed, on lookup. Each processor owns exactly one correlator;
    ``clear`` is the only way entries go away.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CachedToolUse] = {}

    def record(self, tool_use_id: str, name: str, tool_input: dict[str, Any] | None = None) -> None:
        """Remember a tool invocation.

        Args:
            tool_use_id: Invocation id from the tool_use item.
            name: Tool name.
            tool_input: Invocation arguments.
        """
        if tool_use_id in self._entries:
            logger.debug("Replacing cached tool use", tool_use_id=tool_use_id, tool_name=name)
        self._entries[tool_use_id] = CachedToolUse(name=name, input=tool_input or {})

    def lookup(self, tool_use_id: str | None) -> CachedToolUse | None:
        """Return the cached invocation for an id, if it was observed."""
        if not tool_use_id:
            return None
        return self._entries.get(tool_use_id)

    def resolve_name(self, tool_use_id: str | None, default: str) -> str:
        """Return the tool name for an id, or ``default`` when unmatched."""
        cached = self.lookup(tool_use_id)
        return cached.name if cached else default

    def clear(self) -> None:
        """Drop every cached invocation."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tool_use_id: object) -> bool:
        return tool_use_id in self._entries
