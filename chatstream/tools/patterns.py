# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Permission patterns derived from tool invocations.

When the assistant is denied a tool, the UI offers to allow it. The offer is
phrased as permission patterns: ``Write`` for a whole tool, or
``Bash(git log:*)`` for one shell command. A compound shell line such as
``cd src && npm test | tee log`` yields one pattern per command that needs a
grant.
"""
import re
from typing import Any, NamedTuple

from chatstream.core.constants import (
    ARGUMENT_DISPLAY_MAX_LENGTH,
    BASH_BUILTINS,
    COMMAND_SEPARATORS,
    DEFAULT_TOOL_NAME,
    DISPLAY_ARGUMENT_KEYS,
    MULTI_WORD_COMMANDS,
    WILDCARD_COMMAND,
    ToolName,
)


_SEPARATOR_PATTERN = re.compile(
    r"\s*(?:" + "|".join(re.escape(sep) for sep in COMMAND_SEPARATORS) + r")\s*"
)


class ToolInfo(NamedTuple):
    """Tool name plus the commands that need a permission grant."""

    tool_name: str
    commands: list[str]


def split_compound_command(command_string: str) -> list[str]:
    """Split a shell line on ``&&``, ``||``, ``;`` and ``|``.

    Args:
        command_string: Full shell command line.

    Returns:
        Non-blank command segments, in order.
    """
    return [part for part in _SEPARATOR_PATTERN.split(command_string) if part.strip()]


def extract_single_command(command_part: str) -> str:
    """Return the command name of one segment.

    Known multi-word tools keep their subcommand (``git log``).

    Args:
        command_part: One segment of a compound command, already trimmed.

    Returns:
        The command name, or an empty string for a blank segment.
    """
    tokens = command_part.split()
    if not tokens:
        return ""
    if len(tokens) >= 2 and tokens[0] in MULTI_WORD_COMMANDS:
        return " ".join(tokens[:2])
    return tokens[0]


def extract_bash_commands(command_string: str) -> list[str]:
    """Extract the distinct commands of a shell line that need a grant.

    Builtins are filtered out. If that leaves nothing (``cd /tmp && pwd``),
    the unfiltered list is used so the denial still has something to offer.

    Args:
        command_string: Full shell command line.

    Returns:
        Unique commands in first-seen order. Empty if the line has none.
    """
    raw_commands = [
        command
        for command in (extract_single_command(part.strip()) for part in split_compound_command(command_string))
        if command
    ]
    filtered = [command for command in raw_commands if command not in BASH_BUILTINS]
    final_commands = filtered or raw_commands
    return list(dict.fromkeys(final_commands))


def extract_tool_info(tool_name: str | None, tool_input: dict[str, Any] | None = None) -> ToolInfo:
    """Work out which commands a tool invocation covers.

    Args:
        tool_name: Name of the invoked tool; None when it could not be resolved.
        tool_input: Invocation arguments.

    Returns:
        ToolInfo with the resolved tool name and its commands. Non-shell tools
        get the wildcard command.
    """
    resolved_name = tool_name or DEFAULT_TOOL_NAME
    command = (tool_input or {}).get("command")

    if resolved_name == ToolName.BASH and isinstance(command, str):
        commands = extract_bash_commands(command)
    elif resolved_name == ToolName.EXIT_PLAN_MODE:
        commands = [ToolName.EXIT_PLAN_MODE.value]
    else:
        commands = [WILDCARD_COMMAND]

    return ToolInfo(tool_name=resolved_name, commands=commands)


def generate_tool_pattern(tool_name: str, command: str) -> str:
    """Build the permission pattern for a single command."""
    if tool_name == ToolName.BASH and command != WILDCARD_COMMAND:
        return f"{tool_name}({command}:*)"
    return tool_name


def generate_tool_patterns(tool_name: str, commands: list[str]) -> list[str]:
    """Build one permission pattern per command.

    Args:
        tool_name: Resolved tool name.
        commands: Commands from extract_tool_info.

    Returns:
        Patterns in command order. Non-shell tools always produce
        ``[tool_name]``; a shell tool with no commands produces ``[]``.
    """
    if tool_name != ToolName.BASH:
        return [tool_name]
    return [generate_tool_pattern(tool_name, command) for command in commands]


def format_tool_arguments(tool_input: dict[str, Any] | None) -> str:
    """Format tool arguments for a one-line display.

    Well-known arguments (path, file_path, command, pattern, url) are shown
    directly. Otherwise the first argument is shown if it is a short string,
    else just the argument count.

    Args:
        tool_input: Invocation arguments.

    Returns:
        Display suffix such as ``"(/src/app.py)"`` or ``"(3 args)"``, or an
        empty string when there are no arguments.
    """
    if not tool_input:
        return ""

    for key in DISPLAY_ARGUMENT_KEYS:
        value = tool_input.get(key)
        if value:
            return f"({value})"

    first_value = next(iter(tool_input.values()))
    if isinstance(first_value, str) and len(first_value) < ARGUMENT_DISPLAY_MAX_LENGTH:
        return f"({first_value})"

    count = len(tool_input)
    return f"({count} {'arg' if count == 1 else 'args'})"
