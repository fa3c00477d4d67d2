# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Constants used across the chatstream codebase."""

from enum import StrEnum


class ToolName(StrEnum):
    """Tool names that get special treatment in the message pipeline."""

    BASH = "Bash"
    TODO_WRITE = "TodoWrite"
    EXIT_PLAN_MODE = "ExitPlanMode"


# Placeholder names for tools that cannot be resolved
DEFAULT_TOOL_NAME = "Unknown"
DEFAULT_TOOL_RESULT_NAME = "Tool"

# Command token that stands for "any invocation of this tool"
WILDCARD_COMMAND = "*"

# Commands whose subcommand is part of the permission scope (e.g. "git log")
MULTI_WORD_COMMANDS: tuple[str, ...] = ("cargo", "git", "npm", "yarn", "docker")

# Compound-command separators, longest first so "&&" wins over "&"
COMMAND_SEPARATORS: tuple[str, ...] = ("&&", "||", ";", "|")

# Shell builtins that never need a permission grant
BASH_BUILTINS: frozenset[str] = frozenset({
    "cd",
    "pwd",
    "echo",
    "export",
    "alias",
    "history",
    "jobs",
    "bg",
    "fg",
    "kill",
    "wait",
    "source",
    ".",
    "eval",
    "exec",
    "exit",
    "return",
    "shift",
    "break",
    "continue",
    "test",
    "[",
    "type",
    "which",
    "command",
    "builtin",
    "enable",
    "hash",
    "help",
    "local",
    "logout",
    "mapfile",
    "printf",
    "read",
    "readarray",
    "readonly",
    "set",
    "shopt",
    "suspend",
    "times",
    "trap",
    "ulimit",
    "umask",
    "unalias",
    "unset",
})

# Marker the assistant backend puts in tool errors raised by the tool itself
# (bad arguments, missing files). These are shown as ordinary results.
TOOL_USE_ERROR_MARKER = "tool_use_error"

SUMMARY_MAX_LENGTH = 50
ARGUMENT_DISPLAY_MAX_LENGTH = 50

# Keys checked, in order, when building a short argument display
DISPLAY_ARGUMENT_KEYS: tuple[str, ...] = ("path", "file_path", "command", "pattern", "url")

ABORT_MESSAGE_TEXT = "Operation was aborted by user"
UNKNOWN_ERROR_TEXT = "Unknown error"
