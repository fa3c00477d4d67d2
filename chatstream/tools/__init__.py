"""Tool invocation helpers: permission patterns and result correlation."""

from chatstream.tools.correlator import CachedToolUse, ToolUseCorrelator
from chatstream.tools.patterns import (
    ToolInfo,
    extract_tool_info,
    format_tool_arguments,
    generate_tool_pattern,
    generate_tool_patterns,
)


__all__ = [
    "CachedToolUse",
    "ToolInfo",
    "ToolUseCorrelator",
    "extract_tool_info",
    "format_tool_arguments",
    "generate_tool_pattern",
    "generate_tool_patterns",
]
