# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Classification of failed tool results."""
from chatstream.core.constants import TOOL_USE_ERROR_MARKER
from chatstream.protocol.events import ToolResultItem


def is_tool_use_error(content: str) -> bool:
    """Check whether error output comes from the tool itself.

    Such errors (bad arguments, missing files) are shown like any other
    result instead of prompting for permission.
    """
    return TOOL_USE_ERROR_MARKER in content


def is_permission_error(item: ToolResultItem) -> bool:
    """Check whether a tool result is a permission denial.

    Args:
        item: The tool_result content item.

    Returns:
        True for failed results that are not tool execution errors.
    """
    return bool(item.is_error) and not is_tool_use_error(item.content_text())
