"""Tool name validation.

OpenAI-compatible APIs reject function names outside a narrow character set,
so names are checked once at registration instead of failing on every request.
"""

from __future__ import annotations

import re

MAX_TOOL_NAME_LENGTH: int = 64

# Alphanumeric, underscore, hyphen; must start with a letter or underscore
VALID_TOOL_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_-]{0,63}$")


class ToolNameError(ValueError):
    """Raised when a tool name is invalid."""

    pass


def validate_tool_name(name: str) -> None:
    """Validate that a tool name conforms to the canonical format.

    Raises:
        ToolNameError: If the name is invalid, with a descriptive message.

    Examples:
        >>> validate_tool_name("read_note")  # OK
        >>> validate_tool_name("")  # Raises ToolNameError
        >>> validate_tool_name("123_start")  # Raises ToolNameError (starts with digit)
    """
    if not isinstance(name, str):
        raise ToolNameError(f"Tool name must be a string, got {type(name).__name__}")

    if not name:
        raise ToolNameError("Tool name cannot be empty")

    if len(name) > MAX_TOOL_NAME_LENGTH:
        raise ToolNameError(
            f"Tool name '{name[:20]}...' exceeds maximum length of "
            f"{MAX_TOOL_NAME_LENGTH} characters"
        )

    if not VALID_TOOL_NAME_PATTERN.match(name):
        if name[0].isdigit():
            raise ToolNameError(f"Tool name '{name}' cannot start with a digit")
        if name[0] == "-":
            raise ToolNameError(f"Tool name '{name}' cannot start with a hyphen")
        raise ToolNameError(
            f"Tool name '{name}' contains invalid characters. "
            "Must be 1-64 chars, start with letter/underscore, "
            "contain only alphanumeric/underscore/hyphen"
        )


def is_valid_tool_name(name: str) -> bool:
    """Check if a tool name is valid without raising an exception."""
    try:
        validate_tool_name(name)
        return True
    except ToolNameError:
        return False
