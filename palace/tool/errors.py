"""Tool-related error classes for palace."""

from palace.core.errors import PalaceError


class ToolError(PalaceError):
    """Base class for errors raised by tools.

    The registry turns any exception a tool raises into an error payload for
    the model; subclassing ToolError is only needed to be caught selectively.
    """


class ToolArgumentError(ToolError):
    """Raised when tool arguments do not match the tool's parameter schema."""

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(reason)
