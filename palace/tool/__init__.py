"""Tool system for palace: the capabilities the model can invoke."""

from palace.core.identifiers import ToolNameError
from palace.tool.base import BaseTool, FunctionTool, Tool
from palace.tool.errors import ToolArgumentError, ToolError
from palace.tool.registry import ToolRegistry, error_payload

__all__ = [
    "BaseTool",
    "FunctionTool",
    "Tool",
    "ToolArgumentError",
    "ToolError",
    "ToolNameError",
    "ToolRegistry",
    "error_payload",
]
