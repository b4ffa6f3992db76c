"""Tool registry: the catalogue of tools offered to the model.

The registry maps names to Tool instances, renders them as OpenAI function
definitions for each request, and executes calls by name. Execution never
raises: an unknown tool or a failing tool produces a JSON error payload that
is handed back to the model like any other tool output, so the model can
correct itself on the next turn.

Example:
    registry = ToolRegistry()
    registry.register(EchoTool())

    schemas = registry.to_schemas()
    output = await registry.execute("echo", {"text": "hi"})
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from typing import Any

from palace.core.identifiers import validate_tool_name
from palace.tool.base import Tool

logger = logging.getLogger(__name__)


def error_payload(message: str) -> str:
    """Serialize an error message the way tool failures are reported to the model."""
    return json.dumps({"error": message})


class ToolRegistry:
    """Registry of available tools.

    Holds no per-call state, so one registry can serve any number of
    concurrent agent runs as long as tools are registered up front.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool, replacing any existing tool with the same name.

        Raises:
            ToolNameError: If the name is not a valid function name
                (1-64 chars, letter/underscore first, then alphanumeric/_/-).
        """
        validate_tool_name(tool.name)
        if tool.name in self._tools:
            logger.debug("Replacing registered tool: %s", tool.name)
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> bool:
        """Remove a tool. Returns True if it was registered."""
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    @property
    def names(self) -> list[str]:
        """Registered tool names, in registration order."""
        return list(self._tools)

    def clear(self) -> None:
        self._tools.clear()

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def to_schemas(self) -> list[dict[str, Any]]:
        """Tool definitions in OpenAI function format.

        Returns a fresh list on every call; callers may mutate it freely.
        """
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in self._tools.values()
        ]

    async def execute(self, name: str, args: dict[str, Any]) -> str:
        """Execute a tool by name.

        Returns:
            The tool's output, or a JSON `{"error": ...}` string if the tool
            is unknown or raised.
        """
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Model requested unknown tool: %s", name)
            return error_payload(f"Unknown tool: {name}")

        try:
            return await tool.execute(args)
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e, exc_info=logger.isEnabledFor(logging.DEBUG))
            return error_payload(str(e))
