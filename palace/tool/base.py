"""Base tool interface for palace.

This module defines the Tool protocol that the registry and agent loop rely
on, plus two conveniences for implementing it:

- BaseTool: stores name/description/parameters, validates arguments against
  the JSON Schema and dispatches to run(**kwargs)
- FunctionTool: wraps a plain sync or async callable

A tool always returns a string. That string is sent back to the model
verbatim as the content of a tool message, so structured results should be
serialized (usually as JSON) by the tool itself.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

import jsonschema

from palace.tool.errors import ToolArgumentError

logger = logging.getLogger(__name__)


@runtime_checkable
class Tool(Protocol):
    """Protocol for all tools.

    Example:
        >>> class ClockTool:
        ...     name = "clock"
        ...     description = "Return the current UTC time"
        ...     parameters = {"type": "object", "properties": {}}
        ...
        ...     async def execute(self, args: dict[str, Any]) -> str:
        ...         return datetime.now(UTC).isoformat()
    """

    @property
    def name(self) -> str:
        """Unique tool name (used as the function name in requests)."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description shown to the model."""
        ...

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON Schema describing the argument object."""
        ...

    async def execute(self, args: dict[str, Any]) -> str:
        """Run the tool with a decoded argument object and return its output."""
        ...


def _format_validation_error(error: jsonschema.ValidationError, tool_name: str) -> str:
    """Format a jsonschema ValidationError into a message the model can act on."""
    path = ".".join(str(p) for p in error.absolute_path) if error.absolute_path else ""
    validator = error.validator

    if validator == "required":
        # error.message is like "'path' is a required property"
        return f"{tool_name}: {error.message}"

    if validator == "type" and path:
        return f"{tool_name}: Parameter '{path}' has wrong type - {error.message}"

    if validator == "enum":
        if path:
            return f"{tool_name}: Parameter '{path}' must be one of {error.validator_value}"
        return f"{tool_name}: Value must be one of {error.validator_value}"

    if path:
        return f"{tool_name}: Parameter '{path}' - {error.message}"
    return f"{tool_name}: {error.message}"


class BaseTool(ABC):
    """Convenience base class for implementing tools.

    Subclasses pass their metadata to __init__ and implement run(). Arguments
    are validated against `parameters` before run() sees them; keys the
    schema does not declare are dropped with a warning, since models
    occasionally invent extra arguments.

    Example:
        >>> class EchoTool(BaseTool):
        ...     def __init__(self):
        ...         super().__init__(
        ...             name="echo",
        ...             description="Echo back the input text",
        ...             parameters={
        ...                 "type": "object",
        ...                 "properties": {"text": {"type": "string"}},
        ...                 "required": ["text"],
        ...             },
        ...         )
        ...
        ...     async def run(self, text: str) -> str:
        ...         return text
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: dict[str, Any],
    ) -> None:
        self._name = name
        self._description = description
        self._parameters = parameters

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> dict[str, Any]:
        return self._parameters

    def validate_arguments(self, args: dict[str, Any]) -> dict[str, Any]:
        """Check args against the schema and strip undeclared keys.

        Raises:
            ToolArgumentError: If the arguments violate the schema.
        """
        try:
            jsonschema.validate(args, self._parameters)
        except jsonschema.ValidationError as e:
            raise ToolArgumentError(self._name, _format_validation_error(e, self._name)) from e

        declared = set(self._parameters.get("properties", {}))
        extras = set(args) - declared
        if extras:
            logger.warning("Ignoring unknown arguments for %s: %s", self._name, sorted(extras))
        return {k: v for k, v in args.items() if k in declared}

    async def execute(self, args: dict[str, Any]) -> str:
        return await self.run(**self.validate_arguments(args))

    @abstractmethod
    async def run(self, **kwargs: Any) -> str:
        """Perform the tool's action with validated keyword arguments."""
        ...


class FunctionTool(BaseTool):
    """Adapts a plain function into a tool.

    The function receives the validated arguments as keyword arguments and
    may be sync or async. Non-string return values are converted with str().

    Example:
        def add(a: int, b: int) -> int:
            return a + b

        registry.register(FunctionTool(
            "add", "Add two integers",
            {"type": "object", "properties": {"a": {"type": "integer"},
                                              "b": {"type": "integer"}}},
            add,
        ))
    """

    def __init__(
        self,
        name: str,
        description: str,
        parameters: dict[str, Any],
        func: Callable[..., Any | Awaitable[Any]],
    ) -> None:
        super().__init__(name, description, parameters)
        self._func = func

    async def run(self, **kwargs: Any) -> str:
        result = self._func(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result if isinstance(result, str) else str(result)
