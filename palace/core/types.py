"""Core types for palace.

This module defines the fundamental data structures used throughout palace:
messages, tool calls, streaming deltas, and completion results. Everything is
a frozen dataclass except ToolCallFragment, which is a mutable accumulator
that only lives inside a stream decoder.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Role(Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCall:
    """A request from the model to execute a tool.

    Attributes:
        id: Identifier for this tool call, echoed back in the tool message.
        name: Name of the tool to execute.
        arguments: Serialized JSON argument object, exactly as the model sent it.
    """

    id: str
    name: str
    arguments: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to OpenAI wire format."""
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": self.arguments,
            },
        }


@dataclass(frozen=True)
class Message:
    """A message in a conversation.

    Attributes:
        role: The role of the message sender.
        content: The text content of the message (may be empty).
        tool_calls: Tool calls requested by the assistant (if any).
        tool_call_id: ID of the tool call this message is responding to (for tool messages).
    """

    role: Role
    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None


@dataclass
class ToolCallFragment:
    """A partially received tool call, keyed by its position in the turn.

    Repeated deltas for the same index append to `arguments` and overwrite
    `id`/`name` only when they carry a non-empty value.
    """

    index: int
    id: str = ""
    name: str = ""
    arguments: str = ""

    def to_tool_call(self) -> ToolCall:
        return ToolCall(id=self.id, name=self.name, arguments=self.arguments)


@dataclass(frozen=True)
class CompletionResult:
    """The final shape of one model turn.

    Attributes:
        content: Assembled text, or None if the turn produced no text.
        tool_calls: Completed tool call requests, in index order.
        finish_reason: Why the model stopped ("stop", "tool_calls", "length", ...).
    """

    content: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
    finish_reason: str = "stop"

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


# --- Streaming Types ---
# These types are yielded by provider.stream() to communicate content,
# tool call fragments, and completion.


@dataclass(frozen=True)
class StreamEvent:
    """Base class for all streaming events."""

    pass


@dataclass(frozen=True)
class Delta(StreamEvent):
    """A single decoded stream event.

    Attributes:
        content: Text chunk to display, if this event carried one.
        tool_calls: Raw tool call entries as received (for live display,
            e.g. "calling search_vault..." before arguments are complete).
        finish_reason: Completion reason, if this event carried one.
    """

    content: str | None = None
    tool_calls: tuple[dict[str, Any], ...] | None = None
    finish_reason: str | None = None


@dataclass(frozen=True)
class StreamComplete(StreamEvent):
    """Signals the stream has ended.

    Attributes:
        result: The assembled CompletionResult for the turn.
    """

    result: CompletionResult
