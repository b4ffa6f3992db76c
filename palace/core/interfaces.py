"""Core interfaces (protocols) for palace.

This module defines the Protocol interfaces that components must implement.
Using Protocols enables structural subtyping for better type checking without
requiring inheritance; the agent loop is written against AsyncProvider so tests
can substitute a scripted provider.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Protocol

from palace.core.types import CompletionResult, Message, StreamEvent

if TYPE_CHECKING:
    from palace.core.cancel import CancellationToken


class RawLogCallback(Protocol):
    """Protocol for raw API logging callbacks.

    Implementations receive raw API requests, responses, and streaming chunks
    for debugging purposes. The provider calls these methods at appropriate
    points without knowing about the logging implementation.
    """

    def on_request(self, endpoint: str, payload: dict[str, Any]) -> None:
        """Called before making an HTTP request."""
        ...

    def on_response(self, status: int, body: dict[str, Any]) -> None:
        """Called after receiving a non-streaming response."""
        ...

    def on_chunk(self, chunk: dict[str, Any]) -> None:
        """Called for each parsed SSE event during streaming."""
        ...

    def on_stream_complete(self, summary: dict[str, Any]) -> None:
        """Called when a streaming response finishes.

        Args:
            summary: Stream summary with keys: http_status, event_count,
                content_length, tool_call_count, received_done, finish_reason,
                duration_ms.
        """
        ...


class AsyncProvider(Protocol):
    """Protocol for async chat-completion providers.

    Implementations must provide both streaming and non-streaming completion.

    Example:
        async for event in provider.stream(messages, tools):
            if isinstance(event, Delta) and event.content:
                print(event.content, end="")
            elif isinstance(event, StreamComplete):
                if event.result.tool_calls:
                    ...  # Execute tools
    """

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        *,
        temperature: float | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> CompletionResult:
        """Perform a non-streaming completion.

        Raises:
            ProviderError: If the API request fails.
            asyncio.CancelledError: If cancel_token is cancelled.
        """
        ...

    def stream(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        *,
        temperature: float | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream a completion.

        Yields:
            Delta events in wire order, then exactly one StreamComplete.

        Raises:
            ProviderError: If the API request fails.
            asyncio.CancelledError: If cancel_token is cancelled.
        """
        ...
