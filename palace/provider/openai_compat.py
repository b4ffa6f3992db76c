"""OpenAI-compatible provider for palace.

Works against any server exposing the /chat/completions endpoint with
OpenAI message format and function calling: OpenAI, OpenRouter, DeepSeek,
Ollama, vLLM.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

import httpx

from palace.core.errors import ProviderError
from palace.core.types import (
    CompletionResult,
    Message,
    Role,
    StreamComplete,
    StreamEvent,
    ToolCall,
)
from palace.provider.base import BaseProvider
from palace.provider.stream import StreamDecoder

logger = logging.getLogger(__name__)


class OpenAICompatProvider(BaseProvider):
    """Provider for OpenAI-compatible chat-completion APIs.

    Example:
        config = ProviderConfig(type="openai", model="gpt-4o")
        provider = OpenAICompatProvider(config)

        result = await provider.complete([Message(Role.USER, "Hello")])
    """

    def _build_endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    def _build_request_body(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        stream: bool,
        temperature: float,
    ) -> dict[str, Any]:
        """Build OpenAI-format request body.

        `stream` is only sent when streaming, and `tools` only when there is
        at least one tool; some local servers reject an empty tools array.
        """
        body: dict[str, Any] = {
            "model": self._model,
            "messages": [self._message_to_dict(m) for m in messages],
            "temperature": temperature,
        }
        if stream:
            body["stream"] = True
        if tools:
            body["tools"] = tools
        return body

    def _message_to_dict(self, message: Message) -> dict[str, Any]:
        result: dict[str, Any] = {
            "role": message.role.value,
            "content": message.content,
        }

        if message.role == Role.TOOL and message.tool_call_id is not None:
            result["tool_call_id"] = message.tool_call_id

        if message.role == Role.ASSISTANT and message.tool_calls:
            result["tool_calls"] = [tc.to_dict() for tc in message.tool_calls]

        return result

    def _parse_tool_calls(self, tool_calls_data: list[dict[str, Any]]) -> tuple[ToolCall, ...]:
        if not isinstance(tool_calls_data, list):
            raise ProviderError("Failed to parse API response: tool_calls is not a list")
        result: list[ToolCall] = []
        for tc in tool_calls_data:
            func = tc.get("function") if isinstance(tc, dict) else None
            if not isinstance(func, dict):
                raise ProviderError("Failed to parse API response: malformed tool call")
            arguments = func.get("arguments", "")
            # Some servers send an already-decoded object
            if not isinstance(arguments, str):
                arguments = json.dumps(arguments)
            result.append(
                ToolCall(
                    id=tc.get("id") or "",
                    name=func.get("name") or "",
                    arguments=arguments,
                )
            )
        return tuple(result)

    def _parse_response(self, data: dict[str, Any]) -> CompletionResult:
        """Parse a non-streaming response.

        Raises:
            ProviderError: If the response has no choices or no message.
        """
        choices = data.get("choices")
        if not choices:
            raise ProviderError("No choices in API response")

        try:
            choice = choices[0]
            msg = choice["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Failed to parse API response: {e}") from e
        if not isinstance(choice, dict) or not isinstance(msg, dict):
            raise ProviderError("Failed to parse API response: choice message is not an object")

        tool_calls: tuple[ToolCall, ...] = ()
        if msg.get("tool_calls"):
            tool_calls = self._parse_tool_calls(msg["tool_calls"])

        return CompletionResult(
            content=msg.get("content") or None,
            tool_calls=tool_calls,
            finish_reason=choice.get("finish_reason") or "stop",
        )

    async def _parse_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        """Decode the SSE body, yielding Deltas as they complete.

        A stream that ends without `[DONE]` still produces a StreamComplete
        from whatever was accumulated.
        """
        on_event = self._raw_log.on_chunk if self._raw_log else None
        decoder = StreamDecoder(on_event=on_event)
        stream_start = time.monotonic()

        async for chunk in response.aiter_bytes():
            for delta in decoder.feed(chunk):
                yield delta

        for delta in decoder.flush():
            yield delta

        result = decoder.finish()
        self._log_stream_summary(response, decoder, result, stream_start)
        yield StreamComplete(result=result)

    def _log_stream_summary(
        self,
        response: httpx.Response,
        decoder: StreamDecoder,
        result: CompletionResult,
        stream_start: float,
    ) -> None:
        duration_ms = round((time.monotonic() - stream_start) * 1000)
        content_length = len(result.content or "")
        tool_call_count = len(result.tool_calls)

        summary = {
            "http_status": response.status_code,
            "event_count": decoder.event_count,
            "dropped_frames": decoder.dropped_frames,
            "content_length": content_length,
            "tool_call_count": tool_call_count,
            "received_done": decoder.received_done,
            "finish_reason": decoder.finish_reason,
            "duration_ms": duration_ms,
        }

        if not result.content and not result.tool_calls:
            logger.warning(
                "Empty stream response: status=%d, events=%d, "
                "received_done=%s, finish_reason=%s, duration=%dms",
                response.status_code, decoder.event_count,
                decoder.received_done, decoder.finish_reason, duration_ms,
            )
        else:
            logger.debug(
                "Stream complete: events=%d, dropped=%d, content_len=%d, tools=%d, "
                "done=%s, finish=%s, duration=%dms",
                decoder.event_count, decoder.dropped_frames, content_length,
                tool_call_count, decoder.received_done, decoder.finish_reason,
                duration_ms,
            )

        if self._raw_log:
            self._raw_log.on_stream_complete(summary)
