"""Incremental decoder for OpenAI-compatible SSE chat-completion streams.

The wire format is newline-delimited frames of the form `data: <json>`, ended
by `data: [DONE]`. Chunks arrive in arbitrary sizes that do not line up with
frame boundaries, so the decoder keeps the trailing partial line buffered
until the next chunk completes it.

Tool calls arrive as fragments keyed by `index`: the first fragment usually
carries the id and function name, later ones carry pieces of the argument
string. Fragments are accumulated per index and materialized in ascending
index order when the stream ends.

Example:
    decoder = StreamDecoder()
    async for chunk in response.aiter_bytes():
        for delta in decoder.feed(chunk):
            render(delta)
    result = decoder.finish()
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import AsyncIterable, Callable
from typing import Any

from palace.core.constants import DEFAULT_FINISH_REASON, STREAM_DONE_SENTINEL
from palace.core.types import CompletionResult, Delta, ToolCallFragment

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"

DeltaCallback = Callable[[Delta], None]


class StreamDecoder:
    """Turns raw stream chunks into Deltas and one final CompletionResult.

    The decoder is synchronous and transport-agnostic; feed it whatever the
    HTTP client hands over. One decoder handles exactly one model turn.
    """

    def __init__(self, on_event: Callable[[dict[str, Any]], None] | None = None) -> None:
        self._on_event = on_event
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._content: list[str] = []
        self._fragments: dict[int, ToolCallFragment] = {}
        self._finish_reason: str | None = None

        # Diagnostics
        self.event_count = 0
        self.dropped_frames = 0  # unparseable or mis-shaped frames, plus bad tool call entries
        self.received_done = False

    @property
    def content(self) -> str:
        """Text accumulated so far."""
        return "".join(self._content)

    @property
    def finish_reason(self) -> str | None:
        """Last completion reason seen on the wire, if any."""
        return self._finish_reason

    @property
    def tool_call_count(self) -> int:
        return len(self._fragments)

    def feed(self, chunk: bytes | str) -> list[Delta]:
        """Consume one chunk and return the deltas it completed, in order."""
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk

        deltas: list[Delta] = []
        if "\n" not in self._buffer:
            return deltas

        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            deltas.extend(self._process_line(line))
        return deltas

    def finish(self) -> CompletionResult:
        """Flush any unterminated final line and assemble the result.

        Deltas produced by the flushed line are folded into the result but
        not returned; use flush() first if they need to be displayed.
        """
        self.flush()

        tool_calls = tuple(
            self._fragments[index].to_tool_call()
            for index in sorted(self._fragments)
        )
        content = self.content
        return CompletionResult(
            content=content or None,
            tool_calls=tool_calls,
            finish_reason=self._finish_reason or DEFAULT_FINISH_REASON,
        )

    def flush(self) -> list[Delta]:
        """Process whatever is left in the buffer as a final frame."""
        tail = self._utf8.decode(b"", final=True)
        remainder = self._buffer + tail
        self._buffer = ""
        if not remainder.strip():
            return []
        return self._process_line(remainder)

    def _process_line(self, line: str) -> list[Delta]:
        line = line.strip()
        if not line or not line.startswith(DATA_PREFIX):
            return []

        payload = line[len(DATA_PREFIX):].strip()
        if payload == STREAM_DONE_SENTINEL:
            self.received_done = True
            return []

        try:
            event = json.loads(payload)
        except json.JSONDecodeError:
            self.dropped_frames += 1
            logger.debug("Dropping malformed stream frame: %.100s", payload)
            return []

        if not isinstance(event, dict):
            self.dropped_frames += 1
            return []

        self.event_count += 1
        if self._on_event:
            self._on_event(event)
        return self.process_event(event)

    def process_event(self, event: dict[str, Any]) -> list[Delta]:
        """Apply one parsed SSE event to the accumulators.

        An event whose shape does not match a chat-completion chunk is
        dropped whole. A malformed tool call entry is dropped on its own and
        the rest of the event still applies.

        Returns:
            Deltas for display: one for content, one for tool call entries,
            or a bare finish-reason delta when the event carried nothing else.
        """
        choices = event.get("choices")
        if not choices or not isinstance(choices, list):
            return []
        choice = choices[0]
        if not isinstance(choice, dict):
            return self._drop("choice is not an object")

        delta = choice.get("delta") or {}
        if not isinstance(delta, dict):
            return self._drop("delta is not an object")

        content = delta.get("content")
        if content is not None and not isinstance(content, str):
            return self._drop("content is not a string")

        entries = delta.get("tool_calls")
        if entries is not None and not isinstance(entries, list):
            return self._drop("tool_calls is not a list")

        finish_reason = choice.get("finish_reason") or None
        if finish_reason is not None and not isinstance(finish_reason, str):
            return self._drop("finish_reason is not a string")
        if finish_reason:
            self._finish_reason = finish_reason

        deltas: list[Delta] = []
        if content:
            self._content.append(content)
            deltas.append(Delta(content=content, finish_reason=finish_reason))

        if entries:
            accepted = [entry for entry in entries if self._accumulate_tool_call(entry)]
            if accepted:
                deltas.append(Delta(tool_calls=tuple(accepted), finish_reason=finish_reason))

        if not deltas and finish_reason:
            deltas.append(Delta(finish_reason=finish_reason))
        return deltas

    def _drop(self, reason: str) -> list[Delta]:
        self.dropped_frames += 1
        logger.debug("Dropping stream frame: %s", reason)
        return []

    def _accumulate_tool_call(self, entry: Any) -> bool:
        """Merge one tool call entry into its fragment. False if it was dropped."""
        if not _is_tool_call_entry(entry):
            self._drop("malformed tool call entry")
            return False

        index = entry.get("index") or 0
        fragment = self._fragments.get(index)
        if fragment is None:
            fragment = ToolCallFragment(index=index)
            self._fragments[index] = fragment

        if entry.get("id"):
            fragment.id = entry["id"]

        func = entry.get("function") or {}
        if func.get("name"):
            fragment.name = func["name"]
        # Arguments are the only field that streams; never overwrite them
        if func.get("arguments"):
            fragment.arguments += func["arguments"]
        return True


def _is_tool_call_entry(entry: Any) -> bool:
    """Check the fields the decoder reads: int index, string id/name/arguments."""
    if not isinstance(entry, dict):
        return False
    index = entry.get("index")
    if index is not None and (not isinstance(index, int) or isinstance(index, bool)):
        return False
    func = entry.get("function")
    if func is None:
        func = {}
    if not isinstance(func, dict):
        return False
    fields = (entry.get("id"), func.get("name"), func.get("arguments"))
    return all(value is None or isinstance(value, str) for value in fields)


async def decode_stream(
    chunks: AsyncIterable[bytes | str],
    on_delta: DeltaCallback | None = None,
) -> CompletionResult:
    """Decode a whole stream, pushing each delta to a callback as it arrives.

    Args:
        chunks: Raw body chunks, in arrival order.
        on_delta: Invoked synchronously for every decoded delta.

    Returns:
        The assembled CompletionResult.
    """
    decoder = StreamDecoder()
    async for chunk in chunks:
        for delta in decoder.feed(chunk):
            if on_delta:
                on_delta(delta)
    for delta in decoder.flush():
        if on_delta:
            on_delta(delta)
    return decoder.finish()
