"""Tool-calling agent loop.

AgentRunner drives a conversation to completion: it asks the model for a
turn, executes any tools the model requests, appends the results to the
history and asks again, until the model answers without tool calls or the
iteration ceiling is reached.

One iteration is one model round-trip, however many tools that round asks
for. Tools within a round run sequentially, in the order the model listed
them.

Example:
    runner = AgentRunner(provider, registry, config.agent, on_delta=render)
    result = await runner.run([Message(Role.USER, "What did I write about Rust?")])
    print(result.text)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from palace.core.types import CompletionResult, Delta, Message, Role, StreamComplete, ToolCall
from palace.core.utils import truncate

if TYPE_CHECKING:
    from palace.config.schema import AgentConfig
    from palace.core.cancel import CancellationToken
    from palace.core.interfaces import AsyncProvider
    from palace.tool.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Callback types for display integration
DeltaCallback = Callable[[Delta], None]
ToolCallCallback = Callable[[str, str], None]  # (name, id)
ToolResultCallback = Callable[[str, str, str], None]  # (name, id, result)


class AgentState(Enum):
    """Where the loop is, or how it ended."""

    AWAITING_MODEL_RESPONSE = "awaiting_model_response"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    ITERATION_EXHAUSTED = "iteration_exhausted"


@dataclass(frozen=True)
class AgentResult:
    """Outcome of one AgentRunner.run() call.

    Attributes:
        text: The final answer, or the exhaustion fallback text.
        state: DONE or ITERATION_EXHAUSTED.
        iterations: Model round-trips performed.
        messages: The full history at the end of the run, system message
            included. The final answer is not part of it.
    """

    text: str
    state: AgentState
    iterations: int
    messages: tuple[Message, ...]

    @property
    def halted_at_iteration_limit(self) -> bool:
        return self.state == AgentState.ITERATION_EXHAUSTED


def exhaustion_text(history: list[Message], max_iterations: int) -> str:
    """Best-effort answer when the iteration ceiling is hit.

    Joins whatever the model said along the way; if it said nothing, a fixed
    notice naming the ceiling.
    """
    said = [m.content for m in history if m.role == Role.ASSISTANT and m.content]
    if said:
        return "\n".join(said)
    return f"Agent reached maximum iterations ({max_iterations}). Partial response returned."


def parse_tool_arguments(tool_call: ToolCall) -> dict[str, Any]:
    """Decode a tool call's argument string.

    Malformed JSON, or JSON that is not an object, becomes an empty argument
    object. The tool then reports missing parameters itself, which gives the
    model something to correct on its next turn.
    """
    if not tool_call.arguments.strip():
        return {}
    try:
        args = json.loads(tool_call.arguments)
    except json.JSONDecodeError:
        logger.warning(
            "Malformed arguments for tool %s (%s): %s",
            tool_call.name, tool_call.id, truncate(tool_call.arguments),
        )
        return {}
    if not isinstance(args, dict):
        logger.warning(
            "Arguments for tool %s (%s) are not an object: %s",
            tool_call.name, tool_call.id, truncate(tool_call.arguments),
        )
        return {}
    return args


def _announce_tool_calls(
    entries: tuple[dict[str, Any], ...],
    on_tool_call: ToolCallCallback,
) -> None:
    # Only the fragment carrying the function name announces the call
    for entry in entries:
        func = entry.get("function") or {}
        name = func.get("name")
        if name:
            on_tool_call(name, entry.get("id") or "")


class AgentRunner:
    """Runs the model/tool loop for one conversation at a time.

    The runner holds no per-run state beyond `state`, which reflects the
    most recent run. Separate runs may share a provider and registry but
    should each use their own runner if they overlap in time.
    """

    def __init__(
        self,
        provider: AsyncProvider,
        registry: ToolRegistry,
        config: AgentConfig,
        *,
        on_delta: DeltaCallback | None = None,
        on_tool_call: ToolCallCallback | None = None,
        on_tool_result: ToolResultCallback | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            provider: Chat-completion transport.
            registry: Tools offered to the model. Its schemas are read fresh
                every iteration.
            config: Iteration ceiling, system prompt, temperature, streaming.
            on_delta: Receives every streamed delta in wire order.
            on_tool_call: Called as soon as a named tool call is seen.
            on_tool_result: Called after each tool finishes.
        """
        self._provider = provider
        self._registry = registry
        self._config = config
        self.on_delta = on_delta
        self.on_tool_call = on_tool_call
        self.on_tool_result = on_tool_result
        self.state = AgentState.DONE

    async def run(
        self,
        messages: list[Message],
        cancel_token: CancellationToken | None = None,
    ) -> AgentResult:
        """Drive the conversation until the model answers without tools.

        Args:
            messages: Conversation so far (user/assistant/tool turns). Not
                modified.
            cancel_token: Checked before every model call and every tool.

        Returns:
            AgentResult with state DONE or ITERATION_EXHAUSTED.

        Raises:
            ProviderError: If a model request fails.
            asyncio.CancelledError: If cancel_token is cancelled.
        """
        history = [Message(Role.SYSTEM, self._config.system_prompt), *messages]
        max_iterations = self._config.max_iterations

        for iteration in range(1, max_iterations + 1):
            if cancel_token:
                cancel_token.raise_if_cancelled()

            self.state = AgentState.AWAITING_MODEL_RESPONSE
            logger.debug("Iteration %d/%d: requesting model turn", iteration, max_iterations)
            result = await self._request_turn(history, cancel_token)

            if not result.has_tool_calls:
                self.state = AgentState.DONE
                return AgentResult(
                    text=result.content or "",
                    state=self.state,
                    iterations=iteration,
                    messages=tuple(history),
                )

            self.state = AgentState.EXECUTING_TOOLS
            history.append(
                Message(Role.ASSISTANT, result.content or "", tool_calls=result.tool_calls)
            )
            for tool_call in result.tool_calls:
                if cancel_token:
                    cancel_token.raise_if_cancelled()
                output = await self._execute_tool(tool_call)
                history.append(Message(Role.TOOL, output, tool_call_id=tool_call.id))

        self.state = AgentState.ITERATION_EXHAUSTED
        logger.warning("Agent stopped after %d iterations without a final answer", max_iterations)
        return AgentResult(
            text=exhaustion_text(history, max_iterations),
            state=self.state,
            iterations=max_iterations,
            messages=tuple(history),
        )

    async def _request_turn(
        self,
        history: list[Message],
        cancel_token: CancellationToken | None,
    ) -> CompletionResult:
        tools = self._registry.to_schemas()

        if not self._config.stream:
            result = await self._provider.complete(
                list(history),
                tools,
                temperature=self._config.temperature,
                cancel_token=cancel_token,
            )
            # Present the whole reply as a single delta so displays work the same
            if self.on_delta and (result.content or result.finish_reason):
                self.on_delta(Delta(content=result.content, finish_reason=result.finish_reason))
            if self.on_tool_call:
                for tool_call in result.tool_calls:
                    self.on_tool_call(tool_call.name, tool_call.id)
            return result

        final: CompletionResult | None = None
        async for event in self._provider.stream(
            list(history),
            tools,
            temperature=self._config.temperature,
            cancel_token=cancel_token,
        ):
            if isinstance(event, Delta):
                if self.on_delta:
                    self.on_delta(event)
                if self.on_tool_call and event.tool_calls:
                    _announce_tool_calls(event.tool_calls, self.on_tool_call)
            elif isinstance(event, StreamComplete):
                final = event.result

        if final is None:
            # Providers always finish with StreamComplete; treat a bare end as empty
            logger.warning("Stream ended without a completion event")
            return CompletionResult()
        return final

    async def _execute_tool(self, tool_call: ToolCall) -> str:
        args = parse_tool_arguments(tool_call)
        logger.debug("Executing tool %s (%s)", tool_call.name, tool_call.id)
        output = await self._registry.execute(tool_call.name, args)
        if self.on_tool_result:
            self.on_tool_result(tool_call.name, tool_call.id, output)
        return output
