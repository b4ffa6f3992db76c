"""Agent loop: model turns interleaved with tool execution."""

from palace.agent.runner import (
    AgentResult,
    AgentRunner,
    AgentState,
    DeltaCallback,
    ToolCallCallback,
    ToolResultCallback,
)

__all__ = [
    "AgentResult",
    "AgentRunner",
    "AgentState",
    "DeltaCallback",
    "ToolCallCallback",
    "ToolResultCallback",
]
