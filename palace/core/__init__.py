"""Core types and interfaces."""

from palace.core.cancel import CancellationToken
from palace.core.errors import (
    ConfigError,
    PalaceError,
    PathSecurityError,
    ProviderError,
    TranslationError,
)
from palace.core.interfaces import AsyncProvider, RawLogCallback
from palace.core.types import (
    CompletionResult,
    Delta,
    Message,
    Role,
    StreamComplete,
    StreamEvent,
    ToolCall,
    ToolCallFragment,
)

__all__ = [
    "CancellationToken",
    "PalaceError",
    "ConfigError",
    "ProviderError",
    "PathSecurityError",
    "TranslationError",
    "AsyncProvider",
    "RawLogCallback",
    "Message",
    "Role",
    "ToolCall",
    "ToolCallFragment",
    "CompletionResult",
    # Streaming types
    "StreamEvent",
    "Delta",
    "StreamComplete",
]
