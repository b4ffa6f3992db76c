"""Core constants and paths for palace.

Single source of truth for global paths. All modules should import from here
instead of hardcoding paths like `Path.home() / ".palace"`.
"""

from pathlib import Path

PALACE_DIR_NAME = ".palace"

# Sentinel payload that terminates an OpenAI-compatible SSE stream
STREAM_DONE_SENTINEL = "[DONE]"

# Completion reason reported when the stream never supplied one
DEFAULT_FINISH_REASON = "stop"


def get_palace_dir() -> Path:
    """Get ~/.palace (global config directory)."""
    return Path.home() / PALACE_DIR_NAME


def get_defaults_dir() -> Path:
    """Get package defaults directory (shipped with package)."""
    import palace
    return Path(palace.__file__).parent / "defaults"
