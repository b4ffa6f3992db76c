"""Terminal display helpers."""

from palace.display.console import get_console, set_console

__all__ = ["get_console", "set_console"]
