"""Shared Rich Console instance for palace."""

from __future__ import annotations

from rich.console import Console

_console: Console | None = None


def get_console() -> Console:
    """Get the shared Console instance, creating it on first access.

    Model output is printed with markup disabled at the call site; markup
    stays on for palace's own status lines.
    """
    global _console
    if _console is None:
        _console = Console(highlight=False, markup=True)
    return _console


def set_console(console: Console | None) -> None:
    """Set a custom Console instance.

    Useful for testing (e.g. Console(file=io.StringIO())). None restores
    the lazily created default.
    """
    global _console
    _console = console
