"""Cancellation support for async operations."""

import logging
from asyncio import CancelledError
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    """Token for cooperative cancellation of async operations.

    The agent loop polls the token at well-defined checkpoints, and the
    transport registers a callback so that an in-flight request is interrupted
    the moment cancel() is called.

    Example:
        token = CancellationToken()

        async def long_operation():
            for chunk in stream:
                token.raise_if_cancelled()
                yield chunk

        # When the user presses Ctrl-C:
        token.cancel()
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], object]] = []

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation and notify callbacks."""
        if self._cancelled:
            return
        self._cancelled = True
        for callback in list(self._callbacks):
            self._invoke(callback)

    def on_cancel(self, callback: Callable[[], object]) -> Callable[[], None]:
        """Register a callback to be called when cancelled.

        If already cancelled, callback is invoked immediately.

        Returns:
            A function that unregisters the callback. Safe to call twice.
        """
        self._callbacks.append(callback)
        if self._cancelled:
            self._invoke(callback)

        def unregister() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return unregister

    def raise_if_cancelled(self) -> None:
        """Raise CancelledError if cancellation was requested.

        Raises:
            asyncio.CancelledError: If cancel() was called.
        """
        if self._cancelled:
            raise CancelledError("Operation cancelled by user")

    def reset(self) -> None:
        """Reset the token for reuse.

        Clears cancelled state but keeps callbacks.
        """
        self._cancelled = False

    @staticmethod
    def _invoke(callback: Callable[[], object]) -> None:
        # A failing callback must not prevent the others from running
        try:
            callback()
        except Exception:
            logger.exception("Cancellation callback failed")
