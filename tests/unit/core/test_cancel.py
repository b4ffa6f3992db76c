"""Tests for CancellationToken."""

import asyncio

import pytest

from palace.core.cancel import CancellationToken


class TestCancellationToken:
    def test_starts_uncancelled(self) -> None:
        token = CancellationToken()
        assert not token.is_cancelled
        token.raise_if_cancelled()

    def test_cancel_runs_callbacks_once(self) -> None:
        token = CancellationToken()
        calls: list[str] = []
        token.on_cancel(lambda: calls.append("a"))
        token.on_cancel(lambda: calls.append("b"))

        token.cancel()
        token.cancel()

        assert token.is_cancelled
        assert calls == ["a", "b"]

    def test_raise_if_cancelled(self) -> None:
        token = CancellationToken()
        token.cancel()
        with pytest.raises(asyncio.CancelledError):
            token.raise_if_cancelled()

    def test_late_registration_fires_immediately(self) -> None:
        token = CancellationToken()
        token.cancel()
        calls: list[int] = []
        token.on_cancel(lambda: calls.append(1))
        assert calls == [1]

    def test_unregister(self) -> None:
        token = CancellationToken()
        calls: list[int] = []
        unregister = token.on_cancel(lambda: calls.append(1))
        unregister()
        unregister()
        token.cancel()
        assert calls == []

    def test_failing_callback_does_not_stop_others(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        token = CancellationToken()
        calls: list[int] = []

        def broken() -> None:
            raise RuntimeError("boom")

        token.on_cancel(broken)
        token.on_cancel(lambda: calls.append(1))

        with caplog.at_level("ERROR", logger="palace.core.cancel"):
            token.cancel()

        assert calls == [1]
        assert "Cancellation callback failed" in caplog.text

    def test_reset_keeps_callbacks(self) -> None:
        token = CancellationToken()
        calls: list[int] = []
        token.on_cancel(lambda: calls.append(1))
        token.cancel()
        token.reset()

        assert not token.is_cancelled
        token.cancel()
        assert calls == [1, 1]
