"""Shared pytest fixtures and helpers."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from palace.config.schema import ProviderConfig
from palace.provider.openai_compat import OpenAICompatProvider

TEST_BASE_URL = "https://test.example.com/v1"


def sse_frame(payload: dict[str, Any] | str) -> str:
    """One `data:` line, JSON-encoding dict payloads."""
    data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return f"data: {data}\n\n"


def content_event(text: str, finish_reason: str | None = None) -> dict[str, Any]:
    return {"choices": [{"index": 0, "delta": {"content": text}, "finish_reason": finish_reason}]}


def tool_call_event(
    index: int,
    id: str | None = None,
    name: str | None = None,
    arguments: str | None = None,
) -> dict[str, Any]:
    entry: dict[str, Any] = {"index": index}
    if id is not None:
        entry["id"] = id
        entry["type"] = "function"
    function: dict[str, Any] = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    if function:
        entry["function"] = function
    return {"choices": [{"index": 0, "delta": {"tool_calls": [entry]}, "finish_reason": None}]}


def finish_event(reason: str) -> dict[str, Any]:
    return {"choices": [{"index": 0, "delta": {}, "finish_reason": reason}]}


def sse_body(*events: dict[str, Any], done: bool = True) -> bytes:
    body = "".join(sse_frame(event) for event in events)
    if done:
        body += sse_frame("[DONE]")
    return body.encode()


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Config that needs no environment: static key, test host."""
    return ProviderConfig(
        base_url=TEST_BASE_URL,
        api_key="test-key",
        model="test-model",
    )


@pytest.fixture
def make_provider(
    provider_config: ProviderConfig,
) -> Callable[[Callable[[httpx.Request], httpx.Response]], OpenAICompatProvider]:
    """Build a provider whose HTTP client is served by a handler function."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        **overrides: Any,
    ) -> OpenAICompatProvider:
        config = provider_config.model_copy(update=overrides) if overrides else provider_config
        provider = OpenAICompatProvider(config)
        provider._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return provider

    return factory
