"""Base provider with shared HTTP, retry, cancellation, and logging logic.

Subclasses supply the wire format (endpoint, request body, response parsing);
this class owns the HTTP client, authentication headers, error mapping and
the hook-up between a CancellationToken and the in-flight request.
"""

from __future__ import annotations

import asyncio
import logging
import os
import random
import ssl
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing, contextmanager
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx

from palace.config.schema import AuthMethod, ProviderConfig
from palace.core.errors import ProviderError
from palace.core.types import CompletionResult, Message, StreamEvent

if TYPE_CHECKING:
    from collections.abc import Iterator

    from palace.core.cancel import CancellationToken
    from palace.core.interfaces import RawLogCallback

logger = logging.getLogger(__name__)

# Hosts that are considered safe for HTTP (non-HTTPS) connections
_LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "[::1]"})

MAX_RETRY_DELAY = 10.0  # Maximum delay between retries in seconds
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

DEFAULT_TEMPERATURE = 0.7


def validate_base_url(url: str, allow_insecure: bool = False) -> None:
    """Validate provider base_url.

    Rules:
    - HTTPS URLs are always allowed
    - HTTP URLs are only allowed for loopback addresses (localhost, 127.0.0.1, ::1)
    - Other schemes (file://, ftp://, etc.) and scheme-less URLs are rejected

    Args:
        url: The base URL to validate.
        allow_insecure: If True, allow HTTP for any host (for development only).

    Raises:
        ProviderError: If the URL fails validation.
    """
    if not url:
        raise ProviderError("Provider base_url cannot be empty")

    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()

    if scheme == "https":
        return

    if scheme == "http":
        if allow_insecure or host in _LOOPBACK_HOSTS:
            return
        raise ProviderError(
            f"HTTP base_url '{url}' is not allowed. "
            f"Use HTTPS, or http://localhost for local servers. "
            f"Set allow_insecure_http=true in provider config to override."
        )

    if not scheme:
        raise ProviderError(
            f"Provider base_url '{url}' must include a scheme (https:// or http://)"
        )

    raise ProviderError(
        f"Provider base_url scheme '{scheme}' is not allowed. Use https:// or http://localhost."
    )


class BaseProvider(ABC):
    """Abstract base class for chat-completion providers.

    Provides shared functionality:
    - API key resolution (static key or environment variable)
    - HTTP header building based on auth_method
    - Error mapping: non-2xx responses and network faults become ProviderError
    - Optional retries with exponential backoff
    - Cancellation of in-flight requests through a CancellationToken

    Subclasses implement:
    - _build_endpoint(): API endpoint URL
    - _build_request_body(): Convert messages to provider format
    - _parse_response(): Convert a JSON response to a CompletionResult
    - _parse_stream(): Convert a streaming response to StreamEvents
    """

    def __init__(
        self,
        config: ProviderConfig,
        model_id: str | None = None,
        raw_log: RawLogCallback | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Provider configuration.
            model_id: Model to request. Defaults to config.model.
            raw_log: Optional callback for raw API logging.

        Raises:
            ProviderError: If auth is required but no API key is available,
                or if base_url fails validation.
        """
        self._config = config

        validate_base_url(config.base_url, allow_insecure=config.allow_insecure_http)

        self._api_key = self._get_api_key()
        self._base_url = config.base_url.rstrip("/")
        self._model = model_id or config.model
        self._raw_log = raw_log

        self._timeout = config.request_timeout
        self._max_retries = config.max_retries
        self._retry_backoff = config.retry_backoff

        self._client: httpx.AsyncClient | None = None

    @property
    def model(self) -> str:
        return self._model

    def set_raw_log_callback(self, callback: RawLogCallback | None) -> None:
        """Set or clear the raw logging callback."""
        self._raw_log = callback

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client.

        The client is lazily created on first request and reused for
        subsequent requests.
        """
        if self._client is None:
            if self._config.ssl_ca_cert:
                verify: bool | str | ssl.SSLContext = self._config.ssl_ca_cert
            else:
                verify = self._config.verify_ssl

            try:
                self._client = httpx.AsyncClient(timeout=self._timeout, verify=verify)
            except FileNotFoundError:
                # certifi bundle missing; fall back to the system store
                logger.warning(
                    "SSL certificate bundle not found, falling back to system certificates"
                )
                self._client = httpx.AsyncClient(
                    timeout=self._timeout, verify=ssl.create_default_context()
                )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_api_key(self) -> str | None:
        """Resolve the API key, or None if auth is not required.

        Raises:
            ProviderError: If auth is required but no key is configured.
        """
        if self._config.auth_method == AuthMethod.NONE:
            return None

        if self._config.api_key:
            return self._config.api_key

        api_key = os.environ.get(self._config.api_key_env) if self._config.api_key_env else None
        if not api_key:
            raise ProviderError(
                f"API key not found. Set the {self._config.api_key_env} environment "
                "variable or provider.api_key in ~/.palace/config.json."
            )
        return api_key

    def _build_headers(self) -> dict[str, str]:
        """Build HTTP headers based on auth_method and config."""
        headers: dict[str, str] = {"Content-Type": "application/json"}
        headers.update(self._config.extra_headers)

        if self._api_key and self._config.auth_method == AuthMethod.BEARER:
            headers["Authorization"] = f"Bearer {self._api_key}"

        return headers

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Exponential backoff with 0-1s of jitter, capped at MAX_RETRY_DELAY."""
        delay = (self._retry_backoff ** attempt) + random.uniform(0, 1)
        return min(delay, MAX_RETRY_DELAY)

    def _status_error(self, status_code: int, body: str) -> ProviderError:
        return ProviderError(
            f"API request failed ({status_code}): {body}",
            status_code=status_code,
            body=body,
        )

    def _network_error(self, error: httpx.HTTPError) -> ProviderError:
        attempts = self._max_retries + 1
        if isinstance(error, httpx.ConnectError):
            return ProviderError(f"Failed to connect to API after {attempts} attempt(s): {error}")
        if isinstance(error, httpx.TimeoutException):
            return ProviderError(f"API request timed out after {attempts} attempt(s): {error}")
        return ProviderError(f"HTTP error occurred: {error}")

    @contextmanager
    def _cancel_scope(self, cancel_token: CancellationToken | None) -> Iterator[None]:
        """Interrupt the current task if the token is cancelled mid-request.

        Polling between reads is not enough: a request can sit in connect()
        or a blocked read for the whole timeout. The token's callback cancels
        the awaiting task; the resulting CancelledError is passed on with the
        task's cancel request withdrawn so callers see an ordinary exception.
        """
        if cancel_token is None:
            yield
            return

        cancel_token.raise_if_cancelled()
        task = asyncio.current_task()
        unregister: Callable[[], None] | None = None
        if task is not None:
            unregister = cancel_token.on_cancel(task.cancel)
        try:
            yield
        except asyncio.CancelledError:
            if task is not None and cancel_token.is_cancelled and task.cancelling():
                task.uncancel()
            raise
        finally:
            if unregister is not None:
                unregister()

    async def _make_request(
        self,
        url: str,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        """Make a non-streaming HTTP request.

        Raises:
            ProviderError: On a non-2xx status or network failure.
        """
        if self._raw_log:
            self._raw_log.on_request(url, body)

        for attempt in range(self._max_retries + 1):
            try:
                client = await self._ensure_client()
                response = await client.post(url, headers=self._build_headers(), json=body)

                if response.status_code >= 400:
                    error = self._status_error(response.status_code, response.text)
                    if (
                        response.status_code in RETRYABLE_STATUS_CODES
                        and attempt < self._max_retries
                    ):
                        logger.debug("Retrying after status %d", response.status_code)
                        await asyncio.sleep(self._calculate_retry_delay(attempt))
                        continue
                    raise error

                try:
                    data = response.json()
                except ValueError as e:
                    raise ProviderError(f"API returned invalid JSON: {e}") from e

                if self._raw_log:
                    self._raw_log.on_response(response.status_code, data)
                return data

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                if attempt < self._max_retries:
                    logger.debug("Retrying after network error: %s", e)
                    await asyncio.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise self._network_error(e) from e
            except httpx.HTTPError as e:
                raise self._network_error(e) from e

        raise ProviderError("Request failed unexpectedly")

    async def _make_streaming_request(
        self,
        url: str,
        body: dict[str, Any],
    ) -> AsyncIterator[httpx.Response]:
        """Open a streaming HTTP request.

        A non-2xx status raises before any of the body is handed to the
        stream parser; the error carries the body verbatim.

        Yields:
            The httpx Response, exactly once, with its body unread.

        Raises:
            ProviderError: On a non-2xx status or network failure.
        """
        if self._raw_log:
            self._raw_log.on_request(url, body)

        for attempt in range(self._max_retries + 1):
            try:
                client = await self._ensure_client()
                async with client.stream(
                    "POST",
                    url,
                    headers=self._build_headers(),
                    json=body,
                ) as response:
                    if response.status_code >= 400:
                        raw = await response.aread()
                        error = self._status_error(
                            response.status_code, raw.decode(errors="replace")
                        )
                        if (
                            response.status_code in RETRYABLE_STATUS_CODES
                            and attempt < self._max_retries
                        ):
                            logger.debug("Retrying after status %d", response.status_code)
                            await asyncio.sleep(self._calculate_retry_delay(attempt))
                            continue
                        raise error

                    yield response
                    return

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                if attempt < self._max_retries:
                    logger.debug("Retrying after network error: %s", e)
                    await asyncio.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise self._network_error(e) from e
            except httpx.HTTPError as e:
                raise self._network_error(e) from e

    # Abstract methods for subclasses to implement

    @abstractmethod
    def _build_endpoint(self) -> str:
        """Build the API endpoint URL."""
        ...

    @abstractmethod
    def _build_request_body(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        stream: bool,
        temperature: float,
    ) -> dict[str, Any]:
        """Build the request body in provider-specific format."""
        ...

    @abstractmethod
    def _parse_response(self, data: dict[str, Any]) -> CompletionResult:
        """Parse a non-streaming response."""
        ...

    @abstractmethod
    def _parse_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        """Parse a streaming response into Deltas and a final StreamComplete."""
        ...

    # Concrete implementations using abstract methods

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        *,
        temperature: float | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> CompletionResult:
        """Perform a non-streaming completion.

        Args:
            messages: The conversation history.
            tools: Tool definitions in OpenAI function format.
            temperature: Sampling temperature (default 0.7).
            cancel_token: Cancels the request while it is in flight.

        Raises:
            ProviderError: If the API request fails.
            asyncio.CancelledError: If cancel_token is cancelled.
        """
        url = self._build_endpoint()
        body = self._build_request_body(
            messages, tools, stream=False, temperature=self._temperature(temperature)
        )

        with self._cancel_scope(cancel_token):
            data = await self._make_request(url, body)
        return self._parse_response(data)

    async def stream(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        *,
        temperature: float | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream a completion.

        Yields:
            Delta events in wire order, then one StreamComplete.

        Raises:
            ProviderError: If the API request fails.
            asyncio.CancelledError: If cancel_token is cancelled.
        """
        url = self._build_endpoint()
        body = self._build_request_body(
            messages, tools, stream=True, temperature=self._temperature(temperature)
        )

        with self._cancel_scope(cancel_token):
            async with aclosing(self._make_streaming_request(url, body)) as responses:
                async for response in responses:
                    # Faults while reading the body surface here, past the
                    # request's own error handling
                    try:
                        async with aclosing(self._parse_stream(response)) as events:
                            async for event in events:
                                yield event
                    except httpx.HTTPError as e:
                        raise self._network_error(e) from e

    @staticmethod
    def _temperature(value: float | None) -> float:
        return DEFAULT_TEMPERATURE if value is None else value
