"""Typed exception hierarchy for palace."""

from __future__ import annotations


class PalaceError(Exception):
    """Base class for all palace errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(PalaceError):
    """Raised for configuration issues (missing file, invalid JSON, validation failure)."""


class ProviderError(PalaceError):
    """Raised for LLM provider issues (API errors, network issues, auth failure).

    Attributes:
        status_code: HTTP status of the failed response, if there was one.
        body: Response body text, verbatim, if there was one.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class PathSecurityError(PalaceError):
    """Raised when a path escapes the vault root."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Path security violation for '{path}': {reason}")


class LoadError(PalaceError):
    """Raised when a JSON file cannot be loaded."""


class TranslationError(PalaceError):
    """Raised when a document chunk fails to translate."""

    def __init__(self, chunk_number: int, total: int, reason: str) -> None:
        self.chunk_number = chunk_number
        self.total = total
        self.reason = reason
        super().__init__(
            f"Translation failed at chunk {chunk_number}/{total}: {reason}"
        )
