"""Shared plumbing for the note tools.

A vault is a directory of markdown notes. Every path a model supplies is
interpreted relative to the vault root and must resolve (symlinks followed)
to a location inside it.
"""

import json
from collections.abc import Callable, Coroutine
from functools import wraps
from pathlib import Path
from typing import Any

from palace.core.errors import PathSecurityError
from palace.tool.base import BaseTool
from palace.tool.registry import error_payload

NOTE_SUFFIX = ".md"


def handle_vault_errors(
    func: Callable[..., Coroutine[Any, Any, str]],
) -> Callable[..., Coroutine[Any, Any, str]]:
    """Turn path violations and filesystem errors into error payloads.

    Example:
        @handle_vault_errors
        async def run(self, path: str) -> str:
            note = self.resolve(path)  # may raise PathSecurityError
            ...
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> str:
        try:
            return await func(*args, **kwargs)
        except PathSecurityError as e:
            return error_payload(e.message)
        except OSError as e:
            return error_payload(f"{type(e).__name__}: {e.strerror or e}")

    return wrapper


def to_json(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False)


def mtime_ms(path: Path) -> int:
    """Modification time in epoch milliseconds."""
    return int(path.stat().st_mtime * 1000)


class VaultTool(BaseTool):
    """Base class for tools operating on a notes directory."""

    def __init__(
        self,
        vault_root: Path,
        name: str,
        description: str,
        parameters: dict[str, Any],
    ) -> None:
        super().__init__(name, description, parameters)
        self._root = Path(vault_root).expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> Path:
        """Resolve a vault-relative path to an absolute one.

        Leading slashes are ignored so "/daily/today.md" and "daily/today.md"
        mean the same note.

        Raises:
            PathSecurityError: If the path escapes the vault root.
        """
        candidate = (self._root / path.strip().lstrip("/\\")).resolve()
        if candidate != self._root and not candidate.is_relative_to(self._root):
            raise PathSecurityError(path, "path is outside the vault")
        return candidate

    def relative(self, path: Path) -> str:
        """Vault-relative display path with forward slashes."""
        return path.relative_to(self._root).as_posix()

    def markdown_files(self, folder: Path | None = None, recursive: bool = True) -> list[Path]:
        """Markdown notes under folder (default: the vault root).

        Hidden files and anything inside hidden directories (".git",
        ".palace", ...) are skipped.
        """
        base = folder or self._root
        pattern = f"**/*{NOTE_SUFFIX}" if recursive else f"*{NOTE_SUFFIX}"
        notes = []
        for path in base.glob(pattern):
            if not path.is_file():
                continue
            parts = path.relative_to(self._root).parts
            if any(part.startswith(".") for part in parts):
                continue
            notes.append(path)
        return notes
