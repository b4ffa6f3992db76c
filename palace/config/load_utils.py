"""JSON loading for config layers.

- load_json_file() for files that must exist (explicit --config paths)
- load_json_file_optional() for layers that may be absent (global, project)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from palace.core.errors import LoadError

logger = logging.getLogger(__name__)


def load_json_file(path: Path, error_context: str = "") -> dict[str, Any]:
    """Read a JSON object from disk.

    An empty (or whitespace-only) file counts as an empty object. A UTF-8 BOM
    is tolerated since editors on Windows like to add one.

    Raises:
        LoadError: If the file is missing or unreadable, is not valid JSON,
            or holds something other than a JSON object.
    """
    prefix = f"{error_context}: " if error_context else ""

    try:
        text = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise LoadError(f"{prefix}File not found: {path}") from e
    except OSError as e:
        raise LoadError(f"{prefix}Failed to read file {path}: {e}") from e

    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise LoadError(f"{prefix}Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise LoadError(f"{prefix}Expected object in {path}, got {type(data).__name__}")
    return data


def load_json_file_optional(path: Path, error_context: str = "") -> dict[str, Any] | None:
    """Like load_json_file(), but a missing file yields None.

    Raises:
        LoadError: If the file exists but cannot be parsed.
    """
    if not path.is_file():
        logger.debug("Config layer not present: %s", path)
        return None

    logger.debug("Loading config layer: %s", path)
    return load_json_file(path, error_context)
