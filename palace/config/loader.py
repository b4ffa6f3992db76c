"""Configuration loading with fail-fast behavior and layered merging.

Layers, later ones overriding earlier ones via deep merge:

1. Global user config (~/.palace/config.json), or the shipped defaults when
   no global config exists
2. Project local config (<cwd>/.palace/config.json)

An explicit path bypasses layering entirely.
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from palace.config.load_utils import load_json_file, load_json_file_optional
from palace.config.schema import Config
from palace.core.constants import PALACE_DIR_NAME, get_defaults_dir, get_palace_dir
from palace.core.errors import ConfigError, LoadError
from palace.core.utils import deep_merge

logger = logging.getLogger(__name__)

DEFAULTS_DIR = get_defaults_dir()
DEFAULT_CONFIG = DEFAULTS_DIR / "config.json"


def _read_layer(path: Path) -> dict[str, Any] | None:
    try:
        return load_json_file_optional(path, error_context="config")
    except LoadError as e:
        raise ConfigError(e.message) from e


def load_config(path: Path | None = None, cwd: Path | None = None) -> Config:
    """Load configuration from file with layered merging.

    Args:
        path: Explicit config file path. If provided, skips layered loading.
        cwd: Working directory for project-local lookup. Defaults to Path.cwd().

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If any config file contains invalid JSON or the merged
            config fails validation.
    """
    if path is not None:
        return _load_from_path(path)

    effective_cwd = cwd or Path.cwd()
    merged: dict[str, Any] = {}
    loaded_from: list[Path] = []

    global_config = get_palace_dir() / "config.json"
    base_path = global_config
    base_data = _read_layer(global_config)
    if base_data is None:
        logger.debug("No global config at: %s, using defaults", global_config)
        base_path = DEFAULT_CONFIG
        base_data = _read_layer(DEFAULT_CONFIG)

    if base_data:
        merged = deep_merge(merged, base_data)
        loaded_from.append(base_path)

    local_config = effective_cwd / PALACE_DIR_NAME / "config.json"
    if local_config.resolve() != global_config.resolve():
        local_data = _read_layer(local_config)
        if local_data:
            merged = deep_merge(merged, local_data)
            loaded_from.append(local_config)

    if loaded_from:
        logger.info("Config loaded from: %s", [str(p) for p in loaded_from])
    else:
        logger.debug("No config files found, using Pydantic defaults")
        return Config()

    try:
        return Config.model_validate(merged)
    except ValidationError as e:
        sources = ", ".join(str(p) for p in loaded_from)
        raise ConfigError(f"Config validation failed (merged from {sources}): {e}") from e


def _load_from_path(path: Path) -> Config:
    """Load and validate config from a specific path.

    Raises:
        ConfigError: If file doesn't exist, contains invalid JSON, or fails validation.
    """
    try:
        data = load_json_file(path, error_context="config")
    except LoadError as e:
        raise ConfigError(e.message) from e

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Config validation failed for {path}: {e}") from e
