"""Configuration loading and validation."""

from palace.config.loader import DEFAULT_CONFIG, DEFAULTS_DIR, load_config
from palace.config.schema import (
    AgentConfig,
    AuthMethod,
    Config,
    LoggingConfig,
    ProviderConfig,
    TranslatorConfig,
    VaultConfig,
)

__all__ = [
    "AgentConfig",
    "AuthMethod",
    "Config",
    "DEFAULT_CONFIG",
    "DEFAULTS_DIR",
    "LoggingConfig",
    "ProviderConfig",
    "TranslatorConfig",
    "VaultConfig",
    "load_config",
]
