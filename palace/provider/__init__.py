"""Chat-completion providers for palace.

Every supported provider type speaks the OpenAI chat-completions protocol;
the type only selects defaults for base_url, api_key_env and auth_method.

Example:
    from palace.provider import create_provider
    from palace.config.schema import ProviderConfig

    provider = create_provider(ProviderConfig(type="ollama", model="llama3.2"))
"""

from typing import TYPE_CHECKING, Any

from palace.config.schema import AuthMethod
from palace.core.errors import ConfigError
from palace.provider.base import BaseProvider, validate_base_url
from palace.provider.openai_compat import OpenAICompatProvider
from palace.provider.stream import StreamDecoder, decode_stream

if TYPE_CHECKING:
    from palace.config.schema import ProviderConfig
    from palace.core.interfaces import RawLogCallback


# Provider type defaults, applied to fields the user left unset
PROVIDER_DEFAULTS: dict[str, dict[str, Any]] = {
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "api_key_env": "OPENAI_API_KEY",
        "auth_method": AuthMethod.BEARER,
    },
    "openrouter": {
        "base_url": "https://openrouter.ai/api/v1",
        "api_key_env": "OPENROUTER_API_KEY",
        "auth_method": AuthMethod.BEARER,
    },
    "deepseek": {
        "base_url": "https://api.deepseek.com/v1",
        "api_key_env": "DEEPSEEK_API_KEY",
        "auth_method": AuthMethod.BEARER,
    },
    "ollama": {
        "base_url": "http://localhost:11434/v1",
        "api_key_env": "",
        "auth_method": AuthMethod.NONE,
    },
    "vllm": {
        "base_url": "http://localhost:8000/v1",
        "api_key_env": "",
        "auth_method": AuthMethod.NONE,
    },
}


def create_provider(
    config: "ProviderConfig",
    model_id: str | None = None,
    raw_log: "RawLogCallback | None" = None,
) -> OpenAICompatProvider:
    """Create a provider instance based on config.type.

    Fields not explicitly set in the config fall back to the type's entry in
    PROVIDER_DEFAULTS, so `{"type": "ollama"}` alone is a working config.

    Raises:
        ConfigError: If the provider type is unknown.
        ProviderError: If the base_url is rejected or an API key is missing.
    """
    provider_type = config.type.lower()
    defaults = PROVIDER_DEFAULTS.get(provider_type)
    if defaults is None:
        supported = ", ".join(PROVIDER_DEFAULTS)
        raise ConfigError(f"Unknown provider type: '{provider_type}'. Supported: {supported}")

    overrides = {
        key: value for key, value in defaults.items() if key not in config.model_fields_set
    }
    if overrides:
        config = config.model_copy(update=overrides)

    return OpenAICompatProvider(config, model_id, raw_log)


__all__ = [
    "BaseProvider",
    "OpenAICompatProvider",
    "PROVIDER_DEFAULTS",
    "StreamDecoder",
    "create_provider",
    "decode_stream",
    "validate_base_url",
]
