"""Pydantic models for palace configuration validation."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Supported provider types (all speak the OpenAI chat-completions protocol)
ProviderType = Literal["openai", "openrouter", "deepseek", "ollama", "vllm"]


class AuthMethod(str, Enum):
    """Authentication method for API requests."""

    BEARER = "bearer"  # Authorization: Bearer <key>
    NONE = "none"  # No auth (local Ollama / vLLM)


class ProviderConfig(BaseModel):
    """Configuration for the chat-completion endpoint.

    Example in config.json:
        "provider": {
            "type": "openai",
            "base_url": "https://api.openai.com/v1",
            "api_key_env": "OPENAI_API_KEY",
            "model": "gpt-4o"
        }
    """

    model_config = ConfigDict(extra="forbid")

    type: ProviderType = "openai"
    """Provider type: openai, openrouter, deepseek, ollama, vllm."""

    base_url: str = "https://api.openai.com/v1"
    """Base URL; requests go to <base_url>/chat/completions."""

    model: str = "gpt-4o"
    """Model identifier sent to the API."""

    api_key_env: str = "OPENAI_API_KEY"
    """Environment variable containing the API key."""

    api_key: str | None = None
    """Static API key. Takes precedence over api_key_env when set."""

    auth_method: AuthMethod = AuthMethod.BEARER
    """How to send the API key (bearer, none)."""

    extra_headers: dict[str, str] = {}
    """Additional headers to include in API requests."""

    request_timeout: float = Field(default=120.0, gt=0)
    """Timeout in seconds for API requests."""

    max_retries: int = Field(default=0, ge=0, le=10)
    """Retry attempts for retryable failures. 0 means a single attempt."""

    retry_backoff: float = Field(default=1.5, ge=1.0, le=5.0)
    """Exponential backoff multiplier between retries."""

    allow_insecure_http: bool = False
    """Allow HTTP (non-HTTPS) for non-localhost URLs. Development only."""

    verify_ssl: bool = True
    """Verify SSL certificates."""

    ssl_ca_cert: str | None = None
    """Path to a CA certificate bundle for SSL verification."""


class AgentConfig(BaseModel):
    """Configuration for the tool-calling agent loop.

    Example in config.json:
        "agent": {
            "max_iterations": 10,
            "temperature": 0.7
        }
    """

    model_config = ConfigDict(extra="forbid")

    max_iterations: int = Field(default=10, ge=1)
    """Maximum model round-trips per run (not tool invocations)."""

    system_prompt: str = (
        "You are a helpful assistant with access to the user's notes. "
        "Use the available tools when they help answer the question."
    )
    """Instruction prepended once as the system message of every request."""

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    """Sampling temperature."""

    stream: bool = True
    """Use the streaming transport (False = one JSON response per round)."""


class VaultConfig(BaseModel):
    """Location of the notes directory the built-in tools operate on."""

    model_config = ConfigDict(extra="forbid")

    root: str = "."
    """Vault root directory. Tool paths are resolved relative to it."""

    enabled: bool = True
    """Register the built-in note tools."""


class TranslatorConfig(BaseModel):
    """Configuration for document translation."""

    model_config = ConfigDict(extra="forbid")

    target_lang: str = "English"
    """Language to translate into."""

    system_prompt: str = ""
    """Custom system prompt. Empty = built-in prompt. {target_lang} is substituted."""

    max_chunk_size: int = Field(default=3000, ge=100)
    """Maximum characters per translation request."""

    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    """Sampling temperature for translation requests."""


class LoggingConfig(BaseModel):
    """Logging configuration.

    Example in config.json:
        "logging": {
            "level": "DEBUG",
            "file": "~/.palace/palace.log"
        }
    """

    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    """Console logging level."""

    file: str | None = None
    """Optional log file (rotating)."""


class Config(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    provider: ProviderConfig = ProviderConfig()
    agent: AgentConfig = AgentConfig()
    vault: VaultConfig = VaultConfig()
    translator: TranslatorConfig = TranslatorConfig()
    logging: LoggingConfig = LoggingConfig()
