"""palace - streaming tool-calling chat agent for OpenAI-compatible APIs."""

__version__ = "0.1.0"
