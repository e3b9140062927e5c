"""LLM provider protocol re-export and adapters."""

from ..types import LLMProvider, ProviderResponse, ToolUse
from .anthropic import AnthropicProvider
from .base import BaseProvider, CircuitBreakerConfig, RetryConfig
from .factory import create_provider
from .gemini import GeminiProvider
from .openai import OpenAIProvider
from .scripted import ScriptedProvider

__all__ = [
    "LLMProvider", "ProviderResponse", "ToolUse",
    "BaseProvider", "RetryConfig", "CircuitBreakerConfig",
    "AnthropicProvider", "OpenAIProvider", "GeminiProvider", "ScriptedProvider",
    "create_provider",
]
