"""Create the provider adapter for a configured vendor."""

from __future__ import annotations

from ..config import AgentConfig, ProviderKind
from .anthropic import AnthropicProvider
from .base import BaseProvider, RetryConfig
from .gemini import GeminiProvider
from .openai import OpenAIProvider

_ADAPTERS: dict[ProviderKind, type[BaseProvider]] = {
    ProviderKind.ANTHROPIC: AnthropicProvider,
    ProviderKind.OPENAI: OpenAIProvider,
    ProviderKind.GOOGLE: GeminiProvider,
}


def create_provider(config: AgentConfig, **kwargs) -> BaseProvider:
    kwargs.setdefault(
        "retry",
        RetryConfig(
            max_retries=config.retry.max_retries,
            base_delay=config.retry.base_delay,
            max_delay=config.retry.max_delay,
        ),
    )
    adapter = _ADAPTERS.get(config.provider)
    if adapter is None:
        raise ValueError(f"Unknown LLM provider: {config.provider}")
    return adapter(config, **kwargs)
