"""
Configuration models

Pydantic models for the engine settings and provider metadata.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class ProviderKind(StrEnum):
    """Supported LLM vendors."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GOOGLE = "google"

    @classmethod
    def parse(cls, value: str | ProviderKind | None) -> ProviderKind:
        """Case-insensitive, accepts the short aliases; unknown values fall back to Anthropic."""
        if isinstance(value, ProviderKind):
            return value
        lower = (value or "").strip().lower()
        if lower in ("openai", "gpt"):
            return cls.OPENAI
        if lower in ("google", "gemini"):
            return cls.GOOGLE
        return cls.ANTHROPIC

    def default_model(self) -> str:
        return _DEFAULT_MODELS[self]

    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    def api_key_env_var(self) -> str:
        return _KEY_ENV_VARS[self]

    def validate_api_key(self, key: str | None) -> bool:
        if not key or not key.strip():
            return False
        if self is ProviderKind.ANTHROPIC:
            return key.startswith("sk-ant-")
        if self is ProviderKind.OPENAI:
            return key.startswith("sk-")
        return len(key) >= 20


_DEFAULT_MODELS = {
    ProviderKind.ANTHROPIC: "claude-sonnet-4-20250514",
    ProviderKind.OPENAI: "gpt-4o",
    ProviderKind.GOOGLE: "gemini-2.0-flash",
}

_DISPLAY_NAMES = {
    ProviderKind.ANTHROPIC: "Anthropic (Claude)",
    ProviderKind.OPENAI: "OpenAI (GPT)",
    ProviderKind.GOOGLE: "Google (Gemini)",
}

_KEY_ENV_VARS = {
    ProviderKind.ANTHROPIC: "ANTHROPIC_API_KEY",
    ProviderKind.OPENAI: "OPENAI_API_KEY",
    ProviderKind.GOOGLE: "GEMINI_API_KEY",
}


class RetrySettings(BaseModel):
    """Rate-limit retry policy for provider calls."""
    max_retries: int = Field(3, ge=0, description="Retries after a rate-limited attempt")
    base_delay: float = Field(10.0, ge=0, description="First backoff delay (seconds)")
    max_delay: float = Field(60.0, ge=0, description="Backoff ceiling (seconds)")


class AgentConfig(BaseModel):
    """Engine configuration"""
    provider: ProviderKind = Field(ProviderKind.ANTHROPIC, description="LLM vendor")
    api_key: str = Field("", description="Vendor API key")
    model: str | None = Field(None, description="Model id; vendor default when unset")
    base_url: str | None = Field(None, description="Endpoint override")
    max_tokens: int = Field(16384, gt=0, description="Max output tokens per round")
    temperature: float = Field(0.2, ge=0.0, le=2.0, description="Sampling temperature")
    system_prompt: str | None = Field(None, description="Replaces the built-in system prompt")
    max_tool_rounds: int = Field(25, gt=0, description="Consecutive tool rounds before failing")
    tool_timeout: float = Field(30.0, gt=0, description="Host execution timeout (seconds)")
    history_char_budget: int = Field(450_000, gt=0, description="History size before trimming")
    retry: RetrySettings = Field(default_factory=RetrySettings)

    @field_validator("provider", mode="before")
    @classmethod
    def _parse_provider(cls, value: object) -> ProviderKind:
        return ProviderKind.parse(value if isinstance(value, str) else None)

    @property
    def resolved_model(self) -> str:
        return self.model or self.provider.default_model()

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())
