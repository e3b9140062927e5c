"""LLM provider types."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, runtime_checkable

from .tools import ToolCallResult

StopReason = Literal["end_turn", "tool_use", "max_tokens", "stop_sequence", "error"]

TextDeltaHandler = Callable[[str], Awaitable[None] | None]


@dataclass
class ToolUse:
    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderResponse:
    """Provider-agnostic result of one conversation round."""

    success: bool = True
    text: str = ""
    tool_uses: list[ToolUse] = field(default_factory=list)
    stop_reason: str | None = None
    error: str | None = None
    error_code: str | None = None

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_uses)

    @property
    def rate_limited(self) -> bool:
        return self.error_code == "LLM_RATE_LIMIT"

    @classmethod
    def failure(cls, error: str, code: str = "UNKNOWN", text: str = "") -> ProviderResponse:
        return cls(success=False, text=text, error=error, error_code=code, stop_reason="error")


@runtime_checkable
class LLMProvider(Protocol):
    name: str

    async def send(
        self,
        history: list[dict[str, Any]],
        system_prompt: str,
        tools: list[dict[str, Any]],
        on_text_delta: TextDeltaHandler | None = None,
        signal: Any = None,
    ) -> ProviderResponse: ...

    def format_assistant_turn(self, text: str, tool_uses: list[ToolUse]) -> dict[str, Any]: ...

    def format_tool_results(self, results: list[ToolCallResult]) -> list[dict[str, Any]]: ...

    def parse_tool_results(self, messages: list[dict[str, Any]]) -> list[ToolCallResult]: ...
