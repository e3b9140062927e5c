"""OpenAI-compatible LLM provider."""

from __future__ import annotations

import itertools
import json
from typing import Any

import openai

from ..config import AgentConfig, ProviderKind
from ..errors import LLMAuthError, LLMError, LLMRateLimitError, LLMStreamInterruptedError
from ..types import ProviderResponse, ToolCallResult, ToolUse
from .base import BaseProvider, Emit, check_signal, parse_tool_input, retry_after_ms

_FINISH_REASONS = {
    "tool_calls": "tool_use",
    "function_call": "tool_use",
    "stop": "end_turn",
    "length": "max_tokens",
}


def _map_error(provider: str, e: openai.OpenAIError, partial: str) -> LLMError:
    if isinstance(e, openai.RateLimitError):
        return LLMRateLimitError(provider, retry_after_ms(e.response), detail=e.message)
    if isinstance(e, openai.AuthenticationError):
        return LLMAuthError(provider)
    if isinstance(e, openai.APIStatusError):
        return LLMError(
            "LLM_API_ERROR", provider, f"API Error {e.status_code}: {e.message}",
            status_code=e.status_code, cause=e,
        )
    if partial:
        return LLMStreamInterruptedError(provider, partial, cause=e)
    return LLMError("LLM_CONNECTION_ERROR", provider, str(e) or type(e).__name__, cause=e)


class OpenAIProvider(BaseProvider):
    """Chat Completions with streaming.

    Tool-call fragments are merged by index and emitted at the finish chunk;
    each tool result travels back as its own ``tool`` message.
    """

    name = "openai"
    kind = ProviderKind.OPENAI
    default_base_url: str | None = None
    call_id_prefix = "call_"

    def __init__(self, config: AgentConfig | None = None, client: Any = None, **kwargs) -> None:
        super().__init__(**kwargs)
        config = config or AgentConfig(provider=self.kind)
        self._client = client or openai.AsyncOpenAI(
            api_key=config.api_key or None,
            base_url=config.base_url or self.default_base_url,
        )
        self._model = config.model or self.kind.default_model()
        self._max_tokens = config.max_tokens
        self._temperature = config.temperature
        self._call_ids = itertools.count()

    async def _do_send(
        self,
        history: list[dict[str, Any]],
        system_prompt: str,
        tools: list[dict[str, Any]],
        emit: Emit,
        signal: Any,
    ) -> ProviderResponse:
        messages = list(history)
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})
        kwargs: dict = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "stream": True,
        }
        if tools:
            kwargs["tools"] = tools

        response = ProviderResponse()
        text_parts: list[str] = []
        tc_buffers: dict[int, dict] = {}
        try:
            stream = await self._client.chat.completions.create(**kwargs)
            async for chunk in stream:
                check_signal(signal)
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                finish = chunk.choices[0].finish_reason
                if delta and delta.content:
                    text_parts.append(delta.content)
                    await emit(delta.content)
                if delta and delta.tool_calls:
                    for tc in delta.tool_calls:
                        buf = tc_buffers.setdefault(tc.index, {"id": "", "name": "", "args": ""})
                        if tc.id:
                            buf["id"] = tc.id
                        if tc.function and tc.function.name:
                            buf["name"] = tc.function.name
                        if tc.function and tc.function.arguments:
                            buf["args"] += tc.function.arguments
                if finish:
                    response.stop_reason = _FINISH_REASONS.get(finish, finish)
        except openai.OpenAIError as e:
            raise _map_error(self.name, e, "".join(text_parts)) from e

        for idx in sorted(tc_buffers):
            buf = tc_buffers[idx]
            response.tool_uses.append(ToolUse(
                id=buf["id"] or f"{self.call_id_prefix}{next(self._call_ids)}",
                name=buf["name"],
                input=parse_tool_input(buf["args"], buf["name"]),
            ))
        response.text = "".join(text_parts)
        if response.tool_uses:
            response.stop_reason = "tool_use"
        elif response.stop_reason is None:
            response.stop_reason = "end_turn"
        return response

    def format_tools(self, declarations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": d["name"],
                    "description": d.get("description", ""),
                    "parameters": d["input_schema"],
                },
            }
            for d in declarations
        ]

    def format_assistant_turn(self, text: str, tool_uses: list[ToolUse]) -> dict[str, Any]:
        d: dict[str, Any] = {"role": "assistant", "content": text or ""}
        if tool_uses:
            d["tool_calls"] = [
                {
                    "id": tu.id,
                    "type": "function",
                    "function": {"name": tu.name, "arguments": json.dumps(tu.input)},
                }
                for tu in tool_uses
            ]
        return d

    def format_tool_results(self, results: list[ToolCallResult]) -> list[dict[str, Any]]:
        return [
            {"role": "tool", "tool_call_id": r.tool_call_id, "content": r.result_json}
            for r in results
        ]

    def parse_tool_results(self, messages: list[dict[str, Any]]) -> list[ToolCallResult]:
        calls: dict[str, dict] = {}
        out: list[ToolCallResult] = []
        for m in messages:
            if m.get("role") == "assistant":
                for tc in m.get("tool_calls") or []:
                    calls[tc["id"]] = tc["function"]
            elif m.get("role") == "tool":
                fn = calls.get(m["tool_call_id"], {})
                out.append(ToolCallResult(
                    tool_call_id=m["tool_call_id"],
                    tool_name=fn.get("name", ""),
                    input=parse_tool_input(fn.get("arguments"), fn.get("name", "")),
                    result_json=m.get("content", ""),
                ))
        return out
