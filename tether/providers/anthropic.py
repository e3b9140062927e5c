"""Anthropic Claude LLM provider."""

from __future__ import annotations

import json
from typing import Any

import anthropic

from ..config import AgentConfig, ProviderKind
from ..errors import LLMAuthError, LLMError, LLMRateLimitError, LLMStreamInterruptedError
from ..types import ProviderResponse, ToolCallResult, ToolUse
from .base import BaseProvider, Emit, check_signal, parse_tool_input, retry_after_ms

_OVERLOADED = 529


def _map_error(e: anthropic.APIError, partial: str) -> LLMError:
    if isinstance(e, anthropic.RateLimitError):
        return LLMRateLimitError("anthropic", retry_after_ms(e.response), detail=e.message)
    if isinstance(e, anthropic.AuthenticationError):
        return LLMAuthError("anthropic")
    if isinstance(e, anthropic.APIStatusError):
        if e.status_code == _OVERLOADED:
            return LLMRateLimitError("anthropic", detail="overloaded")
        return LLMError(
            "LLM_API_ERROR", "anthropic", f"API Error {e.status_code}: {e.message}",
            status_code=e.status_code, cause=e,
        )
    if partial:
        return LLMStreamInterruptedError("anthropic", partial, cause=e)
    return LLMError("LLM_CONNECTION_ERROR", "anthropic", str(e) or type(e).__name__, cause=e)


class AnthropicProvider(BaseProvider):
    """Messages API with server-sent-event streaming.

    Assistant turns are typed content blocks; every tool result of a round is
    packed into a single ``user`` message of ``tool_result`` blocks.
    """

    name = "anthropic"

    def __init__(self, config: AgentConfig | None = None, client: Any = None, **kwargs) -> None:
        super().__init__(**kwargs)
        config = config or AgentConfig(provider=ProviderKind.ANTHROPIC)
        self._client = client or anthropic.AsyncAnthropic(
            api_key=config.api_key or None, base_url=config.base_url,
        )
        self._model = config.model or ProviderKind.ANTHROPIC.default_model()
        self._max_tokens = config.max_tokens
        self._temperature = config.temperature

    async def _do_send(
        self,
        history: list[dict[str, Any]],
        system_prompt: str,
        tools: list[dict[str, Any]],
        emit: Emit,
        signal: Any,
    ) -> ProviderResponse:
        kwargs: dict = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "messages": history,
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        if tools:
            kwargs["tools"] = tools

        response = ProviderResponse()
        text_parts: list[str] = []
        try:
            async with self._client.messages.stream(**kwargs) as stream:
                current: ToolUse | None = None
                input_parts: list[str] = []
                async for event in stream:
                    check_signal(signal)
                    etype = getattr(event, "type", "")
                    if etype == "content_block_start":
                        block = event.content_block
                        if block.type == "tool_use":
                            current = ToolUse(id=block.id, name=block.name)
                            input_parts = []
                    elif etype == "content_block_delta":
                        delta = event.delta
                        if delta.type == "text_delta":
                            text_parts.append(delta.text)
                            await emit(delta.text)
                        elif delta.type == "input_json_delta":
                            input_parts.append(delta.partial_json)
                    elif etype == "content_block_stop":
                        if current is not None:
                            current.input = parse_tool_input("".join(input_parts), current.name)
                            response.tool_uses.append(current)
                            current = None
                    elif etype == "message_delta":
                        stop = getattr(event.delta, "stop_reason", None)
                        if stop:
                            response.stop_reason = stop
        except anthropic.APIError as e:
            raise _map_error(e, "".join(text_parts)) from e

        response.text = "".join(text_parts)
        if response.stop_reason is None:
            response.stop_reason = "tool_use" if response.tool_uses else "end_turn"
        return response

    def format_tools(self, declarations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [
            {"name": d["name"], "description": d.get("description", ""), "input_schema": d["input_schema"]}
            for d in declarations
        ]

    def format_assistant_turn(self, text: str, tool_uses: list[ToolUse]) -> dict[str, Any]:
        blocks: list[dict] = []
        if text:
            blocks.append({"type": "text", "text": text})
        for tu in tool_uses:
            blocks.append({"type": "tool_use", "id": tu.id, "name": tu.name, "input": tu.input})
        return {"role": "assistant", "content": blocks}

    def format_tool_results(self, results: list[ToolCallResult]) -> list[dict[str, Any]]:
        blocks = []
        for r in results:
            block: dict[str, Any] = {
                "type": "tool_result",
                "tool_use_id": r.tool_call_id,
                "content": r.result_json,
            }
            if not r.success:
                block["is_error"] = True
            blocks.append(block)
        return [{"role": "user", "content": blocks}]

    def parse_tool_results(self, messages: list[dict[str, Any]]) -> list[ToolCallResult]:
        uses: dict[str, dict] = {}
        out: list[ToolCallResult] = []
        for m in messages:
            content = m.get("content")
            if not isinstance(content, list):
                continue
            for block in content:
                if block.get("type") == "tool_use":
                    uses[block["id"]] = block
                elif block.get("type") == "tool_result":
                    use = uses.get(block["tool_use_id"], {})
                    body = block.get("content", "")
                    out.append(ToolCallResult(
                        tool_call_id=block["tool_use_id"],
                        tool_name=use.get("name", ""),
                        input=use.get("input") or {},
                        result_json=body if isinstance(body, str) else json.dumps(body),
                    ))
        return out
