"""
Scripted provider for tests and offline demos.

Replays queued responses in order, streaming each response's text in small
chunks so the orchestration loop sees real deltas. No API key needed.

    provider = ScriptedProvider([
        ProviderResponse(tool_uses=[ToolUse(id="t1", name="list_sheets")]),
        ProviderResponse(text="Here are the sheets..."),
    ])
"""

from __future__ import annotations

import asyncio
import copy
import json
from dataclasses import dataclass, field
from typing import Any, Callable

from ..types import ProviderResponse, ToolCallResult, ToolUse
from .base import BaseProvider, Emit, check_signal

ScriptEntry = ProviderResponse | Exception | Callable[[list[dict[str, Any]]], ProviderResponse]


@dataclass
class RecordedCall:
    history: list[dict[str, Any]]
    system_prompt: str
    tools: list[dict[str, Any]] = field(default_factory=list)


class ScriptedProvider(BaseProvider):
    name = "scripted"

    def __init__(
        self,
        script: list[ScriptEntry] | None = None,
        chunk_size: int = 8,
        chunk_delay: float = 0.0,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._script: list[ScriptEntry] = list(script or [])
        self.chunk_size = chunk_size
        self.chunk_delay = chunk_delay
        self.calls: list[RecordedCall] = []

    def queue(self, *entries: ScriptEntry) -> None:
        self._script.extend(entries)

    @property
    def remaining(self) -> int:
        return len(self._script)

    async def _do_send(
        self,
        history: list[dict[str, Any]],
        system_prompt: str,
        tools: list[dict[str, Any]],
        emit: Emit,
        signal: Any,
    ) -> ProviderResponse:
        self.calls.append(RecordedCall(copy.deepcopy(history), system_prompt, list(tools)))
        if not self._script:
            return ProviderResponse.failure("No scripted response left", "SCRIPT_EXHAUSTED")
        entry = self._script.pop(0)
        if isinstance(entry, Exception):
            raise entry
        scripted = entry(history) if callable(entry) else entry
        if not scripted.success:
            return scripted

        text = scripted.text or ""
        for i in range(0, len(text), max(self.chunk_size, 1)):
            check_signal(signal)
            if self.chunk_delay:
                await asyncio.sleep(self.chunk_delay)
                check_signal(signal)
            await emit(text[i:i + self.chunk_size])
        check_signal(signal)

        return ProviderResponse(
            text=text,
            tool_uses=[ToolUse(id=t.id, name=t.name, input=dict(t.input)) for t in scripted.tool_uses],
            stop_reason=scripted.stop_reason or ("tool_use" if scripted.tool_uses else "end_turn"),
        )

    def format_tools(self, declarations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return list(declarations)

    def format_assistant_turn(self, text: str, tool_uses: list[ToolUse]) -> dict[str, Any]:
        return {
            "role": "assistant",
            "content": text or "",
            "tool_uses": [{"id": t.id, "name": t.name, "input": t.input} for t in tool_uses],
        }

    def format_tool_results(self, results: list[ToolCallResult]) -> list[dict[str, Any]]:
        return [
            {"role": "tool", "tool_call_id": r.tool_call_id, "name": r.tool_name, "content": r.result_json}
            for r in results
        ]

    def parse_tool_results(self, messages: list[dict[str, Any]]) -> list[ToolCallResult]:
        inputs = {
            u["id"]: u.get("input") or {}
            for m in messages if m.get("role") == "assistant"
            for u in m.get("tool_uses", [])
        }
        return [
            ToolCallResult(
                tool_call_id=m["tool_call_id"],
                tool_name=m.get("name", ""),
                input=inputs.get(m["tool_call_id"], {}),
                result_json=m["content"] if isinstance(m["content"], str) else json.dumps(m["content"]),
            )
            for m in messages if m.get("role") == "tool"
        ]


def reply(text: str) -> ProviderResponse:
    """A final, tool-free scripted response."""
    return ProviderResponse(text=text, stop_reason="end_turn")


def call_tools(*uses: ToolUse, text: str = "") -> ProviderResponse:
    """A scripted response that asks for ``uses``, optionally with lead-in text."""
    return ProviderResponse(text=text, tool_uses=list(uses), stop_reason="tool_use")
