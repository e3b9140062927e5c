"""System prompt assembly."""

from __future__ import annotations

from ..tools import ToolRegistry

BASE_PROMPT = """You are an assistant embedded in a host application. You can inspect and change \
the open document only through the tools listed below.

Guidelines:
- Prefer reading before writing: gather what you need with query tools first.
- Call tools with exactly the parameters their schema declares.
- When a tool fails, read its message, fix the input and try again instead of giving up.
- Keep answers short and report what was actually changed."""


def build_system_prompt(
    registry: ToolRegistry,
    host_description: str | None = None,
    override: str | None = None,
) -> str:
    if override:
        return override
    parts = [BASE_PROMPT]
    if host_description:
        parts.append(f"## Host\n{host_description}")
    if len(registry):
        listing = "\n".join(f"- {t.name}: {t.description}" for t in registry.list())
        parts.append(f"## Available tools\n{listing}")
    return "\n\n".join(parts)
