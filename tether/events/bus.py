"""Typed event bus — publish/subscribe with pattern matching."""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Awaitable, Callable

from ..types import AgentEvent

logger = logging.getLogger(__name__)

Handler = Callable[[AgentEvent], Awaitable[None] | None]


class EventBus:
    """Event bus with pattern matching (e.g. 'tool:*').

    Handlers may be plain functions or coroutines. A failing handler is logged
    and never interrupts the emitter.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._wildcard: list[Handler] = []

    def on(self, event_type: str, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def on_pattern(self, pattern: str, handler: Handler) -> None:
        if not pattern.endswith(":*"):
            raise ValueError(f"Pattern must end with ':*', got {pattern!r}")
        self._handlers[pattern].append(handler)

    def on_all(self, handler: Handler) -> None:
        self._wildcard.append(handler)

    def off(self, event_type: str, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
        if handler in self._wildcard and event_type == "*":
            self._wildcard.remove(handler)

    async def emit(self, event: AgentEvent) -> None:
        event_type = getattr(event, "type", "")
        for h in self._handlers.get(event_type, []) + self._wildcard:
            await self._call(h, event, event_type)
        # 'tool:*' matches 'tool:executing', 'tool:completed'
        for pat, handlers in list(self._handlers.items()):
            if not pat.endswith(":*"):
                continue
            if event_type.startswith(pat[:-1]):
                for h in handlers:
                    await self._call(h, event, pat)

    @staticmethod
    async def _call(handler: Handler, event: AgentEvent, label: str) -> None:
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Event handler error for %s", label)
