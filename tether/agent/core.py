"""Agent — service facade over one conversation. Composition over inheritance."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from ..bridge import HostBridge
from ..config import AgentConfig
from ..events import EventBus
from ..providers import create_provider
from ..session import Session
from ..tools import ToolRegistry
from ..types import LLMProvider, Message, Tool, TurnResult, TurnState
from .loop import TurnLoop
from .progress import ProgressJournal
from .prompt import build_system_prompt

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "API key not configured. Please add your API key to the configuration."


class Agent:
    """Owns the session, tools, bridge, provider and event bus.

    One turn runs at a time: ``process_turn`` first cancels and awaits any
    turn still in flight, so its partial state is discarded before the new
    one starts.
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        provider: LLMProvider | None = None,
        registry: ToolRegistry | None = None,
        bridge: HostBridge | None = None,
        events: EventBus | None = None,
        journal: ProgressJournal | None = None,
        host_description: str | None = None,
    ) -> None:
        self.config = config or AgentConfig()
        self.registry = registry or ToolRegistry()
        self.bridge = bridge or HostBridge(self.registry, timeout=self.config.tool_timeout)
        self.events = events or EventBus()
        self.journal = journal or ProgressJournal()
        self.host_description = host_description
        self._provider = provider
        self._session = Session()
        self._active: tuple[asyncio.Event, asyncio.Future] | None = None

    @property
    def session(self) -> Session:
        return self._session

    @property
    def is_ready(self) -> bool:
        return self._provider is not None or self.config.is_configured()

    @property
    def busy(self) -> bool:
        return self._active is not None and not self._active[1].done()

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = create_provider(self.config)
            logger.info("Provider %s initialized (model=%s)", self._provider.name, self.config.resolved_model)
        return self._provider

    def register(self, *tools: Tool) -> None:
        self.registry.register_all(*tools)

    def on(self, event_type: str, handler: Callable) -> None:
        self.events.on(event_type, handler)

    def new_session(self, document_name: str | None = None) -> Session:
        self.cancel()
        self._session = Session(document_name)
        return self._session

    def cancel(self) -> bool:
        """Signal the in-flight turn to stop. Returns False when nothing is running."""
        if not self.busy:
            return False
        self._active[0].set()
        return True

    async def process_turn(self, user_text: str, signal: asyncio.Event | None = None) -> TurnResult:
        logger.info("process_turn: %.200s", user_text)
        if not self.is_ready:
            return TurnResult(state=TurnState.FAILED, message=Message.system(NOT_CONFIGURED), error=NOT_CONFIGURED)

        await self._cancel_active()

        loop = TurnLoop(
            provider=self.provider,
            registry=self.registry,
            bridge=self.bridge,
            session=self._session,
            events=self.events,
            config=self.config,
            journal=self.journal,
            system_prompt=build_system_prompt(
                self.registry, self.host_description, self.config.system_prompt,
            ),
        )
        # The turn owns its Event; the caller's signal only feeds into it
        turn_signal = asyncio.Event()
        relay = _relay(signal, turn_signal) if signal is not None else None
        task = asyncio.ensure_future(loop.run(self.journal.prepare_user_text(user_text), turn_signal))
        self._active = (turn_signal, task)
        try:
            return await task
        finally:
            if relay is not None:
                relay.cancel()
            if self._active is not None and self._active[1] is task:
                self._active = None

    async def _cancel_active(self) -> None:
        if self._active is None:
            return
        signal, task = self._active
        signal.set()
        if not task.done():
            logger.info("Cancelling in-flight turn before starting a new one")
            await asyncio.wait({task})

    def __repr__(self) -> str:
        return f"Agent(provider={self.config.provider}, tools={len(self.registry)}, {self._session!r})"


def _relay(source: asyncio.Event, target: asyncio.Event) -> asyncio.Future:
    if source.is_set():
        target.set()

    async def _forward() -> None:
        await source.wait()
        target.set()

    return asyncio.ensure_future(_forward())
