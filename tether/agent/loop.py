"""Turn loop — drive one user turn to a terminal state.

    Idle → Sending → StreamingText → (ToolsRequested → ExecutingTools → Sending)* → Finalized

Cancelled and Failed are reachable from every non-terminal state. The loop is
the only writer of the session; a cancelled turn rolls the session back so it
only ever holds fully completed turns.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from ..bridge import HostBridge
from ..config import AgentConfig
from ..errors import AgentAbortError, AgentMaxStepsError
from ..events import EventBus
from ..providers.base import check_signal
from ..session import Session
from ..tools import ToolRegistry
from ..types import (
    AgentEvent, ErrorEvent, LLMProvider, Message, ProviderResponse, StateChangedEvent,
    StatusEvent, TextDeltaEvent, ToolCall, ToolCallResult, ToolCallStatus, ToolCompletedEvent,
    ToolExecutingEvent, ToolResult, TurnCompletedEvent, TurnResult, TurnStartedEvent,
    TurnState,
)
from .history import build_history
from .progress import ProgressJournal
from .prompt import build_system_prompt

logger = logging.getLogger(__name__)

RATE_LIMIT_NOTICE = "API rate limit reached. Please wait about 1 minute and try again."


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class TurnLoop:
    def __init__(
        self,
        provider: LLMProvider,
        registry: ToolRegistry,
        bridge: HostBridge,
        session: Session,
        events: EventBus | None = None,
        config: AgentConfig | None = None,
        journal: ProgressJournal | None = None,
        system_prompt: str | None = None,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.bridge = bridge
        self.session = session
        self.events = events or EventBus()
        self.config = config or AgentConfig()
        self.journal = journal
        self.system_prompt = system_prompt or build_system_prompt(
            registry, override=self.config.system_prompt,
        )
        self._state = TurnState.IDLE
        self._round = 0

    @property
    def state(self) -> TurnState:
        return self._state

    async def run(self, user_text: str, signal: Any = None) -> TurnResult:
        start = time.monotonic()
        mark = self.session.mark()
        self._state = TurnState.IDLE
        self._round = 0
        await self._emit(TurnStartedEvent(user_text=user_text))

        try:
            result = await self._drive(user_text, signal)
        except AgentAbortError:
            result = await self._cancelled(mark)
        except asyncio.CancelledError:
            dropped = self.session.rollback(mark)
            self._state = TurnState.CANCELLED
            if self.journal:
                self.journal.interrupt_task("User cancelled")
            logger.info("Turn task cancelled, dropped %d messages", len(dropped))
            raise
        except Exception as e:
            logger.exception("Turn failed unexpectedly")
            result = await self._fail(f"Error: {e}", str(e))

        result.duration_ms = _elapsed_ms(start)
        await self._emit(TurnCompletedEvent(
            state=result.state, message=result.message,
            rounds=result.rounds, duration_ms=result.duration_ms,
        ))
        return result

    async def _drive(self, user_text: str, signal: Any) -> TurnResult:
        self.session.add_message(Message.user(user_text))
        history = build_history(self.session.messages, self.config.history_char_budget)
        declarations = self.registry.declarations()
        tool_rounds = 0

        while True:
            check_signal(signal)
            self._round += 1
            await self._transition(TurnState.SENDING)
            await self._emit(StatusEvent(status="Thinking..." if self._round == 1 else "Processing..."))

            deltas: list[str] = []

            async def on_delta(text: str) -> None:
                if not deltas:
                    await self._transition(TurnState.STREAMING_TEXT)
                deltas.append(text)
                await self._emit(TextDeltaEvent(text=text))

            response = await self.provider.send(
                history, self.system_prompt, declarations, on_delta, signal,
            )
            check_signal(signal)
            logger.debug(
                "Round %d: success=%s stop=%s tools=%d",
                self._round, response.success, response.stop_reason, len(response.tool_uses),
            )

            if not response.success:
                return await self._provider_failure(response)

            text = response.text or "".join(deltas)
            if not response.tool_uses:
                message = Message.assistant(text)
                self.session.add_message(message)
                if self.journal:
                    self.journal.complete_task(text)
                await self._transition(TurnState.FINALIZED)
                await self._emit(StatusEvent(status="Complete"))
                return TurnResult(state=TurnState.FINALIZED, message=message, rounds=self._round)

            if tool_rounds >= self.config.max_tool_rounds:
                err = AgentMaxStepsError(tool_rounds, text)
                return await self._fail(f"Error: {err}", str(err))

            await self._transition(TurnState.TOOLS_REQUESTED)
            calls = [ToolCall(id=u.id, name=u.name, input=dict(u.input)) for u in response.tool_uses]
            await self._transition(TurnState.EXECUTING_TOOLS)
            results: list[ToolCallResult] = []
            for call in calls:
                check_signal(signal)
                results.append(await self._execute(call, signal))

            self.session.add_message(Message.assistant(text, calls))
            history.append(self.provider.format_assistant_turn(text, response.tool_uses))
            history.extend(self.provider.format_tool_results(results))
            tool_rounds += 1

    async def _execute(self, call: ToolCall, signal: Any) -> ToolCallResult:
        call.advance(ToolCallStatus.EXECUTING)
        logger.info("Executing tool %s", call.name)
        await self._emit(ToolExecutingEvent(tool_call_id=call.id, name=call.name, input=dict(call.input)))
        await self._emit(StatusEvent(status=f"Running {call.name}..."))

        t0 = time.monotonic()
        if not self.registry.has(call.name):
            result = ToolResult.fail(f"Unknown tool: {call.name}")
        else:
            try:
                result = await self._invoke(call, signal)
            except (AgentAbortError, asyncio.CancelledError):
                raise
            except Exception as e:
                logger.exception("Tool %s failed outside the bridge", call.name)
                result = ToolResult.fail(f"Tool execution error: {e}")
        duration = _elapsed_ms(t0)

        try:
            result_json = result.to_json()
        except (TypeError, ValueError) as e:
            logger.warning("Tool %s returned unserializable data: %s", call.name, e)
            result = ToolResult.fail(f"Tool returned unserializable data: {e}")
            result_json = result.to_json()

        call.finish(result)
        if self.journal:
            self.journal.observe_tool(call.name, call.input, result)
        logger.info("Tool %s finished in %dms: success=%s", call.name, duration, result.success)
        await self._emit(ToolCompletedEvent(
            tool_call_id=call.id, name=call.name, result=result,
            input=dict(call.input), duration_ms=duration,
        ))
        return ToolCallResult(
            tool_call_id=call.id, tool_name=call.name,
            input=dict(call.input), result_json=result_json,
        )

    async def _invoke(self, call: ToolCall, signal: Any) -> ToolResult:
        """Await the bridge, giving up the wait (not the host work) on cancel."""
        invocation = asyncio.ensure_future(self.bridge.invoke(call.name, call.input))
        if not isinstance(signal, asyncio.Event):
            return await invocation
        watcher = asyncio.ensure_future(signal.wait())
        try:
            done, _ = await asyncio.wait({invocation, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            watcher.cancel()
            if not invocation.done():
                invocation.cancel()
        if invocation in done:
            return invocation.result()
        raise AgentAbortError()

    async def _provider_failure(self, response: ProviderResponse) -> TurnResult:
        error = response.error or "Unknown provider error"
        if response.rate_limited:
            if self.journal:
                self.journal.record_error("rate_limit", error, True)
                content = self.journal.rate_limit_notice()
            else:
                content = RATE_LIMIT_NOTICE
            return await self._fail(content, error, recoverable=True)
        if self.journal:
            self.journal.record_error("api_error", error, False)
        return await self._fail(f"Error: {error}", error)

    async def _fail(self, content: str, error: str, recoverable: bool = False) -> TurnResult:
        message = Message.system(content)
        self.session.add_message(message)
        logger.warning("Turn failed in round %d: %s", self._round, error)
        await self._emit(ErrorEvent(error=error, recoverable=recoverable))
        await self._transition(TurnState.FAILED)
        return TurnResult(state=TurnState.FAILED, message=message, rounds=self._round, error=error)

    async def _cancelled(self, mark: int) -> TurnResult:
        dropped = self.session.rollback(mark)
        if self.journal:
            self.journal.interrupt_task("User cancelled")
        logger.info("Turn cancelled in round %d, dropped %d messages", self._round, len(dropped))
        await self._transition(TurnState.CANCELLED)
        return TurnResult(state=TurnState.CANCELLED, rounds=self._round)

    async def _transition(self, state: TurnState) -> None:
        previous = self._state
        if previous == state:
            return
        self._state = state
        logger.debug("Turn state %s -> %s (round %d)", previous, state, self._round)
        await self._emit(StateChangedEvent(previous=previous, current=state, round=self._round))

    async def _emit(self, event: AgentEvent) -> None:
        await self.events.emit(event)
