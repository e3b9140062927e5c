"""Host execution bridge: run tools on the host's single execution context.

The host exposes its mutable state on one logical thread it schedules itself.
Async callers install a request in a single mutex-guarded slot, wake the host
through a ``HostSignal`` and await a one-shot completion handle. The host, on
its own turn, calls ``drain`` to take the slot and run the tool to completion.

Every failure mode (unknown tool, host not attached, rejected wake-up,
timeout, tool exception) comes back as a failed ToolResult; nothing raises
across the bridge except the caller's own task cancellation.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..errors import HostUnavailableError, ToolTimeoutError
from ..tools import ToolRegistry
from ..types import ToolResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@runtime_checkable
class HostSignal(Protocol):
    def request_execution(self) -> bool:
        """Ask the host to call ``drain`` soon. Returns False when the host refuses."""
        ...


@dataclass
class ToolExecutionRequest:
    tool_name: str
    parameters: dict[str, Any] = field(default_factory=dict)
    future: Future = field(default_factory=Future)
    created_at: float = field(default_factory=time.monotonic)
    abandoned: bool = False


class HostBridge:
    def __init__(
        self,
        registry: ToolRegistry,
        signal: HostSignal | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._registry = registry
        self._signal = signal
        self.timeout = timeout
        self._lock = threading.Lock()
        self._slot: ToolExecutionRequest | None = None
        self._dispatch: asyncio.Lock | None = None
        self._waiting = 0

    # -- Host wiring --

    def attach(self, signal: HostSignal) -> None:
        self._signal = signal
        logger.debug("Host attached: %s", type(signal).__name__)

    def detach(self, signal: HostSignal | None = None) -> None:
        if signal is None or self._signal is signal:
            self._signal = None

    @property
    def is_attached(self) -> bool:
        return self._signal is not None

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def in_flight(self) -> int:
        """Requests with a caller still waiting on them (0 or 1)."""
        return self._waiting

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._slot is not None

    # -- Caller side (async domain) --

    async def invoke(self, tool_name: str, parameters: dict[str, Any] | None = None) -> ToolResult:
        logger.debug("invoke: %s", tool_name)
        if not self._registry.has(tool_name):
            return ToolResult.fail(f"Unknown tool: {tool_name}")
        if self._signal is None:
            return ToolResult.fail(str(HostUnavailableError(tool_name, "Host execution context not attached.")))

        if self._dispatch is None:
            self._dispatch = asyncio.Lock()
        async with self._dispatch:
            return await self._round_trip(tool_name, dict(parameters or {}))

    async def _round_trip(self, tool_name: str, parameters: dict[str, Any]) -> ToolResult:
        signal = self._signal
        if signal is None:
            return ToolResult.fail(str(HostUnavailableError(tool_name, "Host execution context not attached.")))

        request = ToolExecutionRequest(tool_name=tool_name, parameters=parameters)
        self._install(request)
        try:
            accepted = signal.request_execution()
        except Exception as e:
            logger.exception("Signalling host failed for %s", tool_name)
            self._withdraw(request)
            return ToolResult.fail(f"Failed to signal host: {e}")
        if not accepted:
            self._withdraw(request)
            logger.warning("Host rejected execution request for %s", tool_name)
            return ToolResult.fail("Failed to raise host event: request rejected.")

        self._waiting += 1
        try:
            return await asyncio.wait_for(asyncio.wrap_future(request.future), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._abandon(request)
            err = ToolTimeoutError(tool_name, self.timeout)
            logger.warning("%s", err)
            return ToolResult.fail(str(err))
        except asyncio.CancelledError:
            self._abandon(request)
            raise
        finally:
            self._waiting -= 1

    def _install(self, request: ToolExecutionRequest) -> None:
        with self._lock:
            stale, self._slot = self._slot, request
        if stale is not None:
            # Nobody waits on a request still sitting in the slot here
            stale.abandoned = True
            if stale.future.set_running_or_notify_cancel():
                stale.future.set_result(ToolResult.fail("Superseded by a newer request"))
            logger.warning("Superseded stale request for %s", stale.tool_name)

    def _withdraw(self, request: ToolExecutionRequest) -> None:
        with self._lock:
            if self._slot is request:
                self._slot = None
        request.future.cancel()

    def _abandon(self, request: ToolExecutionRequest) -> None:
        with self._lock:
            request.abandoned = True
            if self._slot is request:
                self._slot = None
        request.future.cancel()

    # -- Host side (host execution context) --

    def drain(self, host_context: Any) -> bool:
        """Take the current request, run it and resolve its handle.

        Called by the host's scheduler on its own thread. Returns True when a
        tool ran.
        """
        with self._lock:
            request, self._slot = self._slot, None
        if request is None:
            return False
        if not request.future.set_running_or_notify_cancel():
            logger.debug("Dropping request for %s: caller gave up before it started", request.tool_name)
            return False

        result = self._execute(request, host_context)
        request.future.set_result(result)
        if request.abandoned:
            logger.warning(
                "Discarding late result for %s after %.1fs",
                request.tool_name, time.monotonic() - request.created_at,
            )
        return True

    def _execute(self, request: ToolExecutionRequest, host_context: Any) -> ToolResult:
        tool = self._registry.get(request.tool_name)
        if tool is None:
            return ToolResult.fail(f"Unknown tool: {request.tool_name}")
        if host_context is None:
            return ToolResult.fail("No active document. Please open a document in the host first.")
        try:
            result = tool.execute(host_context, request.parameters)
        except Exception as e:
            logger.exception("Tool %s raised during execution", request.tool_name)
            return ToolResult.fail(f"Tool execution failed: {e}")
        if result is None:
            return ToolResult.fail("Tool returned no result")
        if not isinstance(result, ToolResult):
            return ToolResult.fail("Tool returned invalid result")
        logger.debug("Tool %s finished: success=%s", request.tool_name, result.success)
        return result
