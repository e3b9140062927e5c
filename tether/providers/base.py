"""Base LLM provider with rate-limit retry and circuit breaker."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from ..errors import AgentAbortError, LLMError, LLMRateLimitError
from ..types import ProviderResponse, TextDeltaHandler, ToolCallResult, ToolUse

logger = logging.getLogger(__name__)

Emit = Callable[[str], Awaitable[None]]


@dataclass
class RetryConfig:
    max_retries: int = 3
    base_delay: float = 10.0
    max_delay: float = 60.0


@dataclass
class CircuitBreakerConfig:
    failure_threshold: int = 5
    reset_time: float = 60.0


def is_cancelled(signal: Any) -> bool:
    return bool(signal and (signal.is_set() if hasattr(signal, "is_set") else False))


def check_signal(signal: Any) -> None:
    if is_cancelled(signal):
        raise AgentAbortError()


def retry_after_ms(response: Any) -> int | None:
    """Read the ``retry-after`` header (seconds) from an SDK error response."""
    headers = getattr(response, "headers", None)
    value = headers.get("retry-after") if headers is not None else None
    if not value:
        return None
    try:
        return max(int(float(value) * 1000), 0)
    except ValueError:
        return None


def parse_tool_input(raw: str | dict | None, tool_name: str = "") -> dict[str, Any]:
    """Decode streamed tool arguments; anything but a JSON object becomes ``{}``."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Malformed tool input for %s: %.200s", tool_name or "?", raw)
        return {}
    return value if isinstance(value, dict) else {}


class BaseProvider:
    """Abstract base. Subclass and implement ``_do_send`` plus the format methods.

    ``send`` never raises for provider faults: network, auth and rate-limit
    errors come back as a failed ProviderResponse. Cancellation is not a
    fault and propagates as AgentAbortError / CancelledError.
    """

    name = "base"

    def __init__(
        self,
        retry: RetryConfig | None = None,
        circuit_breaker: CircuitBreakerConfig | None = None,
    ) -> None:
        self._retry = retry or RetryConfig()
        self._cb = circuit_breaker or CircuitBreakerConfig()
        self._failures = 0
        self._last_failure = 0.0

    async def send(
        self,
        history: list[dict[str, Any]],
        system_prompt: str,
        tools: list[dict[str, Any]],
        on_text_delta: TextDeltaHandler | None = None,
        signal: Any = None,
    ) -> ProviderResponse:
        if self._circuit_open():
            return ProviderResponse.failure(
                f"{self.name}: circuit breaker open after {self._failures} failures",
                "LLM_CIRCUIT_OPEN",
            )
        wire_tools = self.format_tools(tools) if tools else []

        attempt = 0
        while True:
            check_signal(signal)
            streamed = False

            async def emit(text: str) -> None:
                nonlocal streamed
                streamed = True
                if on_text_delta is None:
                    return
                result = on_text_delta(text)
                if inspect.isawaitable(result):
                    await result

            try:
                response = await self._do_send(history, system_prompt, wire_tools, emit, signal)
            except (AgentAbortError, asyncio.CancelledError):
                raise
            except LLMRateLimitError as e:
                if streamed or attempt >= self._retry.max_retries:
                    self._record_failure()
                    return ProviderResponse.failure(str(e), e.code)
                delay = self._backoff(attempt, e.retry_after_ms)
                attempt += 1
                logger.warning(
                    "%s rate limited (attempt %d/%d), retrying in %.1fs",
                    self.name, attempt, self._retry.max_retries, delay,
                )
                await _sleep(delay, signal)
                continue
            except LLMError as e:
                self._record_failure()
                logger.warning("%s request failed: %s", self.name, e)
                return ProviderResponse.failure(str(e), e.code, text=getattr(e, "partial_content", ""))
            except Exception as e:
                self._record_failure()
                logger.exception("%s request raised unexpectedly", self.name)
                return ProviderResponse.failure(str(e) or type(e).__name__, "LLM_ERROR")

            if response.success:
                self._failures = 0
            else:
                self._record_failure()
            logger.debug(
                "%s response: stop=%s tool_uses=%d text=%d chars",
                self.name, response.stop_reason, len(response.tool_uses), len(response.text),
            )
            return response

    # -- Override these --

    async def _do_send(
        self,
        history: list[dict[str, Any]],
        system_prompt: str,
        tools: list[dict[str, Any]],
        emit: Emit,
        signal: Any,
    ) -> ProviderResponse:
        raise NotImplementedError

    def format_tools(self, declarations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        raise NotImplementedError

    def format_assistant_turn(self, text: str, tool_uses: list[ToolUse]) -> dict[str, Any]:
        raise NotImplementedError

    def format_tool_results(self, results: list[ToolCallResult]) -> list[dict[str, Any]]:
        raise NotImplementedError

    def parse_tool_results(self, messages: list[dict[str, Any]]) -> list[ToolCallResult]:
        raise NotImplementedError

    # -- Internals --

    def _circuit_open(self) -> bool:
        if self._failures >= self._cb.failure_threshold:
            if time.time() - self._last_failure < self._cb.reset_time:
                return True
            self._failures = 0
        return False

    def _record_failure(self) -> None:
        self._failures += 1
        self._last_failure = time.time()

    def _backoff(self, attempt: int, retry_after_ms: int | None = None) -> float:
        if self._retry.base_delay <= 0:
            return 0.0
        if retry_after_ms is not None:
            return min(retry_after_ms / 1000, self._retry.max_delay)
        return min(
            self._retry.base_delay * (2 ** attempt) + random.random() * 0.1,
            self._retry.max_delay,
        )


async def _sleep(delay: float, signal: Any) -> None:
    if delay <= 0:
        return
    if isinstance(signal, asyncio.Event):
        try:
            await asyncio.wait_for(signal.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise AgentAbortError()
    await asyncio.sleep(delay)
