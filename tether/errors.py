"""Structured error hierarchy for the orchestration engine."""

from __future__ import annotations


class TetherError(Exception):
    def __init__(self, code: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.cause = cause


class LLMError(TetherError):
    def __init__(
        self,
        code: str,
        provider: str,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(code, message, cause)
        self.provider = provider
        self.status_code = status_code


class LLMRateLimitError(LLMError):
    def __init__(
        self, provider: str, retry_after_ms: int | None = None, detail: str = ""
    ) -> None:
        message = f"Rate limited by {provider}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__("LLM_RATE_LIMIT", provider, message, 429)
        self.retry_after_ms = retry_after_ms


class LLMAuthError(LLMError):
    def __init__(self, provider: str) -> None:
        super().__init__("LLM_AUTH_ERROR", provider, f"Auth failed for {provider}", 401)


class LLMStreamInterruptedError(LLMError):
    def __init__(
        self, provider: str, partial_content: str = "", cause: Exception | None = None
    ) -> None:
        super().__init__(
            "LLM_STREAM_INTERRUPTED", provider, f"Stream interrupted from {provider}", cause=cause
        )
        self.partial_content = partial_content


class ToolError(TetherError):
    def __init__(
        self, code: str, tool_name: str, message: str, cause: Exception | None = None
    ) -> None:
        super().__init__(code, message, cause)
        self.tool_name = tool_name


class ToolTimeoutError(ToolError):
    def __init__(self, tool_name: str, timeout_s: float) -> None:
        super().__init__(
            "TOOL_TIMEOUT",
            tool_name,
            f'Tool "{tool_name}" execution timed out after {timeout_s:g} seconds.',
        )
        self.timeout_s = timeout_s


class HostUnavailableError(ToolError):
    def __init__(self, tool_name: str, reason: str) -> None:
        super().__init__("HOST_UNAVAILABLE", tool_name, reason)


class AgentAbortError(TetherError):
    def __init__(self) -> None:
        super().__init__("AGENT_ABORT", "Agent execution was aborted")


class AgentMaxStepsError(TetherError):
    def __init__(self, steps: int, partial_content: str = "") -> None:
        super().__init__("AGENT_MAX_STEPS", f"Agent reached max tool rounds ({steps})")
        self.steps = steps
        self.partial_content = partial_content
