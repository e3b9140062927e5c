"""Event types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .messages import Message
from .tools import ToolResult


class TurnState(StrEnum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING_TEXT = "streaming_text"
    TOOLS_REQUESTED = "tools_requested"
    EXECUTING_TOOLS = "executing_tools"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (TurnState.FINALIZED, TurnState.CANCELLED, TurnState.FAILED)


@dataclass
class TurnStartedEvent:
    user_text: str
    type: str = "turn:start"


@dataclass
class StateChangedEvent:
    previous: TurnState
    current: TurnState
    round: int = 0
    type: str = "turn:state"


@dataclass
class StatusEvent:
    status: str
    type: str = "turn:status"


@dataclass
class TextDeltaEvent:
    text: str
    type: str = "text:delta"


@dataclass
class ToolExecutingEvent:
    tool_call_id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)
    type: str = "tool:executing"


@dataclass
class ToolCompletedEvent:
    tool_call_id: str
    name: str
    result: ToolResult
    input: dict[str, Any] = field(default_factory=dict)
    duration_ms: int = 0
    type: str = "tool:completed"


@dataclass
class ErrorEvent:
    error: str
    recoverable: bool = False
    type: str = "turn:error"


@dataclass
class TurnCompletedEvent:
    state: TurnState
    message: Message | None = None
    rounds: int = 0
    duration_ms: int = 0
    type: str = "turn:completed"


@dataclass
class TurnResult:
    state: TurnState
    message: Message | None = None
    rounds: int = 0
    error: str | None = None
    duration_ms: int = 0

    @property
    def cancelled(self) -> bool:
        return self.state == TurnState.CANCELLED

    @property
    def failed(self) -> bool:
        return self.state == TurnState.FAILED


AgentEvent = (
    TurnStartedEvent
    | StateChangedEvent
    | StatusEvent
    | TextDeltaEvent
    | ToolExecutingEvent
    | ToolCompletedEvent
    | ErrorEvent
    | TurnCompletedEvent
)
