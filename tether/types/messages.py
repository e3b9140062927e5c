"""Message types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from .tools import ToolResult


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ToolCallStatus(StrEnum):
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS: dict[ToolCallStatus, frozenset[ToolCallStatus]] = {
    ToolCallStatus.PENDING: frozenset({ToolCallStatus.EXECUTING}),
    ToolCallStatus.EXECUTING: frozenset({ToolCallStatus.COMPLETED, ToolCallStatus.FAILED}),
    ToolCallStatus.COMPLETED: frozenset(),
    ToolCallStatus.FAILED: frozenset(),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ToolCall:
    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)
    status: ToolCallStatus = ToolCallStatus.PENDING
    result: ToolResult | None = None

    def advance(self, status: ToolCallStatus) -> None:
        if status not in _TRANSITIONS[self.status]:
            raise ValueError(f"Tool call {self.id}: illegal transition {self.status} -> {status}")
        self.status = status

    def finish(self, result: ToolResult) -> None:
        """Attach the single result and settle the status from its success flag."""
        if self.result is not None:
            raise ValueError(f"Tool call {self.id} already has a result")
        self.advance(ToolCallStatus.COMPLETED if result.success else ToolCallStatus.FAILED)
        self.result = result

    @property
    def done(self) -> bool:
        return self.status in (ToolCallStatus.COMPLETED, ToolCallStatus.FAILED)


@dataclass(frozen=True)
class Message:
    role: Role
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if self.tool_calls and self.role != Role.ASSISTANT:
            raise ValueError("Only assistant messages carry tool calls")
        if not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str | None, tool_calls: list[ToolCall] | None = None) -> Message:
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tuple(tool_calls or ()))

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)
