"""
Progress journal — what the current task has done so far.

Tracks the running task and its per-tool steps, caches notable tool data and
remembers the last error. When a task is cut short by a rate limit and the
user answers with "continue", the journal produces a summary that is appended
to the user's text so the model resumes instead of starting over.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from ..types import ToolResult

logger = logging.getLogger(__name__)

CONTINUE_KEYWORDS = (
    "continue", "go on", "keep going",
    "resume", "carry on", "proceed",
    "go ahead", "next", "keep it up",
)

MAX_TOOL_HISTORY = 50

RESUME_HEADER = (
    "[SYSTEM: Previous session context - DO NOT repeat completed steps, "
    "continue from where you left off]"
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def is_continue_command(text: str | None) -> bool:
    if not text or not text.strip():
        return False
    lowered = text.strip().lower()
    return any(keyword in lowered for keyword in CONTINUE_KEYWORDS)


class TaskStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


@dataclass
class TaskStep:
    number: int
    name: str
    status: str = "pending"
    result: str | None = None
    started_at: datetime = field(default_factory=_now)
    ended_at: datetime | None = None


@dataclass
class TaskState:
    description: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    status: TaskStatus = TaskStatus.IN_PROGRESS
    steps: list[TaskStep] = field(default_factory=list)
    summary: str | None = None
    interrupt_reason: str | None = None
    started_at: datetime = field(default_factory=_now)
    ended_at: datetime | None = None


@dataclass
class ToolRecord:
    tool_name: str
    parameters: dict[str, Any]
    data: dict[str, Any]
    success: bool
    timestamp: datetime = field(default_factory=_now)


@dataclass
class ErrorInfo:
    kind: str
    message: str
    recoverable: bool
    timestamp: datetime = field(default_factory=_now)


class ProgressJournal:
    def __init__(self) -> None:
        self.current_task: TaskState | None = None
        self.tool_history: deque[ToolRecord] = deque(maxlen=MAX_TOOL_HISTORY)
        self.data_cache: dict[str, Any] = {}
        self.last_error: ErrorInfo | None = None

    # -- Task lifecycle --

    def start_task(self, description: str) -> TaskState:
        self.current_task = TaskState(description=description)
        logger.debug("Task %s started", self.current_task.id)
        return self.current_task

    def add_step(self, name: str, status: str = "pending", result: str | None = None) -> TaskStep | None:
        if self.current_task is None:
            return None
        step = TaskStep(number=len(self.current_task.steps) + 1, name=name, status=status, result=result)
        self.current_task.steps.append(step)
        return step

    def update_current_step(self, status: str, result: str | None = None) -> None:
        if self.current_task is None or not self.current_task.steps:
            return
        step = self.current_task.steps[-1]
        step.status = status
        step.result = result
        step.ended_at = _now()

    def complete_task(self, summary: str) -> None:
        if self.current_task is None:
            return
        self.current_task.status = TaskStatus.COMPLETED
        self.current_task.summary = summary
        self.current_task.ended_at = _now()

    def interrupt_task(self, reason: str) -> None:
        if self.current_task is None:
            return
        self.current_task.status = TaskStatus.INTERRUPTED
        self.current_task.interrupt_reason = reason
        self.current_task.ended_at = _now()
        logger.info("Task %s interrupted: %s", self.current_task.id, reason)

    # -- Tool outcomes --

    def record_tool_call(
        self, tool_name: str, parameters: dict[str, Any], data: dict[str, Any], success: bool,
    ) -> None:
        data = dict(data) if isinstance(data, dict) else {}
        self.tool_history.append(ToolRecord(tool_name, dict(parameters or {}), data, success))

    def last_tool_call(self, tool_name: str) -> ToolRecord | None:
        for record in reversed(self.tool_history):
            if record.tool_name == tool_name:
                return record
        return None

    def observe_tool(self, tool_name: str, parameters: dict[str, Any], result: ToolResult) -> None:
        """Fold one finished tool call into the journal."""
        status = "completed" if result.success else "failed"
        self.record_tool_call(tool_name, parameters, result.data, result.success)
        self.add_step(tool_name, status)
        self.update_current_step(status, result.message)
        if result.success and result.data:
            self.cache_data(f"{tool_name}_result", result.data)

    # -- Data cache --

    def cache_data(self, key: str, data: Any) -> None:
        self.data_cache[key] = data

    def get_cached(self, key: str, default: Any = None) -> Any:
        return self.data_cache.get(key, default)

    def has_cached(self, key: str) -> bool:
        return key in self.data_cache

    # -- Errors --

    def record_error(self, kind: str, message: str, recoverable: bool) -> None:
        self.last_error = ErrorInfo(kind, message, recoverable)
        if kind == "rate_limit":
            self.interrupt_task("API rate limit exceeded")

    def has_recoverable_interrupt(self) -> bool:
        return (
            self.current_task is not None
            and self.current_task.status == TaskStatus.INTERRUPTED
            and self.last_error is not None
            and self.last_error.recoverable
        )

    # -- Prompt helpers --

    def prepare_user_text(self, text: str) -> str:
        """Resume an interrupted task on "continue", otherwise open a new task."""
        continuing = is_continue_command(text)
        if continuing and self.has_recoverable_interrupt():
            summary = self.context_summary()
            logger.info("Injecting %d chars of task context for resume", len(summary))
            return f"{text}\n\n{RESUME_HEADER}\n{summary}"
        if not continuing:
            self.start_task(text)
        return text

    def context_summary(self) -> str:
        lines: list[str] = []
        task = self.current_task
        if task is not None:
            lines.append("## Current Task Context")
            lines.append(f"- Task: {task.description}")
            lines.append(f"- Status: {task.status}")
            if task.steps:
                lines.append(f"- Progress: {len(task.steps)} steps completed")
                lines.append("- Completed Steps:")
                for step in task.steps:
                    lines.append(f"  {step.number}. {step.name}: {step.status}")
                    if step.result:
                        lines.append(f"     Result: {step.result}")
            if task.status == TaskStatus.INTERRUPTED:
                lines.append(f"- Warning: Interrupted: {task.interrupt_reason}")
                lines.append("- User said 'continue' - resume from last successful step")

        if self.data_cache:
            lines.append("")
            lines.append("## Cached Data Available:")
            for key, data in self.data_cache.items():
                info = f"{len(data)} items" if isinstance(data, (list, dict, tuple, set)) else type(data).__name__
                lines.append(f"- {key}: {info}")
        return "\n".join(lines)

    def rate_limit_notice(self) -> str:
        steps = len(self.current_task.steps) if self.current_task else 0
        cached = len(self.data_cache)
        lines = [
            "**API Rate Limit**",
            "",
            "API rate limit reached. Please wait a moment before retrying.",
            "",
        ]
        if steps or cached:
            lines += [
                "**Progress has been saved.**",
                f"- {steps} steps completed",
                f"- {cached} data sets cached",
                "",
                'Wait about 1 minute, then send **"continue"** to resume from where you left off.',
            ]
        else:
            lines.append("Please wait about 1 minute and try again.")
        return "\n".join(lines)

    def reset(self) -> None:
        """Forget the task, cache and error. Tool history is kept."""
        self.current_task = None
        self.data_cache.clear()
        self.last_error = None
