"""Tool types."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class ToolSchema(Protocol):
    def to_json_schema(self) -> dict: ...


@dataclass
class ToolResult:
    success: bool
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    warning: str | None = None

    def __post_init__(self) -> None:
        if self.data is None:
            self.data = {}

    @classmethod
    def ok(cls, message: str, data: dict[str, Any] | None = None) -> ToolResult:
        return cls(success=True, message=message, data=data or {})

    @classmethod
    def fail(cls, message: str, data: dict[str, Any] | None = None) -> ToolResult:
        return cls(success=False, message=message, data=data or {})

    @classmethod
    def with_warning(cls, message: str, data: dict[str, Any] | None = None) -> ToolResult:
        return cls(success=True, message=message, data=data or {}, warning=message)

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "warning": self.warning,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), ensure_ascii=False, default=str)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ToolResult:
        return cls(
            success=bool(payload.get("success")),
            message=payload.get("message") or "",
            data=payload.get("data") or {},
            warning=payload.get("warning"),
        )


@dataclass
class ToolDefinition:
    """A host capability: ``execute(host_context, params) -> ToolResult``.

    ``execute`` runs synchronously and only on the host execution context.
    """

    name: str
    description: str
    parameters: ToolSchema
    execute: Callable[[Any, dict[str, Any]], ToolResult]

    def declaration(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters.to_json_schema(),
        }


@runtime_checkable
class Tool(Protocol):
    name: str
    description: str
    parameters: ToolSchema

    def execute(self, host_context: Any, params: dict[str, Any]) -> ToolResult: ...


@dataclass
class ToolCallResult:
    """Correlates an executed tool call with its serialized result."""

    tool_call_id: str
    tool_name: str
    input: dict[str, Any] = field(default_factory=dict)
    result_json: str = "{}"

    @property
    def success(self) -> bool:
        try:
            return bool(json.loads(self.result_json).get("success"))
        except (json.JSONDecodeError, AttributeError):
            return False
