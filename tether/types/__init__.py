"""Core type definitions — re-exported from sub-modules."""

from .messages import Message, Role, ToolCall, ToolCallStatus
from .tools import Tool, ToolCallResult, ToolDefinition, ToolResult, ToolSchema
from .llm import LLMProvider, ProviderResponse, StopReason, TextDeltaHandler, ToolUse
from .events import (
    AgentEvent, ErrorEvent, StateChangedEvent, StatusEvent, TextDeltaEvent,
    ToolCompletedEvent, ToolExecutingEvent, TurnCompletedEvent, TurnResult,
    TurnStartedEvent, TurnState,
)

__all__ = [
    "Message", "Role", "ToolCall", "ToolCallStatus",
    "Tool", "ToolCallResult", "ToolDefinition", "ToolResult", "ToolSchema",
    "LLMProvider", "ProviderResponse", "StopReason", "TextDeltaHandler", "ToolUse",
    "AgentEvent", "ErrorEvent", "StateChangedEvent", "StatusEvent", "TextDeltaEvent",
    "ToolCompletedEvent", "ToolExecutingEvent", "TurnCompletedEvent", "TurnResult",
    "TurnStartedEvent", "TurnState",
]
