"""
Tether - LLM agent orchestration for stateful host applications
===============================================================

A conversation loop that streams from an LLM provider, runs the tools the
model asks for on the host's single execution context, feeds the results back
and repeats until the model answers, the turn is cancelled, or it fails.

```python
from tether import Agent, HostBridge, ThreadedHost, ToolRegistry, load_config

registry = ToolRegistry()
registry.register(list_sheets)

agent = Agent(load_config(), registry=registry)
with ThreadedHost(agent.bridge, context_provider=lambda: document):
    result = await agent.process_turn("list sheets")
```
"""

from .agent import Agent, ProgressJournal, TurnLoop, build_history, build_system_prompt
from .bridge import HostBridge, HostSignal, ThreadedHost, ToolExecutionRequest
from .config import AgentConfig, ProviderKind, load_config, save_config
from .errors import (
    AgentAbortError,
    AgentMaxStepsError,
    HostUnavailableError,
    LLMAuthError,
    LLMError,
    LLMRateLimitError,
    LLMStreamInterruptedError,
    TetherError,
    ToolError,
    ToolTimeoutError,
)
from .events import EventBus
from .providers import (
    AnthropicProvider,
    BaseProvider,
    GeminiProvider,
    OpenAIProvider,
    ScriptedProvider,
    create_provider,
)
from .session import Session
from .tools import ParameterSchema, ToolRegistry, define_tool
from .types import (
    Message,
    ProviderResponse,
    Role,
    ToolCall,
    ToolCallResult,
    ToolCallStatus,
    ToolDefinition,
    ToolResult,
    ToolUse,
    TurnResult,
    TurnState,
)

__version__ = "0.1.0"

__all__ = [
    "Agent", "TurnLoop", "ProgressJournal", "build_history", "build_system_prompt",
    "HostBridge", "HostSignal", "ThreadedHost", "ToolExecutionRequest",
    "AgentConfig", "ProviderKind", "load_config", "save_config",
    "TetherError", "LLMError", "LLMRateLimitError", "LLMAuthError", "LLMStreamInterruptedError",
    "ToolError", "ToolTimeoutError", "HostUnavailableError", "AgentAbortError", "AgentMaxStepsError",
    "EventBus",
    "BaseProvider", "AnthropicProvider", "OpenAIProvider", "GeminiProvider", "ScriptedProvider",
    "create_provider",
    "Session",
    "ToolRegistry", "ParameterSchema", "define_tool",
    "Message", "Role", "ToolCall", "ToolCallStatus", "ToolResult", "ToolDefinition",
    "ToolCallResult", "ToolUse", "ProviderResponse", "TurnResult", "TurnState",
]
