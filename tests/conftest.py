"""
Pytest Configuration and Fixtures
"""

import time
from typing import Generator

import pytest
from pydantic import BaseModel, Field

from tether.bridge import HostBridge, ThreadedHost
from tether.config import AgentConfig
from tether.events import EventBus
from tether.providers import RetryConfig, ScriptedProvider
from tether.session import Session
from tether.tools import ParameterSchema, ToolRegistry, define_tool
from tether.types import ToolResult

HOST_DOCUMENT = {"name": "Tower.rvt", "sheets": ["A101", "A102", "A201"]}


class EchoParams(BaseModel):
    text: str = Field(..., description="Text to echo back")


def _echo(ctx, params: EchoParams) -> ToolResult:
    return ToolResult.ok(f"echo: {params.text}", {"text": params.text})


def _list_sheets(ctx, params) -> ToolResult:
    return ToolResult.ok(f"Found {len(ctx['sheets'])} sheets", {"sheets": list(ctx["sheets"])})


def _explode(ctx, params) -> ToolResult:
    raise RuntimeError("kaboom")


def _not_found(ctx, params) -> ToolResult:
    return ToolResult.fail(f"Element {params.get('element_id')} not found")


def _slow(ctx, params) -> ToolResult:
    time.sleep(float(params.get("seconds", 0.2)))
    return ToolResult.ok("done sleeping")


def make_tools():
    return [
        define_tool("echo", "Echo the given text", EchoParams, _echo),
        define_tool("list_sheets", "List all sheets in the open document", ParameterSchema(), _list_sheets),
        define_tool("explode", "Always raises", ParameterSchema(), _explode),
        define_tool(
            "get_element",
            "Look up an element by id",
            ParameterSchema().add("element_id", "integer", "Element id", required=True),
            _not_found,
        ),
        define_tool(
            "slow",
            "Sleep on the host thread",
            ParameterSchema().add("seconds", "number", "How long to sleep"),
            _slow,
        ),
    ]


@pytest.fixture
def registry() -> ToolRegistry:
    """Registry with the sample tools."""
    reg = ToolRegistry()
    reg.register_all(*make_tools())
    return reg


@pytest.fixture
def provider() -> ScriptedProvider:
    """Scripted provider with retries disabled."""
    return ScriptedProvider(retry=RetryConfig(max_retries=0, base_delay=0.0))


@pytest.fixture
def bridge(registry) -> HostBridge:
    return HostBridge(registry, timeout=2.0)


@pytest.fixture
def host(bridge) -> Generator[ThreadedHost, None, None]:
    """Reference host thread serving HOST_DOCUMENT."""
    h = ThreadedHost(bridge, context_provider=lambda: HOST_DOCUMENT)
    h.start()
    yield h
    h.stop()


@pytest.fixture
def session() -> Session:
    return Session(document_name=HOST_DOCUMENT["name"])


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def config() -> AgentConfig:
    return AgentConfig(api_key="sk-ant-test", max_tool_rounds=5, tool_timeout=2.0)
