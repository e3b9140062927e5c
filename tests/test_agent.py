"""Tests for the Agent facade."""

import asyncio
import time

import pytest

from tether import Agent
from tether.agent.core import NOT_CONFIGURED
from tether.agent.progress import RESUME_HEADER
from tether.config import AgentConfig
from tether.providers import AnthropicProvider
from tether.providers.scripted import call_tools, reply
from tether.tools import ParameterSchema, define_tool
from tether.types import ProviderResponse, Role, ToolResult, ToolUse, TurnState


async def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


@pytest.fixture
def agent(config, provider, registry, bridge, host):
    return Agent(config, provider=provider, registry=registry, bridge=bridge, host_description="Revit 2024")


class TestConfiguration:
    async def test_not_configured(self):
        agent = Agent(AgentConfig())
        assert not agent.is_ready

        result = await agent.process_turn("hello")

        assert result.state == TurnState.FAILED
        assert result.message.role == Role.SYSTEM
        assert result.message.content == NOT_CONFIGURED
        assert len(agent.session) == 0

    def test_provider_created_from_config(self):
        agent = Agent(AgentConfig(api_key="sk-ant-test"))
        assert agent.is_ready
        assert isinstance(agent.provider, AnthropicProvider)
        assert agent.provider is agent.provider

    def test_register(self):
        agent = Agent(AgentConfig(api_key="sk-ant-test"))
        agent.register(define_tool("ping", "Ping", ParameterSchema(), lambda ctx, p: ToolResult.ok("pong")))
        assert agent.registry.has("ping")
        assert "tools=1" in repr(agent)


class TestProcessTurn:
    async def test_text_turn(self, agent, provider):
        provider.queue(reply("Hi!"))
        result = await agent.process_turn("hello")

        assert result.state == TurnState.FINALIZED
        assert result.message.content == "Hi!"
        assert len(agent.session) == 2
        assert not agent.busy

    async def test_host_description_in_prompt(self, agent, provider):
        provider.queue(reply("ok"))
        await agent.process_turn("hello")
        assert "## Host\nRevit 2024" in provider.calls[0].system_prompt

    async def test_tool_turn(self, agent, provider):
        provider.queue(call_tools(ToolUse(id="t1", name="list_sheets")), reply("3 sheets"))
        result = await agent.process_turn("list sheets")
        assert result.state == TurnState.FINALIZED
        assert agent.journal.get_cached("list_sheets_result") == {"sheets": ["A101", "A102", "A201"]}

    async def test_on_subscribes(self, agent, provider):
        deltas = []
        agent.on("text:delta", lambda e: deltas.append(e.text))
        provider.queue(reply("streamed text"))
        await agent.process_turn("hi")
        assert "".join(deltas) == "streamed text"

    async def test_new_turn_cancels_active_one(self, agent, provider, bridge):
        provider.queue(
            call_tools(ToolUse(id="t1", name="slow", input={"seconds": 0.5})),
            reply("second answer"),
        )
        first = asyncio.ensure_future(agent.process_turn("take your time"))
        await _wait_until(lambda: bridge.in_flight == 1)

        second = await agent.process_turn("never mind")
        first_result = await first

        assert first_result.state == TurnState.CANCELLED
        assert second.state == TurnState.FINALIZED
        assert [m.content for m in agent.session.messages] == ["never mind", "second answer"]

    async def test_cancel(self, agent, provider, bridge):
        assert agent.cancel() is False

        provider.queue(call_tools(ToolUse(id="t1", name="slow", input={"seconds": 0.5})))
        turn = asyncio.ensure_future(agent.process_turn("sleep"))
        await _wait_until(lambda: bridge.in_flight == 1)

        assert agent.busy
        assert agent.cancel() is True
        result = await turn

        assert result.cancelled
        assert len(agent.session) == 0
        assert not agent.busy

    async def test_caller_signal(self, agent, provider):
        signal = asyncio.Event()
        signal.set()
        provider.queue(reply("never"))
        result = await agent.process_turn("hi", signal)
        assert result.cancelled

    async def test_caller_signal_set_mid_turn(self, agent, provider, bridge):
        signal = asyncio.Event()
        provider.queue(call_tools(ToolUse(id="t1", name="slow", input={"seconds": 0.5})))
        turn = asyncio.ensure_future(agent.process_turn("sleep", signal))
        await _wait_until(lambda: bridge.in_flight == 1)

        signal.set()
        result = await turn

        assert result.cancelled
        assert len(agent.session) == 0

    async def test_shared_signal_not_tripped_by_next_turn(self, agent, provider, bridge):
        signal = asyncio.Event()
        provider.queue(
            call_tools(ToolUse(id="t1", name="slow", input={"seconds": 0.5})),
            reply("second answer"),
        )
        first = asyncio.ensure_future(agent.process_turn("take your time", signal))
        await _wait_until(lambda: bridge.in_flight == 1)

        second = await agent.process_turn("never mind", signal)

        assert (await first).cancelled
        assert second.state == TurnState.FINALIZED
        assert not signal.is_set()


class TestSessions:
    async def test_new_session(self, agent, provider):
        provider.queue(reply("one"))
        await agent.process_turn("first")
        old = agent.session

        fresh = agent.new_session("Bridge.rvt")

        assert fresh is agent.session
        assert fresh is not old
        assert fresh.document_name == "Bridge.rvt"
        assert len(fresh) == 0
        assert len(old) == 2


class TestResume:
    async def test_continue_after_rate_limit(self, agent, provider):
        provider.queue(
            call_tools(ToolUse(id="t1", name="list_sheets")),
            ProviderResponse.failure("Rate limited by scripted", "LLM_RATE_LIMIT"),
            reply("Picking up where I left off."),
        )
        interrupted = await agent.process_turn("rename every sheet")
        assert interrupted.failed
        assert '"continue"' in interrupted.message.content

        resumed = await agent.process_turn("continue")

        assert resumed.state == TurnState.FINALIZED
        sent = provider.calls[-1].history[-1]["content"]
        assert sent.startswith("continue")
        assert RESUME_HEADER in sent
        assert "- Task: rename every sheet" in sent
        assert "list_sheets: completed" in sent

    async def test_continue_without_interrupt_is_passed_through(self, agent, provider):
        provider.queue(reply("ok"), reply("still ok"))
        await agent.process_turn("hello")
        await agent.process_turn("continue")
        assert provider.calls[-1].history[-1]["content"] == "continue"
