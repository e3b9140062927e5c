"""Tests for core types: messages, tool calls, results, responses."""

import json

import pytest

from tether.types import (
    Message,
    ProviderResponse,
    Role,
    ToolCall,
    ToolCallResult,
    ToolCallStatus,
    ToolResult,
    TurnResult,
    TurnState,
)


class TestToolCall:
    def test_starts_pending(self):
        call = ToolCall(id="t1", name="list_sheets")
        assert call.status == ToolCallStatus.PENDING
        assert call.result is None
        assert not call.done

    def test_monotonic_transitions(self):
        call = ToolCall(id="t1", name="x")
        call.advance(ToolCallStatus.EXECUTING)
        call.advance(ToolCallStatus.COMPLETED)
        assert call.done

    def test_skipping_executing_rejected(self):
        call = ToolCall(id="t1", name="x")
        with pytest.raises(ValueError, match="illegal transition"):
            call.advance(ToolCallStatus.COMPLETED)

    def test_no_transition_out_of_terminal(self):
        call = ToolCall(id="t1", name="x")
        call.advance(ToolCallStatus.EXECUTING)
        call.advance(ToolCallStatus.FAILED)
        with pytest.raises(ValueError):
            call.advance(ToolCallStatus.EXECUTING)

    def test_finish_sets_status_from_result(self):
        ok = ToolCall(id="a", name="x")
        ok.advance(ToolCallStatus.EXECUTING)
        ok.finish(ToolResult.ok("fine"))
        assert ok.status == ToolCallStatus.COMPLETED

        bad = ToolCall(id="b", name="x")
        bad.advance(ToolCallStatus.EXECUTING)
        bad.finish(ToolResult.fail("nope"))
        assert bad.status == ToolCallStatus.FAILED
        assert bad.result.message == "nope"

    def test_result_set_only_once(self):
        call = ToolCall(id="a", name="x")
        call.advance(ToolCallStatus.EXECUTING)
        call.finish(ToolResult.ok("first"))
        with pytest.raises(ValueError, match="already has a result"):
            call.finish(ToolResult.ok("second"))


class TestMessage:
    def test_factories(self):
        assert Message.user("hi").role == Role.USER
        assert Message.system("oops").role == Role.SYSTEM
        msg = Message.assistant("done")
        assert msg.role == Role.ASSISTANT
        assert msg.tool_calls == ()

    def test_frozen(self):
        msg = Message.user("hi")
        with pytest.raises(AttributeError):
            msg.content = "changed"

    def test_tool_calls_stored_as_tuple(self):
        calls = [ToolCall(id="t1", name="x")]
        msg = Message.assistant("", calls)
        calls.append(ToolCall(id="t2", name="y"))
        assert isinstance(msg.tool_calls, tuple)
        assert len(msg.tool_calls) == 1

    def test_only_assistant_carries_tool_calls(self):
        with pytest.raises(ValueError):
            Message(role=Role.USER, content="hi", tool_calls=(ToolCall(id="t", name="x"),))

    def test_unique_ids(self):
        assert Message.user("a").id != Message.user("a").id


class TestToolResult:
    def test_ok_and_fail(self):
        assert ToolResult.ok("yes").success
        assert not ToolResult.fail("no").success
        assert ToolResult.ok("yes").data == {}
        assert ToolResult(success=True, message="bare", data=None).data == {}

    def test_with_warning(self):
        r = ToolResult.with_warning("partial", {"count": 2})
        assert r.success
        assert r.warning == "partial"

    def test_to_json_round_trips_payload(self):
        r = ToolResult.ok("Found 2 sheets", {"sheets": ["A101", "A102"]})
        payload = json.loads(r.to_json())
        assert payload == {
            "success": True,
            "message": "Found 2 sheets",
            "data": {"sheets": ["A101", "A102"]},
            "warning": None,
        }
        assert ToolResult.from_payload(payload) == r

    def test_to_json_non_serializable_falls_back_to_str(self):
        class Opaque:
            def __str__(self):
                return "opaque-value"

        payload = json.loads(ToolResult.ok("x", {"value": Opaque()}).to_json())
        assert payload["data"]["value"] == "opaque-value"

    def test_to_json_keeps_unicode(self):
        assert "Ébauche" in ToolResult.ok("Ébauche").to_json()


class TestToolCallResult:
    def test_success_read_from_json(self):
        ok = ToolCallResult("t1", "x", {}, ToolResult.ok("y").to_json())
        bad = ToolCallResult("t2", "x", {}, ToolResult.fail("n").to_json())
        assert ok.success
        assert not bad.success

    def test_garbage_json_is_failure(self):
        assert not ToolCallResult("t", "x", {}, "not json").success


class TestProviderResponse:
    def test_wants_tools(self):
        from tether.types import ToolUse
        assert not ProviderResponse(text="hi").wants_tools
        assert ProviderResponse(tool_uses=[ToolUse(id="1", name="x")]).wants_tools

    def test_failure(self):
        r = ProviderResponse.failure("boom", "LLM_RATE_LIMIT")
        assert not r.success
        assert r.error == "boom"
        assert r.stop_reason == "error"
        assert r.rate_limited


class TestTurnState:
    @pytest.mark.parametrize("state", [TurnState.FINALIZED, TurnState.CANCELLED, TurnState.FAILED])
    def test_terminal(self, state):
        assert state.terminal

    def test_non_terminal(self):
        assert not TurnState.SENDING.terminal
        assert not TurnState.EXECUTING_TOOLS.terminal

    def test_turn_result_flags(self):
        assert TurnResult(state=TurnState.CANCELLED).cancelled
        assert TurnResult(state=TurnState.FAILED).failed
