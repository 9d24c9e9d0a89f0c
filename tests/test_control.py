"""Tests for the control protocol (outbound requests and hook callbacks)."""

from __future__ import annotations

import json
import re

import pytest

from claude_cli_sdk.control import (
    ControlProtocol,
    ControlRequest,
    ControlResponse,
    ControlSubtype,
    InboundControlRequest,
    build_hook_response,
    encode_frame,
    generate_request_id,
)
from claude_cli_sdk.exceptions import NotConnectedError
from claude_cli_sdk.hooks import (
    HookContext,
    HookDecision,
    HookEvent,
    HookOutput,
    HookRegistry,
    PreToolUseInput,
    StopInput,
)
from claude_cli_sdk.types import PermissionMode


class Recorder:
    def __init__(self, error: Exception | None = None) -> None:
        self.frames: list[dict] = []
        self.error = error

    async def __call__(self, data: bytes) -> None:
        if self.error is not None:
            raise self.error
        assert data.endswith(b"\n")
        self.frames.append(json.loads(data))


def hook_request(callback_id: str, input: dict, request_id: str = "cli-req-1") -> InboundControlRequest:
    return InboundControlRequest(
        request_id=request_id,
        subtype="hook_callback",
        body={"subtype": "hook_callback", "callback_id": callback_id, "input": input},
    )


class TestWireTypes:
    def test_request_id_format(self):
        assert re.fullmatch(r"req-[0-9a-f]{16}", generate_request_id())
        assert generate_request_id() != generate_request_id()

    def test_encode_frame(self):
        assert encode_frame({"a": 1}) == b'{"a": 1}\n'

    def test_control_request_to_dict(self):
        req = ControlRequest(ControlSubtype.SET_MODEL, {"model": "m"}, request_id="req-1")
        assert req.to_dict() == {
            "type": "control_request",
            "request_id": "req-1",
            "request": {"subtype": "set_model", "model": "m"},
        }

    def test_success_response(self):
        assert ControlResponse.success("r1", {"continue": True}).to_dict() == {
            "type": "control_response",
            "response": {"subtype": "success", "request_id": "r1", "response": {"continue": True}},
        }

    def test_error_response_round_trip(self):
        resp = ControlResponse.failure("r2", "boom")
        parsed = ControlResponse.from_dict(resp.to_dict())
        assert parsed == resp
        assert parsed.is_error

    def test_inbound_tolerates_missing_fields(self):
        req = InboundControlRequest.from_dict({"type": "control_request", "request": {}})
        assert req == InboundControlRequest(request_id="", subtype="", body={})


class TestBuildHookResponse:
    def test_none_continues(self):
        assert build_hook_response(None, HookEvent.PRE_TOOL_USE) == {"continue": True}

    def test_empty_output_continues(self):
        assert build_hook_response(HookOutput(), HookEvent.STOP) == {"continue": True}

    def test_deny(self):
        out = HookOutput(decision=HookDecision.DENY, reason="Dangerous command blocked")
        assert build_hook_response(out, HookEvent.PRE_TOOL_USE) == {
            "continue": True,
            "reason": "Dangerous command blocked",
            "hookSpecificOutput": {
                "hookEventName": "PreToolUse",
                "permissionDecision": "deny",
                "permissionDecisionReason": "Dangerous command blocked",
            },
        }

    def test_allow_with_updated_input(self):
        out = HookOutput(
            decision=HookDecision.ALLOW,
            updated_input={"command": "ls -la"},
            additional_context="checked",
        )
        specific = build_hook_response(out, HookEvent.PRE_TOOL_USE)["hookSpecificOutput"]
        assert specific == {
            "hookEventName": "PreToolUse",
            "permissionDecision": "allow",
            "updatedInput": {"command": "ls -la"},
            "additionalContext": "checked",
        }

    def test_empty_updated_input_omitted(self):
        out = HookOutput(decision=HookDecision.ALLOW, updated_input={})
        specific = build_hook_response(out, HookEvent.PRE_TOOL_USE)["hookSpecificOutput"]
        assert "updatedInput" not in specific
        assert specific["permissionDecision"] == "allow"

    def test_stop_fields(self):
        out = HookOutput(continue_=False, stop_reason="budget", suppress_output=True, system_message="bye")
        assert build_hook_response(out, HookEvent.STOP) == {
            "continue": False,
            "suppressOutput": True,
            "stopReason": "budget",
            "systemMessage": "bye",
        }


class TestOutboundRequests:
    @pytest.mark.asyncio
    async def test_initialize_sends_hook_table(self):
        send = Recorder()
        hooks = HookRegistry()
        hooks.register(HookEvent.PRE_TOOL_USE, lambda i, c: None, matcher="Bash")
        protocol = ControlProtocol(send, hooks)

        request_id = await protocol.initialize()

        (frame,) = send.frames
        assert frame["type"] == "control_request"
        assert frame["request_id"] == request_id
        assert frame["request"] == {
            "subtype": "initialize",
            "hooks": {"PreToolUse": [{"matcher": "Bash", "hookCallbackIds": ["hook_0"]}]},
        }

    @pytest.mark.asyncio
    async def test_each_request_gets_fresh_id(self):
        send = Recorder()
        protocol = ControlProtocol(send)
        first = await protocol.interrupt()
        second = await protocol.interrupt()
        assert first != second
        assert [f["request"] for f in send.frames] == [{"subtype": "interrupt"}] * 2

    @pytest.mark.asyncio
    async def test_set_permission_mode_accepts_enum(self):
        send = Recorder()
        await ControlProtocol(send).set_permission_mode(PermissionMode.ACCEPT_EDITS)
        assert send.frames[0]["request"] == {"subtype": "set_permission_mode", "mode": "acceptEdits"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("model, expected", [("claude-opus-4", "claude-opus-4"), ("", None), (None, None)])
    async def test_set_model(self, model, expected):
        send = Recorder()
        await ControlProtocol(send).set_model(model)
        assert send.frames[0]["request"] == {"subtype": "set_model", "model": expected}

    @pytest.mark.asyncio
    async def test_rewind_files(self):
        send = Recorder()
        await ControlProtocol(send).rewind_files("msg-7")
        assert send.frames[0]["request"] == {"subtype": "rewind_files", "user_message_id": "msg-7"}

    @pytest.mark.asyncio
    async def test_send_failure_propagates(self):
        protocol = ControlProtocol(Recorder(error=NotConnectedError("closed")))
        with pytest.raises(NotConnectedError):
            await protocol.interrupt()


class TestHookCallbacks:
    @pytest.mark.asyncio
    async def test_deny_bash(self):
        send = Recorder()
        hooks = HookRegistry()
        seen: list[tuple[PreToolUseInput, HookContext]] = []

        @hooks.on(HookEvent.PRE_TOOL_USE, matcher="Bash")
        async def guard(input: PreToolUseInput, ctx: HookContext) -> HookOutput:
            seen.append((input, ctx))
            if "rm -rf" in input.tool_input.get("command", ""):
                return HookOutput(decision=HookDecision.DENY, reason="Dangerous command blocked")
            return HookOutput()

        protocol = ControlProtocol(send, hooks)
        await protocol.handle_control_request(
            hook_request(
                "hook_0",
                {
                    "hook_event_name": "PreToolUse",
                    "session_id": "s1",
                    "tool_name": "Bash",
                    "tool_input": {"command": "rm -rf /"},
                },
            )
        )

        assert seen[0][0].tool_name == "Bash"
        assert seen[0][1].session_id == "s1"
        (frame,) = send.frames
        assert frame["type"] == "control_response"
        assert frame["response"]["request_id"] == "cli-req-1"
        assert frame["response"]["subtype"] == "success"
        assert frame["response"]["response"]["continue"] is True
        specific = frame["response"]["response"]["hookSpecificOutput"]
        assert specific["permissionDecision"] == "deny"
        assert specific["permissionDecisionReason"] == "Dangerous command blocked"

    @pytest.mark.asyncio
    async def test_raising_hook_fails_open(self):
        send = Recorder()
        hooks = HookRegistry()

        @hooks.on(HookEvent.STOP)
        async def broken(input, ctx):
            raise RuntimeError("oops")

        await ControlProtocol(send, hooks).handle_control_request(
            hook_request("hook_0", {"hook_event_name": "Stop"})
        )
        assert send.frames == [
            {
                "type": "control_response",
                "response": {"subtype": "success", "request_id": "cli-req-1", "response": {"continue": True}},
            }
        ]

    @pytest.mark.asyncio
    async def test_hook_returning_none_continues(self):
        send = Recorder()
        hooks = HookRegistry()
        received: list[StopInput] = []

        @hooks.on(HookEvent.STOP)
        async def on_stop(input, ctx):
            received.append(input)

        await ControlProtocol(send, hooks).handle_control_request(
            hook_request("hook_0", {"hook_event_name": "Stop", "reason": "end_turn"})
        )
        assert received == [StopInput(reason="end_turn")]
        assert send.frames[0]["response"]["response"] == {"continue": True}

    @pytest.mark.asyncio
    async def test_wrong_return_type_fails_open(self):
        send = Recorder()
        hooks = HookRegistry()

        @hooks.on(HookEvent.STOP)
        async def bad(input, ctx):
            return {"decision": "deny"}

        await ControlProtocol(send, hooks).handle_control_request(
            hook_request("hook_0", {"hook_event_name": "Stop"})
        )
        assert send.frames[0]["response"]["response"] == {"continue": True}

    @pytest.mark.asyncio
    async def test_event_mismatch_fails_open_without_calling(self):
        send = Recorder()
        hooks = HookRegistry()
        calls = []

        @hooks.on(HookEvent.PRE_TOOL_USE)
        async def guard(input, ctx):
            calls.append(input)
            return HookOutput(decision=HookDecision.DENY)

        await ControlProtocol(send, hooks).handle_control_request(
            hook_request("hook_0", {"hook_event_name": "PostToolUse", "tool_name": "Bash"})
        )
        assert calls == []
        assert send.frames[0]["response"]["response"] == {"continue": True}

    @pytest.mark.asyncio
    async def test_unknown_callback_id_sends_nothing(self):
        send = Recorder()
        await ControlProtocol(send, HookRegistry()).handle_control_request(
            hook_request("hook_42", {"hook_event_name": "Stop"})
        )
        assert send.frames == []

    @pytest.mark.asyncio
    async def test_other_subtypes_are_ignored(self):
        send = Recorder()
        await ControlProtocol(send, HookRegistry()).handle_control_request(
            InboundControlRequest("cli-2", "can_use_tool", {"subtype": "can_use_tool", "tool_name": "Bash"})
        )
        assert send.frames == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [NotConnectedError("closed"), OSError("pipe gone")])
    async def test_send_failure_is_logged(self, error, caplog):
        hooks = HookRegistry()

        @hooks.on(HookEvent.STOP)
        async def on_stop(input, ctx):
            return None

        protocol = ControlProtocol(Recorder(error=error), hooks)
        await protocol.handle_control_request(hook_request("hook_0", {"hook_event_name": "Stop"}))
        assert "failed to send control response" in caplog.text
