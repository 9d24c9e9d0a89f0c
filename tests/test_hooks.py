"""Tests for claude_cli_sdk.hooks (HookRegistry and decorators)."""

from __future__ import annotations

import pytest

from claude_cli_sdk import HookError, HookEvent, HookRegistry, hook
from claude_cli_sdk.hooks import (
    HookContext,
    HookOutput,
    PostToolUseInput,
    PreCompactInput,
    PreToolUseInput,
    StopInput,
    SubagentStopInput,
    UserPromptSubmitInput,
)


async def noop(input, ctx):
    return None


class TestHookRegistry:
    def test_ids_are_sequential(self):
        registry = HookRegistry()
        assert registry.register(HookEvent.PRE_TOOL_USE, noop) == "hook_0"
        assert registry.register(HookEvent.STOP, noop) == "hook_1"
        assert len(registry) == 2

    def test_accepts_wire_event_name(self):
        registry = HookRegistry()
        callback_id = registry.register("PostToolUse", noop, matcher="Write")
        binding = registry.get(callback_id)
        assert binding is not None
        assert binding.event is HookEvent.POST_TOOL_USE
        assert binding.matcher == "Write"

    def test_on_decorator(self):
        registry = HookRegistry()

        @registry.on(HookEvent.PRE_TOOL_USE, matcher="Bash", timeout=30)
        async def guard(input, ctx):
            return HookOutput()

        (binding,) = list(registry)
        assert binding.callback is guard
        assert binding.timeout == 30

    def test_unknown_event(self):
        with pytest.raises(HookError, match="unknown hook event"):
            HookRegistry().register("Notification", noop)

    def test_matcher_rejected_for_non_tool_event(self):
        with pytest.raises(HookError, match="do not accept a matcher"):
            HookRegistry().register(HookEvent.STOP, noop, matcher="Bash")

    def test_callback_must_be_callable(self):
        with pytest.raises(HookError, match="callable"):
            HookRegistry().register(HookEvent.STOP, "not a function")  # type: ignore[arg-type]

    def test_frozen_registry_rejects_registration(self):
        registry = HookRegistry()
        registry.freeze()
        assert registry.frozen
        with pytest.raises(HookError, match="after the client has connected"):
            registry.register(HookEvent.STOP, noop)

    def test_get_unknown_id(self):
        assert HookRegistry().get("hook_9") is None

    def test_initialize_payload(self):
        registry = HookRegistry()
        registry.register(HookEvent.PRE_TOOL_USE, noop, matcher="Bash", timeout=10)
        registry.register(HookEvent.PRE_TOOL_USE, noop)
        registry.register(HookEvent.USER_PROMPT_SUBMIT, noop, timeout=0)

        assert registry.to_initialize_payload() == {
            "hooks": {
                "PreToolUse": [
                    {"matcher": "Bash", "hookCallbackIds": ["hook_0"], "timeout": 10},
                    {"hookCallbackIds": ["hook_1"]},
                ],
                "UserPromptSubmit": [{"hookCallbackIds": ["hook_2"]}],
            }
        }

    def test_empty_payload(self):
        assert HookRegistry().to_initialize_payload() == {"hooks": {}}

    def test_repr(self):
        assert repr(HookRegistry()) == "HookRegistry(hooks=0, frozen=False)"


class TestHookDecorator:
    def test_marks_function(self):
        @hook(HookEvent.PRE_TOOL_USE, matcher="Edit")
        async def my_hook(input, ctx):
            return None

        assert my_hook._hook_event is HookEvent.PRE_TOOL_USE
        assert my_hook._hook_matcher == "Edit"
        assert my_hook.__name__ == "my_hook"

    def test_registry_add(self):
        @hook("Stop", timeout=5)
        async def on_stop(input, ctx):
            return None

        registry = HookRegistry()
        callback_id = registry.add(on_stop)
        binding = registry.get(callback_id)
        assert binding is not None
        assert binding.event is HookEvent.STOP
        assert binding.timeout == 5

    def test_add_undecorated(self):
        with pytest.raises(HookError, match="not decorated"):
            HookRegistry().add(noop)

    def test_invalid_event(self):
        with pytest.raises(HookError):
            hook("Bogus")

    @pytest.mark.asyncio
    async def test_wrapper_awaits_original(self):
        @hook(HookEvent.STOP)
        async def on_stop(input, ctx):
            return HookOutput(reason=input.reason)

        out = await on_stop(StopInput(reason="done"), HookContext())
        assert out == HookOutput(reason="done")


class TestHookInputs:
    def test_binding_parses_typed_input(self):
        registry = HookRegistry()
        binding = registry.get(registry.register(HookEvent.PRE_TOOL_USE, noop))
        assert binding is not None
        parsed = binding.parse_input(
            {"hook_event_name": "PreToolUse", "tool_name": "Bash", "tool_input": {"command": "ls"}, "tool_use_id": "t1"}
        )
        assert parsed == PreToolUseInput(tool_name="Bash", tool_input={"command": "ls"}, tool_use_id="t1")

    def test_post_tool_use(self):
        parsed = PostToolUseInput.from_dict({"tool_name": "Read", "tool_response": {"ok": True}, "is_error": True})
        assert parsed.tool_response == {"ok": True}
        assert parsed.is_error is True
        assert parsed.tool_input == {}

    def test_missing_fields_default(self):
        assert UserPromptSubmitInput.from_dict({}) == UserPromptSubmitInput(prompt="")
        assert SubagentStopInput.from_dict({"subagent_id": 3}) == SubagentStopInput()

    def test_pre_compact_count(self):
        assert PreCompactInput.from_dict({"message_count": 12.0}).message_count == 12
        assert PreCompactInput.from_dict({"message_count": True}).message_count == 0

    def test_context_from_input(self):
        ctx = HookContext.from_input({"session_id": "s", "cwd": "/w", "permission_mode": "plan"})
        assert ctx == HookContext(session_id="s", cwd="/w", permission_mode="plan")

    def test_accepts_matcher(self):
        assert HookEvent.PRE_TOOL_USE.accepts_matcher
        assert HookEvent.POST_TOOL_USE.accepts_matcher
        assert not HookEvent.PRE_COMPACT.accepts_matcher
