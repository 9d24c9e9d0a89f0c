"""Hook registration for claude-cli-sdk.

Hooks let the host application intercept tool use and other lifecycle
events while a conversation is running. They are registered before
``connect()``; the full table is announced to the CLI in the
``initialize`` control request, and the CLI later asks for a specific
callback by its id.

Example::

    hooks = HookRegistry()

    @hooks.on(HookEvent.PRE_TOOL_USE, matcher="Bash")
    async def guard(input: PreToolUseInput, ctx: HookContext) -> HookOutput:
        if "rm -rf" in input.tool_input.get("command", ""):
            return HookOutput(decision=HookDecision.DENY, reason="blocked")
        return HookOutput()

    async with Client(AgentOptions(hooks=hooks)) as client:
        ...
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NewType, Union

from claude_cli_sdk.exceptions import HookError

__all__ = [
    "HookEvent",
    "HookDecision",
    "HookContext",
    "HookOutput",
    "PreToolUseInput",
    "PostToolUseInput",
    "UserPromptSubmitInput",
    "StopInput",
    "SubagentStopInput",
    "PreCompactInput",
    "HookInput",
    "HookCallback",
    "HookCallbackId",
    "HookBinding",
    "HookRegistry",
    "hook",
]


class HookEvent(str, Enum):
    """Lifecycle events a hook can be registered for."""

    PRE_TOOL_USE = "PreToolUse"
    POST_TOOL_USE = "PostToolUse"
    USER_PROMPT_SUBMIT = "UserPromptSubmit"
    STOP = "Stop"
    SUBAGENT_STOP = "SubagentStop"
    PRE_COMPACT = "PreCompact"

    @property
    def accepts_matcher(self) -> bool:
        return self in (HookEvent.PRE_TOOL_USE, HookEvent.POST_TOOL_USE)


class HookDecision(str, Enum):
    """Permission decision returned by a hook."""

    NONE = ""
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class HookContext:
    """Session details passed alongside every hook input."""

    session_id: str = ""
    transcript_path: str = ""
    cwd: str = ""
    permission_mode: str = ""

    @classmethod
    def from_input(cls, data: dict[str, Any]) -> HookContext:
        return cls(
            session_id=_str(data, "session_id"),
            transcript_path=_str(data, "transcript_path"),
            cwd=_str(data, "cwd"),
            permission_mode=_str(data, "permission_mode"),
        )


@dataclass
class HookOutput:
    """What a hook callback returns.

    Parameters
    ----------
    decision:
        Allow or deny the tool use. ``HookDecision.NONE`` leaves the
        decision to the CLI.
    reason:
        Explanation shown to the model. Repeated as the permission
        decision reason when denying.
    system_message:
        Message injected into the conversation.
    additional_context:
        Extra context for the model.
    updated_input:
        Replacement tool input, used when allowing.
    continue_:
        Set to ``False`` to stop the agent loop. ``None`` means continue.
    stop_reason:
        Why execution was stopped.
    suppress_output:
        Hide the hook's output from the transcript.
    """

    decision: HookDecision = HookDecision.NONE
    reason: str = ""
    system_message: str = ""
    additional_context: str = ""
    updated_input: dict[str, Any] | None = None
    continue_: bool | None = None
    stop_reason: str = ""
    suppress_output: bool = False


# ---------------------------------------------------------------------------
# Typed hook inputs, one per event
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PreToolUseInput:
    """A tool call that is about to run."""

    tool_name: str
    tool_input: dict[str, Any] = field(default_factory=dict)
    tool_use_id: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PreToolUseInput:
        return cls(
            tool_name=_str(data, "tool_name"),
            tool_input=_dict(data, "tool_input"),
            tool_use_id=_str(data, "tool_use_id"),
        )


@dataclass(frozen=True)
class PostToolUseInput:
    """A tool call that has finished, with its response."""

    tool_name: str
    tool_input: dict[str, Any] = field(default_factory=dict)
    tool_use_id: str = ""
    tool_response: Any = None
    is_error: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PostToolUseInput:
        return cls(
            tool_name=_str(data, "tool_name"),
            tool_input=_dict(data, "tool_input"),
            tool_use_id=_str(data, "tool_use_id"),
            tool_response=data.get("tool_response"),
            is_error=data.get("is_error") is True,
        )


@dataclass(frozen=True)
class UserPromptSubmitInput:
    prompt: str
    session_id: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserPromptSubmitInput:
        return cls(prompt=_str(data, "prompt"), session_id=_str(data, "session_id"))


@dataclass(frozen=True)
class StopInput:
    reason: str = ""
    session_id: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StopInput:
        return cls(reason=_str(data, "reason"), session_id=_str(data, "session_id"))


@dataclass(frozen=True)
class SubagentStopInput:
    subagent_id: str = ""
    reason: str = ""
    session_id: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubagentStopInput:
        return cls(
            subagent_id=_str(data, "subagent_id"),
            reason=_str(data, "reason"),
            session_id=_str(data, "session_id"),
        )


@dataclass(frozen=True)
class PreCompactInput:
    session_id: str = ""
    message_count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PreCompactInput:
        count = data.get("message_count")
        if isinstance(count, bool) or not isinstance(count, (int, float)):
            count = 0
        return cls(session_id=_str(data, "session_id"), message_count=int(count))


HookInput = Union[
    PreToolUseInput,
    PostToolUseInput,
    UserPromptSubmitInput,
    StopInput,
    SubagentStopInput,
    PreCompactInput,
]

HookCallback = Callable[[Any, HookContext], Awaitable[Union[HookOutput, None]]]

HookCallbackId = NewType("HookCallbackId", str)

_INPUT_TYPES: dict[HookEvent, Callable[[dict[str, Any]], HookInput]] = {
    HookEvent.PRE_TOOL_USE: PreToolUseInput.from_dict,
    HookEvent.POST_TOOL_USE: PostToolUseInput.from_dict,
    HookEvent.USER_PROMPT_SUBMIT: UserPromptSubmitInput.from_dict,
    HookEvent.STOP: StopInput.from_dict,
    HookEvent.SUBAGENT_STOP: SubagentStopInput.from_dict,
    HookEvent.PRE_COMPACT: PreCompactInput.from_dict,
}


@dataclass(frozen=True)
class HookBinding:
    """One registered callback, bound to exactly one event.

    The event fixes which input type the callback receives, so dispatch
    never has to guess the callback's signature.
    """

    callback_id: HookCallbackId
    event: HookEvent
    callback: HookCallback
    matcher: str = ""
    timeout: float | None = None

    def parse_input(self, data: dict[str, Any]) -> HookInput:
        return _INPUT_TYPES[self.event](data)

    def to_matcher_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.matcher:
            d["matcher"] = self.matcher
        d["hookCallbackIds"] = [self.callback_id]
        if self.timeout is not None and self.timeout > 0:
            d["timeout"] = int(self.timeout)
        return d


class HookRegistry:
    """Collects hook callbacks and assigns each a stable callback id.

    The registry is frozen when a client connects; registering after that
    raises :class:`HookError`.
    """

    def __init__(self) -> None:
        self._bindings: dict[HookCallbackId, HookBinding] = {}
        self._frozen = False

    def register(
        self,
        event: HookEvent | str,
        callback: HookCallback,
        *,
        matcher: str = "",
        timeout: float | None = None,
    ) -> HookCallbackId:
        """Register *callback* for *event* and return its callback id.

        Parameters
        ----------
        event:
            The lifecycle event, as a :class:`HookEvent` or its wire name.
        callback:
            Async callable taking ``(input, context)`` and returning a
            :class:`HookOutput` or ``None``.
        matcher:
            Tool name pattern such as ``"Bash"`` or ``"Read|Write"``. Only
            valid for tool events; empty matches every tool.
        timeout:
            Seconds the CLI should allow the hook. Announced to the CLI,
            which enforces it.
        """
        if self._frozen:
            raise HookError("hooks cannot be registered after the client has connected")
        try:
            event = HookEvent(event)
        except ValueError:
            raise HookError(f"unknown hook event: {event!r}") from None
        if matcher and not event.accepts_matcher:
            raise HookError(f"{event.value} hooks do not accept a matcher")
        if not callable(callback):
            raise HookError(f"hook callback must be callable, got {type(callback).__name__}")

        callback_id = HookCallbackId(f"hook_{len(self._bindings)}")
        self._bindings[callback_id] = HookBinding(
            callback_id=callback_id,
            event=event,
            callback=callback,
            matcher=matcher,
            timeout=timeout,
        )
        return callback_id

    def on(
        self,
        event: HookEvent | str,
        *,
        matcher: str = "",
        timeout: float | None = None,
    ) -> Callable:
        """Decorator form of :meth:`register`."""

        def decorator(fn: HookCallback) -> HookCallback:
            self.register(event, fn, matcher=matcher, timeout=timeout)
            return fn

        return decorator

    def add(self, fn: Callable) -> HookCallbackId:
        """Register a function marked with the standalone :func:`hook` decorator."""
        event = getattr(fn, "_hook_event", None)
        if event is None:
            raise HookError(f"{getattr(fn, '__name__', fn)!r} is not decorated with @hook")
        return self.register(
            event,
            fn,
            matcher=getattr(fn, "_hook_matcher", ""),
            timeout=getattr(fn, "_hook_timeout", None),
        )

    def get(self, callback_id: str) -> HookBinding | None:
        return self._bindings.get(HookCallbackId(callback_id))

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def to_initialize_payload(self) -> dict[str, Any]:
        """Build the ``hooks`` table sent in the ``initialize`` request."""
        hooks: dict[str, list[dict[str, Any]]] = {}
        for binding in self._bindings.values():
            hooks.setdefault(binding.event.value, []).append(binding.to_matcher_dict())
        return {"hooks": hooks}

    def __iter__(self) -> Iterator[HookBinding]:
        return iter(self._bindings.values())

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"HookRegistry(hooks={len(self._bindings)}, frozen={self._frozen})"


def hook(
    event: HookEvent | str,
    *,
    matcher: str = "",
    timeout: float | None = None,
) -> Callable:
    """Standalone decorator for defining hooks outside a registry.

    Marked functions are registered later with :meth:`HookRegistry.add`.
    """
    try:
        event = HookEvent(event)
    except ValueError:
        raise HookError(f"unknown hook event: {event!r}") from None

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        async def wrapper(input: Any, ctx: HookContext) -> HookOutput | None:
            return await fn(input, ctx)

        wrapper._hook_event = event  # type: ignore[attr-defined]
        wrapper._hook_matcher = matcher  # type: ignore[attr-defined]
        wrapper._hook_timeout = timeout  # type: ignore[attr-defined]
        return wrapper

    return decorator


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _dict(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}
