"""Control protocol for claude-cli-sdk.

The control channel runs alongside the conversation stream on the same
JSON-lines pipes. The SDK sends requests (``initialize``, ``interrupt``,
``set_permission_mode``, ``set_model``, ``rewind_files``) without waiting
for their responses. The CLI sends ``hook_callback`` requests, which the
:class:`ControlProtocol` answers with exactly one response each.
"""

from __future__ import annotations

import json
import logging
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from claude_cli_sdk.hooks import (
    HookContext,
    HookDecision,
    HookEvent,
    HookOutput,
    HookRegistry,
)

logger = logging.getLogger(__name__)

CONTROL_REQUEST = "control_request"
CONTROL_RESPONSE = "control_response"


class ControlSubtype(str, Enum):
    """Subtypes carried in the ``request`` body of a control request."""

    INTERRUPT = "interrupt"
    CAN_USE_TOOL = "can_use_tool"
    INITIALIZE = "initialize"
    SET_PERMISSION_MODE = "set_permission_mode"
    SET_MODEL = "set_model"
    HOOK_CALLBACK = "hook_callback"
    MCP_MESSAGE = "mcp_message"
    REWIND_FILES = "rewind_files"


def generate_request_id() -> str:
    """Return a random request id such as ``req-1f2e3d4c5b6a7988``."""
    return f"req-{secrets.token_hex(8)}"


def encode_frame(payload: dict[str, Any]) -> bytes:
    """Serialize one frame as a newline-terminated JSON line."""
    return (json.dumps(payload) + "\n").encode("utf-8")


# ---------------------------------------------------------------------------
# Wire types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ControlRequest:
    """An SDK-initiated control request."""

    subtype: ControlSubtype
    body: dict[str, Any] = field(default_factory=dict)
    request_id: str = field(default_factory=generate_request_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": CONTROL_REQUEST,
            "request_id": self.request_id,
            "request": {"subtype": self.subtype.value, **self.body},
        }


@dataclass(frozen=True)
class InboundControlRequest:
    """A control request sent by the CLI.

    ``subtype`` is kept as a plain string so that subtypes this SDK does
    not know about still parse.
    """

    request_id: str
    subtype: str
    body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InboundControlRequest | None:
        body = data.get("request")
        if not isinstance(body, dict):
            return None
        request_id = data.get("request_id")
        subtype = body.get("subtype")
        return cls(
            request_id=request_id if isinstance(request_id, str) else "",
            subtype=subtype if isinstance(subtype, str) else "",
            body=body,
        )


@dataclass(frozen=True)
class ControlResponse:
    """A correlated response to a control request."""

    request_id: str
    subtype: str = "success"
    response: Any = None
    error: str | None = None

    @classmethod
    def success(cls, request_id: str, response: Any = None) -> ControlResponse:
        return cls(request_id=request_id, subtype="success", response=response)

    @classmethod
    def failure(cls, request_id: str, error: str) -> ControlResponse:
        return cls(request_id=request_id, subtype="error", error=error)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ControlResponse | None:
        payload = data.get("response")
        if not isinstance(payload, dict):
            return None
        return cls(
            request_id=str(payload.get("request_id", "")),
            subtype=str(payload.get("subtype", "")),
            response=payload.get("response"),
            error=payload.get("error"),
        )

    @property
    def is_error(self) -> bool:
        return self.subtype == "error"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"subtype": self.subtype, "request_id": self.request_id}
        if self.response is not None:
            payload["response"] = self.response
        if self.error is not None:
            payload["error"] = self.error
        return {"type": CONTROL_RESPONSE, "response": payload}


def build_hook_response(output: HookOutput | None, event: HookEvent) -> dict[str, Any]:
    """Translate a hook's output into the ``hook_callback`` response payload.

    ``None`` (including hooks that raised) maps to ``{"continue": True}``.
    """
    if output is None:
        return {"continue": True}

    response: dict[str, Any] = {
        "continue": True if output.continue_ is None else output.continue_,
    }
    if output.suppress_output:
        response["suppressOutput"] = True
    if output.stop_reason:
        response["stopReason"] = output.stop_reason
    if output.system_message:
        response["systemMessage"] = output.system_message
    if output.reason:
        response["reason"] = output.reason

    if output.decision is not HookDecision.NONE:
        specific: dict[str, Any] = {
            "hookEventName": event.value,
            "permissionDecision": output.decision.value,
        }
        if output.decision is HookDecision.DENY and output.reason:
            specific["permissionDecisionReason"] = output.reason
        if output.updated_input:
            specific["updatedInput"] = output.updated_input
        if output.additional_context:
            specific["additionalContext"] = output.additional_context
        response["hookSpecificOutput"] = specific

    return response


# ---------------------------------------------------------------------------
# Protocol engine
# ---------------------------------------------------------------------------


class ControlProtocol:
    """Sends control requests and answers hook callbacks for one session.

    Parameters
    ----------
    send:
        Coroutine function that writes one encoded frame to the CLI.
        Usually :meth:`Transport.send`.
    hooks:
        The session's hook registry. Read-only once the session is live.
    """

    def __init__(
        self,
        send: Callable[[bytes], Awaitable[None]],
        hooks: HookRegistry | None = None,
    ) -> None:
        self._send = send
        self._hooks = hooks

    @property
    def hooks(self) -> HookRegistry | None:
        return self._hooks

    # -- Outbound requests --------------------------------------------------

    async def send_request(self, request: ControlRequest) -> str:
        """Write *request* and return its id without waiting for a reply."""
        await self._send(encode_frame(request.to_dict()))
        return request.request_id

    async def initialize(self) -> str:
        """Announce the hook table to the CLI."""
        payload = self._hooks.to_initialize_payload() if self._hooks else {"hooks": {}}
        return await self.send_request(ControlRequest(ControlSubtype.INITIALIZE, payload))

    async def interrupt(self) -> str:
        return await self.send_request(ControlRequest(ControlSubtype.INTERRUPT))

    async def set_permission_mode(self, mode: str) -> str:
        return await self.send_request(
            ControlRequest(ControlSubtype.SET_PERMISSION_MODE, {"mode": _value(mode)})
        )

    async def set_model(self, model: str | None) -> str:
        """Switch models. ``None`` or ``""`` asks for the CLI default."""
        return await self.send_request(
            ControlRequest(ControlSubtype.SET_MODEL, {"model": model or None})
        )

    async def rewind_files(self, user_message_id: str) -> str:
        """Restore checkpointed files to their state at a user message."""
        return await self.send_request(
            ControlRequest(ControlSubtype.REWIND_FILES, {"user_message_id": user_message_id})
        )

    # -- Inbound requests ---------------------------------------------------

    async def handle_control_request(self, request: InboundControlRequest) -> None:
        """Route a CLI-initiated control request.

        Only ``hook_callback`` is answered. Other subtypes and unknown
        callback ids get no response at all.
        """
        if request.subtype != ControlSubtype.HOOK_CALLBACK.value:
            logger.debug("ignoring %r control request %s", request.subtype, request.request_id)
            return
        await self._handle_hook_callback(request)

    async def _handle_hook_callback(self, request: InboundControlRequest) -> None:
        callback_id = request.body.get("callback_id")
        binding = None
        if self._hooks is not None and isinstance(callback_id, str):
            binding = self._hooks.get(callback_id)
        if binding is None:
            logger.debug("no hook registered for callback id %r", callback_id)
            return

        data = request.body.get("input")
        if not isinstance(data, dict):
            data = {}

        output: HookOutput | None = None
        event_name = data.get("hook_event_name")
        if event_name != binding.event.value:
            logger.warning(
                "hook %s is registered for %s but was called for %r",
                binding.callback_id,
                binding.event.value,
                event_name,
            )
        else:
            try:
                output = await binding.callback(binding.parse_input(data), HookContext.from_input(data))
            except Exception:
                logger.warning("hook %s raised, continuing", binding.callback_id, exc_info=True)
                output = None
            if output is not None and not isinstance(output, HookOutput):
                logger.warning(
                    "hook %s returned %s, expected HookOutput",
                    binding.callback_id,
                    type(output).__name__,
                )
                output = None

        payload = build_hook_response(output, binding.event)
        await self._send_response(ControlResponse.success(request.request_id, payload))

    async def _send_response(self, response: ControlResponse) -> None:
        try:
            await self._send(encode_frame(response.to_dict()))
        except Exception:
            logger.warning("failed to send control response %s", response.request_id, exc_info=True)


def _value(mode: Any) -> Any:
    return mode.value if isinstance(mode, Enum) else mode
