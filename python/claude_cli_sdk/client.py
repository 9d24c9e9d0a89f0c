"""High-level async Client for interactive conversations with the CLI.

Usage::

    async with Client() as client:
        await client.query("What is 2 + 2?")
        async for message in client.receive_response():
            if isinstance(message, AssistantMessage):
                print(message.text())

With options and hooks::

    hooks = HookRegistry()

    @hooks.on(HookEvent.PRE_TOOL_USE, matcher="Bash")
    async def guard(input, ctx):
        return HookOutput(decision=HookDecision.DENY, reason="no shell")

    async with Client(AgentOptions(model="claude-sonnet-4-5", hooks=hooks)) as client:
        ...
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

from claude_cli_sdk.control import ControlProtocol, InboundControlRequest, encode_frame
from claude_cli_sdk.exceptions import CLIJSONDecodeError, NotConnectedError
from claude_cli_sdk.message_parser import decode_frame, parse_message
from claude_cli_sdk.options import AgentOptions
from claude_cli_sdk.subprocess_transport import SubprocessTransport
from claude_cli_sdk.transport import Channel, Transport
from claude_cli_sdk.types import Message, PermissionMode, ResultMessage, SystemMessage

logger = logging.getLogger(__name__)

_NOT_CONNECTED = "client is not connected: call connect() first"


class Client:
    """Async client for a bidirectional session with the CLI.

    Parameters
    ----------
    options:
        Session configuration. ``options.transport`` replaces the default
        :class:`SubprocessTransport`.
    """

    def __init__(self, options: AgentOptions | None = None) -> None:
        self._options = options or AgentOptions()
        self._transport: Transport | None = None
        self._protocol: ControlProtocol | None = None
        self._messages: Channel[Message] | None = None
        self._pump_task: asyncio.Task[None] | None = None
        self._server_info: dict[str, Any] | None = None
        self._connected = False
        self._lock = asyncio.Lock()

    # -- Connection lifecycle ------------------------------------------------

    async def connect(self) -> None:
        """Start the CLI and begin delivering messages.

        When hooks are configured an ``initialize`` request announcing them
        is sent before this returns. If that fails the transport is closed
        and the error is raised.
        """
        async with self._lock:
            if self._connected:
                return

            transport = self._options.transport or SubprocessTransport(self._options)
            await transport.connect()

            hooks = self._options.hooks
            if hooks is not None:
                hooks.freeze()

            self._transport = transport
            self._protocol = ControlProtocol(transport.send, hooks)
            self._messages = Channel(self._options.max_queued_messages)
            self._server_info = None
            self._pump_task = asyncio.create_task(self._pump(transport, self._protocol, self._messages))
            self._pump_task.add_done_callback(_log_pump_exit)
            self._connected = True

            if self._options.has_hooks:
                try:
                    await self._protocol.initialize()
                except BaseException:
                    await self._teardown()
                    raise

    async def close(self) -> None:
        """Stop the CLI. Safe to call more than once."""
        async with self._lock:
            if not self._connected:
                return
            await self._teardown()

    async def _teardown(self) -> None:
        # The pump is not joined: it stops once either channel is closed, and
        # a hook callback still running is left to finish on its own.
        self._connected = False
        transport, messages = self._transport, self._messages
        self._protocol = None
        self._pump_task = None
        if transport is not None:
            await transport.close()
        if messages is not None:
            await messages.close()

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def transport(self) -> Transport | None:
        return self._transport

    @property
    def options(self) -> AgentOptions:
        return self._options

    def get_server_info(self) -> dict[str, Any] | None:
        """Return the data of the CLI's ``init`` system message, if seen."""
        return self._server_info

    # -- Message pump --------------------------------------------------------

    async def _pump(
        self,
        transport: Transport,
        protocol: ControlProtocol,
        out: Channel[Message],
    ) -> None:
        try:
            async for line in transport.messages():
                try:
                    frame = decode_frame(line)
                except CLIJSONDecodeError as exc:
                    logger.warning("skipping malformed line from CLI: %s", exc)
                    continue

                message = parse_message(frame)
                if message is None:
                    logger.debug("ignoring %r frame", frame.get("type"))
                    continue
                if isinstance(message, InboundControlRequest):
                    await protocol.handle_control_request(message)
                    continue
                if isinstance(message, SystemMessage) and message.subtype == "init":
                    self._server_info = dict(message.data)

                if not await out.put(message):
                    break
        finally:
            await out.close()

    # -- Conversation --------------------------------------------------------

    async def query(self, prompt: str, session_id: str = "default") -> None:
        """Send a user prompt. Responses arrive through :meth:`messages`."""
        if not self._connected or self._transport is None:
            raise NotConnectedError(_NOT_CONNECTED)
        envelope = {
            "type": "user",
            "message": {"role": "user", "content": prompt},
            "parent_tool_use_id": None,
            "session_id": session_id,
        }
        await self._transport.send(encode_frame(envelope))

    def messages(self) -> Channel[Message] | None:
        """Channel of incoming messages, or ``None`` when not connected.

        The channel closes when the CLI's output ends.
        """
        if not self._connected:
            return None
        return self._messages

    async def receive_response(self) -> AsyncIterator[Message]:
        """Yield messages up to and including the next :class:`ResultMessage`."""
        channel = self.messages()
        if channel is None:
            raise NotConnectedError(_NOT_CONNECTED)
        async for message in channel:
            yield message
            if isinstance(message, ResultMessage):
                return

    # -- Control protocol methods -------------------------------------------

    def _require_protocol(self) -> ControlProtocol:
        if not self._connected or self._protocol is None:
            raise NotConnectedError(_NOT_CONNECTED)
        return self._protocol

    async def interrupt(self) -> None:
        """Ask the CLI to stop the current turn."""
        await self._require_protocol().interrupt()

    async def set_permission_mode(self, mode: PermissionMode | str) -> None:
        """Change the permission mode mid-session."""
        await self._require_protocol().set_permission_mode(mode)

    async def set_model(self, model: str | None = None) -> None:
        """Change the model mid-session. ``None`` restores the default."""
        await self._require_protocol().set_model(model)

    async def rewind_files(self, user_message_id: str) -> None:
        """Restore files to their state at *user_message_id*.

        Requires ``enable_file_checkpointing=True``.
        """
        await self._require_protocol().rewind_files(user_message_id)

    # -- Context manager -----------------------------------------------------

    async def __aenter__(self) -> Client:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"Client({status}, model={self._options.model!r})"


def _log_pump_exit(task: asyncio.Task[None]) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("message pump stopped", exc_info=task.exception())
