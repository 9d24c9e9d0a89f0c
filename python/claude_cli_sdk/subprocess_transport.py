"""Subprocess transport: runs the CLI and speaks JSON lines over its pipes.

Usage::

    transport = SubprocessTransport(AgentOptions(model="claude-sonnet-4-5"))
    await transport.connect()
    await transport.send(b'{"type": "user", ...}\\n')
    async for line in transport.messages():
        ...
    await transport.close()
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import sys
from collections import deque
from collections.abc import Callable, Iterable
from enum import Enum
from pathlib import Path
from typing import Any

from claude_cli_sdk.exceptions import (
    CLIConnectionError,
    CLINotFoundError,
    MessageTooLargeError,
    NotConnectedError,
    ProcessError,
)
from claude_cli_sdk.options import AgentOptions
from claude_cli_sdk.transport import Channel, Transport

__all__ = ["CLIResolver", "SubprocessTransport", "build_command", "find_cli"]

logger = logging.getLogger(__name__)

CLIResolver = Callable[[], str]

CLI_NAME = "claude"
ENTRYPOINT = "sdk-py"
ERROR_CHANNEL_CAPACITY = 16
STDERR_TAIL_LINES = 20
CLOSE_WAIT_SECONDS = 1.0

DEFAULT_FALLBACK_PATHS = (
    "~/.npm-global/bin",
    "/usr/local/bin",
    "~/.local/bin",
    "~/node_modules/.bin",
    "~/.yarn/bin",
    "~/.claude/local",
)


# ---------------------------------------------------------------------------
# CLI discovery
# ---------------------------------------------------------------------------


def find_cli(
    *,
    which: Callable[[str], str | None] = shutil.which,
    fallback_paths: Iterable[str] | None = None,
) -> str:
    """Locate the CLI executable.

    ``PATH`` is searched first, then a list of common install locations.

    Raises
    ------
    CLINotFoundError
        If no executable is found.
    """
    name = CLI_NAME + ".exe" if sys.platform == "win32" else CLI_NAME
    found = which(name)
    if found:
        return found

    for directory in fallback_paths if fallback_paths is not None else DEFAULT_FALLBACK_PATHS:
        candidate = Path(directory).expanduser() / name
        if candidate.is_file():
            return str(candidate)

    raise CLINotFoundError(
        f"{CLI_NAME} executable not found in PATH or common install locations; "
        "install it with `npm install -g @anthropic-ai/claude-code` or set cli_path"
    )


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def build_command(cli_path: str, options: AgentOptions) -> list[str]:
    """Translate *options* into the CLI argument vector."""
    cmd = [cli_path, "--output-format", "stream-json", "--verbose"]
    _add_basic_flags(cmd, options)
    _add_tool_flags(cmd, options)
    _add_session_flags(cmd, options)
    _add_advanced_flags(cmd, options)
    _add_output_flags(cmd, options)
    _add_sandbox_flags(cmd, options)
    cmd += ["--input-format", "stream-json"]
    return cmd


def _add_basic_flags(cmd: list[str], options: AgentOptions) -> None:
    if options.system_prompt:
        cmd += ["--system-prompt", options.system_prompt]
    if options.model:
        cmd += ["--model", options.model]
    if options.fallback_model:
        cmd += ["--fallback-model", options.fallback_model]
    if options.max_turns is not None and options.max_turns > 0:
        cmd += ["--max-turns", str(options.max_turns)]
    if options.max_budget_usd is not None and options.max_budget_usd > 0:
        cmd += ["--max-budget-usd", repr(float(options.max_budget_usd))]


def _add_tool_flags(cmd: list[str], options: AgentOptions) -> None:
    if options.permission_mode:
        cmd += ["--permission-mode", _value(options.permission_mode)]
    if options.allowed_tools:
        cmd += ["--allowedTools", ",".join(options.allowed_tools)]
    if options.disallowed_tools:
        cmd += ["--disallowedTools", ",".join(options.disallowed_tools)]


def _add_session_flags(cmd: list[str], options: AgentOptions) -> None:
    if options.continue_conversation:
        cmd.append("--continue")
    if options.resume:
        cmd += ["--resume", options.resume]
    if options.max_thinking_tokens is not None and options.max_thinking_tokens > 0:
        cmd += ["--max-thinking-tokens", str(options.max_thinking_tokens)]
    if options.mcp_config:
        cmd += ["--mcp-config", options.mcp_config]
    if options.fork_session:
        cmd.append("--fork-session")


def _add_advanced_flags(cmd: list[str], options: AgentOptions) -> None:
    for key, value in options.extra_args.items():
        if value:
            cmd += [f"--{key}", value]
        else:
            cmd.append(f"--{key}")
    for directory in options.add_dirs:
        cmd += ["--add-dir", directory]
    if options.settings:
        cmd += ["--settings", options.settings]
    if options.betas:
        cmd += ["--betas", ",".join(options.betas)]
    if options.agents:
        agents = {name: agent.to_dict() for name, agent in options.agents.items()}
        cmd += ["--agents", json.dumps(agents)]

    # Always present; an empty value loads no settings files.
    sources = options.setting_sources or []
    cmd += ["--setting-sources", ",".join(_value(s) for s in sources)]

    for plugin in options.plugins:
        if plugin.type == "local":
            cmd += ["--plugin-dir", plugin.path]


def _add_output_flags(cmd: list[str], options: AgentOptions) -> None:
    if options.json_schema is not None:
        cmd += ["--json-schema", json.dumps(options.json_schema)]
    if options.include_partial_messages:
        cmd.append("--include-partial-messages")


def _add_sandbox_flags(cmd: list[str], options: AgentOptions) -> None:
    sandbox = options.sandbox
    if sandbox is None:
        return
    if sandbox.enabled:
        cmd.append("--sandbox")
    if sandbox.auto_allow_bash_if_sandboxed:
        cmd.append("--sandbox-auto-allow-bash")
    for excluded in sandbox.excluded_commands:
        cmd += ["--sandbox-exclude-command", excluded]
    if sandbox.allow_unsandboxed_commands:
        cmd.append("--sandbox-allow-unsandboxed")
    network = sandbox.network
    if network is not None:
        for socket in network.allow_unix_sockets:
            cmd += ["--sandbox-allow-unix-socket", socket]
        if network.allow_all_unix_sockets:
            cmd.append("--sandbox-allow-all-unix-sockets")
        if network.allow_local_binding:
            cmd.append("--sandbox-allow-local-binding")
    if sandbox.enable_weaker_nested_sandbox:
        cmd.append("--sandbox-weaker-nested")


def _value(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class SubprocessTransport(Transport):
    """Runs the CLI as a child process.

    Parameters
    ----------
    options:
        Session options. ``cli_path``, ``cli_resolver``, ``cwd``, ``env``,
        ``max_buffer_size``, ``max_queued_messages`` and ``stderr`` are used
        here; the rest become command-line flags.
    """

    def __init__(self, options: AgentOptions | None = None) -> None:
        self._options = options or AgentOptions()
        self._process: asyncio.subprocess.Process | None = None
        self._messages: Channel[bytes] = Channel(self._options.max_queued_messages)
        self._errors: Channel[Exception] = Channel(ERROR_CHANNEL_CAPACITY)
        self._stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        self._reader_task: asyncio.Task[None] | None = None
        self._stderr_task: asyncio.Task[str] | None = None
        self._lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._ready = False
        self._closing = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    def messages(self) -> Channel[bytes]:
        return self._messages

    def errors(self) -> Channel[Exception]:
        return self._errors

    # -- Lifecycle ----------------------------------------------------------

    async def connect(self) -> None:
        async with self._lock:
            if self._ready:
                return

            cli_path = self._resolve_cli()
            cwd = self._options.cwd
            if cwd is not None and not os.path.isdir(cwd):
                raise CLIConnectionError(f"working directory does not exist: {cwd}")

            cmd = build_command(cli_path, self._options)
            logger.debug("starting CLI: %s", cmd)
            try:
                self._process = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=cwd,
                    env=self._build_env(),
                    limit=self._options.max_buffer_size,
                )
            except FileNotFoundError as exc:
                raise CLINotFoundError(f"CLI not found at {cli_path}") from exc
            except OSError as exc:
                raise CLIConnectionError(f"failed to start CLI: {exc}") from exc

            if self._messages.closed:
                self._messages = Channel(self._options.max_queued_messages)
            if self._errors.closed:
                self._errors = Channel(ERROR_CHANNEL_CAPACITY)
            self._stderr_tail = deque(maxlen=STDERR_TAIL_LINES)
            self._closing = False

            self._stderr_task = asyncio.create_task(self._drain_stderr(self._process, self._stderr_tail))
            self._reader_task = asyncio.create_task(
                self._read_stdout(self._process, self._messages, self._errors, self._stderr_task)
            )
            self._ready = True

    async def close(self) -> None:
        """Stop the CLI.

        The reader is given at most ``CLOSE_WAIT_SECONDS`` to observe the
        exit. Descendants of the CLI that inherited its pipes may keep them
        open longer; the reader then finishes in the background.
        """
        async with self._lock:
            if not self._ready:
                return
            self._ready = False
            self._closing = True

            process = self._process
            if process is not None:
                if process.stdin is not None and not process.stdin.is_closing():
                    process.stdin.close()
                if process.returncode is None:
                    try:
                        process.kill()
                    except ProcessLookupError:
                        pass

            # asyncio.wait neither cancels the reader on timeout nor when
            # close() itself is cancelled.
            if self._reader_task is not None and not self._reader_task.done():
                await asyncio.wait({self._reader_task}, timeout=CLOSE_WAIT_SECONDS)

    def _resolve_cli(self) -> str:
        if self._options.cli_path:
            return self._options.cli_path
        resolver = self._options.cli_resolver or find_cli
        return resolver()

    def _build_env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["CLAUDE_CODE_ENTRYPOINT"] = ENTRYPOINT
        if self._options.enable_file_checkpointing:
            env["CLAUDE_CODE_ENABLE_SDK_FILE_CHECKPOINTING"] = "true"
        env.update(self._options.env)
        return env

    # -- I/O ----------------------------------------------------------------

    async def send(self, data: bytes) -> None:
        process = self._process
        if not self._ready or process is None or process.stdin is None:
            raise NotConnectedError("transport is not connected")
        async with self._write_lock:
            try:
                process.stdin.write(data)
                await process.stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as exc:
                raise CLIConnectionError(f"failed to write to CLI: {exc}") from exc

    # Reader tasks receive the process and channels of their own connection,
    # so a reader outliving close() never touches those of a later connect().

    async def _read_stdout(
        self,
        process: asyncio.subprocess.Process,
        messages: Channel[bytes],
        errors: Channel[Exception],
        stderr_task: asyncio.Task[str],
    ) -> None:
        assert process.stdout is not None
        stdout = process.stdout
        try:
            while True:
                try:
                    line = await stdout.readline()
                except ValueError:
                    await errors.offer(MessageTooLargeError(self._options.max_buffer_size))
                    continue
                if not line:
                    break
                line = line.strip()
                if not line:
                    continue
                if not await messages.offer(line):
                    logger.warning("message channel full (%d), dropping message", messages.capacity)
        finally:
            await messages.close()
            try:
                await self._finish_process(process, errors, stderr_task)
            finally:
                await errors.close()

    async def _finish_process(
        self,
        process: asyncio.subprocess.Process,
        errors: Channel[Exception],
        stderr_task: asyncio.Task[str],
    ) -> None:
        returncode = await process.wait()
        tail = await stderr_task
        if returncode != 0 and not self._closing:
            await errors.offer(ProcessError(returncode, tail))

    async def _drain_stderr(self, process: asyncio.subprocess.Process, tail: deque[str]) -> str:
        assert process.stderr is not None
        stderr = process.stderr
        callback = self._options.stderr
        while True:
            try:
                raw = await stderr.readline()
            except ValueError:
                continue
            if not raw:
                return "\n".join(tail)
            line = raw.decode("utf-8", errors="replace").rstrip()
            if not line:
                continue
            tail.append(line)
            logger.debug("CLI stderr: %s", line)
            if callback is not None:
                try:
                    callback(line)
                except Exception:
                    logger.warning("stderr callback raised", exc_info=True)

    def __repr__(self) -> str:
        return f"SubprocessTransport(ready={self._ready}, pid={self.pid})"
