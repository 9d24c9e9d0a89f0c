"""Agent configuration options for claude-cli-sdk.

Provides the ``AgentOptions`` dataclass consumed by :class:`Client` and
:func:`query`. Options are immutable; use :meth:`AgentOptions.replace`
to derive a modified copy.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from claude_cli_sdk.hooks import HookRegistry
from claude_cli_sdk.types import (
    AgentDefinition,
    PermissionMode,
    PluginConfig,
    SandboxSettings,
    SettingSource,
)

if TYPE_CHECKING:
    from claude_cli_sdk.transport import Transport

DEFAULT_MAX_BUFFER_SIZE = 1024 * 1024
DEFAULT_MAX_QUEUED_MESSAGES = 100


@dataclass(frozen=True)
class AgentOptions:
    """Configuration for a CLI session.

    Parameters
    ----------
    system_prompt:
        Custom system prompt.
    model:
        Model identifier (e.g. ``"claude-sonnet-4-5"``).
    fallback_model:
        Model to use if the primary one is unavailable.
    max_turns:
        Maximum number of conversation turns.
    max_budget_usd:
        Spending limit for the session.
    permission_mode:
        One of ``"default"``, ``"acceptEdits"``, ``"plan"``,
        ``"bypassPermissions"``.
    allowed_tools:
        Tool name allowlist.
    disallowed_tools:
        Tool name blocklist.
    cwd:
        Working directory for the CLI process.
    cli_path:
        Explicit path to the CLI executable. Skips discovery.
    cli_resolver:
        Callable returning the CLI path, used when ``cli_path`` is unset.
        Defaults to :func:`~claude_cli_sdk.subprocess_transport.find_cli`.
    env:
        Extra environment variables for the CLI process.
    continue_conversation:
        Continue the most recent conversation.
    resume:
        Session id to resume.
    max_thinking_tokens:
        Token budget for extended thinking.
    mcp_config:
        Path to an MCP server configuration file.
    fork_session:
        Fork resumed sessions to a new session id.
    extra_args:
        Arbitrary flags, keyed without the leading ``--``. ``None`` or
        ``""`` values produce a bare flag.
    add_dirs:
        Additional directories the CLI may access.
    settings:
        Path to a settings file.
    betas:
        Beta features to enable.
    agents:
        Custom sub-agent definitions keyed by name.
    setting_sources:
        Settings files to load. Nothing is loaded by default.
    plugins:
        Plugins to load.
    json_schema:
        JSON schema for structured output.
    sandbox:
        Bash sandbox configuration.
    include_partial_messages:
        Emit :class:`~claude_cli_sdk.types.StreamEvent` messages.
    enable_file_checkpointing:
        Track file changes so they can be rewound with
        :meth:`Client.rewind_files`.
    max_buffer_size:
        Largest accepted output line, in bytes.
    max_queued_messages:
        Capacity of the transport and client message channels.
    stderr:
        Called with each line the CLI writes to stderr.
    hooks:
        Hook callbacks to register with the CLI on connect.
    transport:
        Custom transport, mainly for testing.
    """

    system_prompt: str | None = None
    model: str | None = None
    fallback_model: str | None = None
    max_turns: int | None = None
    max_budget_usd: float | None = None
    permission_mode: PermissionMode | str | None = None
    allowed_tools: list[str] = field(default_factory=list)
    disallowed_tools: list[str] = field(default_factory=list)
    cwd: str | None = None
    cli_path: str | None = None
    cli_resolver: Callable[[], str] | None = None
    env: dict[str, str] = field(default_factory=dict)
    continue_conversation: bool = False
    resume: str | None = None
    max_thinking_tokens: int | None = None
    mcp_config: str | None = None
    fork_session: bool = False
    extra_args: dict[str, str | None] = field(default_factory=dict)
    add_dirs: list[str] = field(default_factory=list)
    settings: str | None = None
    betas: list[str] = field(default_factory=list)
    agents: dict[str, AgentDefinition] | None = None
    setting_sources: list[SettingSource | str] | None = None
    plugins: list[PluginConfig] = field(default_factory=list)
    json_schema: dict[str, Any] | None = None
    sandbox: SandboxSettings | None = None
    include_partial_messages: bool = False
    enable_file_checkpointing: bool = False
    max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE
    max_queued_messages: int = DEFAULT_MAX_QUEUED_MESSAGES
    stderr: Callable[[str], None] | None = None
    hooks: HookRegistry | None = None
    transport: Transport | None = None

    def replace(self, **changes: Any) -> AgentOptions:
        """Return a copy with *changes* applied."""
        return dataclasses.replace(self, **changes)

    @property
    def has_hooks(self) -> bool:
        return self.hooks is not None and len(self.hooks) > 0
