"""Public type definitions for claude-cli-sdk.

Conversation messages and content blocks are immutable dataclasses built
by :mod:`claude_cli_sdk.message_parser`. Each exposes ``to_dict()`` which
renders the same wire shape the CLI emits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

__all__ = [
    # Content blocks
    "TextBlock",
    "ThinkingBlock",
    "ToolUseBlock",
    "ToolResultBlock",
    "ContentBlock",
    # Messages
    "UserMessage",
    "AssistantMessage",
    "SystemMessage",
    "ResultMessage",
    "StreamEvent",
    "Message",
    # Configuration values
    "PermissionMode",
    "SettingSource",
    "AgentDefinition",
    "PluginConfig",
    "SandboxNetworkConfig",
    "SandboxSettings",
]


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextBlock:
    """A text content block."""

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ThinkingBlock:
    """An extended-thinking block with its opaque signature."""

    thinking: str
    signature: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": "thinking", "thinking": self.thinking, "signature": self.signature}


@dataclass(frozen=True)
class ToolUseBlock:
    """A tool invocation requested by the assistant."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "tool_use", "id": self.id, "name": self.name, "input": self.input}


@dataclass(frozen=True)
class ToolResultBlock:
    """The result of a tool invocation.

    Parameters
    ----------
    tool_use_id:
        Id of the :class:`ToolUseBlock` this result answers.
    content:
        Opaque result payload, usually a string or a list of blocks.
    is_error:
        Whether the tool reported a failure.
    """

    tool_use_id: str
    content: Any = None
    is_error: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": "tool_result", "tool_use_id": self.tool_use_id}
        if self.content is not None:
            d["content"] = self.content
        if self.is_error is not None:
            d["is_error"] = self.is_error
        return d


ContentBlock = Union[TextBlock, ThinkingBlock, ToolUseBlock, ToolResultBlock]


# ---------------------------------------------------------------------------
# Conversation messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserMessage:
    """A user turn echoed back by the CLI.

    ``content`` is a plain string for prompts and a list of blocks when the
    CLI reports tool results on behalf of the user.
    """

    content: str | list[ContentBlock]
    uuid: str | None = None
    parent_tool_use_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.content, str):
            content: Any = self.content
        else:
            content = [block.to_dict() for block in self.content]
        d: dict[str, Any] = {"type": "user", "message": {"role": "user", "content": content}}
        if self.uuid is not None:
            d["uuid"] = self.uuid
        if self.parent_tool_use_id is not None:
            d["parent_tool_use_id"] = self.parent_tool_use_id
        return d


@dataclass(frozen=True)
class AssistantMessage:
    """A response from the model.

    Parameters
    ----------
    content:
        Text, thinking, tool-use and tool-result blocks in emission order.
    model:
        Identifier of the model that produced the response.
    parent_tool_use_id:
        Set when the message belongs to a sub-agent tool call.
    error:
        Error tag such as ``"rate_limit"`` or ``"server_error"`` when the
        turn failed.
    """

    content: list[ContentBlock]
    model: str = ""
    parent_tool_use_id: str | None = None
    error: str | None = None

    def text(self) -> str:
        """Concatenate the text blocks of this message."""
        return "".join(block.text for block in self.content if isinstance(block, TextBlock))

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "type": "assistant",
            "message": {
                "model": self.model,
                "content": [block.to_dict() for block in self.content],
            },
        }
        if self.parent_tool_use_id is not None:
            d["parent_tool_use_id"] = self.parent_tool_use_id
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass(frozen=True)
class SystemMessage:
    """A system event such as ``init`` with an opaque payload."""

    subtype: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "system", "subtype": self.subtype, "data": self.data}


@dataclass(frozen=True)
class ResultMessage:
    """Terminal summary of a query: timing, turns, cost and final text.

    Exactly one result arrives per query and it is always the last
    conversation message of that query.
    """

    subtype: str
    duration_ms: int = 0
    duration_api_ms: int = 0
    is_error: bool = False
    num_turns: int = 0
    session_id: str = ""
    total_cost_usd: float | None = None
    usage: dict[str, Any] | None = None
    result: str | None = None
    structured_output: Any = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "type": "result",
            "subtype": self.subtype,
            "duration_ms": self.duration_ms,
            "duration_api_ms": self.duration_api_ms,
            "is_error": self.is_error,
            "num_turns": self.num_turns,
            "session_id": self.session_id,
        }
        if self.total_cost_usd is not None:
            d["total_cost_usd"] = self.total_cost_usd
        if self.usage is not None:
            d["usage"] = self.usage
        if self.result is not None:
            d["result"] = self.result
        if self.structured_output is not None:
            d["structured_output"] = self.structured_output
        return d


@dataclass(frozen=True)
class StreamEvent:
    """A raw partial-update event, emitted with ``include_partial_messages``."""

    uuid: str
    session_id: str
    event: dict[str, Any] = field(default_factory=dict)
    parent_tool_use_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "type": "stream_event",
            "uuid": self.uuid,
            "session_id": self.session_id,
            "event": self.event,
        }
        if self.parent_tool_use_id is not None:
            d["parent_tool_use_id"] = self.parent_tool_use_id
        return d


Message = Union[UserMessage, AssistantMessage, SystemMessage, ResultMessage, StreamEvent]


# ---------------------------------------------------------------------------
# Configuration values consumed by the command builder
# ---------------------------------------------------------------------------


class PermissionMode(str, Enum):
    """How the CLI handles tool permission prompts."""

    DEFAULT = "default"
    ACCEPT_EDITS = "acceptEdits"
    PLAN = "plan"
    BYPASS_PERMISSIONS = "bypassPermissions"


class SettingSource(str, Enum):
    """Settings files the CLI is allowed to load."""

    USER = "user"
    PROJECT = "project"
    LOCAL = "local"


@dataclass(frozen=True)
class AgentDefinition:
    """A custom sub-agent the model can invoke through the Task tool."""

    description: str
    prompt: str
    tools: list[str] | None = None
    model: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"description": self.description, "prompt": self.prompt}
        if self.tools is not None:
            d["tools"] = self.tools
        if self.model:
            d["model"] = self.model
        return d


@dataclass(frozen=True)
class PluginConfig:
    """A plugin to load. Only ``"local"`` plugins are passed to the CLI."""

    path: str
    type: str = "local"


@dataclass(frozen=True)
class SandboxNetworkConfig:
    """Network access allowed inside the bash sandbox."""

    allow_unix_sockets: list[str] = field(default_factory=list)
    allow_all_unix_sockets: bool = False
    allow_local_binding: bool = False


@dataclass(frozen=True)
class SandboxSettings:
    """Bash command sandboxing (macOS and Linux only)."""

    enabled: bool = False
    auto_allow_bash_if_sandboxed: bool = False
    excluded_commands: list[str] = field(default_factory=list)
    allow_unsandboxed_commands: bool = False
    network: SandboxNetworkConfig | None = None
    enable_weaker_nested_sandbox: bool = False
