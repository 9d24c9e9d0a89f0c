"""claude-cli-sdk: async Python SDK for driving the Claude Code CLI.

The CLI runs as a subprocess and exchanges JSON lines with the SDK over
its standard streams: conversation messages, plus a control channel for
interrupts, mode and model switches, and hook callbacks.

Quick start::

    import asyncio
    from claude_cli_sdk import query

    async def main():
        async for message in query("What is 2 + 2?"):
            print(message)

    asyncio.run(main())

Interactive client::

    from claude_cli_sdk import AgentOptions, Client

    async with Client(AgentOptions(max_turns=3)) as client:
        await client.query("List the files in this directory")
        async for message in client.receive_response():
            print(message)
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API: high-level entry points.
from claude_cli_sdk.client import Client
from claude_cli_sdk.control import ControlProtocol, ControlRequest, ControlResponse, ControlSubtype
from claude_cli_sdk.exceptions import (
    ClaudeSDKError,
    CLIConnectionError,
    CLIJSONDecodeError,
    CLINotFoundError,
    HookError,
    MessageTooLargeError,
    NoResultError,
    NotConnectedError,
    ProcessError,
)
from claude_cli_sdk.hooks import (
    HookBinding,
    HookCallbackId,
    HookContext,
    HookDecision,
    HookEvent,
    HookInput,
    HookOutput,
    HookRegistry,
    PostToolUseInput,
    PreCompactInput,
    PreToolUseInput,
    StopInput,
    SubagentStopInput,
    UserPromptSubmitInput,
    hook,
)
from claude_cli_sdk.message_parser import decode_frame, parse_message
from claude_cli_sdk.options import AgentOptions
from claude_cli_sdk.query import query, query_result
from claude_cli_sdk.subprocess_transport import SubprocessTransport, build_command, find_cli
from claude_cli_sdk.transport import Channel, Transport
from claude_cli_sdk.types import (
    AgentDefinition,
    AssistantMessage,
    ContentBlock,
    Message,
    PermissionMode,
    PluginConfig,
    ResultMessage,
    SandboxNetworkConfig,
    SandboxSettings,
    SettingSource,
    StreamEvent,
    SystemMessage,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)

__all__ = [
    # Core
    "__version__",
    "Client",
    "query",
    "query_result",
    # Options
    "AgentOptions",
    "AgentDefinition",
    "PermissionMode",
    "PluginConfig",
    "SandboxNetworkConfig",
    "SandboxSettings",
    "SettingSource",
    # Hooks
    "hook",
    "HookBinding",
    "HookCallbackId",
    "HookContext",
    "HookDecision",
    "HookEvent",
    "HookInput",
    "HookOutput",
    "HookRegistry",
    "PreToolUseInput",
    "PostToolUseInput",
    "UserPromptSubmitInput",
    "StopInput",
    "SubagentStopInput",
    "PreCompactInput",
    # Messages
    "Message",
    "UserMessage",
    "AssistantMessage",
    "SystemMessage",
    "ResultMessage",
    "StreamEvent",
    "ContentBlock",
    "TextBlock",
    "ThinkingBlock",
    "ToolUseBlock",
    "ToolResultBlock",
    # Protocol & transport
    "ControlProtocol",
    "ControlRequest",
    "ControlResponse",
    "ControlSubtype",
    "decode_frame",
    "parse_message",
    "Transport",
    "Channel",
    "SubprocessTransport",
    "build_command",
    "find_cli",
    # Exceptions
    "ClaudeSDKError",
    "CLIConnectionError",
    "CLIJSONDecodeError",
    "CLINotFoundError",
    "HookError",
    "MessageTooLargeError",
    "NoResultError",
    "NotConnectedError",
    "ProcessError",
]
