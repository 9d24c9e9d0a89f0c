# /// script
# requires-python = ">=3.10"
# dependencies = ["claude-cli-sdk"]
# ///
"""05 - Hooks: block dangerous shell commands and audit tool use.

A ``PreToolUse`` hook inspects every Bash call and denies destructive
ones; a ``PostToolUse`` hook logs what ran.

    uv run examples/05_hooks_security.py
"""

import asyncio
import json
from datetime import datetime, timezone

from claude_cli_sdk import (
    AgentOptions,
    AssistantMessage,
    Client,
    HookContext,
    HookDecision,
    HookEvent,
    HookOutput,
    HookRegistry,
    PostToolUseInput,
    PreToolUseInput,
)

BLOCKED = ("rm -rf", "mkfs", "dd if=")

hooks = HookRegistry()


@hooks.on(HookEvent.PRE_TOOL_USE, matcher="Bash")
async def guard_bash(input: PreToolUseInput, ctx: HookContext) -> HookOutput:
    command = input.tool_input.get("command", "")
    if any(pattern in command for pattern in BLOCKED):
        return HookOutput(decision=HookDecision.DENY, reason=f"Blocked dangerous command: {command}")
    return HookOutput(decision=HookDecision.ALLOW)


@hooks.on(HookEvent.POST_TOOL_USE)
async def audit(input: PostToolUseInput, ctx: HookContext) -> None:
    ts = datetime.now(timezone.utc).isoformat()
    print(f"[AUDIT {ts}] {input.tool_name}: {json.dumps(input.tool_input)[:100]}")


async def main():
    options = AgentOptions(hooks=hooks, allowed_tools=["Bash"])
    async with Client(options) as client:
        await client.query("Clean up the build directory with rm -rf build/")
        async for message in client.receive_response():
            if isinstance(message, AssistantMessage):
                print(message.text())


if __name__ == "__main__":
    asyncio.run(main())
