# /// script
# requires-python = ">=3.10"
# dependencies = ["claude-cli-sdk"]
# ///
"""06 - Tool control: restrict tools and change settings mid-session.

    uv run examples/06_tool_control.py
"""

import asyncio

from claude_cli_sdk import AgentOptions, AssistantMessage, Client, PermissionMode, ToolUseBlock


async def main():
    options = AgentOptions(
        allowed_tools=["Read", "Glob", "Grep"],
        disallowed_tools=["Bash", "Write"],
        permission_mode=PermissionMode.DEFAULT,
    )
    async with Client(options) as client:
        await client.query("List the Python files in this directory.")
        async for message in client.receive_response():
            if isinstance(message, AssistantMessage):
                for block in message.content:
                    if isinstance(block, ToolUseBlock):
                        print(f"[tool] {block.name} {block.input}")
                print(message.text())

        # Switch to plan mode and a different model for the next turn.
        await client.set_permission_mode(PermissionMode.PLAN)
        await client.set_model("claude-haiku-4-5")
        await client.query("Outline how you would add type hints to them.")
        async for message in client.receive_response():
            if isinstance(message, AssistantMessage):
                print(message.text())


if __name__ == "__main__":
    asyncio.run(main())
