# /// script
# requires-python = ">=3.10"
# dependencies = ["claude-cli-sdk"]
# ///
"""04 - Streaming: print partial updates as they arrive.

With ``include_partial_messages`` the CLI emits raw ``stream_event``
frames carrying text deltas ahead of each complete assistant message.

    uv run examples/04_streaming.py
"""

import asyncio

from claude_cli_sdk import AgentOptions, ResultMessage, StreamEvent, query


async def main():
    options = AgentOptions(include_partial_messages=True)
    async for message in query("Write a haiku about pipes.", options=options):
        if isinstance(message, StreamEvent):
            delta = message.event.get("delta", {})
            if delta.get("type") == "text_delta":
                print(delta.get("text", ""), end="", flush=True)
        elif isinstance(message, ResultMessage):
            print()


if __name__ == "__main__":
    asyncio.run(main())
