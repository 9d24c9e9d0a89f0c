# /// script
# requires-python = ">=3.10"
# dependencies = ["claude-cli-sdk"]
# ///
"""07 - Extended thinking: show the model's reasoning blocks.

    uv run examples/07_extended_thinking.py
"""

import asyncio

from claude_cli_sdk import AgentOptions, AssistantMessage, TextBlock, ThinkingBlock, query


async def main():
    options = AgentOptions(max_thinking_tokens=8000)
    async for message in query("Is 1001 prime? Explain briefly.", options=options):
        if not isinstance(message, AssistantMessage):
            continue
        for block in message.content:
            if isinstance(block, ThinkingBlock):
                print("--- Thinking ---")
                print(block.thinking)
                print("--- End Thinking ---")
            elif isinstance(block, TextBlock):
                print(block.text)


if __name__ == "__main__":
    asyncio.run(main())
