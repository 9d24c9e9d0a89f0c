# /// script
# requires-python = ">=3.10"
# dependencies = ["claude-cli-sdk"]
# ///
"""03 - Multi-turn: keep one CLI session across several prompts.

    uv run examples/03_multi_turn.py
"""

import asyncio

from claude_cli_sdk import AgentOptions, AssistantMessage, Client

PROMPTS = [
    "Pick a random fruit and remember it.",
    "What colour is the fruit you picked?",
    "Now name a recipe that uses it.",
]


async def main():
    async with Client(AgentOptions(max_turns=2)) as client:
        info = None
        for prompt in PROMPTS:
            print(f"> {prompt}")
            await client.query(prompt)
            async for message in client.receive_response():
                if isinstance(message, AssistantMessage):
                    print(message.text())
            info = info or client.get_server_info()

        if info:
            print(f"model: {info.get('model')}")


if __name__ == "__main__":
    asyncio.run(main())
