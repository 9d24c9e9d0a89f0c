# /// script
# requires-python = ">=3.10"
# dependencies = ["claude-cli-sdk"]
# ///
"""01 - Basic query: the simplest possible interaction.

Sends a single prompt through the top-level ``query()`` function and
prints the assistant's text and the final cost.

    uv run examples/01_basic_query.py
"""

import asyncio

from claude_cli_sdk import AssistantMessage, ResultMessage, query


async def main():
    async for message in query("What is 2 + 2? Answer in one word."):
        if isinstance(message, AssistantMessage):
            print(message.text())
        elif isinstance(message, ResultMessage):
            print(f"[{message.num_turns} turn(s), ${message.total_cost_usd or 0:.4f}]")


if __name__ == "__main__":
    asyncio.run(main())
