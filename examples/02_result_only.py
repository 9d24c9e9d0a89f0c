# /// script
# requires-python = ">=3.10"
# dependencies = ["claude-cli-sdk"]
# ///
"""02 - Result only: skip the stream, keep the final answer.

    uv run examples/02_result_only.py
"""

import asyncio

from claude_cli_sdk import AgentOptions, NoResultError, query_result


async def main():
    options = AgentOptions(max_turns=1, system_prompt="Answer tersely.")
    try:
        result = await query_result("Name three prime numbers.", options=options)
    except NoResultError:
        print("The CLI exited before producing a result.")
        return

    print(result.result)
    print(f"took {result.duration_ms} ms, session {result.session_id}")


if __name__ == "__main__":
    asyncio.run(main())
