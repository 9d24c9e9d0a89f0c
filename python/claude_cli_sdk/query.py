"""Top-level convenience functions for one-shot queries.

Usage::

    from claude_cli_sdk import query

    async for message in query("What is 2 + 2?"):
        print(message)

Or, when only the final result matters::

    result = await query_result("Summarize README.md")
    print(result.result)
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from claude_cli_sdk.client import Client
from claude_cli_sdk.exceptions import NoResultError
from claude_cli_sdk.options import AgentOptions
from claude_cli_sdk.types import Message, ResultMessage


async def query(
    prompt: str,
    *,
    options: AgentOptions | None = None,
) -> AsyncIterator[Message]:
    """Send a single prompt and stream the response.

    A fresh :class:`Client` is connected for the call and closed once the
    first :class:`ResultMessage` has been yielded, or when the caller stops
    iterating early.

    Parameters
    ----------
    prompt:
        The text to send.
    options:
        Session configuration for the underlying client.
    """
    async with Client(options) as client:
        await client.query(prompt)
        async for message in client.receive_response():
            yield message


async def query_result(
    prompt: str,
    *,
    options: AgentOptions | None = None,
) -> ResultMessage:
    """Run :func:`query` to completion and return its result message.

    Raises
    ------
    NoResultError
        If the CLI's output ended without a result message.
    """
    result: ResultMessage | None = None
    async for message in query(prompt, options=options):
        if isinstance(message, ResultMessage):
            result = message
    if result is None:
        raise NoResultError("query finished without a result message")
    return result
