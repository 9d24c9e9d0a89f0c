"""Exception hierarchy for claude-cli-sdk.

All exceptions inherit from :class:`ClaudeSDKError` so callers can
catch broadly or narrowly as needed.
"""

from __future__ import annotations


class ClaudeSDKError(Exception):
    """Base exception for all claude-cli-sdk errors."""


class CLIConnectionError(ClaudeSDKError):
    """Failed to start or write to the CLI process."""


class CLINotFoundError(ClaudeSDKError):
    """The CLI executable could not be located."""


class NotConnectedError(ClaudeSDKError):
    """An operation was attempted before connect() or after close()."""


class ProcessError(ClaudeSDKError):
    """The CLI process exited with a non-zero status.

    Parameters
    ----------
    exit_code:
        Process return code. Negative values mean the process was
        terminated by a signal.
    stderr:
        Tail of the captured standard error output, if any.
    """

    def __init__(self, exit_code: int, stderr: str = "") -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        message = f"process exited with code {exit_code}"
        if stderr:
            message = f"{message}: {stderr}"
        super().__init__(message)


class CLIJSONDecodeError(ClaudeSDKError):
    """A line from the CLI was not a JSON object."""

    def __init__(self, line: str, original_error: Exception) -> None:
        self.line = line
        self.original_error = original_error
        super().__init__(f"failed to decode JSON: {original_error}")


class MessageTooLargeError(ClaudeSDKError):
    """A stdout line exceeded the configured read buffer."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"message exceeded maximum buffer size of {limit} bytes")


class HookError(ClaudeSDKError):
    """Invalid hook registration."""


class NoResultError(ClaudeSDKError):
    """A query completed without a result message."""
