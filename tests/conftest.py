"""Shared test helpers: an in-memory transport standing in for the CLI."""

from __future__ import annotations

import json
from typing import Any

import pytest

from claude_cli_sdk.transport import Channel, Transport


class FakeTransport(Transport):
    """Records everything sent and replays frames fed by the test."""

    def __init__(
        self,
        *,
        connect_error: Exception | None = None,
        send_error: Exception | None = None,
        capacity: int = 100,
    ) -> None:
        self.connect_error = connect_error
        self.send_error = send_error
        self.sent: list[bytes] = []
        self.connect_calls = 0
        self.close_calls = 0
        self._ready = False
        self._messages: Channel[bytes] = Channel(capacity)
        self._errors: Channel[Exception] = Channel(capacity)

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        self._ready = True

    async def send(self, data: bytes) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)

    def messages(self) -> Channel[bytes]:
        return self._messages

    def errors(self) -> Channel[Exception]:
        return self._errors

    async def close(self) -> None:
        self.close_calls += 1
        self._ready = False
        await self._messages.close()
        await self._errors.close()

    @property
    def is_ready(self) -> bool:
        return self._ready

    # -- Test helpers --------------------------------------------------------

    async def feed(self, *frames: dict[str, Any] | bytes) -> None:
        for frame in frames:
            line = frame if isinstance(frame, bytes) else json.dumps(frame).encode()
            await self._messages.put(line)

    async def finish(self) -> None:
        """Simulate the CLI's stdout reaching end of file."""
        await self._messages.close()

    def sent_frames(self) -> list[dict[str, Any]]:
        return [json.loads(data) for data in self.sent]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


def assistant_frame(text: str, model: str = "claude-sonnet-4-5") -> dict[str, Any]:
    return {
        "type": "assistant",
        "message": {"model": model, "content": [{"type": "text", "text": text}]},
    }


def result_frame(**overrides: Any) -> dict[str, Any]:
    frame: dict[str, Any] = {
        "type": "result",
        "subtype": "success",
        "duration_ms": 1200,
        "duration_api_ms": 900,
        "is_error": False,
        "num_turns": 1,
        "session_id": "sess-1",
        "total_cost_usd": 0.0042,
        "result": "4",
    }
    frame.update(overrides)
    return frame
