"""Transport interface and the bounded channel it delivers lines through.

The transport lifecycle is:

1. ``await transport.connect()`` starts the CLI and its reader task.
2. ``await transport.send(data)`` writes one encoded JSON line.
3. ``async for line in transport.messages()`` receives raw output lines.
4. ``await transport.close()`` shuts the process down.

Custom transports (for tests, or to talk to a remote CLI) implement
:class:`Transport` and are passed through ``AgentOptions(transport=...)``.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from typing import Generic, TypeVar

__all__ = ["Channel", "Transport"]

T = TypeVar("T")


class Channel(Generic[T]):
    """A bounded FIFO that async consumers iterate until it is closed.

    Items left in the channel when it is closed are still delivered;
    iteration stops once the channel is both closed and empty.

    Parameters
    ----------
    capacity:
        Maximum number of buffered items.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("channel capacity must be at least 1")
        self._capacity = capacity
        self._items: deque[T] = deque()
        self._closed = False
        self._cond = asyncio.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._items)

    async def put(self, item: T) -> bool:
        """Wait for room, then enqueue *item*. Returns ``False`` if closed."""
        async with self._cond:
            await self._cond.wait_for(lambda: self._closed or len(self._items) < self._capacity)
            if self._closed:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    async def offer(self, item: T) -> bool:
        """Enqueue *item* only if there is room right now."""
        async with self._cond:
            if self._closed or len(self._items) >= self._capacity:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    async def close(self) -> None:
        async with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __aiter__(self) -> Channel[T]:
        return self

    async def __anext__(self) -> T:
        async with self._cond:
            await self._cond.wait_for(lambda: self._items or self._closed)
            if not self._items:
                raise StopAsyncIteration
            item = self._items.popleft()
            self._cond.notify_all()
            return item


class Transport(ABC):
    """Moves raw JSON lines between the SDK and one CLI process."""

    @abstractmethod
    async def connect(self) -> None:
        """Start the CLI. Calling it on a ready transport does nothing."""

    @abstractmethod
    async def send(self, data: bytes) -> None:
        """Write *data* to the CLI.

        Raises :class:`~claude_cli_sdk.exceptions.NotConnectedError` if the
        transport is not ready.
        """

    @abstractmethod
    def messages(self) -> Channel[bytes]:
        """Channel of raw output lines, closed when the CLI's stdout ends."""

    @abstractmethod
    def errors(self) -> Channel[Exception]:
        """Channel of asynchronous failures, closed after :meth:`messages`."""

    @abstractmethod
    async def close(self) -> None:
        """Stop the CLI. Safe to call more than once."""

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the transport is connected."""
