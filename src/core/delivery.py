"""Message sinks for remote destinations.

A sink is anything with ``async send(text)``. ``DirectSink`` hands every line
to the platform; ``QueuedSink`` wraps another sink, serializes deliveries and
can batch lines into a single platform call to stay under rate limits.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import threading
from typing import AsyncIterator, Protocol

from core.models import Destination
from core.ports import PlatformPort


class MessageSink(Protocol):
    async def send(self, text: str) -> None:
        ...


class DirectSink:
    """Deliver each line to one platform destination."""

    def __init__(self, platform: PlatformPort, destination: Destination) -> None:
        self._platform = platform
        self.destination = destination

    async def send(self, text: str) -> None:
        await self._platform.send(self.destination, text)


class QueuedSink:
    """Ordered delivery queue for one recipient.

    With ``auto_flush`` on (the default) every ``send`` goes out immediately,
    preceded by anything still buffered.
    With it off, lines are buffered until ``flush`` joins them with newlines
    into one delivery. Flushes are triggered by the caller only.
    """

    def __init__(self, sink: MessageSink, auto_flush: bool = True) -> None:
        self._sink = sink
        self.auto_flush = auto_flush
        self._buffer: list[str] = []
        # Producers may live on the game thread; the buffer lock is a thread lock.
        self._buffer_lock = threading.Lock()
        self._send_lock = asyncio.Lock()

    @property
    def pending(self) -> int:
        with self._buffer_lock:
            return len(self._buffer)

    def enqueue(self, text: str) -> None:
        """Buffer a line without sending it."""

        with self._buffer_lock:
            self._buffer.append(text)

    async def send(self, text: str) -> None:
        """Send now in auto-flush mode, otherwise buffer the line.

        Lines still buffered from an earlier batch go out first, in the same
        delivery, so nothing is overtaken.
        """

        if not self.auto_flush:
            self.enqueue(text)
            return
        async with self._send_lock:
            with self._buffer_lock:
                lines = self._buffer + [text]
                self._buffer = []
            await self._sink.send("\n".join(lines))

    async def flush(self) -> bool:
        """Send everything buffered as one message.

        Returns False when there was nothing to send. Delivery errors propagate
        after the buffer has been cleared; lines are not resent.
        """

        async with self._send_lock:
            with self._buffer_lock:
                if not self._buffer:
                    return False
                lines = self._buffer
                self._buffer = []
            await self._sink.send("\n".join(lines))
            return True

    @asynccontextmanager
    async def batch(self) -> AsyncIterator["QueuedSink"]:
        """Buffer everything sent inside the block and flush it on exit."""

        previous = self.auto_flush
        self.auto_flush = False
        try:
            yield self
        finally:
            self.auto_flush = previous
            await self.flush()
