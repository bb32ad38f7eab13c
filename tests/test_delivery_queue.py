from __future__ import annotations

import asyncio

import pytest

from core.delivery import DirectSink, QueuedSink
from core.models import Destination, DestinationKind


class RecordingSink:
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send(self, text: str) -> None:
        self.sent.append(text)


class FailingSink:
    async def send(self, text: str) -> None:
        raise RuntimeError("rate limited")


class FakePlatform:
    def __init__(self) -> None:
        self.sent: list[tuple[Destination, str]] = []

    async def send(self, destination: Destination, text: str) -> None:
        self.sent.append((destination, text))


def test_enqueue_then_flush_sends_once() -> None:
    sink = RecordingSink()
    queue = QueuedSink(sink)
    queue.enqueue("a")
    queue.enqueue("b")

    assert asyncio.run(queue.flush()) is True
    assert sink.sent == ["a\nb"]

    assert asyncio.run(queue.flush()) is False
    assert sink.sent == ["a\nb"]


def test_auto_flush_sends_each_message() -> None:
    sink = RecordingSink()
    queue = QueuedSink(sink)

    async def _run() -> None:
        await queue.send("one")
        await queue.send("two")

    asyncio.run(_run())
    assert sink.sent == ["one", "two"]
    assert queue.pending == 0


def test_batch_mode_buffers_until_flush() -> None:
    sink = RecordingSink()
    queue = QueuedSink(sink, auto_flush=False)

    async def _run() -> None:
        await queue.send("x")
        await queue.send("y")
        assert sink.sent == []
        await queue.flush()

    asyncio.run(_run())
    assert sink.sent == ["x\ny"]


def test_batch_context_restores_auto_flush() -> None:
    sink = RecordingSink()
    queue = QueuedSink(sink)

    async def _run() -> None:
        async with queue.batch():
            await queue.send("1")
            await queue.send("2")
            assert queue.pending == 2
        await queue.send("3")

    asyncio.run(_run())
    assert sink.sent == ["1\n2", "3"]
    assert queue.auto_flush is True


def test_send_after_batch_does_not_overtake_buffered_lines() -> None:
    sink = RecordingSink()
    queue = QueuedSink(sink, auto_flush=False)

    async def _run() -> bool:
        await queue.send("first")
        queue.auto_flush = True
        await queue.send("second")
        return await queue.flush()

    assert asyncio.run(_run()) is False
    assert sink.sent == ["first\nsecond"]
    assert queue.pending == 0


def test_concurrent_producers_lose_nothing() -> None:
    sink = RecordingSink()
    queue = QueuedSink(sink, auto_flush=False)

    async def _producer(name: str) -> None:
        for index in range(20):
            await queue.send(f"{name}{index}")
            await asyncio.sleep(0)

    async def _run() -> None:
        await asyncio.gather(*(_producer(name) for name in "abc"))
        await asyncio.gather(queue.flush(), queue.flush())

    asyncio.run(_run())
    assert len(sink.sent) == 1
    lines = sink.sent[0].split("\n")
    assert len(lines) == 60
    assert len(set(lines)) == 60


def test_flush_failure_clears_buffer_and_propagates() -> None:
    queue = QueuedSink(FailingSink())
    queue.enqueue("lost")
    with pytest.raises(RuntimeError):
        asyncio.run(queue.flush())
    assert queue.pending == 0


def test_direct_sink_targets_its_destination() -> None:
    platform = FakePlatform()
    destination = Destination(DestinationKind.CHANNEL, "@game")
    asyncio.run(DirectSink(platform, destination).send("hi"))
    assert platform.sent == [(destination, "hi")]
