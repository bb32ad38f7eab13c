from __future__ import annotations

import asyncio
import io
import json
import os

from adapters.game_bridge import JsonLinesGame, read_game_events
from adapters.game_mapper import PlayerPresence
from core.models import ChatEvent, Color


def test_broadcast_writes_one_json_line() -> None:
    output = io.StringIO()
    game = JsonLinesGame(output)

    game.broadcast("<Bob> hi", Color(0, 255, 185))

    (line,) = output.getvalue().splitlines()
    assert json.loads(line) == {"type": "broadcast", "text": "<Bob> hi", "color": "00FFB9"}


def test_console_lines_go_to_the_log_not_the_stream(caplog) -> None:
    output = io.StringIO()
    caplog.set_level("INFO", logger="game.console")

    JsonLinesGame(output).console("Alice: hi", Color(255, 255, 255))

    assert output.getvalue() == ""
    assert "Alice: hi" in caplog.text


def test_read_game_events_until_eof() -> None:
    stream = io.StringIO(
        '{"type": "join", "name": "Alice"}\n'
        "garbage\n"
        '{"type": "chat", "name": "Alice", "text": "hi"}\n'
    )

    async def _collect() -> list:
        return [event async for event in read_game_events(stream)]

    events = asyncio.run(_collect())

    assert events == [
        PlayerPresence("Alice", True),
        ChatEvent(sender_id=-1, sender_name="Alice", text="hi"),
    ]


def test_cancelling_the_reader_does_not_wait_for_an_open_pipe() -> None:
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "r", encoding="utf-8")
    os.write(write_fd, b'{"type": "join", "name": "Alice"}\n')
    events: list = []

    async def _pump() -> None:
        async for event in read_game_events(reader):
            events.append(event)

    async def _run() -> bool:
        task = asyncio.create_task(_pump())
        for _ in range(200):
            if events:
                break
            await asyncio.sleep(0.01)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return task.cancelled()

    try:
        # The write end stays open, so the reader thread is still blocked here.
        assert asyncio.run(asyncio.wait_for(_run(), timeout=5)) is True
        assert events == [PlayerPresence("Alice", True)]
    finally:
        os.close(write_fd)
        reader.close()
