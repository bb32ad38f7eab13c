"""Line-delimited JSON game adapter.

Implements the core GamePort by writing broadcast commands to a text stream
(stdout by default) for the game server plugin to execute. Console lines are
written to the ``game.console`` logger.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import threading
from typing import AsyncIterator, Optional, TextIO

from adapters.game_mapper import GameEvent, parse_game_line
from core.models import Color

LOGGER = logging.getLogger(__name__)
CONSOLE_LOGGER = logging.getLogger("game.console")


class JsonLinesGame:
    """GamePort that emits ``broadcast`` commands as JSON lines."""

    def __init__(self, output: Optional[TextIO] = None) -> None:
        self._output = output or sys.stdout
        self._lock = threading.Lock()

    def broadcast(self, text: str, color: Color) -> None:
        payload = {"type": "broadcast", "text": text, "color": color.hex()}
        line = json.dumps(payload, ensure_ascii=False)
        with self._lock:
            self._output.write(line + "\n")
            self._output.flush()

    def console(self, text: str, color: Color) -> None:
        CONSOLE_LOGGER.info(text)


def _start_reader(stream: TextIO, loop: asyncio.AbstractEventLoop, queue: "asyncio.Queue[Optional[str]]") -> None:
    def _put(item: Optional[str]) -> bool:
        try:
            loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # The loop is gone; nobody is waiting for game events any more.
            return False
        return True

    def _read() -> None:
        try:
            for line in iter(stream.readline, ""):
                if not _put(line):
                    return
        except (OSError, ValueError) as exc:
            LOGGER.warning("Game bridge read failed: %s", exc)
        _put(None)

    # Daemon thread: a read blocked on an open pipe must not keep the process alive.
    threading.Thread(target=_read, name="game-bridge-reader", daemon=True).start()


async def read_game_events(stream: Optional[TextIO] = None) -> AsyncIterator[GameEvent]:
    """Yield game events from a blocking text stream until EOF.

    Lines are read on a daemon thread and handed to the event loop through a
    queue, so cancelling the consumer never waits on the game.
    """

    queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
    _start_reader(stream or sys.stdin, asyncio.get_running_loop(), queue)
    while True:
        line = await queue.get()
        if line is None:
            return
        event = parse_game_line(line)
        if event is not None:
            yield event
