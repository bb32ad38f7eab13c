"""Append-only per-channel chat log.

Implements the core ChannelLogPort with one ``logging`` file handler per
channel, under ``<root>/<channel>/<start timestamp>.log``.
"""

from __future__ import annotations

from datetime import datetime
import logging
import os
import re

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.@-]+")


def _safe_dirname(channel: str) -> str:
    return _UNSAFE_CHARS.sub("_", channel).strip("_") or "channel"


class ChannelLog:
    """Write relayed channel chatter to plain text files."""

    def __init__(self, root: str) -> None:
        self._root = root
        self._started = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self._loggers: dict[str, logging.Logger] = {}

    def _logger_for(self, channel: str) -> logging.Logger:
        logger = self._loggers.get(channel)
        if logger is not None:
            return logger

        directory = os.path.join(self._root, _safe_dirname(channel))
        os.makedirs(directory, exist_ok=True)
        handler = logging.FileHandler(
            os.path.join(directory, f"{self._started}.log"),
            mode="a",
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter("%(asctime)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))

        logger = logging.getLogger(f"channel_log.{_safe_dirname(channel)}")
        logger.setLevel(logging.INFO)
        # Chat lines stay out of the application log.
        logger.propagate = False
        logger.addHandler(handler)
        self._loggers[channel] = logger
        return logger

    def write(self, channel: str, line: str) -> None:
        self._logger_for(channel).info(line)

    def close(self) -> None:
        for logger in self._loggers.values():
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
        self._loggers.clear()
