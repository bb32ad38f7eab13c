"""Game-bridge-to-core event mapping adapter.

The game server plugin writes one JSON object per line. This keeps the shape of
those objects out of the core relay.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Optional, Union

from core.models import ChatEvent, Color

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerPresence:
    """A player joined or left the game."""

    name: str
    joined: bool


GameEvent = Union[ChatEvent, PlayerPresence]


def _color(raw: Any) -> Optional[Color]:
    if raw in (None, ""):
        return None
    if isinstance(raw, (list, tuple)) and len(raw) == 3:
        return Color(int(raw[0]), int(raw[1]), int(raw[2]))
    return Color.from_hex(str(raw))


def build_chat_event(payload: dict) -> ChatEvent:
    """Build a core ChatEvent from a decoded ``chat`` payload."""

    group = payload.get("group") or {}
    return ChatEvent(
        sender_id=int(payload.get("player_id", -1)),
        sender_name=str(payload["name"]),
        text=str(payload.get("text", "")),
        role_color=_color(payload.get("role_color")),
        group_color=_color(group.get("color")),
        group_name=str(group.get("name", "")),
        prefix=str(group.get("prefix", "")),
        suffix=str(group.get("suffix", "")),
        context=str(payload.get("context", "")),
    )


def parse_game_line(line: str) -> Optional[GameEvent]:
    """Decode one bridge line. Malformed lines are logged and skipped."""

    line = line.strip()
    if not line:
        return None
    try:
        payload = json.loads(line)
        kind = payload.get("type")
        if kind == "chat":
            return build_chat_event(payload)
        if kind in {"join", "leave"}:
            return PlayerPresence(name=str(payload["name"]), joined=kind == "join")
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        LOGGER.warning("Ignoring malformed game event %r: %s", line[:200], exc)
        return None
    LOGGER.debug("Ignoring game event of type %r", kind)
    return None
