"""Core configuration dataclasses.

We keep config parsing from disk outside the core, but these dataclasses define
the shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from core.colors import ColorPolicy, ColorRule, ColorSource
from core.message import DEFAULT_CHAT_FORMAT
from core.models import Color

DEFAULT_PLATFORM_FORMAT = "**<{1}> {2}{3}:** {4}"
DEFAULT_BROADCAST_FORMAT = "[c/00ffb9:Platform>] <{0}> {2}[c/Name::] {3}"
DEFAULT_PEER_FORMAT = "[c/00ff00:{0}>] <{1}> {2}{3}[c/Name::] {4}"
DEFAULT_SEND_TIMEOUT = 10.0
MAX_CHAT_LENGTH = 500


@dataclass(frozen=True)
class PeerConfig:
    """A peer relay and how lines sent to it are formatted.

    ``peer_id`` is the peer relay bot lines are sent to. ``account_id`` is the
    user session that peer sends its own lines from, when it has one.
    """

    peer_id: int
    account_id: int = 0
    username: str = ""
    template: str = DEFAULT_PEER_FORMAT
    colors: ColorPolicy = field(
        default_factory=lambda: ColorPolicy(
            prefixes=ColorRule(ColorSource.GROUP),
            name=ColorRule(ColorSource.GROUP),
            suffixes=ColorRule(ColorSource.GROUP),
        )
    )


@dataclass(frozen=True)
class BroadcastConfig:
    """How platform messages are shown in game.

    Slots: {0} role, {1} name, {2} nickname, {3} text.
    """

    template: str = DEFAULT_BROADCAST_FORMAT
    role: ColorRule = ColorRule(ColorSource.ROLE)
    name: ColorRule = ColorRule(ColorSource.ROLE)
    nickname: ColorRule = ColorRule(ColorSource.ROLE)


@dataclass(frozen=True)
class RelayConfig:
    """Everything the relay core reads from configuration."""

    channels: tuple[str, ...] = ()
    game_template: str = DEFAULT_CHAT_FORMAT
    platform_template: str = DEFAULT_PLATFORM_FORMAT
    peers: tuple[PeerConfig, ...] = ()
    broadcast: BroadcastConfig = BroadcastConfig()
    strip_tags_from_console: bool = True
    chat_color_override: Optional[Color] = None
    send_timeout: float = DEFAULT_SEND_TIMEOUT
    server_name: str = "Game"
    command_prefix: str = "!"
    default_role_name: str = "Player"
    # Extra template color placeholders, e.g. ``[c/Staff:...]``.
    named_colors: tuple[tuple[str, Color], ...] = ()


def _optional_color(raw: Any) -> Optional[Color]:
    if raw in (None, ""):
        return None
    return Color.from_hex(str(raw))


def _build_peers(raw_peers: Iterable[dict]) -> tuple[PeerConfig, ...]:
    peers: list[PeerConfig] = []
    for raw in raw_peers:
        if not raw.get("enabled", True):
            continue
        peer_id = int(raw.get("id", 0))
        # Placeholder entries (id 0) ship in the default config.
        if peer_id <= 0:
            continue
        kwargs: dict[str, Any] = {"peer_id": peer_id}
        if raw.get("account_id"):
            kwargs["account_id"] = int(raw["account_id"])
        if raw.get("username"):
            kwargs["username"] = str(raw["username"])
        if raw.get("template"):
            kwargs["template"] = raw["template"]
        if raw.get("colors") is not None:
            kwargs["colors"] = ColorPolicy.from_config(raw["colors"])
        peers.append(PeerConfig(**kwargs))
    return tuple(peers)


def _build_broadcast(raw: dict) -> BroadcastConfig:
    colors = raw.get("colors", {}) or {}
    defaults = BroadcastConfig()
    return BroadcastConfig(
        template=raw.get("template") or defaults.template,
        role=ColorRule.parse(colors["role"]) if "role" in colors else defaults.role,
        name=ColorRule.parse(colors["name"]) if "name" in colors else defaults.name,
        nickname=ColorRule.parse(colors["nickname"]) if "nickname" in colors else defaults.nickname,
    )


def build_relay_config(raw: dict) -> RelayConfig:
    """Normalize the raw config mapping into a RelayConfig.

    Missing sections fall back to defaults; malformed colors or color sources
    raise ValueError so bad configs fail at startup.
    """

    templates = raw.get("templates", {}) or {}
    console = raw.get("console", {}) or {}
    platform = raw.get("platform", {}) or {}
    return RelayConfig(
        channels=tuple(raw.get("channels", []) or []),
        game_template=templates.get("game") or DEFAULT_CHAT_FORMAT,
        platform_template=templates.get("platform") or DEFAULT_PLATFORM_FORMAT,
        peers=_build_peers(raw.get("peers", []) or []),
        broadcast=_build_broadcast(raw.get("broadcast", {}) or {}),
        strip_tags_from_console=bool(console.get("strip_tags", True)),
        chat_color_override=_optional_color(raw.get("chat_color_override")),
        send_timeout=float(raw.get("send_timeout", DEFAULT_SEND_TIMEOUT)),
        server_name=str(raw.get("server_name", "Game")),
        command_prefix=str(platform.get("command_prefix", "!")),
        default_role_name=str(platform.get("default_role_name", "Player")),
        named_colors=tuple(
            (str(name), Color.from_hex(str(value))) for name, value in (raw.get("named_colors") or {}).items()
        ),
    )
