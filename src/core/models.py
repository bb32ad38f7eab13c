"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any game- or platform-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Color:
    """RGB color used by chat sections and broadcast lines."""

    r: int
    g: int
    b: int

    def hex(self) -> str:
        return f"{self.r:02X}{self.g:02X}{self.b:02X}"

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        """Parse ``RRGGBB`` (an optional leading ``#`` is accepted)."""

        raw = value.strip().lstrip("#")
        if len(raw) != 6:
            raise ValueError(f"Invalid color: {value!r}")
        try:
            return cls(int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16))
        except ValueError as exc:
            raise ValueError(f"Invalid color: {value!r}") from exc


WHITE = Color(255, 255, 255)
GRAY = Color(128, 128, 128)


@dataclass(frozen=True)
class ChatEvent:
    """A chat line said in game, as handed over by the game bridge."""

    sender_id: int
    sender_name: str
    text: str
    role_color: Optional[Color] = None
    group_color: Optional[Color] = None
    group_name: str = ""
    prefix: str = ""
    suffix: str = ""
    context: str = ""


@dataclass(frozen=True)
class ItemInfo:
    """Display data for an item referenced by an item tag."""

    name: str
    stack: int = 1


@dataclass(frozen=True)
class PlatformMessage:
    """Minimal platform message used by the inbound relay."""

    channel_key: str
    author_id: int
    author_name: str
    text: str
    nickname: Optional[str] = None
    role_name: Optional[str] = None
    role_color: Optional[Color] = None
    group_color: Optional[Color] = None
    is_bot: bool = False
    is_private: bool = False
    is_own: bool = False
    has_attachments: bool = False


@dataclass(frozen=True)
class PeerInfo:
    """Platform-side view of a peer account at the time of a relay."""

    peer_id: int
    display_name: str
    is_bot: bool
    reachable: bool
    state: str = "connected"


class DestinationKind(str, Enum):
    CONSOLE = "console"
    ALL_CLIENTS = "all_clients"
    CHANNEL = "channel"
    PEER = "peer"


@dataclass(frozen=True)
class Destination:
    """One target a formatted chat line may be delivered to."""

    kind: DestinationKind
    key: str = ""

    def __str__(self) -> str:
        if self.key:
            return f"{self.kind.value}:{self.key}"
        return self.kind.value


@dataclass(frozen=True)
class DeliveryResult:
    """Terminal state of one destination for one relayed event."""

    destination: Destination
    delivered: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls, destination: Destination) -> "DeliveryResult":
        return cls(destination=destination, delivered=True)

    @classmethod
    def failed(cls, destination: Destination, reason: str) -> "DeliveryResult":
        return cls(destination=destination, delivered=False, reason=reason)


@dataclass
class RelayReport:
    """Per-destination outcomes collected while relaying one chat event."""

    results: list[DeliveryResult] = field(default_factory=list)

    def add(self, result: DeliveryResult) -> None:
        self.results.append(result)

    def for_destination(self, destination: Destination) -> Optional[DeliveryResult]:
        for result in self.results:
            if result.destination == destination:
                return result
        return None

    @property
    def delivered(self) -> list[Destination]:
        return [r.destination for r in self.results if r.delivered]

    @property
    def failed(self) -> list[Destination]:
        return [r.destination for r in self.results if not r.delivered]
