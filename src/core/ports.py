"""Ports (interfaces) used by the core relay.

Ports define the minimal contracts for the game server, the messaging platform
and the channel log so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

from core.models import Color, Destination, ItemInfo, PeerInfo

if TYPE_CHECKING:
    from core.tags import Tag


class ItemResolverPort(Protocol):
    """Item lookups required to turn item tags into display names."""

    def resolve(self, tag: "Tag") -> Optional[ItemInfo]:
        ...


class GamePort(Protocol):
    """In-process game operations. These never suspend."""

    def broadcast(self, text: str, color: Color) -> None:
        ...

    def console(self, text: str, color: Color) -> None:
        ...


class PlatformPort(Protocol):
    """Messaging platform operations required by the relay."""

    async def send(self, destination: Destination, text: str) -> None:
        ...

    async def get_peer(self, peer_id: int) -> PeerInfo:
        ...


class ChannelLogPort(Protocol):
    """Append-only per-channel chat log."""

    def write(self, channel: str, line: str) -> None:
        ...
