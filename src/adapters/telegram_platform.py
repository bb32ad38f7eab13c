"""Telegram platform adapter.

Implements the core PlatformPort on top of connected Telethon clients. Channel
lines go out through the bot session; peer lines go out through the user
session, since Telegram does not deliver bot messages to other bots.
"""

from __future__ import annotations

from typing import Mapping, Optional, Union

from core.channel_keys import chat_id_from_key
from core.models import Destination, DestinationKind, PeerInfo
from adapters.telegram_mapper import display_name

NO_USER_SESSION = "no user session"


class TelegramPlatform:
    """Platform adapter that relays chat lines through Telegram."""

    def __init__(
        self,
        client,
        peer_client=None,
        peer_usernames: Optional[Mapping[int, str]] = None,
        parse_mode: str = "md",
    ) -> None:
        self._client = client
        self._peer_client = peer_client
        self._peer_usernames = dict(peer_usernames or {})
        self._parse_mode = parse_mode

    def _peer_entity(self, peer_id: int) -> Union[str, int]:
        # A user session can only resolve a bare id it has seen before.
        return self._peer_usernames.get(peer_id) or peer_id

    def _route(self, destination: Destination):
        if destination.kind is DestinationKind.PEER:
            if self._peer_client is None:
                raise RuntimeError(f"Cannot reach {destination}: {NO_USER_SESSION}")
            return self._peer_client, self._peer_entity(int(destination.key))
        if destination.kind is DestinationKind.CHANNEL:
            chat_id = chat_id_from_key(destination.key)
            return self._client, chat_id if chat_id is not None else destination.key
        raise ValueError(f"{destination} is not a platform destination")

    async def send(self, destination: Destination, text: str) -> None:
        """Send a rendered line to a channel or a peer's private chat."""

        client, entity = self._route(destination)
        try:
            message = await client.send_message(entity, text, parse_mode=self._parse_mode)
        except Exception as exc:
            raise RuntimeError(f"Telegram send to {destination} failed: {exc}") from exc
        if message is None:
            raise RuntimeError(f"Telegram send to {destination} returned no message")

    async def get_peer(self, peer_id: int) -> PeerInfo:
        """Look up a peer account; lookup errors mean the peer is unreachable."""

        def _unreachable(state: str, name: str = str(peer_id)) -> PeerInfo:
            return PeerInfo(peer_id=peer_id, display_name=name, is_bot=False, reachable=False, state=state)

        client = self._peer_client
        if client is None:
            return _unreachable(NO_USER_SESSION)
        if not client.is_connected():
            return _unreachable("disconnected")
        try:
            entity = await client.get_entity(self._peer_entity(peer_id))
        except Exception:
            return _unreachable("unresolved")
        if getattr(entity, "deleted", False):
            return _unreachable("deleted", display_name(entity))
        return PeerInfo(
            peer_id=peer_id,
            display_name=display_name(entity),
            is_bot=bool(getattr(entity, "bot", False)),
            reachable=True,
        )
