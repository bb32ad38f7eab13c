from __future__ import annotations

import asyncio

import pytest

from adapters.telegram_platform import NO_USER_SESSION, TelegramPlatform
from core.models import Destination, DestinationKind


class DummyEntity:
    def __init__(self, *, bot: bool = False, deleted: bool = False) -> None:
        self.id = 1
        self.first_name = "Peer"
        self.last_name = None
        self.username = None
        self.bot = bot
        self.deleted = deleted


class DummyClient:
    def __init__(self, connected: bool = True, entities: "dict | None" = None) -> None:
        self._connected = connected
        self._entities = entities or {}
        self.sent: list[tuple] = []
        self.fail_send = False

    def is_connected(self) -> bool:
        return self._connected

    async def get_entity(self, peer_id: int):
        if peer_id not in self._entities:
            raise ValueError("no such user")
        return self._entities[peer_id]

    async def send_message(self, entity, text, parse_mode=None):
        if self.fail_send:
            raise ConnectionError("flood wait")
        self.sent.append((entity, text, parse_mode))
        return object()


def test_channel_lines_use_the_bot_session() -> None:
    client = DummyClient()
    platform = TelegramPlatform(client)

    async def _run() -> None:
        await platform.send(Destination(DestinationKind.CHANNEL, "@game"), "a")
        await platform.send(Destination(DestinationKind.CHANNEL, "chat_id:-100123"), "b")

    asyncio.run(_run())

    assert client.sent == [("@game", "a", "md"), (-100123, "b", "md")]


def test_peer_lines_use_the_user_session() -> None:
    client = DummyClient()
    peer_client = DummyClient()
    platform = TelegramPlatform(client, peer_client=peer_client, peer_usernames={77: "other_relay_bot"})

    async def _run() -> None:
        await platform.send(Destination(DestinationKind.PEER, "77"), "c")
        await platform.send(Destination(DestinationKind.PEER, "78"), "d")

    asyncio.run(_run())

    assert client.sent == []
    assert peer_client.sent == [("other_relay_bot", "c", "md"), (78, "d", "md")]


def test_peer_without_user_session_is_unreachable() -> None:
    platform = TelegramPlatform(DummyClient(entities={1: DummyEntity(bot=True)}))

    info = asyncio.run(platform.get_peer(1))
    assert not info.reachable
    assert info.state == NO_USER_SESSION

    with pytest.raises(RuntimeError, match=NO_USER_SESSION):
        asyncio.run(platform.send(Destination(DestinationKind.PEER, "1"), "a"))


def test_send_failure_is_raised() -> None:
    client = DummyClient()
    client.fail_send = True

    with pytest.raises(RuntimeError, match="flood wait"):
        asyncio.run(TelegramPlatform(client).send(Destination(DestinationKind.CHANNEL, "@game"), "a"))


def test_local_destinations_are_rejected() -> None:
    with pytest.raises(ValueError):
        asyncio.run(TelegramPlatform(DummyClient()).send(Destination(DestinationKind.CONSOLE), "a"))


def test_get_peer_states() -> None:
    peer_client = DummyClient(entities={1: DummyEntity(bot=True), 2: DummyEntity(deleted=True)})
    platform = TelegramPlatform(DummyClient(), peer_client=peer_client)

    bot = asyncio.run(platform.get_peer(1))
    assert bot.reachable and bot.is_bot
    assert bot.display_name == "Peer"

    assert asyncio.run(platform.get_peer(2)).state == "deleted"
    assert asyncio.run(platform.get_peer(3)).state == "unresolved"

    offline = TelegramPlatform(DummyClient(), peer_client=DummyClient(connected=False))
    info = asyncio.run(offline.get_peer(1))
    assert not info.reachable
    assert info.state == "disconnected"


def test_peer_lookup_prefers_configured_username() -> None:
    peer_client = DummyClient(entities={"other_relay_bot": DummyEntity(bot=True)})
    platform = TelegramPlatform(DummyClient(), peer_client=peer_client, peer_usernames={77: "other_relay_bot"})

    assert asyncio.run(platform.get_peer(77)).is_bot
