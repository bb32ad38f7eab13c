"""Core relay pipeline for game chat.

This module is integration-agnostic. It only relies on ports for the game and
the messaging platform. The pipeline for one chat event is:
1) Build the canonical ChatMessage (listeners may adjust the builder)
2) Broadcast locally to all game clients and the console
3) Fan out concurrently to the allowlisted platform channels and peer bots

Every remote destination succeeds or fails on its own. Failures are logged and
recorded in the returned report, never raised to the caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
import logging
from typing import Callable, Optional

from core.channel_keys import ChannelAllowlist
from core.colors import PLAIN_POLICY, apply_policy, build_lookup
from core.config import MAX_CHAT_LENGTH, PeerConfig, RelayConfig
from core.delivery import DirectSink, QueuedSink
from core.message import ChatMessage, MessageBuilder, Section
from core.models import (
    WHITE,
    ChatEvent,
    DeliveryResult,
    Destination,
    DestinationKind,
    RelayReport,
)
from core.ports import GamePort, ItemResolverPort, PlatformPort
from core.tags import parse_colors, strip_tags

LOGGER = logging.getLogger(__name__)

CONSOLE = Destination(DestinationKind.CONSOLE)
ALL_CLIENTS = Destination(DestinationKind.ALL_CLIENTS)

Listener = Callable[[MessageBuilder, ChatEvent], None]


def channel_destination(channel_key: str) -> Destination:
    return Destination(DestinationKind.CHANNEL, channel_key)


def peer_destination(peer_id: int) -> Destination:
    return Destination(DestinationKind.PEER, str(peer_id))


class RelayRouter:
    """Formats game chat and delivers it to every configured destination."""

    def __init__(
        self,
        config: RelayConfig,
        game: GamePort,
        platform: PlatformPort,
        items: Optional[ItemResolverPort] = None,
    ) -> None:
        self._config = config
        self._game = game
        self._platform = platform
        self._items = items
        self._channels = ChannelAllowlist(config.channels)
        self._listeners: list[Listener] = []
        self._sinks: dict[Destination, QueuedSink] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def channels(self) -> ChannelAllowlist:
        return self._channels

    def add_listener(self, listener: Listener) -> None:
        """Register a callback run on every message before it is relayed.

        Listeners run synchronously in registration order and may modify the
        builder (prefixes, colors, text).
        """

        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def sink_for(self, destination: Destination) -> QueuedSink:
        """Return the ordered delivery queue for a remote destination."""

        sink = self._sinks.get(destination)
        if sink is None:
            sink = QueuedSink(DirectSink(self._platform, destination))
            self._sinks[destination] = sink
        return sink

    def create_message(self, event: ChatEvent) -> MessageBuilder:
        """Build the canonical message for a game chat event."""

        return (
            MessageBuilder(self._config.game_template)
            .set_header(event.group_name)
            .set_name(event.sender_name)
            .prefix(event.prefix)
            .suffix(event.suffix)
            .set_text(event.text)
            .colorize(event.group_color)
        )

    def _run_listeners(self, builder: MessageBuilder, event: ChatEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(builder, event)
            except Exception:
                LOGGER.exception("Chat listener %r failed", listener)

    async def relay(self, event: ChatEvent) -> RelayReport:
        """Run the full relay pipeline for one game chat event."""

        report = RelayReport()
        if len(event.text) > MAX_CHAT_LENGTH:
            LOGGER.warning(
                "Dropping chat from %s: %s characters exceeds %s",
                event.sender_name,
                len(event.text),
                MAX_CHAT_LENGTH,
            )
            return report

        builder = self.create_message(event)
        self._run_listeners(builder, event)
        message = builder.build()

        # Local delivery always happens first and never waits on the network.
        self._broadcast_local(message, builder.template, report)

        jobs = [self._relay_channel(channel, message) for channel in self._channels]
        jobs.extend(self._relay_peer(peer, message, event) for peer in self._config.peers)
        if jobs:
            for result in await asyncio.gather(*jobs):
                report.add(result)
        return report

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def dispatch(self, event: ChatEvent) -> asyncio.Task:
        """Schedule ``relay`` on the running loop without waiting for it."""

        return self._spawn(self._relay_logged(event))

    def dispatch_presence(self, player_name: str, joined: bool) -> asyncio.Task:
        """Schedule a join or leave notice without waiting for it."""

        if joined:
            return self._spawn(self.announce_join(player_name))
        return self._spawn(self.announce_leave(player_name))

    async def drain(self) -> None:
        """Wait for every dispatched relay to finish."""

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _relay_logged(self, event: ChatEvent) -> RelayReport:
        try:
            report = await self.relay(event)
        except Exception:
            LOGGER.exception("Relay crashed for chat from %s", event.sender_name)
            return RelayReport()
        if report.failed:
            LOGGER.info(
                "Relay for %s: delivered=%s failed=%s",
                event.sender_name,
                len(report.delivered),
                len(report.failed),
            )
        return report

    def _broadcast_local(self, message: ChatMessage, template: str, report: RelayReport) -> None:
        color = self._config.chat_color_override or message.base_color or WHITE
        text = apply_policy(message, PLAIN_POLICY, {}).render(template)

        try:
            self._game.broadcast(text, color)
            report.add(DeliveryResult.ok(ALL_CLIENTS))
        except Exception as exc:
            LOGGER.exception("Broadcast to game clients failed")
            report.add(DeliveryResult.failed(ALL_CLIENTS, str(exc)))

        console_text = strip_tags(text, items=self._items) if self._config.strip_tags_from_console else text
        try:
            self._game.console(console_text, color)
            report.add(DeliveryResult.ok(CONSOLE))
        except Exception as exc:
            LOGGER.exception("Broadcast to console failed")
            report.add(DeliveryResult.failed(CONSOLE, str(exc)))

        LOGGER.info("Broadcast: %s", text)

    async def _deliver(self, destination: Destination, text: str) -> DeliveryResult:
        timeout = self._config.send_timeout
        try:
            await asyncio.wait_for(self.sink_for(destination).send(text), timeout=timeout)
        except asyncio.TimeoutError:
            LOGGER.error("Message relay to %s timed out after %ss", destination, timeout)
            return DeliveryResult.failed(destination, "timeout")
        except Exception as exc:
            LOGGER.error("Message relay to %s failed: %s", destination, exc)
            return DeliveryResult.failed(destination, str(exc) or type(exc).__name__)
        return DeliveryResult.ok(destination)

    async def _relay_channel(self, channel: str, message: ChatMessage) -> DeliveryResult:
        # The platform does not understand game markup: render plain, strip tags.
        rendered = apply_policy(message, PLAIN_POLICY, {}).render(self._config.platform_template)
        text = strip_tags(rendered, quote=True, items=self._items)
        return await self._deliver(channel_destination(channel), text)

    async def _relay_peer(self, peer: PeerConfig, message: ChatMessage, event: ChatEvent) -> DeliveryResult:
        destination = peer_destination(peer.peer_id)
        try:
            info = await asyncio.wait_for(
                self._platform.get_peer(peer.peer_id), timeout=self._config.send_timeout
            )
        except asyncio.TimeoutError:
            info, state = None, "lookup timed out"
        except Exception as exc:
            info, state = None, f"lookup failed: {exc}"
        else:
            state = info.state if info.reachable else f"unreachable ({info.state})"
            if info.reachable and not info.is_bot:
                state = "not a bot account"

        if info is None or not info.reachable or not info.is_bot:
            LOGGER.warning("Skipping peer %s: %s", peer.peer_id, state)
            return DeliveryResult.failed(destination, state)

        lookup = build_lookup(
            role=event.role_color,
            group=event.group_color,
            message=message.base_color,
            name=message.name.color,
            extra=dict(self._config.named_colors),
        )
        # Peers show which server a line came from in the header slot.
        outgoing = replace(message, header=Section(self._config.server_name))
        outgoing = apply_policy(outgoing, peer.colors, lookup)
        text = outgoing.render(parse_colors(peer.template, lookup), tag_body=True)
        return await self._deliver(destination, text)

    async def announce(self, text: str) -> RelayReport:
        """Send a plain notice to every allowlisted channel."""

        report = RelayReport()
        results = await asyncio.gather(
            *(self._deliver(channel_destination(channel), text) for channel in self._channels)
        )
        for result in results:
            report.add(result)
        return report

    async def announce_join(self, player_name: str) -> RelayReport:
        return await self.announce(f"`{player_name}` has joined.")

    async def announce_leave(self, player_name: str) -> RelayReport:
        return await self.announce(f"`{player_name}` has left.")
