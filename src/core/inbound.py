"""Inbound relay: platform messages shown in game.

Messages typed in an allowlisted channel are formatted with the broadcast
template and color rules; private messages from configured peer relays are
already formatted by the sending relay and are shown as-is.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.channel_keys import ChannelAllowlist
from core.colors import GROUP, NAME, ROLE, ColorRule
from core.config import RelayConfig
from core.message import Section, fill_template
from core.models import GRAY, WHITE, Color, PlatformMessage
from core.ports import ChannelLogPort, GamePort, ItemResolverPort
from core.tags import parse_colors, strip_tags

LOGGER = logging.getLogger(__name__)


class InboundRelay:
    """Routes one platform message into the game, or ignores it."""

    def __init__(
        self,
        config: RelayConfig,
        game: GamePort,
        channel_log: Optional[ChannelLogPort] = None,
        items: Optional[ItemResolverPort] = None,
    ) -> None:
        self._config = config
        self._game = game
        self._channel_log = channel_log
        self._items = items
        self._channels = ChannelAllowlist(config.channels)
        self._peer_ids = {peer.peer_id for peer in config.peers}
        self._peer_accounts = {peer.account_id for peer in config.peers if peer.account_id}

    @property
    def _line_color(self) -> Color:
        return self._config.chat_color_override or WHITE

    def handle(self, message: PlatformMessage) -> Optional[str]:
        """Process one platform message; return the line shown in game, if any."""

        try:
            return self._handle(message)
        except Exception:
            LOGGER.exception("Inbound relay failed for message from %s", message.author_name)
            return None

    def _handle(self, message: PlatformMessage) -> Optional[str]:
        if message.is_own:
            return None
        prefix = self._config.command_prefix
        if prefix and message.text.startswith(prefix):
            return None
        # Attachments are not relayed; only text reaches the game.
        if message.has_attachments or not message.text.strip():
            return None

        if message.is_private:
            if self._is_peer_sender(message):
                self._show(message.text)
                return message.text
            return None

        channel = self._channels.match(message.channel_key)
        if channel is None:
            return None

        if message.is_bot:
            # Other bots are logged but never echoed, peers use private chats.
            self._log(channel, f"{message.author_name}> {message.text}")
            return None

        line = self.format_message(message)
        self._show(line)
        self._log(channel, f"Platform> {message.author_name}: {message.text}")
        return line

    def _is_peer_sender(self, message: PlatformMessage) -> bool:
        # Peer relays send either from their bot or from their user session.
        if message.author_id in self._peer_accounts:
            return True
        return message.is_bot and message.author_id in self._peer_ids

    def format_message(self, message: PlatformMessage) -> str:
        """Render a channel message with the broadcast template."""

        role_color = message.role_color or GRAY
        lookup: dict[str, Optional[Color]] = dict(self._config.named_colors)
        lookup[ROLE] = role_color
        lookup[GROUP] = message.group_color or role_color
        broadcast = self._config.broadcast
        lookup[NAME] = broadcast.name.resolve(lookup)

        def _section(text: str, rule: ColorRule) -> str:
            return Section(text, rule.resolve(lookup)).render()

        role_name = message.role_name or self._config.default_role_name
        nickname = message.nickname or message.author_name
        return fill_template(
            parse_colors(broadcast.template, lookup),
            _section(role_name, broadcast.role),
            _section(message.author_name, broadcast.name),
            _section(nickname, broadcast.nickname),
            message.text,
        )

    def _show(self, line: str) -> None:
        color = self._line_color
        self._game.broadcast(line, color)
        self._game.console(strip_tags(line, items=self._items), color)

    def _log(self, channel: str, line: str) -> None:
        if self._channel_log is not None:
            self._channel_log.write(channel, line)
