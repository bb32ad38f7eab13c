"""Helpers for working with platform channel keys.

Channels are named either ``@username`` or ``chat_id:<id>``. The same chat can
show up under several numeric ids (chat, peer and channel forms), so allowlists
are expanded to every equivalent form before matching.
"""

from __future__ import annotations

from typing import Iterable, Optional

CHAT_ID_PREFIX = "chat_id:"


def normalize_channel_key(raw: str) -> str:
    """Return the canonical form of a configured channel key."""

    key = raw.strip()
    if key.startswith("@"):
        return key.lower()
    if key.startswith(CHAT_ID_PREFIX):
        return key
    if key.lstrip("-").isdigit():
        return f"{CHAT_ID_PREFIX}{key}"
    return f"@{key.lower()}"


def chat_id_from_key(channel_key: str) -> Optional[int]:
    """Return the numeric id of a ``chat_id:`` key, or None for usernames."""

    if not channel_key.startswith(CHAT_ID_PREFIX):
        return None
    try:
        return int(channel_key.split(CHAT_ID_PREFIX, 1)[1])
    except ValueError:
        return None


def _expand_chat_id_variants(raw_chat_id: int) -> set[int]:
    """Return equivalent chat id variants (peer id, chat id, channel id)."""

    variants: set[int] = {raw_chat_id}
    if raw_chat_id < 0:
        raw_text = str(raw_chat_id)
        if raw_text.startswith("-100"):
            # Channel/supergroup peer id: -100<channel_id>
            channel_part = raw_text[4:]
            if channel_part.isdigit():
                variants.add(int(channel_part))
        else:
            variants.add(abs(raw_chat_id))
        return variants

    variants.add(-raw_chat_id)
    variants.add(-1000000000000 - raw_chat_id)
    return variants


def expand_channel_key_variants(channel_key: str) -> set[str]:
    """Expand a channel key to include equivalent chat_id variants."""

    chat_id = chat_id_from_key(channel_key)
    if chat_id is None:
        return {channel_key}
    return {f"{CHAT_ID_PREFIX}{variant}" for variant in _expand_chat_id_variants(chat_id)}


class ChannelAllowlist:
    """Configured relay channels, matched against any equivalent key form."""

    def __init__(self, channel_keys: Iterable[str]) -> None:
        self.channels: list[str] = []
        self._aliases: dict[str, str] = {}
        for raw in channel_keys:
            key = normalize_channel_key(raw)
            if key in self.channels:
                continue
            self.channels.append(key)
            for variant in expand_channel_key_variants(key):
                self._aliases.setdefault(variant, key)

    def match(self, channel_key: str) -> Optional[str]:
        """Return the configured key ``channel_key`` refers to, if any."""

        return self._aliases.get(channel_key)

    def __contains__(self, channel_key: str) -> bool:
        return channel_key in self._aliases

    def __iter__(self):
        return iter(self.channels)

    def __len__(self) -> int:
        return len(self.channels)
