"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core relay.
"""

from __future__ import annotations

from typing import Mapping, Optional

from telethon.tl.custom import Message
from telethon.tl.types import MessageMediaWebPage

from core.models import Color, PlatformMessage


class RoleResolver:
    """Resolve a sender's role in a chat, with a (chat_id, user_id) cache."""

    def __init__(self, client, role_colors: Optional[Mapping[str, Color]] = None) -> None:
        self._client = client
        self._role_colors = dict(role_colors or {})
        self._cache: dict[tuple[int, int], Optional[str]] = {}

    async def role_name(self, chat_id: int, user_id: int) -> Optional[str]:
        key = (chat_id, user_id)
        if key in self._cache:
            return self._cache[key]
        try:
            permissions = await self._client.get_permissions(chat_id, user_id)
        except Exception:
            self._cache[key] = None
            return None
        if getattr(permissions, "is_creator", False):
            role = "Owner"
        elif getattr(permissions, "is_admin", False):
            role = "Admin"
        else:
            role = None
        self._cache[key] = role
        return role

    def role_color(self, role_name: Optional[str]) -> Optional[Color]:
        if role_name is None:
            return None
        return self._role_colors.get(role_name)


def channel_key_from_message(message: Message) -> str:
    """Normalize a channel key using a single rule enforced across the app."""

    chat = getattr(message, "chat", None)
    username = getattr(chat, "username", None)

    if isinstance(username, str) and username:
        return f"@{username.lower()}"

    # Fallback: always stable and universal
    return f"chat_id:{message.chat_id}"


def display_name(entity) -> str:
    """Return the best human name for a Telegram user entity."""

    first = getattr(entity, "first_name", None)
    last = getattr(entity, "last_name", None)
    if first or last:
        return " ".join(part for part in [first, last] if part)
    username = getattr(entity, "username", None)
    if username:
        return str(username)
    return str(getattr(entity, "id", "unknown"))


def _has_attachments(message: Message) -> bool:
    media = getattr(message, "media", None)
    # Link previews are attached by Telegram itself, not by the sender.
    return media is not None and not isinstance(media, MessageMediaWebPage)


async def build_platform_message(
    message: Message,
    sender,
    is_private: bool,
    role_resolver: Optional[RoleResolver] = None,
) -> PlatformMessage:
    """Build a core PlatformMessage from a Telethon Message and its sender."""

    sender_id = getattr(sender, "id", None) or getattr(message, "sender_id", 0) or 0
    username = getattr(sender, "username", None)
    nickname = display_name(sender) if sender is not None else None
    author_name = username or nickname or str(sender_id)

    role_name = None
    role_color = None
    if role_resolver is not None and not is_private and sender_id:
        role_name = await role_resolver.role_name(message.chat_id, sender_id)
        role_color = role_resolver.role_color(role_name)

    return PlatformMessage(
        channel_key=channel_key_from_message(message),
        author_id=int(sender_id),
        author_name=author_name,
        text=message.raw_text or "",
        nickname=nickname,
        role_name=role_name,
        role_color=role_color,
        is_bot=bool(getattr(sender, "bot", False)),
        is_private=is_private,
        is_own=bool(getattr(message, "out", False)),
        has_attachments=_has_attachments(message),
    )
