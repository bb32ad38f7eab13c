"""Telegram client factories for chatbridge.

The relay runs two sessions on one event loop: the bot session serves the
allowlisted channels, and an optional user session carries lines to peer relay
bots (Telegram drops bot-to-bot private messages).
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient

LOGGER = logging.getLogger(__name__)


def _build(session_name: str) -> TelegramClient:
    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")

    # Both sessions need app credentials, even the bot one.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    LOGGER.info("Initializing Telegram session %s", session_name)
    return TelegramClient(session_name, int(api_id), api_hash)


def build_client() -> TelegramClient:
    """Create the bot session client; SESSION_NAME defaults to "chatbridge"."""

    load_dotenv()
    return _build(os.getenv("SESSION_NAME", "chatbridge"))


def build_peer_client() -> TelegramClient:
    """Create the user session client used for peer relay traffic.

    PEER_SESSION_NAME defaults to "chatbridge_peer". The session is signed in
    once with ``chatbridge login``.
    """

    load_dotenv()
    return _build(os.getenv("PEER_SESSION_NAME", "chatbridge_peer"))


def bot_token() -> str:
    """Return the relay bot token; the channel session always signs in as a bot."""

    load_dotenv()
    token = os.getenv("BOT_TOKEN")
    if not token:
        raise RuntimeError("Missing BOT_TOKEN in environment")
    return token
