"""Application entry point for the chatbridge relay."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

from art import text2art
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.channel_log import ChannelLog
from adapters.game_bridge import JsonLinesGame, read_game_events
from adapters.game_mapper import PlayerPresence
from adapters.item_table import ItemTable
from adapters.telegram_mapper import RoleResolver, build_platform_message
from adapters.telegram_platform import TelegramPlatform
from client import bot_token, build_client, build_peer_client
from core.config import PeerConfig
from core.inbound import InboundRelay
from core.router import RelayRouter
from login import authorize

NAME = "CHATBRIDGE"
FONT = "tarty-1"

# Environment variables whose values must never reach a log file.
SECRET_ENV_VARS = ["BOT_TOKEN", "API_HASH", "2FA", "PHONE"]


def _print_banner() -> None:
    # stdout is reserved for game commands.
    print(text2art(NAME, font=FONT, space=1), file=sys.stderr)


class _RedactingFormatter(logging.Formatter):
    """Masks bot tokens, API hashes and login secrets in every log line."""

    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    names = SECRET_ENV_VARS + list(redact_cfg.get("patterns", []))
    values = {os.getenv(name) for name in names}
    # Longest first, so a token is never half-masked by one of its substrings.
    return sorted((value for value in values if value), key=len, reverse=True)


def _rotating_file_handler(file_cfg: dict) -> RotatingFileHandler:
    path = file_cfg.get("path", "logs/chatbridge.log")
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def _configure_logging() -> None:
    """Log to stderr and, when configured, to a rotating file."""

    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = _RedactingFormatter(
        _collect_redaction_values(config),
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        # StreamHandler defaults to stderr; stdout carries game commands.
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_rotating_file_handler(file_cfg))
    if not handlers:
        return

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers)


async def _pump_game_events(client, router: RelayRouter) -> None:
    """Relay game events from stdin until the game bridge closes it."""

    logger = logging.getLogger(__name__)
    async for event in read_game_events():
        if isinstance(event, PlayerPresence):
            router.dispatch_presence(event.name, event.joined)
        else:
            router.dispatch(event)

    logger.info("Game bridge closed, finishing pending relays")
    await router.drain()
    await client.disconnect()


async def _connect_peer_session(peer_client) -> bool:
    await peer_client.connect()
    if await peer_client.is_user_authorized():
        return True
    await peer_client.disconnect()
    return False


async def _login_peer_session(peer_client, peers: Iterable[PeerConfig]) -> None:
    logger = logging.getLogger(__name__)
    await peer_client.connect()
    try:
        await authorize(peer_client)
        me = await peer_client.get_me()
        logger.info("Peer session signed in as %s", me.first_name)
        # Resolving each peer once stores its access hash in the session file.
        for peer in peers:
            target = peer.username or peer.peer_id
            try:
                await peer_client.get_entity(target)
            except ValueError as exc:
                logger.warning("Could not resolve peer %s: %s", target, exc)
    finally:
        await peer_client.disconnect()


def _login() -> None:
    _configure_logging()
    peer_client = build_peer_client()
    peer_client.loop.run_until_complete(_login_peer_session(peer_client, settings.RELAY_CONFIG.peers))


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting chatbridge")
    config = settings.RELAY_CONFIG

    items = ItemTable.load(settings.ITEMS_PATH) if settings.ITEMS_PATH else None
    channel_log = ChannelLog(settings.CHANNEL_LOG_PATH) if settings.CHANNEL_LOG_ENABLED else None
    game = JsonLinesGame()

    client = build_client()
    client.start(bot_token=bot_token())

    peer_client = None
    if config.peers:
        peer_client = build_peer_client()
        if not client.loop.run_until_complete(_connect_peer_session(peer_client)):
            logger.warning("Peer relays need a user session; run `chatbridge login`. Peer lines are skipped.")
            peer_client = None

    platform = TelegramPlatform(
        client,
        peer_client=peer_client,
        peer_usernames={peer.peer_id: peer.username for peer in config.peers if peer.username},
    )
    router = RelayRouter(config, game, platform, items=items)
    inbound = InboundRelay(config, game, channel_log=channel_log, items=items)
    role_resolver = RoleResolver(client, settings.ROLE_COLORS)
    logger.info(
        "Relaying to %s channel(s) and %s peer relay(s)",
        len(router.channels),
        len(config.peers),
    )

    # Channel chatter and peer lines both arrive at the bot session.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            sender = await event.get_sender()
            message = await build_platform_message(
                event.message,
                sender,
                is_private=event.is_private,
                role_resolver=role_resolver,
            )
            inbound.handle(message)
        except Exception:
            logger.exception("Error while processing platform message")

    pump = client.loop.create_task(_pump_game_events(client, router))

    logger.info("Client connected. Relaying chat...")
    try:
        client.run_until_disconnected()
    finally:
        pump.cancel()
        if peer_client is not None:
            peer_client.disconnect()
        if channel_log is not None:
            channel_log.close()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="chatbridge")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the relay (reads game events from stdin)")
    subparsers.add_parser("login", help="Sign in the user session used for peer relays")

    args = parser.parse_args(argv)
    if args.command == "login":
        _login()
    else:
        _run()


if __name__ == "__main__":
    main()
