"""Interactive sign-in for the peer relay user session.

Telegram does not deliver private messages between two bot accounts, so lines
for peer relays are sent from a user account session. This module signs that
session in once (QR code or phone code); the session file is reused after.
Prompts go to stderr because stdout carries game commands.
"""

from __future__ import annotations

from getpass import getpass
import os
import sys

import qrcode
from telethon import TelegramClient, errors


def _prompt(text: str) -> str:
    print(text, end="", file=sys.stderr, flush=True)
    return input().strip()


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(out=sys.stderr, invert=True)


def _resolve_2fa_password() -> str:
    password = os.getenv("2FA")
    if password:
        return password
    return getpass("2FA password: ")


async def _authorize_with_qr(client: TelegramClient) -> None:
    qr = await client.qr_login()
    _print_qr(qr.url)
    await qr.wait(timeout=120)


async def _authorize_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or _prompt("Phone number (international format): ")
    await client.send_code_request(phone)
    code = _prompt("Login code: ")
    try:
        await client.sign_in(phone=phone, code=code)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())


def pick_login_method() -> str:
    method = (os.getenv("LOGIN_METHOD") or "").strip().lower()
    if method in {"qr", "phone"}:
        return method
    while True:
        print("", file=sys.stderr)
        print("Login methods:", file=sys.stderr)
        print("[1] QR code", file=sys.stderr)
        print("[2] Phone code", file=sys.stderr)
        print("[3] Exit", file=sys.stderr)
        choice = _prompt("chatbridge > ")
        if choice == "1":
            return "qr"
        elif choice == "2":
            return "phone"
        elif choice == "3":
            raise SystemExit(0)
        else:
            print("Invalid option. Please choose 1, 2, or 3.", file=sys.stderr)


async def authorize(client: TelegramClient) -> None:
    """Sign the connected client in as a user, unless it already is."""

    if await client.is_user_authorized():
        return

    try:
        if pick_login_method() == "phone":
            await _authorize_with_phone(client)
        else:
            await _authorize_with_qr(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())
