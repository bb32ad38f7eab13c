from __future__ import annotations

import asyncio

from telethon import errors

import login


class DummyClient:
    def __init__(self, authorized: bool, needs_password: bool = False) -> None:
        self._authorized = authorized
        self._needs_password = needs_password
        self.calls: list[tuple] = []

    async def is_user_authorized(self) -> bool:
        return self._authorized

    async def send_code_request(self, phone: str) -> None:
        self.calls.append(("code", phone))

    async def sign_in(self, phone=None, code=None, password=None) -> None:
        if password is not None:
            self.calls.append(("password", password))
            return
        self.calls.append(("sign_in", phone, code))
        if self._needs_password:
            raise errors.SessionPasswordNeededError(request=None)


def test_authorized_session_is_left_alone(monkeypatch) -> None:
    def _no_prompt() -> str:
        raise AssertionError("login method prompted")

    monkeypatch.setattr(login, "pick_login_method", _no_prompt)
    client = DummyClient(authorized=True)

    asyncio.run(login.authorize(client))

    assert client.calls == []


def test_login_method_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("LOGIN_METHOD", "Phone")
    assert login.pick_login_method() == "phone"


def test_phone_login_with_two_factor_password(monkeypatch) -> None:
    monkeypatch.setenv("LOGIN_METHOD", "phone")
    monkeypatch.setenv("PHONE", "+15550100")
    monkeypatch.setenv("2FA", "hunter2")
    monkeypatch.setattr("builtins.input", lambda: "12345")
    client = DummyClient(authorized=False, needs_password=True)

    asyncio.run(login.authorize(client))

    assert client.calls == [
        ("code", "+15550100"),
        ("sign_in", "+15550100", "12345"),
        ("password", "hunter2"),
    ]
