from __future__ import annotations

import pytest

from core.colors import ColorRule, ColorSource
from core.config import (
    DEFAULT_BROADCAST_FORMAT,
    DEFAULT_PEER_FORMAT,
    DEFAULT_PLATFORM_FORMAT,
    RelayConfig,
    build_relay_config,
)
from core.message import DEFAULT_CHAT_FORMAT
from core.models import Color


def test_empty_config_uses_defaults() -> None:
    config = build_relay_config({})
    assert config == RelayConfig()
    assert config.game_template == DEFAULT_CHAT_FORMAT
    assert config.platform_template == DEFAULT_PLATFORM_FORMAT
    assert config.broadcast.template == DEFAULT_BROADCAST_FORMAT
    assert config.strip_tags_from_console is True
    assert config.chat_color_override is None


def test_full_config_is_normalized() -> None:
    config = build_relay_config(
        {
            "channels": ["@game", "chat_id:-100123"],
            "templates": {"game": "{2}> {4}", "platform": "{2}: {4}"},
            "console": {"strip_tags": False},
            "platform": {"command_prefix": "/", "default_role_name": "Guest"},
            "chat_color_override": "#FFAA00",
            "send_timeout": 3,
            "server_name": "Survival",
            "broadcast": {"template": "{1}: {3}", "colors": {"name": "group", "role": "#112233"}},
        }
    )

    assert config.channels == ("@game", "chat_id:-100123")
    assert config.game_template == "{2}> {4}"
    assert config.platform_template == "{2}: {4}"
    assert config.strip_tags_from_console is False
    assert config.command_prefix == "/"
    assert config.default_role_name == "Guest"
    assert config.chat_color_override == Color(255, 170, 0)
    assert config.send_timeout == 3.0
    assert config.server_name == "Survival"
    assert config.broadcast.template == "{1}: {3}"
    assert config.broadcast.name == ColorRule(ColorSource.GROUP)
    assert config.broadcast.role == ColorRule(ColorSource.FIXED, Color(0x11, 0x22, 0x33))
    assert config.broadcast.nickname == ColorRule(ColorSource.ROLE)


def test_peers_skip_placeholders_and_disabled_entries() -> None:
    config = build_relay_config(
        {
            "peers": [
                {"id": 0},
                {"id": 11, "enabled": False},
                {"id": 12, "username": "relay_two_bot", "account_id": "512"},
                {"id": "13", "template": "{2}: {4}", "colors": {"name": "role"}},
            ]
        }
    )

    assert [peer.peer_id for peer in config.peers] == [12, 13]
    assert config.peers[0].template == DEFAULT_PEER_FORMAT
    assert config.peers[0].username == "relay_two_bot"
    assert config.peers[0].account_id == 512
    assert config.peers[1].account_id == 0
    assert config.peers[0].colors.name == ColorRule(ColorSource.GROUP)
    assert config.peers[1].template == "{2}: {4}"
    assert config.peers[1].colors.name == ColorRule(ColorSource.ROLE)
    assert config.peers[1].colors.prefixes == ColorRule()


def test_bad_color_values_fail_at_startup() -> None:
    with pytest.raises(ValueError):
        build_relay_config({"chat_color_override": "orange"})
    with pytest.raises(ValueError):
        build_relay_config({"broadcast": {"colors": {"name": "rainbow"}}})
    with pytest.raises(ValueError):
        build_relay_config({"peers": [{"id": 5, "colors": {"name": "fixed"}}]})


def test_named_colors_are_parsed() -> None:
    config = build_relay_config({"named_colors": {"Staff": "#FF55FF"}})

    assert config.named_colors == (("Staff", Color(255, 85, 255)),)
