from __future__ import annotations

import os

from adapters.channel_log import ChannelLog


def test_lines_are_appended_per_channel(tmp_path) -> None:
    log = ChannelLog(str(tmp_path))
    log.write("@game", "Alice: hi")
    log.write("@game", "Bob: yo")
    log.write("chat_id:-100123", "Carol: hey")
    log.close()

    game_files = os.listdir(tmp_path / "@game")
    assert len(game_files) == 1
    lines = (tmp_path / "@game" / game_files[0]).read_text(encoding="utf-8").splitlines()
    assert [line.split(" - ", 1)[1] for line in lines] == ["Alice: hi", "Bob: yo"]

    assert os.listdir(tmp_path / "chat_id_-100123")


def test_chat_lines_do_not_reach_application_log(tmp_path, caplog) -> None:
    log = ChannelLog(str(tmp_path))
    log.write("@quiet", "secret chatter")
    log.close()

    assert "secret chatter" not in caplog.text
