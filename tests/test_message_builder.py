from __future__ import annotations

from core.message import DEFAULT_CHAT_FORMAT, MessageBuilder, Section, fill_template
from core.models import Color


def test_blank_prefixes_and_suffixes_are_ignored() -> None:
    builder = MessageBuilder().prefix("").prefix("   ").prefix(None).suffix(None).suffix("\t")
    message = builder.build()
    assert message.prefixes == ()
    assert message.suffixes == ()


def test_prefix_adds_exactly_one_section() -> None:
    message = MessageBuilder().prefix("vip").build()
    assert message.prefixes == (Section("vip"),)


def test_sections_from_iterables_skip_blank_entries() -> None:
    message = (
        MessageBuilder()
        .prefixes_from([Section("a"), Section(" "), Section("b")])
        .suffixes_from([Section(""), Section("z")])
        .build()
    )
    assert [section.text for section in message.prefixes] == ["a", "b"]
    assert [section.text for section in message.suffixes] == ["z"]


def test_set_text_replaces_and_append_concatenates() -> None:
    builder = MessageBuilder().append("a").append("b")
    assert builder.text == "ab"
    builder.set_text("new").append("!")
    assert builder.build().body == "new!"


def test_render_default_template_trims_empty_slots() -> None:
    message = MessageBuilder().set_header("").set_name("Alice").set_text("hello").build()
    assert message.render("{1}{2}{3}: {4}") == "Alice: hello"
    assert DEFAULT_CHAT_FORMAT == "{1}{2}{3}: {4}"


def test_render_without_prefixes_has_no_separator_artifacts() -> None:
    message = (
        MessageBuilder()
        .set_name("Bob")
        .set_text("hi")
        .prefix_separator(" | ")
        .suffix_separator(", ")
        .build()
    )
    rendered = message.render("{1} {2} {3}: {4}")
    assert "|" not in rendered
    assert "," not in rendered
    assert rendered == "Bob : hi"


def test_render_joins_with_separators_and_colors_sections() -> None:
    red = Color(255, 0, 0)
    message = (
        MessageBuilder()
        .set_header("Admins", red)
        .prefix("[A]")
        .prefix("[B]", red)
        .prefix_separator("")
        .set_name("Carol")
        .suffix("!")
        .set_text("yo")
        .build()
    )
    assert message.render("{0} {1}{2}{3}: {4}") == "[c/FF0000:Admins] [A][c/FF0000:[B]]Carol!: yo"


def test_render_can_tag_body_with_base_color() -> None:
    message = MessageBuilder().set_name("D").set_text("body").colorize(Color(0, 0, 255)).build()
    assert message.render("{2}: {4}") == "D: body"
    assert message.render("{2}: {4}", tag_body=True) == "D: [c/0000FF:body]"


def test_build_is_pure_snapshot() -> None:
    builder = MessageBuilder().set_name("E").prefix("p")
    first = builder.build()
    builder.prefix("q")
    assert first.prefixes == (Section("p"),)
    assert builder.build() != first
    assert builder.build() == builder.build()


def test_fill_template_leaves_unknown_slots_and_braces() -> None:
    assert fill_template("{0} {9} {name}", "a") == "a {9} {name}"
