"""Structured chat messages and their fluent builder (core domain)."""

from __future__ import annotations

from dataclasses import dataclass, replace
import re
from typing import Iterable, Optional

from core.models import Color
from core.tags import color_tag

DEFAULT_CHAT_FORMAT = "{1}{2}{3}: {4}"

# Positional slots only: {0} header, {1} prefixes, {2} name, {3} suffixes, {4} body.
_SLOT_PATTERN = re.compile(r"\{(\d)\}")


def fill_template(template: str, *slots: str) -> str:
    """Substitute ``{N}`` placeholders and trim the result.

    Placeholders past the number of slots are left verbatim.
    """

    def _slot(match: re.Match) -> str:
        index = int(match.group(1))
        if index < len(slots):
            return slots[index]
        return match.group(0)

    return _SLOT_PATTERN.sub(_slot, template).strip()


@dataclass(frozen=True)
class Section:
    """A colorable fragment of a chat message."""

    text: str
    color: Optional[Color] = None

    def render(self) -> str:
        if self.color is None or not self.text:
            return self.text
        return color_tag(self.text, self.color)

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class ChatMessage:
    """The sectioned representation of one chat line."""

    header: Section = Section("")
    name: Section = Section("")
    prefixes: tuple[Section, ...] = ()
    prefix_separator: str = " "
    suffixes: tuple[Section, ...] = ()
    suffix_separator: str = " "
    body: str = ""
    base_color: Optional[Color] = None

    def render(self, template: str = DEFAULT_CHAT_FORMAT, tag_body: bool = False) -> str:
        """Render the message through a positional template.

        ``tag_body`` wraps the body in the base color, for targets that only
        receive text and cannot be given a line color.
        """

        body = self.body
        if tag_body and self.base_color is not None and body:
            body = color_tag(body, self.base_color)
        return fill_template(
            template,
            self.header.render(),
            self.prefix_separator.join(section.render() for section in self.prefixes),
            self.name.render(),
            self.suffix_separator.join(section.render() for section in self.suffixes),
            body,
        )

    def with_colors(
        self,
        header: Optional[Color],
        name: Optional[Color],
        prefixes: Optional[Color],
        suffixes: Optional[Color],
        body: Optional[Color],
    ) -> "ChatMessage":
        """Return a copy with every section recolored."""

        return replace(
            self,
            header=replace(self.header, color=header),
            name=replace(self.name, color=name),
            prefixes=tuple(replace(section, color=prefixes) for section in self.prefixes),
            suffixes=tuple(replace(section, color=suffixes) for section in self.suffixes),
            base_color=body,
        )

    def __str__(self) -> str:
        return self.render()


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class MessageBuilder:
    """Fluent builder for ChatMessage.

    Mutators return the builder so calls can be chained; ``build`` returns an
    immutable snapshot and can be called any number of times.
    """

    def __init__(self, template: str = DEFAULT_CHAT_FORMAT) -> None:
        self.template = template
        self._header = Section("")
        self._name = Section("")
        self._prefixes: list[Section] = []
        self._suffixes: list[Section] = []
        self._prefix_separator = " "
        self._suffix_separator = " "
        self._body = ""
        self._color: Optional[Color] = None

    @property
    def header(self) -> Section:
        return self._header

    @property
    def name(self) -> Section:
        return self._name

    @property
    def prefixes(self) -> list[Section]:
        return list(self._prefixes)

    @property
    def suffixes(self) -> list[Section]:
        return list(self._suffixes)

    @property
    def text(self) -> str:
        return self._body

    @property
    def color(self) -> Optional[Color]:
        return self._color

    def set_format(self, template: str) -> "MessageBuilder":
        self.template = template
        return self

    def set_header(self, header: str, color: Optional[Color] = None) -> "MessageBuilder":
        self._header = Section(header or "", color)
        return self

    def set_name(self, name: str, color: Optional[Color] = None) -> "MessageBuilder":
        self._name = Section(name or "", color)
        return self

    def set_text(self, text: str) -> "MessageBuilder":
        self._body = text or ""
        return self

    def append(self, text: str) -> "MessageBuilder":
        self._body += text or ""
        return self

    def colorize(self, color: Optional[Color]) -> "MessageBuilder":
        """Set the base color of the line. Color tags still override parts of it."""

        self._color = color
        return self

    def prefix(self, prefix: Optional[str], color: Optional[Color] = None) -> "MessageBuilder":
        if not _is_blank(prefix):
            self._prefixes.append(Section(prefix, color))
        return self

    def prefixes_from(self, sections: Iterable[Section]) -> "MessageBuilder":
        for section in sections:
            if not _is_blank(section.text):
                self._prefixes.append(section)
        return self

    def prefix_separator(self, separator: str) -> "MessageBuilder":
        self._prefix_separator = separator
        return self

    def suffix(self, suffix: Optional[str], color: Optional[Color] = None) -> "MessageBuilder":
        if not _is_blank(suffix):
            self._suffixes.append(Section(suffix, color))
        return self

    def suffixes_from(self, sections: Iterable[Section]) -> "MessageBuilder":
        for section in sections:
            if not _is_blank(section.text):
                self._suffixes.append(section)
        return self

    def suffix_separator(self, separator: str) -> "MessageBuilder":
        self._suffix_separator = separator
        return self

    def build(self) -> ChatMessage:
        return ChatMessage(
            header=self._header,
            name=self._name,
            prefixes=tuple(self._prefixes),
            prefix_separator=self._prefix_separator,
            suffixes=tuple(self._suffixes),
            suffix_separator=self._suffix_separator,
            body=self._body,
            base_color=self._color,
        )

    def render(self, template: Optional[str] = None) -> str:
        return self.build().render(template if template is not None else self.template)

    def __str__(self) -> str:
        return self.render()
