"""Chat tag parsing (core domain).

Game chat text may carry inline tags such as ``[c/FF0000:red text]`` or
``[i/s5:29]``. Tags never nest: the first unescaped ``]`` closes the tag, and a
backslash before a bracket makes it literal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import Iterator, Mapping, Optional, Union

from core.models import Color
from core.ports import ItemResolverPort

TAG_PATTERN = re.compile(
    r"(?<!\\)\[(?P<kind>[a-zA-Z]{1,10})(/(?P<options>[^:]+))?:(?P<text>.+?)(?<!\\)\]"
)


class TagKind(str, Enum):
    NONE = "none"
    COLOR = "color"
    ITEM = "item"
    NAME = "name"
    ACHIEVEMENT = "achievement"
    GLYPH = "glyph"


_KIND_KEYWORDS = {
    "c": TagKind.COLOR,
    "color": TagKind.COLOR,
    "i": TagKind.ITEM,
    "item": TagKind.ITEM,
    "n": TagKind.NAME,
    "name": TagKind.NAME,
    "a": TagKind.ACHIEVEMENT,
    "achievement": TagKind.ACHIEVEMENT,
    "g": TagKind.GLYPH,
    "glyph": TagKind.GLYPH,
}


@dataclass(frozen=True)
class Tag:
    """One matched tag span."""

    kind: TagKind
    options: str
    text: str
    raw: str

    @classmethod
    def from_match(cls, match: re.Match) -> "Tag":
        return cls(
            kind=_KIND_KEYWORDS.get(match.group("kind"), TagKind.NONE),
            options=match.group("options") or "",
            text=match.group("text"),
            raw=match.group(0),
        )

    def __str__(self) -> str:
        return self.raw


Token = Union[str, Tag]


def parse(text: str) -> Iterator[Token]:
    """Yield literal runs and tags from ``text`` in order.

    The generator is fresh per call; literal runs are never empty.
    """

    position = 0
    for match in TAG_PATTERN.finditer(text):
        if match.start() > position:
            yield text[position : match.start()]
        yield Tag.from_match(match)
        position = match.end()
    if position < len(text):
        yield text[position:]


def color_tag(text: str, color: Color) -> str:
    """Wrap ``text`` in a concrete color tag."""

    return f"[c/{color.hex()}:{text}]"


def _display_item(tag: Tag, quote: bool, items: Optional[ItemResolverPort]) -> str:
    item = items.resolve(tag) if items is not None else None
    if item is None:
        # Unknown items keep the tag body, same as other tag kinds.
        display = tag.text
    else:
        stack = f"{item.stack} " if item.stack > 1 else ""
        display = f"{stack}{item.name}"
    if quote:
        return f"`{display}`"
    return display


def display_text(tag: Tag, quote: bool = False, items: Optional[ItemResolverPort] = None) -> str:
    """Return the plain text a tag stands for."""

    if tag.kind is TagKind.ITEM:
        return _display_item(tag, quote, items)
    # Achievement names are not resolvable outside the game, keep the body.
    return tag.text


def strip_tags(text: str, quote: bool = False, items: Optional[ItemResolverPort] = None) -> str:
    """Replace every tag with its display text.

    ``quote`` wraps item names in backticks for markdown-aware clients.
    """

    if "[" not in text:
        return text
    return "".join(
        token if isinstance(token, str) else display_text(token, quote, items)
        for token in parse(text)
    )


def parse_colors(text: str, lookup: Mapping[str, Optional[Color]]) -> str:
    """Resolve color tags that name a lookup slot instead of a hex value.

    ``[c/Role:text]`` becomes ``[c/RRGGBB:text]`` when the slot holds a color,
    or bare ``text`` when the slot is empty. Options that are not lookup keys
    are left as written.
    """

    parts: list[str] = []
    for token in parse(text):
        if isinstance(token, str):
            parts.append(token)
        elif token.kind is TagKind.COLOR and token.options in lookup:
            color = lookup[token.options]
            parts.append(color_tag(token.text, color) if color is not None else token.text)
        else:
            parts.append(token.raw)
    return "".join(parts)
