"""Per-destination color policies (core domain).

A policy maps each section kind of a chat message to a color source. Sources
are resolved against a lookup table built fresh for every relayed event, so the
same message can be colored differently for every destination.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from core.message import ChatMessage
from core.models import Color

ROLE = "Role"
GROUP = "Group"
MESSAGE = "Message"
NAME = "Name"


class ColorSource(str, Enum):
    NONE = "none"
    ROLE = "role"
    GROUP = "group"
    MESSAGE = "message"
    NAME = "name"
    FIXED = "fixed"


# Lookup slot read by each named source.
_SLOTS = {
    ColorSource.ROLE: ROLE,
    ColorSource.GROUP: GROUP,
    ColorSource.MESSAGE: MESSAGE,
    ColorSource.NAME: NAME,
}


@dataclass(frozen=True)
class ColorRule:
    """Color source for one section kind."""

    source: ColorSource = ColorSource.NONE
    fixed: Optional[Color] = None

    @classmethod
    def parse(cls, raw: Any) -> "ColorRule":
        """Build a rule from config: a source name, or a ``#RRGGBB`` value."""

        if raw is None:
            return cls()
        if isinstance(raw, ColorRule):
            return raw
        value = str(raw).strip()
        if value.startswith("#"):
            return cls(source=ColorSource.FIXED, fixed=Color.from_hex(value))
        try:
            source = ColorSource(value.lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported color source: {raw!r}") from exc
        if source is ColorSource.FIXED:
            raise ValueError(f"Fixed colors are written as #RRGGBB, got {raw!r}")
        return cls(source=source)

    def resolve(self, lookup: Mapping[str, Optional[Color]]) -> Optional[Color]:
        if self.fixed is not None:
            return self.fixed
        slot = _SLOTS.get(self.source)
        if slot is None:
            return None
        return lookup.get(slot)


@dataclass(frozen=True)
class ColorPolicy:
    """Color rules for every section kind of a chat message."""

    header: ColorRule = field(default_factory=ColorRule)
    name: ColorRule = field(default_factory=ColorRule)
    prefixes: ColorRule = field(default_factory=ColorRule)
    suffixes: ColorRule = field(default_factory=ColorRule)
    body: ColorRule = field(default_factory=ColorRule)

    @classmethod
    def from_config(cls, raw: Optional[Mapping[str, Any]]) -> "ColorPolicy":
        raw = raw or {}
        return cls(
            header=ColorRule.parse(raw.get("header")),
            name=ColorRule.parse(raw.get("name")),
            prefixes=ColorRule.parse(raw.get("prefixes")),
            suffixes=ColorRule.parse(raw.get("suffixes")),
            body=ColorRule.parse(raw.get("body")),
        )


# Used for local broadcast: sections keep no color, the line color carries it.
PLAIN_POLICY = ColorPolicy()


@dataclass(frozen=True)
class ResolvedColors:
    header: Optional[Color]
    name: Optional[Color]
    prefixes: Optional[Color]
    suffixes: Optional[Color]
    body: Optional[Color]


def build_lookup(
    role: Optional[Color],
    group: Optional[Color],
    message: Optional[Color] = None,
    name: Optional[Color] = None,
    extra: Optional[Mapping[str, Optional[Color]]] = None,
) -> dict[str, Optional[Color]]:
    """Return the named color table for one event."""

    lookup: dict[str, Optional[Color]] = dict(extra or {})
    lookup[ROLE] = role
    lookup[GROUP] = group
    lookup[MESSAGE] = message
    lookup[NAME] = name
    return lookup


def resolve(policy: ColorPolicy, lookup: Mapping[str, Optional[Color]]) -> ResolvedColors:
    """Resolve every section kind of ``policy`` against ``lookup``."""

    return ResolvedColors(
        header=policy.header.resolve(lookup),
        name=policy.name.resolve(lookup),
        prefixes=policy.prefixes.resolve(lookup),
        suffixes=policy.suffixes.resolve(lookup),
        body=policy.body.resolve(lookup),
    )


def apply_policy(
    message: ChatMessage,
    policy: ColorPolicy,
    lookup: Mapping[str, Optional[Color]],
) -> ChatMessage:
    """Return ``message`` recolored for one destination."""

    colors = resolve(policy, lookup)
    return message.with_colors(
        header=colors.header,
        name=colors.name,
        prefixes=colors.prefixes,
        suffixes=colors.suffixes,
        body=colors.body,
    )
