"""JSON item table adapter.

Implements the core ItemResolverPort from a flat ``{"<id>": "<name>"}`` file
exported from the game.
"""

from __future__ import annotations

import json
import os
import re
from typing import Mapping, Optional

from core.models import ItemInfo
from core.tags import Tag

# Item tag options: s<N> or x<N> for the stack size, p<N> for the prefix.
_STACK_OPTION = re.compile(r"[sx](\d+)")


def _stack_from_options(options: str) -> int:
    for part in options.split(","):
        match = _STACK_OPTION.fullmatch(part.strip())
        if match:
            return int(match.group(1))
    return 1


class ItemTable:
    """Resolve item tags by numeric id or by name."""

    def __init__(self, names: Mapping[str, str]) -> None:
        self._names = {str(key): str(value) for key, value in names.items()}
        self._by_name = {value.lower(): value for value in self._names.values()}

    @classmethod
    def load(cls, path: str) -> "ItemTable":
        if not os.path.exists(path):
            raise FileNotFoundError(f"Item table not found: {path}")
        with open(path, "r", encoding="utf-8") as handle:
            return cls(json.load(handle))

    def resolve(self, tag: Tag) -> Optional[ItemInfo]:
        key = tag.text.strip()
        name = self._names.get(key) or self._by_name.get(key.lower())
        if name is None:
            return None
        return ItemInfo(name=name, stack=_stack_from_options(tag.options))
