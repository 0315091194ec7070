"""Declaration attributes such as ``@(export)`` and ``@(extern)``."""

from __future__ import annotations

from enum import Enum
from typing import Union

AttrValue = Union[str, int, None]


class AttrKey(str, Enum):
    """Known attribute keys."""

    EXPORT = "export"
    EXTERN = "extern"

    def __str__(self) -> str:
        return self.value


def parse_attr_key(s: str) -> AttrKey:
    """Return the attribute key named by ``s``; raise ValueError if unknown."""
    try:
        return AttrKey(s)
    except ValueError:
        raise ValueError(f"invalid attribute key: {s}") from None