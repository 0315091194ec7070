"""Byte-level reading of source text with position tracking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, TextIO, Union


@dataclass(frozen=True)
class Location:
    """A position in a source file; the column counts bytes on the line."""

    filename: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


class Scanner:
    """Reads a source one byte at a time and allows stepping back."""

    def __init__(self, filename: str, data: bytes) -> None:
        self.filename = filename
        self._data = bytes(data)
        self._index = 0

    @classmethod
    def from_stream(cls, filename: str, stream: Union[BinaryIO, TextIO]) -> Scanner:
        """Read the whole of ``stream`` into a new scanner."""
        content = stream.read()
        if isinstance(content, str):
            content = content.encode("utf-8")
        return cls(filename, content)

    def next(self) -> int:
        """Return the next byte; raise EOFError at the end of the data."""
        if self._index >= len(self._data):
            raise EOFError
        byte = self._data[self._index]
        self._index += 1
        return byte

    def unread(self, count: int) -> None:
        """Step back ``count`` bytes; an impossible count is ignored."""
        if count < 0 or count > self._index:
            return
        self._index -= count

    def location(self) -> Location:
        """Location of the most recently read byte."""
        consumed = self._data[: self._index]
        line_start = consumed.rfind(b"\n") + 1
        return Location(self.filename, consumed.count(b"\n") + 1, self._index - line_start)