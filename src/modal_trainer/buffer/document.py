"""Line-based text storage with offset <-> position addressing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from .state import Position
from .validation import OutOfBounds, ensure_offset, ensure_position


@dataclass(slots=True)
class BufferDocument:
    """List-of-lines text model; always holds at least one line.

    Offsets count characters across the whole text, with one character for
    every line break, so ``offset_of(Position(l, c))`` equals the sum of
    ``len(line) + 1`` over the lines before ``l`` plus ``c``. The flat text
    is ``"\\n".join(lines)``.
    """

    _lines: List[str] = field(default_factory=lambda: [""])
    version: int = 0

    def __post_init__(self) -> None:
        if not self._lines:
            self._lines = [""]

    @classmethod
    def from_text(cls, text: str, *, version: int = 0) -> "BufferDocument":
        return cls(_lines=text.split("\n"), version=version)

    def snapshot(self) -> Sequence[str]:
        """Return the current lines without exposing internal mutability."""

        return tuple(self._lines)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def length(self) -> int:
        return sum(len(line) for line in self._lines) + len(self._lines) - 1

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, index: int) -> str:
        if index < 0 or index >= len(self._lines):
            raise OutOfBounds(f"Line {index} out of range", position=(index, 0))
        return self._lines[index]

    def line_start(self, index: int) -> int:
        self.get_line(index)
        return sum(len(line) + 1 for line in self._lines[:index])

    def offset_of(self, position: Position) -> int:
        ensure_position(self, position)
        return self.line_start(position.line) + position.column

    def position_of(self, offset: int) -> Position:
        ensure_offset(self, offset)
        running = 0
        for index, line in enumerate(self._lines):
            if offset <= running + len(line):
                return Position(index, offset - running)
            running += len(line) + 1
        last = len(self._lines) - 1
        return Position(last, len(self._lines[last]))

    def char_at(self, offset: int) -> str:
        text = self.text
        if offset < 0 or offset >= len(text):
            raise OutOfBounds(f"No character at offset {offset}")
        return text[offset]

    def replace(self, start: int, end: int, text: str) -> "BufferDocument":
        """Return a new document with offsets ``[start, end)`` replaced by ``text``."""

        ensure_offset(self, start)
        ensure_offset(self, end)
        current = self.text
        updated = current[:start] + text + current[end:]
        return BufferDocument.from_text(updated, version=self.version + 1)


__all__ = ["BufferDocument"]
