"""Bounds checking shared across buffer services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from .document import BufferDocument
    from .state import Position


class OutOfBounds(IndexError):
    """Raised when a computed position or range falls outside the buffer."""

    def __init__(
        self, message: str, *, position: Optional[Tuple[int, int]] = None
    ) -> None:
        super().__init__(message)
        self.position = position


def ensure_position(document: "BufferDocument", position: "Position") -> "Position":
    line, column = position.line, position.column
    if line >= document.line_count:
        raise OutOfBounds("Line out of range", position=(line, column))
    if column > len(document.get_line(line)):
        raise OutOfBounds("Column out of range", position=(line, column))
    return position


def ensure_offset(document: "BufferDocument", offset: int) -> int:
    if offset < 0 or offset > document.length:
        raise OutOfBounds(f"Offset {offset} outside buffer of length {document.length}")
    return offset


def clamp_coordinates(document: "BufferDocument", line: int, column: int) -> Tuple[int, int]:
    """Clamp raw coordinates into the buffer; callers clamp before building a Position."""

    line = max(0, min(line, document.line_count - 1))
    column = max(0, min(column, len(document.get_line(line))))
    return line, column


__all__ = ["OutOfBounds", "clamp_coordinates", "ensure_offset", "ensure_position"]
