"""Adapter boundary types for handing buffer state to a host shell."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Tuple

Coordinates = Tuple[int, int]  # (line, column)
Span = Tuple[Coordinates, Coordinates]  # (anchor, head)


@dataclass(slots=True)
class BufferMirror:
    """Host-friendly snapshot describing the current buffer state."""

    text: str
    cursor: Coordinates
    ranges: Tuple[Span, ...]
    primary: int = 0
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def selection(self) -> Span:
        return self.ranges[self.primary]


class BufferSync(Protocol):
    """Protocol describing how shells pull buffer state for display."""

    def pull_buffer(self) -> BufferMirror:
        """Return the latest buffer snapshot that the host should render."""
        ...


__all__ = ["BufferMirror", "BufferSync", "Coordinates", "Span"]
