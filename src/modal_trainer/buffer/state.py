"""Positions, ranges, and multi-range selections over a buffer."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Tuple

from .validation import OutOfBounds, clamp_coordinates

if TYPE_CHECKING:
    from .document import BufferDocument


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """(line, column) address; column == len(line) marks end of line."""

    line: int
    column: int

    def __post_init__(self) -> None:
        if self.line < 0 or self.column < 0:
            raise OutOfBounds(
                "Position components must be non-negative",
                position=(self.line, self.column),
            )

    def __iter__(self) -> Iterator[int]:
        yield self.line
        yield self.column

    def as_tuple(self) -> Tuple[int, int]:
        return (self.line, self.column)


@dataclass(frozen=True, slots=True)
class Range:
    """Selection span; ``head`` is where the cursor sits."""

    anchor: Position
    head: Position

    @classmethod
    def point(cls, position: Position) -> "Range":
        return cls(anchor=position, head=position)

    @property
    def start(self) -> Position:
        return min(self.anchor, self.head)

    @property
    def end(self) -> Position:
        return max(self.anchor, self.head)

    @property
    def is_point(self) -> bool:
        return self.anchor == self.head

    @property
    def forward(self) -> bool:
        return self.head >= self.anchor

    def flip(self) -> "Range":
        return Range(anchor=self.head, head=self.anchor)

    def collapse(self) -> "Range":
        return Range.point(self.head)

    def with_head(self, head: Position) -> "Range":
        return replace(self, head=head)


class Selection:
    """Ordered, non-empty collection of ranges with one primary."""

    __slots__ = ("_ranges", "_primary")

    def __init__(self, ranges: Iterable[Range], primary: int = 0) -> None:
        items = tuple(ranges)
        if not items:
            raise ValueError("Selection requires at least one range")
        if not 0 <= primary < len(items):
            raise ValueError(f"primary index {primary} outside {len(items)} ranges")
        self._ranges: Tuple[Range, ...] = items
        self._primary = primary

    @classmethod
    def point(cls, position: Position) -> "Selection":
        return cls((Range.point(position),))

    @property
    def ranges(self) -> Tuple[Range, ...]:
        return self._ranges

    @property
    def primary_index(self) -> int:
        return self._primary

    @property
    def primary(self) -> Range:
        return self._ranges[self._primary]

    @property
    def cursor(self) -> Position:
        return self.primary.head

    def __len__(self) -> int:
        return len(self._ranges)

    def __iter__(self) -> Iterator[Range]:
        return iter(self._ranges)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Selection):
            return NotImplemented
        return self._ranges == other._ranges and self._primary == other._primary

    def __hash__(self) -> int:
        return hash((self._ranges, self._primary))

    def __repr__(self) -> str:
        return f"Selection(ranges={self._ranges!r}, primary={self._primary})"

    def replace_primary(self, new_range: Range) -> "Selection":
        ranges = list(self._ranges)
        ranges[self._primary] = new_range
        return Selection(ranges, self._primary)

    def transform(self, func: Callable[[Range], Range]) -> "Selection":
        return Selection((func(item) for item in self._ranges), self._primary)

    def add(self, new_range: Range, *, make_primary: bool = True) -> "Selection":
        ranges = self._ranges + (new_range,)
        primary = len(ranges) - 1 if make_primary else self._primary
        return Selection(ranges, primary)

    def keep_primary(self) -> "Selection":
        return Selection((self.primary,))

    def collapse(self) -> "Selection":
        return self.transform(Range.collapse)

    def normalized(self) -> "Selection":
        """Sort ranges by start and merge overlaps, keeping the primary marked."""

        if len(self._ranges) == 1:
            return self
        order = sorted(
            range(len(self._ranges)), key=lambda idx: (self._ranges[idx].start, idx)
        )
        merged: list[Range] = []
        owners: list[set[int]] = []
        for idx in order:
            current = self._ranges[idx]
            if merged and _overlaps(merged[-1], current):
                merged[-1] = _merge(merged[-1], current)
                owners[-1].add(idx)
                continue
            merged.append(current)
            owners.append({idx})
        primary = next(i for i, group in enumerate(owners) if self._primary in group)
        return Selection(merged, primary)

    def map_through(
        self,
        offset_map: Callable[[int], int],
        before: "BufferDocument",
        after: "BufferDocument",
    ) -> "Selection":
        """Re-anchor every range across an edit that turned ``before`` into ``after``."""

        def move(position: Position) -> Position:
            return after.position_of(offset_map(before.offset_of(position)))

        return self.transform(
            lambda item: Range(anchor=move(item.anchor), head=move(item.head))
        )

    def clamp(self, document: "BufferDocument") -> "Selection":
        def fit(position: Position) -> Position:
            return Position(*clamp_coordinates(document, position.line, position.column))

        return self.transform(
            lambda item: Range(anchor=fit(item.anchor), head=fit(item.head))
        )


def _overlaps(left: Range, right: Range) -> bool:
    if right.start < left.end:
        return True
    return left.is_point and right.is_point and left.start == right.start


def _merge(left: Range, right: Range) -> Range:
    start = min(left.start, right.start)
    end = max(left.end, right.end)
    if left.forward:
        return Range(anchor=start, head=end)
    return Range(anchor=end, head=start)


__all__ = ["Position", "Range", "Selection"]
