"""Linear undo/redo history of (text, selection) checkpoints."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional

from .state import Selection


@dataclass(frozen=True, slots=True)
class Checkpoint:
    text: str
    selection: Selection


@dataclass(frozen=True, slots=True)
class UndoEntry:
    label: str
    before: Checkpoint
    after: Checkpoint
    coalesce_key: Optional[str] = None


class UndoTimeline:
    """Linear history: pushing after an undo discards the redo tail."""

    def __init__(self) -> None:
        self._entries: List[UndoEntry] = []
        self._index: int = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._index

    @property
    def top(self) -> Optional[UndoEntry]:
        if self._index < 0:
            return None
        return self._entries[self._index]

    def push(self, entry: UndoEntry) -> None:
        if self._index < len(self._entries) - 1:
            self._entries = self._entries[: self._index + 1]
        self._entries.append(entry)
        self._index = len(self._entries) - 1

    def coalesce(self, key: str, after: Checkpoint) -> bool:
        """Extend the newest entry when it belongs to the same typing burst."""

        top = self.top
        if top is None or top.coalesce_key != key or self.can_redo():
            return False
        self._entries[self._index] = replace(top, after=after)
        return True

    def can_undo(self) -> bool:
        return self._index >= 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def undo(self) -> Optional[UndoEntry]:
        if not self.can_undo():
            return None
        entry = self._entries[self._index]
        self._index -= 1
        return entry

    def redo(self) -> Optional[UndoEntry]:
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index]


__all__ = ["Checkpoint", "UndoEntry", "UndoTimeline"]
