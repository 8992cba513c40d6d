"""High-level buffer façade combining document, selection, registers, and undo."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import ContextManager, Optional

from modal_trainer.runtime import telemetry

from .document import BufferDocument
from .registers import RegisterBank
from .state import Position, Range, Selection
from .sync import BufferMirror
from .undo import Checkpoint, UndoEntry, UndoTimeline
from .validation import ensure_position


@dataclass(frozen=True, slots=True)
class BufferView:
    version: int
    text: str
    selection: Selection

    @property
    def cursor(self) -> Position:
        return self.selection.cursor

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self.text.split("\n"))


@dataclass(frozen=True, slots=True)
class EditDelta:
    """Offset shift produced by one replacement, used to re-anchor ranges."""

    start: int
    removed: int
    inserted: int
    label: str = "edit"

    @property
    def end(self) -> int:
        return self.start + self.removed

    def map_offset(self, offset: int) -> int:
        if offset < self.start:
            return offset
        if offset < self.end:
            return self.start
        return offset - self.removed + self.inserted


class Buffer:
    def __init__(
        self,
        *,
        name: str = "default",
        document: Optional[BufferDocument] = None,
        selection: Optional[Selection] = None,
        registers: Optional[RegisterBank] = None,
        history: Optional[UndoTimeline] = None,
    ) -> None:
        self.name = name
        self.document = document or BufferDocument()
        self.registers = registers or RegisterBank()
        self.history = history or UndoTimeline()
        self._selection = Selection.point(Position(0, 0))
        if selection is not None:
            self.selection = selection

    @classmethod
    def from_text(
        cls,
        text: str,
        *,
        cursor: Optional[Position] = None,
        name: str = "default",
    ) -> "Buffer":
        buffer = cls(name=name, document=BufferDocument.from_text(text))
        if cursor is not None:
            buffer.selection = Selection.point(cursor)
        return buffer

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def version(self) -> int:
        return self.document.version

    @property
    def selection(self) -> Selection:
        return self._selection

    @selection.setter
    def selection(self, selection: Selection) -> None:
        for item in selection:
            ensure_position(self.document, item.anchor)
            ensure_position(self.document, item.head)
        self._selection = selection

    @property
    def cursor(self) -> Position:
        return self._selection.cursor

    def set_cursor(self, position: Position) -> None:
        """Collapse the primary range onto ``position``."""

        self.selection = self._selection.replace_primary(Range.point(position))

    def move_head(self, position: Position, *, extend: bool = False) -> None:
        primary = self._selection.primary
        updated = primary.with_head(position) if extend else Range.point(position)
        self.selection = self._selection.replace_primary(updated)

    def line(self, index: Optional[int] = None) -> str:
        return self.document.get_line(self.cursor.line if index is None else index)

    def offset_of(self, position: Position) -> int:
        return self.document.offset_of(position)

    def position_of(self, offset: int) -> Position:
        return self.document.position_of(offset)

    def snapshot(self) -> BufferView:
        return BufferView(
            version=self.document.version,
            text=self.document.text,
            selection=self._selection,
        )

    def checkpoint(self) -> Checkpoint:
        return Checkpoint(text=self.document.text, selection=self._selection)

    def restore(self, checkpoint: Checkpoint) -> None:
        """Make ``checkpoint`` current in one step; history is left untouched."""

        self.document = BufferDocument.from_text(
            checkpoint.text, version=self.document.version + 1
        )
        self._selection = checkpoint.selection.clamp(self.document)

    def mirror(self, *, attributes: Optional[dict[str, str]] = None) -> BufferMirror:
        return BufferMirror(
            text=self.document.text,
            cursor=self.cursor.as_tuple(),
            ranges=tuple(
                (item.anchor.as_tuple(), item.head.as_tuple())
                for item in self._selection
            ),
            primary=self._selection.primary_index,
            attributes=dict(attributes or {}),
        )

    def replace_range(
        self, start: Position, end: Position, text: str, *, label: str = "replace"
    ) -> EditDelta:
        """Replace ``[start, end)`` with ``text`` and re-anchor every range."""

        if end < start:
            start, end = end, start
        before = self.document
        start_offset = before.offset_of(start)
        end_offset = before.offset_of(end)
        delta = EditDelta(
            start=start_offset,
            removed=end_offset - start_offset,
            inserted=len(text),
            label=label,
        )
        if delta.removed == 0 and delta.inserted == 0:
            return delta
        after = before.replace(start_offset, end_offset, text)
        self._selection = self._selection.map_through(delta.map_offset, before, after)
        self.document = after
        return delta

    def insert_text(self, position: Position, text: str) -> EditDelta:
        return self.replace_range(position, position, text, label="insert_text")

    def delete_range(self, start: Position, end: Position) -> EditDelta:
        return self.replace_range(start, end, "", label="delete_range")

    def get_text_range(self, start: Position, end: Position) -> str:
        if end < start:
            start, end = end, start
        return self.document.text[
            self.document.offset_of(start) : self.document.offset_of(end)
        ]

    def transaction(
        self,
        label: str,
        *,
        coalesce_key: Optional[str] = None,
        origin: Optional[Checkpoint] = None,
    ) -> "Transaction":
        return Transaction(self, label, coalesce_key=coalesce_key, origin=origin)

    def undo(self) -> bool:
        entry = self.history.undo()
        if entry is None:
            return False
        self.restore(entry.before)
        return True

    def redo(self) -> bool:
        entry = self.history.redo()
        if entry is None:
            return False
        self.restore(entry.after)
        return True


class Transaction(AbstractContextManager["Transaction"]):
    """Groups edits into one undo checkpoint taken before the first change.

    Nothing is pushed when the block leaves the text untouched. A new entry
    starts from ``origin`` when one is given, so a typing burst undoes back to
    the state before the command that opened it. When the block
    raises, the buffer is put back to the captured checkpoint before the error
    propagates, so failed commands never leave a partial edit behind.
    """

    def __init__(
        self,
        buffer: Buffer,
        label: str,
        *,
        coalesce_key: Optional[str] = None,
        origin: Optional[Checkpoint] = None,
    ) -> None:
        self.buffer = buffer
        self.label = label
        self.coalesce_key = coalesce_key
        self.origin = origin
        self._span_cm: Optional[ContextManager[object]] = None
        self._before: Optional[Checkpoint] = None
        self._start_version = buffer.version

    def __enter__(self) -> "Transaction":
        self._before = self.buffer.checkpoint()
        self._start_version = self.buffer.version
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component=True,
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        return self

    @property
    def changed(self) -> bool:
        return self.buffer.version != self._start_version

    def commit(self) -> None:
        assert self._before is not None
        if not self.changed:
            return
        after = self.buffer.checkpoint()
        if self.coalesce_key and self.buffer.history.coalesce(self.coalesce_key, after):
            return
        self.buffer.history.push(
            UndoEntry(
                label=self.label,
                before=self._before if self.origin is None else self.origin,
                after=after,
                coalesce_key=self.coalesce_key,
            )
        )

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is None:
                self.commit()
            elif self._before is not None and self.changed:
                self.buffer.document = BufferDocument.from_text(
                    self._before.text, version=self._start_version
                )
                self.buffer._selection = self._before.selection
        finally:
            if self._span_cm is not None:
                self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = ["Buffer", "BufferView", "EditDelta", "Transaction"]
