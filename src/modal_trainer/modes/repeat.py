"""Records the keys of the last change so ``.`` can replay them."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List

from modal_trainer.commands import CommandKind

from .base_mode import EditorMode, ModeResult


class RepeatRecorder:
    """Watches key results and keeps the token sequence of the last change.

    A change starts in Normal mode. It is an edit or paste on its own, or an
    Insert session opened by a Normal mode command and closed by leaving Insert.
    """

    def __init__(self) -> None:
        self._current: List[str] = []
        self._last: tuple[str, ...] = ()
        self._inserting = False
        self._paused = 0

    @property
    def last_change(self) -> tuple[str, ...]:
        return self._last

    @contextmanager
    def paused(self) -> Iterator[None]:
        self._paused += 1
        try:
            yield
        finally:
            self._paused -= 1

    def observe(self, token: str, mode: str, result: ModeResult, next_mode: str) -> None:
        if self._paused:
            return
        if self._inserting:
            self._current.append(token)
            if next_mode != EditorMode.INSERT.value:
                self._finish()
            return
        if mode != EditorMode.NORMAL.value:
            self._current.clear()
            return

        self._current.append(token)
        if result.status == "pending":
            return
        command = result.command
        if (
            result.status == "applied"
            and command is not None
            and command.kind is not CommandKind.REPEAT_LAST
            and (command.kind.mutates or command.kind.enters_insert)
        ):
            if next_mode == EditorMode.INSERT.value:
                self._inserting = True
                return
            self._finish()
            return
        self._current.clear()

    def _finish(self) -> None:
        self._last = tuple(self._current)
        self._current.clear()
        self._inserting = False


__all__ = ["RepeatRecorder"]
