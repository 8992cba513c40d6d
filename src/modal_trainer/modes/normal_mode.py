"""Normal mode: the command state the interpreter starts and rests in."""

from __future__ import annotations

from typing import Optional

from .base_mode import EditorMode
from .pending import KeymapMode


class NormalMode(KeymapMode):
    name = EditorMode.NORMAL.value

    def on_enter(self, previous: Optional[str]) -> None:
        del previous
        self.reset()


__all__ = ["NormalMode"]
