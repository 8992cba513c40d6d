"""Select mode: Normal mode motions extend the primary range."""

from __future__ import annotations

from typing import Optional

from .base_mode import EditorMode
from .keymap_helpers import update_flag
from .pending import KeymapMode


class SelectMode(KeymapMode):
    name = EditorMode.SELECT.value

    def on_enter(self, previous: Optional[str]) -> None:
        del previous
        self.reset()
        update_flag(self.context, "select_active", True)
        head = self.context.buffer.cursor
        self.context.bus.emit(
            "select.range",
            {"label": "start", "anchor": head.as_tuple(), "head": head.as_tuple()},
        )

    def on_exit(self, next_mode: Optional[str]) -> None:
        super().on_exit(next_mode)
        update_flag(self.context, "select_active", False)
        buffer = self.context.buffer
        buffer.selection = buffer.selection.collapse()


__all__ = ["SelectMode"]
