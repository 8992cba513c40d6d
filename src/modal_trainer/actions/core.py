"""Mode transition actions shared across modes."""

from __future__ import annotations

from modal_trainer.buffer import Position
from modal_trainer.commands import Command
from modal_trainer.modes.base_mode import EditorMode, ModeContext, ModeResult


def _to_insert(message: str) -> ModeResult:
    return ModeResult(consumed=True, switch_to=EditorMode.INSERT.value, message=message)


def enter_insert_before(context: ModeContext, command: Command) -> ModeResult:
    del context, command
    return _to_insert("insert_before")


def enter_insert_after(context: ModeContext, command: Command) -> ModeResult:
    del command
    head = context.buffer.cursor
    column = min(head.column + 1, len(context.buffer.line()))
    context.buffer.set_cursor(Position(head.line, column))
    return _to_insert("insert_after")


def enter_insert_line_start(context: ModeContext, command: Command) -> ModeResult:
    del command
    context.buffer.set_cursor(Position(context.buffer.cursor.line, 0))
    return _to_insert("insert_line_start")


def enter_insert_line_end(context: ModeContext, command: Command) -> ModeResult:
    del command
    line_index = context.buffer.cursor.line
    context.buffer.set_cursor(Position(line_index, len(context.buffer.line())))
    return _to_insert("insert_line_end")


def open_line_below(context: ModeContext, command: Command) -> ModeResult:
    del command
    buffer = context.buffer
    line_index = buffer.cursor.line
    buffer.insert_text(Position(line_index, len(buffer.line())), "\n")
    buffer.set_cursor(Position(line_index + 1, 0))
    return _to_insert("open_below")


def open_line_above(context: ModeContext, command: Command) -> ModeResult:
    del command
    buffer = context.buffer
    line_index = buffer.cursor.line
    buffer.insert_text(Position(line_index, 0), "\n")
    buffer.set_cursor(Position(line_index, 0))
    return _to_insert("open_above")


def enter_select(context: ModeContext, command: Command) -> ModeResult:
    del context, command
    return ModeResult(consumed=True, switch_to=EditorMode.SELECT.value, message="enter_select")


def exit_to_normal(context: ModeContext, command: Command) -> ModeResult:
    """Return to Normal mode; from Normal itself this just collapses ranges."""

    del command
    context.buffer.selection = context.buffer.selection.collapse()
    return ModeResult(consumed=True, switch_to=EditorMode.NORMAL.value, message="exit_to_normal")


__all__ = [
    "enter_insert_after",
    "enter_insert_before",
    "enter_insert_line_end",
    "enter_insert_line_start",
    "enter_select",
    "exit_to_normal",
    "open_line_above",
    "open_line_below",
]
