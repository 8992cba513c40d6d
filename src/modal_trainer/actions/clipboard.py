"""Yank and paste handlers backed by the register bank."""

from __future__ import annotations

from typing import Optional

from modal_trainer.buffer import Position
from modal_trainer.commands import Command
from modal_trainer.modes.base_mode import ModeContext, ModeResult

from .dispatch import store_register
from .editing import word_span_end


def _register_text(context: ModeContext, command: Command) -> Optional[tuple[str, bool]]:
    value = context.registers.get(command.register)
    if not value.text:
        return None
    return value.text, value.linewise


def _empty_register(command: Command) -> ModeResult:
    return ModeResult(
        consumed=True, status="noop", message=f"register {command.register} is empty"
    )


def paste_after(context: ModeContext, command: Command) -> Optional[ModeResult]:
    stored = _register_text(context, command)
    if stored is None:
        return _empty_register(command)
    text, linewise = stored
    buffer = context.buffer
    head = buffer.cursor
    if linewise:
        buffer.insert_text(Position(head.line, len(buffer.line())), "\n" + text)
        buffer.set_cursor(Position(head.line + 1, 0))
        return None
    at = Position(head.line, min(head.column + 1, len(buffer.line())))
    _paste_chars(context, at, text)
    return None


def paste_before(context: ModeContext, command: Command) -> Optional[ModeResult]:
    stored = _register_text(context, command)
    if stored is None:
        return _empty_register(command)
    text, linewise = stored
    buffer = context.buffer
    head = buffer.cursor
    if linewise:
        buffer.insert_text(Position(head.line, 0), text + "\n")
        buffer.set_cursor(Position(head.line, 0))
        return None
    _paste_chars(context, head, text)
    return None


def _paste_chars(context: ModeContext, at: Position, text: str) -> None:
    """Insert ``text`` at ``at`` and leave the cursor on its last character."""

    buffer = context.buffer
    start = buffer.offset_of(at)
    buffer.insert_text(at, text)
    buffer.set_cursor(buffer.position_of(start + len(text) - 1))


def yank_line(context: ModeContext, command: Command) -> Optional[ModeResult]:
    lines = context.buffer.document.snapshot()
    first = context.buffer.cursor.line
    last = min(first + command.count, len(lines))
    store_register(
        context, command, "\n".join(lines[first:last]), register_type="line"
    )
    return None


def yank_word(context: ModeContext, command: Command) -> Optional[ModeResult]:
    head = context.buffer.cursor
    end = word_span_end(context, command.count)
    store_register(context, command, context.buffer.get_text_range(head, end))
    return None


__all__ = ["paste_after", "paste_before", "yank_line", "yank_word"]
