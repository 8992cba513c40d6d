"""Motion handlers: move the primary head without touching text.

Word motions treat a word as a maximal run of non-whitespace characters and
walk the flat text, so they cross line breaks. Every handler performs one step
and raises ``OutOfBounds`` when there is nowhere left to go.
"""

from __future__ import annotations

from typing import Optional

from modal_trainer.buffer import OutOfBounds, Position
from modal_trainer.commands import Command
from modal_trainer.modes.base_mode import ModeContext, ModeResult

from .dispatch import place_head


def next_word_start(text: str, offset: int) -> int:
    if offset >= len(text):
        raise OutOfBounds(f"No word after offset {offset}")
    index = offset
    while index < len(text) and not text[index].isspace():
        index += 1
    while index < len(text) and text[index].isspace():
        index += 1
    return index


def previous_word_start(text: str, offset: int) -> int:
    if offset <= 0:
        raise OutOfBounds("Already at start of buffer")
    index = offset - 1
    while index > 0 and text[index].isspace():
        index -= 1
    while index > 0 and not text[index - 1].isspace():
        index -= 1
    return index


def next_word_end(text: str, offset: int) -> int:
    index = offset + 1
    while index < len(text) and text[index].isspace():
        index += 1
    if index >= len(text):
        raise OutOfBounds(f"No word end after offset {offset}")
    while index + 1 < len(text) and not text[index + 1].isspace():
        index += 1
    return index


def _move_to_offset(context: ModeContext, offset: int) -> None:
    place_head(context, context.buffer.position_of(offset))


def move_left(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    head = context.buffer.cursor
    if head.column == 0:
        raise OutOfBounds("Already at line start", position=head.as_tuple())
    place_head(context, Position(head.line, head.column - 1))
    return None


def move_right(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    head = context.buffer.cursor
    if head.column >= len(context.buffer.line()):
        raise OutOfBounds("Already at line end", position=head.as_tuple())
    place_head(context, Position(head.line, head.column + 1))
    return None


def _vertical(context: ModeContext, step: int) -> None:
    buffer = context.buffer
    head = buffer.cursor
    target = head.line + step
    if target < 0 or target >= buffer.document.line_count:
        raise OutOfBounds("No line in that direction", position=(target, head.column))
    column = min(head.column, len(buffer.line(target)))
    place_head(context, Position(target, column))


def move_up(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    _vertical(context, -1)
    return None


def move_down(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    _vertical(context, 1)
    return None


def word_forward(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    buffer = context.buffer
    _move_to_offset(context, next_word_start(buffer.text, buffer.offset_of(buffer.cursor)))
    return None


def word_backward(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    buffer = context.buffer
    _move_to_offset(
        context, previous_word_start(buffer.text, buffer.offset_of(buffer.cursor))
    )
    return None


def word_end(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    buffer = context.buffer
    _move_to_offset(context, next_word_end(buffer.text, buffer.offset_of(buffer.cursor)))
    return None


def line_start(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    place_head(context, Position(context.buffer.cursor.line, 0))
    return None


def first_non_blank(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    line = context.buffer.line()
    column = len(line) - len(line.lstrip())
    place_head(context, Position(context.buffer.cursor.line, column))
    return None


def line_end(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    place_head(context, Position(context.buffer.cursor.line, len(context.buffer.line())))
    return None


def document_start(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    place_head(context, Position(0, 0))
    return None


def document_end(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    place_head(context, Position(context.buffer.document.line_count - 1, 0))
    return None


def _target_char(command: Command) -> str:
    if not command.argument:
        raise OutOfBounds("Find motions need a target character")
    return command.argument


def find_char(context: ModeContext, command: Command) -> Optional[ModeResult]:
    head = context.buffer.cursor
    found = context.buffer.line().find(_target_char(command), head.column + 1)
    if found < 0:
        raise OutOfBounds(f"{command.argument!r} not found", position=head.as_tuple())
    place_head(context, Position(head.line, found))
    return None


def till_char(context: ModeContext, command: Command) -> Optional[ModeResult]:
    head = context.buffer.cursor
    found = context.buffer.line().find(_target_char(command), head.column + 2)
    if found < 0:
        raise OutOfBounds(f"{command.argument!r} not found", position=head.as_tuple())
    place_head(context, Position(head.line, found - 1))
    return None


def find_char_backward(context: ModeContext, command: Command) -> Optional[ModeResult]:
    head = context.buffer.cursor
    found = context.buffer.line().rfind(_target_char(command), 0, head.column)
    if found < 0:
        raise OutOfBounds(f"{command.argument!r} not found", position=head.as_tuple())
    place_head(context, Position(head.line, found))
    return None


def till_char_backward(context: ModeContext, command: Command) -> Optional[ModeResult]:
    head = context.buffer.cursor
    found = context.buffer.line().rfind(_target_char(command), 0, max(0, head.column - 1))
    if found < 0:
        raise OutOfBounds(f"{command.argument!r} not found", position=head.as_tuple())
    place_head(context, Position(head.line, found + 1))
    return None


__all__ = [
    "document_end",
    "document_start",
    "find_char",
    "find_char_backward",
    "first_non_blank",
    "line_end",
    "line_start",
    "move_down",
    "move_left",
    "move_right",
    "move_up",
    "next_word_end",
    "next_word_start",
    "previous_word_start",
    "till_char",
    "till_char_backward",
    "word_backward",
    "word_end",
    "word_forward",
]
