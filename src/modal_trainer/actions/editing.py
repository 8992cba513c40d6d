"""Edit handlers for Normal and Insert mode.

Each handler validates before it mutates, so an ``OutOfBounds`` raised here
never leaves a half-applied change behind.
"""

from __future__ import annotations

from typing import Optional

from modal_trainer.buffer import OutOfBounds, Position
from modal_trainer.commands import Command
from modal_trainer.modes.base_mode import EditorMode, ModeContext, ModeResult

from .dispatch import store_register
from .motion import next_word_start


def _keyword_class(char: str) -> int:
    if char.isspace():
        return 0
    if char.isalnum() or char == "_":
        return 1
    return 2


def keyword_run_end(line: str, column: int) -> int:
    """End column of the run of same-class characters starting at ``column``."""

    kind = _keyword_class(line[column])
    end = column
    while end < len(line) and _keyword_class(line[end]) == kind:
        end += 1
    return end


def _require_char(context: ModeContext) -> Position:
    head = context.buffer.cursor
    if head.column >= len(context.buffer.line()):
        raise OutOfBounds("No character under cursor", position=head.as_tuple())
    return head


def word_span_end(context: ModeContext, words: int = 1) -> Position:
    """Where ``dw``/``yw`` stop: ``words`` word starts ahead, clipped to the line end."""

    buffer = context.buffer
    head = _require_char(context)
    line_end = buffer.offset_of(Position(head.line, len(buffer.line())))
    target = buffer.offset_of(head)
    for _ in range(words):
        if target >= line_end:
            break
        target = min(next_word_start(buffer.text, target), line_end)
    return buffer.position_of(target)


def delete_char(context: ModeContext, command: Command) -> Optional[ModeResult]:
    head = _require_char(context)
    end = Position(head.line, head.column + 1)
    store_register(context, command, context.buffer.get_text_range(head, end))
    context.buffer.delete_range(head, end)
    return None


def delete_word(context: ModeContext, command: Command) -> Optional[ModeResult]:
    head = context.buffer.cursor
    end = word_span_end(context)
    store_register(context, command, context.buffer.get_text_range(head, end))
    context.buffer.delete_range(head, end)
    return None


def delete_to_line_end(context: ModeContext, command: Command) -> Optional[ModeResult]:
    head = _require_char(context)
    end = Position(head.line, len(context.buffer.line()))
    store_register(context, command, context.buffer.get_text_range(head, end))
    context.buffer.delete_range(head, end)
    return None


def delete_line(context: ModeContext, command: Command) -> Optional[ModeResult]:
    """Delete ``count`` lines from the cursor line, clamped to the buffer."""

    buffer = context.buffer
    lines = buffer.document.snapshot()
    first = buffer.cursor.line
    last = min(first + command.count, len(lines))
    store_register(
        context, command, "\n".join(lines[first:last]), register_type="line"
    )
    if last < len(lines):
        buffer.delete_range(Position(first, 0), Position(last, 0))
    elif first > 0:
        buffer.delete_range(
            Position(first - 1, len(lines[first - 1])),
            Position(last - 1, len(lines[last - 1])),
        )
    else:
        buffer.delete_range(Position(0, 0), Position(last - 1, len(lines[last - 1])))
    target = min(first, buffer.document.line_count - 1)
    buffer.set_cursor(Position(target, 0))
    return None


def change_word(context: ModeContext, command: Command) -> ModeResult:
    head = _require_char(context)
    end = Position(head.line, keyword_run_end(context.buffer.line(), head.column))
    store_register(context, command, context.buffer.get_text_range(head, end))
    context.buffer.delete_range(head, end)
    context.buffer.set_cursor(head)
    return ModeResult(consumed=True, switch_to=EditorMode.INSERT.value)


def change_line(context: ModeContext, command: Command) -> ModeResult:
    buffer = context.buffer
    line_index = buffer.cursor.line
    text = buffer.line()
    store_register(context, command, text, register_type="line")
    buffer.delete_range(Position(line_index, 0), Position(line_index, len(text)))
    buffer.set_cursor(Position(line_index, 0))
    return ModeResult(consumed=True, switch_to=EditorMode.INSERT.value)


def substitute_char(context: ModeContext, command: Command) -> ModeResult:
    head = context.buffer.cursor
    if head.column < len(context.buffer.line()):
        end = Position(head.line, head.column + 1)
        store_register(context, command, context.buffer.get_text_range(head, end))
        context.buffer.delete_range(head, end)
    context.buffer.set_cursor(head)
    return ModeResult(consumed=True, switch_to=EditorMode.INSERT.value)


def replace_char(context: ModeContext, command: Command) -> Optional[ModeResult]:
    """Overwrite ``count`` characters (clamped to the line) with the argument."""

    head = _require_char(context)
    if not command.argument:
        raise OutOfBounds("Replace needs a character")
    available = len(context.buffer.line()) - head.column
    width = min(command.count, available)
    end = Position(head.line, head.column + width)
    context.buffer.replace_range(head, end, command.argument * width, label="replace_char")
    context.buffer.set_cursor(Position(head.line, head.column + width - 1))
    return None


def join_lines(context: ModeContext, command: Command) -> Optional[ModeResult]:
    """Join ``count`` lines (at least two) starting at the cursor line."""

    line_index = context.buffer.cursor.line
    joins = min(max(command.count, 2) - 1, context.buffer.document.line_count - 1 - line_index)
    if joins < 1:
        raise OutOfBounds("No line below to join", position=(line_index, 0))
    for _ in range(joins):
        join_at(context, line_index)
    return None


def join_at(context: ModeContext, line_index: int) -> None:
    """Join ``line_index`` with the next line, separated by one space."""

    buffer = context.buffer
    if line_index >= buffer.document.line_count - 1:
        raise OutOfBounds("No line below to join", position=(line_index, 0))
    current = buffer.line(line_index)
    following = buffer.line(line_index + 1)
    stripped = following.lstrip()
    separator = " " if stripped and current else ""
    start = Position(line_index, len(current))
    end = Position(line_index + 1, len(following) - len(stripped))
    buffer.replace_range(start, end, separator, label="join")
    buffer.set_cursor(start)


def indent_line(context: ModeContext, line_index: int) -> None:
    width = context.config.indent_width
    context.buffer.insert_text(Position(line_index, 0), " " * width)


def dedent_line(context: ModeContext, line_index: int) -> bool:
    line = context.buffer.line(line_index)
    leading = len(line) - len(line.lstrip(" "))
    width = min(leading, context.config.indent_width)
    if width == 0:
        return False
    context.buffer.delete_range(Position(line_index, 0), Position(line_index, width))
    return True


def _to_first_non_blank(context: ModeContext, line_index: int) -> None:
    line = context.buffer.line(line_index)
    context.buffer.set_cursor(Position(line_index, len(line) - len(line.lstrip())))


def _counted_lines(context: ModeContext, command: Command) -> range:
    first = context.buffer.cursor.line
    return range(first, min(first + command.count, context.buffer.document.line_count))


def indent(context: ModeContext, command: Command) -> Optional[ModeResult]:
    """Indent ``count`` lines from the cursor line, clamped to the buffer."""

    line_index = context.buffer.cursor.line
    for target in _counted_lines(context, command):
        indent_line(context, target)
    _to_first_non_blank(context, line_index)
    return None


def dedent(context: ModeContext, command: Command) -> Optional[ModeResult]:
    line_index = context.buffer.cursor.line
    changed = [dedent_line(context, target) for target in _counted_lines(context, command)]
    if not any(changed):
        return ModeResult(consumed=True, status="noop", message="nothing_to_dedent")
    _to_first_non_blank(context, line_index)
    return None


def insert_text(context: ModeContext, command: Command) -> Optional[ModeResult]:
    if not command.argument:
        return ModeResult(consumed=True, status="noop")
    head = context.buffer.cursor
    context.buffer.insert_text(head, command.argument)
    offset = context.buffer.offset_of(head) + len(command.argument)
    context.buffer.set_cursor(context.buffer.position_of(offset))
    return None


def insert_newline(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    head = context.buffer.cursor
    context.buffer.insert_text(head, "\n")
    context.buffer.set_cursor(Position(head.line + 1, 0))
    return None


def delete_backward(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    buffer = context.buffer
    offset = buffer.offset_of(buffer.cursor)
    if offset == 0:
        raise OutOfBounds("Nothing before the cursor", position=(0, 0))
    start = buffer.position_of(offset - 1)
    buffer.delete_range(start, buffer.cursor)
    buffer.set_cursor(start)
    return None


__all__ = [
    "change_line",
    "change_word",
    "dedent",
    "dedent_line",
    "delete_backward",
    "delete_char",
    "delete_line",
    "delete_to_line_end",
    "delete_word",
    "indent",
    "indent_line",
    "insert_newline",
    "insert_text",
    "join_at",
    "join_lines",
    "keyword_run_end",
    "replace_char",
    "substitute_char",
    "word_span_end",
]
