"""Actions dedicated to Select mode ranges and multi-range selections."""

from __future__ import annotations

from typing import Optional

from modal_trainer.buffer import OutOfBounds, Position, Range
from modal_trainer.commands import Command
from modal_trainer.modes.base_mode import EditorMode, ModeContext, ModeResult

from .dispatch import store_register
from .editing import dedent_line, indent_line, join_at


def _span(context: ModeContext) -> tuple[Position, Position]:
    primary = context.buffer.selection.primary
    return primary.start, primary.end


def _emit_range(context: ModeContext, *, label: str) -> None:
    primary = context.buffer.selection.primary
    context.bus.emit(
        "select.range",
        {
            "label": label,
            "anchor": primary.anchor.as_tuple(),
            "head": primary.head.as_tuple(),
        },
    )


def yank_selection(context: ModeContext, command: Command) -> ModeResult:
    start, end = _span(context)
    if start == end:
        return ModeResult(consumed=True, status="noop", message="empty_selection")
    store_register(context, command, context.buffer.get_text_range(start, end))
    return ModeResult(consumed=True, message=command.register)


def delete_selection(context: ModeContext, command: Command) -> ModeResult:
    _remove_selection(context, command)
    return ModeResult(consumed=True, switch_to=EditorMode.NORMAL.value)


def change_selection(context: ModeContext, command: Command) -> ModeResult:
    _remove_selection(context, command)
    return ModeResult(consumed=True, switch_to=EditorMode.INSERT.value)


def _remove_selection(context: ModeContext, command: Command) -> None:
    start, end = _span(context)
    if start != end:
        store_register(context, command, context.buffer.get_text_range(start, end))
        context.buffer.delete_range(start, end)
    context.buffer.set_cursor(start)
    _emit_range(context, label="delete")


def replace_selection(context: ModeContext, command: Command) -> Optional[ModeResult]:
    """Overwrite every selected character except line breaks with the argument."""

    if not command.argument:
        raise OutOfBounds("Replace needs a character")
    start, end = _span(context)
    if start == end:
        return ModeResult(consumed=True, status="noop", message="empty_selection")
    original = context.buffer.get_text_range(start, end)
    replaced = "".join(
        char if char == "\n" else command.argument for char in original
    )
    primary = context.buffer.selection.primary
    context.buffer.replace_range(start, end, replaced, label="replace_selection")
    context.buffer.selection = context.buffer.selection.replace_primary(primary)
    return None


def _selected_lines(context: ModeContext) -> range:
    start, end = _span(context)
    return range(start.line, end.line + 1)


def indent_selection(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    for line_index in _selected_lines(context):
        indent_line(context, line_index)
    return None


def dedent_selection(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    changed = [dedent_line(context, index) for index in _selected_lines(context)]
    if not any(changed):
        return ModeResult(consumed=True, status="noop", message="nothing_to_dedent")
    return None


def join_selection(context: ModeContext, command: Command) -> Optional[ModeResult]:
    """Join every line the selection touches; a one-line range joins the next."""

    del command
    lines = _selected_lines(context)
    joins = max(1, len(lines) - 1)
    first = lines.start
    for _ in range(joins):
        join_at(context, first)
    return None


def flip_selection(context: ModeContext, command: Command) -> ModeResult:
    del command
    context.buffer.selection = context.buffer.selection.replace_primary(
        context.buffer.selection.primary.flip()
    )
    _emit_range(context, label="flip")
    return ModeResult(consumed=True)


def collapse_selection(context: ModeContext, command: Command) -> ModeResult:
    del command
    context.buffer.selection = context.buffer.selection.collapse()
    _emit_range(context, label="collapse")
    return ModeResult(consumed=True)


def keep_primary(context: ModeContext, command: Command) -> ModeResult:
    del command
    context.buffer.selection = context.buffer.selection.keep_primary()
    return ModeResult(consumed=True)


def copy_selection_down(context: ModeContext, command: Command) -> Optional[ModeResult]:
    """Add a copy of the primary range on the following line(s) and make it primary."""

    del command
    buffer = context.buffer
    primary = buffer.selection.primary
    target = primary.end.line + 1
    if target >= buffer.document.line_count:
        raise OutOfBounds("No line below to copy onto", position=(target, 0))
    shift = target - primary.start.line
    width = len(buffer.line(target))

    def moved(position: Position) -> Position:
        line = position.line + shift
        line_width = len(buffer.line(line)) if line < buffer.document.line_count else width
        return Position(min(line, buffer.document.line_count - 1), min(position.column, line_width))

    copy = Range(anchor=moved(primary.anchor), head=moved(primary.head))
    buffer.selection = buffer.selection.add(copy)
    return None


__all__ = [
    "change_selection",
    "collapse_selection",
    "copy_selection_down",
    "dedent_selection",
    "delete_selection",
    "flip_selection",
    "indent_selection",
    "join_selection",
    "keep_primary",
    "replace_selection",
    "yank_selection",
]
