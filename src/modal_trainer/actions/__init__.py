"""Command handlers, keyed by the command kind they implement."""

from __future__ import annotations

from typing import Dict

from modal_trainer.commands import CommandKind

from . import clipboard, core, editing, history, motion, selection
from .dispatch import Handler, run_command

K = CommandKind

HANDLERS: Dict[CommandKind, Handler] = {
    K.MOVE_LEFT: motion.move_left,
    K.MOVE_RIGHT: motion.move_right,
    K.MOVE_UP: motion.move_up,
    K.MOVE_DOWN: motion.move_down,
    K.WORD_FORWARD: motion.word_forward,
    K.WORD_BACKWARD: motion.word_backward,
    K.WORD_END: motion.word_end,
    K.LINE_START: motion.line_start,
    K.FIRST_NON_BLANK: motion.first_non_blank,
    K.LINE_END: motion.line_end,
    K.DOCUMENT_START: motion.document_start,
    K.DOCUMENT_END: motion.document_end,
    K.FIND_CHAR: motion.find_char,
    K.TILL_CHAR: motion.till_char,
    K.FIND_CHAR_BACKWARD: motion.find_char_backward,
    K.TILL_CHAR_BACKWARD: motion.till_char_backward,
    K.DELETE_CHAR: editing.delete_char,
    K.DELETE_LINE: editing.delete_line,
    K.DELETE_WORD: editing.delete_word,
    K.DELETE_TO_LINE_END: editing.delete_to_line_end,
    K.CHANGE_WORD: editing.change_word,
    K.CHANGE_LINE: editing.change_line,
    K.SUBSTITUTE_CHAR: editing.substitute_char,
    K.REPLACE_CHAR: editing.replace_char,
    K.JOIN_LINES: editing.join_lines,
    K.INDENT: editing.indent,
    K.DEDENT: editing.dedent,
    K.INSERT_TEXT: editing.insert_text,
    K.INSERT_NEWLINE: editing.insert_newline,
    K.DELETE_BACKWARD: editing.delete_backward,
    K.DELETE_SELECTION: selection.delete_selection,
    K.CHANGE_SELECTION: selection.change_selection,
    K.REPLACE_SELECTION: selection.replace_selection,
    K.INDENT_SELECTION: selection.indent_selection,
    K.DEDENT_SELECTION: selection.dedent_selection,
    K.JOIN_SELECTION: selection.join_selection,
    K.PASTE_AFTER: clipboard.paste_after,
    K.PASTE_BEFORE: clipboard.paste_before,
    K.YANK_LINE: clipboard.yank_line,
    K.YANK_WORD: clipboard.yank_word,
    K.YANK_SELECTION: selection.yank_selection,
    K.ENTER_INSERT_BEFORE: core.enter_insert_before,
    K.ENTER_INSERT_AFTER: core.enter_insert_after,
    K.ENTER_INSERT_LINE_START: core.enter_insert_line_start,
    K.ENTER_INSERT_LINE_END: core.enter_insert_line_end,
    K.OPEN_LINE_BELOW: core.open_line_below,
    K.OPEN_LINE_ABOVE: core.open_line_above,
    K.ENTER_SELECT: core.enter_select,
    K.EXIT_TO_NORMAL: core.exit_to_normal,
    K.UNDO: history.undo,
    K.REDO: history.redo,
    K.REPEAT_LAST: history.repeat_last,
    K.COLLAPSE_SELECTION: selection.collapse_selection,
    K.KEEP_PRIMARY: selection.keep_primary,
    K.COPY_SELECTION_DOWN: selection.copy_selection_down,
    K.FLIP_SELECTION: selection.flip_selection,
}

__all__ = ["HANDLERS", "Handler", "run_command"]
