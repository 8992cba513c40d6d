"""Closed command vocabulary shared by the interpreter, sessions, and scorer."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple


class CommandCategory(str, Enum):
    MOTION = "motion"
    EDIT = "edit"
    MODE = "mode"
    HISTORY = "history"
    REGISTER = "register"
    SELECTION = "selection"


class CommandKind(str, Enum):
    # motions
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    WORD_FORWARD = "word_forward"
    WORD_BACKWARD = "word_backward"
    WORD_END = "word_end"
    LINE_START = "line_start"
    FIRST_NON_BLANK = "first_non_blank"
    LINE_END = "line_end"
    DOCUMENT_START = "document_start"
    DOCUMENT_END = "document_end"
    FIND_CHAR = "find_char"
    TILL_CHAR = "till_char"
    FIND_CHAR_BACKWARD = "find_char_backward"
    TILL_CHAR_BACKWARD = "till_char_backward"
    # edits
    DELETE_CHAR = "delete_char"
    DELETE_LINE = "delete_line"
    DELETE_WORD = "delete_word"
    DELETE_TO_LINE_END = "delete_to_line_end"
    CHANGE_WORD = "change_word"
    CHANGE_LINE = "change_line"
    SUBSTITUTE_CHAR = "substitute_char"
    REPLACE_CHAR = "replace_char"
    JOIN_LINES = "join_lines"
    INDENT = "indent"
    DEDENT = "dedent"
    INSERT_TEXT = "insert_text"
    INSERT_NEWLINE = "insert_newline"
    DELETE_BACKWARD = "delete_backward"
    DELETE_SELECTION = "delete_selection"
    CHANGE_SELECTION = "change_selection"
    REPLACE_SELECTION = "replace_selection"
    INDENT_SELECTION = "indent_selection"
    DEDENT_SELECTION = "dedent_selection"
    JOIN_SELECTION = "join_selection"
    # registers
    PASTE_AFTER = "paste_after"
    PASTE_BEFORE = "paste_before"
    YANK_LINE = "yank_line"
    YANK_WORD = "yank_word"
    YANK_SELECTION = "yank_selection"
    # modes
    ENTER_INSERT_BEFORE = "enter_insert_before"
    ENTER_INSERT_AFTER = "enter_insert_after"
    ENTER_INSERT_LINE_START = "enter_insert_line_start"
    ENTER_INSERT_LINE_END = "enter_insert_line_end"
    OPEN_LINE_BELOW = "open_line_below"
    OPEN_LINE_ABOVE = "open_line_above"
    ENTER_SELECT = "enter_select"
    EXIT_TO_NORMAL = "exit_to_normal"
    # history
    UNDO = "undo"
    REDO = "redo"
    REPEAT_LAST = "repeat_last"
    # selection
    COLLAPSE_SELECTION = "collapse_selection"
    KEEP_PRIMARY = "keep_primary"
    COPY_SELECTION_DOWN = "copy_selection_down"
    FLIP_SELECTION = "flip_selection"

    @property
    def category(self) -> CommandCategory:
        return _CATEGORIES[self]

    @property
    def mutates(self) -> bool:
        """True when the command can change buffer text."""

        return self in MUTATING_KINDS

    @property
    def enters_insert(self) -> bool:
        return self in INSERT_ENTRY_KINDS

    @property
    def counts_itself(self) -> bool:
        """True when the handler consumes the count instead of being repeated."""

        return self in SELF_COUNTED_KINDS


_MOTIONS = frozenset(
    {
        CommandKind.MOVE_LEFT,
        CommandKind.MOVE_RIGHT,
        CommandKind.MOVE_UP,
        CommandKind.MOVE_DOWN,
        CommandKind.WORD_FORWARD,
        CommandKind.WORD_BACKWARD,
        CommandKind.WORD_END,
        CommandKind.LINE_START,
        CommandKind.FIRST_NON_BLANK,
        CommandKind.LINE_END,
        CommandKind.DOCUMENT_START,
        CommandKind.DOCUMENT_END,
        CommandKind.FIND_CHAR,
        CommandKind.TILL_CHAR,
        CommandKind.FIND_CHAR_BACKWARD,
        CommandKind.TILL_CHAR_BACKWARD,
    }
)

_EDITS = frozenset(
    {
        CommandKind.DELETE_CHAR,
        CommandKind.DELETE_LINE,
        CommandKind.DELETE_WORD,
        CommandKind.DELETE_TO_LINE_END,
        CommandKind.CHANGE_WORD,
        CommandKind.CHANGE_LINE,
        CommandKind.SUBSTITUTE_CHAR,
        CommandKind.REPLACE_CHAR,
        CommandKind.JOIN_LINES,
        CommandKind.INDENT,
        CommandKind.DEDENT,
        CommandKind.INSERT_TEXT,
        CommandKind.INSERT_NEWLINE,
        CommandKind.DELETE_BACKWARD,
        CommandKind.DELETE_SELECTION,
        CommandKind.CHANGE_SELECTION,
        CommandKind.REPLACE_SELECTION,
        CommandKind.INDENT_SELECTION,
        CommandKind.DEDENT_SELECTION,
        CommandKind.JOIN_SELECTION,
    }
)

_REGISTERS = frozenset(
    {
        CommandKind.PASTE_AFTER,
        CommandKind.PASTE_BEFORE,
        CommandKind.YANK_LINE,
        CommandKind.YANK_WORD,
        CommandKind.YANK_SELECTION,
    }
)

_MODES = frozenset(
    {
        CommandKind.ENTER_INSERT_BEFORE,
        CommandKind.ENTER_INSERT_AFTER,
        CommandKind.ENTER_INSERT_LINE_START,
        CommandKind.ENTER_INSERT_LINE_END,
        CommandKind.OPEN_LINE_BELOW,
        CommandKind.OPEN_LINE_ABOVE,
        CommandKind.ENTER_SELECT,
        CommandKind.EXIT_TO_NORMAL,
    }
)

_HISTORY = frozenset({CommandKind.UNDO, CommandKind.REDO, CommandKind.REPEAT_LAST})


def _category_for(kind: CommandKind) -> CommandCategory:
    if kind in _MOTIONS:
        return CommandCategory.MOTION
    if kind in _EDITS:
        return CommandCategory.EDIT
    if kind in _REGISTERS:
        return CommandCategory.REGISTER
    if kind in _MODES:
        return CommandCategory.MODE
    if kind in _HISTORY:
        return CommandCategory.HISTORY
    return CommandCategory.SELECTION


_CATEGORIES = {kind: _category_for(kind) for kind in CommandKind}

MUTATING_KINDS = _EDITS | {
    CommandKind.PASTE_AFTER,
    CommandKind.PASTE_BEFORE,
    CommandKind.OPEN_LINE_BELOW,
    CommandKind.OPEN_LINE_ABOVE,
}

INSERT_ENTRY_KINDS = frozenset(
    {
        CommandKind.ENTER_INSERT_BEFORE,
        CommandKind.ENTER_INSERT_AFTER,
        CommandKind.ENTER_INSERT_LINE_START,
        CommandKind.ENTER_INSERT_LINE_END,
        CommandKind.OPEN_LINE_BELOW,
        CommandKind.OPEN_LINE_ABOVE,
        CommandKind.CHANGE_WORD,
        CommandKind.CHANGE_LINE,
        CommandKind.SUBSTITUTE_CHAR,
        CommandKind.CHANGE_SELECTION,
    }
)

# Typing inside Insert mode shares one undo step per burst.
INSERT_BURST_KINDS = frozenset(
    {
        CommandKind.INSERT_TEXT,
        CommandKind.INSERT_NEWLINE,
        CommandKind.DELETE_BACKWARD,
    }
)

SELF_COUNTED_KINDS = (
    _MODES
    | INSERT_ENTRY_KINDS
    | {
        CommandKind.DELETE_LINE,
        CommandKind.JOIN_LINES,
        CommandKind.INDENT,
        CommandKind.DEDENT,
        CommandKind.YANK_LINE,
        CommandKind.YANK_WORD,
        CommandKind.REPLACE_CHAR,
        CommandKind.DOCUMENT_START,
        CommandKind.DOCUMENT_END,
        CommandKind.DELETE_SELECTION,
        CommandKind.REPLACE_SELECTION,
        CommandKind.YANK_SELECTION,
        CommandKind.JOIN_SELECTION,
        CommandKind.INSERT_TEXT,
        CommandKind.COLLAPSE_SELECTION,
        CommandKind.KEEP_PRIMARY,
        CommandKind.FLIP_SELECTION,
    }
)

# History commands restore snapshots themselves and never open a transaction.
UNTRACKED_KINDS = _HISTORY


@dataclass(frozen=True, slots=True)
class Command:
    """A single semantic editor action resolved from one or more key events."""

    kind: CommandKind
    count: int = 1
    argument: Optional[str] = None
    register: str = '"'
    keys: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError("count must be at least 1")
        if len(self.register) != 1:
            raise ValueError("register names are single characters")

    @property
    def category(self) -> CommandCategory:
        return self.kind.category

    @property
    def label(self) -> str:
        text = self.kind.value
        if self.argument is not None:
            text = f"{text}({self.argument!r})"
        if self.count > 1:
            text = f"{self.count}x {text}"
        return text

    def merged_with(self, other: "Command") -> "Command":
        """Concatenate two ``INSERT_TEXT`` commands of the same typing burst."""

        if self.kind is not CommandKind.INSERT_TEXT or other.kind is not self.kind:
            raise ValueError("only insert_text commands can be merged")
        return replace(
            self,
            argument=(self.argument or "") + (other.argument or ""),
            keys=self.keys + other.keys,
        )


__all__ = [
    "Command",
    "CommandCategory",
    "CommandKind",
    "INSERT_BURST_KINDS",
    "INSERT_ENTRY_KINDS",
    "MUTATING_KINDS",
    "SELF_COUNTED_KINDS",
    "UNTRACKED_KINDS",
]
