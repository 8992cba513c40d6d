"""Built-in command table: which keys produce which command in each mode."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from modal_trainer.commands import CommandKind

from .models import ActionRef, Binding, KeySequence
from .registry import KeymapRegistry

K = CommandKind

_SHARED_MOTIONS: tuple[tuple[tuple[str, ...], CommandKind, bool], ...] = (
    (("h",), K.MOVE_LEFT, False),
    (("LEFT",), K.MOVE_LEFT, False),
    (("l",), K.MOVE_RIGHT, False),
    (("RIGHT",), K.MOVE_RIGHT, False),
    (("j",), K.MOVE_DOWN, False),
    (("DOWN",), K.MOVE_DOWN, False),
    (("k",), K.MOVE_UP, False),
    (("UP",), K.MOVE_UP, False),
    (("w",), K.WORD_FORWARD, False),
    (("b",), K.WORD_BACKWARD, False),
    (("e",), K.WORD_END, False),
    (("0",), K.LINE_START, False),
    (("^",), K.FIRST_NON_BLANK, False),
    (("$",), K.LINE_END, False),
    (("g", "g"), K.DOCUMENT_START, False),
    (("G",), K.DOCUMENT_END, False),
    (("f",), K.FIND_CHAR, True),
    (("t",), K.TILL_CHAR, True),
    (("F",), K.FIND_CHAR_BACKWARD, True),
    (("T",), K.TILL_CHAR_BACKWARD, True),
    (("u",), K.UNDO, False),
    (("U",), K.REDO, False),
    (("ctrl+r",), K.REDO, False),
    (("ESC",), K.EXIT_TO_NORMAL, False),
)

_NORMAL_ONLY: tuple[tuple[tuple[str, ...], CommandKind, bool], ...] = (
    (("x",), K.DELETE_CHAR, False),
    (("d", "d"), K.DELETE_LINE, False),
    (("d", "w"), K.DELETE_WORD, False),
    (("D",), K.DELETE_TO_LINE_END, False),
    (("c", "w"), K.CHANGE_WORD, False),
    (("c", "c"), K.CHANGE_LINE, False),
    (("s",), K.SUBSTITUTE_CHAR, False),
    (("r",), K.REPLACE_CHAR, True),
    (("J",), K.JOIN_LINES, False),
    ((">",), K.INDENT, False),
    (("<",), K.DEDENT, False),
    (("p",), K.PASTE_AFTER, False),
    (("P",), K.PASTE_BEFORE, False),
    (("y", "y"), K.YANK_LINE, False),
    (("y", "w"), K.YANK_WORD, False),
    (("i",), K.ENTER_INSERT_BEFORE, False),
    (("a",), K.ENTER_INSERT_AFTER, False),
    (("I",), K.ENTER_INSERT_LINE_START, False),
    (("A",), K.ENTER_INSERT_LINE_END, False),
    (("o",), K.OPEN_LINE_BELOW, False),
    (("O",), K.OPEN_LINE_ABOVE, False),
    (("v",), K.ENTER_SELECT, False),
    ((".",), K.REPEAT_LAST, False),
    ((";",), K.COLLAPSE_SELECTION, False),
    ((",",), K.KEEP_PRIMARY, False),
    (("C",), K.COPY_SELECTION_DOWN, False),
)

_SELECT_ONLY: tuple[tuple[tuple[str, ...], CommandKind, bool], ...] = (
    (("d",), K.DELETE_SELECTION, False),
    (("c",), K.CHANGE_SELECTION, False),
    (("y",), K.YANK_SELECTION, False),
    (("r",), K.REPLACE_SELECTION, True),
    ((">",), K.INDENT_SELECTION, False),
    (("<",), K.DEDENT_SELECTION, False),
    (("J",), K.JOIN_SELECTION, False),
    (("o",), K.FLIP_SELECTION, False),
    ((";",), K.COLLAPSE_SELECTION, False),
    ((",",), K.KEEP_PRIMARY, False),
    (("C",), K.COPY_SELECTION_DOWN, False),
    (("v",), K.EXIT_TO_NORMAL, False),
)

_INSERT: tuple[tuple[tuple[str, ...], CommandKind, bool], ...] = (
    (("ESC",), K.EXIT_TO_NORMAL, False),
    (("ENTER",), K.INSERT_NEWLINE, False),
    (("BACKSPACE",), K.DELETE_BACKWARD, False),
    (("LEFT",), K.MOVE_LEFT, False),
    (("RIGHT",), K.MOVE_RIGHT, False),
    (("UP",), K.MOVE_UP, False),
    (("DOWN",), K.MOVE_DOWN, False),
)

COMMAND_TABLE: Mapping[str, tuple[tuple[tuple[str, ...], CommandKind, bool], ...]] = {
    "normal": _SHARED_MOTIONS + _NORMAL_ONLY,
    "select": _SHARED_MOTIONS + _SELECT_ONLY,
    "insert": _INSERT,
}


def action_id_for(kind: CommandKind) -> str:
    return f"{kind.category.value}.{kind.value}"


def _build_bindings() -> tuple[Binding, ...]:
    bindings: list[Binding] = []
    for mode, rows in COMMAND_TABLE.items():
        seen: dict[CommandKind, int] = {}
        for keys, kind, argument in rows:
            index = seen.get(kind, 0)
            seen[kind] = index + 1
            suffix = "" if index == 0 else f".alt{index}"
            bindings.append(
                Binding(
                    id=f"{mode}.{kind.value}{suffix}",
                    mode=mode,
                    sequence=KeySequence.from_strings(*keys),
                    action_id=action_id_for(kind),
                    description=kind.value.replace("_", " "),
                    argument=argument,
                )
            )
    return tuple(bindings)


DEFAULT_BINDINGS: tuple[Binding, ...] = _build_bindings()


def default_actions() -> tuple[ActionRef, ...]:
    """One action per command kind, bound to its handler in ``modal_trainer.actions``."""

    # Imported here: the handlers depend on modes, which depend on this package.
    from modal_trainer.actions import HANDLERS

    return tuple(
        ActionRef(
            id=action_id_for(kind),
            kind=kind,
            handler=HANDLERS[kind],
            description=kind.value.replace("_", " "),
        )
        for kind in CommandKind
    )


def load_default_keymaps(
    registry: KeymapRegistry,
    *,
    replace: bool = False,
    extra_bindings: Iterable[Binding] | None = None,
    include_actions: Sequence[str] | None = None,
    exclude_actions: Sequence[str] | None = None,
    include_bindings: Sequence[str] | None = None,
    exclude_bindings: Sequence[str] | None = None,
    per_mode_overrides: Mapping[str, Iterable[Binding]] | None = None,
) -> None:
    """Register built-in actions and bindings for every mode."""

    allowed_actions = _build_filters(include_actions, exclude_actions)
    allowed_bindings = _build_filters(include_bindings, exclude_bindings)

    for action in default_actions():
        if not _selected(action.id, allowed_actions):
            continue
        registry.register_action(action, replace=replace)

    for binding in DEFAULT_BINDINGS:
        if not _selected(binding.id, allowed_bindings):
            continue
        if not _selected(binding.action_id, allowed_actions):
            continue
        registry.register_binding(binding, replace=replace)

    for binding in extra_bindings or ():
        registry.register_binding(binding, replace=replace)

    for mode, bindings in (per_mode_overrides or {}).items():
        for binding in bindings:
            if binding.mode != mode:
                raise ValueError(
                    f"Override binding '{binding.id}' must target mode '{mode}'"
                )
            registry.register_binding(binding, replace=True)


def _build_filters(
    include: Sequence[str] | None, exclude: Sequence[str] | None
) -> tuple[set[str] | None, set[str]]:
    include_set = set(include) if include else None
    exclude_set = set(exclude or ())
    return include_set, exclude_set


def _selected(item_id: str, filters: tuple[set[str] | None, set[str]]) -> bool:
    include, exclude = filters
    if include is not None and item_id not in include:
        return False
    if item_id in exclude:
        return False
    return True


__all__ = [
    "COMMAND_TABLE",
    "DEFAULT_BINDINGS",
    "action_id_for",
    "default_actions",
    "load_default_keymaps",
]
