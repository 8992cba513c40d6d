from __future__ import annotations

from typing import Any, Dict, Optional

import pytest

from modal_trainer.buffer import Buffer, Position
from modal_trainer.commands import CommandKind
from modal_trainer.keymaps import (
    Binding,
    KeySequence,
    KeymapRegistry,
    KeymapResolver,
    load_default_keymaps,
)
from modal_trainer.modes import (
    CountParser,
    InsertMode,
    KeyInput,
    ModeBus,
    ModeContext,
    ModeManager,
    NormalMode,
    PendingDraft,
    SelectMode,
    UnrecognizedInput,
    create_interpreter,
    token_to_key,
)


def make_context(
    registry: KeymapRegistry,
    resolver: KeymapResolver,
    *,
    buffer: Optional[Buffer] = None,
) -> ModeContext:
    buffer_obj = buffer or Buffer()
    extras: Dict[str, Any] = {
        "keymap_registry": registry,
        "keymap_resolver": resolver,
        "keymap_flags": {},
    }
    return ModeContext(
        buffer=buffer_obj,
        registers=buffer_obj.registers,
        bus=ModeBus(),
        extras=extras,
    )


def make_defaults() -> tuple[KeymapRegistry, KeymapResolver]:
    registry = KeymapRegistry()
    load_default_keymaps(registry)
    return registry, KeymapResolver(registry)


def press(manager: ModeManager, *tokens: str):
    results = [manager.handle_key(token_to_key(token)) for token in tokens]
    return results[-1]


def test_normal_mode_uses_keymap_binding() -> None:
    registry, resolver = make_defaults()
    context = make_context(registry, resolver)
    mode = NormalMode(context)

    result = mode.handle_key(KeyInput(key="i"))

    assert result.switch_to == "insert"
    assert result.consumed is True
    assert result.command is not None
    assert result.command.kind is CommandKind.ENTER_INSERT_BEFORE


def test_insert_mode_escape_binding() -> None:
    registry, resolver = make_defaults()
    context = make_context(registry, resolver)
    mode = InsertMode(context)

    result = mode.handle_key(KeyInput(key="ESC"))

    assert result.switch_to == "normal"
    assert result.consumed is True


def test_insert_mode_types_printable_keys() -> None:
    registry, resolver = make_defaults()
    context = make_context(registry, resolver, buffer=Buffer.from_text("bc"))
    mode = InsertMode(context)

    result = mode.handle_key(KeyInput(key="a", text="a"))

    assert result.status == "applied"
    assert result.command is not None
    assert result.command.kind is CommandKind.INSERT_TEXT
    assert result.command.argument == "a"
    assert context.buffer.text == "abc"
    assert context.buffer.cursor == Position(0, 1)


def test_insert_mode_rejects_control_keys() -> None:
    registry, resolver = make_defaults()
    context = make_context(registry, resolver)
    mode = InsertMode(context)

    result = mode.handle_key(KeyInput(key="x", modifiers=("ctrl",)))

    assert result.status == "unrecognized"
    assert result.consumed is False
    assert isinstance(result.error, UnrecognizedInput)


def test_normal_mode_pending_sequence() -> None:
    registry, resolver = make_defaults()
    custom_binding = Binding(
        id="normal.custom",
        mode="normal",
        sequence=KeySequence.from_strings("g", "x"),
        action_id="motion.line_end",
    )
    registry.register_binding(custom_binding)
    context = make_context(registry, resolver, buffer=Buffer.from_text("abc"))
    mode = NormalMode(context)

    pending = mode.handle_key(KeyInput(key="g"))
    assert pending.status == "pending"
    assert mode.pending
    assert mode.pending_keys == ("g",)

    result = mode.handle_key(KeyInput(key="x"))
    assert result.status == "applied"
    assert context.buffer.cursor == Position(0, 3)
    assert not mode.pending


def test_count_parser_rejects_leading_zero() -> None:
    parser = CountParser()
    draft = PendingDraft()

    assert not parser.accepts("0", draft)
    assert parser.accepts("3", draft)
    parser.feed("3", draft)
    assert parser.accepts("0", draft)
    parser.feed("0", draft)
    assert draft.count == 30

    draft.tokens.append("d")
    assert not parser.accepts("2", draft)


def test_zero_alone_moves_to_line_start() -> None:
    manager = create_interpreter(Buffer.from_text("hello", cursor=Position(0, 3)))

    result = press(manager, "0")

    assert result.command is not None
    assert result.command.kind is CommandKind.LINE_START
    assert manager.context.buffer.cursor == Position(0, 0)


def test_count_multiplies_motion() -> None:
    manager = create_interpreter(Buffer.from_text("abcdefghijklmnop"))

    result = press(manager, "1", "2", "l")

    assert result.command is not None
    assert result.command.count == 12
    assert result.command.keys == ("1", "2", "l")
    assert manager.context.buffer.cursor == Position(0, 12)


def test_count_partially_applies_when_room_runs_out() -> None:
    manager = create_interpreter(Buffer.from_text("a\nb\nc"))

    result = press(manager, "5", "j")

    assert result.status == "applied"
    assert manager.context.buffer.cursor == Position(2, 0)


def test_motion_without_room_reports_out_of_bounds() -> None:
    manager = create_interpreter(Buffer.from_text("a\nb"))

    result = press(manager, "k")

    assert result.status == "out_of_bounds"
    assert result.command is not None
    assert manager.context.buffer.cursor == Position(0, 0)


def test_escape_cancels_pending_sequence_without_side_effects() -> None:
    buffer = Buffer.from_text("one\ntwo")
    manager = create_interpreter(buffer)

    assert press(manager, "2", "d").status == "pending"
    result = press(manager, "ESC")

    assert result.status == "cancelled"
    assert buffer.text == "one\ntwo"
    assert manager.active_mode is not None
    assert not manager.active_mode.pending

    follow_up = press(manager, "d", "d")
    assert follow_up.command is not None
    assert follow_up.command.count == 1
    assert buffer.text == "two"


def test_unknown_key_is_unrecognized_and_harmless() -> None:
    buffer = Buffer.from_text("abc")
    manager = create_interpreter(buffer)

    result = press(manager, "z")

    assert result.status == "unrecognized"
    assert result.consumed is False
    assert isinstance(result.error, UnrecognizedInput)
    assert buffer.text == "abc"


def test_broken_operator_sequence_is_unrecognized() -> None:
    manager = create_interpreter(Buffer.from_text("abc"))

    result = press(manager, "d", "z")

    assert result.status == "unrecognized"
    assert result.error is not None
    assert result.error.keys == ("d", "z")
    assert manager.context.buffer.text == "abc"


def test_find_waits_for_target_character() -> None:
    manager = create_interpreter(Buffer.from_text("hello world"))

    assert press(manager, "f").message == "awaiting_argument"
    result = press(manager, "o")

    assert result.command is not None
    assert result.command.argument == "o"
    assert manager.context.buffer.cursor == Position(0, 4)


@pytest.mark.parametrize(
    ("keys", "column"),
    [
        (("t", "o"), 3),
        (("2", "f", "o"), 7),
        (("$", "F", "o"), 7),
        (("$", "T", "o"), 8),
    ],
)
def test_find_and_till_motions(keys: tuple[str, ...], column: int) -> None:
    manager = create_interpreter(Buffer.from_text("hello world"))

    press(manager, *keys)

    assert manager.context.buffer.cursor == Position(0, column)


def test_named_key_cannot_be_an_argument() -> None:
    manager = create_interpreter(Buffer.from_text("abc"))

    press(manager, "r")
    result = press(manager, "ENTER")

    assert result.status == "unrecognized"
    assert manager.context.buffer.text == "abc"


def test_register_prefix_selects_register() -> None:
    buffer = Buffer.from_text("alpha\nbeta")
    manager = create_interpreter(buffer)

    assert press(manager, '"').message == "awaiting_register"
    assert press(manager, "a").message == "awaiting_command"
    result = press(manager, "y", "y")

    assert result.command is not None
    assert result.command.register == "a"
    assert buffer.registers.get("a").text == "alpha"


def test_invalid_register_name_is_unrecognized() -> None:
    manager = create_interpreter(Buffer.from_text("abc"))

    result = press(manager, '"', "!")

    assert result.status == "unrecognized"


def test_switch_mode_emits_bus_event() -> None:
    manager = create_interpreter(Buffer.from_text("abc"))
    seen: list[object] = []
    manager.context.bus.subscribe("mode.switch", seen.append)

    press(manager, "i")
    press(manager, "ESC")

    assert seen == [
        {"mode": "insert", "previous": "normal"},
        {"mode": "normal", "previous": "insert"},
    ]
    assert manager.mode_name == "normal"


def test_register_mode_rejects_duplicates() -> None:
    manager = create_interpreter(Buffer.from_text(""))

    with pytest.raises(ValueError):
        manager.register_mode(SelectMode)
    with pytest.raises(KeyError):
        manager.switch_mode("command")


def test_manager_requires_active_mode() -> None:
    registry, resolver = make_defaults()
    context = make_context(registry, resolver)
    manager = ModeManager(context, keymap_registry=registry, keymap_resolver=resolver)

    with pytest.raises(RuntimeError):
        manager.handle_key(KeyInput(key="x"))
