from __future__ import annotations

from modal_trainer.commands import CommandKind
from modal_trainer.keymaps import (
    ActionRef,
    Binding,
    KeySequence,
    KeymapRegistry,
    KeymapResolver,
    load_default_keymaps,
)


def make_action(action_id: str, kind: CommandKind = CommandKind.DOCUMENT_START) -> ActionRef:
    return ActionRef(id=action_id, kind=kind, handler=lambda *args, **kwargs: None)


def make_binding(
    binding_id: str,
    *,
    mode: str = "normal",
    keys: tuple[str, ...] = ("g", "g"),
    action_id: str = "motion.document_start",
    argument: bool = False,
) -> Binding:
    return Binding(
        id=binding_id,
        mode=mode,
        sequence=KeySequence.from_strings(*keys),
        action_id=action_id,
        argument=argument,
    )


def build_registry(bindings: list[Binding]) -> KeymapRegistry:
    registry = KeymapRegistry()
    action_ids = {binding.action_id for binding in bindings}
    for action_id in action_ids:
        registry.register_action(make_action(action_id))
    for binding in bindings:
        registry.register_binding(binding)
    return registry


def test_resolver_matches_exact_sequence() -> None:
    binding = make_binding("normal.gg")
    registry = build_registry([binding])
    resolver = KeymapResolver(registry)

    result = resolver.resolve("normal", ("g", "g"))

    assert result.status == "match"
    assert result.consumed == 2
    assert result.match is not None
    assert result.match.binding.id == binding.id
    assert result.match.action.kind is CommandKind.DOCUMENT_START


def test_resolver_reports_pending_for_prefix() -> None:
    binding = make_binding("normal.gg")
    registry = build_registry([binding])
    resolver = KeymapResolver(registry)

    result = resolver.resolve("normal", ("g",))

    assert result.status == "pending"
    assert result.next_expected == ("g",)


def test_resolver_misses_unknown_prefix() -> None:
    registry = build_registry([make_binding("normal.gg")])
    resolver = KeymapResolver(registry)

    result = resolver.resolve("normal", ("g", "x"))

    assert result.status == "miss"
    assert result.consumed == 1


def test_resolver_scopes_bindings_by_mode() -> None:
    registry = build_registry([make_binding("select.gg", mode="select")])
    resolver = KeymapResolver(registry)

    assert resolver.resolve("normal", ("g", "g")).status == "miss"
    assert resolver.resolve("select", ("g", "g")).status == "match"


def test_resolver_uses_replacing_binding() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action("motion.document_start"))
    registry.register_action(make_action("motion.document_end", CommandKind.DOCUMENT_END))
    registry.register_binding(make_binding("normal.old", keys=("x",)))
    registry.register_binding(
        make_binding("normal.new", keys=("x",), action_id="motion.document_end"),
        replace=True,
    )
    resolver = KeymapResolver(registry)

    result = resolver.resolve("normal", ("x",))

    assert result.match is not None
    assert result.match.binding.id == "normal.new"
    assert result.match.action.kind is CommandKind.DOCUMENT_END


def test_resolver_returns_argument_bindings_as_match() -> None:
    binding = make_binding("normal.f", keys=("f",), argument=True)
    resolver = KeymapResolver(build_registry([binding]))

    result = resolver.resolve("normal", ("f",))

    assert result.status == "match"
    assert result.match is not None
    assert result.match.binding.argument is True


def test_resolver_cache_refreshes_on_revision() -> None:
    registry = build_registry([])
    resolver = KeymapResolver(registry)

    miss = resolver.resolve("normal", ("x",))
    assert miss.status == "miss"

    new_binding = make_binding("normal.x", keys=("x",), action_id="edit.delete_char")
    registry.register_action(make_action("edit.delete_char", CommandKind.DELETE_CHAR))
    registry.register_binding(new_binding)

    match = resolver.resolve("normal", ("x",))
    assert match.status == "match"
    assert match.match is not None
    assert match.match.binding.id == new_binding.id


def test_default_keymaps_resolve_operator_prefixes() -> None:
    registry = KeymapRegistry()
    load_default_keymaps(registry)
    resolver = KeymapResolver(registry)

    pending = resolver.resolve("normal", ("d",))
    assert pending.status == "pending"
    assert pending.next_expected == ("d", "w")

    redo = resolver.resolve("normal", ("ctrl+r",))
    assert redo.match is not None
    assert redo.match.action.kind is CommandKind.REDO

    select_delete = resolver.resolve("select", ("d",))
    assert select_delete.match is not None
    assert select_delete.match.action.kind is CommandKind.DELETE_SELECTION
