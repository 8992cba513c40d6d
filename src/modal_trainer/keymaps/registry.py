"""Keymap registry: the command actions and the key bindings that trigger them.

Every ``ActionRef`` names exactly one ``CommandKind`` and each mode holds at
most one binding per key signature, so lookups in both directions stay
dictionary hits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Sequence

from modal_trainer.commands import CommandKind
from modal_trainer.runtime.telemetry import span

from .models import ActionRef, Binding


@dataclass(slots=True)
class RegistryStats:
    action_count: int
    binding_count: int
    modes: tuple[str, ...]


class KeymapConflictError(RuntimeError):
    """Raised when a binding claims keys already bound in its mode."""

    def __init__(self, binding: Binding, conflicts: Iterable[Binding]):
        self.binding = binding
        self.conflicts = tuple(conflicts)
        taken = ", ".join(conflict.id for conflict in self.conflicts)
        super().__init__(
            f"Keys {' '.join(binding.sequence.tokens)!r} in mode '{binding.mode}'"
            f" for '{binding.id}' are already bound by {taken}"
        )


class KeymapRegistry:
    """Owns the action table and the per-mode binding index."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._actions: Dict[str, ActionRef] = {}
        self._kinds: Dict[CommandKind, str] = {}
        self._bindings: Dict[str, Binding] = {}
        # mode -> key signature -> binding id
        self._slots: Dict[str, Dict[str, str]] = {}
        self._logger_name = logger_name
        self._revision = 0

    def revision(self) -> int:
        return self._revision

    def get_action(self, action_id: str) -> ActionRef:
        action = self._actions.get(action_id)
        if action is None:
            raise KeyError(f"Action '{action_id}' is not registered")
        return action

    def action_for_kind(self, kind: CommandKind) -> ActionRef:
        action_id = self._kinds.get(kind)
        if action_id is None:
            raise KeyError(f"No action registered for command '{kind.value}'")
        return self._actions[action_id]

    def get_binding(self, binding_id: str) -> Binding:
        binding = self._bindings.get(binding_id)
        if binding is None:
            raise KeyError(f"Binding '{binding_id}' is not registered")
        return binding

    def register_action(self, action: ActionRef, *, replace: bool = False) -> ActionRef:
        with span(
            "keymaps::register_action",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"action_id": action.id, "kind": action.kind.value},
        ):
            if action.id in self._actions and not replace:
                raise ValueError(f"Action '{action.id}' already registered")
            previous = self._actions.get(action.id)
            if previous is not None:
                self._kinds.pop(previous.kind, None)
            self._actions[action.id] = action
            self._kinds[action.kind] = action.id
            return action

    def register_binding(self, binding: Binding, *, replace: bool = False) -> Binding:
        """Bind ``binding``'s keys in its mode.

        With ``replace`` any binding holding the same keys, and any earlier
        binding with the same id, is dropped first; otherwise both situations
        raise.
        """

        with span(
            "keymaps::register_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding.id, "mode": binding.mode},
        ) as handle:
            if binding.action_id not in self._actions:
                handle.add_metadata("missing_action", binding.action_id)
                raise KeyError(
                    f"Binding '{binding.id}' references unknown action '{binding.action_id}'"
                )

            conflicts = self.detect_conflicts(binding, ignore=(binding.id,))
            if not replace:
                if conflicts:
                    handle.add_metadata("conflicts", conflicts[0].id)
                    raise KeymapConflictError(binding, conflicts)
                if binding.id in self._bindings:
                    raise ValueError(f"Binding id '{binding.id}' already registered")

            for stale in (*conflicts, self._bindings.get(binding.id)):
                if stale is not None:
                    self._drop(stale)
            self._bindings[binding.id] = binding
            self._slots.setdefault(binding.mode, {})[binding.key_signature] = binding.id
            self._revision += 1
            return binding

    def unregister_binding(self, binding_id: str) -> Optional[Binding]:
        with span(
            "keymaps::unregister_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding_id},
        ):
            binding = self._bindings.get(binding_id)
            if binding is None:
                return None
            self._drop(binding)
            self._revision += 1
            return binding

    def iter_bindings(self, mode: Optional[str] = None) -> Iterator[Binding]:
        if mode is None:
            yield from self._bindings.values()
            return
        for binding_id in sorted(self._slots.get(mode, {}).values()):
            yield self._bindings[binding_id]

    def stats(self) -> RegistryStats:
        return RegistryStats(
            action_count=len(self._actions),
            binding_count=len(self._bindings),
            modes=tuple(sorted(self._slots)),
        )

    def detect_conflicts(
        self, binding: Binding, *, ignore: Sequence[str] | None = None
    ) -> list[Binding]:
        holder = self._slots.get(binding.mode, {}).get(binding.key_signature)
        if holder is None or holder in (ignore or ()):
            return []
        return [self._bindings[holder]]

    def _drop(self, binding: Binding) -> None:
        self._bindings.pop(binding.id, None)
        slots = self._slots.get(binding.mode)
        if slots is None:
            return
        if slots.get(binding.key_signature) == binding.id:
            del slots[binding.key_signature]
        if not slots:
            del self._slots[binding.mode]


__all__ = [
    "KeymapRegistry",
    "KeymapConflictError",
    "RegistryStats",
]
