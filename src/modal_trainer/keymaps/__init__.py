"""Declarative keymap registry and the default command table."""

from .models import ActionRef, Binding, KeySequence, KeyStroke
from .registry import KeymapConflictError, KeymapRegistry, RegistryStats
from .resolver import KeymapResolver, ResolutionMatch, ResolutionResult
from .defaults import (
    COMMAND_TABLE,
    DEFAULT_BINDINGS,
    action_id_for,
    default_actions,
    load_default_keymaps,
)

__all__ = [
    "ActionRef",
    "Binding",
    "KeySequence",
    "KeyStroke",
    "KeymapRegistry",
    "KeymapConflictError",
    "RegistryStats",
    "KeymapResolver",
    "ResolutionResult",
    "ResolutionMatch",
    "COMMAND_TABLE",
    "DEFAULT_BINDINGS",
    "action_id_for",
    "default_actions",
    "load_default_keymaps",
]
