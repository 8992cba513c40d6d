"""Helper utilities for keymap-driven modes."""

from __future__ import annotations

from typing import Mapping, MutableMapping, cast

from modal_trainer.keymaps import KeymapResolver, KeyStroke

from .base_mode import KeyInput, ModeContext

NAMED_KEYS = frozenset(
    {"ESC", "ENTER", "BACKSPACE", "TAB", "LEFT", "RIGHT", "UP", "DOWN", "DELETE"}
)


def key_to_token(key: KeyInput) -> str:
    return KeyStroke(key=key.key, modifiers=key.modifiers).token


def token_to_key(token: str) -> KeyInput:
    """Rebuild a ``KeyInput`` from a recorded token (used when replaying)."""

    stroke = KeyStroke.parse(token)
    if stroke.modifiers or stroke.key in NAMED_KEYS:
        return KeyInput(key=stroke.key, modifiers=stroke.modifiers)
    return KeyInput(key=stroke.key, text=stroke.key)


def printable_text(key: KeyInput) -> str | None:
    """Text a key would type, or ``None`` for control and named keys."""

    if key.modifiers and "shift" not in key.modifiers:
        return None
    if key.text is not None:
        return key.text if key.text and key.text.isprintable() else None
    if len(key.key) == 1 and key.key.isprintable():
        return key.key
    return None


def require_keymap_resolver(context: ModeContext) -> KeymapResolver:
    resolver = context.extras.get("keymap_resolver")
    if not isinstance(resolver, KeymapResolver):
        raise RuntimeError("ModeContext.extras missing 'keymap_resolver'")
    return resolver


def keymap_flag_context(context: ModeContext) -> Mapping[str, bool]:
    flags = context.extras.setdefault("keymap_flags", {})
    return cast(Mapping[str, bool], flags)


def update_flag(context: ModeContext, key: str, value: bool) -> None:
    flags = cast(
        MutableMapping[str, bool], context.extras.setdefault("keymap_flags", {})
    )
    flags[key] = value


def flag_enabled(context: ModeContext, key: str) -> bool:
    return bool(keymap_flag_context(context).get(key, False))


__all__ = [
    "NAMED_KEYS",
    "flag_enabled",
    "key_to_token",
    "keymap_flag_context",
    "printable_text",
    "require_keymap_resolver",
    "token_to_key",
    "update_flag",
]
