"""Minimal terminal adapter that wires a trainer session into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from modal_trainer.buffer import BufferMirror, BufferSync
from modal_trainer.game import ApplyResult, Session, retry
from modal_trainer.modes import KeyInput

HOST_KEY_NAMES: Dict[str, str] = {
    "escape": "ESC",
    "esc": "ESC",
    "enter": "ENTER",
    "return": "ENTER",
    "backspace": "BACKSPACE",
    "tab": "TAB",
    "delete": "DELETE",
    "left": "LEFT",
    "right": "RIGHT",
    "up": "UP",
    "down": "DOWN",
}

RELAYED_EVENTS = ("mode.switch", "register.write", "select.range")


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class ShellUIHooks:
    """Callbacks invoked by the adapter to update the host shell."""

    update_buffer: Callable[[BufferMirror], None]
    update_status: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop


def normalize_key(
    key: str, *, text: Optional[str] = None, modifiers: Iterable[str] = ()
) -> KeyInput:
    """Translate a host key name (``escape``, ``ctrl+r``, ``space``) into a ``KeyInput``."""

    mods = [str(mod).lower() for mod in modifiers]
    name = key
    if len(key) > 1 and "+" in key[:-1]:
        *prefix, name = key.split("+")
        mods.extend(part.lower() for part in prefix)
    if name.lower() == "space":
        name, text = " ", " "
    named = HOST_KEY_NAMES.get(name.lower()) if len(name) > 1 else None
    if named is not None:
        return KeyInput(key=named, modifiers=tuple(m for m in mods if m != "shift"))
    if len(name) == 1 and "shift" in mods:
        mods = [m for m in mods if m != "shift"]
    if text is None and len(name) == 1 and not mods:
        text = name
    return KeyInput(key=name, modifiers=tuple(sorted(set(mods))), text=text)


class TrainerShellAdapter(BufferSync):
    """Bridges a session and its bus events to a shell-friendly surface."""

    def __init__(self, session: Session, hooks: ShellUIHooks) -> None:
        self.session = session
        self.hooks = hooks
        self._subscribe_events()
        self._refresh_buffer()

    def handle_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
    ) -> ApplyResult:
        """Translate a host key event into a KeyInput and apply it to the session."""

        key_input = normalize_key(key, text=text, modifiers=modifiers)
        self._log_state("key ->", key=key_input.key, text=key_input.text)
        result = self.session.apply(key_input)
        self._after_result(result)
        self._log_state(
            "result <-",
            status=result.status,
            message=result.message,
            completed=result.completed,
        )
        return result

    def pull_buffer(self) -> BufferMirror:
        return self.session.buffer.mirror(
            attributes={
                "mode": self.session.mode_name,
                "state": self.session.state.value,
                "progress": str(self.session.completion_progress()),
            }
        )

    def retry(self) -> Session:
        """Start a fresh attempt of the same scenario and keep relaying it."""

        self.session = retry(self.session)
        self.hooks.update_status("retry")
        self._refresh_buffer()
        return self.session

    def _after_result(self, result: ApplyResult) -> None:
        if result.completed:
            self.hooks.update_status(self.session.score().summary())
        else:
            self.hooks.update_status(result.message or result.status)
        self._refresh_buffer()

    def _subscribe_events(self) -> None:
        for event in RELAYED_EVENTS:
            self.session.bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name, payload=payload)
        self.hooks.handle_event(name, payload)

    def _refresh_buffer(self) -> None:
        self.hooks.update_buffer(self.pull_buffer())

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot: Dict[str, object] = {
            "mode": self.session.mode_name,
            "cursor": self.session.buffer.cursor.as_tuple(),
            "commands": self.session.command_count,
            "buffer_version": self.session.buffer.version,
        }
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix] + [f"{key}={value!r}" for key, value in snapshot.items()]
        self.hooks.log(" ".join(parts))


__all__ = ["HOST_KEY_NAMES", "ShellUIHooks", "TrainerShellAdapter", "normalize_key"]
