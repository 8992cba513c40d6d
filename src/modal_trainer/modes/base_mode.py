"""Base classes and shared utilities for editor modes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from modal_trainer.buffer import Buffer, RegisterBank
from modal_trainer.commands import Command
from modal_trainer.config import TrainerConfig


class EditorMode(str, Enum):
    NORMAL = "normal"
    INSERT = "insert"
    SELECT = "select"


class UnrecognizedInput(LookupError):
    """A key or key sequence with no command in the current mode."""

    def __init__(self, mode: str, keys: Tuple[str, ...]) -> None:
        super().__init__(f"No command for {' '.join(keys) or '<empty>'} in {mode} mode")
        self.mode = mode
        self.keys = keys


@dataclass(slots=True)
class KeyInput:
    """Normalized key event passed to modes."""

    key: str
    modifiers: Tuple[str, ...] = ()
    text: Optional[str] = None


@dataclass(slots=True)
class ModeResult:
    """Result returned from ``Mode.handle_key``.

    ``status`` is one of ``applied``, ``pending``, ``cancelled``,
    ``unrecognized``, ``out_of_bounds`` or ``noop``.
    """

    consumed: bool
    switch_to: Optional[str] = None
    status: str = "applied"
    message: Optional[str] = None
    command: Optional[Command] = None
    error: Optional[Exception] = None

    @property
    def applied(self) -> bool:
        return self.status in {"applied", "noop"} and self.command is not None


@dataclass(slots=True)
class ModeContext:
    """Shared services every mode can access."""

    buffer: Buffer
    registers: RegisterBank
    bus: "ModeBus"
    config: TrainerConfig = field(default_factory=TrainerConfig)
    extras: Dict[str, object] = field(default_factory=dict)


class ModeBus:
    """Minimal event bus letting modes exchange structured signals."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in self._subscribers.get(event, []):
            callback(payload)


class Mode:
    """Base class all concrete editor modes inherit from."""

    name: str = "mode"

    def __init__(self, context: ModeContext) -> None:
        self.context = context

    def on_enter(self, previous: Optional[str]) -> None:
        del previous

    def on_exit(self, next_mode: Optional[str]) -> None:
        del next_mode

    @property
    def pending(self) -> bool:
        """True while a multi-key sequence is half typed."""

        return False

    def handle_key(
        self, key: KeyInput
    ) -> ModeResult:  # pragma: no cover - abstract override
        raise NotImplementedError


__all__ = [
    "EditorMode",
    "KeyInput",
    "Mode",
    "ModeBus",
    "ModeContext",
    "ModeResult",
    "UnrecognizedInput",
]
