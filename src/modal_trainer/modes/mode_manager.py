"""Mode manager: the command interpreter coordinating Normal/Insert/Select."""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Type

from modal_trainer.buffer import Buffer
from modal_trainer.config import TrainerConfig
from modal_trainer.keymaps import KeymapRegistry, KeymapResolver, load_default_keymaps
from modal_trainer.runtime import telemetry

from .base_mode import EditorMode, KeyInput, Mode, ModeBus, ModeContext, ModeResult
from .insert_mode import InsertMode
from .keymap_helpers import key_to_token, token_to_key
from .normal_mode import NormalMode
from .repeat import RepeatRecorder
from .select_mode import SelectMode


class ModeManager:
    """Owns active mode, handles transitions, and dispatches key events."""

    def __init__(
        self,
        context: ModeContext,
        *,
        keymap_registry: KeymapRegistry | None = None,
        keymap_resolver: KeymapResolver | None = None,
        load_defaults: bool = True,
    ) -> None:
        self.context = context
        self._modes: Dict[str, Mode] = {}
        self._active: Optional[str] = None
        self.logger = telemetry.get_logger("modal_trainer.modes")
        self.keymap_registry = keymap_registry or KeymapRegistry(
            logger_name="modal_trainer.keymaps"
        )
        if load_defaults and keymap_registry is None:
            load_default_keymaps(self.keymap_registry)
        self.keymap_resolver = keymap_resolver or KeymapResolver(
            self.keymap_registry, logger_name="modal_trainer.keymaps"
        )
        self.context.extras.setdefault("keymap_registry", self.keymap_registry)
        self.context.extras.setdefault("keymap_resolver", self.keymap_resolver)
        self.context.extras.setdefault("keymap_flags", {})
        self.context.extras.setdefault("mode_manager", self)
        self.recorder = RepeatRecorder()

    @property
    def active_mode(self) -> Optional[Mode]:
        if self._active is None:
            return None
        return self._modes.get(self._active)

    @property
    def mode_name(self) -> str:
        mode = self.active_mode
        if mode is None:
            raise RuntimeError("No active mode registered")
        return mode.name

    @property
    def last_change(self) -> tuple[str, ...]:
        return self.recorder.last_change

    def register_mode(
        self,
        mode_cls: Type[Mode],
        /,
        *mode_args: object,
        **mode_kwargs: object,
    ) -> Mode:
        mode = mode_cls(self.context, *mode_args, **mode_kwargs)
        if mode.name in self._modes:
            raise ValueError(f"Mode '{mode.name}' already registered")
        self._modes[mode.name] = mode
        if self._active is None:
            self._active = mode.name
            mode.on_enter(None)
        return mode

    def switch_mode(self, name: str) -> None:
        if name not in self._modes:
            raise KeyError(f"Unknown mode '{name}'")
        previous = self.active_mode
        if previous and previous.name == name:
            return
        if previous:
            previous.on_exit(name)
        self._active = name
        self._modes[name].on_enter(previous.name if previous else None)
        payload = {"mode": name, "previous": previous.name if previous else None}
        telemetry.record_event("mode.switch", data=payload)
        self.context.bus.emit("mode.switch", payload)

    def handle_key(self, key: KeyInput) -> ModeResult:
        mode = self.active_mode
        if mode is None:
            raise RuntimeError("No active mode registered")
        token = key_to_token(key)
        with telemetry.span(
            name=f"mode::{mode.name}",
            component=True,
            metadata={"key": token, "mode": mode.name},
        ) as handle:
            result = mode.handle_key(key)
            handle.add_metadata("status", result.status)
        if result.switch_to:
            self.switch_mode(result.switch_to)
        if result.command is not None and result.status == "applied":
            buffer = self.context.buffer
            buffer.selection = buffer.selection.normalized()
        self.recorder.observe(token, mode.name, result, self.mode_name)
        return result

    def replay(self, tokens: Sequence[str]) -> list[ModeResult]:
        """Feed recorded tokens back through ``handle_key`` without recording them."""

        results: list[ModeResult] = []
        with self.recorder.paused():
            for token in tokens:
                results.append(self.handle_key(token_to_key(token)))
        return results


def create_interpreter(
    buffer: Buffer,
    *,
    config: TrainerConfig | None = None,
    bus: ModeBus | None = None,
    keymap_registry: KeymapRegistry | None = None,
) -> ModeManager:
    """Build a ready-to-use interpreter in Normal mode for ``buffer``."""

    context = ModeContext(
        buffer=buffer,
        registers=buffer.registers,
        bus=bus or ModeBus(),
        config=config or TrainerConfig(),
    )
    manager = ModeManager(context, keymap_registry=keymap_registry)
    manager.register_mode(NormalMode)
    manager.register_mode(InsertMode)
    manager.register_mode(SelectMode)
    return manager


__all__ = ["EditorMode", "ModeManager", "create_interpreter"]
