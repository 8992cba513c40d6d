"""Undo, redo and repeat-last-change."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, cast

from modal_trainer.buffer import OutOfBounds
from modal_trainer.commands import Command
from modal_trainer.modes.base_mode import ModeContext, ModeResult


class Replayer(Protocol):
    @property
    def last_change(self) -> tuple[str, ...]: ...

    def replay(self, tokens: Sequence[str]) -> list[ModeResult]: ...


def undo(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    if not context.buffer.undo():
        return ModeResult(consumed=True, status="noop", message="nothing_to_undo")
    return None


def redo(context: ModeContext, command: Command) -> Optional[ModeResult]:
    del command
    if not context.buffer.redo():
        return ModeResult(consumed=True, status="noop", message="nothing_to_redo")
    return None


def repeat_last(context: ModeContext, command: Command) -> Optional[ModeResult]:
    """Replay the keys of the last recorded change through the interpreter."""

    del command
    if "mode_manager" not in context.extras:
        raise RuntimeError("ModeContext.extras missing 'mode_manager'")
    replayer = cast(Replayer, context.extras["mode_manager"])
    tokens = replayer.last_change
    if not tokens:
        return ModeResult(consumed=True, status="noop", message="nothing_to_repeat")
    for outcome in replayer.replay(tokens):
        if outcome.status == "out_of_bounds":
            raise OutOfBounds(outcome.message or "Repeated change does not fit")
    return None


__all__ = ["Replayer", "redo", "repeat_last", "undo"]
