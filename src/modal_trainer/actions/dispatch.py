"""Runs one resolved command: count repetition, undo grouping, and telemetry."""

from __future__ import annotations

from typing import Callable, Optional, cast

from modal_trainer.buffer import Checkpoint, OutOfBounds, Position
from modal_trainer.commands import INSERT_BURST_KINDS, UNTRACKED_KINDS, Command
from modal_trainer.modes.base_mode import ModeContext, ModeResult
from modal_trainer.modes.keymap_helpers import flag_enabled
from modal_trainer.runtime import telemetry

Handler = Callable[[ModeContext, Command], Optional[ModeResult]]

_ITERATION_KEY = "repeat_iteration"
_BURST_KEY = "insert_burst"
_ORIGIN_KEY = "insert_burst_origin"


def run_command(context: ModeContext, command: Command, handler: Handler) -> ModeResult:
    """Apply ``command`` and return its outcome.

    Commands that do not consume their own count run ``count`` times. When a
    later repetition runs out of room the earlier ones stand; when the first
    one does, ``OutOfBounds`` propagates and the transaction leaves the buffer
    as it was. Every buffer change lands in a single undo checkpoint, merged
    with the running typing burst for Insert mode edits.
    """

    kind = command.kind
    with telemetry.span(
        f"command::{kind.value}",
        component="commands",
        metadata={"count": command.count, "register": command.register},
    ) as handle:
        if kind.enters_insert:
            begin_insert_burst(context)
        if kind in UNTRACKED_KINDS:
            outcome = _repeat(context, command, handler)
        else:
            coalesce_key = _coalesce_key(context, command)
            with context.buffer.transaction(
                kind.value,
                coalesce_key=coalesce_key,
                origin=_burst_origin(context) if coalesce_key else None,
            ):
                outcome = _repeat(context, command, handler)
        handle.add_metadata("status", outcome.status)
    outcome.command = command
    return outcome


def _repeat(context: ModeContext, command: Command, handler: Handler) -> ModeResult:
    times = 1 if command.kind.counts_itself else command.count
    last: Optional[ModeResult] = None
    for iteration in range(times):
        context.extras[_ITERATION_KEY] = iteration
        try:
            outcome = handler(context, command) or ModeResult(consumed=True)
        except OutOfBounds:
            if last is None:
                raise
            break
        finally:
            context.extras.pop(_ITERATION_KEY, None)
        if outcome.status == "noop" and last is not None:
            break
        last = outcome
        if outcome.status == "noop" or outcome.switch_to:
            break
    assert last is not None
    return last


def _coalesce_key(context: ModeContext, command: Command) -> Optional[str]:
    if command.kind in INSERT_BURST_KINDS or command.kind.enters_insert:
        return cast(Optional[str], context.extras.get(_BURST_KEY))
    return None


def _burst_origin(context: ModeContext) -> Optional[Checkpoint]:
    return cast(Optional[Checkpoint], context.extras.get(_ORIGIN_KEY))


def begin_insert_burst(context: ModeContext) -> str:
    """Start a new typing burst; edits sharing its key undo as one step.

    The buffer state at this point is kept as the burst's origin, so undoing
    the burst also restores a cursor moved by the command that opened it.
    """

    counter = cast(int, context.extras.get("insert_burst_seq", 0)) + 1
    context.extras["insert_burst_seq"] = counter
    key = f"insert-{counter}"
    context.extras[_BURST_KEY] = key
    context.extras[_ORIGIN_KEY] = context.buffer.checkpoint()
    return key


def end_insert_burst(context: ModeContext) -> None:
    context.extras.pop(_BURST_KEY, None)
    context.extras.pop(_ORIGIN_KEY, None)


def has_insert_burst(context: ModeContext) -> bool:
    return _BURST_KEY in context.extras


def store_register(
    context: ModeContext,
    command: Command,
    text: str,
    *,
    register_type: str = "character",
) -> None:
    """Write removed or copied text; later repetitions of a count append."""

    registers = context.registers
    if context.extras.get(_ITERATION_KEY, 0):
        registers.append(command.register, text)
    else:
        registers.yank_to(command.register, text, register_type=register_type)
    context.bus.emit(
        "register.write",
        {"register": command.register, "text": text, "type": register_type},
    )


def place_head(context: ModeContext, position: Position) -> None:
    """Move the primary head; Select mode extends instead of collapsing."""

    context.buffer.move_head(position, extend=flag_enabled(context, "select_active"))

__all__ = [
    "Handler",
    "begin_insert_burst",
    "end_insert_burst",
    "has_insert_burst",
    "place_head",
    "run_command",
    "store_register",
]
