"""Pending-key state shared by the keymap driven modes.

A command in Normal or Select mode may span several keys: an optional count,
an optional ``"<r>`` register prefix, the command keys themselves and, for
``f``/``t``/``r``, one argument key. ``PendingDraft`` holds what has been typed
so far; ``KeymapMode`` feeds it one key at a time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from modal_trainer.actions.dispatch import run_command
from modal_trainer.buffer import OutOfBounds, RegisterBank
from modal_trainer.buffer.registers import UNNAMED
from modal_trainer.commands import Command
from modal_trainer.keymaps import ActionRef, ResolutionMatch
from modal_trainer.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeContext, ModeResult, UnrecognizedInput
from .keymap_helpers import key_to_token, printable_text, require_keymap_resolver

REGISTER_PREFIX = '"'
CANCEL_KEY = "ESC"


@dataclass(slots=True)
class PendingDraft:
    digits: str = ""
    register: str = UNNAMED
    awaiting_register: bool = False
    tokens: List[str] = field(default_factory=list)
    awaiting: Optional[ResolutionMatch] = None
    raw_keys: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return int(self.digits) if self.digits else 1

    @property
    def started(self) -> bool:
        return bool(
            self.digits
            or self.awaiting_register
            or self.register != UNNAMED
            or self.tokens
            or self.awaiting
        )


class CountParser:
    """Accepts ``[1-9][0-9]*`` ahead of the command keys."""

    def accepts(self, token: str, draft: PendingDraft) -> bool:
        if draft.tokens or len(token) != 1 or not token.isdigit():
            return False
        return token != "0" or bool(draft.digits)

    def feed(self, token: str, draft: PendingDraft) -> None:
        draft.digits += token


class KeymapMode(Mode):
    """Mode whose keys resolve through the keymap trie into commands."""

    def __init__(self, context: ModeContext) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger(f"modal_trainer.modes.{self.name}")
        self._resolver = require_keymap_resolver(context)
        self._counts = CountParser()
        self._draft = PendingDraft()

    @property
    def pending(self) -> bool:
        return self._draft.started

    @property
    def pending_keys(self) -> tuple[str, ...]:
        return tuple(self._draft.raw_keys)

    def reset(self) -> None:
        self._draft = PendingDraft()

    def on_exit(self, next_mode: Optional[str]) -> None:
        del next_mode
        self.reset()

    def handle_key(self, key: KeyInput) -> ModeResult:
        token = key_to_token(key)
        draft = self._draft

        if token == CANCEL_KEY and draft.started:
            keys = tuple(draft.raw_keys)
            self.reset()
            self.logger.debug(f"Pending sequence {' '.join(keys)} cancelled")
            return ModeResult(consumed=True, status="cancelled", message="pending_cancelled")

        draft.raw_keys.append(token)

        if draft.awaiting is not None:
            argument = printable_text(key)
            if argument is None:
                return self._unrecognized()
            match = draft.awaiting
            return self._execute(match, argument=argument)

        if draft.awaiting_register:
            name = printable_text(key)
            if name is None or not RegisterBank.is_valid_name(name):
                return self._unrecognized()
            draft.register = name
            draft.awaiting_register = False
            return self._pending("awaiting_command")

        if self._counts.accepts(token, draft):
            self._counts.feed(token, draft)
            return self._pending("count")

        if token == REGISTER_PREFIX and not draft.tokens and draft.register == UNNAMED:
            draft.awaiting_register = True
            return self._pending("awaiting_register")

        draft.tokens.append(token)
        result = self._resolver.resolve(self.name, tuple(draft.tokens))

        if result.status == "pending":
            return self._pending("awaiting_sequence")

        if result.status == "match" and result.match:
            if result.match.binding.argument:
                draft.awaiting = result.match
                return self._pending("awaiting_argument")
            return self._execute(result.match)

        return self._unrecognized()

    def _pending(self, message: str) -> ModeResult:
        return ModeResult(consumed=True, status="pending", message=message)

    def _unrecognized(self) -> ModeResult:
        keys = tuple(self._draft.raw_keys)
        self.reset()
        error = UnrecognizedInput(self.name, keys)
        return ModeResult(
            consumed=False, status="unrecognized", message=str(error), error=error
        )

    def _execute(self, match: ResolutionMatch, *, argument: Optional[str] = None) -> ModeResult:
        draft = self._draft
        command = Command(
            kind=match.action.kind,
            count=draft.count,
            argument=argument,
            register=draft.register,
            keys=tuple(draft.raw_keys),
        )
        self.reset()
        return execute_command(
            self.context, match.action, command, binding_id=match.binding.id
        )


def execute_command(
    context: ModeContext,
    action: ActionRef,
    command: Command,
    *,
    binding_id: Optional[str] = None,
) -> ModeResult:
    """Run ``command`` through its bound handler, reporting bounds failures."""

    with telemetry.span(
        "keymaps::execute",
        component="keymaps",
        metadata={"binding_id": binding_id or "", "action": action.id},
    ):
        try:
            return run_command(context, command, action.handler)
        except OutOfBounds as exc:
            return ModeResult(
                consumed=True,
                status="out_of_bounds",
                message=str(exc),
                command=command,
                error=exc,
            )


__all__ = [
    "CANCEL_KEY",
    "CountParser",
    "KeymapMode",
    "PendingDraft",
    "REGISTER_PREFIX",
    "execute_command",
]
