"""Insert mode: printable keys type text, a few named keys edit or move."""

from __future__ import annotations

from typing import Optional

from modal_trainer.actions.dispatch import (
    begin_insert_burst,
    end_insert_burst,
    has_insert_burst,
)
from modal_trainer.commands import Command, CommandKind
from modal_trainer.runtime import telemetry

from .base_mode import EditorMode, KeyInput, Mode, ModeContext, ModeResult, UnrecognizedInput
from .keymap_helpers import key_to_token, printable_text, require_keymap_resolver
from .pending import execute_command


class InsertMode(Mode):
    name = EditorMode.INSERT.value

    def __init__(self, context: ModeContext) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger("modal_trainer.modes.insert")
        self._resolver = require_keymap_resolver(context)

    def on_enter(self, previous: Optional[str]) -> None:
        del previous
        if not has_insert_burst(self.context):
            begin_insert_burst(self.context)

    def on_exit(self, next_mode: Optional[str]) -> None:
        del next_mode
        end_insert_burst(self.context)

    def handle_key(self, key: KeyInput) -> ModeResult:
        token = key_to_token(key)
        result = self._resolver.resolve(self.name, (token,))

        if result.status == "match" and result.match:
            action = result.match.action
            command = Command(kind=action.kind, keys=(token,))
            return execute_command(
                self.context, action, command, binding_id=result.match.binding.id
            )

        text = printable_text(key)
        if text is None:
            error = UnrecognizedInput(self.name, (token,))
            return ModeResult(
                consumed=False, status="unrecognized", message=str(error), error=error
            )

        action = self._resolver.registry.action_for_kind(CommandKind.INSERT_TEXT)
        command = Command(kind=CommandKind.INSERT_TEXT, argument=text, keys=(token,))
        return execute_command(self.context, action, command)


__all__ = ["InsertMode"]
