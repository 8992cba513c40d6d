"""Register storage for yank, delete, and paste."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

UNNAMED = '"'
BLACK_HOLE = "_"


@dataclass(frozen=True, slots=True)
class RegisterValue:
    text: str
    type: str = "character"  # character or line

    @property
    def linewise(self) -> bool:
        return self.type == "line"


class RegisterBank:
    """Tracks the unnamed register plus named ``a``-``z`` and numbered slots.

    Writing a named register also updates the unnamed one; an uppercase name
    appends to its lowercase slot and ``_`` discards the write.
    """

    def __init__(self) -> None:
        self._registers: Dict[str, RegisterValue] = {UNNAMED: RegisterValue(text="")}

    @staticmethod
    def is_valid_name(name: str) -> bool:
        return len(name) == 1 and (name in {UNNAMED, BLACK_HOLE} or name.isalnum())

    def get(self, name: str = UNNAMED) -> RegisterValue:
        return self._registers.get(name.lower(), RegisterValue(text=""))

    def set(self, name: str, value: RegisterValue) -> None:
        if not self.is_valid_name(name):
            raise KeyError(f"Invalid register name {name!r}")
        if name == BLACK_HOLE:
            return
        if name.isupper():
            existing = self.get(name)
            linewise = existing.linewise or value.linewise
            joiner = "\n" if linewise and existing.text and value.text else ""
            value = RegisterValue(
                text=existing.text + joiner + value.text,
                type="line" if linewise else "character",
            )
            name = name.lower()
        self._registers[name] = value
        if name != UNNAMED:
            self._registers[UNNAMED] = value

    def yank_to(
        self, name: str, text: str, *, register_type: str = "character"
    ) -> None:
        self.set(name, RegisterValue(text=text, type=register_type))

    def append(self, name: str, text: str) -> None:
        existing = self.get(name)
        combined = RegisterValue(text=existing.text + text, type=existing.type)
        self.set(name.lower(), combined)


__all__ = ["BLACK_HOLE", "RegisterBank", "RegisterValue", "UNNAMED"]
