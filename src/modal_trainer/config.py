"""Runtime limits shared by the interpreter and session controller."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

from modal_trainer.runtime.telemetry import ENV_PREFIX


@dataclass(frozen=True, slots=True)
class TrainerConfig:
    """Immutable limits passed explicitly into ``start()`` and the interpreter."""

    session_timeout: float = 3600.0
    max_active_sessions: int = 10
    indent_width: int = 2
    max_trace_length: int = 1_000_000
    max_content_length: int = 100_000
    max_hints: int = 10
    max_alternatives: int = 20

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if value <= 0:
                raise ValueError(f"{item.name} must be positive, got {value!r}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrainerConfig":
        """Build a config from ``MODAL_TRAINER_*`` variables, falling back to defaults."""

        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for item in fields(cls):
            raw = env.get(f"{ENV_PREFIX}{item.name.upper()}")
            if raw is None or not raw.strip():
                continue
            caster = float if item.name == "session_timeout" else int
            try:
                overrides[item.name] = caster(raw.strip())
            except ValueError as exc:
                raise ValueError(
                    f"{ENV_PREFIX}{item.name.upper()} must be numeric, got {raw!r}"
                ) from exc
        return cls(**overrides)  # type: ignore[arg-type]


__all__ = ["TrainerConfig"]
