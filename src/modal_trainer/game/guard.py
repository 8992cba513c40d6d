"""Counted guard capping how many sessions may be open at once."""

from __future__ import annotations

from types import TracebackType
from typing import Optional, Type

from modal_trainer.config import TrainerConfig
from modal_trainer.runtime import telemetry


class SessionLimitExceeded(RuntimeError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"At most {limit} sessions may be active at once")
        self.limit = limit


class SessionLimiter:
    """Hands out ``SessionGuard`` tokens up to ``limit`` at a time.

    Limiters are plain objects owned by whoever hosts sessions; nothing here
    is process global.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._active = 0

    @classmethod
    def from_config(cls, config: TrainerConfig) -> "SessionLimiter":
        return cls(config.max_active_sessions)

    @property
    def active(self) -> int:
        return self._active

    def acquire(self) -> "SessionGuard":
        if self._active >= self.limit:
            telemetry.record_event(
                "session.limit", level="warning", data={"limit": self.limit}
            )
            raise SessionLimitExceeded(self.limit)
        self._active += 1
        return SessionGuard(self)

    def _release(self) -> None:
        self._active -= 1


class SessionGuard:
    """One slot of a ``SessionLimiter``; releasing twice is harmless."""

    __slots__ = ("_limiter", "_released")

    def __init__(self, limiter: SessionLimiter) -> None:
        self._limiter = limiter
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._limiter._release()

    def __enter__(self) -> "SessionGuard":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()


__all__ = ["SessionGuard", "SessionLimitExceeded", "SessionLimiter"]
