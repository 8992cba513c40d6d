"""Session controller: drives one attempt at a scenario to completion.

A session owns a live buffer and its interpreter, records a trace of the
commands that took effect, checks the target after every one of them, and
freezes once it reaches a terminal state. The module level ``start``,
``apply``, ``abandon``, ``retry`` and ``score`` functions are the surface a
shell talks to.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from modal_trainer.buffer import Buffer, BufferView, OutOfBounds
from modal_trainer.commands import Command, CommandKind
from modal_trainer.config import TrainerConfig
from modal_trainer.modes import KeyInput, ModeBus, ModeManager, create_interpreter
from modal_trainer.modes.keymap_helpers import token_to_key
from modal_trainer.runtime import telemetry

from .guard import SessionGuard, SessionLimiter
from .scenario import InvalidScenarioData, Scenario
from .scorer import PerformanceRating, Scorer

Clock = Callable[[], float]
KeyEvent = Union[KeyInput, str]


class SessionState(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    TIMED_OUT = "timed_out"

    @property
    def terminal(self) -> bool:
        return self is not SessionState.ACTIVE


@dataclass(frozen=True, slots=True)
class TraceEntry:
    command: Command
    keys: tuple[str, ...]
    elapsed: float

    def merged_with(self, other: "TraceEntry") -> "TraceEntry":
        return TraceEntry(
            command=self.command.merged_with(other.command),
            keys=self.keys + other.keys,
            elapsed=other.elapsed,
        )


@dataclass(slots=True)
class ApplyResult:
    """Outcome of one key event.

    ``status`` repeats the interpreter's (``applied``, ``noop``, ``pending``,
    ``cancelled``, ``unrecognized``, ``out_of_bounds``) or reports a session
    level stop (``timed_out``, ``trace_full``). Keys sent after the session
    finished leave it untouched and report its final state (``completed``,
    ``abandoned``, ``timed_out``).
    """

    status: str
    view: BufferView
    mode: str
    command: Optional[Command] = None
    completed: bool = False
    message: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status in {"applied", "noop", "pending", "cancelled"}


@dataclass(frozen=True, slots=True)
class ScoreReport:
    numeric_score: int
    qualitative_band: PerformanceRating
    command_count: int
    elapsed_time: float
    max_points: int
    optimal_count: int
    is_optimal: bool
    success: bool
    hint: Optional[str] = None

    def summary(self) -> str:
        if not self.success:
            return "Scenario not completed. Try again!"
        return (
            f"{self.qualitative_band.label}: {self.numeric_score}/{self.max_points}"
            f" - {self.command_count} commands (optimal: {self.optimal_count})"
        )


class Session:
    """One attempt at one scenario."""

    def __init__(
        self,
        scenario: Scenario,
        *,
        config: TrainerConfig | None = None,
        clock: Clock | None = None,
        limiter: SessionLimiter | None = None,
        bus: ModeBus | None = None,
    ) -> None:
        scenario.validate()
        self.scenario = scenario
        self.config = config or TrainerConfig()
        self.logger = telemetry.get_logger("modal_trainer.game")
        self._clock: Clock = clock or time.monotonic
        self._limiter = limiter
        self._guard: Optional[SessionGuard] = limiter.acquire() if limiter else None
        try:
            self.buffer = Buffer.from_text(scenario.setup.content, name=scenario.id)
            self.buffer.selection = scenario.setup.as_selection()
        except OutOfBounds as exc:
            self._release()
            raise InvalidScenarioData("setup.cursor_position", str(exc)) from exc
        self.bus = bus or ModeBus()
        self.interpreter: ModeManager = create_interpreter(
            self.buffer, config=self.config, bus=self.bus
        )
        self.state = SessionState.ACTIVE
        self.trace: List[TraceEntry] = []
        self.started_at = self._clock()
        self.finished_at: Optional[float] = None
        self._hints_shown = 0
        telemetry.record_event(
            "session.start",
            data={"scenario": scenario.id, "optimal": scenario.scoring.optimal_count},
        )

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def mode_name(self) -> str:
        return self.interpreter.mode_name

    @property
    def command_count(self) -> int:
        return len(self.trace)

    @property
    def elapsed(self) -> float:
        end = self.finished_at if self.finished_at is not None else self._clock()
        return end - self.started_at

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def view(self) -> BufferView:
        return self.buffer.snapshot()

    def apply(self, key: KeyEvent) -> ApplyResult:
        """Interpret one key event and check the target if a command took effect."""

        if self.state.terminal:
            return self._result(self.state.value, message="session closed")
        if self.elapsed > self.config.session_timeout:
            self._finish(SessionState.TIMED_OUT, "session.timed_out")
            return self._result("timed_out", message="session timed out")
        if len(self.trace) >= self.config.max_trace_length:
            self._finish(SessionState.ABANDONED, "session.abandoned", reason="trace_full")
            return self._result("trace_full", message="too many commands")

        key_input = token_to_key(key) if isinstance(key, str) else key
        outcome = self.interpreter.handle_key(key_input)
        if not outcome.applied or outcome.command is None:
            return self._result(
                outcome.status,
                command=outcome.command,
                message=outcome.message,
                error=outcome.error,
            )

        self._record(outcome.command)
        completed = outcome.status == "applied" and self._matches_target()
        if completed:
            self._finish(SessionState.COMPLETED, "session.completed")
        return self._result(
            outcome.status,
            command=outcome.command,
            completed=completed,
            message=outcome.message,
        )

    def abandon(self) -> None:
        if self.state.terminal:
            return
        self._finish(SessionState.ABANDONED, "session.abandoned", reason="user")

    def close(self) -> None:
        """Abandon if still running and give the limiter slot back."""

        self.abandon()
        self._release()

    def content_matches(self) -> bool:
        return self.buffer.text == self.scenario.target.content

    def completion_progress(self) -> int:
        """Percentage of target lines already matching, line by line."""

        target_lines = self.scenario.target.content.splitlines()
        if not target_lines:
            return 100
        current_lines = self.buffer.text.splitlines()
        matching = sum(
            1 for current, target in zip(current_lines, target_lines) if current == target
        )
        return min(100, matching * 100 // len(target_lines))

    def next_hint(self) -> Optional[str]:
        if self._hints_shown >= len(self.scenario.hints):
            return None
        hint = self.scenario.hints[self._hints_shown]
        self._hints_shown += 1
        return hint

    def score(self) -> ScoreReport:
        scoring = self.scenario.scoring
        success = self.state is SessionState.COMPLETED
        count = len(self.trace)
        numeric = Scorer.score_with_config(scoring, count) if success else 0
        hint: Optional[str] = None
        if success and count > scoring.optimal_count * 2:
            solution = self.scenario.solution
            hint = f"Try using: {', '.join(solution.commands)}. {solution.description}".rstrip()
        return ScoreReport(
            numeric_score=numeric,
            qualitative_band=Scorer.get_rating(numeric, scoring.max_points),
            command_count=count,
            elapsed_time=self.elapsed,
            max_points=scoring.max_points,
            optimal_count=scoring.optimal_count,
            is_optimal=count <= scoring.optimal_count + scoring.tolerance,
            success=success,
            hint=hint,
        )

    def _record(self, command: Command) -> None:
        entry = TraceEntry(command=command, keys=command.keys, elapsed=self.elapsed)
        if (
            command.kind is CommandKind.INSERT_TEXT
            and self.trace
            and self.trace[-1].command.kind is CommandKind.INSERT_TEXT
        ):
            self.trace[-1] = self.trace[-1].merged_with(entry)
            return
        self.trace.append(entry)

    def _matches_target(self) -> bool:
        target = self.scenario.target
        if self.buffer.text != target.content:
            return False
        if self.buffer.cursor != target.cursor:
            return False
        if target.selection is not None:
            return self.buffer.selection.primary == target.selection
        return True

    def _finish(self, state: SessionState, event: str, **data: object) -> None:
        self.state = state
        self.finished_at = self._clock()
        self._release()
        telemetry.record_event(
            event,
            data={
                "scenario": self.scenario.id,
                "commands": len(self.trace),
                "elapsed": round(self.finished_at - self.started_at, 3),
                **data,
            },
        )

    def _release(self) -> None:
        if self._guard is not None:
            self._guard.release()

    def _result(
        self,
        status: str,
        *,
        command: Optional[Command] = None,
        completed: bool = False,
        message: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> ApplyResult:
        return ApplyResult(
            status=status,
            view=self.buffer.snapshot(),
            mode=self.interpreter.mode_name,
            command=command,
            completed=completed,
            message=message,
            error=error,
        )


def start(
    scenario: Scenario,
    *,
    config: TrainerConfig | None = None,
    clock: Clock | None = None,
    limiter: SessionLimiter | None = None,
    bus: ModeBus | None = None,
) -> Session:
    """Begin a fresh attempt; raises ``InvalidScenarioData`` before any buffer exists."""

    return Session(scenario, config=config, clock=clock, limiter=limiter, bus=bus)


def apply(session: Session, key: KeyEvent) -> ApplyResult:
    return session.apply(key)


def abandon(session: Session) -> None:
    session.abandon()


def retry(session: Session) -> Session:
    """Close ``session`` and start over from the same scenario setup."""

    session.close()
    telemetry.record_event("session.retry", data={"scenario": session.scenario.id})
    return Session(
        session.scenario,
        config=session.config,
        clock=session._clock,
        limiter=session._limiter,
        bus=session.bus,
    )


def score(session: Session) -> ScoreReport:
    return session.score()


__all__ = [
    "ApplyResult",
    "KeyEvent",
    "ScoreReport",
    "Session",
    "SessionState",
    "TraceEntry",
    "abandon",
    "apply",
    "retry",
    "score",
    "start",
]
