"""Scenarios, scoring, and the session controller."""

from .scenario import (
    AlternativeSolution,
    InvalidScenarioData,
    Scenario,
    ScenarioState,
    ScoringConfig,
    Solution,
)
from .scorer import PerformanceRating, ScoreOverflow, ScoreUnderflow, Scorer
from .guard import SessionGuard, SessionLimitExceeded, SessionLimiter
from .session import (
    ApplyResult,
    ScoreReport,
    Session,
    SessionState,
    TraceEntry,
    abandon,
    apply,
    retry,
    score,
    start,
)

__all__ = [
    "AlternativeSolution",
    "InvalidScenarioData",
    "Scenario",
    "ScenarioState",
    "ScoringConfig",
    "Solution",
    "PerformanceRating",
    "ScoreOverflow",
    "ScoreUnderflow",
    "Scorer",
    "SessionGuard",
    "SessionLimitExceeded",
    "SessionLimiter",
    "ApplyResult",
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
