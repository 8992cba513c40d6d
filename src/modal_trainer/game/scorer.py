"""Scoring: turns a command count into points and a qualitative rating.

``calculate_score`` is a pure function of the command count ``n``, the
optimal count ``k``, the maximum ``M`` and the tolerance ``t``:

* ``n <= k`` earns ``M``.
* ``k < n <= k + t`` decays linearly from ``M`` towards the floor
  ``max(1, M * k // (k + t))`` reached at ``n == k + t``.
* ``n > k + t`` earns ``M * k // n`` clamped to ``[1, M]``.

Intermediates are checked against unsigned 64-bit limits and results
against 32-bit limits. An overflow is recovered by scaling both counts
down and clamping, never propagated.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from modal_trainer.runtime import telemetry

from .scenario import InvalidScenarioData, ScoringConfig

U64_MAX = 2**64 - 1
U32_MAX = 2**32 - 1
MAX_MULTIPLIER = 2.0


class ScoreOverflow(ArithmeticError):
    """An intermediate or result left the representable score range."""


class ScoreUnderflow(ArithmeticError):
    """A subtraction would drop below zero."""


class PerformanceRating(str, Enum):
    PERFECT = "perfect"
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


_DESCRIPTIONS = {
    PerformanceRating.PERFECT: "Perfect! Optimal solution.",
    PerformanceRating.EXCELLENT: "Excellent work!",
    PerformanceRating.GOOD: "Good job!",
    PerformanceRating.FAIR: "Fair attempt.",
    PerformanceRating.POOR: "Keep practicing!",
}

# Lower bounds in percent of max points, checked top down.
_RATING_BANDS = (
    (100, PerformanceRating.PERFECT),
    (90, PerformanceRating.EXCELLENT),
    (75, PerformanceRating.GOOD),
    (50, PerformanceRating.FAIR),
)


def _checked(value: int, limit: int = U64_MAX) -> int:
    if value > limit:
        raise ScoreOverflow(f"{value} exceeds {limit}")
    return value


def checked_mul(left: int, right: int) -> int:
    return _checked(left * right)


def checked_add(left: int, right: int, *, limit: int = U64_MAX) -> int:
    return _checked(left + right, limit)


def checked_sub(left: int, right: int) -> int:
    if right > left:
        raise ScoreUnderflow(f"{left} - {right} is negative")
    return left - right


def checked_div(left: int, right: int) -> int:
    if right == 0:
        raise ScoreOverflow("division by zero")
    return left // right


class Scorer:
    """Namespace for the scoring functions."""

    @staticmethod
    def calculate_score(
        optimal_count: int, actual_count: int, tolerance: int, max_points: int
    ) -> int:
        if optimal_count <= 0:
            raise InvalidScenarioData("scoring.optimal_count", "must be at least 1")
        if actual_count < 0 or tolerance < 0 or max_points < 0:
            raise ValueError("counts, tolerance and max points cannot be negative")
        if max_points > U32_MAX:
            raise ValueError(f"max points cannot exceed {U32_MAX}")
        if max_points == 0:
            return 0
        if actual_count <= optimal_count:
            return max_points
        try:
            return _banded(optimal_count, actual_count, tolerance, max_points)
        except (ScoreOverflow, ScoreUnderflow) as exc:
            recovered = _recover(optimal_count, actual_count, max_points)
            telemetry.record_event(
                "score.recovered",
                level="warning",
                data={
                    "reason": str(exc),
                    "optimal": optimal_count,
                    "actual": actual_count,
                    "score": recovered,
                },
            )
            return recovered

    @staticmethod
    def score_with_config(config: ScoringConfig, actual_count: int) -> int:
        return Scorer.calculate_score(
            config.optimal_count, actual_count, config.tolerance, config.max_points
        )

    @staticmethod
    def apply_multiplier(base_score: int, multiplier: float) -> int:
        """Scale a score for an alternative solution; ``multiplier`` must be in [0, 2]."""

        if not 0.0 <= multiplier <= MAX_MULTIPLIER:
            raise ValueError(f"multiplier {multiplier} outside [0.0, {MAX_MULTIPLIER}]")
        return _checked(int(base_score * multiplier), U32_MAX)

    @staticmethod
    def get_rating(score: int, max_points: int) -> PerformanceRating:
        if max_points <= 0:
            return PerformanceRating.POOR
        percentage = score * 100 // max_points
        for threshold, rating in _RATING_BANDS:
            if percentage >= threshold:
                return rating
        return PerformanceRating.POOR

    @staticmethod
    def calculate_total_score(scores: Iterable[int]) -> int:
        total = 0
        for score in scores:
            try:
                total = checked_add(total, score, limit=U32_MAX)
            except ScoreOverflow:
                telemetry.record_event(
                    "score.recovered", level="warning", data={"reason": "total clamped"}
                )
                return U32_MAX
        return total

    @staticmethod
    def calculate_average_score(scores: Iterable[int]) -> int:
        values = list(scores)
        if not values:
            return 0
        return Scorer.calculate_total_score(values) // len(values)


def _banded(optimal: int, actual: int, tolerance: int, max_points: int) -> int:
    top = checked_add(optimal, tolerance)
    if actual <= top:
        floor = max(1, checked_div(checked_mul(max_points, optimal), top))
        spread = checked_sub(max_points, floor)
        penalty = checked_div(checked_mul(spread, actual - optimal), tolerance)
        return _checked(checked_sub(max_points, penalty), U32_MAX)
    proportional = checked_div(checked_mul(max_points, optimal), actual)
    return _checked(max(1, min(max_points, proportional)), U32_MAX)


def _recover(optimal: int, actual: int, max_points: int) -> int:
    # Halve both counts until the product fits; the ratio survives.
    while optimal > 1 and max_points * optimal > U64_MAX:
        optimal //= 2
        actual //= 2
    scaled = max_points * optimal // max(actual, 1)
    # Only reached when actual > optimal, so the top score stays out of reach.
    return max(1, min(max_points - 1, scaled))


__all__ = [
    "PerformanceRating",
    "ScoreOverflow",
    "ScoreUnderflow",
    "Scorer",
    "checked_add",
    "checked_div",
    "checked_mul",
    "checked_sub",
]
