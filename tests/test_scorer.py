from __future__ import annotations

import pytest

from modal_trainer.game import (
    InvalidScenarioData,
    PerformanceRating,
    ScoreOverflow,
    ScoreUnderflow,
    Scorer,
    ScoringConfig,
)
from modal_trainer.game.scorer import (
    U32_MAX,
    U64_MAX,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
)


@pytest.mark.parametrize(
    ("optimal", "actual", "tolerance", "max_points", "expected"),
    [
        (1, 1, 0, 100, 100),
        (4, 3, 0, 100, 100),
        (4, 0, 0, 100, 100),
        (1, 2, 0, 100, 50),
        (3, 4, 0, 100, 75),
        (10, 11, 4, 100, 93),
        (10, 12, 4, 100, 86),
        (10, 14, 4, 100, 71),
        (10, 15, 4, 100, 66),
        (1, 1000, 0, 100, 1),
        (5, 9, 2, 0, 0),
    ],
)
def test_calculate_score_table(
    optimal: int, actual: int, tolerance: int, max_points: int, expected: int
) -> None:
    assert Scorer.calculate_score(optimal, actual, tolerance, max_points) == expected


@pytest.mark.parametrize(
    ("optimal", "tolerance", "max_points"),
    [(1, 0, 100), (4, 2, 100), (10, 4, 100), (7, 30, 1000), (3, 1, 7)],
)
def test_score_is_non_increasing_in_command_count(
    optimal: int, tolerance: int, max_points: int
) -> None:
    scores = [
        Scorer.calculate_score(optimal, actual, tolerance, max_points)
        for actual in range(0, optimal + tolerance + 40)
    ]

    assert all(later <= earlier for earlier, later in zip(scores, scores[1:]))
    assert all(1 <= score <= max_points for score in scores)


@pytest.mark.parametrize(("optimal", "tolerance"), [(1, 0), (4, 2), (10, 4)])
def test_beyond_tolerance_scores_strictly_lower(optimal: int, tolerance: int) -> None:
    best = Scorer.calculate_score(optimal, optimal, tolerance, 100)

    for actual in range(optimal + tolerance + 1, optimal + tolerance + 20):
        assert Scorer.calculate_score(optimal, actual, tolerance, 100) < best


def test_zero_optimal_count_is_invalid_scenario_data() -> None:
    with pytest.raises(InvalidScenarioData) as info:
        Scorer.calculate_score(0, 3, 0, 100)

    assert info.value.field == "scoring.optimal_count"


@pytest.mark.parametrize(
    ("optimal", "actual", "tolerance", "max_points"),
    [(1, -1, 0, 100), (1, 1, -1, 100), (1, 1, 0, -5), (1, 1, 0, U32_MAX + 1)],
)
def test_calculate_score_rejects_bad_inputs(
    optimal: int, actual: int, tolerance: int, max_points: int
) -> None:
    with pytest.raises(ValueError):
        Scorer.calculate_score(optimal, actual, tolerance, max_points)


def test_overflow_is_recovered_by_clamping() -> None:
    optimal = 2**40
    actual = optimal * 3

    score = Scorer.calculate_score(optimal, actual, 0, U32_MAX)

    assert 1 <= score < U32_MAX
    assert score == pytest.approx(U32_MAX // 3, rel=0.01)


def test_score_with_config_uses_scenario_scoring() -> None:
    config = ScoringConfig(optimal_count=2, max_points=200, tolerance=0)

    assert Scorer.score_with_config(config, 2) == 200
    assert Scorer.score_with_config(config, 4) == 100


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (100, PerformanceRating.PERFECT),
        (99, PerformanceRating.EXCELLENT),
        (90, PerformanceRating.EXCELLENT),
        (89, PerformanceRating.GOOD),
        (75, PerformanceRating.GOOD),
        (74, PerformanceRating.FAIR),
        (50, PerformanceRating.FAIR),
        (49, PerformanceRating.POOR),
        (0, PerformanceRating.POOR),
    ],
)
def test_get_rating_bands(score: int, expected: PerformanceRating) -> None:
    assert Scorer.get_rating(score, 100) is expected


def test_rating_with_zero_max_points_is_poor() -> None:
    assert Scorer.get_rating(0, 0) is PerformanceRating.POOR


def test_rating_descriptions_and_labels() -> None:
    assert PerformanceRating.PERFECT.description == "Perfect! Optimal solution."
    assert PerformanceRating.POOR.label == "Poor"
    assert {rating.description for rating in PerformanceRating} == {
        "Perfect! Optimal solution.",
        "Excellent work!",
        "Good job!",
        "Fair attempt.",
        "Keep practicing!",
    }


@pytest.mark.parametrize(
    ("base", "multiplier", "expected"),
    [(100, 1.0, 100), (100, 0.5, 50), (100, 2.0, 200), (75, 0.0, 0)],
)
def test_apply_multiplier(base: int, multiplier: float, expected: int) -> None:
    assert Scorer.apply_multiplier(base, multiplier) == expected


@pytest.mark.parametrize("multiplier", [-0.1, 2.5])
def test_apply_multiplier_rejects_out_of_range(multiplier: float) -> None:
    with pytest.raises(ValueError):
        Scorer.apply_multiplier(100, multiplier)


def test_total_and_average_scores() -> None:
    assert Scorer.calculate_total_score([100, 50, 25]) == 175
    assert Scorer.calculate_average_score([100, 50, 25]) == 58
    assert Scorer.calculate_average_score([]) == 0


def test_total_score_clamps_on_overflow() -> None:
    assert Scorer.calculate_total_score([U32_MAX, 1]) == U32_MAX


def test_checked_helpers_raise_typed_errors() -> None:
    assert checked_mul(3, 4) == 12
    assert checked_add(1, 2) == 3
    assert checked_sub(5, 2) == 3
    assert checked_div(7, 2) == 3

    with pytest.raises(ScoreOverflow):
        checked_mul(U64_MAX, 2)
    with pytest.raises(ScoreOverflow):
        checked_add(U32_MAX, 1, limit=U32_MAX)
    with pytest.raises(ScoreUnderflow):
        checked_sub(1, 2)
    with pytest.raises(ScoreOverflow):
        checked_div(1, 0)
