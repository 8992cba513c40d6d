from __future__ import annotations

from typing import Any, Dict, Optional

import pytest

from modal_trainer.buffer import OutOfBounds, Position, Range
from modal_trainer.commands import CommandKind
from modal_trainer.config import TrainerConfig
from modal_trainer.game import (
    InvalidScenarioData,
    PerformanceRating,
    Scenario,
    ScenarioState,
    ScoringConfig,
    Session,
    SessionLimitExceeded,
    SessionLimiter,
    SessionState,
    Solution,
    abandon,
    apply,
    retry,
    score,
    start,
)
from modal_trainer.modes import KeyInput, UnrecognizedInput


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def make_scenario(
    *,
    setup: str = "line 1\nline 2\nline 3",
    setup_cursor: tuple[int, int] = (1, 0),
    target: str = "line 1\nline 3",
    target_cursor: tuple[int, int] = (1, 0),
    target_selection: Optional[Range] = None,
    optimal: int = 1,
    max_points: int = 100,
    tolerance: int = 0,
    hints: tuple[str, ...] = (),
) -> Scenario:
    return Scenario(
        id="delete_line",
        name="Delete a line",
        setup=ScenarioState(content=setup, cursor=Position(*setup_cursor)),
        target=ScenarioState(
            content=target, cursor=Position(*target_cursor), selection=target_selection
        ),
        solution=Solution(commands=("dd",), description="Delete the line"),
        scoring=ScoringConfig(
            optimal_count=optimal, max_points=max_points, tolerance=tolerance
        ),
        hints=hints,
    )


def make_rust_scenario() -> Scenario:
    return Scenario(
        id="change_word",
        name="Change a word",
        setup=ScenarioState(content="Hello, World!"),
        target=ScenarioState(content="Hello, Rust!", cursor=Position(0, 11)),
        solution=Solution(commands=("w", "cw", "Rust", "Esc")),
        scoring=ScoringConfig(optimal_count=4),
    )


def feed(session: Session, *keys: str):
    results = [session.apply(key) for key in keys]
    return results[-1]


def make_document(**overrides: Any) -> Dict[str, Any]:
    document: Dict[str, Any] = {
        "id": "delete_line",
        "name": "Delete a line",
        "setup": {"file_content": "a\nb", "cursor_position": [1, 0]},
        "target": {"file_content": "a", "cursor_position": [0, 0]},
        "solution": {"commands": ["dd"], "description": "Delete it"},
        "scoring": {"optimal_count": 1},
        "hints": ["Two keys are enough"],
    }
    document.update(overrides)
    return document


def test_single_delete_line_reaches_target_with_full_score() -> None:
    session = start(make_scenario())

    result = feed(session, "d", "d")

    assert result.status == "applied"
    assert result.completed
    assert result.view.text == "line 1\nline 3"
    assert result.view.cursor == Position(1, 0)
    assert session.state is SessionState.COMPLETED

    report = score(session)
    assert report.numeric_score == 100
    assert report.qualitative_band is PerformanceRating.PERFECT
    assert report.command_count == 1
    assert report.is_optimal
    assert report.summary() == "Perfect: 100/100 - 1 commands (optimal: 1)"


def test_extra_command_scores_strictly_less() -> None:
    session = start(make_scenario())

    feed(session, "l", "d", "d")

    report = session.score()
    assert report.success
    assert report.command_count == 2
    assert report.numeric_score == 50
    assert report.numeric_score < 100
    assert not report.is_optimal


def test_move_down_then_delete_line_scores_less() -> None:
    session = start(make_scenario(setup_cursor=(0, 0)))

    feed(session, "j", "d", "d")

    assert session.state is SessionState.COMPLETED
    assert session.score().numeric_score == 50


def test_word_motion_lands_on_column_seven() -> None:
    session = start(make_rust_scenario())

    result = session.apply("w")

    assert result.view.cursor == Position(0, 7)
    assert not result.completed


def test_change_word_scenario_counts_typed_text_once() -> None:
    session = start(make_rust_scenario())

    result = feed(session, "w", "c", "w", "R", "u", "s", "t")

    assert result.completed
    assert session.view().text == "Hello, Rust!"
    assert [entry.command.kind for entry in session.trace] == [
        CommandKind.WORD_FORWARD,
        CommandKind.CHANGE_WORD,
        CommandKind.INSERT_TEXT,
    ]
    typed = session.trace[-1]
    assert typed.command.argument == "Rust"
    assert typed.keys == ("R", "u", "s", "t")
    assert session.trace[1].keys == ("c", "w")
    assert session.score().numeric_score == 100


def test_full_reference_solution_keys_after_completion_are_reported() -> None:
    session = start(make_rust_scenario())

    results = [
        session.apply(key) for key in ("w", "c", "w", "R", "u", "s", "t", "ESC")
    ]

    assert results[-2].completed
    closed = results[-1]
    assert closed.status == "completed"
    assert closed.message == "session closed"
    assert not closed.ok
    assert not closed.completed
    assert closed.mode == "insert"
    assert session.state is SessionState.COMPLETED
    assert session.command_count == 3
    assert session.score().numeric_score == 100


def test_pending_and_unrecognized_keys_are_not_recorded() -> None:
    session = start(make_scenario())

    pending = session.apply("d")
    cancelled = session.apply("ESC")
    unknown = session.apply(KeyInput(key="z", text="z"))

    assert pending.status == "pending"
    assert cancelled.status == "cancelled"
    assert unknown.status == "unrecognized"
    assert isinstance(unknown.error, UnrecognizedInput)
    assert not unknown.ok
    assert session.command_count == 0
    assert session.is_active


def test_out_of_bounds_is_reported_and_not_recorded() -> None:
    session = start(make_scenario(setup_cursor=(0, 0)))

    result = session.apply("k")

    assert result.status == "out_of_bounds"
    assert isinstance(result.error, OutOfBounds)
    assert not result.ok
    assert result.view.cursor == Position(0, 0)
    assert session.command_count == 0


def test_noop_commands_are_recorded() -> None:
    session = start(make_scenario())

    result = session.apply("u")

    assert result.status == "noop"
    assert result.ok
    assert session.command_count == 1


def test_target_selection_must_match_primary_range() -> None:
    scenario = make_scenario(
        setup="hello world",
        setup_cursor=(0, 0),
        target="hello world",
        target_cursor=(0, 4),
        target_selection=Range(anchor=Position(0, 0), head=Position(0, 4)),
    )

    plain = start(scenario)
    assert not plain.apply("e").completed

    selecting = start(scenario)
    result = feed(selecting, "v", "e")
    assert result.completed
    assert selecting.mode_name == "select"


def test_session_times_out_and_freezes_elapsed() -> None:
    clock = FakeClock()
    session = start(
        make_scenario(), config=TrainerConfig(session_timeout=10), clock=clock
    )
    clock.now = 11.0

    result = session.apply("d")

    assert result.status == "timed_out"
    assert session.state is SessionState.TIMED_OUT
    clock.now = 50.0
    assert session.elapsed == 11.0

    report = session.score()
    assert not report.success
    assert report.numeric_score == 0
    assert report.qualitative_band is PerformanceRating.POOR
    assert report.summary() == "Scenario not completed. Try again!"
    late = session.apply("d")
    assert late.status == "timed_out"
    assert late.message == "session closed"
    assert not late.ok
    assert session.view().text == "line 1\nline 2\nline 3"


def test_elapsed_time_is_reported() -> None:
    clock = FakeClock()
    session = start(make_scenario(), clock=clock)
    clock.now = 2.5

    feed(session, "d", "d")
    clock.now = 9.0

    assert session.score().elapsed_time == 2.5
    assert session.trace[0].elapsed == 2.5


def test_full_trace_abandons_session() -> None:
    session = start(make_scenario(), config=TrainerConfig(max_trace_length=2))

    feed(session, "l", "h")
    result = session.apply("l")

    assert result.status == "trace_full"
    assert session.state is SessionState.ABANDONED
    assert session.command_count == 2


def test_abandon_is_terminal_and_idempotent() -> None:
    session = start(make_scenario())

    abandon(session)
    abandon(session)

    assert session.state is SessionState.ABANDONED
    assert not session.is_active
    result = apply(session, "d")
    assert result.status == "abandoned"
    assert result.message == "session closed"
    assert session.command_count == 0


def test_hints_are_returned_in_order() -> None:
    session = start(make_scenario(hints=("Use a delete command", "Try dd")))

    assert session.next_hint() == "Use a delete command"
    assert session.next_hint() == "Try dd"
    assert session.next_hint() is None


def test_completion_progress_and_content_match() -> None:
    session = start(make_scenario())

    assert session.completion_progress() == 50
    assert not session.content_matches()

    feed(session, "d", "d")

    assert session.completion_progress() == 100
    assert session.content_matches()


def test_score_hint_names_reference_solution_when_far_off() -> None:
    session = start(make_scenario())

    feed(session, "l", "h", "d", "d")

    report = session.score()
    assert report.numeric_score == 33
    assert report.hint == "Try using: dd. Delete the line"


def test_retry_starts_fresh_attempt() -> None:
    session = start(make_scenario())
    feed(session, "l")

    fresh = retry(session)

    assert session.state is SessionState.ABANDONED
    assert fresh is not session
    assert fresh.is_active
    assert fresh.command_count == 0
    assert fresh.view().cursor == Position(1, 0)
    assert fresh.bus is session.bus


def test_limiter_caps_concurrent_sessions() -> None:
    limiter = SessionLimiter(1)
    session = start(make_scenario(), limiter=limiter)

    assert limiter.active == 1
    with pytest.raises(SessionLimitExceeded):
        start(make_scenario(), limiter=limiter)

    fresh = retry(session)
    assert limiter.active == 1

    feed(fresh, "d", "d")
    assert limiter.active == 0


def test_limiter_from_config_uses_active_session_cap() -> None:
    limiter = SessionLimiter.from_config(TrainerConfig(max_active_sessions=2))
    config = TrainerConfig(max_active_sessions=2)

    first = start(make_scenario(), config=config, limiter=limiter)
    second = start(make_scenario(), config=config, limiter=limiter)

    assert limiter.limit == 2
    with pytest.raises(SessionLimitExceeded):
        start(make_scenario(), config=config, limiter=limiter)
    first.close()
    second.close()
    assert limiter.active == 0


def test_session_context_manager_releases_slot() -> None:
    limiter = SessionLimiter(2)

    with start(make_scenario(), limiter=limiter) as session:
        assert limiter.active == 1

    assert session.state is SessionState.ABANDONED
    assert limiter.active == 0


def test_zero_optimal_count_rejected_before_start() -> None:
    limiter = SessionLimiter(1)

    with pytest.raises(InvalidScenarioData) as info:
        start(make_scenario(optimal=0), limiter=limiter)

    assert info.value.field == "scoring.optimal_count"
    assert limiter.active == 0


def test_empty_target_for_non_empty_setup_is_rejected() -> None:
    with pytest.raises(InvalidScenarioData) as info:
        start(make_scenario(target=""))

    assert info.value.field == "target.file_content"


def test_setup_cursor_outside_buffer_is_invalid() -> None:
    limiter = SessionLimiter(1)

    with pytest.raises(InvalidScenarioData) as info:
        Session(make_scenario(setup_cursor=(7, 0)), limiter=limiter)

    assert info.value.field == "setup.cursor_position"
    assert limiter.active == 0


def test_from_mapping_builds_playable_scenario() -> None:
    scenario = Scenario.from_mapping(make_document())

    assert scenario.setup == ScenarioState(content="a\nb", cursor=Position(1, 0))
    assert scenario.solution.commands == ("dd",)
    assert scenario.scoring == ScoringConfig(optimal_count=1)
    assert scenario.hints == ("Two keys are enough",)

    session = start(scenario)
    assert feed(session, "d", "d").completed


def test_from_mapping_reads_target_selection() -> None:
    document = make_document(
        target={"file_content": "a", "cursor_position": [0, 1], "selection": [0, 0, 0, 1]}
    )

    scenario = Scenario.from_mapping(document)

    assert scenario.target.selection == Range(anchor=Position(0, 0), head=Position(0, 1))


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"id": "not valid!"}, "id"),
        ({"id": "x" * 65}, "id"),
        ({"scoring": {}}, "scoring.optimal_count"),
        ({"scoring": {"optimal_count": 0}}, "scoring.optimal_count"),
        (
            {"setup": {"file_content": "a", "cursor_position": [10_001, 0]}},
            "setup.cursor_position",
        ),
        ({"setup": {"file_content": "a", "cursor_position": "x"}}, "setup.cursor_position"),
        ({"target": {"cursor_position": [0, 0]}}, "target.file_content"),
        ({"target": {"file_content": "", "cursor_position": [0, 0]}}, "target.file_content"),
        (
            {"target": {"file_content": "a", "cursor_position": [0, 0], "selection": [0, 0, 1]}},
            "target.selection",
        ),
        ({"solution": {"commands": ["x"] * 101}}, "solution.commands"),
    ],
)
def test_from_mapping_rejects_invalid_documents(
    overrides: Dict[str, Any], field: str
) -> None:
    with pytest.raises(InvalidScenarioData) as info:
        Scenario.from_mapping(make_document(**overrides))

    assert info.value.field == field


def test_from_mapping_honours_config_limits() -> None:
    config = TrainerConfig(max_hints=1, max_content_length=5)

    with pytest.raises(InvalidScenarioData) as hints:
        Scenario.from_mapping(make_document(hints=["one", "two"]), config=config)
    with pytest.raises(InvalidScenarioData) as content:
        Scenario.from_mapping(
            make_document(setup={"file_content": "abcdefg", "cursor_position": [0, 0]}),
            config=config,
        )

    assert hints.value.field == "hints"
    assert content.value.field == "setup.file_content"
