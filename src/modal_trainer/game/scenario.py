"""Typed scenario values handed to the session controller by the loader."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple

from modal_trainer.buffer import Position, Range, Selection
from modal_trainer.config import TrainerConfig

SCENARIO_ID_PATTERN = re.compile(r"^\w{1,64}$")
MAX_CURSOR_COORDINATE = 10_000
MAX_SOLUTION_LENGTH = 100


class InvalidScenarioData(ValueError):
    """Scenario fields that cannot produce a playable session."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(f"{field_name}: {message}")
        self.field = field_name


@dataclass(frozen=True, slots=True)
class ScenarioState:
    """Buffer content plus cursor, and optionally a full target range."""

    content: str
    cursor: Position = Position(0, 0)
    selection: Optional[Range] = None

    def as_selection(self) -> Selection:
        if self.selection is not None:
            return Selection((self.selection,))
        return Selection.point(self.cursor)


@dataclass(frozen=True, slots=True)
class Solution:
    commands: Tuple[str, ...]
    description: str = ""


@dataclass(frozen=True, slots=True)
class AlternativeSolution:
    commands: Tuple[str, ...]
    points_multiplier: float = 1.0
    description: str = ""


@dataclass(frozen=True, slots=True)
class ScoringConfig:
    optimal_count: int
    max_points: int = 100
    tolerance: int = 0


@dataclass(frozen=True, slots=True)
class Scenario:
    id: str
    name: str
    setup: ScenarioState
    target: ScenarioState
    solution: Solution
    scoring: ScoringConfig
    description: str = ""
    alternatives: Tuple[AlternativeSolution, ...] = ()
    hints: Tuple[str, ...] = ()

    def validate(self) -> None:
        """Reject data no session can be started from."""

        if self.scoring.optimal_count <= 0:
            raise InvalidScenarioData("scoring.optimal_count", "must be at least 1")
        if self.scoring.max_points < 0 or self.scoring.tolerance < 0:
            raise InvalidScenarioData("scoring", "points and tolerance cannot be negative")
        if not self.target.content and self.setup.content:
            raise InvalidScenarioData(
                "target.file_content", "empty target for a non-empty setup"
            )

    @classmethod
    def from_mapping(
        cls, data: Mapping[str, Any], *, config: TrainerConfig | None = None
    ) -> "Scenario":
        """Build a scenario from the loader's ``setup``/``target``/``solution``/``scoring`` document."""

        limits = config or TrainerConfig()
        scenario_id = str(_require(data, "id"))
        if not SCENARIO_ID_PATTERN.match(scenario_id):
            raise InvalidScenarioData(
                "id", "must be alphanumeric with underscores, max 64 chars"
            )

        setup = _state(_require(data, "setup"), "setup", limits)
        target = _state(_require(data, "target"), "target", limits)

        solution_data = _require(data, "solution")
        solution = Solution(
            commands=_commands(solution_data.get("commands", ()), "solution.commands"),
            description=str(solution_data.get("description", "")),
        )

        alternatives = tuple(
            AlternativeSolution(
                commands=_commands(item.get("commands", ()), "alternatives.commands"),
                points_multiplier=float(item.get("points_multiplier", 1.0)),
                description=str(item.get("description", "")),
            )
            for item in data.get("alternatives", ())
        )
        if len(alternatives) > limits.max_alternatives:
            raise InvalidScenarioData(
                "alternatives", f"at most {limits.max_alternatives} allowed"
            )

        hints = tuple(str(hint) for hint in data.get("hints", ()))
        if len(hints) > limits.max_hints:
            raise InvalidScenarioData("hints", f"at most {limits.max_hints} allowed")

        scoring_data = _require(data, "scoring")
        scoring = ScoringConfig(
            optimal_count=int(_require(scoring_data, "optimal_count", "scoring")),
            max_points=int(scoring_data.get("max_points", 100)),
            tolerance=int(scoring_data.get("tolerance", 0)),
        )

        scenario = cls(
            id=scenario_id,
            name=str(data.get("name", scenario_id)),
            description=str(data.get("description", "")),
            setup=setup,
            target=target,
            solution=solution,
            alternatives=alternatives,
            hints=hints,
            scoring=scoring,
        )
        scenario.validate()
        return scenario


def _require(data: Mapping[str, Any], key: str, prefix: str = "") -> Any:
    if key not in data:
        name = f"{prefix}.{key}" if prefix else key
        raise InvalidScenarioData(name, "missing")
    return data[key]


def _position(value: Any, field_name: str) -> Position:
    try:
        line, column = (int(part) for part in value)
    except (TypeError, ValueError) as exc:
        raise InvalidScenarioData(field_name, "expected a (line, column) pair") from exc
    if not (0 <= line <= MAX_CURSOR_COORDINATE and 0 <= column <= MAX_CURSOR_COORDINATE):
        raise InvalidScenarioData(field_name, "coordinates out of range")
    return Position(line, column)


def _state(data: Mapping[str, Any], prefix: str, limits: TrainerConfig) -> ScenarioState:
    content = str(_require(data, "file_content", prefix))
    if len(content) > limits.max_content_length:
        raise InvalidScenarioData(
            f"{prefix}.file_content",
            f"{len(content)} characters exceeds {limits.max_content_length}",
        )
    cursor = _position(_require(data, "cursor_position", prefix), f"{prefix}.cursor_position")
    selection: Optional[Range] = None
    raw_selection = data.get("selection")
    if raw_selection is not None:
        values = tuple(raw_selection)
        if len(values) != 4:
            raise InvalidScenarioData(f"{prefix}.selection", "expected four coordinates")
        anchor = _position(values[:2], f"{prefix}.selection")
        head = _position(values[2:], f"{prefix}.selection")
        selection = Range(anchor=anchor, head=head)
    return ScenarioState(content=content, cursor=cursor, selection=selection)


def _commands(values: Sequence[Any], field_name: str) -> Tuple[str, ...]:
    commands = tuple(str(value) for value in values)
    if len(commands) > MAX_SOLUTION_LENGTH:
        raise InvalidScenarioData(field_name, f"at most {MAX_SOLUTION_LENGTH} commands")
    return commands


__all__ = [
    "AlternativeSolution",
    "InvalidScenarioData",
    "Scenario",
    "ScenarioState",
    "ScoringConfig",
    "Solution",
]
