from __future__ import annotations

from typing import Any, Dict, List

import pytest

from modal_trainer.adapters.terminal.controller import (
    ShellUIHooks,
    TrainerShellAdapter,
    normalize_key,
)
from modal_trainer.buffer import BufferMirror, Position
from modal_trainer.game import (
    Scenario,
    ScenarioState,
    ScoringConfig,
    Session,
    SessionState,
    Solution,
    start,
)
from modal_trainer.modes import KeyInput


def make_session() -> Session:
    scenario = Scenario(
        id="append_word",
        name="Append a word",
        setup=ScenarioState(content="hello"),
        target=ScenarioState(content="hello world", cursor=Position(0, 11)),
        solution=Solution(commands=("A", " world", "Esc")),
        scoring=ScoringConfig(optimal_count=3),
    )
    return start(scenario)


def test_adapter_updates_buffer_and_status() -> None:
    updates: List[BufferMirror] = []
    statuses: List[str] = []
    hooks = ShellUIHooks(
        update_buffer=updates.append,
        update_status=statuses.append,
    )
    adapter = TrainerShellAdapter(make_session(), hooks)

    adapter.handle_key("A")
    adapter.handle_key("escape")

    assert updates[0].text == "hello"
    assert updates[-1].attributes["mode"] == "normal"
    assert "insert_line_end" in statuses
    assert statuses[-1] == "exit_to_normal"


def test_adapter_reports_completion_summary() -> None:
    statuses: List[str] = []
    mirrors: List[BufferMirror] = []
    hooks = ShellUIHooks(update_buffer=mirrors.append, update_status=statuses.append)
    adapter = TrainerShellAdapter(make_session(), hooks)

    adapter.handle_key("A")
    for char in " world":
        result = adapter.handle_key("space" if char == " " else char)

    assert result.completed
    assert statuses[-1] == "Perfect: 100/100 - 2 commands (optimal: 3)"
    assert mirrors[-1].attributes["state"] == SessionState.COMPLETED.value
    assert mirrors[-1].attributes["progress"] == "100"


def test_adapter_key_after_completion_reports_closed_session() -> None:
    statuses: List[str] = []
    hooks = ShellUIHooks(update_buffer=lambda mirror: None, update_status=statuses.append)
    adapter = TrainerShellAdapter(make_session(), hooks)
    adapter.handle_key("A")
    for char in " world":
        adapter.handle_key("space" if char == " " else char)

    result = adapter.handle_key("escape")

    assert result.status == "completed"
    assert not result.ok
    assert statuses[-1] == "session closed"
    assert adapter.session.score().command_count == 2


def test_adapter_relays_session_events() -> None:
    events: List[Dict[str, Any]] = []
    hooks = ShellUIHooks(
        update_buffer=lambda mirror: None,
        handle_event=lambda name, payload: events.append(
            {"name": name, "payload": payload}
        ),
    )
    adapter = TrainerShellAdapter(make_session(), hooks)

    adapter.handle_key("v")
    adapter.handle_key("l")
    adapter.handle_key("y")

    names = [event["name"] for event in events]
    assert names == ["select.range", "mode.switch", "register.write"]
    assert events[1]["payload"] == {"mode": "select", "previous": "normal"}
    assert events[-1]["payload"]["text"] == "h"


def test_adapter_emits_log_lines() -> None:
    logs: List[str] = []
    hooks = ShellUIHooks(update_buffer=lambda mirror: None, log=logs.append)
    adapter = TrainerShellAdapter(make_session(), hooks)

    adapter.handle_key("i")

    assert any(line.startswith("key ->") for line in logs)
    assert any("status='applied'" in line for line in logs)


def test_adapter_retry_keeps_relaying() -> None:
    statuses: List[str] = []
    mirrors: List[BufferMirror] = []
    hooks = ShellUIHooks(update_buffer=mirrors.append, update_status=statuses.append)
    adapter = TrainerShellAdapter(make_session(), hooks)
    adapter.handle_key("x")

    fresh = adapter.retry()

    assert adapter.session is fresh
    assert statuses[-1] == "retry"
    assert mirrors[-1].text == "hello"
    assert adapter.pull_buffer().attributes["state"] == "active"


@pytest.mark.parametrize(
    ("key", "kwargs", "expected"),
    [
        ("escape", {}, KeyInput(key="ESC")),
        ("Return", {}, KeyInput(key="ENTER")),
        ("backspace", {}, KeyInput(key="BACKSPACE")),
        ("left", {}, KeyInput(key="LEFT")),
        ("ctrl+r", {}, KeyInput(key="r", modifiers=("ctrl",))),
        ("r", {"modifiers": ("ctrl",)}, KeyInput(key="r", modifiers=("ctrl",))),
        ("space", {}, KeyInput(key=" ", text=" ")),
        ("G", {"modifiers": ("shift",)}, KeyInput(key="G", text="G")),
        ("x", {}, KeyInput(key="x", text="x")),
        ("+", {}, KeyInput(key="+", text="+")),
    ],
)
def test_normalize_key(key: str, kwargs: Dict[str, Any], expected: KeyInput) -> None:
    assert normalize_key(key, **kwargs) == expected
