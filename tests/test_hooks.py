"""Tests for habitcore/hooks.py — hook system."""

import json

import yaml

from habitcore.clock import FixedClock
from habitcore.hooks import hook_dispatcher, load_hooks_config, run_hooks
from habitcore.repository import HabitRepository
from habitcore.storage import JsonFileStore

from conftest import NOW, UTC


def _write_hooks(workspace, config):
    (workspace / "hooks.yaml").write_text(yaml.dump(config), encoding="utf-8")


def test_run_hooks_no_config(workspace):
    """No hooks.yaml -> no hooks run."""
    assert load_hooks_config(workspace) == {}
    results = run_hooks("on_habit_completed", {"habit": {"id": "h1"}}, workspace)
    assert results == []


def test_run_hooks_with_echo(workspace):
    """Hook that echoes context via stdin."""
    _write_hooks(workspace, {"on_habit_completed": ["cat"]})

    results = run_hooks("on_habit_completed", {"habit": {"id": "h1"}}, workspace)
    assert len(results) == 1
    assert results[0]["exit_code"] == 0
    output = json.loads(results[0]["stdout"])
    assert output["hook_point"] == "on_habit_completed"
    assert output["habit"]["id"] == "h1"


def test_run_hooks_invalid_hook_point(workspace):
    _write_hooks(workspace, {"post_finalize": ["cat"]})
    assert run_hooks("post_finalize", {}, workspace) == []


def test_run_hooks_nonzero_exit(workspace):
    _write_hooks(workspace, {"on_habit_created": ["exit 3"]})
    results = run_hooks("on_habit_created", {}, workspace)
    assert results[0]["exit_code"] == 3


def test_run_hooks_timeout(workspace):
    """Hook timeout protection."""
    _write_hooks(workspace, {"on_best_streak": [{"command": "sleep 10", "timeout": 1}]})

    results = run_hooks("on_best_streak", {}, workspace)
    assert len(results) == 1
    assert results[0]["exit_code"] == -1
    assert "timed out" in results[0].get("error", "").lower()


def test_run_hooks_skips_malformed_entries(workspace):
    _write_hooks(workspace, {"on_habit_deleted": [
        42,
        {"timeout": 5},
        "",
        {"command": True, "timeout": 5},
        {"command": 123},
        {"command": "true", "timeout": "ten"},
        {"command": "true", "timeout": 0},
        {"command": "true", "timeout": True},
        "echo second",
    ]})
    results = run_hooks("on_habit_deleted", {}, workspace)
    assert [r["command"] for r in results] == ["echo second"]
    assert results[0]["exit_code"] == 0
    assert results[0]["stdout"].strip() == "second"


def test_run_hooks_records_unrunnable_command(workspace):
    # An embedded NUL makes subprocess refuse the command outright.
    _write_hooks(workspace, {"on_habit_created": ["echo a\x00b", "echo after"]})
    results = run_hooks("on_habit_created", {}, workspace)
    assert len(results) == 2
    assert results[0]["exit_code"] == -1
    assert results[0]["error"]
    assert results[1]["stdout"].strip() == "after"


def test_repository_fires_hooks(workspace):
    out = workspace / "completed.jsonl"
    _write_hooks(workspace, {"on_habit_completed": [f"cat >> {out}"]})

    repo = HabitRepository(
        JsonFileStore(workspace), "user-1", FixedClock(NOW), tz=UTC,
        on_event=hook_dispatcher(workspace),
    )
    habit = repo.create({"name": "Stretch"})
    repo.complete(habit.id)

    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["habit"]["id"] == habit.id
    assert payload["habit"]["current_streak"] == 1
    assert payload["event"]["habit_id"] == habit.id
