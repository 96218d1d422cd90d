"""Lifecycle hooks for HabitPulse.

Shell commands listed in <root>/hooks.yaml run after habit lifecycle events.
Each entry is either a command string or {command, timeout}:

    on_habit_completed:
      - notify-send "Habit done"
      - command: ./scripts/sync.sh
        timeout: 10

Hook points:
- on_habit_created, on_habit_updated, on_habit_deleted
- on_habit_completed
- on_best_streak (a completion raised the habit's best streak)

The event context is sent to each command as one JSON object on stdin.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Callable

from habitcore.fileio import read_yaml
from habitcore.workspace import hooks_config_path, workspace_root

log = logging.getLogger(__name__)


VALID_HOOK_POINTS = frozenset({
    "on_habit_created",
    "on_habit_updated",
    "on_habit_deleted",
    "on_habit_completed",
    "on_best_streak",
})

DEFAULT_TIMEOUT = 30
OUTPUT_CAP = 4096


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Hook point -> entries mapping; {} when hooks.yaml is absent."""
    return read_yaml(hooks_config_path(root or workspace_root()))


def _entry(hook_point: str, raw: Any) -> tuple[str, float] | None:
    if isinstance(raw, str):
        command, timeout = raw, DEFAULT_TIMEOUT
    elif isinstance(raw, dict):
        command, timeout = raw.get("command", ""), raw.get("timeout", DEFAULT_TIMEOUT)
    else:
        log.warning("hooks.yaml: skipping %s entry %r (expected a command or mapping)", hook_point, raw)
        return None
    if not isinstance(command, str):
        log.warning("hooks.yaml: skipping %s entry with non-string command %r", hook_point, command)
        return None
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        log.warning("hooks.yaml: skipping %r for %s (timeout must be a positive number, got %r)",
                    command, hook_point, timeout)
        return None
    return (command, timeout) if command.strip() else None


def _run_one(hook_point: str, command: str, timeout: float, payload: str, root: Path) -> dict[str, Any]:
    outcome: dict[str, Any] = {"command": command, "hook_point": hook_point}
    try:
        proc = subprocess.run(
            command,
            shell=True,
            input=payload,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(root),
        )
    except subprocess.TimeoutExpired:
        log.warning("Hook %r for %s timed out after %ss", command, hook_point, timeout)
        outcome.update(exit_code=-1, error=f"Hook timed out after {timeout}s")
        return outcome
    except (OSError, TypeError, ValueError) as e:
        log.warning("Hook %r for %s failed to start: %s", command, hook_point, e)
        outcome.update(exit_code=-1, error=str(e))
        return outcome

    if proc.returncode != 0:
        log.warning("Hook %r for %s exited with %d", command, hook_point, proc.returncode)
    outcome.update(
        exit_code=proc.returncode,
        stdout=proc.stdout[:OUTPUT_CAP],
        stderr=proc.stderr[:OUTPUT_CAP],
    )
    return outcome


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run every command registered for *hook_point*, in order.

    Returns one result per command: exit code and capped stdout/stderr, or
    exit code -1 with an error message when it timed out or could not start.
    Unknown hook points and malformed entries run nothing.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []
    root = root or workspace_root()

    entries = load_hooks_config(root).get(hook_point) or []
    if not isinstance(entries, list):
        log.warning("hooks.yaml: %s should be a list, got %s", hook_point, type(entries).__name__)
        return []

    payload = json.dumps({"hook_point": hook_point, **context}, ensure_ascii=False)
    results = []
    for raw in entries:
        entry = _entry(hook_point, raw)
        if entry is None:
            continue
        results.append(_run_one(hook_point, *entry, payload, root))
    return results


def hook_dispatcher(root: Path) -> Callable[[str, dict[str, Any]], list[dict[str, Any]]]:
    """Callback for HabitRepository(on_event=...) that runs hooks under *root*."""

    def dispatch(hook_point: str, context: dict[str, Any]) -> list[dict[str, Any]]:
        return run_hooks(hook_point, context, root)

    return dispatch
