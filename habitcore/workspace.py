"""Workspace root, storage keys, path helpers for HabitPulse."""

from __future__ import annotations

import os
from pathlib import Path


def workspace_root() -> Path:
    """Get the workspace root directory (contains data/ and config.yaml)."""
    return Path(
        os.environ.get("HABITS_ROOT", str(Path.home() / "habitpulse"))
    ).expanduser().resolve()


# ── Storage keys ──────────────────────────────────────────────

SESSION_KEY = "session"


def user_key(email: str) -> str:
    return f"users/{email.strip().lower()}"


def habits_key(user_id: str) -> str:
    return f"habits/{user_id}"


def events_key(user_id: str) -> str:
    return f"events/{user_id}"


# ── Path helpers ──────────────────────────────────────────────

def data_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data"


def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "config.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"
