"""Shared test fixtures for HabitPulse tests."""

from __future__ import annotations

import os
from datetime import datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import yaml

from habitcore.clock import FixedClock
from habitcore.models import CompletionEvent
from habitcore.repository import HabitRepository
from habitcore.storage import MemoryStore

UTC = ZoneInfo("UTC")
# A Wednesday, mid-morning.
NOW = datetime(2026, 2, 11, 9, 30, tzinfo=UTC)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a config file."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    config = {"timezone": "UTC", "window_days": 30, "log_level": "DEBUG"}
    (root / "config.yaml").write_text(
        yaml.dump(config, default_flow_style=False), encoding="utf-8"
    )

    # Set env var
    os.environ["HABITS_ROOT"] = str(root)
    yield root
    # Cleanup
    if "HABITS_ROOT" in os.environ:
        del os.environ["HABITS_ROOT"]


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repo(store, clock) -> HabitRepository:
    return HabitRepository(store, "user-1", clock, tz=UTC)


def events_on(habit_id: str, *days_ago: int, hour: int = 8) -> list[CompletionEvent]:
    """One completion per entry, *days_ago* days before NOW's date."""
    base = NOW.replace(hour=hour, minute=0)
    return [
        CompletionEvent(id=f"{habit_id}-{i}", habit_id=habit_id, completed_at=base - timedelta(days=d))
        for i, d in enumerate(days_ago)
    ]
