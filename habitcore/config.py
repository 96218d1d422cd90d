"""Settings and logging setup for HabitPulse.

Settings come from config.yaml in the workspace root, then environment
variables override individual values:

    HABITS_ROOT          workspace directory (default ~/habitpulse)
    HABITS_TIMEZONE      IANA zone used for calendar days (default: process local)
    HABITS_WINDOW_DAYS   rolling statistics window (default 30)
    HABITS_LOG_LEVEL     logging level name (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from habitcore.errors import ValidationError
from habitcore.fileio import read_yaml
from habitcore.stats import DEFAULT_WINDOW_DAYS
from habitcore.workspace import config_path, workspace_root

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class Settings:
    root: Path
    timezone: str | None = None
    window_days: int = DEFAULT_WINDOW_DAYS
    log_level: str = "INFO"

    def tzinfo(self) -> ZoneInfo | None:
        return ZoneInfo(self.timezone) if self.timezone else None


def load_settings(root: Path | None = None) -> Settings:
    """Read config.yaml and apply environment overrides."""
    if root is None:
        root = workspace_root()
    raw = read_yaml(config_path(root))

    timezone = os.environ.get("HABITS_TIMEZONE", raw.get("timezone"))
    window = os.environ.get("HABITS_WINDOW_DAYS", raw.get("window_days", DEFAULT_WINDOW_DAYS))
    level = str(os.environ.get("HABITS_LOG_LEVEL", raw.get("log_level", "INFO"))).upper()

    errors = []
    if timezone:
        try:
            ZoneInfo(str(timezone))
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"Unknown timezone: {timezone}")
    try:
        window_days = int(window)
        if window_days < 1:
            raise ValueError
    except (TypeError, ValueError):
        errors.append(f"window_days must be a positive integer, got {window!r}")
        window_days = DEFAULT_WINDOW_DAYS
    if not isinstance(logging.getLevelName(level), int):
        errors.append(f"Unknown log level: {level}")
    if errors:
        raise ValidationError(errors)

    return Settings(
        root=root,
        timezone=str(timezone) if timezone else None,
        window_days=window_days,
        log_level=level,
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
