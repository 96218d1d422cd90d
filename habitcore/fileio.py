"""Workspace file I/O for HabitPulse: tolerant reads, locked atomic writes."""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


def read_text(path: Path) -> str:
    """File contents, or "" when the file does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def read_json(path: Path) -> Any:
    """Decoded JSON document; None for a missing or blank file."""
    text = read_text(path)
    return json.loads(text) if text.strip() else None


def read_yaml(path: Path) -> dict[str, Any]:
    """Top-level YAML mapping; {} for a missing file or a non-mapping document."""
    text = read_text(path)
    loaded = yaml.safe_load(text) if text.strip() else None
    return loaded if isinstance(loaded, dict) else {}


def _replace_atomically(path: Path, content: str) -> None:
    """Write *content* to a sibling temp file under flock, then rename it over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def write_json_atomic(path: Path, data: Any) -> None:
    """Serialize first so an unencodable blob never touches the disk."""
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    _replace_atomically(path, content)
