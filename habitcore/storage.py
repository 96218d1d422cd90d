"""Key-value persistence backends.

A key is a slash-separated path such as ``habits/<user_id>``; a blob is any
JSON-serializable value. Backends raise StorageError for every failure so
callers never see raw OSError/ValueError.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from habitcore.errors import StorageError
from habitcore.fileio import read_json, write_json_atomic
from habitcore.workspace import data_dir

log = logging.getLogger(__name__)


def _check_key(key: str) -> list[str]:
    parts = key.split("/")
    if not key or any(p in ("", ".", "..") for p in parts):
        raise StorageError(f"Invalid storage key: {key!r}")
    return parts


class JsonFileStore:
    """One JSON document per key under ``<root>/data``."""

    def __init__(self, root: Path):
        self.root = root
        self.base = data_dir(root)

    def path_for(self, key: str) -> Path:
        parts = _check_key(key)
        return self.base.joinpath(*parts[:-1], parts[-1] + ".json")

    def load(self, key: str) -> Any:
        path = self.path_for(key)
        try:
            return read_json(path)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def store(self, key: str, blob: Any) -> None:
        path = self.path_for(key)
        log.debug("Writing %s", path)
        try:
            write_json_atomic(path, blob)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e


class MemoryStore:
    """In-process store holding deep copies; used by tests and previews."""

    def __init__(self):
        self.data: dict[str, Any] = {}

    def load(self, key: str) -> Any:
        _check_key(key)
        return copy.deepcopy(self.data.get(key))

    def store(self, key: str, blob: Any) -> None:
        _check_key(key)
        try:
            # Same serializability contract as the file store.
            json.dumps(blob)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {key}: {e}") from e
        self.data[key] = copy.deepcopy(blob)

    def delete(self, key: str) -> None:
        _check_key(key)
        self.data.pop(key, None)
