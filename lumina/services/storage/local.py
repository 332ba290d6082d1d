"""
Local Fallback Storage

A durable key-value store kept in one JSON file. While no Google
session is active the expense collection lives here under a single
key, rewritten in full on every change.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from lumina.config import get_settings
from lumina.services.storage.interface import StorageError


class LocalJsonStore:
    """JSON-file backed key-value storage."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else get_settings().local_storage.resolved_path

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read local storage {self._path}: {e}")
        if not isinstance(data, dict):
            raise StorageError(f"Local storage {self._path} is not a JSON object")
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            # Write then rename so a crash never leaves half a file
            fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write local storage {self._path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Overwrite the whole value stored under `key`."""
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def keys(self) -> list[str]:
        return list(self._read_all().keys())
