from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from newsflash.config import StorageSettings
from newsflash.exceptions import StorageError

from .base import KeyValueStore


logger = logging.getLogger("newsflash.storage")


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class NullStore(KeyValueStore):
    """Persists nothing. For contexts with no durable storage."""

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str) -> None:
        return None

    def remove(self, key: str) -> None:
        return None


class JsonFileStore(KeyValueStore):
    """All keys in one JSON object file.

    The file is re-read on every access so that separate processes sharing it
    see each other's writes. There is no locking; the last writer wins.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt store file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Corrupt store file {self.path}: expected a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)


def build_store(settings: StorageSettings) -> KeyValueStore:
    if settings.backend == "memory":
        return MemoryStore()
    if settings.backend == "null":
        return NullStore()
    logger.info("Using file store at %s", settings.path)
    return JsonFileStore(settings.path)
