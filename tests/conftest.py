from __future__ import annotations

from typing import Optional

import pytest

from newsflash.exceptions import StorageError
from newsflash.storage import KeyValueStore, MemoryStore


START_MS = 1_700_000_000_000
DAY_MS = 24 * 60 * 60 * 1000


class FakeClock:
    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FailingStore(KeyValueStore):
    """Reads and/or writes raise StorageError, like a full or disabled localStorage."""

    def __init__(self, *, fail_reads: bool = False, fail_writes: bool = True) -> None:
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self._inner = MemoryStore()

    def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise StorageError("storage disabled")
        return self._inner.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageError("quota exceeded")
        self._inner.set(key, value)

    def remove(self, key: str) -> None:
        if self.fail_writes:
            raise StorageError("quota exceeded")
        self._inner.remove(key)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()
