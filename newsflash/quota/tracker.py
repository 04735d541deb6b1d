from __future__ import annotations

import json
import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from newsflash.config import QuotaSettings
from newsflash.exceptions import StorageError, UnknownIdentityError
from newsflash.storage import KeyValueStore


logger = logging.getLogger("newsflash.quota")

DEFAULT_STORAGE_KEY = "news_app_rate_limits"
HOUR_MS = 60 * 60 * 1000

Clock = Callable[[], int]


def system_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class QuotaPolicy:
    limit: int
    window_ms: int


def _round_half_up(value: float) -> float:
    """Two decimal places, ties rounded up."""
    return math.floor(value * 100 + 0.5) / 100


def policies_from_settings(settings: QuotaSettings) -> dict[str, QuotaPolicy]:
    return {
        name: QuotaPolicy(limit=p.limit, window_ms=int(p.window_hours * HOUR_MS))
        for name, p in settings.identities.items()
    }


@dataclass
class QuotaEntry:
    count: int
    reset_time: int
    last_updated_at: int

    def to_json(self) -> dict[str, int]:
        return {"count": self.count, "resetTime": self.reset_time, "lastUpdatedAt": self.last_updated_at}

    @classmethod
    def from_json(cls, raw: Any) -> Optional["QuotaEntry"]:
        """Parse a persisted entry; None when fields are missing or mistyped."""
        if not isinstance(raw, dict):
            return None
        count = raw.get("count")
        reset_time = raw.get("resetTime")
        last_updated = raw.get("lastUpdatedAt", raw.get("lastUpdated"))
        for value in (count, reset_time, last_updated):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            if not math.isfinite(value):
                return None
        if count < 0:
            return None
        return cls(count=int(count), reset_time=int(reset_time), last_updated_at=int(last_updated))


@dataclass(frozen=True)
class UsageStats:
    used: int
    remaining: int
    total: int
    reset_time: int
    percentage: float

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset_time / 1000, tz=timezone.utc)


class QuotaTracker:
    """Per-identity request budget over a rolling window.

    State is read from ``store`` once at construction (or on ``reload``) and
    written through after every mutation. Storage failures never propagate:
    they are logged and the tracker keeps counting in memory. Separate
    trackers sharing one store are not coordinated, so concurrent processes
    can together exceed a limit.
    """

    def __init__(
        self,
        policies: Mapping[str, QuotaPolicy],
        store: KeyValueStore,
        clock: Optional[Clock] = None,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        stale_after_ms: int = HOUR_MS,
    ) -> None:
        self.policies = dict(policies)
        self.store = store
        self.clock = clock or system_clock_ms
        self.storage_key = storage_key
        self.stale_after_ms = stale_after_ms
        self._entries: dict[str, QuotaEntry] = {}
        self.last_persist_ok = True
        self.loaded_from_store = self.reload()

    @staticmethod
    def _key(identity: str) -> str:
        return f"{identity}_requests"

    def _policy(self, identity: str) -> QuotaPolicy:
        try:
            return self.policies[identity]
        except KeyError:
            raise UnknownIdentityError(identity) from None

    def _live_entry(self, identity: str, now: int) -> Optional[QuotaEntry]:
        entry = self._entries.get(self._key(identity))
        if entry is None or now > entry.reset_time:
            return None
        return entry

    def reload(self) -> bool:
        """Replace in-memory state with the store's. Returns False on a failed or corrupt read."""
        try:
            raw = self.store.get(self.storage_key)
        except (StorageError, OSError) as e:
            logger.warning("Failed to load rate limit data from storage: %s", e)
            self._entries = {}
            return False
        if raw is None:
            self._entries = {}
            return True
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Discarding corrupt rate limit data: %s", e)
            self._entries = {}
            return False
        if not isinstance(data, dict):
            logger.warning("Discarding rate limit data of type %s", type(data).__name__)
            self._entries = {}
            return False

        entries: dict[str, QuotaEntry] = {}
        for key, value in data.items():
            entry = QuotaEntry.from_json(value)
            if entry is None:
                logger.warning("Dropping malformed rate limit entry %r", key)
                continue
            entries[key] = entry
        self._entries = entries
        return True

    def _persist(self) -> bool:
        payload = json.dumps({key: entry.to_json() for key, entry in self._entries.items()})
        try:
            self.store.set(self.storage_key, payload)
        except (StorageError, OSError) as e:
            logger.warning("Failed to save rate limit data to storage: %s", e)
            self.last_persist_ok = False
            return False
        self.last_persist_ok = True
        return True

    def can_make_request(self, identity: str) -> bool:
        policy = self._policy(identity)
        entry = self._live_entry(identity, self.clock())
        if entry is None:
            return True
        return entry.count < policy.limit

    def record_successful_request(self, identity: str) -> bool:
        """Count one completed call. Only call this after the upstream call succeeded.

        Returns whether the new state was persisted.
        """
        policy = self._policy(identity)
        now = self.clock()
        entry = self._live_entry(identity, now)
        if entry is None:
            entry = QuotaEntry(count=1, reset_time=now + policy.window_ms, last_updated_at=now)
            self._entries[self._key(identity)] = entry
        else:
            entry.count += 1
            entry.last_updated_at = now
        if entry.count >= policy.limit:
            logger.warning("Quota for %r exhausted until %d", identity, entry.reset_time)
        return self._persist()

    def get_remaining_requests(self, identity: str) -> int:
        policy = self._policy(identity)
        entry = self._live_entry(identity, self.clock())
        if entry is None:
            return policy.limit
        return max(0, policy.limit - entry.count)

    def get_reset_time(self, identity: str) -> int:
        policy = self._policy(identity)
        now = self.clock()
        entry = self._live_entry(identity, now)
        if entry is None:
            return now + policy.window_ms
        return entry.reset_time

    def get_usage_stats(self, identity: str) -> UsageStats:
        total = self._policy(identity).limit
        remaining = self.get_remaining_requests(identity)
        used = total - remaining
        return UsageStats(
            used=used,
            remaining=remaining,
            total=total,
            reset_time=self.get_reset_time(identity),
            percentage=_round_half_up(used / total * 100),
        )

    def reset_limits(self, identity: Optional[str] = None) -> bool:
        """Forget one identity's usage, or everyone's. Returns whether it was persisted."""
        if identity is None:
            self._entries.clear()
        else:
            self._policy(identity)
            self._entries.pop(self._key(identity), None)
        logger.info("Reset rate limits for %s", identity or "all identities")
        return self._persist()

    def is_data_stale(self, identity: str) -> bool:
        """True when the identity's entry has not been updated within ``stale_after_ms``."""
        self._policy(identity)
        entry = self._entries.get(self._key(identity))
        if entry is None:
            return False
        return self.clock() - entry.last_updated_at > self.stale_after_ms
