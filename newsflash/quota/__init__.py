"""Rolling-window request quotas persisted in a key-value store."""
from .tracker import (
    DEFAULT_STORAGE_KEY,
    QuotaEntry,
    QuotaPolicy,
    QuotaTracker,
    UsageStats,
    policies_from_settings,
    system_clock_ms,
)

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "QuotaEntry",
    "QuotaPolicy",
    "QuotaTracker",
    "UsageStats",
    "policies_from_settings",
    "system_clock_ms",
]
