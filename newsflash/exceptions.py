"""Exception hierarchy for newsflash."""

from __future__ import annotations

from typing import Optional


class NewsflashError(Exception):
    """Base exception for all newsflash errors."""


class StorageError(NewsflashError):
    """A key-value store read, write or remove failed."""


class UnknownIdentityError(NewsflashError, KeyError):
    """No quota policy is configured for the requested identity."""

    def __init__(self, identity: str):
        super().__init__(identity)
        self.identity = identity

    def __str__(self) -> str:
        return f"Unknown quota identity: {self.identity!r}"


class NewsAPIError(NewsflashError):
    """The news API call was refused locally or failed upstream."""

    def __init__(self, message: str, status: Optional[int] = None, is_rate_limit: bool = False):
        super().__init__(message)
        self.status = status
        self.is_rate_limit = is_rate_limit
