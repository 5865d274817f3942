"""
CacheProvider Port
==================

Abstract key/value store with per-entry TTL.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class CacheProvider(ABC):
    """
    Port for the cache backing store.

    Values are JSON-serialisable (dicts, lists, strings, numbers).
    Entries are written whole and expire the instant ``now > expires_at``.

    Implementations raise CacheFailure when the backend misbehaves; they
    never raise anything else for ordinary operations.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """
        Retrieve a value by exact key.

        Returns:
            The stored value, or None if missing or expired.

        Raises:
            CacheFailure: If the backend cannot be queried.
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """
        Store a value, replacing any existing entry.

        Raises:
            CacheFailure: If the backend cannot be written.
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove an entry.

        Returns:
            True if an entry was found and removed.

        Raises:
            CacheFailure: If the backend cannot be written.
        """
        ...

    async def health_check(self) -> bool:
        """Check if the cache is operational."""
        return True

    async def connect(self) -> None:
        """Open connections / start background work. Default is a no-op."""
        return None

    async def disconnect(self) -> None:
        """Close connections / stop background work. Default is a no-op."""
        return None
