"""Cache store interface.

Every operation is a (potential) network call. Implementations raise
``CacheUnavailableError`` for any backend failure; callers decide whether
that means a miss, a no-op, or failing open.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import NewType

# Opaque string exactly as stored; only the codec knows how to read it.
CachePayload = NewType("CachePayload", str)

SCAN_START_CURSOR = 0


class AbstractCacheStore(ABC):
    """Interface for the shared key-value store."""

    @abstractmethod
    async def get(self, key: str) -> CachePayload | None:
        """Return the stored payload, or None when the key is absent."""
        raise NotImplementedError

    @abstractmethod
    async def set_with_ttl(self, key: str, payload: CachePayload, ttl_seconds: int) -> None:
        """Store a payload that expires after ``ttl_seconds``."""
        raise NotImplementedError

    @abstractmethod
    async def increment(self, key: str) -> int:
        """Atomically increment an integer counter and return the new value.

        A missing key counts from zero.
        """
        raise NotImplementedError

    @abstractmethod
    async def expire(self, key: str, ttl_seconds: int) -> None:
        """Set the remaining lifetime of an existing key."""
        raise NotImplementedError

    @abstractmethod
    async def ttl(self, key: str) -> int | None:
        """Remaining lifetime in seconds, or None when absent or persistent."""
        raise NotImplementedError

    @abstractmethod
    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        """Iterate keys matching a glob pattern.

        Args:
            cursor: ``SCAN_START_CURSOR`` to begin, then the returned cursor.
            match: Glob-style pattern (``*``, ``?``, ``[...]``).
            count: Page size hint.

        Returns:
            Tuple of (next_cursor, matching_keys). Iteration is complete when
            next_cursor equals ``SCAN_START_CURSOR``.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete_many(self, keys: list[str]) -> int:
        """Delete the given keys and return how many existed."""
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the store is reachable."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the adapter."""
        return None
