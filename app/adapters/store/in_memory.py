"""In-memory cache store.

Notes:
- Per-process only: running multiple workers gives each worker its own
  cache and its own rate counters. Use the Redis store for shared state.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import itertools
import math
import threading
import time
from bisect import bisect_right
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Callable

from app.adapters.store.base import SCAN_START_CURSOR, AbstractCacheStore, CachePayload
from app.core.errors import CacheUnavailableError


@dataclass
class _Entry:
    value: str
    expires_at: float | None


class InMemoryCacheStore(AbstractCacheStore):
    """Dict-backed store honouring TTLs, counters and cursor-based scans.

    Keys are scanned in sorted order. A cursor remembers the last key it
    returned and the next page resumes after it, so deleting returned keys
    mid-scan never skips others. Keys present for the whole scan are always
    returned; keys added mid-iteration may or may not be (the same guarantees
    Redis SCAN gives).
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._data: dict[str, _Entry] = {}
        # cursor -> last key returned under it
        self._cursors: dict[int, str] = {}
        self._cursor_ids = itertools.count(1)

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired_locked()
            return len(self._data)

    async def get(self, key: str) -> CachePayload | None:
        with self._lock:
            entry = self._live_entry_locked(key)
            return CachePayload(entry.value) if entry else None

    async def set_with_ttl(self, key: str, payload: CachePayload, ttl_seconds: int) -> None:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")
        with self._lock:
            self._data[key] = _Entry(value=payload, expires_at=self._clock() + ttl_seconds)

    async def increment(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None:
                entry = _Entry(value="0", expires_at=None)
                self._data[key] = entry
            try:
                count = int(entry.value) + 1
            except ValueError as exc:
                # Redis answers INCR on a non-integer with an error reply
                raise CacheUnavailableError(
                    code="cache_wrong_type",
                    message="Value is not an integer",
                    details={"operation": "incr"},
                ) from exc
            entry.value = str(count)
            return count

    async def expire(self, key: str, ttl_seconds: int) -> None:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is not None:
                entry.expires_at = self._clock() + ttl_seconds

    async def ttl(self, key: str) -> int | None:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None or entry.expires_at is None:
                return None
            return max(0, int(math.ceil(entry.expires_at - self._clock())))

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        if count < 1:
            raise ValueError("count must be >= 1")
        with self._lock:
            self._purge_expired_locked()
            snapshot = sorted(self._data)
            if cursor == SCAN_START_CURSOR:
                start = 0
            else:
                try:
                    last_key = self._cursors.pop(cursor)
                except KeyError as exc:
                    raise ValueError(f"unknown scan cursor: {cursor}") from exc
                start = bisect_right(snapshot, last_key)

            page = snapshot[start : start + count]
            if start + count >= len(snapshot):
                next_cursor = SCAN_START_CURSOR
            else:
                next_cursor = next(self._cursor_ids)
                self._cursors[next_cursor] = page[-1]

        return next_cursor, [k for k in page if fnmatchcase(k, match)]

    async def delete_many(self, keys: list[str]) -> int:
        deleted = 0
        with self._lock:
            for key in keys:
                if self._live_entry_locked(key) is not None:
                    deleted += 1
                self._data.pop(key, None)
        return deleted

    async def ping(self) -> bool:
        return True

    def _live_entry_locked(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            self._data.pop(key, None)
            return None
        return entry

    def _purge_expired_locked(self) -> None:
        now = self._clock()
        expired = [
            k for k, e in self._data.items() if e.expires_at is not None and e.expires_at <= now
        ]
        for key in expired:
            self._data.pop(key, None)
