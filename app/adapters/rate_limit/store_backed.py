"""Fixed-window rate limiter backed by the shared cache store.

Notes:
- Fixed, not sliding: the window starts at a client's first request and
  is not extended by later ones, so a burst straddling two windows can
  briefly exceed the nominal rate.
- Fails open: if the store cannot be reached the request is admitted and
  the failure is logged.
- Two concurrent first requests may both observe count 1 and both set the
  expiry; both set the same window length, so the race is harmless.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.store.base import AbstractCacheStore
from app.core.errors import CacheUnavailableError
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY_PREFIX = "ratelimit"


class StoreFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per client in ``ratelimit:<clientId>``."""

    def __init__(
        self,
        store: AbstractCacheStore,
        *,
        limit: int,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store-backed rate limiter.

        Args:
            store: Shared cache store holding the counters.
            limit: Maximum number of requests admitted per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source used to report reset timestamps.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._store = store
        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    @staticmethod
    def counter_key(client_id: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}:{client_id}"

    async def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and decide whether to admit it.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        counter_key = self.counter_key(key)
        try:
            count = await self._store.increment(counter_key)
            if count == 1:
                await self._store.expire(counter_key, self._window_seconds)
            current = await self._store.get(counter_key)
        except CacheUnavailableError as exc:
            logger.error(
                "rate_limit.store_unavailable",
                extra={
                    "key_hash": hash_for_log(key),
                    "error_code": exc.code,
                    "error_message": exc.message,
                },
            )
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=self._limit,
                reset_at=None,
                retry_after_seconds=None,
                degraded=True,
            )

        # The counter may have expired between INCR and GET; that request
        # then belongs to a fresh window.
        current_count = _parse_count(current, fallback=count)

        if current_count <= self._limit:
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=max(0, self._limit - current_count),
                reset_at=None,
                retry_after_seconds=None,
            )

        retry_after = await self._retry_after(counter_key)
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(self._clock())) + retry_after,
            retry_after_seconds=retry_after,
        )

    async def _retry_after(self, counter_key: str) -> int:
        try:
            remaining = await self._store.ttl(counter_key)
        except CacheUnavailableError:
            remaining = None
        if remaining is None:
            # Counter has no expiry (EXPIRE after INCR failed); restart the window.
            try:
                await self._store.expire(counter_key, self._window_seconds)
            except CacheUnavailableError as exc:
                logger.warning(
                    "rate_limit.expiry_repair_failed",
                    extra={"error_code": exc.code, "error_message": exc.message},
                )
            return self._window_seconds
        return max(1, remaining)


def _parse_count(raw: str | None, *, fallback: int) -> int:
    if raw is None:
        return 0
    try:
        return int(raw)
    except ValueError:
        return fallback
