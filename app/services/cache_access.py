"""Cache-aside access layer.

Reads go to the cache first; on a miss the caller-supplied fetch function
hits the upstream, the optional projection trims the payload, and the result
is written back with the TTL of its class. Cache failures never fail a
request: a read error is a miss and a write error is skipped. Upstream
errors from the fetch function propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from app.adapters.store.base import AbstractCacheStore
from app.core.errors import CacheUnavailableError
from app.utils.cache_keys import TTLClass, TTLPolicy
from app.utils.codec import CacheCodec, DecodedEntry

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[Any]]
ProjectFn = Callable[[Any], Any]


class CacheAccessLayer:
    """Orchestrates cache lookups, upstream fetches and write-back."""

    def __init__(
        self,
        store: AbstractCacheStore,
        codec: CacheCodec,
        ttl_policy: TTLPolicy | None = None,
    ) -> None:
        self._store = store
        self._codec = codec
        self._ttl_policy = ttl_policy or TTLPolicy()

    @property
    def store(self) -> AbstractCacheStore:
        return self._store

    async def get_or_fetch(
        self,
        key: str,
        ttl_class: TTLClass,
        fetch_fn: FetchFn,
        project_fn: ProjectFn | None = None,
    ) -> Any:
        """Return the cached value for ``key`` or fetch, store and return it.

        A decodable entry (including a raw-string passthrough) is returned as
        is and ``fetch_fn`` is not called.

        Args:
            key: Normalized cache key.
            ttl_class: Lifetime class applied when storing a fresh value.
            fetch_fn: Coroutine function producing the upstream value.
            project_fn: Optional reduction applied before storing/returning.

        Returns:
            The cached or freshly fetched (and projected) value.

        Raises:
            UpstreamFetchError: If ``fetch_fn`` fails.
        """
        cached = await self._read(key)
        if cached is not None:
            return cached.value

        value = await fetch_fn()
        if project_fn is not None:
            value = project_fn(value)

        await self._write(key, value, ttl_class)
        return value

    async def _read(self, key: str) -> DecodedEntry | None:
        try:
            raw = await self._store.get(key)
        except CacheUnavailableError as exc:
            logger.warning(
                "cache.read_failed",
                extra={"cache_key": key, "error_code": exc.code, "error_message": exc.message},
            )
            return None

        if raw is None:
            logger.debug("cache.miss", extra={"cache_key": key, "reason": "not_found"})
            return None

        decoded = self._codec.decode(raw, key=key)
        if decoded is None:
            logger.debug("cache.miss", extra={"cache_key": key, "reason": "not_decodable"})
            return None

        logger.debug("cache.hit", extra={"cache_key": key, "encoding": decoded.encoding.value})
        return decoded

    async def _write(self, key: str, value: Any, ttl_class: TTLClass) -> None:
        ttl_seconds = self._ttl_policy.seconds_for(ttl_class)
        try:
            payload = self._codec.encode(value)
        except (TypeError, ValueError) as exc:
            logger.error(
                "cache.encode_failed",
                extra={"cache_key": key, "error_type": type(exc).__name__},
            )
            return

        try:
            await self._store.set_with_ttl(key, payload, ttl_seconds)
        except CacheUnavailableError as exc:
            logger.warning(
                "cache.store_failed",
                extra={"cache_key": key, "error_code": exc.code, "error_message": exc.message},
            )
            return

        logger.debug(
            "cache.set",
            extra={"cache_key": key, "ttl_s": ttl_seconds, "size": len(payload)},
        )
