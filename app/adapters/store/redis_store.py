"""Redis-backed cache store (shared across server instances)."""

from __future__ import annotations

import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.adapters.store.base import AbstractCacheStore, CachePayload
from app.core.errors import CacheUnavailableError

logger = logging.getLogger(__name__)


class RedisCacheStore(AbstractCacheStore):
    """Cache store using ``redis.asyncio``.

    Values are exchanged as ``str`` (``decode_responses=True``). Every
    ``RedisError`` (connection refused, timeout, protocol error) is re-raised
    as ``CacheUnavailableError`` so callers handle a single error type.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        client: Any | None = None,
        socket_timeout: float = 2.0,
    ) -> None:
        """Initialize the Redis store.

        Args:
            url: Redis connection URL; ignored when ``client`` is given.
            client: Pre-built ``redis.asyncio.Redis`` client (tests, shared pools).
            socket_timeout: Connect/read timeout in seconds.
        """
        if client is None:
            if not url:
                raise ValueError("url or client is required")
            client = redis.from_url(
                url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=socket_timeout,
                socket_timeout=socket_timeout,
                health_check_interval=30,
            )
        self._redis = client

    async def get(self, key: str) -> CachePayload | None:
        try:
            value = await self._redis.get(key)
        except RedisError as exc:
            raise self._unavailable("get", key, exc) from exc
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        return CachePayload(value)

    async def set_with_ttl(self, key: str, payload: CachePayload, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(key, ttl_seconds, payload)
        except RedisError as exc:
            raise self._unavailable("setex", key, exc) from exc

    async def increment(self, key: str) -> int:
        try:
            return int(await self._redis.incr(key))
        except RedisError as exc:
            raise self._unavailable("incr", key, exc) from exc

    async def expire(self, key: str, ttl_seconds: int) -> None:
        try:
            await self._redis.expire(key, ttl_seconds)
        except RedisError as exc:
            raise self._unavailable("expire", key, exc) from exc

    async def ttl(self, key: str) -> int | None:
        try:
            remaining = int(await self._redis.ttl(key))
        except RedisError as exc:
            raise self._unavailable("ttl", key, exc) from exc
        # -2: key missing, -1: no expiry
        return remaining if remaining >= 0 else None

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        try:
            next_cursor, keys = await self._redis.scan(cursor=cursor, match=match, count=count)
        except RedisError as exc:
            raise self._unavailable("scan", match, exc) from exc
        return int(next_cursor), [
            k.decode("utf-8") if isinstance(k, bytes) else k for k in keys
        ]

    async def delete_many(self, keys: list[str]) -> int:
        if not keys:
            return 0
        try:
            return int(await self._redis.delete(*keys))
        except RedisError as exc:
            raise self._unavailable("delete", f"{len(keys)} keys", exc) from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as exc:
            raise self._unavailable("ping", "-", exc) from exc

    async def close(self) -> None:
        try:
            await self._redis.aclose()
        except RedisError as exc:
            logger.warning("redis.close_failed", extra={"error_type": type(exc).__name__})

    @staticmethod
    def _unavailable(operation: str, target: str, exc: Exception) -> CacheUnavailableError:
        return CacheUnavailableError(
            code="cache_unavailable",
            message=f"Cache store {operation} failed: {type(exc).__name__}",
            details={"operation": operation, "context": {"target": target}},
        )
