"""Factory for creating cache store instances."""

from __future__ import annotations

from app.adapters.store.base import AbstractCacheStore
from app.adapters.store.in_memory import InMemoryCacheStore
from app.adapters.store.redis_store import RedisCacheStore
from app.core.config import CacheSettings, settings
from app.core.errors import ValidationAppError


def create_cache_store(cache_settings: CacheSettings | None = None) -> AbstractCacheStore:
    """Instantiate the cache store selected by configuration.

    - "redis"  -> shared store; required when more than one worker runs
    - "memory" -> in-process store for local development and tests

    Args:
        cache_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractCacheStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend is unknown.
    """
    cfg = cache_settings or settings.cache
    backend = cfg.backend.lower()

    if backend == "redis":
        return RedisCacheStore(cfg.redis_url)

    if backend == "memory":
        return InMemoryCacheStore()

    raise ValidationAppError(
        code="cache_unknown_backend",
        message=f"Unknown cache backend: '{backend}'. Supported backends: redis, memory",
    )
