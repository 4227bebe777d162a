"""Cache store adapters.

The access layer and the rate governor only talk to ``AbstractCacheStore``;
the backend (shared Redis or a single-process memory store) is chosen by
configuration in ``create_cache_store``.
"""

from app.adapters.store.base import AbstractCacheStore, CachePayload
from app.adapters.store.factory import create_cache_store
from app.adapters.store.in_memory import InMemoryCacheStore
from app.adapters.store.redis_store import RedisCacheStore

__all__ = [
    "AbstractCacheStore",
    "CachePayload",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "create_cache_store",
]
