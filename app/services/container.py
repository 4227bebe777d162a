"""Service container wiring the store, upstream client and services.

Built once per application lifespan. Every component receives its
collaborators through its constructor; tests inject fakes by passing them
to ``ServiceContainer`` directly.
"""

from __future__ import annotations

import logging
from functools import cached_property

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.store_backed import StoreFixedWindowRateLimiter
from app.adapters.store.base import AbstractCacheStore
from app.adapters.store.factory import create_cache_store
from app.adapters.upstream.base import AbstractSpeciesClient
from app.adapters.upstream.species_api import create_species_client
from app.core.config import Settings, settings as global_settings
from app.services.batch_fetcher import BatchFetcher, SleepFn
from app.services.cache_access import CacheAccessLayer
from app.services.species_service import SpeciesService
from app.utils.cache_keys import CacheKeyBuilder, TTLPolicy
from app.utils.codec import CacheCodec

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Lazily-initialized container for request-handling dependencies.

    Supports explicit injection for testing via constructor parameters.
    When dependencies are not provided, they are created on first access
    from settings.
    """

    def __init__(
        self,
        config: Settings | None = None,
        *,
        store: AbstractCacheStore | None = None,
        client: AbstractSpeciesClient | None = None,
        rate_limiter: AbstractRateLimiter | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._config = config or global_settings
        self._store = store
        self._client = client
        self._rate_limiter = rate_limiter
        self._sleep = sleep

    @property
    def config(self) -> Settings:
        return self._config

    @cached_property
    def store(self) -> AbstractCacheStore:
        if self._store is not None:
            return self._store
        return create_cache_store(self._config.cache)

    @cached_property
    def client(self) -> AbstractSpeciesClient:
        if self._client is not None:
            return self._client
        return create_species_client(self._config.upstream)

    @cached_property
    def rate_limiter(self) -> AbstractRateLimiter:
        if self._rate_limiter is not None:
            return self._rate_limiter
        return StoreFixedWindowRateLimiter(
            self.store,
            limit=self._config.app.rate_limit_requests,
            window_seconds=self._config.app.rate_limit_window_seconds,
        )

    @cached_property
    def keys(self) -> CacheKeyBuilder:
        return CacheKeyBuilder(self._config.cache.namespace)

    @cached_property
    def codec(self) -> CacheCodec:
        return CacheCodec(
            mode=self._config.cache.codec_mode,
            compress_min_bytes=self._config.cache.compress_min_bytes,
        )

    @cached_property
    def access(self) -> CacheAccessLayer:
        return CacheAccessLayer(
            self.store,
            self.codec,
            TTLPolicy.from_settings(self._config.cache),
        )

    @cached_property
    def batch_fetcher(self) -> BatchFetcher:
        kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        return BatchFetcher(
            self.access,
            self.client,
            self.keys,
            chunk_size=self._config.app.batch_chunk_size,
            pacing_seconds=self._config.app.batch_pacing_ms / 1000,
            **kwargs,
        )

    @cached_property
    def species(self) -> SpeciesService:
        return SpeciesService(
            self.access,
            self.client,
            self.batch_fetcher,
            self.keys,
            search_pool_size=self._config.upstream.search_pool_size,
            scan_count=self._config.cache.scan_count,
        )

    async def aclose(self) -> None:
        """Close the upstream client and the store connection."""
        if "client" in self.__dict__:
            await self.client.aclose()
        if "store" in self.__dict__:
            await self.store.close()
        logger.info("container.closed")
