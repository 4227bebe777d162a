"""Chunked, paced batch lookup of item details.

Identifiers are processed in fixed-size chunks, strictly in order and one
at a time, with a short pause after every item (cache hit or not) so a large
batch never bursts the upstream. A failing item is recorded as an error
marker and the batch carries on.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterator, Sequence

from app.adapters.upstream.base import AbstractSpeciesClient
from app.core.errors import AppError
from app.schemas.species import BatchErrorMarker, project_item
from app.services.cache_access import CacheAccessLayer
from app.utils.cache_keys import CacheKeyBuilder, TTLClass

logger = logging.getLogger(__name__)

BATCH_ITEM_ERROR = "Failed to fetch Pokemon"

SleepFn = Callable[[float], Awaitable[None]]


def chunked(items: Sequence[str], size: int) -> Iterator[list[str]]:
    """Split ``items`` into consecutive order-preserving chunks of ``size``."""
    if size < 1:
        raise ValueError("size must be >= 1")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class BatchFetcher:
    """Resolves many identifiers through the cache-aside access layer."""

    def __init__(
        self,
        access: CacheAccessLayer,
        client: AbstractSpeciesClient,
        keys: CacheKeyBuilder,
        *,
        chunk_size: int = 5,
        pacing_seconds: float = 0.05,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if pacing_seconds < 0:
            raise ValueError("pacing_seconds must be >= 0")

        self._access = access
        self._client = client
        self._keys = keys
        self._chunk_size = chunk_size
        self._pacing_seconds = pacing_seconds
        self._sleep = sleep

    async def fetch_many(self, identifiers: Sequence[str]) -> dict[str, Any]:
        """Fetch projected details for every identifier.

        Args:
            identifiers: Names or ids, in the order they should be processed.

        Returns:
            Mapping of each identifier (as given) to its projected item, or
            to ``{"error": reason}`` when that identifier failed.
        """
        results: dict[str, Any] = {}
        failures = 0

        for chunk_index, chunk in enumerate(chunked(identifiers, self._chunk_size)):
            logger.debug(
                "batch.chunk_started",
                extra={"chunk_index": chunk_index, "chunk_size": len(chunk)},
            )
            for identifier in chunk:
                try:
                    results[identifier] = await self._fetch_one(identifier)
                except Exception as exc:
                    failures += 1
                    logger.warning(
                        "batch.item_failed",
                        extra={
                            "identifier": identifier,
                            "error_type": type(exc).__name__,
                            "error_code": exc.code if isinstance(exc, AppError) else None,
                        },
                    )
                    results[identifier] = BatchErrorMarker(error=BATCH_ITEM_ERROR).model_dump()

                await self._sleep(self._pacing_seconds)

        logger.info(
            "batch.completed",
            extra={"requested": len(identifiers), "failed": failures},
        )
        return results

    async def _fetch_one(self, identifier: str) -> Any:
        async def fetch() -> dict[str, Any]:
            return await self._client.fetch_item(identifier)

        return await self._access.get_or_fetch(
            self._keys.detail_key(identifier),
            TTLClass.DETAIL,
            fetch,
            project_item,
        )
