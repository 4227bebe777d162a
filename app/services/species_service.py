"""Species catalog operations served through the cache.

Orchestrates the route-facing operations:
1. Paginated list, with local filtering when a name filter is present
2. Single item detail
3. Batch detail lookup
4. Administrative cache clear by key pattern
"""

from __future__ import annotations

import logging
import math
from typing import Any

from app.adapters.store.base import SCAN_START_CURSOR
from app.adapters.upstream.base import AbstractSpeciesClient
from app.core.errors import CacheUnavailableError, ValidationAppError
from app.services.batch_fetcher import BatchFetcher
from app.services.cache_access import CacheAccessLayer
from app.utils.cache_keys import CacheKeyBuilder, TTLClass, normalize_identifier

logger = logging.getLogger(__name__)


def total_pages(count: int, limit: int) -> int:
    """Number of pages for ``count`` items, never less than one."""
    return max(1, math.ceil(count / limit))


def filter_and_paginate(
    candidates: list[dict[str, Any]],
    name_filter: str,
    *,
    page: int,
    limit: int,
) -> dict[str, Any]:
    """Filter candidates by case-insensitive substring, then paginate.

    Offset and limit apply to the filtered list, so ``count`` and
    ``totalPages`` describe the matches rather than the upstream catalog.
    """
    needle = name_filter.lower()
    matches = [c for c in candidates if needle in str(c.get("name", "")).lower()]
    offset = (page - 1) * limit
    return {
        "results": matches[offset : offset + limit],
        "count": len(matches),
        "totalPages": total_pages(len(matches), limit),
        "currentPage": page,
    }


class SpeciesService:
    """Service layer between the HTTP routes and the cache/upstream."""

    def __init__(
        self,
        access: CacheAccessLayer,
        client: AbstractSpeciesClient,
        batch: BatchFetcher,
        keys: CacheKeyBuilder,
        *,
        search_pool_size: int = 500,
        scan_count: int = 1000,
    ) -> None:
        self._access = access
        self._client = client
        self._batch = batch
        self._keys = keys
        self._search_pool_size = search_pool_size
        self._scan_count = scan_count

    @property
    def namespace(self) -> str:
        return self._keys.namespace

    async def list_species(self, *, page: int, limit: int, name_filter: str = "") -> dict[str, Any]:
        """Return one page of the catalog, optionally filtered by name.

        Args:
            page: 1-based page number.
            limit: Page size.
            name_filter: Case-insensitive substring; empty means no filter.

        Returns:
            dict with ``results``, ``count``, ``totalPages`` and ``currentPage``.

        Raises:
            ValidationAppError: If page or limit are not positive.
            UpstreamFetchError: If the upstream list call fails.
        """
        if page < 1 or limit < 1:
            raise ValidationAppError(
                code="invalid_pagination",
                message="page and limit must be positive integers",
            )

        name = normalize_identifier(name_filter)
        key = self._keys.list_key(page=page, limit=limit, name_filter=name)

        if name:
            async def fetch() -> dict[str, Any]:
                # Filtering needs the whole candidate pool, not one upstream page
                pool = await self._client.fetch_page(offset=0, limit=self._search_pool_size)
                return filter_and_paginate(pool["results"], name, page=page, limit=limit)

            return await self._access.get_or_fetch(key, TTLClass.SEARCH_RESULT, fetch)

        async def fetch_page() -> dict[str, Any]:
            body = await self._client.fetch_page(offset=(page - 1) * limit, limit=limit)
            count = int(body.get("count", len(body["results"])))
            return {
                "results": body["results"],
                "count": count,
                "totalPages": total_pages(count, limit),
                "currentPage": page,
            }

        return await self._access.get_or_fetch(key, TTLClass.LIST, fetch_page)

    async def get_detail(self, identifier: str) -> Any:
        """Return the detail of one item by name or id.

        The cached shape is whatever the key currently holds: the full
        upstream record written here, or a projection written by a batch.

        Raises:
            ValidationAppError: If the identifier is blank.
            UpstreamNotFoundError: If the upstream has no such item.
            UpstreamFetchError: For other upstream failures.
        """
        if not normalize_identifier(identifier):
            raise ValidationAppError(code="missing_identifier", message="Identifier is required")

        async def fetch() -> dict[str, Any]:
            return await self._client.fetch_item(identifier)

        return await self._access.get_or_fetch(
            self._keys.detail_key(identifier), TTLClass.DETAIL, fetch
        )

    async def get_batch(self, names: str | None) -> dict[str, Any]:
        """Resolve a comma-separated list of names.

        Raises:
            ValidationAppError: If ``names`` is missing or has no usable entry.
        """
        if not names or not isinstance(names, str):
            raise ValidationAppError(
                code="missing_names",
                message="Names parameter required as comma-separated string",
            )

        identifiers = [n.strip() for n in names.split(",") if n.strip()]
        if not identifiers:
            raise ValidationAppError(
                code="missing_names",
                message="Names parameter required as comma-separated string",
            )

        return await self._batch.fetch_many(identifiers)

    async def clear_cache(self, pattern: str | None = None) -> int:
        """Delete every key matching ``pattern`` (default: the whole namespace).

        Scans page by page until the cursor comes back to its start value,
        deleting each page's matches as it goes.

        Returns:
            Number of keys deleted.

        Raises:
            ValidationAppError: If the pattern reaches outside the cache namespace.
            CacheUnavailableError: If the store fails mid-scan.
        """
        match = pattern or self._keys.namespace_pattern()
        # Rate counters share the store; they are not cache entries
        if not match.startswith(f"{self._keys.namespace}:"):
            raise ValidationAppError(
                code="invalid_cache_pattern",
                message=f"Pattern must start with '{self._keys.namespace}:'",
            )
        store = self._access.store
        cursor = SCAN_START_CURSOR
        deleted = 0
        pages = 0

        while True:
            cursor, keys = await store.scan(cursor, match, self._scan_count)
            pages += 1
            if keys:
                deleted += await store.delete_many(keys)
            if cursor == SCAN_START_CURSOR:
                break

        logger.info(
            "cache.cleared",
            extra={"pattern": match, "deleted": deleted, "scan_pages": pages},
        )
        return deleted

    async def cache_healthy(self) -> bool:
        try:
            return await self._access.store.ping()
        except CacheUnavailableError:
            return False
