"""HTTP client for the upstream species catalog (PokeAPI-compatible)."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx

from app.adapters.upstream.base import AbstractSpeciesClient
from app.core.config import UpstreamSettings, settings
from app.core.errors import UpstreamFetchError, UpstreamNotFoundError

logger = logging.getLogger(__name__)


class SpeciesApiClient(AbstractSpeciesClient):
    """Async client for ``GET /pokemon`` and ``GET /pokemon/{id}``.

    Timeouts and transport errors are reported as ``UpstreamFetchError``;
    this layer does not retry.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the httpx async client.

        Args:
            base_url: Upstream API root, e.g. ``https://pokeapi.co/api/v2``.
            timeout_seconds: Timeout for each request in seconds.
            transport: Optional transport override (tests use ``httpx.MockTransport``).
        """
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def fetch_page(self, *, offset: int, limit: int) -> dict[str, Any]:
        body = await self._get_json("/pokemon", params={"offset": offset, "limit": limit})
        if not isinstance(body, dict) or not isinstance(body.get("results"), list):
            raise UpstreamFetchError(
                code="upstream_invalid_response",
                message="Upstream list response is missing 'results'",
                details={"upstream_url": f"{self.base_url}/pokemon"},
            )
        return body

    async def fetch_item(self, identifier: str) -> dict[str, Any]:
        path = f"/pokemon/{quote(identifier.strip().lower(), safe='')}"
        body = await self._get_json(path, identifier=identifier)
        if not isinstance(body, dict):
            raise UpstreamFetchError(
                code="upstream_invalid_response",
                message="Upstream detail response is not an object",
                details={"identifier": identifier},
            )
        return body

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        identifier: str | None = None,
    ) -> Any:
        start = time.perf_counter()
        try:
            response = await self.client.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamFetchError(
                code="upstream_timeout",
                message="Upstream species API timed out",
                details={"upstream_url": f"{self.base_url}{path}"},
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(
                code="upstream_unreachable",
                message=f"Upstream species API error: {type(exc).__name__}",
                details={"upstream_url": f"{self.base_url}{path}"},
            ) from exc

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "upstream.request",
            extra={
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        if response.status_code == 404:
            raise UpstreamNotFoundError(
                code="species_not_found",
                message=f"Species '{identifier}' not found" if identifier else "Not found upstream",
                details={"identifier": identifier or "", "http_status": 404},
            )
        if response.is_error:
            raise UpstreamFetchError(
                code="upstream_bad_status",
                message=f"Upstream species API returned {response.status_code}",
                details={"http_status": response.status_code, "upstream_url": f"{self.base_url}{path}"},
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamFetchError(
                code="upstream_invalid_response",
                message="Upstream species API returned invalid JSON",
                details={"upstream_url": f"{self.base_url}{path}"},
            ) from exc


def create_species_client(upstream_settings: UpstreamSettings | None = None) -> SpeciesApiClient:
    """Build the upstream client from configuration."""

    cfg = upstream_settings or settings.upstream
    return SpeciesApiClient(base_url=cfg.base_url, timeout_seconds=cfg.timeout_seconds)
