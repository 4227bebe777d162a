from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.dependencies import get_species_service
from app.services.species_service import SpeciesService

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(
    service: Annotated[SpeciesService, Depends(get_species_service)],
) -> dict:
    """Health check endpoint.

    The service stays "ok" when the cache store is down, since every
    request can still be served from the upstream; ``cache`` reports it.

    Returns:
        dict: ``status`` and the cache store state.
    """

    cache_ok = await service.cache_healthy()
    return {"status": "ok", "cache": "ok" if cache_ok else "unavailable"}
