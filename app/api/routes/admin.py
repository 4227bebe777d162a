from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_species_service
from app.core.auth import verify_admin_key
from app.services.species_service import SpeciesService

router = APIRouter(
    prefix="/api/pokemon",
    tags=["Admin"],
    dependencies=[Depends(verify_admin_key)],
)


@router.delete("/cache")
async def clear_cache(
    service: Annotated[SpeciesService, Depends(get_species_service)],
    pattern: Annotated[
        str | None,
        Query(description="Glob pattern of keys to delete (default: the whole cache namespace)"),
    ] = None,
) -> dict:
    """Delete cached entries matching a key pattern.

    Rate-limit counters are never touched; the pattern must stay inside
    the cache namespace.
    """
    deleted = await service.clear_cache(pattern)
    return {"deleted": deleted, "pattern": pattern or f"{service.namespace}:*"}
