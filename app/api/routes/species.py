from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_species_service
from app.core.config import settings
from app.core.rate_limit import enforce_rate_limit
from app.schemas.species import PaginatedSpeciesResponse
from app.services.species_service import SpeciesService

router = APIRouter(
    prefix="/api/pokemon",
    tags=["Species"],
    dependencies=[Depends(enforce_rate_limit)],
)

SpeciesServiceDep = Annotated[SpeciesService, Depends(get_species_service)]


def parse_positive_int(raw: str | None, default: int) -> int:
    """Lenient integer query parsing: absent, non-numeric or < 1 means default."""
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= 1 else default


@router.get(
    "",
    response_model=None,
    responses={200: {"model": PaginatedSpeciesResponse}},
)
async def list_species(
    service: SpeciesServiceDep,
    page: Annotated[str | None, Query(description="1-based page number (default 1)")] = None,
    limit: Annotated[str | None, Query(description="Page size (default 20)")] = None,
    name: Annotated[str, Query(description="Case-insensitive name substring filter")] = "",
) -> Any:
    """List species with pagination and an optional name filter.

    With a name filter the whole candidate pool is filtered before
    paginating, so ``count`` and ``totalPages`` reflect the matches.
    The cached page is served as stored; a legacy raw-string entry is
    returned unchanged until it expires.
    """
    page_number = parse_positive_int(page, 1)
    page_size = min(
        parse_positive_int(limit, settings.app.default_page_size),
        settings.app.max_page_size,
    )
    return await service.list_species(page=page_number, limit=page_size, name_filter=name)


@router.get("/batch")
async def get_species_batch(
    service: SpeciesServiceDep,
    names: Annotated[str | None, Query(description="Comma-separated names or ids")] = None,
) -> dict[str, Any]:
    """Fetch several species at once.

    Each entry is either the projected item or ``{"error": ...}``; one
    failing name never fails the whole batch.
    """
    return await service.get_batch(names)


@router.get("/{identifier}")
async def get_species_detail(identifier: str, service: SpeciesServiceDep) -> Any:
    """Get one species by name or numeric id (case-insensitive)."""
    return await service.get_detail(identifier)
