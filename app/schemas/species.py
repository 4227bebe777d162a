"""Pydantic schemas for species list, projected items and batch results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SpeciesListItem(BaseModel):
    """Entry of the upstream paginated list."""

    name: str
    url: str


class PaginatedSpeciesResponse(BaseModel):
    """Page of the species list, after optional name filtering."""

    results: list[SpeciesListItem] = Field(
        default_factory=list,
        description="Items on the requested page.",
    )
    count: int = Field(..., ge=0, description="Total number of matching items.")
    totalPages: int = Field(..., ge=1, description="Number of pages at the requested limit.")
    currentPage: int = Field(..., ge=1, description="Requested page number (1-based).")


class TypeRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class TypeSlot(BaseModel):
    """One (slot, category-name) pair of a projected item."""

    model_config = ConfigDict(extra="ignore")

    slot: int
    type: TypeRef


class ArtworkRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    front_default: str


class SpriteBundle(BaseModel):
    """Image references; the high-resolution artwork is optional."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    front_default: str | None = None
    other: dict[str, ArtworkRef] = Field(default_factory=dict)


class ProjectedItem(BaseModel):
    """Minimal whitelisted view of an upstream species record.

    Only these fields are ever stored for batch lookups; anything else the
    upstream returns is dropped, which bounds entry size and keeps cached
    data stable when the upstream schema grows.
    """

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    types: list[TypeSlot] = Field(default_factory=list)
    sprites: SpriteBundle = Field(default_factory=SpriteBundle)


OFFICIAL_ARTWORK = "official-artwork"


def project_item(raw: dict[str, Any]) -> dict[str, Any]:
    """Reduce an upstream detail payload to the ``ProjectedItem`` shape.

    Types keep their upstream order. The official artwork variant is
    included only when the upstream provides one.

    Raises:
        pydantic.ValidationError: If required fields (id, name) are missing.
    """

    sprites = raw.get("sprites") or {}
    artwork = ((sprites.get("other") or {}).get(OFFICIAL_ARTWORK) or {}).get("front_default")

    item = ProjectedItem(
        id=raw.get("id"),
        name=raw.get("name"),
        types=[
            TypeSlot(slot=t["slot"], type=TypeRef(name=t["type"]["name"]))
            for t in raw.get("types") or []
        ],
        sprites=SpriteBundle(
            front_default=sprites.get("front_default"),
            other={OFFICIAL_ARTWORK: ArtworkRef(front_default=artwork)} if artwork else {},
        ),
    )
    return item.model_dump(mode="json")


class BatchErrorMarker(BaseModel):
    """Placeholder for an identifier that could not be resolved in a batch."""

    error: str = Field(..., description="Why this item could not be fetched.")
