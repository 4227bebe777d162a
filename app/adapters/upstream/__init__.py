"""Upstream catalog adapter layer."""

from app.adapters.upstream.base import AbstractSpeciesClient
from app.adapters.upstream.species_api import SpeciesApiClient, create_species_client

__all__ = [
    "AbstractSpeciesClient",
    "SpeciesApiClient",
    "create_species_client",
]
