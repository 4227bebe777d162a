"""FastAPI dependencies resolving services from the application container."""

from __future__ import annotations

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.services.container import ServiceContainer
from app.services.species_service import SpeciesService


def get_container(request: Request) -> ServiceContainer:
    """Return the container built by the application lifespan."""
    return request.app.state.container


def get_species_service(request: Request) -> SpeciesService:
    return get_container(request).species


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    return get_container(request).rate_limiter
