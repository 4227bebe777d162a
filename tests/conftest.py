"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment to "testing" so no developer .env file leaks into
settings, and switches the cache store to the in-memory backend.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("APP_ADMIN_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_ADMIN_API_KEYS", "test-admin-key-123,test-admin-key-456")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("APP_BATCH_PACING_MS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.adapters.store.in_memory import InMemoryCacheStore
from app.adapters.upstream.base import AbstractSpeciesClient
from app.core.app_factory import create_app
from app.core.errors import UpstreamFetchError, UpstreamNotFoundError
from app.services.container import ServiceContainer
from app.utils.codec import CacheCodec


def make_detail(item_id: int, name: str, *, artwork: bool = True) -> dict[str, Any]:
    """Upstream-shaped detail record with fields the projection drops."""
    other: dict[str, Any] = {"dream_world": {"front_default": f"https://img/dream/{item_id}.svg"}}
    if artwork:
        other["official-artwork"] = {"front_default": f"https://img/art/{item_id}.png"}
    return {
        "id": item_id,
        "name": name,
        "height": 7,
        "weight": 69,
        "base_experience": 64,
        "abilities": [{"ability": {"name": "overgrow"}, "slot": 1}],
        "types": [
            {"slot": 1, "type": {"name": "grass", "url": "https://x/type/12/"}},
            {"slot": 2, "type": {"name": "poison", "url": "https://x/type/4/"}},
        ],
        "sprites": {
            "front_default": f"https://img/front/{item_id}.png",
            "back_default": f"https://img/back/{item_id}.png",
            "other": other,
        },
    }


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSpeciesClient(AbstractSpeciesClient):
    """In-memory upstream recording every call it receives."""

    def __init__(self, names: list[str] | None = None) -> None:
        self.names = list(names or [])
        self.details: dict[str, dict[str, Any]] = {
            name: make_detail(index + 1, name) for index, name in enumerate(self.names)
        }
        self.failing: set[str] = set()
        self.page_calls: list[tuple[int, int]] = []
        self.item_calls: list[str] = []
        self.closed = False

    async def fetch_page(self, *, offset: int, limit: int) -> dict[str, Any]:
        self.page_calls.append((offset, limit))
        if "__page__" in self.failing:
            raise UpstreamFetchError(code="upstream_bad_status", message="boom")
        return {
            "count": len(self.names),
            "next": None,
            "previous": None,
            "results": [
                {"name": n, "url": f"https://pokeapi.co/api/v2/pokemon/{self.names.index(n) + 1}/"}
                for n in self.names[offset : offset + limit]
            ],
        }

    async def fetch_item(self, identifier: str) -> dict[str, Any]:
        self.item_calls.append(identifier)
        key = identifier.strip().lower()
        if key in self.failing:
            raise UpstreamFetchError(code="upstream_timeout", message="Upstream species API timed out")
        if key not in self.details:
            raise UpstreamNotFoundError(code="species_not_found", message=f"Species '{identifier}' not found")
        return self.details[key]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(fake_clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=fake_clock)


@pytest.fixture
def codec() -> CacheCodec:
    return CacheCodec(mode="auto", compress_min_bytes=64)


@pytest.fixture
def make_species_client():
    """Factory for fake upstream clients over a custom catalog."""
    return FakeSpeciesClient


@pytest.fixture
def fake_client() -> FakeSpeciesClient:
    return FakeSpeciesClient(["bulbasaur", "ivysaur", "venusaur", "charmander", "charmeleon"])


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def container(
    memory_store: InMemoryCacheStore,
    fake_client: FakeSpeciesClient,
    no_sleep: AsyncMock,
) -> ServiceContainer:
    return ServiceContainer(store=memory_store, client=fake_client, sleep=no_sleep)


@pytest.fixture
def api_client(container: ServiceContainer):
    """TestClient with the lifespan running against the fake container."""
    app = create_app(container)
    with TestClient(app) as client:
        yield client
