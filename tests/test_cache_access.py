"""Tests for the cache-aside access layer."""

from unittest.mock import AsyncMock

import pytest

from app.adapters.store.base import CachePayload
from app.adapters.store.in_memory import InMemoryCacheStore
from app.core.errors import CacheUnavailableError, UpstreamFetchError
from app.services.cache_access import CacheAccessLayer
from app.utils.cache_keys import TTLClass, TTLPolicy
from app.utils.codec import CacheCodec


@pytest.fixture
def access(memory_store: InMemoryCacheStore, codec: CacheCodec) -> CacheAccessLayer:
    return CacheAccessLayer(memory_store, codec, TTLPolicy())


def _unavailable() -> CacheUnavailableError:
    return CacheUnavailableError(code="cache_unavailable", message="connection refused")


@pytest.mark.asyncio
async def test_miss_fetches_and_stores_with_class_ttl(
    access: CacheAccessLayer, memory_store: InMemoryCacheStore
) -> None:
    fetch = AsyncMock(return_value={"id": 1})

    value = await access.get_or_fetch("pokemon:detail:1", TTLClass.DETAIL, fetch)

    assert value == {"id": 1}
    fetch.assert_awaited_once()
    assert await memory_store.ttl("pokemon:detail:1") == 86400


@pytest.mark.asyncio
async def test_hit_never_calls_fetch(access: CacheAccessLayer) -> None:
    fetch = AsyncMock(return_value={"id": 1})
    await access.get_or_fetch("pokemon:detail:1", TTLClass.DETAIL, fetch)

    fetch.reset_mock()
    value = await access.get_or_fetch("pokemon:detail:1", TTLClass.DETAIL, fetch)

    assert value == {"id": 1}
    fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_hit_is_returned_without_projection(
    access: CacheAccessLayer, memory_store: InMemoryCacheStore
) -> None:
    await memory_store.set_with_ttl("k", CachePayload('{"id":1,"extra":true}'), 60)
    project = lambda raw: {"id": raw["id"]}  # noqa: E731

    value = await access.get_or_fetch("k", TTLClass.DETAIL, AsyncMock(), project)

    assert value == {"id": 1, "extra": True}


@pytest.mark.asyncio
async def test_projection_applies_before_store(
    access: CacheAccessLayer, memory_store: InMemoryCacheStore
) -> None:
    fetch = AsyncMock(return_value={"id": 1, "extra": True})

    value = await access.get_or_fetch("k", TTLClass.LIST, fetch, lambda raw: {"id": raw["id"]})

    assert value == {"id": 1}
    assert await memory_store.get("k") == '{"id":1}'
    assert await memory_store.ttl("k") == 3600


@pytest.mark.asyncio
async def test_raw_string_entry_is_a_hit(
    access: CacheAccessLayer, memory_store: InMemoryCacheStore
) -> None:
    await memory_store.set_with_ttl("k", CachePayload("not json at all"), 60)
    fetch = AsyncMock()

    assert await access.get_or_fetch("k", TTLClass.LIST, fetch) == "not json at all"
    fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_undecodable_entry_is_a_miss(access: CacheAccessLayer) -> None:
    store = AsyncMock()
    store.get.return_value = ""
    layer = CacheAccessLayer(store, CacheCodec())
    fetch = AsyncMock(return_value=[1, 2])

    assert await layer.get_or_fetch("k", TTLClass.SEARCH_RESULT, fetch) == [1, 2]
    fetch.assert_awaited_once()
    store.set_with_ttl.assert_awaited_once_with("k", "[1,2]", 1800)


@pytest.mark.asyncio
async def test_store_read_failure_is_a_miss() -> None:
    store = AsyncMock()
    store.get.side_effect = _unavailable()
    layer = CacheAccessLayer(store, CacheCodec())
    fetch = AsyncMock(return_value={"id": 1})

    assert await layer.get_or_fetch("k", TTLClass.DETAIL, fetch) == {"id": 1}


@pytest.mark.asyncio
async def test_store_write_failure_still_returns_value() -> None:
    store = AsyncMock()
    store.get.return_value = None
    store.set_with_ttl.side_effect = _unavailable()
    layer = CacheAccessLayer(store, CacheCodec())

    assert await layer.get_or_fetch("k", TTLClass.DETAIL, AsyncMock(return_value={"id": 1})) == {"id": 1}


@pytest.mark.asyncio
async def test_fully_down_store_serves_from_upstream() -> None:
    store = AsyncMock()
    store.get.side_effect = _unavailable()
    store.set_with_ttl.side_effect = _unavailable()
    layer = CacheAccessLayer(store, CacheCodec())
    fetch = AsyncMock(return_value={"id": 1})

    await layer.get_or_fetch("k", TTLClass.DETAIL, fetch)
    await layer.get_or_fetch("k", TTLClass.DETAIL, fetch)

    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_upstream_error_propagates_and_nothing_is_stored(
    access: CacheAccessLayer, memory_store: InMemoryCacheStore
) -> None:
    fetch = AsyncMock(side_effect=UpstreamFetchError(code="upstream_timeout", message="timeout"))

    with pytest.raises(UpstreamFetchError):
        await access.get_or_fetch("k", TTLClass.DETAIL, fetch)

    assert await memory_store.get("k") is None


@pytest.mark.asyncio
async def test_unserializable_value_is_returned_but_not_stored(
    access: CacheAccessLayer, memory_store: InMemoryCacheStore
) -> None:
    marker = object()

    assert await access.get_or_fetch("k", TTLClass.DETAIL, AsyncMock(return_value=marker)) is marker
    assert await memory_store.get("k") is None
