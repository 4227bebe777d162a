"""Tests for cache key construction, TTL policy and cache settings."""

import pytest
from pydantic import ValidationError

from app.adapters.store.factory import create_cache_store
from app.adapters.store.in_memory import InMemoryCacheStore
from app.adapters.store.redis_store import RedisCacheStore
from app.core.config import CacheSettings, resolve_env_file
from app.core.errors import ValidationAppError
from app.utils.cache_keys import CacheKeyBuilder, TTLClass, TTLPolicy


def test_list_key_is_normalized() -> None:
    keys = CacheKeyBuilder("pokemon")

    assert keys.list_key(page=1, limit=20) == "pokemon:list::page1:limit20"
    assert keys.list_key(page=2, limit=5, name_filter=" PiKa ") == "pokemon:list:pika:page2:limit5"


def test_detail_key_is_case_insensitive() -> None:
    keys = CacheKeyBuilder("pokemon")

    assert keys.detail_key("Pikachu") == keys.detail_key("pikachu ") == "pokemon:detail:pikachu"


def test_user_input_cannot_inject_key_structure() -> None:
    keys = CacheKeyBuilder("pokemon")

    assert keys.detail_key("a:b*") == "pokemon:detail:a%3Ab%2A"
    assert keys.list_key(page=1, limit=20, name_filter="x:page9") != keys.list_key(page=9, limit=20, name_filter="x")


def test_namespace_pattern() -> None:
    assert CacheKeyBuilder("dex").namespace_pattern() == "dex:*"

    with pytest.raises(ValueError):
        CacheKeyBuilder("")


def test_ttl_policy_defaults_are_ordered() -> None:
    policy = TTLPolicy()

    assert policy.seconds_for(TTLClass.DETAIL) == 86400
    assert policy.seconds_for(TTLClass.LIST) == 3600
    assert policy.seconds_for(TTLClass.SEARCH_RESULT) == 1800


def test_ttl_policy_from_settings() -> None:
    cfg = CacheSettings(ttl_list_seconds=60, ttl_search_seconds=30, ttl_detail_seconds=120)

    policy = TTLPolicy.from_settings(cfg)

    assert policy == TTLPolicy(list_seconds=60, search_result_seconds=30, detail_seconds=120)


def test_cache_settings_reject_misordered_ttls() -> None:
    with pytest.raises(ValidationError):
        CacheSettings(ttl_list_seconds=60, ttl_search_seconds=120, ttl_detail_seconds=600)


def test_store_factory_selects_backend() -> None:
    assert isinstance(create_cache_store(CacheSettings(backend="memory")), InMemoryCacheStore)
    # redis.from_url connects lazily, so no server is needed here
    assert isinstance(
        create_cache_store(CacheSettings(backend="redis", redis_url="redis://localhost:6379/0")),
        RedisCacheStore,
    )


def test_store_factory_rejects_unknown_backend() -> None:
    cfg = CacheSettings.model_construct(backend="memcached")

    with pytest.raises(ValidationAppError):
        create_cache_store(cfg)


def test_resolve_env_file(tmp_path) -> None:
    (tmp_path / ".env.staging").write_text("CACHE_BACKEND=memory\n")
    (tmp_path / ".env.development").write_text("")

    assert resolve_env_file("staging", tmp_path) == tmp_path / ".env.staging"
    assert resolve_env_file("unknown", tmp_path) == tmp_path / ".env.development"
    assert resolve_env_file("production", tmp_path) is None
