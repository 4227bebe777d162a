"""Cache key construction and TTL policy.

Keys look like ``<namespace>:list:<name>:page<page>:limit<limit>`` and
``<namespace>:detail:<identifier>``. User-supplied parts are case-folded,
trimmed and percent-quoted, so the same logical request always produces
the same key and no input can reproduce another request's key or inject
glob characters into an administrative scan pattern.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

from app.core.config import CacheSettings


class TTLClass(str, Enum):
    LIST = "list"
    SEARCH_RESULT = "search_result"
    DETAIL = "detail"


@dataclass(frozen=True)
class TTLPolicy:
    """Fixed durations per TTL class. Details change least often."""

    list_seconds: int = 3600
    search_result_seconds: int = 1800
    detail_seconds: int = 86400

    @classmethod
    def from_settings(cls, cache_settings: CacheSettings) -> "TTLPolicy":
        return cls(
            list_seconds=cache_settings.ttl_list_seconds,
            search_result_seconds=cache_settings.ttl_search_seconds,
            detail_seconds=cache_settings.ttl_detail_seconds,
        )

    def seconds_for(self, ttl_class: TTLClass) -> int:
        if ttl_class is TTLClass.DETAIL:
            return self.detail_seconds
        if ttl_class is TTLClass.SEARCH_RESULT:
            return self.search_result_seconds
        return self.list_seconds


def normalize_identifier(value: str) -> str:
    """Case-fold and trim a user-supplied name or id."""
    return value.strip().lower()


def _quote(part: str) -> str:
    return quote(part, safe="")


class CacheKeyBuilder:
    """Builds keys under one namespace."""

    def __init__(self, namespace: str = "pokemon") -> None:
        if not namespace:
            raise ValueError("namespace must be a non-empty string")
        self.namespace = namespace

    def list_key(self, *, page: int, limit: int, name_filter: str = "") -> str:
        name = _quote(normalize_identifier(name_filter))
        return f"{self.namespace}:list:{name}:page{page}:limit{limit}"

    def detail_key(self, identifier: str) -> str:
        return f"{self.namespace}:detail:{_quote(normalize_identifier(identifier))}"

    def namespace_pattern(self) -> str:
        """Glob pattern matching every key written under this namespace."""
        return f"{self.namespace}:*"
