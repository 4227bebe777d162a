"""Domain errors raised by adapters and services.

Each error carries a stable ``code`` for clients and log queries. Store
adapters raise ``CacheUnavailableError``; the access layer and the rate
limiter absorb it, so it only reaches a client from operations that cannot
work without the store (clearing the cache).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Optional structured context attached to an error."""

    hint: str
    http_status: int
    retry_after: int
    limit: int
    remaining: int
    identifier: str
    upstream_url: str
    operation: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base class for every error the API renders as a JSON error body.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured context.
    """

    status_code: ClassVar[int] = 400

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Bad query parameters or configuration."""


class AuthenticationAppError(AppError):
    """Missing or wrong admin API key."""

    status_code = 403


@dataclass
class RateLimitedError(AppError):
    """The client used up its requests for the current window.

    Attributes:
        headers: Retry-After and X-RateLimit-* values for the 429 response.
    """

    status_code: ClassVar[int] = 429

    headers: dict[str, str] | None = None


class CacheUnavailableError(AppError):
    """The shared store could not be reached or rejected the command."""

    status_code = 503


class UpstreamFetchError(AppError):
    """The upstream catalog call failed, timed out or returned garbage."""

    status_code = 502


class UpstreamNotFoundError(UpstreamFetchError):
    """The upstream catalog has no item with the requested identifier."""

    status_code = 404
