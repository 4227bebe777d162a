"""Per-client request ceiling for the catalog routes.

Attached to the species router as a dependency. The limiter itself lives
in the service container; counters sit in the shared cache store under
``ratelimit:<client ip>``, so every instance behind a load balancer
enforces the same ceiling. When the store is down the limiter admits the
request (see ``StoreFixedWindowRateLimiter``).
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.api.dependencies import get_rate_limiter
from app.core.config import settings
from app.core.errors import RateLimitedError
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)


def build_client_id(request: Request) -> str:
    """Identity used for the request counter.

    Args:
        request: FastAPI request.

    Returns:
        str: Client host, or "unknown" when the transport does not expose one.
    """

    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(
    request: Request,
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
) -> None:
    """FastAPI dependency enforcing rate limits.

    When enabled, counts the request against the client's window. If the
    client exceeds the configured ceiling, raises ``RateLimitedError`` (429).

    Args:
        request: FastAPI request.
        limiter: Rate limiter from the application container.

    Raises:
        RateLimitedError: When the ceiling is exceeded.
    """

    if not settings.app.rate_limit_enabled:
        return

    client_id = build_client_id(request)
    key_hash = hash_for_log(client_id)

    result = await limiter.consume(client_id)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "degraded": result.degraded,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "window_s": settings.app.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        if result.reset_at is not None:
            headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise RateLimitedError(
        code="rate_limited",
        message="Too many requests, please try again later.",
        details={
            "limit": result.limit,
            "remaining": result.remaining,
            "retry_after": retry_after,
        },
        headers=headers or None,
    )
