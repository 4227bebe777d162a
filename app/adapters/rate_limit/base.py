"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
counter storage can change without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets, if known.
        retry_after_seconds: Suggested wait time in seconds when blocked.
        degraded: True when the counter store was unreachable and the
            request was admitted without being counted.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int | None
    retry_after_seconds: int | None
    degraded: bool = False


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    async def consume(self, key: str) -> RateLimitResult:
        """Count one request for a given key.

        Args:
            key: Client identity (e.g., IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
