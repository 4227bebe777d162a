"""Rate limiting adapters.

Counters live in the shared cache store, never in process memory, so the
ceiling holds across every server instance pointed at the same store.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.store_backed import StoreFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "RateLimitResult",
    "StoreFixedWindowRateLimiter",
]
