"""
Rate Limiter Library

This library provides reusable, non-blocking sliding window rate limiting
with support for multiple independent queues, different rate limiter
backends per queue, and a singleton manager.

Example:
    >>> from lib.rate_limiter import (
    ...     RateLimiterManager,
    ...     SlidingWindowRateLimiter,
    ...     QueueConfig
    ... )
    >>>
    >>> # Per-client limiter for public lookups
    >>> lookupLimiter = SlidingWindowRateLimiter(
    ...     QueueConfig(maxRequests=5, windowSeconds=60)
    ... )
    >>> await lookupLimiter.initialize()
    >>> result = await lookupLimiter.checkAndRecord(resolveClientIdentity(headers, remoteAddr))
    >>>
    >>> # Per-provider budgets for outbound calls
    >>> manager = RateLimiterManager.getInstance()
    >>> providerLimiter = SlidingWindowRateLimiter(
    ...     QueueConfig(maxRequests=15, windowSeconds=3600)
    ... )
    >>> await providerLimiter.initialize()
    >>> manager.registerRateLimiter("met-no", providerLimiter)
    >>> manager.bindQueue("met-no", "met-no")
    >>> await manager.checkAndRecord("met-no")
"""

from .identity import resolveClientIdentity
from .interface import RateLimiterInterface
from .manager import RateLimiterManager
from .sliding_window import QueueConfig, SlidingWindowRateLimiter
from .types import RateLimiterConfig, RateLimiterManagerConfig, RateLimitResult

__all__ = [
    "RateLimiterInterface",
    "RateLimiterManager",
    "SlidingWindowRateLimiter",
    "QueueConfig",
    "RateLimitResult",
    "RateLimiterConfig",
    "RateLimiterManagerConfig",
    "resolveClientIdentity",
]
