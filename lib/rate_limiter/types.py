"""Type definitions for the rate limiter library."""

import sys
from dataclasses import dataclass
from typing import Any, Dict, NotRequired

if sys.version_info >= (3, 14):
    from typing import TypedDict
else:
    from typing_extensions import TypedDict


class RateLimiterConfig(TypedDict):
    """Configuration for a rate limiter instance.

    Attributes:
        type: The type of rate limiter (e.g., "slidingwindow")
        config: Configuration parameters specific to the rate limiter type
    """

    type: str
    config: Dict[str, Any]


class RateLimiterManagerConfig(TypedDict, closed=False):
    """Configuration for the rate limiter manager.

    Attributes:
        ratelimiters: Dictionary mapping rate limiter names to their configurations
        queues: Dictionary mapping queue names to rate limiter names
    """

    ratelimiters: NotRequired[Dict[str, RateLimiterConfig]]
    queues: NotRequired[Dict[str, str]]


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single checkAndRecord call.

    Attributes:
        allowed: Whether the request was admitted (and recorded)
        retryAfter: Whole seconds until a slot frees up, 0 when allowed
    """

    allowed: bool
    retryAfter: int = 0

    @classmethod
    def allow(cls) -> "RateLimitResult":
        return cls(allowed=True)

    @classmethod
    def limited(cls, retryAfter: int) -> "RateLimitResult":
        return cls(allowed=False, retryAfter=retryAfter)
