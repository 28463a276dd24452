import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from .interface import RateLimiterInterface
from .types import RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class QueueConfig:
    """
    Budget of one sliding window: ``maxRequests`` per ``windowSeconds``.

    Shared by every queue of a SlidingWindowRateLimiter, so one instance
    gives each client identity (or provider) the same budget.
    """

    maxRequests: int
    windowSeconds: int

    def __post_init__(self):
        if isinstance(self.maxRequests, bool) or not isinstance(self.maxRequests, int) or self.maxRequests <= 0:
            raise ValueError(f"maxRequests must be a positive integer, got {self.maxRequests!r}")
        if isinstance(self.windowSeconds, bool) or not isinstance(self.windowSeconds, (int, float)):
            raise ValueError(f"windowSeconds must be a number, got {self.windowSeconds!r}")
        if self.windowSeconds <= 0:
            raise ValueError(f"windowSeconds must be positive, got {self.windowSeconds}")


class SlidingWindowRateLimiter(RateLimiterInterface):
    """
    Sliding window rate limiter implementation.

    Tracks request timestamps per queue within a trailing window and
    admits a request only while fewer than ``maxRequests`` remain in it.
    All queues managed by this instance share the same configuration.

    Algorithm:
        1. Remove timestamps outside the current time window
        2. If remaining requests reach the limit, report how long until the
           oldest one leaves the window (rounded up) and do not record
        3. Otherwise record the current timestamp and admit

    Thread Safety:
        Uses asyncio.Lock per queue so two concurrent requests of the same
        queue can never both take the last free slot.

    Example:
        >>> # 5 lookups per minute per client
        >>> lookupLimiter = SlidingWindowRateLimiter(
        ...     QueueConfig(maxRequests=5, windowSeconds=60)
        ... )
        >>> await lookupLimiter.initialize()
        >>> result = await lookupLimiter.checkAndRecord("81.2.69.142")
        >>> if not result.allowed:
        ...     print(f"Try again in {result.retryAfter}s, dood!")
    """

    # Idle queues are dropped once this many are tracked
    CLEANUP_THRESHOLD = 1024

    def __init__(self, config: QueueConfig, clock: Callable[[], float] = time.time):
        """
        Initialize the sliding window rate limiter.

        Args:
            config: Rate limit configuration to apply to all queues
            clock: Wall-clock source in seconds, ``time.time`` by default
        """
        self._config = config
        self._clock = clock
        self._requestTimes: Dict[str, List[float]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._initialized = False

    @property
    def config(self) -> QueueConfig:
        return self._config

    async def initialize(self) -> None:
        """Mark the limiter ready. Queues appear on first use."""
        if self._initialized:
            return
        self._initialized = True
        logger.debug(f"Sliding window of {self._config.maxRequests} per {self._config.windowSeconds}s ready, dood!")

    async def destroy(self) -> None:
        """Forget every queue and its history."""
        self._requestTimes.clear()
        self._locks.clear()
        self._initialized = False
        logger.debug("Sliding window limiter destroyed, dood!")

    def _ensureQueue(self, queue: str) -> None:
        if queue not in self._requestTimes:
            if len(self._requestTimes) >= self.CLEANUP_THRESHOLD:
                self.cleanupIdle()
            self._requestTimes[queue] = []
            self._locks[queue] = asyncio.Lock()
            logger.debug(f"Tracking new queue {queue!r}")

    def _pruned(self, queue: str, currentTime: float) -> List[float]:
        return [
            reqTime for reqTime in self._requestTimes[queue] if currentTime - reqTime < self._config.windowSeconds
        ]

    async def checkAndRecord(self, queue: str = "default") -> RateLimitResult:
        """
        Admit or reject a request for the specified queue.

        Args:
            queue: Name of the queue to count the request under.
                   Auto-registered on first use.

        Returns:
            RateLimitResult: allowed, or limited with ``retryAfter`` seconds

        Example:
            >>> result = await limiter.checkAndRecord("81.2.69.142")
            >>> result.allowed, result.retryAfter
            (False, 42)
        """
        self._ensureQueue(queue)

        async with self._locks[queue]:
            currentTime = self._clock()

            # Remove old request times outside the window
            self._requestTimes[queue] = self._pruned(queue, currentTime)

            if len(self._requestTimes[queue]) >= self._config.maxRequests:
                oldestRequest = min(self._requestTimes[queue])
                waitTime = self._config.windowSeconds - (currentTime - oldestRequest)
                retryAfter = max(1, math.ceil(waitTime))
                logger.debug(f"Rate limit reached for queue '{queue}', retry in {retryAfter} seconds, dood!")
                return RateLimitResult.limited(retryAfter)

            self._requestTimes[queue].append(currentTime)
            return RateLimitResult.allow()

    def cleanupIdle(self) -> int:
        """
        Forget queues whose whole history already left the window.

        Returns:
            Number of dropped queues
        """
        currentTime = self._clock()
        idleQueues = [
            queue
            for queue in self._requestTimes
            if not self._locks[queue].locked() and not self._pruned(queue, currentTime)
        ]
        for queue in idleQueues:
            del self._requestTimes[queue]
            del self._locks[queue]

        if idleQueues:
            logger.debug(f"Dropped {len(idleQueues)} idle queues, dood!")
        return len(idleQueues)

    def getStats(self, queue: str = "default") -> Dict[str, Any]:
        """
        Window usage of queue: requestsInWindow, maxRequests, windowSeconds,
        resetTime (when the newest request leaves the window) and utilizationPercent.

        Raises:
            ValueError: Queue was never used
        """
        if queue not in self._requestTimes:
            raise ValueError(f"Queue '{queue}' does not exist")

        currentTime = self._clock()
        recentRequests = self._pruned(queue, currentTime)

        requestsInWindow = len(recentRequests)
        utilizationPercent = (requestsInWindow / self._config.maxRequests) * 100

        return {
            "requestsInWindow": requestsInWindow,
            "maxRequests": self._config.maxRequests,
            "windowSeconds": self._config.windowSeconds,
            "resetTime": max(recentRequests) + self._config.windowSeconds if recentRequests else currentTime,
            "utilizationPercent": utilizationPercent,
        }

    def listQueues(self) -> List[str]:
        return list(self._requestTimes)
