"""Rate limiter contract, dood!"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .types import RateLimitResult


class RateLimiterInterface(ABC):
    """
    Base class for rate limiters.

    A queue is whatever requests are counted under: a client identity on the
    public lookup path, or a provider name for outbound traffic.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the limiter, called once before first use."""
        pass

    @abstractmethod
    async def destroy(self) -> None:
        """Release state, called on shutdown."""
        pass

    @abstractmethod
    async def checkAndRecord(self, queue: str = "default") -> RateLimitResult:
        """
        Admit one request for queue and count it, or refuse without counting.

        Never waits for a slot to free up. Unknown queues start empty.

        Returns:
            RateLimitResult: allowed, or limited with whole seconds until retry
        """
        pass

    @abstractmethod
    def getStats(self, queue: str = "default") -> Dict[str, Any]:
        """
        Usage of queue (requestsInWindow, maxRequests, windowSeconds, ...).

        Raises:
            ValueError: Queue was never used
        """
        pass

    @abstractmethod
    def listQueues(self) -> List[str]:
        """
        Queues seen so far.

        Example:
            >>> limiter.listQueues()
            ['open-meteo', 'met-no', '81.2.69.142']
        """
        pass
