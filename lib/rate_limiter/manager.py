"""
Registry of outbound request budgets, dood!

Every upstream provider gets a queue; queues are bound to named limiters
built from the ``[ratelimiter]`` config section. Unbound queues share the
"default" limiter.
"""

import logging
from threading import RLock
from typing import Any, Dict, List, Optional

from .interface import RateLimiterInterface
from .sliding_window import QueueConfig, SlidingWindowRateLimiter
from .types import RateLimiterConfig, RateLimiterManagerConfig, RateLimitResult

logger = logging.getLogger(__name__)

DEFAULT_LIMITER_NAME = "default"
# Budget for queues nobody bound explicitly
DEFAULT_QUEUE_CONFIG = QueueConfig(maxRequests=10, windowSeconds=60)


def createRateLimiter(name: str, limiterConfig: RateLimiterConfig) -> RateLimiterInterface:
    """
    Build a limiter from its config entry.

    Raises:
        ValueError: Unknown ``type`` or bad parameters
    """
    limiterType = str(limiterConfig.get("type", "")).lower()
    match limiterType:
        case "slidingwindow":
            try:
                queueConfig = QueueConfig(**limiterConfig.get("config", {}))
            except TypeError as e:
                raise ValueError(f"Invalid config for rate limiter '{name}': {e}") from e
            return SlidingWindowRateLimiter(queueConfig)
        case _:
            raise ValueError(f"Unknown rate limiter type '{limiterConfig.get('type')}' for '{name}'")


class RateLimiterManager:
    """
    Process-wide singleton routing provider queues to their limiters.

    Provider clients call ``checkAndRecord(queue)`` before each outbound
    request and give up with ProviderRateLimitedError when it is refused.

    Example:
        >>> manager = RateLimiterManager.getInstance()
        >>> await manager.loadConfig({
        ...     "ratelimiters": {
        ...         "met-no": {"type": "SlidingWindow", "config": {"maxRequests": 15, "windowSeconds": 3600}},
        ...     },
        ...     "queues": {"met-no": "met-no"},
        ... })
        >>> (await manager.checkAndRecord("met-no")).allowed
        True
    """

    _instance: Optional["RateLimiterManager"] = None
    _lock = RLock()

    def __new__(cls) -> "RateLimiterManager":
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._rateLimiters = {}
                instance._queueMappings = {}
                instance._defaultLimiter = None
                cls._instance = instance
                logger.debug("RateLimiterManager created, dood!")
            return cls._instance

    # Set up in __new__, once per process
    _rateLimiters: Dict[str, RateLimiterInterface]
    _queueMappings: Dict[str, str]
    _defaultLimiter: Optional[str]

    @classmethod
    def getInstance(cls) -> "RateLimiterManager":
        return cls()

    async def loadConfig(self, config: RateLimiterManagerConfig) -> None:
        """
        Create limiters and queue bindings from config, dood!

        A "default" limiter is added when the config has none, so every
        provider queue is throttled even if nobody bound it. Limiters already
        registered under the same name are kept with their counters.

        Raises:
            ValueError: Unknown limiter type, bad parameters or a queue bound to a missing limiter
        """
        for name, limiterConfig in config.get("ratelimiters", {}).items():
            if name in self._rateLimiters:
                logger.debug(f"Rate limiter '{name}' already loaded, keeping it")
                continue
            limiter = createRateLimiter(name, limiterConfig)
            await limiter.initialize()
            self.registerRateLimiter(name, limiter)

        for queue, limiterName in config.get("queues", {}).items():
            self.bindQueue(queue, limiterName)

        if DEFAULT_LIMITER_NAME not in self._rateLimiters:
            fallback = SlidingWindowRateLimiter(DEFAULT_QUEUE_CONFIG)
            await fallback.initialize()
            self.registerRateLimiter(DEFAULT_LIMITER_NAME, fallback)
        self.setDefaultLimiter(DEFAULT_LIMITER_NAME)

        logger.info(
            f"Loaded {len(self._rateLimiters)} rate limiters for queues {sorted(self._queueMappings)}, dood!"
        )

    def registerRateLimiter(self, name: str, limiter: RateLimiterInterface) -> None:
        """
        Add a named limiter. The first one registered becomes the default.

        Raises:
            ValueError: Name already taken
        """
        if name in self._rateLimiters:
            raise ValueError(f"Rate limiter '{name}' is already registered")
        self._rateLimiters[name] = limiter
        if self._defaultLimiter is None:
            self._defaultLimiter = name
        logger.debug(f"Registered {type(limiter).__name__} as '{name}'")

    def setDefaultLimiter(self, name: str) -> None:
        if name not in self._rateLimiters:
            raise ValueError(f"Rate limiter '{name}' is not registered")
        self._defaultLimiter = name

    def bindQueue(self, queue: str, limiterName: str) -> None:
        """
        Route queue to limiterName.

        Raises:
            ValueError: limiterName is not registered
        """
        if limiterName not in self._rateLimiters:
            raise ValueError(f"Rate limiter '{limiterName}' is not registered")
        self._queueMappings[queue] = limiterName
        logger.debug(f"Queue '{queue}' -> rate limiter '{limiterName}'")

    def _limiterFor(self, queue: str) -> RateLimiterInterface:
        if not self._rateLimiters:
            raise RuntimeError("No rate limiters registered, call loadConfig() first, dood!")
        name = self._queueMappings.get(queue, self._defaultLimiter)
        if name is None:
            raise RuntimeError("No default rate limiter set, dood!")
        return self._rateLimiters[name]

    async def checkAndRecord(self, queue: str = DEFAULT_LIMITER_NAME) -> RateLimitResult:
        """
        Ask the limiter bound to queue for one request slot.

        Raises:
            RuntimeError: Nothing registered yet
        """
        return await self._limiterFor(queue).checkAndRecord(queue)

    def getStats(self, queue: str = DEFAULT_LIMITER_NAME) -> Dict[str, Any]:
        """
        Window statistics of queue.

        Raises:
            RuntimeError: Nothing registered yet
            ValueError: Queue has not been used yet
        """
        return self._limiterFor(queue).getStats(queue)

    def listRateLimiters(self) -> List[str]:
        return list(self._rateLimiters)

    def getQueueMappings(self) -> Dict[str, str]:
        return dict(self._queueMappings)

    def getDefaultLimiter(self) -> Optional[str]:
        return self._defaultLimiter

    async def destroy(self) -> None:
        """Tear down every limiter and forget all bindings. Call on shutdown."""
        for name, limiter in list(self._rateLimiters.items()):
            try:
                await limiter.destroy()
            except Exception as e:
                logger.error(f"Error destroying rate limiter '{name}': {e}")

        self._rateLimiters.clear()
        self._queueMappings.clear()
        self._defaultLimiter = None
        logger.debug("All rate limiters destroyed, dood!")
