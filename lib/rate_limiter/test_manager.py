"""
Tests for RateLimiterManager implementation.

This module contains unit tests for the RateLimiterManager
functionality, covering singleton pattern, rate limiter registration,
queue mapping, configuration loading and error handling scenarios.
"""

import unittest

from .interface import RateLimiterInterface
from .manager import RateLimiterManager
from .sliding_window import QueueConfig, SlidingWindowRateLimiter
from .types import RateLimitResult


class MockRateLimiter(RateLimiterInterface):
    """Mock rate limiter for testing."""

    def __init__(self, allowed: bool = True):
        self.allowed = allowed
        self.initialized = False
        self.destroyed = False
        self.checkedQueues = []

    async def initialize(self):
        self.initialized = True

    async def destroy(self):
        self.destroyed = True

    async def checkAndRecord(self, queue="default"):
        self.checkedQueues.append(queue)
        return RateLimitResult.allow() if self.allowed else RateLimitResult.limited(30)

    def getStats(self, queue="default"):
        return {"requestsInWindow": len(self.checkedQueues)}

    def listQueues(self):
        return list(set(self.checkedQueues))


class TestRateLimiterManagerSingleton(unittest.TestCase):
    """Test suite for RateLimiterManager singleton pattern."""

    def testSingletonPattern(self):
        """Test that getInstance returns the same instance."""
        manager1 = RateLimiterManager.getInstance()
        manager2 = RateLimiterManager.getInstance()
        manager3 = RateLimiterManager()

        self.assertIs(manager1, manager2)
        self.assertIs(manager1, manager3)

    def testThreadSafety(self):
        """Test singleton pattern is thread-safe."""
        import threading

        instances = []

        def getInstance():
            instances.append(RateLimiterManager.getInstance())

        threads = [threading.Thread(target=getInstance) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for instance in instances[1:]:
            self.assertIs(instance, instances[0])


class TestRateLimiterManager(unittest.IsolatedAsyncioTestCase):
    """Test cases for RateLimiterManager functionality."""

    async def asyncSetUp(self):
        """Set up test fixtures."""
        self.manager = RateLimiterManager.getInstance()
        await self.manager.destroy()

        self.mockLimiter1 = MockRateLimiter()
        self.mockLimiter2 = MockRateLimiter(allowed=False)

    async def asyncTearDown(self):
        """Clean up after tests."""
        await self.manager.destroy()

    async def testRegisterRateLimiter(self):
        """Test rate limiter registration sets the first one as default."""
        self.manager.registerRateLimiter("limiter1", self.mockLimiter1)
        self.manager.registerRateLimiter("limiter2", self.mockLimiter2)

        self.assertEqual(self.manager.listRateLimiters(), ["limiter1", "limiter2"])
        self.assertEqual(self.manager.getDefaultLimiter(), "limiter1")

    def testRegisterDuplicateLimiter(self):
        """Test error when registering duplicate limiter name."""
        self.manager.registerRateLimiter("duplicate", self.mockLimiter1)

        with self.assertRaises(ValueError) as context:
            self.manager.registerRateLimiter("duplicate", self.mockLimiter2)
        self.assertIn("already registered", str(context.exception))

    def testBindQueueUnknownLimiter(self):
        """Test binding to an unregistered limiter fails."""
        with self.assertRaises(ValueError):
            self.manager.bindQueue("met-no", "missing")

    async def testCheckAndRecordRoutesByQueue(self):
        """Test queues are routed to their bound limiter, others to default."""
        self.manager.registerRateLimiter("limiter1", self.mockLimiter1)
        self.manager.registerRateLimiter("limiter2", self.mockLimiter2)
        self.manager.bindQueue("met-no", "limiter2")

        limited = await self.manager.checkAndRecord("met-no")
        allowed = await self.manager.checkAndRecord("open-meteo")

        self.assertFalse(limited.allowed)
        self.assertEqual(limited.retryAfter, 30)
        self.assertTrue(allowed.allowed)
        self.assertEqual(self.mockLimiter2.checkedQueues, ["met-no"])
        self.assertEqual(self.mockLimiter1.checkedQueues, ["open-meteo"])
        self.assertEqual(self.manager.getQueueMappings(), {"met-no": "limiter2"})

    async def testCheckAndRecordWithoutLimiters(self):
        """Test an empty manager refuses to route."""
        with self.assertRaises(RuntimeError):
            await self.manager.checkAndRecord("open-meteo")

    async def testLoadConfig(self):
        """Test limiters and queues are created from configuration."""
        await self.manager.loadConfig(
            {
                "ratelimiters": {
                    "met-no": {"type": "SlidingWindow", "config": {"maxRequests": 2, "windowSeconds": 3600}},
                },
                "queues": {"met-no": "met-no"},
            }
        )

        self.assertIn("default", self.manager.listRateLimiters())
        self.assertEqual(self.manager.getDefaultLimiter(), "default")

        self.assertTrue((await self.manager.checkAndRecord("met-no")).allowed)
        self.assertTrue((await self.manager.checkAndRecord("met-no")).allowed)
        self.assertFalse((await self.manager.checkAndRecord("met-no")).allowed)

        stats = self.manager.getStats("met-no")
        self.assertEqual(stats["maxRequests"], 2)

    async def testLoadConfigTwiceKeepsLimiters(self):
        """Test a second load reuses registered limiters and their counters."""
        config = {
            "ratelimiters": {
                "met-no": {"type": "SlidingWindow", "config": {"maxRequests": 1, "windowSeconds": 3600}},
            },
            "queues": {"met-no": "met-no"},
        }
        await self.manager.loadConfig(config)
        self.assertTrue((await self.manager.checkAndRecord("met-no")).allowed)

        await self.manager.loadConfig(config)

        self.assertEqual(sorted(self.manager.listRateLimiters()), ["default", "met-no"])
        self.assertFalse((await self.manager.checkAndRecord("met-no")).allowed)

    async def testLoadConfigUnknownType(self):
        """Test unknown limiter types are rejected."""
        with self.assertRaises(ValueError):
            await self.manager.loadConfig({"ratelimiters": {"x": {"type": "TokenBucket", "config": {}}}})

    async def testLoadConfigBadParameters(self):
        """Test misspelled limiter parameters are rejected."""
        with self.assertRaises(ValueError):
            await self.manager.loadConfig(
                {"ratelimiters": {"met-no": {"type": "SlidingWindow", "config": {"maxRequest": 15}}}}
            )

    async def testUnboundQueueUsesDefault(self):
        """Test queues without a binding share the default limiter."""
        await self.manager.loadConfig({})

        self.assertEqual(self.manager.listRateLimiters(), ["default"])
        self.assertTrue((await self.manager.checkAndRecord("open-meteo")).allowed)
        self.assertEqual(self.manager.getStats("open-meteo")["maxRequests"], 10)

    async def testDestroyCallsLimiters(self):
        """Test destroy tears down every limiter and mapping."""
        realLimiter = SlidingWindowRateLimiter(QueueConfig(maxRequests=5, windowSeconds=10))
        self.manager.registerRateLimiter("mock", self.mockLimiter1)
        self.manager.registerRateLimiter("real", realLimiter)
        self.manager.bindQueue("q", "real")

        await self.manager.destroy()

        self.assertTrue(self.mockLimiter1.destroyed)
        self.assertEqual(self.manager.listRateLimiters(), [])
        self.assertEqual(self.manager.getQueueMappings(), {})
        self.assertIsNone(self.manager.getDefaultLimiter())


if __name__ == "__main__":
    unittest.main()
