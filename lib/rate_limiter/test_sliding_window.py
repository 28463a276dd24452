"""
Tests for SlidingWindowRateLimiter implementation.

This module contains unit tests for the SlidingWindowRateLimiter
functionality, covering configuration validation, initialization,
admission decisions, retry-after calculation, statistics tracking,
per-queue atomicity and idle queue cleanup.
"""

import asyncio
import unittest

from .sliding_window import QueueConfig, SlidingWindowRateLimiter


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestQueueConfig(unittest.TestCase):
    """Test suite for QueueConfig dataclass validation."""

    def testValidConfig(self):
        """Test QueueConfig creation with valid parameters."""
        config = QueueConfig(maxRequests=5, windowSeconds=60)
        self.assertEqual(config.maxRequests, 5)
        self.assertEqual(config.windowSeconds, 60)

    def testInvalidMaxRequests(self):
        """Test QueueConfig validation rejects non-positive maxRequests."""
        with self.assertRaises(ValueError) as context:
            QueueConfig(maxRequests=0, windowSeconds=60)
        self.assertIn("maxRequests must be a positive integer", str(context.exception))

    def testInvalidWindowSeconds(self):
        """Test QueueConfig validation rejects non-positive windowSeconds."""
        with self.assertRaises(ValueError) as context:
            QueueConfig(maxRequests=10, windowSeconds=-30)
        self.assertIn("windowSeconds must be positive", str(context.exception))


class TestSlidingWindowRateLimiter(unittest.IsolatedAsyncioTestCase):
    """Test cases for SlidingWindowRateLimiter functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.clock = FakeClock()
        self.config = QueueConfig(maxRequests=5, windowSeconds=60)
        self.limiter = SlidingWindowRateLimiter(self.config, clock=self.clock)

    async def asyncSetUp(self):
        await self.limiter.initialize()

    async def asyncTearDown(self):
        await self.limiter.destroy()

    async def testFiveCallsWithinTenSecondsAllowed(self):
        """Test ceiling=5 admits 5 calls spread over 10 seconds."""
        for _ in range(5):
            result = await self.limiter.checkAndRecord("client")
            self.assertTrue(result.allowed)
            self.assertEqual(result.retryAfter, 0)
            self.clock.advance(2)

    async def testSixthCallWithinWindowLimited(self):
        """Test the 6th call inside the window is limited with positive retry-after."""
        for _ in range(5):
            await self.limiter.checkAndRecord("client")
            self.clock.advance(2)

        result = await self.limiter.checkAndRecord("client")

        self.assertFalse(result.allowed)
        self.assertGreater(result.retryAfter, 0)
        # First call at t=0, now t=10: 50 seconds left
        self.assertEqual(result.retryAfter, 50)

    async def testSixthCallAfterSixtyOneSecondsAllowed(self):
        """Test a call 61 seconds after the first one is admitted again."""
        for _ in range(5):
            await self.limiter.checkAndRecord("client")
            self.clock.advance(2)

        self.clock.now += 61 - 10
        result = await self.limiter.checkAndRecord("client")

        self.assertTrue(result.allowed)

    async def testRejectedAttemptIsNotRecorded(self):
        """Test limited calls do not extend the window."""
        for _ in range(5):
            await self.limiter.checkAndRecord("client")

        for _ in range(10):
            self.assertFalse((await self.limiter.checkAndRecord("client")).allowed)
        self.assertEqual(self.limiter.getStats("client")["requestsInWindow"], 5)

        self.clock.advance(60)
        self.assertTrue((await self.limiter.checkAndRecord("client")).allowed)

    async def testRetryAfterRoundedUp(self):
        """Test retry-after is rounded up to whole seconds."""
        limiter = SlidingWindowRateLimiter(QueueConfig(maxRequests=1, windowSeconds=60), clock=self.clock)
        await limiter.checkAndRecord("client")
        self.clock.advance(10.2)

        result = await limiter.checkAndRecord("client")

        self.assertFalse(result.allowed)
        self.assertEqual(result.retryAfter, 50)

    async def testQueuesAreIndependent(self):
        """Test one identity exhausting its budget does not affect another."""
        for _ in range(5):
            await self.limiter.checkAndRecord("first")

        self.assertFalse((await self.limiter.checkAndRecord("first")).allowed)
        self.assertTrue((await self.limiter.checkAndRecord("second")).allowed)
        self.assertEqual(sorted(self.limiter.listQueues()), ["first", "second"])

    async def testConcurrentCallsNeverExceedCeiling(self):
        """Test concurrent callers of one identity get exactly maxRequests slots."""
        results = await asyncio.gather(*(self.limiter.checkAndRecord("client") for _ in range(20)))

        self.assertEqual(sum(1 for result in results if result.allowed), 5)
        self.assertEqual(self.limiter.getStats("client")["requestsInWindow"], 5)

    async def testGetStats(self):
        """Test statistics of a queue."""
        await self.limiter.checkAndRecord("client")
        await self.limiter.checkAndRecord("client")

        stats = self.limiter.getStats("client")
        self.assertEqual(stats["requestsInWindow"], 2)
        self.assertEqual(stats["maxRequests"], 5)
        self.assertEqual(stats["windowSeconds"], 60)
        self.assertAlmostEqual(stats["utilizationPercent"], 40.0)
        self.assertEqual(stats["resetTime"], self.clock.now + 60)

    def testGetStatsUnknownQueue(self):
        """Test statistics of an unknown queue raise."""
        with self.assertRaises(ValueError):
            self.limiter.getStats("nobody")

    async def testCleanupIdleQueues(self):
        """Test queues with an empty window are forgotten."""
        await self.limiter.checkAndRecord("old")
        self.clock.advance(30)
        await self.limiter.checkAndRecord("recent")
        self.clock.advance(45)

        self.assertEqual(self.limiter.cleanupIdle(), 1)
        self.assertEqual(self.limiter.listQueues(), ["recent"])

    async def testInitializeTwice(self):
        """Test repeated initialization is harmless."""
        await self.limiter.checkAndRecord("q")
        await self.limiter.initialize()

        self.assertEqual(self.limiter.getStats("q")["requestsInWindow"], 1)


if __name__ == "__main__":
    unittest.main()
