"""Unit tests for portal.core.ratelimit: fixed window per key, strict expiry, sweep."""

import asyncio
import unittest

from portal.core.ratelimit import RateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiterHit(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.limiter = RateLimiter(clock=self.clock)

    def test_limit_one_blocks_second_call_until_window_passes(self) -> None:
        self.assertTrue(self.limiter.hit("k", limit=1, window_seconds=60))
        self.assertFalse(self.limiter.hit("k", limit=1, window_seconds=60))
        self.clock.now += 61
        self.assertTrue(self.limiter.hit("k", limit=1, window_seconds=60))

    def test_default_limit_allows_five_then_blocks(self) -> None:
        results = [self.limiter.hit("1.2.3.4") for _ in range(6)]
        self.assertEqual(results, [True] * 5 + [False])

    def test_keys_are_independent(self) -> None:
        self.assertTrue(self.limiter.hit("a", limit=1))
        self.assertFalse(self.limiter.hit("a", limit=1))
        self.assertTrue(self.limiter.hit("b", limit=1))

    def test_expiry_is_strict(self) -> None:
        self.limiter.hit("k", limit=1, window_seconds=60)
        # Exactly at expires_at the window is still live.
        self.clock.now += 60
        self.assertFalse(self.limiter.hit("k", limit=1, window_seconds=60))
        self.clock.now += 0.001
        self.assertTrue(self.limiter.hit("k", limit=1, window_seconds=60))

    def test_blocked_calls_do_not_extend_window(self) -> None:
        self.limiter.hit("k", limit=1, window_seconds=10)
        self.clock.now += 5
        self.assertFalse(self.limiter.hit("k", limit=1, window_seconds=10))
        self.clock.now += 5.5
        self.assertTrue(self.limiter.hit("k", limit=1, window_seconds=10))


class TestRateLimiterSweep(unittest.TestCase):
    def test_sweep_removes_only_expired(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)
        limiter.hit("old", window_seconds=10)
        clock.now += 20
        limiter.hit("new", window_seconds=10)
        self.assertEqual(len(limiter), 2)
        self.assertEqual(limiter.sweep(), 1)
        self.assertEqual(len(limiter), 1)
        self.assertFalse(limiter.hit("new", limit=1, window_seconds=10))

    def test_run_sweeper_is_cancellable(self) -> None:
        limiter = RateLimiter()

        async def run() -> None:
            task = asyncio.create_task(limiter.run_sweeper(0.01))
            await asyncio.sleep(0.03)
            task.cancel()
            with self.assertRaises(asyncio.CancelledError):
                await task

        asyncio.run(run())
