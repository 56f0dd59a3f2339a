"""
Unit tests for the TokenPool used to bound in-flight pushes.
"""

import asyncio
import unittest
import sys
import os

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.token_pool import TokenPool


class TestTokenPool(unittest.IsolatedAsyncioTestCase):
    """Test TokenPool basic behavior."""

    async def test_acquire_release_cycles(self):
        """Test that acquire/release cycles correctly track tokens."""
        pool = TokenPool(3)

        self.assertEqual(pool.available(), 3)
        self.assertEqual(pool.in_flight(), 0)
        self.assertEqual(pool.capacity(), 3)

        await pool.acquire()
        await pool.acquire()
        await pool.acquire()
        self.assertEqual(pool.available(), 0)
        self.assertEqual(pool.in_flight(), 3)

        pool.release()
        self.assertEqual(pool.available(), 1)
        self.assertEqual(pool.in_flight(), 2)

        pool.release()
        pool.release()
        self.assertEqual(pool.available(), 3)
        self.assertEqual(pool.in_flight(), 0)
        self.assertEqual(pool.max_in_flight(), 3)

    async def test_acquire_waits_for_release(self):
        pool = TokenPool(1)
        await pool.acquire()

        waiter = asyncio.create_task(pool.acquire())
        await asyncio.sleep(0.01)
        self.assertFalse(waiter.done())

        pool.release()
        await asyncio.wait_for(waiter, timeout=1)
        self.assertEqual(pool.in_flight(), 1)

    async def test_concurrency_bound_under_load(self):
        """No more than capacity holders at any instant."""
        pool = TokenPool(4)
        holders = 0
        peak = 0

        async def unit():
            nonlocal holders, peak
            async with pool:
                holders += 1
                peak = max(peak, holders)
                await asyncio.sleep(0.005)
                holders -= 1

        await asyncio.gather(*(unit() for _ in range(40)))

        self.assertLessEqual(peak, 4)
        self.assertEqual(pool.max_in_flight(), peak)
        self.assertEqual(pool.available(), 4)
        self.assertEqual(pool.in_flight(), 0)

    async def test_released_when_body_raises(self):
        pool = TokenPool(2)

        with self.assertRaises(RuntimeError):
            async with pool:
                raise RuntimeError("boom")

        self.assertEqual(pool.available(), 2)

    async def test_released_when_cancelled(self):
        pool = TokenPool(1)

        async def hold():
            async with pool:
                await asyncio.sleep(10)

        task = asyncio.create_task(hold())
        await asyncio.sleep(0.01)
        self.assertEqual(pool.in_flight(), 1)

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        self.assertEqual(pool.in_flight(), 0)
        self.assertEqual(pool.available(), 1)

    async def test_extra_release_is_ignored(self):
        pool = TokenPool(2)
        with self.assertLogs("common.token_pool", level="WARNING"):
            pool.release()
        self.assertEqual(pool.available(), 2)

    async def test_reset_high_water(self):
        pool = TokenPool(3)
        await pool.acquire()
        await pool.acquire()
        pool.release()
        self.assertEqual(pool.max_in_flight(), 2)

        pool.reset_high_water()
        self.assertEqual(pool.max_in_flight(), 1)

    def test_rejects_non_positive_capacity(self):
        with self.assertRaises(ValueError):
            TokenPool(0)


if __name__ == '__main__':
    unittest.main()
