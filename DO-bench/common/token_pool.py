"""
Fixed-size token pool for bounding in-flight chunk pushes.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


class TokenPool:
    """A counting semaphore with precise in-flight and high-water tracking.

    Usage::

        async with pool:
            await push()

    The context manager gives the token back on every exit path, including
    cancellation.
    """

    def __init__(self, capacity: int):
        """Initialize the pool with the given number of tokens.

        Args:
            capacity: Maximum number of tokens that can be held at once
        """
        if capacity <= 0:
            raise ValueError(f"Token pool capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._in_flight = 0
        self._max_in_flight = 0

        logger.debug(f"Initialized TokenPool with {capacity} tokens")

    async def acquire(self) -> None:
        """Take a token, waiting until one is free."""
        await self._semaphore.acquire()
        self._in_flight += 1
        if self._in_flight > self._max_in_flight:
            self._max_in_flight = self._in_flight

    def release(self) -> None:
        """Give a token back to the pool."""
        if self._in_flight == 0:
            logger.warning("Attempted to release token when in_flight is 0")
            return
        self._in_flight -= 1
        self._semaphore.release()

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.release()

    def in_flight(self) -> int:
        """Number of tokens currently held."""
        return self._in_flight

    def available(self) -> int:
        """Number of tokens free right now."""
        return self._capacity - self._in_flight

    def capacity(self) -> int:
        return self._capacity

    def max_in_flight(self) -> int:
        """Highest number of tokens held at once since the last reset."""
        return self._max_in_flight

    def reset_high_water(self) -> None:
        self._max_in_flight = self._in_flight

    def __repr__(self) -> str:
        return (
            f"TokenPool(available={self.available()}/{self._capacity}, "
            f"in_flight={self._in_flight}, max_in_flight={self._max_in_flight})"
        )
