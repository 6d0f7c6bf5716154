"""
Token bucket rate limiter for upstream sources.

Keeps the sync polite towards parliamentary and registry servers.
"""

import asyncio
import time


class RateLimiter:
    """
    Token bucket: tokens refill at ``rate`` per second up to ``burst``,
    each request consumes one.

    Example:
        limiter = RateLimiter(rate=2.0, burst=5)
        await limiter.acquire()
    """

    def __init__(self, rate: float, burst: int = 1):
        if rate <= 0:
            raise ValueError("Rate must be positive")
        if burst < 1:
            raise ValueError("Burst must be at least 1")

        self.rate = rate
        self.burst = burst
        self.tokens = float(burst)
        self.last_update = time.monotonic()
        self.lock = asyncio.Lock()
        # Number of acquire() calls that had to wait
        self.hits = 0

    async def acquire(self) -> None:
        """Take one token, sleeping until one is available."""
        async with self.lock:
            now = time.monotonic()
            self.tokens = min(self.burst, self.tokens + (now - self.last_update) * self.rate)
            self.last_update = now

            if self.tokens >= 1:
                self.tokens -= 1
                return

            self.hits += 1
            await asyncio.sleep((1 - self.tokens) / self.rate)
            self.tokens = 0
            self.last_update = time.monotonic()

    def reset(self) -> None:
        """Refill the bucket and clear the hit counter."""
        self.tokens = float(self.burst)
        self.last_update = time.monotonic()
        self.hits = 0
