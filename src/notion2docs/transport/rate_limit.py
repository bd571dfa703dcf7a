"""Client-side request pacing.

Notion allows an average of three requests per second per integration and
the Docs API enforces per-minute write quotas, so every transport owns a
token bucket.  :class:`TokenBucket` blocks the calling thread;
:class:`AsyncTokenBucket` awaits.  Both share the refill arithmetic in
:class:`_Bucket`.
"""

from __future__ import annotations

import asyncio
import threading
import time


class _Bucket:
    """Refill state shared by the sync and async buckets."""

    __slots__ = ("burst", "last_refill", "rate", "tokens")

    def __init__(self, rate_rps: float, burst: int) -> None:
        if rate_rps <= 0:
            raise ValueError(f"rate_rps must be > 0, got {rate_rps}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")
        self.rate = rate_rps
        self.burst = burst
        self.tokens = float(burst)
        self.last_refill = time.monotonic()

    def take(self, tokens: int) -> float:
        """Take *tokens* and return how long the caller must wait for them."""
        now = time.monotonic()
        self.tokens = min(self.burst, self.tokens + (now - self.last_refill) * self.rate)
        self.last_refill = now
        if self.tokens >= tokens:
            self.tokens -= tokens
            return 0.0
        wait = (tokens - self.tokens) / self.rate
        self.tokens = 0.0
        return wait


class TokenBucket(_Bucket):
    """Thread-safe bucket; :meth:`acquire` sleeps when tokens run out."""

    __slots__ = ("_lock",)

    def __init__(self, rate_rps: float, burst: int = 10) -> None:
        super().__init__(rate_rps, burst)
        self._lock = threading.Lock()

    def acquire(self, tokens: int = 1) -> float:
        """Take *tokens*, sleeping as needed.  Returns the seconds slept."""
        with self._lock:
            wait = self.take(tokens)
        if wait > 0:
            time.sleep(wait)
        return wait


class AsyncTokenBucket(_Bucket):
    """Coroutine-safe bucket; :meth:`acquire` awaits when tokens run out."""

    __slots__ = ("_lock",)

    def __init__(self, rate_rps: float, burst: int = 10) -> None:
        super().__init__(rate_rps, burst)
        self._lock = asyncio.Lock()

    async def acquire(self, tokens: int = 1) -> float:
        """Take *tokens*, awaiting as needed.  Returns the seconds waited."""
        async with self._lock:
            wait = self.take(tokens)
        if wait > 0:
            await asyncio.sleep(wait)
        return wait
