"""Per-store request pacing with token buckets."""

import asyncio
import time
from typing import Dict, Optional


class TokenBucket:
    """Token bucket that starts full and refills at a constant rate.

    Each acquire consumes one token; callers wait when the bucket is empty.
    """

    def __init__(self, rate: float, capacity: float):
        """
        Args:
            rate: Tokens per second (1.0 = 60 requests per minute)
            capacity: Burst capacity
        """
        self.rate = rate
        self.capacity = capacity
        self.tokens = capacity
        self.last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = min(self.capacity, self.tokens + (now - self.last_refill) * self.rate)
        self.last_refill = now

    async def acquire(self, tokens: float = 1.0) -> float:
        """Take tokens, sleeping until they are available.

        Returns:
            Seconds spent waiting
        """
        waited = 0.0
        async with self._lock:
            while True:
                self._refill()
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return waited
                wait_time = (tokens - self.tokens) / self.rate
                waited += wait_time
                await asyncio.sleep(wait_time)


class DomainRateLimiter:
    """Per-store rate limiter.

    Buckets are keyed by the store key matched in the hostname, so
    ``www.amazon.it`` and ``amazon.it`` share one budget.
    """

    # Requests per minute, keyed by a substring of the hostname
    STORE_LIMITS_RPM = {
        "amazon.": 6,
        "ebay.": 10,
        "aliexpress.": 4,
        "zalando.": 6,
        "backmarket.": 6,
        "mediaworld.": 6,
        "unieuro.": 6,
    }

    DEFAULT_RPM = 10

    def __init__(self, limits_rpm: Optional[Dict[str, int]] = None):
        self._limits = dict(self.STORE_LIMITS_RPM if limits_rpm is None else limits_rpm)
        self._buckets: Dict[str, TokenBucket] = {}

    def _key_and_rpm(self, hostname: str) -> tuple[str, int]:
        hostname = hostname.lower()
        for key, rpm in self._limits.items():
            if key in hostname:
                return key, rpm
        if hostname.startswith("www."):
            hostname = hostname[4:]
        return hostname, self.DEFAULT_RPM

    def _get_bucket(self, hostname: str) -> TokenBucket:
        key, rpm = self._key_and_rpm(hostname)
        if key not in self._buckets:
            # Small bursts: 10% of RPM, at least 2
            self._buckets[key] = TokenBucket(rate=rpm / 60.0, capacity=max(2.0, rpm / 10.0))
        return self._buckets[key]

    async def acquire(self, hostname: str) -> float:
        """Block until the store's budget allows one more request."""
        return await self._get_bucket(hostname).acquire()

    def set_custom_limit(self, key: str, rpm: int) -> None:
        """Override the limit for a hostname key, replacing any existing bucket."""
        self._limits[key] = rpm
        self._buckets.pop(key, None)

    def get_current_rate(self, hostname: str) -> float:
        """Current limit in requests per minute."""
        return self._get_bucket(hostname).rate * 60.0
