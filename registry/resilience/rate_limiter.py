"""
Per-jurisdiction token-bucket rate limiter.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from registry.errors import RateLimitTimeout
from registry.logging_utils import log_event

logger = logging.getLogger(__name__)

_EPSILON = 1e-9


@dataclass(frozen=True)
class RateLimitPolicy:
    requests_per_minute: int
    max_burst: int | None = None

    @property
    def capacity(self) -> float:
        return float(max(1, self.max_burst or self.requests_per_minute))

    @property
    def refill_per_second(self) -> float:
        return max(1, self.requests_per_minute) / 60.0


@dataclass
class _Bucket:
    tokens: float
    updated_at: float
    total_requests: int = 0
    total_wait_seconds: float = 0.0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class RateLimiter:
    """
    Token bucket per jurisdiction code.

    Buckets start full, so a burst of ``capacity`` requests goes out
    immediately and later requests are spaced at the refill rate. Waiters on
    the same code queue on that code's lock; different codes never block
    each other.
    """

    def __init__(
        self,
        *,
        default_policy: RateLimitPolicy,
        policies: Mapping[str, RateLimitPolicy] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._default_policy = default_policy
        self._policies: dict[str, RateLimitPolicy] = {
            code.lower(): policy for code, policy in (policies or {}).items()
        }
        self._buckets: dict[str, _Bucket] = {}
        self._clock = clock
        self._sleep = sleep

    def policy_for(self, code: str) -> RateLimitPolicy:
        return self._policies.get(code.lower(), self._default_policy)

    def set_policy(self, code: str, policy: RateLimitPolicy) -> None:
        key = code.lower()
        self._policies[key] = policy
        bucket = self._buckets.get(key)
        if bucket is not None:
            bucket.tokens = min(bucket.tokens, policy.capacity)

    def _bucket(self, code: str) -> _Bucket:
        key = code.lower()
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = _Bucket(tokens=self.policy_for(key).capacity, updated_at=self._clock())
            self._buckets[key] = bucket
        return bucket

    def _refill(self, code: str, bucket: _Bucket) -> None:
        policy = self.policy_for(code)
        now = self._clock()
        elapsed = max(0.0, now - bucket.updated_at)
        bucket.tokens = min(policy.capacity, bucket.tokens + elapsed * policy.refill_per_second)
        bucket.updated_at = now

    def _wait_for_token(self, code: str, bucket: _Bucket) -> float:
        missing = 1.0 - bucket.tokens
        if missing <= _EPSILON:
            return 0.0
        return missing / self.policy_for(code).refill_per_second

    async def acquire(self, code: str, *, timeout: float | None = None) -> float:
        """
        Take one token for ``code``, suspending until one is available.

        Returns the seconds spent waiting. With ``timeout`` set, raises
        ``RateLimitTimeout`` instead of waiting longer than that.
        """

        key = code.lower()
        bucket = self._bucket(key)
        waited = 0.0
        async with bucket.lock:
            self._refill(key, bucket)
            while True:
                wait_seconds = self._wait_for_token(key, bucket)
                if wait_seconds <= 0:
                    break
                if timeout is not None and waited + wait_seconds > timeout:
                    raise RateLimitTimeout(
                        f"Rate limit for '{key}' needs {wait_seconds:.2f}s, over the {timeout:.2f}s budget.",
                        source=key,
                        retry_after=wait_seconds,
                    )
                log_event(
                    logger,
                    logging.DEBUG,
                    "rate_limit_wait",
                    source=key,
                    wait_seconds=round(wait_seconds, 3),
                )
                await self._sleep(wait_seconds)
                waited += wait_seconds
                self._refill(key, bucket)

            bucket.tokens = max(0.0, bucket.tokens - 1.0)
            bucket.total_requests += 1
            bucket.total_wait_seconds += waited
        return waited

    def try_acquire(self, code: str) -> bool:
        """
        Take a token only if one is available right now.
        """

        key = code.lower()
        bucket = self._bucket(key)
        if bucket.lock.locked():
            return False
        self._refill(key, bucket)
        if self._wait_for_token(key, bucket) > 0:
            return False
        bucket.tokens = max(0.0, bucket.tokens - 1.0)
        bucket.total_requests += 1
        return True

    def available_tokens(self, code: str) -> float:
        key = code.lower()
        bucket = self._bucket(key)
        self._refill(key, bucket)
        return bucket.tokens

    def time_until_next_token(self, code: str) -> float:
        key = code.lower()
        bucket = self._bucket(key)
        self._refill(key, bucket)
        return self._wait_for_token(key, bucket)

    def reset(self, code: str | None = None) -> None:
        if code is None:
            self._buckets.clear()
            return
        self._buckets.pop(code.lower(), None)

    def stats(self) -> dict[str, dict[str, float]]:
        snapshot: dict[str, dict[str, float]] = {}
        for code, bucket in self._buckets.items():
            self._refill(code, bucket)
            policy = self.policy_for(code)
            snapshot[code] = {
                "tokens": round(bucket.tokens, 3),
                "capacity": policy.capacity,
                "requests_per_minute": policy.requests_per_minute,
                "total_requests": bucket.total_requests,
                "total_wait_seconds": round(bucket.total_wait_seconds, 3),
            }
        return snapshot
