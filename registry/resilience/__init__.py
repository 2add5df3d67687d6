"""
Rate limiting, circuit breaking and result caching per jurisdiction.
"""

from registry.resilience.cache import CacheBackend, CacheEntry, MemoryCacheBackend, ScraperCache, make_cache_key
from registry.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerPolicy,
    CircuitInfo,
    CircuitState,
    CircuitStatus,
)
from registry.resilience.rate_limiter import RateLimitPolicy, RateLimiter

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "CircuitBreaker",
    "CircuitBreakerPolicy",
    "CircuitInfo",
    "CircuitState",
    "CircuitStatus",
    "MemoryCacheBackend",
    "RateLimitPolicy",
    "RateLimiter",
    "ScraperCache",
    "make_cache_key",
]
