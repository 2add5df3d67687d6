"""
Read-through result cache keyed by a canonical query signature.
"""

from __future__ import annotations

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from registry.logging_utils import log_event
from registry.types import ScrapedEntity, ScraperResult, SearchOptions

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    source: str
    query: str
    entities: tuple[ScrapedEntity, ...]
    total_found: int
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class CacheBackend(ABC):
    """
    Key-value persistence with per-entry expiry.
    """

    @abstractmethod
    async def get(self, key: str, *, now: datetime) -> CacheEntry | None:
        raise NotImplementedError

    @abstractmethod
    async def set(self, entry: CacheEntry) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def clear(self) -> int:
        raise NotImplementedError

    @abstractmethod
    async def purge_expired(self, *, now: datetime) -> int:
        raise NotImplementedError


class MemoryCacheBackend(CacheBackend):
    """
    In-process LRU store. Oldest-used entries are evicted past ``max_entries``.
    """

    def __init__(self, *, max_entries: int = 1000) -> None:
        self._max_entries = max(1, max_entries)
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    async def get(self, key: str, *, now: datetime) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(now):
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry

    async def set(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry
        self._entries.move_to_end(entry.key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    async def purge_expired(self, *, now: datetime) -> int:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


def make_cache_key(code: str, query: str, options: SearchOptions | Mapping[str, Any]) -> str:
    """
    SHA-256 of the canonical JSON of (jurisdiction, normalized query, options).
    """

    signature = options.cache_signature() if isinstance(options, SearchOptions) else dict(options)
    canonical = json.dumps(
        {
            "source": code.strip().lower(),
            "query": " ".join(query.lower().split()),
            "options": signature,
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ScraperCache:
    """
    Cache of successful search results.

    Lookups for ``status="active"`` use the shorter ``active_ttl`` since
    active-filing answers go stale fastest.
    """

    def __init__(
        self,
        *,
        backend: CacheBackend | None = None,
        default_ttl: float = 3600.0,
        active_ttl: float | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._backend = backend if backend is not None else MemoryCacheBackend()
        self._default_ttl = default_ttl
        self._active_ttl = active_ttl if active_ttl is not None else default_ttl
        self._clock = clock
        self._hits = 0
        self._misses = 0

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    def ttl_for(self, options: SearchOptions) -> float:
        return self._active_ttl if options.status == "active" else self._default_ttl

    async def get(self, code: str, query: str, options: SearchOptions) -> CacheEntry | None:
        key = make_cache_key(code, query, options)
        entry = await self._backend.get(key, now=self._clock())
        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        log_event(logger, logging.DEBUG, "cache_hit", source=code, key=key[:16])
        return entry

    async def set(
        self,
        code: str,
        query: str,
        result: ScraperResult,
        options: SearchOptions,
        *,
        ttl: float | None = None,
    ) -> CacheEntry:
        now = self._clock()
        entry = CacheEntry(
            key=make_cache_key(code, query, options),
            source=code.lower(),
            query=query,
            entities=tuple(result.entities),
            total_found=result.total_found,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl if ttl is not None else self.ttl_for(options)),
        )
        await self._backend.set(entry)
        return entry

    async def delete(self, code: str, query: str, options: SearchOptions) -> bool:
        return await self._backend.delete(make_cache_key(code, query, options))

    async def clear(self) -> int:
        return await self._backend.clear()

    async def cleanup(self) -> int:
        removed = await self._backend.purge_expired(now=self._clock())
        if removed:
            log_event(logger, logging.INFO, "cache_cleanup", removed=removed)
        return removed

    def stats(self) -> dict[str, float]:
        lookups = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups, 3) if lookups else 0.0,
        }
