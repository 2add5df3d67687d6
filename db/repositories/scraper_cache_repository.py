"""
db/repositories/scraper_cache_repository.py

Persistence helpers for cached registry search results.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models.scraper_cache_entry import ScraperCacheEntry


class ScraperCacheRepository:
    """
    Repository for cache rows. Callers own the transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_live(self, key: str, *, now: datetime) -> ScraperCacheEntry | None:
        """
        Return the row for ``key`` unless it has expired.
        """

        stmt = select(ScraperCacheEntry).where(
            ScraperCacheEntry.key == key,
            ScraperCacheEntry.expires_at > now,
        )
        return self._session.execute(stmt).scalars().first()

    def upsert(
        self,
        *,
        key: str,
        source: str,
        query: str,
        entities_json: list[dict[str, Any]],
        total_found: int,
        expires_at: datetime,
    ) -> ScraperCacheEntry:
        existing = self._session.get(ScraperCacheEntry, key)
        if existing is None:
            existing = ScraperCacheEntry(
                key=key,
                source=source,
                query=query[:200],
                entities_json=entities_json,
                total_found=total_found,
                expires_at=expires_at,
            )
            self._session.add(existing)
        else:
            existing.entities_json = entities_json
            existing.total_found = total_found
            existing.expires_at = expires_at
        self._session.flush()
        return existing

    def delete(self, key: str) -> int:
        result = self._session.execute(delete(ScraperCacheEntry).where(ScraperCacheEntry.key == key))
        return int(result.rowcount or 0)

    def delete_all(self) -> int:
        result = self._session.execute(delete(ScraperCacheEntry))
        return int(result.rowcount or 0)

    def delete_expired(self, *, now: datetime) -> int:
        result = self._session.execute(
            delete(ScraperCacheEntry).where(ScraperCacheEntry.expires_at <= now)
        )
        return int(result.rowcount or 0)
