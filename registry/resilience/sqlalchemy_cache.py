"""
SQLAlchemy-backed cache store.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.scraper_cache_entry import ScraperCacheEntry
from db.repositories.scraper_cache_repository import ScraperCacheRepository
from registry.resilience.cache import CacheBackend, CacheEntry
from registry.types import ScrapedEntity


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entry(row: ScraperCacheEntry) -> CacheEntry:
    return CacheEntry(
        key=row.key,
        source=row.source,
        query=row.query,
        entities=tuple(ScrapedEntity.from_dict(item) for item in row.entities_json),
        total_found=row.total_found,
        created_at=_as_utc(row.created_at),
        expires_at=_as_utc(row.expires_at),
    )


class SQLAlchemyCacheBackend(CacheBackend):
    """
    Persist cache entries in ``scraper_cache_entries``.

    Session work is synchronous, so each call runs in a worker thread to keep
    the event loop free.
    """

    def __init__(self, *, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def _read(self, key: str, now: datetime) -> CacheEntry | None:
        with self._session_factory() as session:
            row = ScraperCacheRepository(session).get_live(key, now=now)
            return _to_entry(row) if row is not None else None

    def _write(self, entry: CacheEntry) -> None:
        with self._session_factory() as session:
            try:
                ScraperCacheRepository(session).upsert(
                    key=entry.key,
                    source=entry.source,
                    query=entry.query,
                    entities_json=[entity.to_dict() for entity in entry.entities],
                    total_found=entry.total_found,
                    expires_at=entry.expires_at,
                )
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise

    def _delete(self, operation: Callable[[ScraperCacheRepository], int]) -> int:
        with self._session_factory() as session:
            try:
                removed = operation(ScraperCacheRepository(session))
                session.commit()
                return removed
            except SQLAlchemyError:
                session.rollback()
                raise

    async def get(self, key: str, *, now: datetime) -> CacheEntry | None:
        return await asyncio.to_thread(self._read, key, now)

    async def set(self, entry: CacheEntry) -> None:
        await asyncio.to_thread(self._write, entry)

    async def delete(self, key: str) -> bool:
        removed = await asyncio.to_thread(self._delete, lambda repo: repo.delete(key))
        return removed > 0

    async def clear(self) -> int:
        return await asyncio.to_thread(self._delete, lambda repo: repo.delete_all())

    async def purge_expired(self, *, now: datetime) -> int:
        return await asyncio.to_thread(self._delete, lambda repo: repo.delete_expired(now=now))
