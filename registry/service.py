"""
registry/service.py

Inbound contract for the rest of the application: one call per search.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import lru_cache
from typing import Any

from registry.config import get_scraper_settings
from registry.resilience.cache import CacheBackend, MemoryCacheBackend
from registry.router import UnifiedRegistryScraper
from registry.search.person import PersonSearchResult, search_by_person
from registry.types import ScraperResult, SearchOptions


def build_cache_backend() -> CacheBackend:
    """
    Cache backend selected by ``REGISTRY_SCRAPER_CACHE_BACKEND``.
    """

    settings = get_scraper_settings()
    if settings.cache_backend == "database":
        from db.session import get_session_factory
        from registry.resilience.sqlalchemy_cache import SQLAlchemyCacheBackend

        return SQLAlchemyCacheBackend(session_factory=get_session_factory())
    return MemoryCacheBackend(max_entries=settings.cache_max_entries)


@lru_cache(maxsize=1)
def get_registry_scraper() -> UnifiedRegistryScraper:
    """
    Build and cache the process-wide registry scraper.
    """

    return UnifiedRegistryScraper.from_settings(
        get_scraper_settings(),
        cache_backend=build_cache_backend(),
    )


async def search_entity(
    code: str,
    query: str,
    options: SearchOptions | Mapping[str, Any] | None = None,
) -> ScraperResult:
    return await get_registry_scraper().search(code, query, options)


async def search_person(
    name: str,
    codes: Iterable[str] | None = None,
    *,
    limit: int = 25,
    fetch_details: bool = False,
) -> PersonSearchResult:
    return await search_by_person(get_registry_scraper(), name, codes, limit=limit, fetch_details=fetch_details)
