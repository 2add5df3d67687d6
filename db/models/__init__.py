"""
Model package exports.

Import every model here so metadata registration and Alembic autogeneration
work without extra imports.
"""

from db.models.scraper_cache_entry import ScraperCacheEntry

__all__ = [
    "ScraperCacheEntry",
]
