from db.repositories.scraper_cache_repository import ScraperCacheRepository

__all__ = ["ScraperCacheRepository"]
