from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from registry.resilience import MemoryCacheBackend, ScraperCache, make_cache_key
from registry.types import ScrapedEntity, ScraperResult, SearchOptions


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def _result(*names: str) -> ScraperResult:
    entities = tuple(
        ScrapedEntity(name=name, jurisdiction="us_fl", source="fl", source_url="https://example.gov")
        for name in names
    )
    return ScraperResult(success=True, source="fl", query="acme", entities=entities, total_found=len(entities))


class TestCacheKey(unittest.TestCase):
    def test_query_and_code_are_normalized(self) -> None:
        options = SearchOptions()
        self.assertEqual(
            make_cache_key("FL", "  ACME Holdings ", options),
            make_cache_key("fl", "acme holdings", options),
        )

    def test_options_participate_in_key(self) -> None:
        base = make_cache_key("fl", "acme", SearchOptions())
        self.assertNotEqual(base, make_cache_key("fl", "acme", SearchOptions(status="active")))
        self.assertNotEqual(base, make_cache_key("fl", "acme", SearchOptions(limit=10)))
        self.assertEqual(base, make_cache_key("fl", "acme", SearchOptions(skip_cache=True)))

    def test_key_is_sha256_hex(self) -> None:
        key = make_cache_key("fl", "acme", SearchOptions())
        self.assertEqual(len(key), 64)
        int(key, 16)


class TestScraperCache(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.cache = ScraperCache(
            backend=MemoryCacheBackend(max_entries=2),
            default_ttl=3600,
            active_ttl=900,
            clock=self.clock,
        )

    async def test_hit_returns_stored_entities(self) -> None:
        options = SearchOptions()
        await self.cache.set("fl", "acme", _result("ACME LLC"), options)

        entry = await self.cache.get("fl", "ACME", options)

        self.assertIsNotNone(entry)
        self.assertEqual([entity.name for entity in entry.entities], ["ACME LLC"])
        self.assertEqual(entry.total_found, 1)
        self.assertEqual(self.cache.stats()["hits"], 1)

    async def test_entries_expire_after_ttl(self) -> None:
        options = SearchOptions()
        await self.cache.set("fl", "acme", _result("ACME LLC"), options)

        self.clock.now += timedelta(seconds=3600)

        self.assertIsNone(await self.cache.get("fl", "acme", options))
        self.assertEqual(self.cache.stats()["misses"], 1)

    async def test_active_filter_uses_shorter_ttl(self) -> None:
        options = SearchOptions(status="active")
        entry = await self.cache.set("fl", "acme", _result("ACME LLC"), options)

        self.assertEqual(entry.expires_at - entry.created_at, timedelta(seconds=900))

    async def test_least_recently_used_entry_is_evicted(self) -> None:
        options = SearchOptions()
        await self.cache.set("fl", "one", _result("ONE"), options)
        await self.cache.set("fl", "two", _result("TWO"), options)
        await self.cache.get("fl", "one", options)
        await self.cache.set("fl", "three", _result("THREE"), options)

        self.assertIsNotNone(await self.cache.get("fl", "one", options))
        self.assertIsNone(await self.cache.get("fl", "two", options))
        self.assertIsNotNone(await self.cache.get("fl", "three", options))

    async def test_empty_backend_is_kept(self) -> None:
        backend = MemoryCacheBackend(max_entries=2)

        self.assertIs(ScraperCache(backend=backend).backend, backend)

    async def test_cleanup_purges_expired_entries(self) -> None:
        await self.cache.set("fl", "old", _result("OLD"), SearchOptions(), ttl=10)
        await self.cache.set("fl", "new", _result("NEW"), SearchOptions(), ttl=1000)
        self.clock.now += timedelta(seconds=60)

        self.assertEqual(await self.cache.cleanup(), 1)
        self.assertEqual(len(self.cache.backend), 1)

    async def test_delete_and_clear(self) -> None:
        options = SearchOptions()
        await self.cache.set("fl", "acme", _result("ACME"), options)

        self.assertTrue(await self.cache.delete("fl", "acme", options))
        self.assertFalse(await self.cache.delete("fl", "acme", options))
        await self.cache.set("fl", "acme", _result("ACME"), options)
        self.assertEqual(await self.cache.clear(), 1)


if __name__ == "__main__":
    unittest.main()
