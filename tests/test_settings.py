from __future__ import annotations

import os
import unittest
from unittest import mock

from registry.config import DEFAULT_RATE_LIMITS, ScraperSettings, get_scraper_settings


class TestScraperSettings(unittest.TestCase):
    def setUp(self) -> None:
        get_scraper_settings.cache_clear()
        self.addCleanup(get_scraper_settings.cache_clear)

    def test_defaults(self) -> None:
        settings = ScraperSettings()

        self.assertTrue(settings.enabled)
        self.assertEqual(settings.failure_threshold, 3)
        self.assertEqual(settings.cache_backend, "memory")
        self.assertEqual(settings.captcha_solver, "none")
        self.assertEqual(settings.rate_limit_overrides, DEFAULT_RATE_LIMITS)

    def test_environment_overrides(self) -> None:
        env = {
            "REGISTRY_SCRAPER_ENABLED": "false",
            "REGISTRY_SCRAPER_REQUESTS_PER_MINUTE": "12",
            "REGISTRY_SCRAPER_RATE_LIMIT_TIMEOUT": "2.5",
            "REGISTRY_SCRAPER_CACHE_BACKEND": "DATABASE",
            "REGISTRY_SCRAPER_HEADLESS": "no",
            "REGISTRY_SCRAPER_CAPTCHA_SOLVER": "openai",
        }
        with mock.patch.dict(os.environ, env):
            settings = get_scraper_settings()

        self.assertFalse(settings.enabled)
        self.assertEqual(settings.requests_per_minute, 12)
        self.assertEqual(settings.rate_limit_timeout_seconds, 2.5)
        self.assertEqual(settings.cache_backend, "database")
        self.assertFalse(settings.headless)
        self.assertEqual(settings.captcha_solver, "openai")

    def test_rate_limit_overrides_from_environment(self) -> None:
        env = {"REGISTRY_SCRAPER_RATE_LIMITS": "fl=45, TX=12, ny=fast, de=0, broken"}
        with mock.patch.dict(os.environ, env):
            settings = get_scraper_settings()

        self.assertEqual(settings.rate_limit_overrides["fl"], 45)
        self.assertEqual(settings.rate_limit_overrides["tx"], 12)
        self.assertEqual(settings.rate_limit_overrides["ny"], DEFAULT_RATE_LIMITS["ny"])
        self.assertEqual(settings.rate_limit_overrides["de"], DEFAULT_RATE_LIMITS["de"])
        self.assertNotIn("broken", settings.rate_limit_overrides)

    def test_invalid_values_fall_back_to_defaults(self) -> None:
        env = {
            "REGISTRY_SCRAPER_FAILURE_THRESHOLD": "many",
            "REGISTRY_SCRAPER_CACHE_BACKEND": "redis",
            "REGISTRY_SCRAPER_RATE_LIMIT_TIMEOUT": "",
            "REGISTRY_SCRAPER_REQUESTS_PER_MINUTE": "0",
        }
        with mock.patch.dict(os.environ, env):
            settings = get_scraper_settings()

        self.assertEqual(settings.failure_threshold, 3)
        self.assertEqual(settings.cache_backend, "memory")
        self.assertIsNone(settings.rate_limit_timeout_seconds)
        self.assertEqual(settings.requests_per_minute, 1)

    def test_delay_ranges_stay_ordered(self) -> None:
        env = {
            "REGISTRY_SCRAPER_TYPING_DELAY_MIN_MS": "200",
            "REGISTRY_SCRAPER_TYPING_DELAY_MAX_MS": "20",
            "REGISTRY_SCRAPER_HUMAN_PAUSE_MIN_MS": "-5",
        }
        with mock.patch.dict(os.environ, env):
            settings = get_scraper_settings()

        self.assertEqual(settings.typing_delay_min_ms, 200)
        self.assertEqual(settings.typing_delay_max_ms, 200)
        self.assertEqual(settings.human_pause_min_ms, 0)

    def test_settings_are_cached(self) -> None:
        self.assertIs(get_scraper_settings(), get_scraper_settings())


if __name__ == "__main__":
    unittest.main()
