"""
Environment-driven runtime settings for registry scraping.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from db.config import load_env_files

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Requests per minute for registries that tolerate more (or less) than the default.
DEFAULT_RATE_LIMITS: dict[str, int] = {
    "fl": 30,
    "ny": 20,
    "ca": 15,
    "de": 10,
}

CACHE_BACKENDS = {"memory", "database"}
CAPTCHA_SOLVERS = {"none", "openai"}


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_optional_float_env(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


def _get_choice_env(name: str, default: str, allowed: set[str]) -> str:
    value = _get_str_env(name, default).lower()
    return value if value in allowed else default


def _get_rate_limits_env(name: str, default: dict[str, int]) -> dict[str, int]:
    """
    Parse ``code=rpm`` pairs such as ``fl=30,ny=20``; malformed pairs are skipped.
    """

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return dict(default)
    limits = dict(default)
    for pair in raw.split(","):
        code, sep, value = pair.partition("=")
        code = code.strip().lower()
        if not sep or not code:
            continue
        try:
            rpm = int(value)
        except ValueError:
            continue
        if rpm > 0:
            limits[code] = rpm
    return limits


@dataclass(frozen=True)
class ScraperSettings:
    """
    Runtime settings for the registry scraping engine.

    Every value has a conservative default and can be overridden through a
    ``REGISTRY_SCRAPER_*`` environment variable.
    """

    enabled: bool = True
    user_agent: str = DEFAULT_USER_AGENT

    requests_per_minute: int = 10
    rate_limit_burst: int | None = None
    rate_limit_timeout_seconds: float | None = None
    rate_limit_overrides: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_RATE_LIMITS))

    failure_threshold: int = 3
    reset_timeout_seconds: float = 60.0
    success_threshold: int = 1

    cache_backend: str = "memory"
    cache_ttl_seconds: float = 3600.0
    cache_active_ttl_seconds: float = 900.0
    cache_max_entries: int = 1000

    request_timeout_seconds: float = 30.0
    navigation_timeout_seconds: float = 30.0
    element_timeout_seconds: float = 10.0
    headless: bool = True

    detail_batch_size: int = 3
    detail_batch_delay_seconds: float = 1.0
    max_pages: int = 3
    typing_delay_min_ms: int = 50
    typing_delay_max_ms: int = 150
    human_pause_min_ms: int = 100
    human_pause_max_ms: int = 500

    multi_max_concurrent: int = 5

    captcha_solver: str = "none"
    captcha_model: str = "gpt-4o"


@lru_cache(maxsize=1)
def get_scraper_settings() -> ScraperSettings:
    """
    Return cached scraper settings from environment variables.
    """

    load_env_files()
    typing_min = max(0, _get_int_env("REGISTRY_SCRAPER_TYPING_DELAY_MIN_MS", 50))
    typing_max = max(typing_min, _get_int_env("REGISTRY_SCRAPER_TYPING_DELAY_MAX_MS", 150))
    pause_min = max(0, _get_int_env("REGISTRY_SCRAPER_HUMAN_PAUSE_MIN_MS", 100))
    pause_max = max(pause_min, _get_int_env("REGISTRY_SCRAPER_HUMAN_PAUSE_MAX_MS", 500))
    burst = _get_int_env("REGISTRY_SCRAPER_RATE_LIMIT_BURST", 0)
    return ScraperSettings(
        enabled=_get_bool_env("REGISTRY_SCRAPER_ENABLED", True),
        user_agent=_get_str_env("REGISTRY_SCRAPER_USER_AGENT", DEFAULT_USER_AGENT),
        requests_per_minute=max(1, _get_int_env("REGISTRY_SCRAPER_REQUESTS_PER_MINUTE", 10)),
        rate_limit_burst=burst if burst > 0 else None,
        rate_limit_timeout_seconds=_get_optional_float_env("REGISTRY_SCRAPER_RATE_LIMIT_TIMEOUT"),
        rate_limit_overrides=_get_rate_limits_env("REGISTRY_SCRAPER_RATE_LIMITS", DEFAULT_RATE_LIMITS),
        failure_threshold=max(1, _get_int_env("REGISTRY_SCRAPER_FAILURE_THRESHOLD", 3)),
        reset_timeout_seconds=max(
            1.0,
            _get_float_env("REGISTRY_SCRAPER_RESET_TIMEOUT_SECONDS", 60.0),
        ),
        success_threshold=max(1, _get_int_env("REGISTRY_SCRAPER_SUCCESS_THRESHOLD", 1)),
        cache_backend=_get_choice_env("REGISTRY_SCRAPER_CACHE_BACKEND", "memory", CACHE_BACKENDS),
        cache_ttl_seconds=max(1.0, _get_float_env("REGISTRY_SCRAPER_CACHE_TTL_SECONDS", 3600.0)),
        cache_active_ttl_seconds=max(
            1.0,
            _get_float_env("REGISTRY_SCRAPER_CACHE_ACTIVE_TTL_SECONDS", 900.0),
        ),
        cache_max_entries=max(1, _get_int_env("REGISTRY_SCRAPER_CACHE_MAX_ENTRIES", 1000)),
        request_timeout_seconds=max(
            1.0,
            _get_float_env("REGISTRY_SCRAPER_REQUEST_TIMEOUT_SECONDS", 30.0),
        ),
        navigation_timeout_seconds=max(
            1.0,
            _get_float_env("REGISTRY_SCRAPER_NAVIGATION_TIMEOUT_SECONDS", 30.0),
        ),
        element_timeout_seconds=max(
            1.0,
            _get_float_env("REGISTRY_SCRAPER_ELEMENT_TIMEOUT_SECONDS", 10.0),
        ),
        headless=_get_bool_env("REGISTRY_SCRAPER_HEADLESS", True),
        detail_batch_size=max(1, _get_int_env("REGISTRY_SCRAPER_DETAIL_BATCH_SIZE", 3)),
        detail_batch_delay_seconds=max(
            0.0,
            _get_float_env("REGISTRY_SCRAPER_DETAIL_BATCH_DELAY_SECONDS", 1.0),
        ),
        max_pages=max(1, _get_int_env("REGISTRY_SCRAPER_MAX_PAGES", 3)),
        typing_delay_min_ms=typing_min,
        typing_delay_max_ms=typing_max,
        human_pause_min_ms=pause_min,
        human_pause_max_ms=pause_max,
        multi_max_concurrent=max(1, _get_int_env("REGISTRY_SCRAPER_MULTI_MAX_CONCURRENT", 5)),
        captcha_solver=_get_choice_env("REGISTRY_SCRAPER_CAPTCHA_SOLVER", "none", CAPTCHA_SOLVERS),
        captcha_model=_get_str_env("REGISTRY_SCRAPER_CAPTCHA_MODEL", "gpt-4o"),
    )
