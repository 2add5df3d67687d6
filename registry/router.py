"""
Unified registry scraper: one entry point over every jurisdiction and tier.

Admission runs in a fixed order before any network action: configuration,
query validation, cache, circuit breaker, rate limiter. Every path returns a
``ScraperResult``; only cancellation propagates.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from registry.config import ScraperSettings, get_scraper_settings
from registry.engines.api_engine import ApiEngine
from registry.engines.base import RegistryEngine
from registry.engines.browser import BrowserScrapeEngine, build_captcha_solver
from registry.engines.http_engine import HttpScrapeEngine
from registry.errors import (
    ChallengeDetected,
    CircuitOpenError,
    ConfigurationError,
    InvalidQueryError,
    ParseError,
    RateLimitTimeout,
    RegistryScraperError,
    TransportError,
)
from registry.jurisdictions import JurisdictionConfig, JurisdictionStore, Tier, get_jurisdiction_store
from registry.logging_utils import log_event
from registry.resilience import (
    CacheBackend,
    CircuitBreaker,
    CircuitBreakerPolicy,
    MemoryCacheBackend,
    RateLimitPolicy,
    RateLimiter,
    ScraperCache,
)
from registry.types import MultiJurisdictionResult, ScrapedEntity, ScraperResult, SearchOptions

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 200
_UNSAFE_QUERY_CHARS = re.compile(r"[<>\"'`\\;(){}\[\]]")


def sanitize_query(query: str) -> str:
    """
    Strip markup and quoting characters, collapse whitespace and bound the length.
    """

    cleaned = re.sub(r"\s+", " ", _UNSAFE_QUERY_CHARS.sub("", query or "")).strip()
    if len(cleaned) < MIN_QUERY_LENGTH:
        raise InvalidQueryError(f"Search query must be at least {MIN_QUERY_LENGTH} characters.")
    if len(cleaned) > MAX_QUERY_LENGTH:
        raise InvalidQueryError(f"Search query must be at most {MAX_QUERY_LENGTH} characters.")
    return cleaned


def requests_per_minute_for(config: JurisdictionConfig, settings: ScraperSettings) -> int:
    override = settings.rate_limit_overrides.get(config.code)
    if override:
        return override
    if config.requests_per_minute:
        return config.requests_per_minute
    if config.api is not None and config.api.requests_per_minute:
        return config.api.requests_per_minute
    return settings.requests_per_minute


class UnifiedRegistryScraper:
    """
    Routes searches to the API, HTTP or browser engine for each jurisdiction.
    """

    def __init__(
        self,
        *,
        store: JurisdictionStore,
        settings: ScraperSettings,
        cache: ScraperCache,
        breaker: CircuitBreaker,
        rate_limiter: RateLimiter,
        api_engine: RegistryEngine,
        http_engine: RegistryEngine,
        browser_engine: RegistryEngine | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._store = store
        self._settings = settings
        self._cache = cache
        self._breaker = breaker
        self._rate_limiter = rate_limiter
        self._api_engine = api_engine
        self._http_engine = http_engine
        self._browser_engine = browser_engine
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: ScraperSettings | None = None,
        *,
        store: JurisdictionStore | None = None,
        cache_backend: CacheBackend | None = None,
        enable_browser: bool = True,
    ) -> UnifiedRegistryScraper:
        settings = settings or get_scraper_settings()
        store = store or get_jurisdiction_store()
        rate_limiter = RateLimiter(
            default_policy=RateLimitPolicy(settings.requests_per_minute, settings.rate_limit_burst),
            policies={
                config.code: RateLimitPolicy(requests_per_minute_for(config, settings), settings.rate_limit_burst)
                for config in store.all()
            },
        )
        breaker = CircuitBreaker(
            policy=CircuitBreakerPolicy(
                failure_threshold=settings.failure_threshold,
                reset_timeout=settings.reset_timeout_seconds,
                success_threshold=settings.success_threshold,
            )
        )
        cache = ScraperCache(
            backend=(
                cache_backend
                if cache_backend is not None
                else MemoryCacheBackend(max_entries=settings.cache_max_entries)
            ),
            default_ttl=settings.cache_ttl_seconds,
            active_ttl=settings.cache_active_ttl_seconds,
        )
        browser_engine = None
        if enable_browser:
            browser_engine = BrowserScrapeEngine(
                settings=settings,
                rate_limiter=rate_limiter,
                solver=build_captcha_solver(settings),
            )
        return cls(
            store=store,
            settings=settings,
            cache=cache,
            breaker=breaker,
            rate_limiter=rate_limiter,
            api_engine=ApiEngine(settings=settings, rate_limiter=rate_limiter),
            http_engine=HttpScrapeEngine(settings=settings, rate_limiter=rate_limiter),
            browser_engine=browser_engine,
        )

    @property
    def store(self) -> JurisdictionStore:
        return self._store

    @property
    def cache(self) -> ScraperCache:
        return self._cache

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int((self._clock() - started) * 1000))

    def _failure(
        self,
        code: str,
        query: str,
        error: BaseException,
        started: float,
        *,
        tier_used: int | None = None,
    ) -> ScraperResult:
        return ScraperResult.failure(
            source=code,
            query=query,
            error=error,
            duration_ms=self._elapsed_ms(started),
            tier_used=tier_used,
        )

    async def search(
        self,
        code: str,
        query: str,
        options: SearchOptions | Mapping[str, Any] | None = None,
    ) -> ScraperResult:
        started = self._clock()
        key = (code or "").strip().lower()

        try:
            opts = SearchOptions.coerce(options)
            config = self._store.get(key)
            if not self._settings.enabled:
                raise ConfigurationError("Registry scraping is disabled.", source=key)
            if not self._store.supports_search_type(key, opts.search_type):
                raise ConfigurationError(
                    f"{config.name} does not support '{opts.search_type}' searches.",
                    source=key,
                )
            cleaned = sanitize_query(query)
        except ConfigurationError as exc:
            log_event(logger, logging.INFO, "search_rejected", source=key, error=str(exc))
            return self._failure(key, query, exc, started)

        log_event(
            logger,
            logging.INFO,
            "search_started",
            source=key,
            tier=int(config.tier),
            search_type=opts.search_type,
            limit=opts.limit,
        )

        if not opts.skip_cache:
            cached = await self._cached_result(key, cleaned, opts, started, config)
            if cached is not None:
                return cached

        try:
            await self._breaker.check(key)
        except CircuitOpenError as exc:
            log_event(logger, logging.WARNING, "circuit_rejected", source=key, retry_after=round(exc.retry_after, 1))
            return self._failure(key, cleaned, exc, started)

        try:
            await self._rate_limiter.acquire(key, timeout=self._settings.rate_limit_timeout_seconds)
        except RateLimitTimeout as exc:
            await self._breaker.release(key)
            log_event(logger, logging.WARNING, "rate_limit_timeout", source=key, retry_after=round(exc.retry_after, 2))
            return self._failure(key, cleaned, exc, started)

        try:
            result = await self._dispatch(config, cleaned, opts)
        except asyncio.CancelledError:
            await self._breaker.release(key)
            raise
        except RegistryScraperError as exc:
            await self._record_error(key, exc)
            log_event(
                logger,
                logging.WARNING,
                "engine_failed",
                source=key,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return self._failure(key, cleaned, exc, started, tier_used=int(config.tier))
        except Exception as exc:
            wrapped = TransportError(f"{key}: unexpected engine error: {exc}", source=key)
            await self._breaker.record_failure(key, wrapped)
            log_event(logger, logging.ERROR, "engine_failed", source=key, error_type=type(exc).__name__, error=str(exc))
            return self._failure(key, cleaned, wrapped, started, tier_used=int(config.tier))

        await self._breaker.record_success(key)

        if opts.fetch_details and result.entities:
            result = await self._enrich(config, result)

        result = replace(result, duration_ms=self._elapsed_ms(started))
        result = await self._store_result(key, cleaned, result, opts)
        log_event(
            logger,
            logging.INFO,
            "search_completed",
            source=key,
            entities=len(result.entities),
            total_found=result.total_found,
            tier_used=result.tier_used,
            duration_ms=result.duration_ms,
        )
        return result

    async def _record_error(self, code: str, error: RegistryScraperError) -> None:
        if error.recordable:
            await self._breaker.record_failure(code, error)
        else:
            await self._breaker.release(code)

    async def _cached_result(
        self,
        code: str,
        query: str,
        options: SearchOptions,
        started: float,
        config: JurisdictionConfig,
    ) -> ScraperResult | None:
        try:
            entry = await self._cache.get(code, query, options)
        except Exception as exc:
            log_event(logger, logging.WARNING, "cache_read_failed", source=code, error=str(exc))
            return None
        if entry is None:
            return None
        log_event(logger, logging.INFO, "search_served_from_cache", source=code, entities=len(entry.entities))
        return ScraperResult(
            success=True,
            source=code,
            query=query,
            entities=entry.entities,
            total_found=entry.total_found,
            duration_ms=self._elapsed_ms(started),
            cached=True,
            tier_used=int(config.tier),
            scraped_at=entry.created_at,
        )

    async def _store_result(
        self,
        code: str,
        query: str,
        result: ScraperResult,
        options: SearchOptions,
    ) -> ScraperResult:
        try:
            await self._cache.set(code, query, result, options)
        except Exception as exc:
            log_event(logger, logging.WARNING, "cache_write_failed", source=code, error=str(exc))
            return replace(result, warnings=(*result.warnings, "Result could not be cached."))
        return result

    def _scrape_engine(self, config: JurisdictionConfig) -> RegistryEngine:
        """
        Engine for a scrape spec: the browser when scripts must run, plain HTTP otherwise.
        """

        needs_browser = config.tier >= Tier.SCRIPT_RENDERED or (
            config.scrape is not None and config.scrape.js_required
        )
        if not needs_browser:
            return self._http_engine
        if self._browser_engine is None:
            raise ConfigurationError(
                f"{config.name} needs browser automation but no browser engine is configured.",
                source=config.code,
            )
        return self._browser_engine

    async def _dispatch(
        self,
        config: JurisdictionConfig,
        query: str,
        options: SearchOptions,
    ) -> ScraperResult:
        if options.force_browser and config.scrape is not None:
            if self._browser_engine is None:
                raise ConfigurationError("Browser automation is not available.", source=config.code)
            return await self._browser_engine.search(config, query, options)

        if config.tier == Tier.OPEN_API:
            try:
                return await self._api_engine.search(config, query, options)
            except (TransportError, ParseError) as exc:
                if config.scrape is None:
                    raise
                fallback = self._scrape_engine(config)
                log_event(
                    logger,
                    logging.WARNING,
                    "tier_fallback",
                    source=config.code,
                    engine=fallback.name,
                    error=str(exc),
                )
                await fallback.throttle(config.code)
                result = await fallback.search(config, query, options)
                warning = f"Open-data API failed ({exc}); used {fallback.name} fallback."
                return replace(result, warnings=(warning, *result.warnings))

        if config.tier == Tier.STATIC_HTML:
            engine = self._scrape_engine(config)
            try:
                return await engine.search(config, query, options)
            except ChallengeDetected:
                if self._browser_engine is None or engine is self._browser_engine:
                    raise
                log_event(logger, logging.WARNING, "tier_escalation", source=config.code, engine="browser")
                await self._browser_engine.throttle(config.code)
                result = await self._browser_engine.search(config, query, options)
                return replace(result, warnings=("Escalated to browser after a challenge page.", *result.warnings))

        return await self._scrape_engine(config).search(config, query, options)

    async def _enrich(self, config: JurisdictionConfig, result: ScraperResult) -> ScraperResult:
        if config.scrape is None or config.scrape.detail_selectors is None:
            return replace(result, warnings=(*result.warnings, "Detail pages are not configured for this registry."))
        try:
            engine = self._scrape_engine(config)
        except ConfigurationError as exc:
            return replace(result, warnings=(*result.warnings, str(exc)))

        entities, errors = await engine.enrich(result.entities, config)
        for error in errors:
            if error.recordable:
                await self._breaker.record_failure(config.code, error)
        warnings = result.warnings
        if errors:
            warnings = (*warnings, f"{len(errors)} detail page(s) could not be fetched.")
        return replace(result, entities=tuple(entities), warnings=warnings)

    async def search_multiple(
        self,
        codes: Iterable[str],
        query: str,
        options: SearchOptions | Mapping[str, Any] | None = None,
        *,
        max_concurrent: int | None = None,
        continue_on_error: bool = True,
    ) -> MultiJurisdictionResult:
        """
        Search several jurisdictions concurrently and merge their entities.

        Entities are de-duplicated on normalized name plus entity number. With
        ``continue_on_error=False`` the first failure cancels searches still
        in flight.
        """

        started = self._clock()
        ordered: list[str] = []
        for code in codes:
            key = (code or "").strip().lower()
            if key and key not in ordered:
                ordered.append(key)

        semaphore = asyncio.Semaphore(max(1, max_concurrent or self._settings.multi_max_concurrent))

        async def run(code: str) -> tuple[str, ScraperResult]:
            async with semaphore:
                return code, await self.search(code, query, options)

        tasks = [asyncio.create_task(run(code)) for code in ordered]
        results: dict[str, ScraperResult] = {}
        try:
            for next_done in asyncio.as_completed(tasks):
                code, result = await next_done
                results[code] = result
                if not result.success and not continue_on_error:
                    break
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        ordered_results = {code: results[code] for code in ordered if code in results}
        seen: set[str] = set()
        entities: list[ScrapedEntity] = []
        for result in ordered_results.values():
            for entity in result.entities:
                dedupe_key = entity.dedupe_key()
                if dedupe_key in seen:
                    continue
                seen.add(dedupe_key)
                entities.append(entity)

        succeeded = tuple(code for code, result in ordered_results.items() if result.success)
        failed = tuple(code for code, result in ordered_results.items() if not result.success)
        log_event(
            logger,
            logging.INFO,
            "multi_search_completed",
            jurisdictions=len(ordered),
            succeeded=len(succeeded),
            failed=len(failed),
            entities=len(entities),
        )
        return MultiJurisdictionResult(
            results=ordered_results,
            entities=tuple(entities),
            total_found=sum(result.total_found for result in ordered_results.values() if result.success),
            succeeded=succeeded,
            failed=failed,
            duration_ms=self._elapsed_ms(started),
        )

    def health(self) -> dict[str, dict[str, Any]]:
        report: dict[str, dict[str, Any]] = {}
        for config in self._store.all():
            info = self._breaker.info(config.code)
            report[config.code] = {
                "name": config.name,
                "tier": int(config.tier),
                "circuit_state": info.state.value,
                "failures": info.failures,
                "time_until_retry": round(info.time_until_retry, 1),
                "available_tokens": round(self._rate_limiter.available_tokens(config.code), 2),
                "last_error": info.last_error,
            }
        return report

    def reset_circuit(self, code: str) -> None:
        self._breaker.reset(code)

    async def clear_cache(self) -> int:
        return await self._cache.clear()

    async def close(self) -> None:
        engines = [self._api_engine, self._http_engine]
        if self._browser_engine is not None:
            engines.append(self._browser_engine)
        for engine in engines:
            await engine.close()

    async def __aenter__(self) -> UnifiedRegistryScraper:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
