"""
Base abstractions shared by the execution engines.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import httpx

from registry.config import ScraperSettings
from registry.errors import ParseError, RegistryScraperError, TransportError
from registry.jurisdictions.models import JurisdictionConfig
from registry.logging_utils import log_event
from registry.resilience.rate_limiter import RateLimiter
from registry.types import EntityDetails, ScrapedEntity, ScraperResult, SearchOptions, merge_entity_details

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class RegistryEngine(ABC):
    """
    One execution strategy (API, static HTML, browser) for registry searches.

    The router acquires the rate-limit token for the first request of a
    search; engines call ``throttle`` before every further request they make
    (pagination, detail pages).
    """

    name: str = "engine"

    def __init__(self, *, settings: ScraperSettings, rate_limiter: RateLimiter) -> None:
        self.settings = settings
        self.rate_limiter = rate_limiter

    async def throttle(self, code: str) -> None:
        await self.rate_limiter.acquire(code, timeout=self.settings.rate_limit_timeout_seconds)

    def request_timeout(self, options: SearchOptions | None = None) -> float:
        if options is not None and options.timeout is not None:
            return options.timeout
        return self.settings.request_timeout_seconds

    @abstractmethod
    async def search(
        self,
        config: JurisdictionConfig,
        query: str,
        options: SearchOptions,
    ) -> ScraperResult:
        """
        Run one search and return a successful result, or raise a registry error.
        """

    async def fetch_detail(self, url: str, config: JurisdictionConfig) -> EntityDetails:
        raise NotImplementedError(f"{self.name} engine does not fetch detail pages")

    async def _enrich_one(self, entity: ScrapedEntity, config: JurisdictionConfig) -> ScrapedEntity:
        await self.throttle(config.code)
        details = await self.fetch_detail(entity.source_url, config)
        return merge_entity_details(entity, details)

    async def enrich(
        self,
        entities: Sequence[ScrapedEntity],
        config: JurisdictionConfig,
    ) -> tuple[list[ScrapedEntity], list[RegistryScraperError]]:
        """
        Fetch detail pages in small concurrent groups with a pause between groups.

        A failed lookup keeps the search-row entity in place; the errors are
        returned so the caller can record them against the breaker.
        """

        batch_size = self.settings.detail_batch_size
        enriched: list[ScrapedEntity] = []
        errors: list[RegistryScraperError] = []
        groups = [entities[start : start + batch_size] for start in range(0, len(entities), batch_size)]
        for index, group in enumerate(groups):
            outcomes = await asyncio.gather(
                *(self._enrich_one(entity, config) for entity in group),
                return_exceptions=True,
            )
            for entity, outcome in zip(group, outcomes):
                if isinstance(outcome, ScrapedEntity):
                    enriched.append(outcome)
                    continue
                if isinstance(outcome, RegistryScraperError):
                    errors.append(outcome)
                elif isinstance(outcome, Exception):
                    errors.append(ParseError(f"{config.code}: detail page failed: {outcome}", source=config.code))
                else:
                    raise outcome
                log_event(
                    logger,
                    logging.WARNING,
                    "detail_enrichment_failed",
                    source=config.code,
                    entity=entity.name,
                    url=entity.source_url,
                    error=str(outcome),
                )
                enriched.append(entity)
            if index < len(groups) - 1 and self.settings.detail_batch_delay_seconds > 0:
                await asyncio.sleep(self.settings.detail_batch_delay_seconds)
        return enriched, errors

    async def close(self) -> None:
        return None


class HttpEngine(RegistryEngine):
    """
    Engine backed by a shared ``httpx.AsyncClient``. No internal retries.
    """

    def __init__(
        self,
        *,
        settings: ScraperSettings,
        rate_limiter: RateLimiter,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(settings=settings, rate_limiter=rate_limiter)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=settings.request_timeout_seconds,
        )
        self.default_headers = {"User-Agent": settings.user_agent, **BROWSER_HEADERS}

    async def _request(
        self,
        *,
        source: str,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """
        Execute one request; any failure becomes ``TransportError``.
        """

        merged_headers = {**self.default_headers, **(headers or {})}
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                data=data,
                headers=merged_headers,
                timeout=timeout or self.settings.request_timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            log_event(logger, logging.WARNING, "request_timeout", source=source, url=url, error=str(exc))
            raise TransportError(f"{source}: request timed out for {url}", source=source, url=url) from exc
        except httpx.HTTPError as exc:
            log_event(logger, logging.WARNING, "request_failed", source=source, url=url, error=str(exc))
            raise TransportError(f"{source}: request failed for {url}: {exc}", source=source, url=url) from exc

        if not response.is_success:
            log_event(
                logger,
                logging.WARNING,
                "request_bad_status",
                source=source,
                url=str(response.url),
                status_code=response.status_code,
            )
            raise TransportError(
                f"{source}: HTTP {response.status_code} from {response.url}",
                source=source,
                status_code=response.status_code,
                url=str(response.url),
            )
        return response

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
