"""
Tier 2: fetch and parse server-rendered registry search pages.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import quote

from registry.errors import ChallengeDetected, ConfigurationError, ParseError
from registry.engines.base import HttpEngine
from registry.jurisdictions.models import JurisdictionConfig, ScrapeSpec, Tier
from registry.logging_utils import log_event
from registry.parsing.extraction import extract_details, extract_search_page, parse_document
from registry.types import EntityDetails, ScrapedEntity, ScraperResult, SearchOptions

logger = logging.getLogger(__name__)

CHALLENGE_MARKERS = re.compile(
    r"captcha|challenge-form|hcaptcha|g-recaptcha|cf-challenge",
    flags=re.IGNORECASE,
)


def looks_like_challenge(html: str) -> bool:
    return CHALLENGE_MARKERS.search(html) is not None


def search_url_for(scrape: ScrapeSpec, search_type: str) -> str:
    if search_type != "name" and search_type in scrape.alternate_search_urls:
        return scrape.alternate_search_urls[search_type]
    return scrape.search_url


def build_search_request(
    scrape: ScrapeSpec,
    query: str,
    search_type: str = "name",
) -> tuple[str, dict[str, str]]:
    """
    Resolve the URL and form payload for one search.

    A ``{query}`` placeholder in the URL receives the encoded query; every
    form field contributes a parameter (its constant, derived, or the raw query).
    """

    url = search_url_for(scrape, search_type)
    uses_placeholder = "{query}" in url
    if uses_placeholder:
        url = url.replace("{query}", quote(query, safe=""))

    payload: dict[str, str] = {}
    for form_field in scrape.form_fields:
        if uses_placeholder and form_field.value is None:
            continue
        if form_field.kind == "checkbox":
            payload[form_field.name] = form_field.resolve_value(query) if form_field.value else "on"
            continue
        payload[form_field.name] = form_field.resolve_value(query)
    if not scrape.form_fields and not uses_placeholder:
        payload["q"] = query
    return url, payload


class HttpScrapeEngine(HttpEngine):
    """
    Executes tier-2 searches with plain HTTP and BeautifulSoup.
    """

    name = "http"

    def _scrape_spec(self, config: JurisdictionConfig) -> ScrapeSpec:
        if config.scrape is None:
            raise ConfigurationError(f"Jurisdiction '{config.code}' has no scrape spec.", source=config.code)
        return config.scrape

    async def _fetch_html(
        self,
        config: JurisdictionConfig,
        url: str,
        *,
        payload: dict[str, str] | None = None,
        method: str = "GET",
        timeout: float | None = None,
    ) -> tuple[str, str]:
        scrape = self._scrape_spec(config)
        if method == "POST":
            response = await self._request(
                source=config.code,
                method="POST",
                url=url,
                data=payload,
                headers=dict(scrape.headers),
                timeout=timeout,
            )
        else:
            response = await self._request(
                source=config.code,
                method="GET",
                url=url,
                params=payload or None,
                headers=dict(scrape.headers),
                timeout=timeout,
            )
        html = response.text
        if looks_like_challenge(html):
            log_event(logger, logging.WARNING, "challenge_detected", source=config.code, url=str(response.url))
            raise ChallengeDetected(
                f"{config.code}: registry answered with a CAPTCHA challenge.",
                source=config.code,
            )
        return html, str(response.url)

    async def search(
        self,
        config: JurisdictionConfig,
        query: str,
        options: SearchOptions,
    ) -> ScraperResult:
        scrape = self._scrape_spec(config)
        url, payload = build_search_request(scrape, query, options.search_type)
        timeout = self.request_timeout(options)

        html, page_url = await self._fetch_html(
            config,
            url,
            payload=payload,
            method=scrape.search_method,
            timeout=timeout,
        )

        entities: list[ScrapedEntity] = []
        rows_seen = 0
        rows_dropped = 0
        total_hint: int | None = None
        pages = 0
        while True:
            pages += 1
            page = extract_search_page(
                parse_document(html),
                config,
                page_url=page_url,
                limit=options.limit - len(entities),
            )
            entities.extend(page.entities)
            rows_seen += page.rows_seen
            rows_dropped += page.rows_dropped
            if page.total_hint is not None:
                total_hint = page.total_hint

            if (
                len(entities) >= options.limit
                or not page.next_page_url
                or page.next_page_url == page_url
                or pages >= self.settings.max_pages
            ):
                break
            await self.throttle(config.code)
            html, page_url = await self._fetch_html(config, page.next_page_url, timeout=timeout)

        if rows_seen == 0 and rows_dropped > 0:
            raise ParseError(
                f"{config.code}: {rows_dropped} result row(s) found but no entity name could be resolved.",
                source=config.code,
            )

        warnings: list[str] = []
        if rows_dropped:
            warnings.append(f"Dropped {rows_dropped} row(s) without an entity name.")
        log_event(
            logger,
            logging.INFO,
            "http_search_completed",
            source=config.code,
            entities=len(entities),
            rows_dropped=rows_dropped,
            pages=pages,
        )
        return ScraperResult(
            success=True,
            source=config.code,
            query=query,
            entities=tuple(entities),
            total_found=max(rows_seen, total_hint or 0),
            tier_used=int(Tier.STATIC_HTML),
            warnings=tuple(warnings),
        )

    async def fetch_detail(self, url: str, config: JurisdictionConfig) -> EntityDetails:
        scrape = self._scrape_spec(config)
        if scrape.detail_selectors is None:
            raise ConfigurationError(f"Jurisdiction '{config.code}' has no detail selectors.", source=config.code)
        html, _ = await self._fetch_html(config, url)
        return extract_details(parse_document(html), scrape.detail_selectors)
