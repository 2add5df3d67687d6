"""
Tiers 3 and 4: drive a real browser through the registry's search form.

One search is a short state machine: navigate, wait for the page, fill the
form, submit, clear any challenge, wait for results, parse, paginate. The
browser context is closed on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from typing import TypeVar
from urllib.parse import quote

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from registry.config import ScraperSettings
from registry.engines.base import RegistryEngine
from registry.engines.browser.captcha import CaptchaChallenge, CaptchaSolver
from registry.engines.browser.stealth import StealthBrowser, human_pause, human_type
from registry.engines.http_engine import search_url_for
from registry.errors import (
    ChallengeUnresolved,
    ConfigurationError,
    ParseError,
    RegistryScraperError,
    TransportError,
)
from registry.jurisdictions.models import ChallengeSpec, JurisdictionConfig, ScrapeSpec, Tier
from registry.logging_utils import log_event
from registry.parsing.extraction import extract_details, extract_search_page, parse_document
from registry.resilience.rate_limiter import RateLimiter
from registry.types import EntityDetails, ScrapedEntity, ScraperResult, SearchOptions

logger = logging.getLogger(__name__)

GENERIC_CHALLENGE_SELECTOR = (
    "iframe[src*='recaptcha'], iframe[src*='hcaptcha'], .g-recaptcha, .h-captcha, #challenge-form"
)

T = TypeVar("T")

SessionFactory = Callable[[], AbstractAsyncContextManager[Page]]


class BrowserScrapeEngine(RegistryEngine):
    """
    Executes script-rendered and CAPTCHA-protected searches with Playwright.
    """

    name = "browser"

    def __init__(
        self,
        *,
        settings: ScraperSettings,
        rate_limiter: RateLimiter,
        session_factory: SessionFactory | None = None,
        solver: CaptchaSolver | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(settings=settings, rate_limiter=rate_limiter)
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._solver = solver
        self._browser: StealthBrowser | None = None
        if session_factory is None:
            self._browser = StealthBrowser(settings=settings, rng=self._rng)
            session_factory = self._browser.session
        self._session_factory = session_factory

    def _scrape_spec(self, config: JurisdictionConfig) -> ScrapeSpec:
        if config.scrape is None:
            raise ConfigurationError(f"Jurisdiction '{config.code}' has no scrape spec.", source=config.code)
        return config.scrape

    def _timeout_ms(self, options: SearchOptions | None = None) -> float:
        if options is not None and options.timeout is not None:
            return options.timeout * 1000
        return self.settings.navigation_timeout_seconds * 1000

    async def _run(self, config: JurisdictionConfig, action: Callable[[Page], Awaitable[T]]) -> T:
        try:
            async with self._session_factory() as page:
                return await action(page)
        except PlaywrightTimeoutError as exc:
            log_event(logger, logging.WARNING, "browser_timeout", source=config.code, error=str(exc))
            raise TransportError(f"{config.code}: browser timed out: {exc}", source=config.code) from exc
        except PlaywrightError as exc:
            log_event(logger, logging.WARNING, "browser_failed", source=config.code, error=str(exc))
            raise TransportError(f"{config.code}: browser error: {exc}", source=config.code) from exc

    async def search(
        self,
        config: JurisdictionConfig,
        query: str,
        options: SearchOptions,
    ) -> ScraperResult:
        scrape = self._scrape_spec(config)

        async def action(page: Page) -> ScraperResult:
            return await self._search_page(page, config, scrape, query, options)

        return await self._run(config, action)

    async def fetch_detail(self, url: str, config: JurisdictionConfig) -> EntityDetails:
        scrape = self._scrape_spec(config)
        if scrape.detail_selectors is None:
            raise ConfigurationError(f"Jurisdiction '{config.code}' has no detail selectors.", source=config.code)

        async def action(page: Page) -> EntityDetails:
            await page.goto(url, wait_until="networkidle", timeout=self._timeout_ms())
            await self._wait_ready(page, config)
            await self._clear_challenge(page, config)
            return extract_details(parse_document(await page.content()), scrape.detail_selectors)

        return await self._run(config, action)

    async def _search_page(
        self,
        page: Page,
        config: JurisdictionConfig,
        scrape: ScrapeSpec,
        query: str,
        options: SearchOptions,
    ) -> ScraperResult:
        url = search_url_for(scrape, options.search_type)
        uses_placeholder = "{query}" in url
        if uses_placeholder:
            url = url.replace("{query}", quote(query, safe=""))

        await page.goto(url, wait_until="networkidle", timeout=self._timeout_ms(options))
        await self._wait_ready(page, config)

        if not uses_placeholder:
            await self._fill_form(page, scrape, query)
            # A challenge sitting on the form is submitted together with it.
            if not await self._clear_challenge(page, config):
                await self._submit(page, scrape)
                await self._clear_challenge(page, config)
        else:
            await self._clear_challenge(page, config)

        await self._wait_for_results(page, config, scrape)

        entities: list[ScrapedEntity] = []
        rows_seen = 0
        rows_dropped = 0
        total_hint: int | None = None
        pages = 0
        while True:
            pages += 1
            parsed = extract_search_page(
                parse_document(await page.content()),
                config,
                page_url=page.url,
                limit=options.limit - len(entities),
            )
            entities.extend(parsed.entities)
            rows_seen += parsed.rows_seen
            rows_dropped += parsed.rows_dropped
            if parsed.total_hint is not None:
                total_hint = parsed.total_hint

            if len(entities) >= options.limit or pages >= self.settings.max_pages:
                break
            if not await self._next_page(page, config, scrape, parsed.next_page_url, options):
                break

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
            "browser_search_completed",
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
            tier_used=max(int(config.tier), int(Tier.SCRIPT_RENDERED)),
            warnings=tuple(warnings),
        )

    async def _wait_ready(self, page: Page, config: JurisdictionConfig) -> None:
        try:
            await page.wait_for_load_state("networkidle", timeout=self.settings.element_timeout_seconds * 1000)
        except PlaywrightTimeoutError:
            log_event(logger, logging.DEBUG, "network_idle_timeout", source=config.code, url=page.url)
        await human_pause(self.settings, self._rng, self._sleep)

    async def _fill_form(self, page: Page, scrape: ScrapeSpec, query: str) -> None:
        for form_field in scrape.form_fields:
            value = form_field.resolve_value(query)
            if form_field.kind == "hidden":
                continue
            if form_field.kind == "select":
                await page.select_option(form_field.selector, value)
            elif form_field.kind == "checkbox":
                await page.check(form_field.selector)
            else:
                await human_type(
                    page,
                    form_field.selector,
                    value,
                    settings=self.settings,
                    rng=self._rng,
                    sleep=self._sleep,
                )
            await human_pause(self.settings, self._rng, self._sleep)

    async def _submit(self, page: Page, scrape: ScrapeSpec) -> None:
        if scrape.submit_method == "enter":
            await page.keyboard.press("Enter")
        elif scrape.submit_method == "form" or not scrape.submit_selector:
            await page.evaluate("() => { const form = document.querySelector('form'); if (form) form.submit(); }")
        else:
            await page.click(scrape.submit_selector)
        try:
            await page.wait_for_load_state("networkidle", timeout=self._timeout_ms())
        except PlaywrightTimeoutError:
            log_event(logger, logging.DEBUG, "submit_settle_timeout", url=page.url)

    async def _wait_for_results(self, page: Page, config: JurisdictionConfig, scrape: ScrapeSpec) -> None:
        if scrape.wait_for_selector:
            try:
                await page.wait_for_selector(
                    scrape.wait_for_selector,
                    timeout=self.settings.element_timeout_seconds * 1000,
                )
            except PlaywrightTimeoutError:
                # No results container usually means zero matches; parsing decides.
                log_event(
                    logger,
                    logging.INFO,
                    "results_wait_timeout",
                    source=config.code,
                    selector=scrape.wait_for_selector,
                )
        if scrape.post_search_delay:
            await self._sleep(scrape.post_search_delay)

    async def _next_page(
        self,
        page: Page,
        config: JurisdictionConfig,
        scrape: ScrapeSpec,
        next_page_url: str | None,
        options: SearchOptions,
    ) -> bool:
        if next_page_url:
            if next_page_url == page.url:
                return False
            await self.throttle(config.code)
            await page.goto(next_page_url, wait_until="networkidle", timeout=self._timeout_ms(options))
            await self._wait_for_results(page, config, scrape)
            return True

        pager = scrape.search_selectors.next_page
        if pager is None or pager.attribute:
            return False
        button = await page.query_selector(pager.primary)
        if button is None or not await button.is_enabled():
            return False
        await self.throttle(config.code)
        await button.click()
        await self._wait_ready(page, config)
        await self._wait_for_results(page, config, scrape)
        return True

    async def _challenge_present(self, page: Page, challenge: ChallengeSpec | None) -> bool:
        detect = challenge.detect_selector if challenge is not None else GENERIC_CHALLENGE_SELECTOR
        return await page.query_selector(detect) is not None

    async def _clear_challenge(self, page: Page, config: JurisdictionConfig) -> bool:
        """
        Solve a challenge on the current page if one is showing.

        Returns ``True`` when a challenge was found and cleared, ``False`` when
        none was present. Raises ``ChallengeUnresolved`` otherwise.
        """

        challenge = config.scrape.challenge if config.scrape is not None else None
        if not await self._challenge_present(page, challenge):
            return False
        log_event(logger, logging.WARNING, "challenge_detected", source=config.code, url=page.url)

        if config.tier < Tier.CAPTCHA_PROTECTED or challenge is None:
            raise ChallengeUnresolved(
                f"{config.code}: unexpected challenge page; registry may be blocking automated access.",
                source=config.code,
            )
        if self._solver is None:
            raise ChallengeUnresolved(
                f"{config.code}: CAPTCHA challenge requires a configured solver.",
                source=config.code,
            )

        for attempt in range(1, challenge.max_attempts + 1):
            image = await page.query_selector(challenge.image_selector)
            if image is None:
                raise ChallengeUnresolved(f"{config.code}: challenge image not found.", source=config.code)
            captcha = CaptchaChallenge(image=await image.screenshot(), page_url=page.url, source=config.code)
            try:
                token = await self._solver.solve(captcha)
            except RegistryScraperError:
                raise
            except Exception as exc:
                raise ChallengeUnresolved(
                    f"{config.code}: CAPTCHA solver failed: {exc}",
                    source=config.code,
                ) from exc

            await page.fill(challenge.input_selector, token)
            await page.click(challenge.submit_selector)
            await self._wait_ready(page, config)
            if not await self._challenge_present(page, challenge):
                log_event(logger, logging.INFO, "challenge_solved", source=config.code, attempts=attempt)
                return True
            log_event(logger, logging.WARNING, "challenge_rejected", source=config.code, attempt=attempt)

        raise ChallengeUnresolved(
            f"{config.code}: CAPTCHA not accepted after {challenge.max_attempts} attempt(s).",
            source=config.code,
        )

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
