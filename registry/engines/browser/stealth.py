"""
Stealth-configured Playwright sessions.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from playwright.async_api import Browser, Page, Playwright, async_playwright

from registry.config import ScraperSettings
from registry.logging_utils import log_event

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_1) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]

VIEWPORTS = [
    {"width": 1920, "height": 1080},
    {"width": 1366, "height": 768},
    {"width": 1536, "height": 864},
    {"width": 1440, "height": 900},
    {"width": 1280, "height": 720},
]

TIMEZONES = [
    "America/New_York",
    "America/Chicago",
    "America/Denver",
    "America/Los_Angeles",
]

LOCALES = ["en-US", "en-GB", "en-CA"]

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
]

STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined, configurable: true });
window.chrome = window.chrome || { runtime: {} };
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5], configurable: true });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'], configurable: true });
const originalQuery = window.navigator.permissions && window.navigator.permissions.query;
if (originalQuery) {
  window.navigator.permissions.query = (parameters) => (
    parameters.name === 'notifications'
      ? Promise.resolve({ state: Notification.permission })
      : originalQuery(parameters)
  );
}
"""


@dataclass(frozen=True)
class Fingerprint:
    user_agent: str
    viewport: dict[str, int]
    locale: str
    timezone_id: str


def random_fingerprint(rng: random.Random | None = None) -> Fingerprint:
    chooser = rng or random
    return Fingerprint(
        user_agent=chooser.choice(USER_AGENTS),
        viewport=dict(chooser.choice(VIEWPORTS)),
        locale=chooser.choice(LOCALES),
        timezone_id=chooser.choice(TIMEZONES),
    )


class StealthBrowser:
    """
    One lazily-launched Chromium shared by short-lived, fingerprinted contexts.

    Every ``session()`` gets a fresh context and the context is closed on
    every exit path.
    """

    def __init__(self, *, settings: ScraperSettings, rng: random.Random | None = None) -> None:
        self._settings = settings
        self._rng = rng or random.Random()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._settings.headless,
                args=LAUNCH_ARGS,
            )
            log_event(logger, logging.INFO, "browser_launched", headless=self._settings.headless)
            return self._browser

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Page]:
        browser = await self._ensure_browser()
        fingerprint = random_fingerprint(self._rng)
        context = await browser.new_context(
            user_agent=fingerprint.user_agent,
            viewport=fingerprint.viewport,
            locale=fingerprint.locale,
            timezone_id=fingerprint.timezone_id,
            java_script_enabled=True,
        )
        try:
            context.set_default_timeout(self._settings.element_timeout_seconds * 1000)
            context.set_default_navigation_timeout(self._settings.navigation_timeout_seconds * 1000)
            await context.add_init_script(STEALTH_INIT_SCRIPT)
            page = await context.new_page()
            yield page
        finally:
            await context.close()

    async def close(self) -> None:
        async with self._lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None


async def human_pause(
    settings: ScraperSettings,
    rng: random.Random,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    delay_ms = rng.uniform(settings.human_pause_min_ms, settings.human_pause_max_ms)
    if delay_ms > 0:
        await sleep(delay_ms / 1000)


async def human_type(
    page: Page,
    selector: str,
    text: str,
    *,
    settings: ScraperSettings,
    rng: random.Random,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """
    Clear ``selector`` and type ``text`` one character at a time.
    """

    await page.click(selector)
    await page.fill(selector, "")
    for char in text:
        await page.keyboard.type(char)
        delay_ms = rng.uniform(settings.typing_delay_min_ms, settings.typing_delay_max_ms)
        if delay_ms > 0:
            await sleep(delay_ms / 1000)
