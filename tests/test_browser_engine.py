from __future__ import annotations

import random
import unittest
from contextlib import asynccontextmanager

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from registry.config import ScraperSettings
from registry.engines.browser import BrowserScrapeEngine, CaptchaChallenge
from registry.engines.browser.engine import GENERIC_CHALLENGE_SELECTOR
from registry.engines.browser.stealth import random_fingerprint
from registry.errors import ChallengeUnresolved, TransportError
from registry.jurisdictions import get_jurisdiction_store
from registry.resilience import RateLimitPolicy, RateLimiter
from registry.types import SearchOptions

CA_RESULTS = """
<div class="search-results">
  <div class="search-result-item">
    <span class="entity-name"><a href="/search/business/C1234567">ACME WIDGETS, INC.</a></span>
    <span class="entity-number">C1234567</span>
    <span class="entity-status">active</span>
    <span class="entity-type">Stock Corporation</span>
  </div>
  <div class="search-result-item">
    <span class="entity-name"><a href="/search/business/202012345678">ACME LABS LLC</a></span>
    <span class="entity-number">202012345678</span>
    <span class="entity-status">Suspended</span>
  </div>
</div>
"""

DE_FORM = """
<form>
  <input id="ctl00_ContentPlaceHolder1_frmEntityName">
  <img id="imgCaptcha" src="/captcha.ashx">
  <input id="ctl00_ContentPlaceHolder1_txtCaptcha">
</form>
"""

DE_RESULTS = """
<div id="ctl00_ContentPlaceHolder1_pnlResults">
  <table id="tblResults">
    <tr><th>Entity Name</th><th>File Number</th></tr>
    <tr><td><a href="/ecorp/entitysearch/detail?id=1">ACME DELAWARE LLC</a></td><td>7654321</td></tr>
  </table>
</div>
"""


class FakeElement:
    def __init__(self, page: FakePage, selector: str) -> None:
        self._page = page
        self._selector = selector

    async def screenshot(self) -> bytes:
        return b"\x89PNG-captcha"

    async def is_enabled(self) -> bool:
        return True

    async def click(self) -> None:
        await self._page.click(self._selector)


class FakeKeyboard:
    def __init__(self) -> None:
        self.typed: list[str] = []
        self.pressed: list[str] = []

    async def type(self, text: str) -> None:
        self.typed.append(text)

    async def press(self, key: str) -> None:
        self.pressed.append(key)


class FakePage:
    """
    Scripted stand-in for a Playwright page.

    ``html`` is what ``content()`` returns; ``on_click`` maps a selector to a
    callable that mutates the page state (e.g. showing results).
    """

    def __init__(self, html: str, *, present: set[str] | None = None) -> None:
        self.html = html
        self.url = "about:blank"
        self.present = set(present or ())
        self.keyboard = FakeKeyboard()
        self.on_click: dict[str, object] = {}
        self.goto_error: Exception | None = None
        self.visited: list[str] = []
        self.clicked: list[str] = []
        self.filled: dict[str, str] = {}
        self.selected: dict[str, str] = {}

    async def goto(self, url: str, **_: object) -> None:
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append(url)
        self.url = url

    async def wait_for_load_state(self, *_: object, **__: object) -> None:
        return None

    async def wait_for_selector(self, selector: str, **_: object) -> None:
        return None

    async def query_selector(self, selector: str) -> FakeElement | None:
        return FakeElement(self, selector) if selector in self.present else None

    async def click(self, selector: str) -> None:
        self.clicked.append(selector)
        action = self.on_click.get(selector)
        if callable(action):
            action()

    async def fill(self, selector: str, value: str) -> None:
        self.filled[selector] = value

    async def select_option(self, selector: str, value: str) -> None:
        self.selected[selector] = value

    async def check(self, selector: str) -> None:
        self.filled[selector] = "on"

    async def evaluate(self, script: str) -> None:
        return None

    async def content(self) -> str:
        return self.html


class FakeSessions:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def session(self):
        self.opened += 1
        try:
            yield self.page
        finally:
            self.closed += 1


class RecordingSolver:
    def __init__(self, token: str = "X7K2P") -> None:
        self.token = token
        self.challenges: list[CaptchaChallenge] = []

    async def solve(self, challenge: CaptchaChallenge) -> str:
        self.challenges.append(challenge)
        return self.token


class FailingSolver:
    async def solve(self, challenge: CaptchaChallenge) -> str:
        raise RuntimeError("vision model unavailable")


async def _no_sleep(_: float) -> None:
    return None


def _settings() -> ScraperSettings:
    return ScraperSettings(
        typing_delay_min_ms=0,
        typing_delay_max_ms=0,
        human_pause_min_ms=0,
        human_pause_max_ms=0,
        detail_batch_delay_seconds=0,
    )


class TestBrowserScrapeEngine(unittest.IsolatedAsyncioTestCase):
    def _engine(self, page: FakePage, solver=None) -> tuple[BrowserScrapeEngine, FakeSessions]:
        sessions = FakeSessions(page)
        engine = BrowserScrapeEngine(
            settings=_settings(),
            rate_limiter=RateLimiter(default_policy=RateLimitPolicy(600)),
            session_factory=sessions.session,
            solver=solver,
            sleep=_no_sleep,
        )
        return engine, sessions

    async def test_script_rendered_search_fills_form_and_parses(self) -> None:
        page = FakePage("<div id='app'></div>")
        page.on_click["button[type='submit']"] = lambda: setattr(page, "html", CA_RESULTS)
        engine, sessions = self._engine(page)
        config = get_jurisdiction_store().get("ca")

        result = await engine.search(config, "acme", SearchOptions())

        self.assertTrue(result.success)
        self.assertEqual(result.tier_used, 3)
        self.assertEqual([entity.name for entity in result.entities], ["ACME WIDGETS, INC.", "ACME LABS LLC"])
        self.assertEqual(result.entities[0].status, "Active")
        self.assertEqual(result.entities[0].source_url, "https://bizfileonline.sos.ca.gov/search/business/C1234567")
        self.assertEqual(page.visited, ["https://bizfileonline.sos.ca.gov/search/business"])
        self.assertEqual("".join(page.keyboard.typed), "acme")
        self.assertEqual(page.selected, {"select[name='searchType']": "CORP"})
        self.assertEqual((sessions.opened, sessions.closed), (1, 1))

    async def test_session_closed_and_timeout_mapped_on_navigation_failure(self) -> None:
        page = FakePage("")
        page.goto_error = PlaywrightTimeoutError("Timeout 30000ms exceeded.")
        engine, sessions = self._engine(page)

        with self.assertRaises(TransportError):
            await engine.search(get_jurisdiction_store().get("ca"), "acme", SearchOptions())

        self.assertEqual((sessions.opened, sessions.closed), (1, 1))

    async def test_unexpected_challenge_fails_closed_below_tier_four(self) -> None:
        page = FakePage("<div class='g-recaptcha'></div>", present={GENERIC_CHALLENGE_SELECTOR})
        engine, sessions = self._engine(page, solver=RecordingSolver())

        with self.assertRaises(ChallengeUnresolved):
            await engine.search(get_jurisdiction_store().get("ca"), "acme", SearchOptions())

        self.assertEqual(sessions.closed, 1)

    async def test_captcha_without_solver_fails_closed(self) -> None:
        config = get_jurisdiction_store().get("de")
        page = FakePage(DE_FORM, present={config.scrape.challenge.detect_selector})
        engine, sessions = self._engine(page)

        with self.assertRaises(ChallengeUnresolved):
            await engine.search(config, "acme", SearchOptions())

        self.assertEqual(sessions.closed, 1)

    async def test_solver_failure_is_challenge_unresolved(self) -> None:
        config = get_jurisdiction_store().get("de")
        challenge = config.scrape.challenge
        page = FakePage(DE_FORM, present={challenge.detect_selector, challenge.image_selector})
        engine, _ = self._engine(page, solver=FailingSolver())

        with self.assertRaises(ChallengeUnresolved):
            await engine.search(config, "acme", SearchOptions())

    async def test_captcha_solved_then_results_parsed(self) -> None:
        config = get_jurisdiction_store().get("de")
        challenge = config.scrape.challenge
        page = FakePage(DE_FORM, present={challenge.detect_selector, challenge.image_selector})

        def accept() -> None:
            page.present.clear()
            page.html = DE_RESULTS

        page.on_click[challenge.submit_selector] = accept
        solver = RecordingSolver()
        engine, _ = self._engine(page, solver=solver)

        result = await engine.search(config, "acme", SearchOptions())

        self.assertTrue(result.success)
        self.assertEqual(result.tier_used, 4)
        self.assertEqual([entity.name for entity in result.entities], ["ACME DELAWARE LLC"])
        self.assertEqual(result.entities[0].entity_number, "7654321")
        self.assertEqual(len(solver.challenges), 1)
        self.assertEqual(solver.challenges[0].image, b"\x89PNG-captcha")
        self.assertEqual(page.filled[challenge.input_selector], "X7K2P")

    async def test_rejected_token_retries_up_to_max_attempts(self) -> None:
        config = get_jurisdiction_store().get("de")
        challenge = config.scrape.challenge
        page = FakePage(DE_FORM, present={challenge.detect_selector, challenge.image_selector})
        solver = RecordingSolver()
        engine, _ = self._engine(page, solver=solver)

        with self.assertRaises(ChallengeUnresolved):
            await engine.search(config, "acme", SearchOptions())

        self.assertEqual(len(solver.challenges), challenge.max_attempts)


class TestFingerprint(unittest.TestCase):
    def test_fingerprint_is_reproducible_with_seeded_rng(self) -> None:
        first = random_fingerprint(random.Random(7))
        second = random_fingerprint(random.Random(7))

        self.assertEqual(first, second)
        self.assertIn("Chrome", first.user_agent)
        self.assertIn("width", first.viewport)


if __name__ == "__main__":
    unittest.main()
