from __future__ import annotations

import unittest
from dataclasses import replace
from pathlib import Path

import httpx

from registry.config import ScraperSettings
from registry.engines import ApiEngine, HttpScrapeEngine
from registry.jurisdictions import JurisdictionStore, get_jurisdiction_store
from registry.resilience import CircuitBreaker, MemoryCacheBackend, RateLimitPolicy, RateLimiter, ScraperCache
from registry.router import UnifiedRegistryScraper
from registry.schemas import PersonSearchResponse
from registry.search import OwnershipLikelihood, search_by_person
from registry.search.ownership import infer_ownership
from registry.search.person import PersonBusinessMatch, merge_matches, name_matches, ownership_summary
from registry.types import ScrapedEntity

FIXTURES = Path(__file__).parent / "fixtures"
RESULTS_HTML = (FIXTURES / "florida_results.html").read_text(encoding="utf-8")
DETAIL_HTML = (FIXTURES / "florida_detail.html").read_text(encoding="utf-8")
DETAIL_PATH = "/Inquiry/CorporationSearch/SearchResultDetail"
SEARCH_PATH = "https://search.sunbiz.org/Inquiry/CorporationSearch/SearchResults"


class PersonSearchTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, httpx.Response] = {}
        self.default = httpx.Response(200, text=RESULTS_HTML)
        self.settings = ScraperSettings(detail_batch_delay_seconds=0)

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        template = self.responses.get(request.url.path) or self.default
        return httpx.Response(template.status_code, headers=template.headers, content=template.content)

    def build(self, store: JurisdictionStore | None = None) -> UnifiedRegistryScraper:
        limiter = RateLimiter(default_policy=RateLimitPolicy(600))
        client = httpx.AsyncClient(transport=httpx.MockTransport(self._handler))
        self.addAsyncCleanup(client.aclose)
        return UnifiedRegistryScraper(
            store=store or get_jurisdiction_store(),
            settings=self.settings,
            cache=ScraperCache(backend=MemoryCacheBackend()),
            breaker=CircuitBreaker(),
            rate_limiter=limiter,
            api_engine=ApiEngine(settings=self.settings, rate_limiter=limiter, client=client),
            http_engine=HttpScrapeEngine(settings=self.settings, rate_limiter=limiter, client=client),
        )


class TestSearchByPerson(PersonSearchTestCase):
    async def test_officer_search_lists_every_business(self) -> None:
        scraper = self.build()

        result = await search_by_person(scraper, "John Doe", ["fl"])

        self.assertTrue(result.success)
        self.assertEqual(result.searched, ("fl",))
        self.assertEqual(result.succeeded, ("fl",))
        self.assertEqual(result.total_found, 3)
        self.assertEqual(len(self.requests), 1)
        self.assertIn("/OfficerRegisteredAgentName/", self.requests[0].url.path)
        first = result.matches[0]
        self.assertEqual(first.roles, ("Officer/Registered Agent",))
        self.assertIs(first.ownership.likelihood, OwnershipLikelihood.MEDIUM)
        self.assertEqual(first.state, "FL")

        payload = PersonSearchResponse.from_result(result).to_payload()
        self.assertEqual(payload["personSearched"], "John Doe")
        self.assertEqual(payload["businesses"][0]["ownershipLabel"], "Possible Owner")
        self.assertEqual(payload["summary"]["mediumLikelihood"], 3)

    async def test_detail_pages_supply_the_persons_role(self) -> None:
        self.responses[DETAIL_PATH] = httpx.Response(200, text=DETAIL_HTML)
        scraper = self.build()

        result = await search_by_person(scraper, "Wile Roadrunner", ["fl"], fetch_details=True)

        self.assertTrue(result.success)
        self.assertEqual(len(self.requests), 4)
        self.assertEqual({match.roles for match in result.matches}, {("MGR",)})
        self.assertEqual([round(match.ownership.score, 2) for match in result.matches], [0.95, 0.95, 0.95])
        summary = result.summary()
        self.assertEqual(summary.high, 3)
        self.assertEqual(summary.states, ("FL",))

    async def test_registered_agent_role_scores_low(self) -> None:
        self.responses[DETAIL_PATH] = httpx.Response(200, text=DETAIL_HTML)
        scraper = self.build()

        result = await search_by_person(scraper, "Jane Doe", ["fl"], fetch_details=True)

        self.assertEqual(result.matches[0].roles, ("Registered Agent",))
        self.assertIs(result.matches[0].ownership.likelihood, OwnershipLikelihood.LOW)

    async def test_separate_agent_endpoint_is_searched_and_roles_merge(self) -> None:
        florida = get_jurisdiction_store().get("fl")
        split = replace(
            florida,
            scrape=replace(
                florida.scrape,
                alternate_search_urls={
                    "officer": f"{SEARCH_PATH}/OfficerName/{{query}}/Page1",
                    "agent": f"{SEARCH_PATH}/RegisteredAgentName/{{query}}/Page1",
                },
            ),
        )
        scraper = self.build(JurisdictionStore([split]))

        result = await search_by_person(scraper, "John Doe")

        paths = sorted(request.url.path.split("/")[4] for request in self.requests)
        self.assertEqual(paths, ["OfficerName", "RegisteredAgentName"])
        self.assertEqual(result.total_found, 3)
        self.assertEqual(result.matches[0].roles, ("Officer", "Registered Agent"))
        self.assertEqual(result.matches[0].ownership.score, 0.4)

    async def test_agent_search_can_be_skipped(self) -> None:
        florida = get_jurisdiction_store().get("fl")
        split = replace(
            florida,
            scrape=replace(
                florida.scrape,
                alternate_search_urls={
                    "officer": f"{SEARCH_PATH}/OfficerName/{{query}}/Page1",
                    "agent": f"{SEARCH_PATH}/RegisteredAgentName/{{query}}/Page1",
                },
            ),
        )
        scraper = self.build(JurisdictionStore([split]))

        await search_by_person(scraper, "John Doe", include_agents=False)

        self.assertEqual(len(self.requests), 1)

    async def test_failures_and_skipped_codes_become_warnings(self) -> None:
        self.default = httpx.Response(500, text="unavailable")
        scraper = self.build()

        result = await search_by_person(scraper, "John Doe", ["FL", "co", "zz"])

        self.assertFalse(result.success)
        self.assertEqual(result.searched, ("fl",))
        self.assertEqual(result.failed, ("fl",))
        self.assertIn("Skipped unknown jurisdictions: zz", result.warnings)
        self.assertIn("Officer search is not available for: co", result.warnings)
        self.assertTrue(any(warning.startswith("FL: ") for warning in result.warnings))

    async def test_no_supported_jurisdiction_makes_no_requests(self) -> None:
        scraper = self.build()

        result = await search_by_person(scraper, "John Doe", ["co"])

        self.assertFalse(result.success)
        self.assertIn("officer searches", result.error)
        self.assertEqual(self.requests, [])

    async def test_invalid_name_is_rejected(self) -> None:
        scraper = self.build()

        for name, limit in (("<a>", 25), ("John Doe", 0)):
            with self.subTest(name=name, limit=limit):
                result = await search_by_person(scraper, name, ["fl"], limit=limit)

                self.assertFalse(result.success)
                self.assertIsNotNone(result.error)
        self.assertEqual(self.requests, [])


def _match(name: str, roles: tuple[str, ...], source: str = "fl") -> PersonBusinessMatch:
    entity = ScrapedEntity(name=name, jurisdiction=f"us_{source}", source=source, source_url="https://example.gov")
    return PersonBusinessMatch(entity=entity, roles=roles, ownership=infer_ownership(roles, name))


class TestPersonHelpers(unittest.TestCase):
    def test_name_matching_ignores_order_and_punctuation(self) -> None:
        self.assertTrue(name_matches("John Doe", "DOE, JOHN A"))
        self.assertFalse(name_matches("John Doe", "DOE, JANE"))
        self.assertFalse(name_matches("John Doe", None))

    def test_merge_keeps_stronger_inference_and_unions_roles(self) -> None:
        merged = merge_matches(
            [
                _match("Acme LLC", ("Registered Agent",)),
                _match("ACME  llc", ("President",)),
                _match("Acme LLC", ("Director",), source="ga"),
            ]
        )

        self.assertEqual(len(merged), 2)
        self.assertEqual(merged[0].roles, ("Registered Agent", "President"))
        self.assertIs(merged[0].ownership.likelihood, OwnershipLikelihood.HIGH)

    def test_summary_counts_by_likelihood(self) -> None:
        summary = ownership_summary(
            [_match("Acme LLC", ("MGR",)), _match("Beta Inc", ("Secretary",), source="ga")]
        )

        self.assertEqual((summary.high, summary.medium, summary.total), (1, 1, 2))
        self.assertEqual(summary.states, ("FL", "GA"))


if __name__ == "__main__":
    unittest.main()
