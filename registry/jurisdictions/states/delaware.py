"""
Delaware Division of Corporations (ICIS entity search).

The name search is an ASP.NET form guarded by an image CAPTCHA, so every
search goes through the browser engine's challenge path.
"""

from __future__ import annotations

from registry.jurisdictions.models import (
    ChallengeSpec,
    FormField,
    JurisdictionConfig,
    ScrapeSpec,
    SearchResultSelectors,
    Tier,
    selector,
)

_PREFIX = "#ctl00_ContentPlaceHolder1_"

DELAWARE_CONFIG = JurisdictionConfig(
    code="de",
    name="Delaware",
    registry_name="Division of Corporations",
    tier=Tier.CAPTCHA_PROTECTED,
    base_url="https://icis.corp.delaware.gov",
    scrape=ScrapeSpec(
        search_url="https://icis.corp.delaware.gov/ecorp/entitysearch/namesearch.aspx",
        search_selectors=SearchResultSelectors(
            results_container=f"{_PREFIX}pnlResults table, table[id*='Results'], .results-table",
            result_rows="tr:has(> td)",
            entity_name=selector("td:first-child a", fallbacks=("td a",)),
            entity_number=selector("td:nth-child(2)", pattern=r"(\d+)"),
            filing_date=selector("td:nth-child(3)"),
            entity_type=selector("td:nth-child(5)"),
            status=selector("td:nth-child(7)", fallbacks=("td:last-child",)),
            detail_link=selector("td:first-child a", attribute="href"),
        ),
        form_fields=(FormField(name="frmEntityName", selector=f"{_PREFIX}frmEntityName"),),
        js_required=True,
        wait_for_selector=f"{_PREFIX}pnlResults",
        submit_method="click",
        submit_selector=f"{_PREFIX}btnSubmit",
        challenge=ChallengeSpec(
            detect_selector="img[src*='captcha' i], img[id*='Captcha'], #recaptcha",
            image_selector="img[src*='captcha' i], img[id*='Captcha']",
            input_selector="input[id*='Captcha'], input[name*='captcha' i]",
            submit_selector=f"{_PREFIX}btnSubmit",
            max_attempts=2,
        ),
    ),
    requests_per_minute=10,
    notes="Image CAPTCHA on every name search; detail pages need a second challenge.",
)
