"""
Florida Division of Corporations (Sunbiz).

Sunbiz renders complete result tables server-side and encodes the query in
the URL path, so plain HTTP is enough.
"""

from __future__ import annotations

import re

from registry.jurisdictions.models import (
    DetailPageSelectors,
    FormField,
    JurisdictionConfig,
    ScrapeSpec,
    SearchResultSelectors,
    SearchTypes,
    Tier,
    selector,
)

BASE_URL = "https://search.sunbiz.org"
_RESULTS_PATH = f"{BASE_URL}/Inquiry/CorporationSearch/SearchResults"


def sunbiz_name_order(query: str) -> str:
    """
    Sunbiz expects the query upper-cased with everything but letters and digits removed.
    """

    return re.sub(r"[^A-Z0-9]", "", query.upper())


FLORIDA_CONFIG = JurisdictionConfig(
    code="fl",
    name="Florida",
    registry_name="Division of Corporations (Sunbiz)",
    tier=Tier.STATIC_HTML,
    base_url=BASE_URL,
    scrape=ScrapeSpec(
        search_url=f"{_RESULTS_PATH}/EntityName/{{query}}/Page1",
        alternate_search_urls={
            "officer": f"{_RESULTS_PATH}/OfficerRegisteredAgentName/{{query}}/Page1",
            "agent": f"{_RESULTS_PATH}/OfficerRegisteredAgentName/{{query}}/Page1",
        },
        search_selectors=SearchResultSelectors(
            results_container="#search-results, .searchResultDetail",
            result_rows="tr:has(> td)",
            entity_name=selector("td.large-width a", fallbacks=("td:nth-child(1) a",)),
            entity_number=selector("td.medium-width", fallbacks=("td:nth-child(2)",)),
            status=selector("td.small-width", fallbacks=("td:nth-child(3)",)),
            filing_date=selector("td:nth-child(4)"),
            detail_link=selector("td.large-width a", attribute="href", fallbacks=("td:nth-child(1) a",)),
            next_page=selector("a[title='Next List']", attribute="href"),
        ),
        detail_url_template=f"{BASE_URL}/Inquiry/CorporationSearch/SearchResultDetail?inquirytype=EntityName&searchTerm={{id}}",
        detail_selectors=DetailPageSelectors(
            entity_name=selector(".corporationName p:nth-of-type(2)", fallbacks=(".corporationName p",)),
            entity_type=selector(".corporationName p:nth-of-type(1)"),
            status=selector(
                ".filingInformation label:-soup-contains('Status') + span",
                transform=str.upper,
            ),
            incorporation_date=selector(".filingInformation label:-soup-contains('Date Filed') + span"),
            jurisdiction_of_formation=selector(".filingInformation label:-soup-contains('State') + span"),
            principal_address=selector(".detailSection.principalAddress div", fallbacks=(".principalAddress div",)),
            mailing_address=selector(".detailSection.mailingAddress div", fallbacks=(".mailingAddress div",)),
            registered_agent=selector(".detailSection.registeredAgent span:nth-of-type(2)"),
            registered_agent_address=selector(".detailSection.registeredAgent div"),
            officer_container=".detailSection.officers, table.officers",
            officer_rows=".officer, tr",
            officer_name=selector(".officer-name", fallbacks=("td:nth-child(2)",)),
            officer_title=selector(".officer-title", fallbacks=("td:nth-child(1)",)),
            officer_address=selector(".officer-address", fallbacks=("td:nth-child(3)",)),
            filing_container=".detailSection.annualReports table, #annualReports",
            filing_rows="tr:not(:first-child)",
            filing_date=selector("td:nth-child(2)"),
            filing_type=selector("td:nth-child(1)", transform=lambda year: f"Annual Report {year}"),
        ),
        form_fields=(
            FormField(
                name="searchNameOrder",
                selector="input[name='searchNameOrder']",
                kind="hidden",
                value=sunbiz_name_order,
            ),
        ),
        wait_for_selector="#search-results",
        submit_selector="input[type='submit']",
    ),
    requests_per_minute=30,
    search_types=SearchTypes(by_name=True, by_officer=True, by_agent=True),
    notes="Most scrape-friendly registry; results tables are server rendered.",
)
