"""
California Secretary of State (bizfile Online).

bizfile is a React single-page app; results only exist after scripts run.
Officer data comes from Statement of Information filings and may be absent.
"""

from __future__ import annotations

from registry.jurisdictions.models import (
    DetailPageSelectors,
    FormField,
    JurisdictionConfig,
    ScrapeSpec,
    SearchResultSelectors,
    Tier,
    selector,
)

CALIFORNIA_CONFIG = JurisdictionConfig(
    code="ca",
    name="California",
    registry_name="Secretary of State - Business Programs Division",
    tier=Tier.SCRIPT_RENDERED,
    base_url="https://bizfileonline.sos.ca.gov",
    scrape=ScrapeSpec(
        search_url="https://bizfileonline.sos.ca.gov/search/business",
        detail_url_template="/search/business/{id}",
        search_selectors=SearchResultSelectors(
            results_container=".search-results, .results-container, [class*='search-result']",
            result_rows=".search-result-item, .result-row, [class*='result-item']",
            entity_name=selector(
                ".entity-name, .business-name",
                fallbacks=("a[class*='entity']", "h3 a", ".result-name"),
            ),
            entity_number=selector(
                ".entity-number, .file-number",
                fallbacks=(".result-number", "[class*='number']"),
                pattern=r"([A-Z]?\d+)",
            ),
            status=selector(
                ".entity-status, .status",
                fallbacks=(".result-status", "[class*='status']"),
                transform=str.upper,
            ),
            filing_date=selector(".formation-date, .filing-date", fallbacks=(".result-date", "[class*='date']")),
            entity_type=selector(".entity-type, .business-type", fallbacks=(".result-type", "[class*='type']")),
            detail_link=selector(
                ".entity-name a, .business-name a",
                attribute="href",
                fallbacks=("a[class*='entity']", "h3 a"),
            ),
            next_page=selector("button[aria-label='Next page'], .pagination .next"),
        ),
        detail_selectors=DetailPageSelectors(
            entity_name=selector(
                "h1.entity-name, .business-name h1",
                fallbacks=("[class*='entity-name']", ".detail-header h1"),
            ),
            entity_type=selector(
                ".entity-type, [class*='type'] .value",
                fallbacks=("label:-soup-contains('Type') + span", "[data-field='entityType']"),
            ),
            status=selector(
                ".entity-status, [class*='status'] .value",
                fallbacks=("label:-soup-contains('Status') + span", "[data-field='status']"),
                transform=str.upper,
            ),
            incorporation_date=selector(
                ".formation-date, [class*='formation'] .value",
                fallbacks=(
                    "label:-soup-contains('Registration Date') + span",
                    "label:-soup-contains('Formation Date') + span",
                    "[data-field='formationDate']",
                ),
            ),
            jurisdiction_of_formation=selector(
                ".jurisdiction, [class*='jurisdiction'] .value",
                fallbacks=("label:-soup-contains('Jurisdiction') + span",),
            ),
            registered_agent=selector(
                ".agent-name, [class*='agent'] .name",
                fallbacks=("label:-soup-contains('Agent for Service') + span", "[data-field='agentName']"),
            ),
            registered_agent_address=selector(
                ".agent-address, [class*='agent'] .address",
                fallbacks=(".agent-info .address", "[data-field='agentAddress']"),
            ),
            principal_address=selector(
                ".principal-address, [class*='principal'] .address",
                fallbacks=("label:-soup-contains('Principal Address') + div", "[data-field='principalAddress']"),
            ),
            mailing_address=selector(
                ".mailing-address, [class*='mailing'] .address",
                fallbacks=("label:-soup-contains('Mailing Address') + div", "[data-field='mailingAddress']"),
            ),
            officer_container=".officers-section, [class*='officers'], .soi-officers",
            officer_rows=".officer-row, [class*='officer-item'], tr",
            officer_name=selector(".officer-name, [class*='name']", fallbacks=("td:nth-child(1)",)),
            officer_title=selector(".officer-title, [class*='title']", fallbacks=("td:nth-child(2)",)),
            officer_address=selector(".officer-address, [class*='address']", fallbacks=("td:nth-child(3)",)),
            filing_container=".filing-history, [class*='filings'], .documents-section",
            filing_rows=".filing-row, [class*='filing-item'], tr",
            filing_date=selector(".filing-date, [class*='date']", fallbacks=("td:nth-child(1)",)),
            filing_type=selector(".filing-type, [class*='type']", fallbacks=("td:nth-child(2)",)),
        ),
        form_fields=(
            FormField(name="searchValue", selector="input[name='searchValue'], #searchInput"),
            FormField(name="searchType", selector="select[name='searchType']", kind="select", value="CORP"),
        ),
        js_required=True,
        wait_for_selector=".search-results, [class*='result']",
        post_search_delay=2.0,
        submit_method="click",
        submit_selector="button[type='submit']",
    ),
    requests_per_minute=15,
    notes="React SPA; officer data only present once a Statement of Information is filed.",
    known_issues=(
        "Slow initial load",
        "Detail layouts differ by entity type",
    ),
)
