"""
Factory for the common static-HTML (tier 2) registry shape.

Most state registries render a plain results table; only the URLs differ,
so the selector bundles are shared here instead of repeated per state.
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

TIER2_SEARCH_SELECTORS = SearchResultSelectors(
    results_container=".results, #results, table.searchResults",
    result_rows="tr:has(> td)",
    entity_name=selector("td:nth-child(1) a, td:first-child a", fallbacks=("td:nth-child(1)",)),
    entity_number=selector("td:nth-child(2)"),
    entity_type=selector("td:nth-child(3)"),
    status=selector("td:nth-child(4)"),
    detail_link=selector("td:nth-child(1) a", attribute="href"),
    next_page=selector("a[rel='next'], a.next, .pagination a.next", attribute="href"),
)

TIER2_DETAIL_SELECTORS = DetailPageSelectors(
    entity_type=selector(".entity-type, #entityType, .type"),
    status=selector(".status, #status"),
    incorporation_date=selector(".formation-date, #formationDate"),
    registered_agent=selector(".registered-agent, #agent, .agent-name"),
    registered_agent_address=selector(".agent-address, #agentAddress"),
    principal_address=selector(".principal-address, #principalAddress"),
    officer_container=".officers tbody, #officers, table.officers",
    officer_rows="tr",
    officer_name=selector("td:nth-child(1)"),
    officer_title=selector("td:nth-child(2)"),
    filing_container=".filing-history tbody, #filings, table.filings",
    filing_rows="tr",
    filing_date=selector("td:nth-child(1)"),
    filing_type=selector("td:nth-child(2)"),
)

TIER2_FORM_FIELDS = (
    FormField(name="businessName", selector="#businessName, input[name*='name']"),
)


def tier2_config(
    code: str,
    name: str,
    registry_name: str,
    search_url: str,
    base_url: str,
    detail_url_template: str | None = None,
) -> JurisdictionConfig:
    """
    Build a tier-2 config that differs from its siblings only in URLs.
    """

    return JurisdictionConfig(
        code=code,
        name=name,
        registry_name=registry_name,
        tier=Tier.STATIC_HTML,
        base_url=base_url,
        scrape=ScrapeSpec(
            search_url=search_url,
            detail_url_template=detail_url_template or f"{base_url}/entity/{{id}}",
            search_selectors=TIER2_SEARCH_SELECTORS,
            detail_selectors=TIER2_DETAIL_SELECTORS,
            form_fields=TIER2_FORM_FIELDS,
        ),
    )
