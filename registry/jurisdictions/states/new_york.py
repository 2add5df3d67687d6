"""
New York Department of State corporations.

The data.ny.gov dataset only lists active corporations; the public inquiry
SPA is kept as a script-rendered fallback for when the dataset is down.
"""

from __future__ import annotations

from registry.jurisdictions.models import (
    ApiFieldMapping,
    ApiSpec,
    FormField,
    JurisdictionConfig,
    ScrapeSpec,
    SearchResultSelectors,
    Tier,
    selector,
)

NEW_YORK_CONFIG = JurisdictionConfig(
    code="ny",
    name="New York",
    registry_name="Department of State - Division of Corporations",
    tier=Tier.OPEN_API,
    base_url="https://apps.dos.ny.gov",
    api=ApiSpec(
        kind="socrata",
        endpoint="https://data.ny.gov/resource/n9v6-gdp6.json",
        name_field="current_entity_name",
        order_by="initial_dos_filing_date DESC",
        app_token_env="SOCRATA_APP_TOKEN",
        active_only=True,
        detail_url_template="https://apps.dos.ny.gov/publicInquiry/EntityDisplay?dosId={id}",
        field_mapping=ApiFieldMapping(
            name="current_entity_name",
            entity_number="dos_id",
            incorporation_date="initial_dos_filing_date",
            entity_type="entity_type",
            address=(
                "dos_process_address_1",
                "dos_process_city",
                "dos_process_state",
                "dos_process_zip",
            ),
            registered_agent="dos_process_name",
        ),
    ),
    scrape=ScrapeSpec(
        search_url="https://apps.dos.ny.gov/publicInquiry/",
        search_selectors=SearchResultSelectors(
            results_container=".results-table",
            result_rows="tbody tr",
            entity_name=selector("td:nth-child(1)"),
            entity_number=selector("td:nth-child(2)"),
            status=selector("td:nth-child(3)"),
            detail_link=selector("td:nth-child(1) a", attribute="href"),
        ),
        form_fields=(FormField(name="search_text", selector="#search_text"),),
        js_required=True,
        wait_for_selector=".results-table",
        submit_method="click",
        submit_selector="#btnSearch",
    ),
    requests_per_minute=20,
    notes="Open data covers active corporations only.",
)
