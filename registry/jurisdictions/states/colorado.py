"""
Colorado Secretary of State business entities (Socrata open data).
"""

from __future__ import annotations

from registry.jurisdictions.models import ApiFieldMapping, ApiSpec, JurisdictionConfig, Tier

COLORADO_CONFIG = JurisdictionConfig(
    code="co",
    name="Colorado",
    registry_name="Secretary of State - Business Division",
    tier=Tier.OPEN_API,
    base_url="https://www.sos.state.co.us",
    api=ApiSpec(
        kind="socrata",
        endpoint="https://data.colorado.gov/resource/4ykn-tg5h.json",
        name_field="entityname",
        status_field="entitystatus",
        active_status_value="Good Standing",
        inactive_status_value="Delinquent",
        order_by="entityformdate DESC",
        app_token_env="SOCRATA_APP_TOKEN",
        detail_url_template="https://www.sos.state.co.us/biz/BusinessEntityDetail.do?masterFileId={id}",
        field_mapping=ApiFieldMapping(
            name="entityname",
            entity_number="entityid",
            status="entitystatus",
            incorporation_date="entityformdate",
            entity_type="entitytype",
            address=(
                "principaladdress1",
                "principaladdress2",
                "principalcity",
                "principalstate",
                "principalzipcode",
            ),
            registered_agent=(
                "agentorganizationname",
                "agentfirstname",
                "agentmiddlename",
                "agentlastname",
            ),
        ),
    ),
    notes="Full entity dataset published on data.colorado.gov; no scraping needed.",
)
