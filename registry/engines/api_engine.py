"""
Tier 1: query open-data (Socrata) and REST endpoints directly.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from registry.errors import ConfigurationError, ParseError
from registry.engines.base import HttpEngine
from registry.jurisdictions.models import ApiSpec, JurisdictionConfig, Tier
from registry.logging_utils import log_event
from registry.parsing.extraction import build_detail_url
from registry.parsing.selectors import clean_text, normalize_date, normalize_status
from registry.types import ScrapedEntity, ScraperResult, SearchOptions

logger = logging.getLogger(__name__)


def _escape_soql(value: str) -> str:
    return value.replace("'", "''")


def build_socrata_params(api: ApiSpec, query: str, options: SearchOptions) -> dict[str, str]:
    """
    SoQL parameters: case-insensitive name match plus an optional status predicate.
    """

    conditions = [f"UPPER({api.name_field}) LIKE '%{_escape_soql(query.upper())}%'"]
    if options.status != "all" and api.status_field:
        status_value = api.active_status_value if options.status == "active" else api.inactive_status_value
        conditions.append(f"{api.status_field} = '{_escape_soql(status_value)}'")

    params = {
        "$where": " AND ".join(conditions),
        "$limit": str(options.limit),
        "$offset": "0",
    }
    if api.order_by:
        params["$order"] = api.order_by
    return params


def build_rest_params(api: ApiSpec, query: str, options: SearchOptions) -> dict[str, str]:
    params = {"q": query, "limit": str(options.limit)}
    if options.status != "all":
        params["status"] = options.status
    return params


def _field(record: Mapping[str, Any], source_field: str | tuple[str, ...] | None, *, sep: str) -> str | None:
    if source_field is None:
        return None
    names = (source_field,) if isinstance(source_field, str) else source_field
    parts = [clean_text(str(record[name])) for name in names if record.get(name) not in (None, "")]
    joined = sep.join(part for part in parts if part)
    return joined or None


def map_record(record: Mapping[str, Any], config: JurisdictionConfig) -> ScrapedEntity | None:
    """
    Apply the declarative field mapping; records without a name are skipped.
    """

    api = config.api
    if api is None:
        return None
    mapping = api.field_mapping
    name = _field(record, mapping.name, sep=" ")
    if not name:
        return None

    entity_number = _field(record, mapping.entity_number, sep=" ")
    status = normalize_status(_field(record, mapping.status, sep=" "))
    if status is None and api.active_only:
        status = "Active"
    return ScrapedEntity(
        name=name,
        entity_number=entity_number,
        jurisdiction=config.jurisdiction_tag,
        source=config.code,
        source_url=(entity_number and build_detail_url(config, entity_number)) or api.endpoint,
        status=status,
        incorporation_date=normalize_date(_field(record, mapping.incorporation_date, sep=" ")),
        entity_type=_field(record, mapping.entity_type, sep=" "),
        registered_address=_field(record, mapping.address, sep=", "),
        registered_agent=_field(record, mapping.registered_agent, sep=" "),
    )


class ApiEngine(HttpEngine):
    """
    Executes tier-1 searches against a jurisdiction's open-data API.
    """

    name = "api"

    def _headers(self, api: ApiSpec) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if api.app_token_env:
            token = os.getenv(api.app_token_env, "").strip()
            if token:
                headers["X-App-Token"] = token
        return headers

    async def search(
        self,
        config: JurisdictionConfig,
        query: str,
        options: SearchOptions,
    ) -> ScraperResult:
        api = config.api
        if api is None:
            raise ConfigurationError(f"Jurisdiction '{config.code}' has no API spec.", source=config.code)

        if api.active_only and options.status == "inactive":
            return ScraperResult(
                success=True,
                source=config.code,
                query=query,
                tier_used=int(Tier.OPEN_API),
                warnings=(f"{config.name} dataset only contains active entities.",),
            )

        if api.kind == "socrata":
            params = build_socrata_params(api, query, options)
        else:
            params = build_rest_params(api, query, options)

        response = await self._request(
            source=config.code,
            method="GET",
            url=api.endpoint,
            params=params,
            headers=self._headers(api),
            timeout=self.request_timeout(options),
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseError(f"{config.code}: API response was not valid JSON.", source=config.code) from exc

        records = payload.get("results", payload.get("data")) if isinstance(payload, dict) else payload
        if not isinstance(records, list):
            raise ParseError(f"{config.code}: API response did not contain a record list.", source=config.code)

        entities = []
        skipped = 0
        for record in records:
            entity = map_record(record, config) if isinstance(record, Mapping) else None
            if entity is None:
                skipped += 1
                continue
            entities.append(entity)
        entities = entities[: options.limit]

        log_event(
            logger,
            logging.INFO,
            "api_search_completed",
            source=config.code,
            records=len(records),
            entities=len(entities),
            skipped=skipped,
        )
        warnings = (f"Skipped {skipped} record(s) without a name.",) if skipped else ()
        return ScraperResult(
            success=True,
            source=config.code,
            query=query,
            entities=tuple(entities),
            total_found=len(entities),
            tier_used=int(Tier.OPEN_API),
            warnings=warnings,
        )
