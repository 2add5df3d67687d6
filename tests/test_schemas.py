from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from registry.errors import TransportError
from registry.schemas import HealthResponse, MultiSearchResponse, SearchEntityResponse
from registry.types import MultiJurisdictionResult, Officer, ScrapedEntity, ScraperResult

SCRAPED_AT = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def _entity() -> ScrapedEntity:
    return ScrapedEntity(
        name="ACME HOLDINGS LLC",
        entity_number="L12000012345",
        jurisdiction="us_fl",
        source="fl",
        source_url="https://search.sunbiz.org/detail/1",
        status="Active",
        officers=(Officer(name="ROADRUNNER, WILE E", title="MGR", start_date="2019-01-02"),),
        scraped_at=SCRAPED_AT,
    )


def test_success_payload_uses_camel_case_and_omits_error() -> None:
    result = ScraperResult(
        success=True,
        source="fl",
        query="acme",
        entities=(_entity(),),
        total_found=7,
        duration_ms=412,
        tier_used=2,
    )

    payload = SearchEntityResponse.from_result(result).to_payload()

    assert payload["success"] is True
    assert payload["totalFound"] == 7
    assert payload["durationMs"] == 412
    assert payload["tierUsed"] == 2
    assert "error" not in payload
    assert "errorType" not in payload
    entity = payload["entities"][0]
    assert entity["entityNumber"] == "L12000012345"
    assert entity["sourceUrl"] == "https://search.sunbiz.org/detail/1"
    assert entity["scrapedAt"] == "2026-10-17T12:00:00+00:00"
    assert entity["officers"][0]["startDate"] == "2019-01-02"


def test_failure_payload_carries_error_type() -> None:
    result = ScraperResult.failure(source="ny", query="acme", error=TransportError("HTTP 503"), duration_ms=5)

    payload = SearchEntityResponse.from_result(result).to_payload()

    assert payload["success"] is False
    assert payload["error"] == "HTTP 503"
    assert payload["errorType"] == "TransportError"
    assert payload["entities"] == []


def test_multi_search_response() -> None:
    single = ScraperResult(success=True, source="fl", query="acme", entities=(_entity(),), total_found=1)
    merged = MultiJurisdictionResult(
        results={"fl": single, "zz": ScraperResult.failure(source="zz", query="acme", error="unknown")},
        entities=(_entity(),),
        total_found=1,
        succeeded=("fl",),
        failed=("zz",),
        duration_ms=20,
    )

    payload = MultiSearchResponse.from_result(merged).model_dump(by_alias=True)

    assert payload["totalFound"] == 1
    assert payload["failed"] == ["zz"]
    assert payload["results"]["zz"]["errorType"] is None
    assert payload["results"]["fl"]["entities"][0]["name"] == "ACME HOLDINGS LLC"


def test_health_response_validates_tier() -> None:
    report = {
        "fl": {
            "name": "Florida",
            "tier": 2,
            "circuit_state": "closed",
            "failures": 0,
            "time_until_retry": 0.0,
            "available_tokens": 30.0,
            "last_error": None,
        }
    }

    payload = HealthResponse.from_report(report).model_dump(by_alias=True)

    assert payload["jurisdictions"]["fl"]["circuitState"] == "closed"
    assert payload["jurisdictions"]["fl"]["availableTokens"] == 30.0

    report["fl"]["tier"] = 9
    with pytest.raises(ValidationError):
        HealthResponse.from_report(report)
