"""
registry/schemas.py

Serialized response shapes for registry searches.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from registry.search.person import PersonBusinessMatch, PersonSearchResult
from registry.types import MultiJurisdictionResult, ScrapedEntity, ScraperResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class OfficerResponse(_CamelModel):
    name: str
    title: str
    address: str | None = None
    start_date: str | None = Field(default=None, alias="startDate")


class FilingResponse(_CamelModel):
    date: str | None = None
    filing_type: str | None = Field(default=None, alias="filingType")
    number: str | None = None


class EntityResponse(_CamelModel):
    """
    One registry entity as returned to callers.
    """

    name: str
    entity_number: str | None = Field(default=None, alias="entityNumber")
    jurisdiction: str
    status: str | None = None
    incorporation_date: str | None = Field(default=None, alias="incorporationDate")
    entity_type: str | None = Field(default=None, alias="entityType")
    registered_address: str | None = Field(default=None, alias="registeredAddress")
    registered_agent: str | None = Field(default=None, alias="registeredAgent")
    officers: list[OfficerResponse] = Field(default_factory=list)
    filings: list[FilingResponse] = Field(default_factory=list)
    source_url: str = Field(..., alias="sourceUrl")
    source: str
    scraped_at: str = Field(..., alias="scrapedAt")

    @classmethod
    def from_entity(cls, entity: ScrapedEntity) -> EntityResponse:
        return cls(
            name=entity.name,
            entity_number=entity.entity_number,
            jurisdiction=entity.jurisdiction,
            status=entity.status,
            incorporation_date=entity.incorporation_date,
            entity_type=entity.entity_type,
            registered_address=entity.registered_address,
            registered_agent=entity.registered_agent,
            officers=[
                OfficerResponse(
                    name=officer.name,
                    title=officer.title,
                    address=officer.address,
                    start_date=officer.start_date,
                )
                for officer in entity.officers
            ],
            filings=[
                FilingResponse(date=item.date, filing_type=item.filing_type, number=item.number)
                for item in entity.filings
            ],
            source_url=entity.source_url,
            source=entity.source,
            scraped_at=entity.scraped_at.isoformat(),
        )


class SearchEntityResponse(_CamelModel):
    """
    Result of ``search_entity`` in its wire shape.
    """

    success: bool
    entities: list[EntityResponse] = Field(default_factory=list)
    total_found: int = Field(default=0, ge=0, alias="totalFound")
    duration_ms: int = Field(default=0, ge=0, alias="durationMs")
    error: str | None = None
    error_type: str | None = Field(default=None, alias="errorType")
    source: str
    cached: bool = False
    tier_used: int | None = Field(default=None, alias="tierUsed")
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ScraperResult) -> SearchEntityResponse:
        return cls(
            success=result.success,
            entities=[EntityResponse.from_entity(entity) for entity in result.entities],
            total_found=result.total_found,
            duration_ms=result.duration_ms,
            error=result.error,
            error_type=result.error_type,
            source=result.source,
            cached=result.cached,
            tier_used=result.tier_used,
            warnings=list(result.warnings),
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MultiSearchResponse(_CamelModel):
    entities: list[EntityResponse] = Field(default_factory=list)
    total_found: int = Field(default=0, ge=0, alias="totalFound")
    duration_ms: int = Field(default=0, ge=0, alias="durationMs")
    succeeded: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    results: dict[str, SearchEntityResponse] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: MultiJurisdictionResult) -> MultiSearchResponse:
        return cls(
            entities=[EntityResponse.from_entity(entity) for entity in result.entities],
            total_found=result.total_found,
            duration_ms=result.duration_ms,
            succeeded=list(result.succeeded),
            failed=list(result.failed),
            results={code: SearchEntityResponse.from_result(item) for code, item in result.results.items()},
        )


class JurisdictionHealthResponse(_CamelModel):
    name: str
    tier: int = Field(..., ge=1, le=4)
    circuit_state: str = Field(..., alias="circuitState")
    failures: int = Field(default=0, ge=0)
    time_until_retry: float = Field(default=0.0, ge=0, alias="timeUntilRetry")
    available_tokens: float = Field(default=0.0, ge=0, alias="availableTokens")
    last_error: str | None = Field(default=None, alias="lastError")


class HealthResponse(_CamelModel):
    jurisdictions: dict[str, JurisdictionHealthResponse] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: dict[str, dict[str, Any]]) -> HealthResponse:
        return cls(
            jurisdictions={code: JurisdictionHealthResponse(**values) for code, values in report.items()},
        )


class PersonBusinessResponse(_CamelModel):
    company: EntityResponse
    state: str
    roles: list[str] = Field(default_factory=list)
    ownership_likelihood: str = Field(..., alias="ownershipLikelihood")
    ownership_label: str = Field(..., alias="ownershipLabel")
    ownership_reason: str = Field(..., alias="ownershipReason")
    ownership_score: float = Field(..., ge=0, le=1, alias="ownershipScore")
    source: str

    @classmethod
    def from_match(cls, match: PersonBusinessMatch) -> PersonBusinessResponse:
        return cls(
            company=EntityResponse.from_entity(match.entity),
            state=match.state,
            roles=list(match.roles),
            ownership_likelihood=match.ownership.likelihood.value,
            ownership_label=match.ownership.likelihood.label,
            ownership_reason=match.ownership.reason,
            ownership_score=match.ownership.score,
            source=match.source.value,
        )


class OwnershipSummaryResponse(_CamelModel):
    confirmed: int = 0
    high_likelihood: int = Field(default=0, alias="highLikelihood")
    medium_likelihood: int = Field(default=0, alias="mediumLikelihood")
    low_likelihood: int = Field(default=0, alias="lowLikelihood")
    total: int = 0
    unique_states: list[str] = Field(default_factory=list, alias="uniqueStates")


class PersonSearchResponse(_CamelModel):
    """
    Result of a person-to-business search in its wire shape.
    """

    success: bool
    person_searched: str = Field(..., alias="personSearched")
    total_found: int = Field(default=0, ge=0, alias="totalFound")
    businesses: list[PersonBusinessResponse] = Field(default_factory=list)
    summary: OwnershipSummaryResponse
    states_searched: list[str] = Field(default_factory=list, alias="statesSearched")
    states_succeeded: list[str] = Field(default_factory=list, alias="statesSucceeded")
    states_failed: list[str] = Field(default_factory=list, alias="statesFailed")
    duration_ms: int = Field(default=0, ge=0, alias="durationMs")
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_result(cls, result: PersonSearchResult) -> PersonSearchResponse:
        summary = result.summary()
        return cls(
            success=result.success,
            person_searched=result.person,
            total_found=result.total_found,
            businesses=[PersonBusinessResponse.from_match(match) for match in result.matches],
            summary=OwnershipSummaryResponse(
                confirmed=summary.confirmed,
                high_likelihood=summary.high,
                medium_likelihood=summary.medium,
                low_likelihood=summary.low,
                total=summary.total,
                unique_states=list(summary.states),
            ),
            states_searched=list(result.searched),
            states_succeeded=list(result.succeeded),
            states_failed=list(result.failed),
            duration_ms=result.duration_ms,
            warnings=list(result.warnings),
            error=result.error,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
