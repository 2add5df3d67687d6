"""
Typed contracts shared by the registry scraping engines.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from registry.errors import InvalidQueryError

STATUS_FILTERS = ("active", "inactive", "all")
SEARCH_TYPES = ("name", "officer", "agent", "address")
MAX_LIMIT = 100


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return _utc_now()


@dataclass(frozen=True)
class Officer:
    name: str
    title: str
    address: str | None = None
    start_date: str | None = None


@dataclass(frozen=True)
class Filing:
    date: str | None = None
    filing_type: str | None = None
    number: str | None = None


@dataclass(frozen=True)
class ScrapedEntity:
    """
    One normalized business record captured from a registry.
    """

    name: str
    jurisdiction: str
    source: str
    source_url: str
    entity_number: str | None = None
    status: str | None = None
    incorporation_date: str | None = None
    entity_type: str | None = None
    registered_address: str | None = None
    registered_agent: str | None = None
    officers: tuple[Officer, ...] = ()
    filings: tuple[Filing, ...] = ()
    scraped_at: datetime = field(default_factory=_utc_now)

    def dedupe_key(self) -> str:
        normalized_name = re.sub(r"[^a-z0-9]", "", self.name.lower())
        return f"{normalized_name}|{(self.entity_number or '').strip().lower()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "entity_number": self.entity_number,
            "jurisdiction": self.jurisdiction,
            "status": self.status,
            "incorporation_date": self.incorporation_date,
            "entity_type": self.entity_type,
            "registered_address": self.registered_address,
            "registered_agent": self.registered_agent,
            "officers": [
                {
                    "name": officer.name,
                    "title": officer.title,
                    "address": officer.address,
                    "start_date": officer.start_date,
                }
                for officer in self.officers
            ],
            "filings": [
                {"date": item.date, "filing_type": item.filing_type, "number": item.number}
                for item in self.filings
            ],
            "source_url": self.source_url,
            "source": self.source,
            "scraped_at": self.scraped_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ScrapedEntity:
        return cls(
            name=str(payload["name"]),
            jurisdiction=str(payload["jurisdiction"]),
            source=str(payload["source"]),
            source_url=str(payload.get("source_url") or ""),
            entity_number=payload.get("entity_number"),
            status=payload.get("status"),
            incorporation_date=payload.get("incorporation_date"),
            entity_type=payload.get("entity_type"),
            registered_address=payload.get("registered_address"),
            registered_agent=payload.get("registered_agent"),
            officers=tuple(
                Officer(
                    name=str(item["name"]),
                    title=str(item.get("title") or ""),
                    address=item.get("address"),
                    start_date=item.get("start_date"),
                )
                for item in payload.get("officers") or ()
            ),
            filings=tuple(
                Filing(
                    date=item.get("date"),
                    filing_type=item.get("filing_type"),
                    number=item.get("number"),
                )
                for item in payload.get("filings") or ()
            ),
            scraped_at=_parse_timestamp(payload.get("scraped_at")),
        )


@dataclass(frozen=True)
class EntityDetails:
    """
    Partial entity produced by a detail-page fetch. ``None`` means "not found".
    """

    name: str | None = None
    entity_type: str | None = None
    status: str | None = None
    incorporation_date: str | None = None
    jurisdiction_of_formation: str | None = None
    registered_agent: str | None = None
    registered_agent_address: str | None = None
    principal_address: str | None = None
    mailing_address: str | None = None
    officers: tuple[Officer, ...] = ()
    filings: tuple[Filing, ...] = ()


def merge_entity_details(entity: ScrapedEntity, details: EntityDetails) -> ScrapedEntity:
    """
    Build a new entity with detail-page fields layered over search-row fields.

    Search-row values win for identity fields; detail values fill gaps and
    replace the (usually empty) officer and filing lists.
    """

    return replace(
        entity,
        entity_type=entity.entity_type or details.entity_type,
        status=entity.status or details.status,
        incorporation_date=entity.incorporation_date or details.incorporation_date,
        registered_address=(
            details.principal_address
            or entity.registered_address
            or details.mailing_address
        ),
        registered_agent=details.registered_agent or entity.registered_agent,
        officers=details.officers or entity.officers,
        filings=details.filings or entity.filings,
    )


@dataclass(frozen=True)
class SearchOptions:
    """
    Caller-facing knobs for one search.
    """

    limit: int = 25
    status: str = "all"
    skip_cache: bool = False
    force_browser: bool = False
    fetch_details: bool = False
    search_type: str = "name"
    timeout: float | None = None

    def __post_init__(self) -> None:
        if isinstance(self.limit, bool) or not isinstance(self.limit, int):
            raise InvalidQueryError(f"limit must be an integer, got {type(self.limit).__name__}")
        if not 1 <= self.limit <= MAX_LIMIT:
            raise InvalidQueryError(f"limit must be between 1 and {MAX_LIMIT}, got {self.limit}")
        if not isinstance(self.status, str) or self.status not in STATUS_FILTERS:
            raise InvalidQueryError(f"status must be one of {', '.join(STATUS_FILTERS)}")
        if not isinstance(self.search_type, str) or self.search_type not in SEARCH_TYPES:
            raise InvalidQueryError(f"search_type must be one of {', '.join(SEARCH_TYPES)}")
        if self.timeout is not None:
            if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
                raise InvalidQueryError(f"timeout must be a number, got {type(self.timeout).__name__}")
            if self.timeout <= 0:
                raise InvalidQueryError("timeout must be positive")
        for name in ("skip_cache", "force_browser", "fetch_details"):
            if not isinstance(getattr(self, name), bool):
                raise InvalidQueryError(f"{name} must be a boolean")

    @classmethod
    def coerce(cls, options: SearchOptions | Mapping[str, Any] | None) -> SearchOptions:
        if options is None:
            return cls()
        if isinstance(options, SearchOptions):
            return options
        if not isinstance(options, Mapping):
            raise InvalidQueryError(f"options must be a mapping, got {type(options).__name__}")
        known = {name: options[name] for name in cls.__dataclass_fields__ if name in options}
        return cls(**known)

    def cache_signature(self) -> dict[str, Any]:
        return {
            "limit": self.limit,
            "status": self.status,
            "fetch_details": self.fetch_details,
            "search_type": self.search_type,
        }


@dataclass(frozen=True)
class ScraperResult:
    """
    Uniform outcome of one search, successful or not.
    """

    success: bool
    source: str
    query: str
    entities: tuple[ScrapedEntity, ...] = ()
    total_found: int = 0
    duration_ms: int = 0
    error: str | None = None
    error_type: str | None = None
    warnings: tuple[str, ...] = ()
    cached: bool = False
    tier_used: int | None = None
    scraped_at: datetime = field(default_factory=_utc_now)

    @classmethod
    def failure(
        cls,
        *,
        source: str,
        query: str,
        error: BaseException | str,
        duration_ms: int = 0,
        tier_used: int | None = None,
    ) -> ScraperResult:
        error_type = None if isinstance(error, str) else type(error).__name__
        return cls(
            success=False,
            source=source,
            query=query,
            error=str(error),
            error_type=error_type,
            duration_ms=duration_ms,
            tier_used=tier_used,
        )


@dataclass(frozen=True)
class MultiJurisdictionResult:
    results: dict[str, ScraperResult]
    entities: tuple[ScrapedEntity, ...]
    total_found: int
    succeeded: tuple[str, ...]
    failed: tuple[str, ...]
    duration_ms: int
