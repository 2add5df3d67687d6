"""
Person-to-business search: every registered business a person is filed on.

Runs officer (and, where the registry has a separate endpoint, registered
agent) searches across jurisdictions through the unified scraper, attaches the
person's roles to each business and ranks the businesses by ownership
likelihood.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Iterable
from dataclasses import dataclass, replace

from registry.errors import InvalidQueryError
from registry.logging_utils import log_event
from registry.router import UnifiedRegistryScraper, sanitize_query
from registry.search.ownership import DataSource, OwnershipInference, OwnershipLikelihood, infer_ownership
from registry.types import MultiJurisdictionResult, ScrapedEntity, SearchOptions

logger = logging.getLogger(__name__)

DEFAULT_OFFICER_ROLE = "Officer"
DEFAULT_AGENT_ROLE = "Registered Agent"
SHARED_ENDPOINT_ROLE = "Officer/Registered Agent"


@dataclass(frozen=True)
class PersonBusinessMatch:
    entity: ScrapedEntity
    roles: tuple[str, ...]
    ownership: OwnershipInference
    source: DataSource = DataSource.STATE_REGISTRY

    @property
    def state(self) -> str:
        return self.entity.jurisdiction.removeprefix("us_").upper()

    def merge_key(self) -> str:
        return f"{' '.join(self.entity.name.lower().split())}|{self.state}"


@dataclass(frozen=True)
class OwnershipSummary:
    confirmed: int
    high: int
    medium: int
    low: int
    total: int
    states: tuple[str, ...]


@dataclass(frozen=True)
class PersonSearchResult:
    success: bool
    person: str
    matches: tuple[PersonBusinessMatch, ...] = ()
    searched: tuple[str, ...] = ()
    succeeded: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    error: str | None = None
    duration_ms: int = 0

    @property
    def total_found(self) -> int:
        return len(self.matches)

    def summary(self) -> OwnershipSummary:
        return ownership_summary(self.matches)


def _name_tokens(name: str) -> frozenset[str]:
    return frozenset(token for token in re.split(r"[^a-z0-9]+", name.lower()) if token)


def name_matches(person: str, candidate: str | None) -> bool:
    """
    Order-insensitive token match, so ``"John Doe"`` finds ``"DOE, JOHN A"``.
    """

    if not candidate:
        return False
    wanted = _name_tokens(person)
    return bool(wanted) and wanted <= _name_tokens(candidate)


def roles_for_person(entity: ScrapedEntity, person: str, default_role: str) -> tuple[str, ...]:
    roles = [officer.title or default_role for officer in entity.officers if name_matches(person, officer.name)]
    if name_matches(person, entity.registered_agent):
        roles.append(DEFAULT_AGENT_ROLE)
    if not roles:
        roles.append(default_role)
    return tuple(dict.fromkeys(roles))


def _match(entity: ScrapedEntity, person: str, default_role: str) -> PersonBusinessMatch:
    roles = roles_for_person(entity, person, default_role)
    inference = infer_ownership(roles, entity.name, entity_type=entity.entity_type)
    return PersonBusinessMatch(entity=entity, roles=roles, ownership=inference)


def merge_matches(matches: Iterable[PersonBusinessMatch]) -> list[PersonBusinessMatch]:
    """
    One match per business and state; roles are unioned and the stronger inference kept.
    """

    merged: dict[str, PersonBusinessMatch] = {}
    for match in matches:
        key = match.merge_key()
        existing = merged.get(key)
        if existing is None:
            merged[key] = match
            continue
        roles = tuple(dict.fromkeys((*existing.roles, *match.roles)))
        winner = match if match.ownership.score > existing.ownership.score else existing
        merged[key] = replace(winner, roles=roles)
    return list(merged.values())


def rank_matches(matches: Iterable[PersonBusinessMatch]) -> list[PersonBusinessMatch]:
    return sorted(
        matches,
        key=lambda match: (match.ownership.likelihood.rank, -match.ownership.score, match.entity.name.lower()),
    )


def ownership_summary(matches: Iterable[PersonBusinessMatch]) -> OwnershipSummary:
    counts = {likelihood: 0 for likelihood in OwnershipLikelihood}
    states: list[str] = []
    total = 0
    for match in matches:
        counts[match.ownership.likelihood] += 1
        total += 1
        if match.state not in states:
            states.append(match.state)
    return OwnershipSummary(
        confirmed=counts[OwnershipLikelihood.CONFIRMED],
        high=counts[OwnershipLikelihood.HIGH],
        medium=counts[OwnershipLikelihood.MEDIUM],
        low=counts[OwnershipLikelihood.LOW],
        total=total,
        states=tuple(states),
    )


def shares_agent_endpoint(scraper: UnifiedRegistryScraper, code: str) -> bool:
    """
    True when the registry answers officer and agent searches from one endpoint.
    """

    if not scraper.store.supports_search_type(code, "agent"):
        return False
    urls = scraper.store.get(code).scrape.alternate_search_urls
    return urls.get("agent") == urls.get("officer")


def _collect(
    multi: MultiJurisdictionResult,
    person: str,
    default_roles: dict[str, str],
    matches: list[PersonBusinessMatch],
    outcomes: dict[str, bool],
    warnings: list[str],
) -> None:
    for code, result in multi.results.items():
        if result.success:
            outcomes[code] = True
            matches.extend(_match(entity, person, default_roles[code]) for entity in result.entities)
            continue
        outcomes.setdefault(code, False)
        warnings.append(f"{code.upper()}: {result.error}")


async def search_by_person(
    scraper: UnifiedRegistryScraper,
    name: str,
    codes: Iterable[str] | None = None,
    *,
    limit: int = 25,
    fetch_details: bool = False,
    include_agents: bool = True,
    max_concurrent: int | None = None,
) -> PersonSearchResult:
    """
    Find the businesses ``name`` is filed on across ``codes`` (default: every
    jurisdiction that supports officer searches).

    Never raises for bad input or registry failures; those come back as
    ``success=False`` or as per-jurisdiction warnings.
    """

    started = time.perf_counter()

    def elapsed() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        person = sanitize_query(name)
        officer_options = SearchOptions(limit=limit, fetch_details=fetch_details, search_type="officer")
    except InvalidQueryError as exc:
        return PersonSearchResult(success=False, person=name, error=str(exc), duration_ms=elapsed())

    store = scraper.store
    requested: list[str] = []
    for code in store.codes() if codes is None else codes:
        key = (code or "").strip().lower()
        if key and key not in requested:
            requested.append(key)

    warnings: list[str] = []
    unknown = [code for code in requested if store.find(code) is None]
    if unknown:
        warnings.append(f"Skipped unknown jurisdictions: {', '.join(unknown)}")
    officer_codes = [code for code in requested if store.supports_search_type(code, "officer")]
    unsupported = [code for code in requested if code not in unknown and code not in officer_codes]
    if unsupported and codes is not None:
        warnings.append(f"Officer search is not available for: {', '.join(unsupported)}")
    if not officer_codes:
        return PersonSearchResult(
            success=False,
            person=person,
            warnings=tuple(warnings),
            error="None of the requested jurisdictions supports officer searches.",
            duration_ms=elapsed(),
        )

    log_event(logger, logging.INFO, "person_search_started", jurisdictions=len(officer_codes))
    matches: list[PersonBusinessMatch] = []
    outcomes: dict[str, bool] = {}

    officers = await scraper.search_multiple(officer_codes, person, officer_options, max_concurrent=max_concurrent)
    officer_roles = {
        code: SHARED_ENDPOINT_ROLE if shares_agent_endpoint(scraper, code) else DEFAULT_OFFICER_ROLE
        for code in officer_codes
    }
    _collect(officers, person, officer_roles, matches, outcomes, warnings)

    agent_codes = [
        code
        for code in officer_codes
        if include_agents
        and store.supports_search_type(code, "agent")
        and not shares_agent_endpoint(scraper, code)
    ]
    if agent_codes:
        agents = await scraper.search_multiple(
            agent_codes,
            person,
            replace(officer_options, search_type="agent"),
            max_concurrent=max_concurrent,
        )
        _collect(agents, person, dict.fromkeys(agent_codes, DEFAULT_AGENT_ROLE), matches, outcomes, warnings)

    ranked = rank_matches(merge_matches(matches))
    succeeded = tuple(code for code in officer_codes if outcomes.get(code))
    failed = tuple(code for code in officer_codes if not outcomes.get(code))
    log_event(
        logger,
        logging.INFO,
        "person_search_completed",
        jurisdictions=len(officer_codes),
        succeeded=len(succeeded),
        failed=len(failed),
        businesses=len(ranked),
    )
    return PersonSearchResult(
        success=bool(succeeded),
        person=person,
        matches=tuple(ranked),
        searched=tuple(officer_codes),
        succeeded=succeeded,
        failed=failed,
        warnings=tuple(warnings),
        duration_ms=elapsed(),
    )
