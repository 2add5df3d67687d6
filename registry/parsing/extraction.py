"""
Row and detail-page extraction driven by jurisdiction selector bundles.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urljoin

from bs4 import BeautifulSoup

from registry.jurisdictions.models import DetailPageSelectors, JurisdictionConfig, SearchResultSelectors
from registry.parsing.selectors import (
    Node,
    normalize_date,
    normalize_status,
    parse_int,
    resolve,
    select_all,
    select_first,
)
from registry.types import EntityDetails, Filing, Officer, ScrapedEntity


@dataclass(frozen=True)
class SearchPage:
    """
    Everything one results page yielded.
    """

    entities: tuple[ScrapedEntity, ...]
    rows_seen: int
    rows_dropped: int
    total_hint: int | None
    next_page_url: str | None


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def build_detail_url(config: JurisdictionConfig, entity_id: str) -> str | None:
    """
    Substitute ``entity_id`` into the configured detail template.
    """

    template = None
    if config.scrape is not None and config.scrape.detail_url_template:
        template = config.scrape.detail_url_template
    elif config.api is not None and config.api.detail_url_template:
        template = config.api.detail_url_template
    if not template or not entity_id:
        return None
    url = template.replace("{id}", quote(entity_id.strip(), safe=""))
    return urljoin(config.base_url.rstrip("/") + "/", url)


def _results_scope(document: Node, selectors: SearchResultSelectors) -> Node | None:
    return select_first(document, selectors.results_container)


def extract_search_page(
    document: Node,
    config: JurisdictionConfig,
    *,
    page_url: str,
    limit: int,
) -> SearchPage:
    """
    Turn one results document into entities, dropping rows without a name.
    """

    if config.scrape is None:
        return SearchPage((), 0, 0, None, None)
    selectors = config.scrape.search_selectors

    total_hint = parse_int(resolve(document, selectors.total_results))
    # Only link-style pagers yield a URL; button pagers are clicked by the browser engine.
    next_link = None
    if selectors.next_page is not None and selectors.next_page.attribute:
        next_link = resolve(document, selectors.next_page)
    next_page_url = urljoin(page_url, next_link) if next_link else None

    container = _results_scope(document, selectors)
    if container is None:
        return SearchPage((), 0, 0, total_hint, next_page_url)

    entities: list[ScrapedEntity] = []
    rows = select_all(container, selectors.result_rows)
    dropped = 0
    for row in rows:
        entity = _entity_from_row(row, config, selectors, page_url=page_url)
        if entity is None:
            dropped += 1
            continue
        if len(entities) < limit:
            entities.append(entity)
    valid = len(rows) - dropped
    return SearchPage(
        entities=tuple(entities),
        rows_seen=valid,
        rows_dropped=dropped,
        total_hint=total_hint,
        next_page_url=next_page_url,
    )


def _entity_from_row(
    row: Node,
    config: JurisdictionConfig,
    selectors: SearchResultSelectors,
    *,
    page_url: str,
) -> ScrapedEntity | None:
    name = resolve(row, selectors.entity_name)
    if not name:
        return None

    entity_number = resolve(row, selectors.entity_number)
    link = resolve(row, selectors.detail_link)
    if link:
        source_url = urljoin(page_url, link)
    else:
        source_url = (entity_number and build_detail_url(config, entity_number)) or page_url

    return ScrapedEntity(
        name=name,
        entity_number=entity_number,
        jurisdiction=config.jurisdiction_tag,
        source=config.code,
        source_url=source_url,
        status=normalize_status(resolve(row, selectors.status)),
        incorporation_date=normalize_date(resolve(row, selectors.filing_date)),
        entity_type=resolve(row, selectors.entity_type),
        registered_address=resolve(row, selectors.address),
        registered_agent=resolve(row, selectors.registered_agent),
    )


def _extract_officers(document: Node, selectors: DetailPageSelectors) -> tuple[Officer, ...]:
    if not selectors.officer_container or not selectors.officer_rows:
        return ()
    container = select_first(document, selectors.officer_container)
    if container is None:
        return ()

    officers: list[Officer] = []
    for row in select_all(container, selectors.officer_rows):
        name = resolve(row, selectors.officer_name)
        if not name:
            continue
        officers.append(
            Officer(
                name=name,
                title=resolve(row, selectors.officer_title) or "Officer",
                address=resolve(row, selectors.officer_address),
                start_date=normalize_date(resolve(row, selectors.officer_start_date)),
            )
        )
    return tuple(officers)


def _extract_filings(document: Node, selectors: DetailPageSelectors) -> tuple[Filing, ...]:
    if not selectors.filing_container or not selectors.filing_rows:
        return ()
    container = select_first(document, selectors.filing_container)
    if container is None:
        return ()

    filings: list[Filing] = []
    for row in select_all(container, selectors.filing_rows):
        filing = Filing(
            date=normalize_date(resolve(row, selectors.filing_date)),
            filing_type=resolve(row, selectors.filing_type),
            number=resolve(row, selectors.filing_number),
        )
        if filing.date or filing.filing_type:
            filings.append(filing)
    return tuple(filings)


def extract_details(document: Node, selectors: DetailPageSelectors) -> EntityDetails:
    """
    Read a detail page: entity fields plus the officer and filing sub-lists.
    """

    return EntityDetails(
        name=resolve(document, selectors.entity_name),
        entity_type=resolve(document, selectors.entity_type),
        status=normalize_status(resolve(document, selectors.status)),
        incorporation_date=normalize_date(resolve(document, selectors.incorporation_date)),
        jurisdiction_of_formation=resolve(document, selectors.jurisdiction_of_formation),
        registered_agent=resolve(document, selectors.registered_agent),
        registered_agent_address=resolve(document, selectors.registered_agent_address),
        principal_address=resolve(document, selectors.principal_address),
        mailing_address=resolve(document, selectors.mailing_address),
        officers=_extract_officers(document, selectors),
        filings=_extract_filings(document, selectors),
    )
