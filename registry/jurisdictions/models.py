"""
Declarative jurisdiction configuration models.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum

Transform = Callable[[str], str]
FieldValue = str | Callable[[str], str] | None


class Tier(IntEnum):
    OPEN_API = 1
    STATIC_HTML = 2
    SCRIPT_RENDERED = 3
    CAPTCHA_PROTECTED = 4


@dataclass(frozen=True)
class SelectorStrategy:
    """
    Fallback-capable rule for locating one field within a document.
    """

    primary: str
    fallbacks: tuple[str, ...] = ()
    attribute: str | None = None
    pattern: re.Pattern[str] | None = None
    transform: Transform | None = None

    @property
    def locators(self) -> tuple[str, ...]:
        return (self.primary, *self.fallbacks)


def selector(
    primary: str,
    *,
    fallbacks: tuple[str, ...] | list[str] = (),
    attribute: str | None = None,
    pattern: str | re.Pattern[str] | None = None,
    transform: Transform | None = None,
) -> SelectorStrategy:
    """
    Build a ``SelectorStrategy``, compiling a string pattern once.
    """

    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return SelectorStrategy(
        primary=primary,
        fallbacks=tuple(fallbacks),
        attribute=attribute,
        pattern=compiled,
        transform=transform,
    )


@dataclass(frozen=True)
class SearchResultSelectors:
    results_container: str
    result_rows: str
    entity_name: SelectorStrategy
    entity_number: SelectorStrategy | None = None
    status: SelectorStrategy | None = None
    filing_date: SelectorStrategy | None = None
    entity_type: SelectorStrategy | None = None
    detail_link: SelectorStrategy | None = None
    address: SelectorStrategy | None = None
    registered_agent: SelectorStrategy | None = None
    total_results: SelectorStrategy | None = None
    next_page: SelectorStrategy | None = None


@dataclass(frozen=True)
class DetailPageSelectors:
    entity_name: SelectorStrategy | None = None
    entity_type: SelectorStrategy | None = None
    status: SelectorStrategy | None = None
    incorporation_date: SelectorStrategy | None = None
    jurisdiction_of_formation: SelectorStrategy | None = None
    registered_agent: SelectorStrategy | None = None
    registered_agent_address: SelectorStrategy | None = None
    principal_address: SelectorStrategy | None = None
    mailing_address: SelectorStrategy | None = None

    officer_container: str | None = None
    officer_rows: str | None = None
    officer_name: SelectorStrategy | None = None
    officer_title: SelectorStrategy | None = None
    officer_address: SelectorStrategy | None = None
    officer_start_date: SelectorStrategy | None = None

    filing_container: str | None = None
    filing_rows: str | None = None
    filing_date: SelectorStrategy | None = None
    filing_type: SelectorStrategy | None = None
    filing_number: SelectorStrategy | None = None


@dataclass(frozen=True)
class FormField:
    """
    One search-form input. ``value`` defaults to the query itself.
    """

    name: str
    selector: str
    kind: str = "text"
    value: FieldValue = None

    def resolve_value(self, query: str) -> str:
        if self.value is None:
            return query
        if callable(self.value):
            return self.value(query)
        return self.value


@dataclass(frozen=True)
class ChallengeSpec:
    detect_selector: str
    image_selector: str
    input_selector: str
    submit_selector: str
    max_attempts: int = 1


@dataclass(frozen=True)
class ScrapeSpec:
    search_url: str
    search_selectors: SearchResultSelectors
    search_method: str = "GET"
    alternate_search_urls: Mapping[str, str] = field(default_factory=dict)
    detail_url_template: str | None = None
    detail_selectors: DetailPageSelectors | None = None
    form_fields: tuple[FormField, ...] = ()
    js_required: bool = False
    wait_for_selector: str | None = None
    post_search_delay: float | None = None
    submit_method: str = "click"
    submit_selector: str | None = None
    challenge: ChallengeSpec | None = None
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ApiFieldMapping:
    """
    Target attribute -> source field(s). Tuples are concatenated.
    """

    name: str
    entity_number: str | None = None
    status: str | None = None
    incorporation_date: str | None = None
    entity_type: str | None = None
    address: str | tuple[str, ...] | None = None
    registered_agent: str | tuple[str, ...] | None = None


@dataclass(frozen=True)
class ApiSpec:
    kind: str
    endpoint: str
    name_field: str
    field_mapping: ApiFieldMapping
    status_field: str | None = None
    active_status_value: str = "Active"
    inactive_status_value: str = "Inactive"
    order_by: str | None = None
    app_token_env: str | None = None
    detail_url_template: str | None = None
    requests_per_minute: int | None = None
    active_only: bool = False


@dataclass(frozen=True)
class SearchTypes:
    by_name: bool = True
    by_officer: bool = False
    by_agent: bool = False
    by_address: bool = False

    def supports(self, search_type: str) -> bool:
        return bool(getattr(self, f"by_{search_type}", False))


@dataclass(frozen=True)
class JurisdictionConfig:
    """
    How to query one government business registry.
    """

    code: str
    name: str
    registry_name: str
    tier: Tier
    base_url: str
    api: ApiSpec | None = None
    scrape: ScrapeSpec | None = None
    requests_per_minute: int | None = None
    search_types: SearchTypes = field(default_factory=SearchTypes)
    notes: str = ""
    known_issues: tuple[str, ...] = ()

    @property
    def jurisdiction_tag(self) -> str:
        return f"us_{self.code}"
