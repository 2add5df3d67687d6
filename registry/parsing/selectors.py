"""
Selector strategy resolution over BeautifulSoup documents.

The same resolver serves static HTML fetched over HTTP and snapshots of
browser-rendered pages, so extraction rules behave identically per tier.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from registry.jurisdictions.models import SelectorStrategy
from registry.logging_utils import log_event

logger = logging.getLogger(__name__)

Node = BeautifulSoup | Tag

DATE_PATTERNS = [
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
]

_ACTIVE_STATUSES = {"ACTIVE", "ACT", "GOOD STANDING", "IN GOOD STANDING", "CURRENT", "EXISTS"}
_INACTIVE_STATUSES = {"INACT", "INACTIVE", "DELINQUENT", "EXPIRED", "CANCELLED", "CANCELED"}
_NAMED_STATUSES = {
    "ADMIN DISS": "Administratively Dissolved",
    "ADMIN": "Administratively Dissolved",
    "NAME HS": "Name History",
    "NAME": "Name History",
    "CROSS RF": "Cross Reference",
    "CROSS": "Cross Reference",
    "REVOKED": "Revoked",
    "WITHDRAWN": "Withdrawn",
    "MERGED": "Merged",
}


def clean_text(value: str | None) -> str:
    if not value:
        return ""
    return re.sub(r"\s+", " ", value).strip()


def select_all(node: Node, locator: str) -> list[Tag]:
    """
    ``node.select`` that treats locator syntax the parser rejects as "no match".
    """

    if not locator:
        return []
    try:
        return list(node.select(locator))
    except SelectorSyntaxError:
        log_event(logger, logging.DEBUG, "selector_syntax_unsupported", locator=locator)
        return []


def select_first(node: Node, locator: str) -> Tag | None:
    matches = select_all(node, locator)
    return matches[0] if matches else None


def _read(element: Tag, attribute: str | None) -> str:
    if attribute:
        raw = element.get(attribute)
        if isinstance(raw, list):
            raw = " ".join(raw)
        return clean_text(raw)
    return clean_text(element.get_text(" ", strip=True))


def _locate(node: Node, strategy: SelectorStrategy) -> str | None:
    for locator in strategy.locators:
        for element in select_all(node, locator):
            value = _read(element, strategy.attribute)
            if value:
                return value
    return None


def resolve(node: Node | None, strategy: SelectorStrategy | None) -> str | None:
    """
    Resolve one field: locate, then attribute, then pattern, then transform.

    Returns ``None`` when nothing matches; missing fields are normal in
    registry HTML and never raise.
    """

    if node is None or strategy is None:
        return None

    value = _locate(node, strategy)
    if value is None:
        return None

    if strategy.pattern is not None:
        match = strategy.pattern.search(value)
        if match is None:
            return None
        value = match.group(1) if match.re.groups else match.group(0)
        if value is None:
            return None
        value = value.strip()

    if strategy.transform is not None:
        value = clean_text(strategy.transform(value))

    return value or None


def parse_int(value: str | None) -> int | None:
    if not value:
        return None
    digits = re.search(r"\d[\d,]*", value)
    if digits is None:
        return None
    return int(digits.group(0).replace(",", ""))


def normalize_status(value: str | None) -> str | None:
    """
    Map registry-specific status codes onto a small shared vocabulary.
    """

    text = clean_text(value)
    if not text:
        return None
    upper = text.upper()
    if upper in _ACTIVE_STATUSES:
        return "Active"
    if upper in _INACTIVE_STATUSES:
        return "Inactive"
    if upper in _NAMED_STATUSES:
        return _NAMED_STATUSES[upper]
    if "DISS" in upper:
        return "Dissolved"
    return text.title() if text.isupper() else text


def normalize_date(value: str | None) -> str | None:
    """
    Render recognisable dates as ISO ``YYYY-MM-DD``; leave anything else as found.
    """

    text = clean_text(value)
    if not text:
        return None
    if "T" in text and re.match(r"^\d{4}-\d{2}-\d{2}T", text):
        return text.split("T", 1)[0]
    for pattern in DATE_PATTERNS:
        try:
            return datetime.strptime(text, pattern).date().isoformat()
        except ValueError:
            continue
    return text
