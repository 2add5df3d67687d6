from __future__ import annotations

import pytest

from registry.jurisdictions import selector
from registry.parsing import normalize_date, normalize_status, parse_document, resolve
from registry.parsing.selectors import parse_int

ROW_HTML = """
<table>
  <tr class="row">
    <td class="name"><a href="/detail/123">  ACME   Holdings LLC </a></td>
    <td class="number">Doc # P12000034567</td>
    <td class="status"></td>
    <td class="alt-status">active</td>
  </tr>
</table>
"""


@pytest.fixture()
def row():
    return parse_document(ROW_HTML).select_one("tr.row")


def test_primary_locator_wins_and_whitespace_is_collapsed(row) -> None:
    assert resolve(row, selector("td.name a", fallbacks=("td a",))) == "ACME Holdings LLC"


def test_fallback_used_when_primary_is_empty(row) -> None:
    assert resolve(row, selector("td.status", fallbacks=("td.missing", "td.alt-status"))) == "active"


def test_missing_field_resolves_to_none(row) -> None:
    assert resolve(row, selector("td.nothing", fallbacks=("span.nothing",))) is None
    assert resolve(row, None) is None
    assert resolve(None, selector("td")) is None


def test_attribute_extraction(row) -> None:
    assert resolve(row, selector("td.name a", attribute="href")) == "/detail/123"


def test_pattern_uses_first_group(row) -> None:
    assert resolve(row, selector("td.number", pattern=r"([A-Z]\d+)")) == "P12000034567"


def test_pattern_without_match_is_none(row) -> None:
    assert resolve(row, selector("td.number", pattern=r"(\d{20})")) is None


def test_transform_applies_after_pattern(row) -> None:
    strategy = selector("td.number", pattern=r"([A-Z]\d+)", transform=str.lower)
    assert resolve(row, strategy) == "p12000034567"


def test_unsupported_locator_syntax_is_treated_as_no_match(row) -> None:
    assert resolve(row, selector("td:has-text('x')", fallbacks=("td.name a",))) == "ACME Holdings LLC"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("ACTIVE", "Active"),
        ("Good Standing", "Active"),
        ("INACT", "Inactive"),
        ("Delinquent", "Inactive"),
        ("ADMIN DISS", "Administratively Dissolved"),
        ("VOLUNTARILY DISSOLVED", "Dissolved"),
        ("NAME HS", "Name History"),
        ("Suspended", "Suspended"),
        ("", None),
        (None, None),
    ],
)
def test_normalize_status(raw, expected) -> None:
    assert normalize_status(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("01/15/2012", "2012-01-15"),
        ("2012-01-15T00:00:00.000", "2012-01-15"),
        ("January 15, 2012", "2012-01-15"),
        ("sometime in 2012", "sometime in 2012"),
        (None, None),
    ],
)
def test_normalize_date(raw, expected) -> None:
    assert normalize_date(raw) == expected


def test_parse_int_reads_grouped_digits() -> None:
    assert parse_int("Showing 1 - 20 of 1,234 results") == 1
    assert parse_int("1,234 results") == 1234
    assert parse_int("no results") is None
