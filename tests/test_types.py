from __future__ import annotations

import unittest

from registry.errors import InvalidQueryError
from registry.types import (
    EntityDetails,
    Filing,
    Officer,
    ScrapedEntity,
    ScraperResult,
    SearchOptions,
    merge_entity_details,
)


def _entity(**overrides) -> ScrapedEntity:
    values = {
        "name": "Acme Holdings, LLC",
        "entity_number": "L12000012345",
        "jurisdiction": "us_fl",
        "source": "fl",
        "source_url": "https://search.sunbiz.org/detail/1",
        "status": "Active",
        "registered_address": "1 Row St",
    }
    values.update(overrides)
    return ScrapedEntity(**values)


class TestSearchOptions(unittest.TestCase):
    def test_defaults(self) -> None:
        options = SearchOptions()

        self.assertEqual(options.limit, 25)
        self.assertEqual(options.status, "all")
        self.assertEqual(options.search_type, "name")

    def test_rejects_out_of_range_values(self) -> None:
        for kwargs in ({"limit": 0}, {"limit": 101}, {"status": "dissolved"}, {"search_type": "phone"}, {"timeout": 0}):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(InvalidQueryError):
                    SearchOptions(**kwargs)

    def test_rejects_wrongly_typed_values(self) -> None:
        for kwargs in (
            {"limit": "5"},
            {"limit": True},
            {"status": None},
            {"search_type": 3},
            {"timeout": "fast"},
            {"skip_cache": "yes"},
        ):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(InvalidQueryError):
                    SearchOptions(**kwargs)

    def test_coerce_rejects_non_mapping(self) -> None:
        with self.assertRaises(InvalidQueryError):
            SearchOptions.coerce(["limit", 5])

    def test_coerce_ignores_unknown_keys(self) -> None:
        options = SearchOptions.coerce({"limit": 5, "status": "active", "page": 3})

        self.assertEqual(options, SearchOptions(limit=5, status="active"))
        self.assertEqual(SearchOptions.coerce(None), SearchOptions())

    def test_cache_signature_ignores_transport_knobs(self) -> None:
        self.assertEqual(
            SearchOptions(skip_cache=True, force_browser=True, timeout=5).cache_signature(),
            SearchOptions().cache_signature(),
        )


class TestScrapedEntity(unittest.TestCase):
    def test_dedupe_key_normalizes_name_and_number(self) -> None:
        first = _entity()
        second = _entity(name="ACME HOLDINGS LLC", entity_number=" l12000012345 ", source="ca")

        self.assertEqual(first.dedupe_key(), second.dedupe_key())
        self.assertNotEqual(first.dedupe_key(), _entity(entity_number="L99").dedupe_key())

    def test_dict_round_trip_keeps_sub_lists(self) -> None:
        entity = _entity(
            officers=(Officer(name="DOE, JANE", title="MGR"),),
            filings=(Filing(date="2023-04-01", filing_type="Annual Report 2023"),),
        )

        restored = ScrapedEntity.from_dict(entity.to_dict())

        self.assertEqual(restored, entity)

    def test_merge_prefers_row_identity_and_detail_sub_lists(self) -> None:
        details = EntityDetails(
            name="Different Name",
            status="Inactive",
            entity_type="Florida Limited Liability Company",
            principal_address="100 Main St, Miami, FL",
            registered_agent="DOE, JANE",
            officers=(Officer(name="ROADRUNNER, WILE E", title="MGR"),),
        )

        merged = merge_entity_details(_entity(), details)

        self.assertEqual(merged.name, "Acme Holdings, LLC")
        self.assertEqual(merged.status, "Active")
        self.assertEqual(merged.entity_type, "Florida Limited Liability Company")
        self.assertEqual(merged.registered_address, "100 Main St, Miami, FL")
        self.assertEqual(merged.registered_agent, "DOE, JANE")
        self.assertEqual(len(merged.officers), 1)


class TestScraperResult(unittest.TestCase):
    def test_failure_records_error_type(self) -> None:
        result = ScraperResult.failure(source="fl", query="acme", error=InvalidQueryError("too short"))

        self.assertFalse(result.success)
        self.assertEqual(result.error_type, "InvalidQueryError")
        self.assertEqual(result.entities, ())

    def test_failure_from_message(self) -> None:
        result = ScraperResult.failure(source="fl", query="acme", error="disabled")

        self.assertEqual(result.error, "disabled")
        self.assertIsNone(result.error_type)


if __name__ == "__main__":
    unittest.main()
