from __future__ import annotations

from dataclasses import replace

import pytest

from registry.errors import ConfigurationError
from registry.jurisdictions import (
    ApiFieldMapping,
    ApiSpec,
    JurisdictionConfig,
    JurisdictionStore,
    ScrapeSpec,
    SearchResultSelectors,
    Tier,
    get_jurisdiction_store,
    selector,
    validate,
)
from registry.jurisdictions.states import BUILTIN_CONFIGS


def _scrape() -> ScrapeSpec:
    return ScrapeSpec(
        search_url="https://example.gov/search?q={query}",
        search_selectors=SearchResultSelectors(
            results_container="table.results",
            result_rows="tr",
            entity_name=selector("td a"),
        ),
    )


def _api() -> ApiSpec:
    return ApiSpec(
        kind="socrata",
        endpoint="https://data.example.gov/resource/abcd-1234.json",
        name_field="entityname",
        field_mapping=ApiFieldMapping(name="entityname"),
    )


class TestBuiltinConfigs:
    def test_every_builtin_config_is_valid(self) -> None:
        problems = {config.code: validate(config) for config in BUILTIN_CONFIGS}
        assert {code: issues for code, issues in problems.items() if issues} == {}

    def test_codes_are_unique_and_lowercase(self) -> None:
        codes = [config.code for config in BUILTIN_CONFIGS]
        assert len(codes) == len(set(codes))
        assert all(code == code.lower() and len(code) == 2 for code in codes)

    def test_store_covers_every_tier(self) -> None:
        store = get_jurisdiction_store()
        stats = store.tier_statistics()
        assert stats["total"] == len(store)
        for tier in Tier:
            assert stats[f"tier{int(tier)}"] >= 1

    def test_flagship_jurisdictions_have_expected_tiers(self) -> None:
        store = get_jurisdiction_store()
        assert store.get("co").tier is Tier.OPEN_API
        assert store.get("fl").tier is Tier.STATIC_HTML
        assert store.get("ca").tier is Tier.SCRIPT_RENDERED
        assert store.get("de").tier is Tier.CAPTCHA_PROTECTED


class TestValidation:
    def test_tier1_without_api_is_rejected(self) -> None:
        config = JurisdictionConfig(
            code="zz",
            name="Nowhere",
            registry_name="Registry",
            tier=Tier.OPEN_API,
            base_url="https://example.gov",
        )
        assert "tier 1 requires an api spec" in validate(config)

    def test_tier2_without_scrape_is_rejected(self) -> None:
        config = JurisdictionConfig(
            code="zz",
            name="Nowhere",
            registry_name="Registry",
            tier=Tier.STATIC_HTML,
            base_url="https://example.gov",
            api=_api(),
        )
        assert "tier 2 requires a scrape spec" in validate(config)

    def test_tier4_requires_challenge_and_js(self) -> None:
        config = JurisdictionConfig(
            code="zz",
            name="Nowhere",
            registry_name="Registry",
            tier=Tier.CAPTCHA_PROTECTED,
            base_url="https://example.gov",
            scrape=_scrape(),
        )
        issues = validate(config)
        assert "tier 4 requires a challenge spec" in issues
        assert "tier 4 requires scrape.js_required" in issues

    def test_bad_code_and_detail_template(self) -> None:
        config = JurisdictionConfig(
            code="ZZZ",
            name="Nowhere",
            registry_name="Registry",
            tier=Tier.STATIC_HTML,
            base_url="https://example.gov",
            scrape=replace(_scrape(), detail_url_template="/entity"),
        )
        issues = validate(config)
        assert any(issue.startswith("code must be") for issue in issues)
        assert "scrape.detail_url_template must contain '{id}'" in issues


class TestJurisdictionStore:
    def test_invalid_config_fails_store_construction(self) -> None:
        bad = JurisdictionConfig(
            code="zz",
            name="Nowhere",
            registry_name="Registry",
            tier=Tier.OPEN_API,
            base_url="https://example.gov",
        )
        with pytest.raises(ConfigurationError):
            JurisdictionStore([bad])

    def test_duplicate_codes_fail_store_construction(self) -> None:
        config = JurisdictionConfig(
            code="zz",
            name="Nowhere",
            registry_name="Registry",
            tier=Tier.OPEN_API,
            base_url="https://example.gov",
            api=_api(),
        )
        with pytest.raises(ConfigurationError, match="duplicate"):
            JurisdictionStore([config, config])

    def test_lookup_is_case_insensitive(self) -> None:
        store = get_jurisdiction_store()
        assert store.find(" FL ") is store.get("fl")
        assert "fl" in store
        assert "xx" not in store

    def test_unknown_code_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            get_jurisdiction_store().get("xx")

    def test_search_type_support(self) -> None:
        store = get_jurisdiction_store()
        assert store.supports_search_type("fl", "name")
        assert store.supports_search_type("fl", "officer")
        assert not store.supports_search_type("ca", "officer")
        assert not store.supports_search_type("xx", "name")
