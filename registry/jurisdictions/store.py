"""
Read-only store of jurisdiction configurations.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache

from registry.errors import ConfigurationError
from registry.jurisdictions.models import JurisdictionConfig, ScrapeSpec, Tier

_CODE_PATTERN = re.compile(r"^[a-z]{2}$")


def _validate_scrape(scrape: ScrapeSpec) -> list[str]:
    violations: list[str] = []
    if not scrape.search_url:
        violations.append("scrape.search_url is required")
    selectors = scrape.search_selectors
    if not selectors.results_container:
        violations.append("scrape.search_selectors.results_container is required")
    if not selectors.result_rows:
        violations.append("scrape.search_selectors.result_rows is required")
    if not selectors.entity_name.primary:
        violations.append("scrape.search_selectors.entity_name needs a primary locator")
    if scrape.detail_url_template and "{id}" not in scrape.detail_url_template:
        violations.append("scrape.detail_url_template must contain '{id}'")
    if scrape.search_method not in {"GET", "POST"}:
        violations.append(f"scrape.search_method must be GET or POST, got {scrape.search_method!r}")
    if scrape.submit_method not in {"click", "enter", "form"}:
        violations.append(f"scrape.submit_method must be click, enter or form, got {scrape.submit_method!r}")
    return violations


def validate(config: JurisdictionConfig) -> list[str]:
    """
    Return every invariant the config violates; an empty list means valid.
    """

    violations: list[str] = []
    if not _CODE_PATTERN.match(config.code or ""):
        violations.append(f"code must be two lowercase letters, got {config.code!r}")
    if not config.name:
        violations.append("name is required")
    if not config.base_url:
        violations.append("base_url is required")

    try:
        tier = Tier(config.tier)
    except ValueError:
        violations.append(f"tier must be between 1 and 4, got {config.tier!r}")
        return violations

    if tier is Tier.OPEN_API and config.api is None:
        violations.append("tier 1 requires an api spec")
    if tier >= Tier.STATIC_HTML and config.scrape is None:
        violations.append(f"tier {int(tier)} requires a scrape spec")

    if config.api is not None:
        if config.api.kind not in {"socrata", "rest"}:
            violations.append(f"api.kind must be socrata or rest, got {config.api.kind!r}")
        if not config.api.endpoint:
            violations.append("api.endpoint is required")
        if not config.api.name_field:
            violations.append("api.name_field is required")
        if config.api.detail_url_template and "{id}" not in config.api.detail_url_template:
            violations.append("api.detail_url_template must contain '{id}'")

    if config.scrape is not None:
        violations.extend(_validate_scrape(config.scrape))
        if tier >= Tier.SCRIPT_RENDERED and not config.scrape.js_required:
            violations.append(f"tier {int(tier)} requires scrape.js_required")
        if tier is Tier.CAPTCHA_PROTECTED and config.scrape.challenge is None:
            violations.append("tier 4 requires a challenge spec")

    if config.requests_per_minute is not None and config.requests_per_minute <= 0:
        violations.append("requests_per_minute must be positive")
    return violations


class JurisdictionStore:
    """
    Lookup table of validated jurisdiction configs, keyed by code.
    """

    def __init__(self, configs: Iterable[JurisdictionConfig]) -> None:
        by_code: dict[str, JurisdictionConfig] = {}
        problems: list[str] = []
        for config in configs:
            for violation in validate(config):
                problems.append(f"{config.code}: {violation}")
            if config.code in by_code:
                problems.append(f"{config.code}: duplicate jurisdiction code")
            by_code[config.code] = config
        if problems:
            raise ConfigurationError("Invalid jurisdiction configuration: " + "; ".join(problems))
        self._configs = by_code

    def find(self, code: str) -> JurisdictionConfig | None:
        return self._configs.get((code or "").strip().lower())

    def get(self, code: str) -> JurisdictionConfig:
        config = self.find(code)
        if config is None:
            raise ConfigurationError(f"No registry configuration for jurisdiction '{code}'.", source=code)
        return config

    def all(self) -> list[JurisdictionConfig]:
        return [self._configs[code] for code in sorted(self._configs)]

    def codes(self) -> list[str]:
        return sorted(self._configs)

    def by_tier(self, tier: Tier | int) -> list[JurisdictionConfig]:
        return [config for config in self.all() if config.tier == tier]

    def supports_search_type(self, code: str, search_type: str) -> bool:
        config = self.find(code)
        if config is None:
            return False
        if search_type == "name":
            return True
        if not config.search_types.supports(search_type):
            return False
        return config.scrape is not None and search_type in config.scrape.alternate_search_urls

    def tier_statistics(self) -> dict[str, int]:
        stats = {f"tier{int(tier)}": len(self.by_tier(tier)) for tier in Tier}
        stats["total"] = len(self._configs)
        return stats

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.find(code) is not None

    def __len__(self) -> int:
        return len(self._configs)


@lru_cache(maxsize=1)
def get_jurisdiction_store() -> JurisdictionStore:
    """
    Return the process-wide store of built-in jurisdictions.
    """

    from registry.jurisdictions.states import BUILTIN_CONFIGS

    return JurisdictionStore(BUILTIN_CONFIGS)
