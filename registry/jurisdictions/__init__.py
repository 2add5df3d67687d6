"""
Registry configuration store: declarative per-jurisdiction scraping configs.
"""

from registry.jurisdictions.factory import tier2_config
from registry.jurisdictions.models import (
    ApiFieldMapping,
    ApiSpec,
    ChallengeSpec,
    DetailPageSelectors,
    FormField,
    JurisdictionConfig,
    ScrapeSpec,
    SearchResultSelectors,
    SearchTypes,
    SelectorStrategy,
    Tier,
    selector,
)
from registry.jurisdictions.store import JurisdictionStore, get_jurisdiction_store, validate

__all__ = [
    "ApiFieldMapping",
    "ApiSpec",
    "ChallengeSpec",
    "DetailPageSelectors",
    "FormField",
    "JurisdictionConfig",
    "JurisdictionStore",
    "ScrapeSpec",
    "SearchResultSelectors",
    "SearchTypes",
    "SelectorStrategy",
    "Tier",
    "get_jurisdiction_store",
    "selector",
    "tier2_config",
    "validate",
]
