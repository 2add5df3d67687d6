"""
Multi-tier business registry scraping engine.
"""

from registry.errors import (
    ChallengeDetected,
    ChallengeUnresolved,
    CircuitOpenError,
    ConfigurationError,
    InvalidQueryError,
    ParseError,
    RateLimitTimeout,
    RegistryScraperError,
    TransportError,
)
from registry.router import UnifiedRegistryScraper
from registry.service import get_registry_scraper, search_entity, search_person
from registry.types import (
    EntityDetails,
    Filing,
    MultiJurisdictionResult,
    Officer,
    ScrapedEntity,
    ScraperResult,
    SearchOptions,
)

__all__ = [
    "ChallengeDetected",
    "ChallengeUnresolved",
    "CircuitOpenError",
    "ConfigurationError",
    "EntityDetails",
    "Filing",
    "InvalidQueryError",
    "MultiJurisdictionResult",
    "Officer",
    "ParseError",
    "RateLimitTimeout",
    "RegistryScraperError",
    "ScrapedEntity",
    "ScraperResult",
    "SearchOptions",
    "TransportError",
    "UnifiedRegistryScraper",
    "get_registry_scraper",
    "search_entity",
    "search_person",
]
