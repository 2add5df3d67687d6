"""
Execution engines: open-data API, static HTML and browser automation.
"""

from registry.engines.api_engine import ApiEngine
from registry.engines.base import HttpEngine, RegistryEngine
from registry.engines.http_engine import HttpScrapeEngine

__all__ = [
    "ApiEngine",
    "HttpEngine",
    "HttpScrapeEngine",
    "RegistryEngine",
]
