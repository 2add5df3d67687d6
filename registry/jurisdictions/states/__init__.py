"""
Hand-authored jurisdiction configurations.
"""

from registry.jurisdictions.states.california import CALIFORNIA_CONFIG
from registry.jurisdictions.states.colorado import COLORADO_CONFIG
from registry.jurisdictions.states.delaware import DELAWARE_CONFIG
from registry.jurisdictions.states.florida import FLORIDA_CONFIG
from registry.jurisdictions.states.new_york import NEW_YORK_CONFIG
from registry.jurisdictions.states.tier2 import TIER2_CONFIGS

BUILTIN_CONFIGS = (
    COLORADO_CONFIG,
    NEW_YORK_CONFIG,
    FLORIDA_CONFIG,
    CALIFORNIA_CONFIG,
    DELAWARE_CONFIG,
    *TIER2_CONFIGS,
)

__all__ = [
    "BUILTIN_CONFIGS",
    "CALIFORNIA_CONFIG",
    "COLORADO_CONFIG",
    "DELAWARE_CONFIG",
    "FLORIDA_CONFIG",
    "NEW_YORK_CONFIG",
    "TIER2_CONFIGS",
]
