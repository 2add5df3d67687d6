"""
Person-to-business search and ownership inference.
"""

from registry.search.ownership import (
    DataSource,
    EntityKind,
    OwnershipInference,
    OwnershipLikelihood,
    detect_entity_kind,
    infer_ownership,
)
from registry.search.person import (
    OwnershipSummary,
    PersonBusinessMatch,
    PersonSearchResult,
    ownership_summary,
    search_by_person,
)

__all__ = [
    "DataSource",
    "EntityKind",
    "OwnershipInference",
    "OwnershipLikelihood",
    "OwnershipSummary",
    "PersonBusinessMatch",
    "PersonSearchResult",
    "detect_entity_kind",
    "infer_ownership",
    "ownership_summary",
    "search_by_person",
]
