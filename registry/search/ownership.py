"""
Ownership likelihood inferred from the roles a person holds at a business.

For small companies the people filed as officers (president, managing member,
general partner) are usually the owners; directors, secretaries and registered
agents much less often.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum


class OwnershipLikelihood(str, Enum):
    CONFIRMED = "confirmed"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def label(self) -> str:
        return _LIKELIHOOD_LABELS[self]

    @property
    def rank(self) -> int:
        return _LIKELIHOOD_RANKS[self]


_LIKELIHOOD_LABELS = {
    OwnershipLikelihood.CONFIRMED: "Confirmed Owner",
    OwnershipLikelihood.HIGH: "Likely Owner",
    OwnershipLikelihood.MEDIUM: "Possible Owner",
    OwnershipLikelihood.LOW: "Unlikely Owner",
}
_LIKELIHOOD_RANKS = {
    OwnershipLikelihood.CONFIRMED: 0,
    OwnershipLikelihood.HIGH: 1,
    OwnershipLikelihood.MEDIUM: 2,
    OwnershipLikelihood.LOW: 3,
}


class EntityKind(str, Enum):
    LLC = "llc"
    CORPORATION = "corporation"
    PARTNERSHIP = "partnership"
    SOLE_PROPRIETORSHIP = "sole_proprietorship"
    NONPROFIT = "nonprofit"
    UNKNOWN = "unknown"


class DataSource(str, Enum):
    SEC_EDGAR = "sec_edgar"
    STATE_REGISTRY = "state_registry"
    OPENCORPORATES = "opencorporates"
    OTHER = "other"


@dataclass(frozen=True)
class OwnershipInference:
    likelihood: OwnershipLikelihood
    reason: str
    score: float


INSIDER_ROLES = (
    "10% owner", "10 percent owner", "ten percent owner",
    "beneficial owner", "insider", "section 16 officer", "reporting person",
)
EXECUTIVE_ROLES = (
    "ceo", "chief executive officer", "chief executive",
    "cfo", "chief financial officer", "chief financial",
    "coo", "chief operating officer", "chief operating",
    "cto", "chief technology officer", "chief technology",
    "cmo", "chief marketing officer",
    "president", "vice president", "vp", "executive vice president", "evp",
    "senior vice president", "svp",
    "managing member", "manager", "member manager", "mgr", "mgrm", "mbr", "ambr", "sole member", "member",
    "general partner", "managing partner", "partner", "limited partner", "gp",
    "owner", "sole owner", "co owner", "proprietor", "sole proprietor",
    "founder", "co founder", "principal", "managing principal",
)
DIRECTOR_ROLES = (
    "director", "board member", "board of directors",
    "chairman", "chairwoman", "chair", "vice chairman", "vice chair",
    "independent director", "outside director", "lead director",
)
OFFICER_ROLES = (
    "secretary", "treasurer", "controller", "officer", "corporate officer",
    "assistant secretary", "assistant treasurer", "general counsel", "legal counsel",
)
AGENT_ROLES = (
    "registered agent", "statutory agent", "agent for service", "agent", "resident agent",
)

_ROLE_RULES = (
    (
        INSIDER_ROLES,
        OwnershipInference(
            OwnershipLikelihood.CONFIRMED,
            "Insider filing confirms an officer, director or 10%+ owner",
            1.0,
        ),
    ),
    (
        EXECUTIVE_ROLES,
        OwnershipInference(
            OwnershipLikelihood.HIGH,
            "Executive position strongly indicates ownership for small businesses",
            0.85,
        ),
    ),
    (
        DIRECTOR_ROLES,
        OwnershipInference(OwnershipLikelihood.MEDIUM, "Directors may or may not have equity stakes", 0.5),
    ),
    (
        OFFICER_ROLES,
        OwnershipInference(OwnershipLikelihood.MEDIUM, "Corporate officers may have equity but not always", 0.4),
    ),
    (
        AGENT_ROLES,
        OwnershipInference(
            OwnershipLikelihood.LOW,
            "Registered agents are often service providers, not owners",
            0.2,
        ),
    ),
)
_UNKNOWN_ROLE = OwnershipInference(OwnershipLikelihood.LOW, "Role does not clearly indicate ownership", 0.1)

_NONPROFIT = re.compile(r"\b(non-?profit|not for profit|foundation|501\s*\(?c\)?)")
_PARTNERSHIP = re.compile(
    r"\b(l\.?l\.?p|l\.?p|limited partnership|limited liability partnership|general partnership)\b\.?"
)
_LLC = re.compile(r"\b(l\.?l\.?c|limited liability company|limited liability co)\b\.?")
_CORPORATION = re.compile(r"\b(inc|incorporated|corp|corporation|company)\b")
_SOLE_PROPRIETORSHIP = re.compile(r"\bsole proprietor(ship)?\b")


def normalize_role(role: str) -> str:
    return " ".join(re.sub(r"[^\w%\s]", " ", role.lower()).split())


def _matches(normalized: str, phrases: Iterable[str]) -> bool:
    padded = f" {normalized} "
    return any(f" {normalize_role(phrase)} " in padded for phrase in phrases)


def infer_from_role(role: str) -> OwnershipInference:
    """
    Classify one filed role; the first matching rule wins, insider roles first.
    """

    normalized = normalize_role(role)
    for phrases, inference in _ROLE_RULES:
        if _matches(normalized, phrases):
            return inference
    return _UNKNOWN_ROLE


def infer_from_roles(roles: Iterable[str]) -> OwnershipInference:
    inferences = [infer_from_role(role) for role in roles if role and role.strip()]
    if not inferences:
        return OwnershipInference(OwnershipLikelihood.LOW, "No roles found", 0.0)

    best = max(inferences, key=lambda item: item.score)
    strong = sum(
        1
        for item in inferences
        if item.likelihood in (OwnershipLikelihood.HIGH, OwnershipLikelihood.CONFIRMED)
    )
    if strong > 1 and best.likelihood is not OwnershipLikelihood.CONFIRMED:
        return OwnershipInference(
            OwnershipLikelihood.HIGH,
            f"Multiple executive roles ({strong}) strongly indicate ownership",
            min(0.95, best.score + 0.1 * (strong - 1)),
        )
    return best


def detect_entity_kind(name: str, entity_type: str | None = None) -> EntityKind:
    """
    Entity kind from the registry's entity type when present, else from the name suffix.
    """

    for text in (entity_type, name):
        if not text:
            continue
        lowered = text.lower()
        if _SOLE_PROPRIETORSHIP.search(lowered):
            return EntityKind.SOLE_PROPRIETORSHIP
        if _NONPROFIT.search(lowered):
            return EntityKind.NONPROFIT
        if _PARTNERSHIP.search(lowered):
            return EntityKind.PARTNERSHIP
        if _LLC.search(lowered):
            return EntityKind.LLC
        if _CORPORATION.search(lowered):
            return EntityKind.CORPORATION
    return EntityKind.UNKNOWN


def adjust_for_entity_kind(inference: OwnershipInference, kind: EntityKind) -> OwnershipInference:
    if kind is EntityKind.LLC and inference.likelihood is OwnershipLikelihood.HIGH:
        return replace(
            inference,
            score=min(0.95, inference.score + 0.1),
            reason=f"{inference.reason}. LLC managers are typically member-owners.",
        )
    if kind is EntityKind.SOLE_PROPRIETORSHIP:
        return OwnershipInference(OwnershipLikelihood.HIGH, "Sole proprietorship: the individual is the owner", 0.95)
    if kind is EntityKind.NONPROFIT and inference.likelihood is not OwnershipLikelihood.CONFIRMED:
        return OwnershipInference(
            OwnershipLikelihood.LOW,
            "Nonprofit organizations have no owners; directors serve in governance roles",
            0.1,
        )
    return inference


def adjust_for_source(inference: OwnershipInference, source: DataSource) -> OwnershipInference:
    if source is DataSource.SEC_EDGAR and inference.likelihood is OwnershipLikelihood.HIGH:
        return OwnershipInference(OwnershipLikelihood.CONFIRMED, "Insider filing confirms ownership status", 1.0)
    if source is DataSource.OPENCORPORATES:
        # Aggregated records lag the registries.
        return replace(inference, score=round(inference.score * 0.9, 4))
    return inference


def infer_ownership(
    roles: Iterable[str],
    entity_name: str,
    *,
    entity_type: str | None = None,
    source: DataSource = DataSource.STATE_REGISTRY,
) -> OwnershipInference:
    inference = infer_from_roles(roles)
    inference = adjust_for_entity_kind(inference, detect_entity_kind(entity_name, entity_type))
    return adjust_for_source(inference, source)
