# =============================================================================
# Domain Objects — Evidence Engine
# =============================================================================
#
# Plain dataclasses shared by the engine components. They are separate from
# the ORM model (app/db/models.py) and the API schemas (requests/responses):
# the engine never sees a database row or an HTTP payload.
#
#   Question        — numbered audit question (input)
#   PolicyDocument  — read-only view of one corpus document
#   PageChunk       — page-like slice of a document's content
#   MatchVerdict    — outcome of evaluating one document for one question
#   SearchResult    — final per-question outcome (met / not-met / under-review)
# =============================================================================

from __future__ import annotations

import enum
from dataclasses import dataclass


class Category(str, enum.Enum):
    """Closed set of policy categories used for routing."""

    AA = "AA"
    CMC = "CMC"
    DD = "DD"
    EE = "EE"
    FF = "FF"
    GA = "GA"
    GG = "GG"
    HH = "HH"
    MA = "MA"
    PA = "PA"

    @property
    def description(self) -> str:
        return CATEGORY_DESCRIPTIONS[self]


CATEGORY_DESCRIPTIONS: dict[Category, str] = {
    Category.AA: "Administration - General administrative policies, glossaries, definitions",
    Category.CMC: "CalMediConnect - California-specific Medi-Cal and Medicare dual eligible programs",
    Category.DD: "Developmental Disabilities - Policies for members with developmental disabilities",
    Category.EE: "Eligibility & Enrollment - Member eligibility criteria, enrollment processes, disenrollment",
    Category.FF: "Financial - Billing, claims, payment, cost-sharing, copayments",
    Category.GA: "General Administration - Organizational structure, governance, compliance",
    Category.GG: "General - Broad range of general policies and procedures",
    Category.HH: "Health Services - Medical services, care coordination, hospice, palliative care, treatment authorization",
    Category.MA: "Medi-Cal - California Medicaid program policies, benefits, covered services",
    Category.PA: "Provider Administration - Provider network, credentialing, contracts, directory",
}


class SearchStatus(str, enum.Enum):
    """Per-question outcome reported to the caller."""

    MET = "met"
    NOT_MET = "not-met"
    UNDER_REVIEW = "under-review"  # Search could not be meaningfully executed


@dataclass(frozen=True)
class Question:
    number: int
    text: str


@dataclass(frozen=True)
class PolicyDocument:
    """A corpus document as the engine sees it."""

    id: str
    policy_number: str  # e.g. "GG.1100"
    policy_name: str    # display name (original filename without extension)
    category: str       # usually a Category value; unknown codes are never routed to
    content: str


@dataclass(frozen=True)
class PageChunk:
    page_label: str  # "10 of 25", or "1" when the document has no markers
    text: str
    offset: int      # character offset of `text` within the document content


@dataclass(frozen=True)
class MatchVerdict:
    """Result of evaluating one document (or one page) for one question."""

    found: bool
    excerpt: str = ""
    confidence: float = 0.0
    page_label: str = ""
    reasoning: str = ""

    @classmethod
    def not_found(cls) -> MatchVerdict:
        return cls(found=False)

    def qualifies(self, threshold: float) -> bool:
        """A verdict counts as evidence only when found AND above threshold."""
        return self.found and self.confidence > threshold


@dataclass(frozen=True)
class Evidence:
    policy_name: str
    policy_number: str
    page: str       # "Page 10 of 25"
    excerpt: str
    confidence: float
    category: str


@dataclass(frozen=True)
class SearchResult:
    status: SearchStatus
    evidence: Evidence | None = None

    @classmethod
    def under_review(cls) -> SearchResult:
        return cls(status=SearchStatus.UNDER_REVIEW)

    @classmethod
    def not_met(cls) -> SearchResult:
        return cls(status=SearchStatus.NOT_MET)
