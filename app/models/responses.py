# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API.
# They are the contract with the audit front end:
# 1. Consistent response structure across endpoints
# 2. Automatically serialized to JSON by FastAPI
# 3. OpenAPI response schemas (visible at /docs)
#
# Domain results (app/models/domain.py) are frozen dataclasses; the
# from_domain() constructors map them onto these schemas.
# =============================================================================

from __future__ import annotations

from pydantic import BaseModel, Field

from app.models.domain import Evidence, Question, SearchResult, SearchStatus


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class CategoryResponse(BaseModel):
    code: str = Field(description="Category tag, e.g. 'HH'")
    description: str = Field(description="What the category's policies cover")


class EvidenceResponse(BaseModel):
    """The policy passage that satisfies a question."""

    policy_name: str
    policy_number: str
    page: str = Field(description="'Page N of M', 'Page N', or 'Various'")
    excerpt: str = Field(description="Passage quoted verbatim from the policy page")
    confidence: float = Field(ge=0.0, le=1.0)
    category: str

    @classmethod
    def from_domain(cls, evidence: Evidence) -> EvidenceResponse:
        return cls(
            policy_name=evidence.policy_name,
            policy_number=evidence.policy_number,
            page=evidence.page,
            excerpt=evidence.excerpt,
            confidence=evidence.confidence,
            category=evidence.category,
        )


class AuditQuestionResponse(BaseModel):
    """One question of the submission with its compliance status."""

    id: str = Field(description="Stable identifier, 'q<number>'")
    number: int
    text: str
    status: SearchStatus = Field(description="met, not-met, or under-review")
    evidence: EvidenceResponse | None = Field(
        default=None,
        description="Present only when status is 'met'",
    )

    @classmethod
    def from_domain(
        cls,
        question: Question,
        result: SearchResult,
    ) -> AuditQuestionResponse:
        return cls(
            id=f"q{question.number}",
            number=question.number,
            text=question.text,
            status=result.status,
            evidence=(
                EvidenceResponse.from_domain(result.evidence)
                if result.evidence is not None
                else None
            ),
        )


class AnalyzeResponse(BaseModel):
    """Response for POST /analyze and POST /analyze/questions."""

    questions: list[AuditQuestionResponse]
    total_questions: int = Field(description="Questions in the submission")
    searched_questions: int = Field(
        description="Questions actually searched (bounded by max_questions)",
    )
    met_count: int
    not_met_count: int
    under_review_count: int
    processing_time_ms: int = Field(description="Wall-clock time for the request")
