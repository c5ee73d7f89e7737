# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API.
# FastAPI uses them for request body validation (automatic 422 errors for
# invalid data) and for the OpenAPI documentation at /docs.
#
# The PDF upload endpoint takes multipart form data and has no body model;
# only the JSON variant of /analyze is described here.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QuestionItem(BaseModel):
    """One audit question as printed in the submission."""

    number: int = Field(
        ...,
        ge=0,
        description="Question number as printed in the submission (not a renumbering)",
        examples=[1],
    )
    text: str = Field(
        ...,
        min_length=3,
        max_length=2000,
        description="Full question text",
        examples=["Are urgent authorizations processed within 72 hours?"],
    )


class AnalyzeQuestionsRequest(BaseModel):
    """
    Request body for POST /analyze/questions — already-segmented questions.

    Example:
        {
            "questions": [
                {"number": 1, "text": "Are urgent authorizations processed within 72 hours?"}
            ],
            "max_questions": 10
        }
    """

    questions: list[QuestionItem] = Field(
        ...,
        min_length=1,
        description="Questions to search evidence for",
    )

    # None → settings.max_questions_per_submission
    max_questions: int | None = Field(
        default=None,
        ge=1,
        le=500,
        description=(
            "Search only the first N questions; the rest are reported as "
            "under-review. Defaults to the server limit."
        ),
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "questions": [
                        {
                            "number": 1,
                            "text": "Are urgent authorizations processed within 72 hours?",
                        },
                    ],
                },
            ]
        }
    )

    @field_validator("questions")
    @classmethod
    def unique_numbers(cls, questions: list[QuestionItem]) -> list[QuestionItem]:
        numbers = [q.number for q in questions]
        if len(numbers) != len(set(numbers)):
            raise ValueError("question numbers must be unique")
        return questions
