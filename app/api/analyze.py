# =============================================================================
# Analyze API — Audit Submission → Per-Question Compliance Status
# =============================================================================
#
# ENDPOINTS:
#   POST /analyze            — Upload an audit submission PDF
#   POST /analyze/questions  — Submit already-segmented questions as JSON
#   GET  /categories         — Policy categories known to the router
#
# FLOW (POST /analyze):
#   1. Validate the upload (PDF extension, non-empty, size limit)
#   2. Save to the upload directory and extract text with Docling
#   3. Extract numbered questions with the LLM (questions.py)
#   4. Search evidence for the first `max_questions` questions
#      (EvidenceEngine.search_all)
#   5. Return every question with its status; questions beyond the limit
#      are reported as under-review
#
# The engine never raises for a single question: failures surface as
# under-review. The only engine error mapped here is a missing LLM key
# (ValueError from the provider factory), reported as 503.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from app.agents.orchestrator import EvidenceEngine, get_evidence_engine
from app.config import settings
from app.models.domain import Category, Question, SearchResult, SearchStatus
from app.models.requests import AnalyzeQuestionsRequest
from app.models.responses import AnalyzeResponse, AuditQuestionResponse, CategoryResponse
from app.services.parser import ParsedDocument, parse_pdf
from app.services.questions import extract_questions

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analysis"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_engine() -> EvidenceEngine:
    """Resolve the process-wide engine; 503 when the LLM is not configured."""
    try:
        return get_evidence_engine()
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        raise HTTPException(
            status_code=503,
            detail=f"Service configuration error: {e}",
        ) from e


def get_pdf_parser() -> Callable[[Path], ParsedDocument]:
    return parse_pdf


# ---------------------------------------------------------------------------
# POST /analyze — Upload an audit submission
# ---------------------------------------------------------------------------


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Analyze an audit submission PDF",
    description=(
        "Upload an audit tool PDF. Questions are extracted from the text and "
        "each one is checked against the policy corpus. Every question is "
        "reported as met (with the supporting excerpt), not-met, or "
        "under-review."
    ),
)
async def analyze_pdf_endpoint(
    file: UploadFile = File(..., description="Audit submission PDF"),
    max_questions: int | None = Query(
        default=None,
        ge=1,
        le=500,
        description="Search only the first N questions. Defaults to the server limit.",
    ),
    engine: EvidenceEngine = Depends(get_engine),
    parser: Callable[[Path], ParsedDocument] = Depends(get_pdf_parser),
) -> AnalyzeResponse:
    start_time = time.monotonic()

    # --- Validate file type ---
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(
            status_code=400,
            detail="Only PDF files are accepted. Please upload a .pdf file.",
        )

    file_content = await file.read()
    file_size = len(file_content)

    if file_size == 0:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")

    max_bytes = settings.max_upload_mb * 1024 * 1024
    if file_size > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the {settings.max_upload_mb} MB upload limit.",
        )

    logger.info("Analyzing submission %s (%d bytes)", file.filename, file_size)

    text = await _extract_text(file_content, file.filename, parser)
    if not text.strip():
        raise HTTPException(
            status_code=400,
            detail="No text could be extracted from the PDF.",
        )

    questions = await extract_questions(text, engine.llm)
    if not questions:
        raise HTTPException(
            status_code=422,
            detail="No audit questions were found in the document.",
        )

    return await _analyze(engine, questions, max_questions, start_time)


# ---------------------------------------------------------------------------
# POST /analyze/questions — Already-segmented questions
# ---------------------------------------------------------------------------


@router.post(
    "/analyze/questions",
    response_model=AnalyzeResponse,
    summary="Analyze a list of audit questions",
)
async def analyze_questions_endpoint(
    request: AnalyzeQuestionsRequest,
    engine: EvidenceEngine = Depends(get_engine),
) -> AnalyzeResponse:
    start_time = time.monotonic()
    questions = [Question(number=q.number, text=q.text) for q in request.questions]
    return await _analyze(engine, questions, request.max_questions, start_time)


# ---------------------------------------------------------------------------
# GET /categories — Routing metadata
# ---------------------------------------------------------------------------


@router.get(
    "/categories",
    response_model=list[CategoryResponse],
    summary="List policy categories",
)
async def list_categories_endpoint() -> list[CategoryResponse]:
    return [
        CategoryResponse(code=category.value, description=category.description)
        for category in Category
    ]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _extract_text(
    content: bytes,
    filename: str,
    parser: Callable[[Path], ParsedDocument],
) -> str:
    """Write the upload to disk, parse it off the event loop, then delete it."""
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    # Prefix avoids collisions between concurrent uploads of the same name
    file_path = upload_dir / f"{uuid.uuid4().hex}_{Path(filename).name}"
    file_path.write_bytes(content)

    try:
        parsed = await asyncio.to_thread(parser, file_path)
    except Exception as e:
        logger.warning("Failed to parse %s: %s", filename, e)
        raise HTTPException(
            status_code=400,
            detail="The PDF could not be read.",
        ) from e
    finally:
        file_path.unlink(missing_ok=True)

    return parsed.to_text(page_markers=False)


async def _analyze(
    engine: EvidenceEngine,
    questions: list[Question],
    max_questions: int | None,
    start_time: float,
) -> AnalyzeResponse:
    limit = max_questions or settings.max_questions_per_submission
    results = await engine.search_all(questions, limit=limit)

    items = [
        AuditQuestionResponse.from_domain(
            question,
            results.get(question.number, SearchResult.under_review()),
        )
        for question in questions
    ]

    statuses = [item.status for item in items]
    response = AnalyzeResponse(
        questions=items,
        total_questions=len(items),
        searched_questions=len(results),
        met_count=statuses.count(SearchStatus.MET),
        not_met_count=statuses.count(SearchStatus.NOT_MET),
        under_review_count=statuses.count(SearchStatus.UNDER_REVIEW),
        processing_time_ms=int((time.monotonic() - start_time) * 1000),
    )

    logger.info(
        "Analysis complete: %d met, %d not met, %d under review (%d ms)",
        response.met_count,
        response.not_met_count,
        response.under_review_count,
        response.processing_time_ms,
    )
    return response
