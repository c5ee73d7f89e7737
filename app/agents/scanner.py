# =============================================================================
# Corpus Scanner — Parallel Batches, Ordered Resolution
# =============================================================================
#
# Given a question and its routed candidate documents (already ordered by
# category, then policy number), find the first document that answers it.
#
# EXECUTION:
#   candidates ──▶ [batch 1][batch 2] ... [batch K]     (batch_size each)
#                     │        │             │
#                     ▼        ▼             ▼
#                  gather   gather   ...   gather        (ALL start at once)
#                     │        │             │
#   resolve:  await batch 1 → batch 2 → ... → batch K    (in document order)
#
# Every evaluation of every batch starts immediately, but results are
# inspected batch by batch and, inside a batch, in document order. The
# reported match is therefore the earliest-ordered qualifying document,
# whatever order the concurrent calls complete in.
#
# EARLY EXIT: once a match is resolved, the still-running batch tasks are
# cancelled. Their verdicts are never reported.
#
# OUTCOMES:
#   qualifying verdict          → met (with evidence)
#   all candidates exhausted    → not-met
#   no examinable candidates    → under-review
# =============================================================================

from __future__ import annotations

import asyncio
import logging

from app.agents.matcher import evaluate_document
from app.config import settings
from app.models.domain import (
    Evidence,
    MatchVerdict,
    PolicyDocument,
    SearchResult,
    SearchStatus,
)
from app.services.evidence_cache import EvidenceCache
from app.services.llm import LLMProvider

logger = logging.getLogger(__name__)


def partition(
    documents: list[PolicyDocument],
    batch_size: int,
) -> list[list[PolicyDocument]]:
    size = max(batch_size, 1)
    return [documents[i:i + size] for i in range(0, len(documents), size)]


async def scan_documents(
    question: str,
    documents: list[PolicyDocument],
    llm: LLMProvider,
    cache: EvidenceCache,
    batch_size: int | None = None,
) -> SearchResult:
    """
    Scan candidate documents and return the first qualifying match.

    Documents shorter than settings.min_content_chars are skipped without
    an inference call. If that leaves nothing to examine, the question is
    under review rather than not met.
    """
    candidates = [
        doc for doc in documents
        if len(doc.content or "") >= settings.min_content_chars
    ]
    if not candidates:
        logger.info(
            "No examinable documents among %d candidates", len(documents),
        )
        return SearchResult.under_review()

    batches = partition(candidates, batch_size or settings.batch_size)
    tasks = [
        asyncio.create_task(_evaluate_batch(question, batch, llm, cache))
        for batch in batches
    ]

    searched = 0
    try:
        for number, (batch, task) in enumerate(zip(batches, tasks), 1):
            verdicts = await task
            searched += len(batch)
            logger.debug(
                "Resolved batch %d/%d (%d policies)",
                number, len(batches), len(batch),
            )

            for document, verdict in zip(batch, verdicts):
                if verdict.qualifies(settings.confidence_threshold):
                    logger.info(
                        "Found match in policy %s (Page %s) after searching %d/%d policies",
                        document.policy_number, verdict.page_label,
                        searched, len(candidates),
                    )
                    return SearchResult(
                        status=SearchStatus.MET,
                        evidence=to_evidence(document, verdict),
                    )
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()

    logger.info("No matches found after searching all %d policies", searched)
    return SearchResult.not_met()


async def _evaluate_batch(
    question: str,
    batch: list[PolicyDocument],
    llm: LLMProvider,
    cache: EvidenceCache,
) -> list[MatchVerdict]:
    results = await asyncio.gather(
        *(evaluate_document(question, doc, llm, cache) for doc in batch),
        return_exceptions=True,
    )

    verdicts: list[MatchVerdict] = []
    for document, result in zip(batch, results):
        if isinstance(result, Exception):
            logger.warning(
                "Error processing policy %s: %s", document.policy_number, result,
            )
            verdicts.append(MatchVerdict.not_found())
        elif isinstance(result, BaseException):
            # CancelledError and friends
            raise result
        else:
            verdicts.append(result)
    return verdicts


def to_evidence(document: PolicyDocument, verdict: MatchVerdict) -> Evidence:
    return Evidence(
        policy_name=document.policy_name,
        policy_number=document.policy_number,
        page=f"Page {verdict.page_label}" if verdict.page_label else "Various",
        excerpt=verdict.excerpt,
        confidence=verdict.confidence,
        category=document.category,
    )
