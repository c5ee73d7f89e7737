# =============================================================================
# Document Matcher — Does This Policy Answer This Question?
# =============================================================================
#
# The atomic unit of inference work. For one (question, document) pair:
#
# 1. CACHE — return the memoised verdict if fresh
# 2. SEGMENT — split the document into "Page N of M" chunks
# 3. SCAN PAGES IN ORDER — one LLM call per page; stop at the first page
#    whose verdict is found AND confidence > threshold
# 4. MEMOISE — write the outcome to the cache. A negative outcome is only
#    written when every page got an answer from the model.
#
# DESIGN DECISION: First match wins, not best match. A later page with a
# higher confidence is never examined once an earlier page qualifies.
#
# FAILURE HANDLING: every failure is local to one page. A timeout, an
# inference error or an unparseable response is logged and the page is
# treated as "not found"; the remaining pages are still evaluated. A page
# whose call failed or timed out was never examined, so a "not found" for
# that document is returned but not cached. A cache fault is logged and
# the document is evaluated directly.
#
# ANSWER PARSING: "found" accepts JSON true, non-zero numbers and the
# strings "true"/"yes" (any case). Anything else is "not found".
#
# GROUNDING: the excerpt reported to the caller is always text taken from
# the page itself. A model quote that cannot be located on the page is
# treated as "not found".
# =============================================================================

from __future__ import annotations

import json
import logging
import re

from app.config import settings
from app.models.domain import MatchVerdict, PageChunk, PolicyDocument
from app.services.evidence_cache import EvidenceCache
from app.services.llm import LLMProvider, complete_text, parse_json
from app.services.pages import segment_pages

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a healthcare policy compliance expert."

TRUNCATION_MARKER = "\n...(content truncated)"


def build_page_prompt(question: str, document: PolicyDocument, page: PageChunk) -> str:
    page_text = page.text
    if len(page_text) > settings.max_page_chars:
        page_text = page_text[: settings.max_page_chars] + TRUNCATION_MARKER

    return (
        "You are a healthcare compliance expert. Analyze if this page from a "
        "policy document contains evidence that answers the audit question.\n\n"
        f'Audit Question:\n"{question}"\n\n'
        f"Policy Document ({document.policy_name}):\n"
        f"Page {page.page_label}\n\n"
        f"{page_text}\n\n"
        "Instructions:\n"
        "- Determine if this page contains specific evidence that answers the question\n"
        "- If evidence is found, extract the EXACT relevant excerpt "
        f"(max {settings.max_excerpt_chars} characters)\n"
        "- Rate your confidence (0.0 to 1.0)\n"
        "- Return ONLY valid JSON, no additional text\n\n"
        "Output Format:\n"
        "{\n"
        '  "found": true/false,\n'
        '  "excerpt": "exact quote from policy if found",\n'
        '  "confidence": 0.85,\n'
        '  "reasoning": "brief explanation"\n'
        "}\n\n"
        'If no evidence found, return: {"found": false}\n'
        "Return valid JSON only:"
    )


async def evaluate_document(
    question: str,
    document: PolicyDocument,
    llm: LLMProvider,
    cache: EvidenceCache,
) -> MatchVerdict:
    """
    Evaluate one document for one question.

    Returns a qualifying verdict (found, confidence > threshold, page label
    set) or MatchVerdict.not_found(). Never raises for inference problems.
    """
    try:
        cached = cache.get(question, document.id)
    except Exception as e:
        logger.warning("Evidence cache read failed for %s: %s", document.policy_number, e)
        cached = None

    if cached is not None:
        logger.debug("Cache hit for %s", document.policy_number)
        return cached

    verdict = MatchVerdict.not_found()
    all_answered = True
    for page in segment_pages(document.content):
        page_verdict, answered = await _evaluate_page(question, document, page, llm)
        all_answered = all_answered and answered
        if page_verdict.qualifies(settings.confidence_threshold):
            verdict = page_verdict
            break

    if not verdict.found and not all_answered:
        logger.info(
            "Not caching negative verdict for %s: some pages were not answered",
            document.policy_number,
        )
        return verdict

    try:
        cache.put(question, document.id, verdict)
    except Exception as e:
        logger.warning("Evidence cache write failed for %s: %s", document.policy_number, e)

    return verdict


async def _evaluate_page(
    question: str,
    document: PolicyDocument,
    page: PageChunk,
    llm: LLMProvider,
) -> tuple[MatchVerdict, bool]:
    """
    One inference call for one page. Any failure → not found.

    The flag is False when the model never answered (transport error,
    timeout or empty reply).
    """
    try:
        content = await complete_text(
            llm,
            build_page_prompt(question, document, page),
            system=SYSTEM_PROMPT,
            max_tokens=1000,
        )
    except Exception as e:
        logger.warning(
            "Inference failed for %s page %s: %s",
            document.policy_number, page.page_label, e,
        )
        return MatchVerdict.not_found(), False

    if not content:
        return MatchVerdict.not_found(), False

    try:
        return _parse_verdict(parse_json(content), page), True
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        logger.warning(
            "Failed to parse match response for %s page %s: %s",
            document.policy_number, page.page_label, e,
        )
        return MatchVerdict.not_found(), True


def _is_found(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes")
    return bool(value)


def _parse_verdict(payload: object, page: PageChunk) -> MatchVerdict:
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")

    if not _is_found(payload.get("found")):
        return MatchVerdict.not_found()

    confidence = float(payload.get("confidence") or 0.0)
    confidence = min(max(confidence, 0.0), 1.0)

    quoted = str(payload.get("excerpt") or "")[: settings.max_excerpt_chars]
    excerpt = locate_excerpt(quoted, page.text)
    if excerpt is None:
        logger.warning(
            "Excerpt not found verbatim on page %s, ignoring verdict: %r",
            page.page_label, quoted[:80],
        )
        return MatchVerdict.not_found()

    return MatchVerdict(
        found=True,
        excerpt=excerpt,
        confidence=confidence,
        page_label=page.page_label,
        reasoning=str(payload.get("reasoning") or ""),
    )


def locate_excerpt(quoted: str, page_text: str) -> str | None:
    """
    Find the model's quote in the page and return the page's own text for it.

    Matching ignores case and whitespace differences (PDF extraction breaks
    lines arbitrarily). Returns None for an empty quote or one that does
    not occur on the page.
    """
    words = quoted.split()
    if not words:
        return None

    pattern = re.compile(r"\s+".join(re.escape(w) for w in words), re.IGNORECASE)
    match = pattern.search(page_text)
    if match is None:
        return None
    return match.group(0)[: settings.max_excerpt_chars]
