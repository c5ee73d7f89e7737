# =============================================================================
# Question Extractor — Audit Submission → Numbered Questions
# =============================================================================
#
# An uploaded audit tool is free text. The engine needs a list of
# {number, text} records, where the number is the one printed in the
# document (not a renumbering).
#
# PIPELINE:
# 1. Split the text into overlapping token windows (chunker.py)
# 2. Ask the LLM to extract questions from every window, concurrently
# 3. Parse each window's JSON answer; a bad window is logged and skipped
# 4. De-duplicate by question number, keeping the longest text (the
#    overlap yields the same question twice, once possibly cut off)
# 5. Sort by number
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging

from app.config import settings
from app.models.domain import Question
from app.services.chunker import TextWindow, split_text_windows
from app.services.llm import LLMProvider, complete_text, parse_json

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a healthcare compliance expert that extracts audit questions "
    "from documents."
)


def build_extraction_prompt(window: TextWindow) -> str:
    return (
        "You are an expert healthcare compliance analyst. Extract all audit "
        "questions from the provided PDF text chunk.\n\n"
        f"PDF Text Chunk {window.index + 1}:\n{window.content}\n\n"
        "Instructions:\n"
        "- Extract ALL compliance questions from this text chunk\n"
        "- Preserve exact wording of each question\n"
        "- Preserve the ORIGINAL question number from the document (do NOT renumber)\n"
        "- Return ONLY valid JSON, no additional text\n"
        "- Include partial questions if they appear at chunk boundaries\n\n"
        "Output Format:\n"
        "{\n"
        '  "questions": [\n'
        '    {"number": 1, "text": "Full question text here"}\n'
        "  ]\n"
        "}\n\n"
        "Return valid JSON only:"
    )


async def extract_questions(text: str, llm: LLMProvider) -> list[Question]:
    """
    Extract numbered questions from submission text.

    Returns questions sorted by number, one per number. Empty list when
    nothing could be extracted.
    """
    windows = split_text_windows(
        text,
        chunk_size=settings.extraction_chunk_tokens,
        chunk_overlap=settings.extraction_overlap_tokens,
    )
    if not windows:
        return []

    logger.info("Extracting questions from %d windows in parallel", len(windows))

    answers = await asyncio.gather(
        *(_extract_window(window, llm) for window in windows),
    )

    candidates: list[Question] = []
    for window_questions in answers:
        candidates.extend(window_questions)

    questions = merge_questions(candidates)
    logger.info(
        "Extracted %d unique questions (%d before de-duplication)",
        len(questions), len(candidates),
    )
    return questions


def merge_questions(candidates: list[Question]) -> list[Question]:
    """Keep the longest text per question number, sorted by number."""
    by_number: dict[int, Question] = {}
    for question in candidates:
        existing = by_number.get(question.number)
        if existing is None or len(question.text) > len(existing.text):
            by_number[question.number] = question
    return [by_number[number] for number in sorted(by_number)]


async def _extract_window(window: TextWindow, llm: LLMProvider) -> list[Question]:
    try:
        content = await complete_text(
            llm,
            build_extraction_prompt(window),
            system=SYSTEM_PROMPT,
            max_tokens=settings.extraction_max_tokens,
        )
    except Exception as e:
        logger.warning("Question extraction failed for window %d: %s", window.index, e)
        return []

    if not content:
        return []

    try:
        return _parse_questions(parse_json(content))
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        logger.warning("Failed to parse window %d: %s", window.index, e)
        return []


def _parse_questions(payload: object) -> list[Question]:
    if not isinstance(payload, dict):
        raise ValueError("expected a JSON object with a 'questions' list")

    questions: list[Question] = []
    for item in payload.get("questions") or []:
        if not isinstance(item, dict):
            continue
        text = str(item.get("text") or "").strip()
        try:
            number = int(item.get("number"))
        except (TypeError, ValueError):
            continue
        if text:
            questions.append(Question(number=number, text=text))
    return questions
