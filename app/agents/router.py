# =============================================================================
# Category Router — Narrow the Corpus Before Scanning
# =============================================================================
#
# Scanning the full corpus costs one inference call per page of every
# document. Routing a question to 1-3 policy categories first is the
# primary cost-control lever: a few hundred documents become a few dozen.
#
# The LLM picks the categories from the closed Category enumeration and
# answers with a JSON array (e.g. ["HH", "MA"]).
#
# FAILURE HANDLING: routing must never abort a search. Any of
#   - inference error or timeout
#   - empty response
#   - unparseable / non-array output
#   - an array with no known category codes
# falls back to the broad default set (settings.default_categories,
# GG/HH/MA out of the box).
# =============================================================================

from __future__ import annotations

import json
import logging

from app.config import settings
from app.models.domain import CATEGORY_DESCRIPTIONS, Category
from app.services.llm import LLMProvider, complete_text, parse_json

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a healthcare policy compliance expert."


def default_categories() -> list[Category]:
    return [Category(code) for code in settings.default_categories]


def build_routing_prompt(question: str) -> str:
    category_list = "\n".join(
        f"{category.value}: {description}"
        for category, description in CATEGORY_DESCRIPTIONS.items()
    )
    return (
        "You are a healthcare compliance expert. Given an audit question, "
        "determine which policy categories are most likely to contain "
        "relevant answers.\n\n"
        f'Audit Question:\n"{question}"\n\n'
        f"Available Policy Categories:\n{category_list}\n\n"
        "Instructions:\n"
        f"- Select 1-{settings.max_categories} categories most likely to contain the answer\n"
        '- Return ONLY the category codes (e.g., ["HH", "MA"])\n'
        "- Be strategic: choose categories that directly relate to the question topic\n"
        "- Return ONLY valid JSON array, no additional text\n\n"
        'Output Format:\n["CODE1", "CODE2"]\n\n'
        "Return JSON array only:"
    )


async def select_categories(question: str, llm: LLMProvider) -> list[Category]:
    """
    Choose the policy categories to search for a question.

    Returns 1..max_categories distinct categories, in the order the model
    gave them. Never raises.
    """
    try:
        content = await complete_text(
            llm,
            build_routing_prompt(question),
            system=SYSTEM_PROMPT,
            max_tokens=100,
        )
    except Exception as e:
        logger.warning("Category selection failed: %s. Using defaults.", e)
        return default_categories()

    if not content:
        logger.warning("Empty category selection response. Using defaults.")
        return default_categories()

    try:
        raw = parse_json(content)
    except json.JSONDecodeError as e:
        logger.warning(
            "Unparseable category selection %r: %s. Using defaults.",
            content[:100], e,
        )
        return default_categories()

    categories = _coerce_categories(raw)
    if not categories:
        logger.warning(
            "No known categories in selection %r. Using defaults.", raw,
        )
        return default_categories()

    logger.info(
        "Selected categories: %s", ", ".join(c.value for c in categories),
    )
    return categories


def _coerce_categories(raw: object) -> list[Category]:
    """Keep known codes from a JSON array, de-duplicated, capped."""
    if not isinstance(raw, list):
        return []

    categories: list[Category] = []
    for item in raw:
        if not isinstance(item, str):
            continue
        code = item.strip().upper()
        if code in Category.__members__ and Category(code) not in categories:
            categories.append(Category(code))
    return categories[: settings.max_categories]
