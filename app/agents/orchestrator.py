# =============================================================================
# LangGraph Orchestrator — Evidence Engine Assembly
# =============================================================================
#
# Wires the per-question pipeline into a LangGraph StateGraph and runs it
# concurrently for every question of a submission.
#
# GRAPH TOPOLOGY (one question):
#   START ──▶ route ──▶ fetch ──┬──▶ scan ──▶ END
#                               └──▶ END          (no candidates: under-review)
#
#   route — Category Router picks 1-3 categories (falls back, never fails)
#   fetch — Corpus Store lists every document in those categories
#   scan  — Corpus Scanner evaluates candidates in parallel batches
#
# DESIGN DECISION: Collaborators travel in the state. The LLM provider,
# corpus store and evidence cache are injected into EvidenceEngine and
# placed in the initial state, so one compiled graph serves every engine
# instance (tests build engines with doubles). These values are not
# JSON-serialisable; the graph has no checkpointer.
#
# ISOLATION: EvidenceEngine.search() is the failure boundary of a
# question. Anything that escapes the graph is logged and reported as
# under-review for that question only; sibling questions are unaffected.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from app.agents.router import select_categories
from app.agents.scanner import scan_documents
from app.config import settings
from app.models.domain import Category, PolicyDocument, Question, SearchResult
from app.services.corpus import CorpusStore, get_corpus_store
from app.services.evidence_cache import EvidenceCache
from app.services.llm import LLMProvider, get_llm_provider

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine State Schema
# ---------------------------------------------------------------------------


class EngineState(TypedDict, total=False):
    """State for one question flowing through the graph."""

    # --- Input (set by EvidenceEngine) ---
    question: str
    llm: LLMProvider
    store: CorpusStore
    cache: EvidenceCache

    # --- Intermediate (set by nodes) ---
    categories: list[Category]
    documents: list[PolicyDocument]

    # --- Output ---
    result: SearchResult


# ---------------------------------------------------------------------------
# Node Functions
# ---------------------------------------------------------------------------


async def route_node(state: EngineState) -> dict:
    categories = await select_categories(state["question"], state["llm"])
    return {"categories": categories}


async def fetch_node(state: EngineState) -> dict:
    categories = state.get("categories") or []
    documents = await state["store"].list_documents(categories)

    if not documents:
        logger.info("No policies found in selected categories")
        return {"documents": [], "result": SearchResult.under_review()}

    logger.info(
        "Searching %d policies from categories [%s]...",
        len(documents), ", ".join(c.value for c in categories),
    )
    return {"documents": documents}


async def scan_node(state: EngineState) -> dict:
    result = await scan_documents(
        question=state["question"],
        documents=state["documents"],
        llm=state["llm"],
        cache=state["cache"],
    )
    return {"result": result}


def _after_fetch(state: EngineState) -> str:
    return "scan" if state.get("documents") else END


# ---------------------------------------------------------------------------
# Graph Assembly
# ---------------------------------------------------------------------------
# Compiled once at module level and shared by every EvidenceEngine.
# ---------------------------------------------------------------------------

_builder = StateGraph(EngineState)
_builder.add_node("route", route_node)
_builder.add_node("fetch", fetch_node)
_builder.add_node("scan", scan_node)

_builder.add_edge(START, "route")
_builder.add_edge("route", "fetch")
_builder.add_conditional_edges("fetch", _after_fetch, {"scan": "scan", END: END})
_builder.add_edge("scan", END)

graph = _builder.compile()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class EvidenceEngine:
    """
    Evidence retrieval engine: one instance per process in production.

    Args:
        llm: Inference provider used for routing and page matching.
        store: Corpus store the candidate documents are read from.
        cache: Evidence cache shared by every search of this engine.
    """

    def __init__(
        self,
        llm: LLMProvider,
        store: CorpusStore,
        cache: EvidenceCache | None = None,
    ) -> None:
        self.llm = llm
        self.store = store
        self.cache = cache if cache is not None else EvidenceCache()

    async def search(self, question: str) -> SearchResult:
        """Search the corpus for evidence answering one question."""
        initial_state: EngineState = {
            "question": question,
            "llm": self.llm,
            "store": self.store,
            "cache": self.cache,
        }

        try:
            final_state = await graph.ainvoke(initial_state)
        except Exception:
            logger.exception("Error searching policies for '%s'", question[:80])
            return SearchResult.under_review()

        return final_state.get("result") or SearchResult.under_review()

    async def search_all(
        self,
        questions: Iterable[Question],
        limit: int | None = None,
    ) -> dict[int, SearchResult]:
        """
        Search the first `limit` questions concurrently.

        Returns a mapping from question number to SearchResult. Questions
        beyond the limit are not searched and are absent from the mapping.
        """
        if limit is None:
            limit = settings.max_questions_per_submission
        selected = list(questions)[: max(limit, 0)]

        logger.info("Processing %d questions in parallel...", len(selected))

        outcomes = await asyncio.gather(
            *(self.search(q.text) for q in selected),
            return_exceptions=True,
        )

        results: dict[int, SearchResult] = {}
        for question, outcome in zip(selected, outcomes):
            if isinstance(outcome, Exception):
                logger.error(
                    "Search for question %d failed: %s", question.number, outcome,
                )
                outcome = SearchResult.under_review()
            elif isinstance(outcome, BaseException):
                raise outcome
            results[question.number] = outcome

        logger.info("Completed processing %d questions", len(selected))
        return results


# Lazy singleton — shares one evidence cache across all requests
_engine: EvidenceEngine | None = None


def get_evidence_engine() -> EvidenceEngine:
    """
    Return the process-wide engine.

    Raises:
        ValueError: If the LLM provider has no API key configured.
    """
    global _engine
    if _engine is None:
        _engine = EvidenceEngine(
            llm=get_llm_provider(),
            store=get_corpus_store(),
            cache=EvidenceCache(),
        )
    return _engine
