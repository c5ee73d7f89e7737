# =============================================================================
# API Tests — Analyze Endpoints
# =============================================================================
#
# Uses FastAPI's TestClient with dependency overrides: the engine and the
# PDF parser are replaced, so no database, LLM or Docling is needed.
# =============================================================================

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from app.api.analyze import get_engine, get_pdf_parser
from app.config import settings
from app.main import app
from app.models.domain import Evidence, SearchResult, SearchStatus
from app.services.llm import LLMResponse
from app.services.parser import ParsedDocument, ParsedElement

MET = SearchResult(
    status=SearchStatus.MET,
    evidence=Evidence(
        policy_name="HH.1102 Treatment Authorization Requests",
        policy_number="HH.1102",
        page="Page 2 of 2",
        excerpt="must process urgent requests within seventy-two (72) hours",
        confidence=0.95,
        category="HH",
    ),
)


class FakeEngine:
    """Stands in for EvidenceEngine: fixed results per question number."""

    def __init__(self, results: dict[int, SearchResult], extracted: list[dict] | None = None):
        self.results = results
        self.limits: list[int | None] = []
        self.llm = AsyncMock()
        self.llm.complete.return_value = LLMResponse(
            content=json.dumps({"questions": extracted or []}),
            model="test", input_tokens=1, output_tokens=1,
        )

    async def search_all(self, questions, limit=None):
        questions = list(questions)[:limit]
        self.limits.append(limit)
        return {q.number: self.results.get(q.number, SearchResult.not_met()) for q in questions}


def _parser_returning(text: str):
    def parse(path: Path) -> ParsedDocument:
        assert path.exists()
        return ParsedDocument(
            elements=[ParsedElement(text=text, page_number=1, element_type="text")] if text else [],
            page_count=1,
            filename=path.name,
        )
    return parse


@pytest.fixture
def client(tmp_path):
    with patch.object(settings, "upload_dir", str(tmp_path)):
        yield TestClient(app)
    app.dependency_overrides.clear()


def _override(engine: FakeEngine, text: str = "1. Are urgent authorizations processed within 72 hours?"):
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_pdf_parser] = lambda: _parser_returning(text)


# ---------------------------------------------------------------------------
# Test: GET /health, GET /categories
# ---------------------------------------------------------------------------


class TestMetadataEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == settings.app_version

    def test_categories(self, client):
        response = client.get("/categories")
        assert response.status_code == 200
        codes = [c["code"] for c in response.json()]
        assert codes == ["AA", "CMC", "DD", "EE", "FF", "GA", "GG", "HH", "MA", "PA"]


# ---------------------------------------------------------------------------
# Test: POST /analyze/questions
# ---------------------------------------------------------------------------


class TestAnalyzeQuestions:
    def test_statuses_and_counts(self, client):
        engine = FakeEngine({1: MET, 2: SearchResult.under_review()})
        _override(engine)

        response = client.post("/analyze/questions", json={"questions": [
            {"number": 1, "text": "Are urgent authorizations processed within 72 hours?"},
            {"number": 2, "text": "Is bereavement counseling offered?"},
            {"number": 3, "text": "Are members notified of denials?"},
        ]})

        assert response.status_code == 200
        body = response.json()
        assert [q["status"] for q in body["questions"]] == ["met", "under-review", "not-met"]
        assert body["questions"][0]["id"] == "q1"
        assert body["questions"][0]["evidence"]["page"] == "Page 2 of 2"
        assert "seventy-two (72) hours" in body["questions"][0]["evidence"]["excerpt"]
        assert body["questions"][2]["evidence"] is None
        assert (body["met_count"], body["not_met_count"], body["under_review_count"]) == (1, 1, 1)
        assert body["total_questions"] == 3
        assert body["searched_questions"] == 3
        assert body["processing_time_ms"] >= 0

    def test_questions_beyond_limit_under_review(self, client):
        engine = FakeEngine({1: MET, 2: MET})
        _override(engine)

        response = client.post("/analyze/questions", json={
            "questions": [
                {"number": 1, "text": "First question?"},
                {"number": 2, "text": "Second question?"},
            ],
            "max_questions": 1,
        })

        body = response.json()
        assert engine.limits == [1]
        assert [q["status"] for q in body["questions"]] == ["met", "under-review"]
        assert body["searched_questions"] == 1

    def test_default_limit_from_settings(self, client):
        engine = FakeEngine({})
        _override(engine)
        client.post("/analyze/questions", json={"questions": [{"number": 1, "text": "Question?"}]})
        assert engine.limits == [settings.max_questions_per_submission]

    def test_duplicate_numbers_rejected(self, client):
        _override(FakeEngine({}))
        response = client.post("/analyze/questions", json={"questions": [
            {"number": 1, "text": "First question?"},
            {"number": 1, "text": "Again question?"},
        ]})
        assert response.status_code == 422

    def test_empty_list_rejected(self, client):
        _override(FakeEngine({}))
        response = client.post("/analyze/questions", json={"questions": []})
        assert response.status_code == 422

    def test_missing_llm_key_is_503(self, client):
        with patch(
            "app.api.analyze.get_evidence_engine",
            side_effect=ValueError("No API key configured"),
        ):
            response = client.post(
                "/analyze/questions",
                json={"questions": [{"number": 1, "text": "Question?"}]},
            )
        assert response.status_code == 503


# ---------------------------------------------------------------------------
# Test: POST /analyze (PDF upload)
# ---------------------------------------------------------------------------


class TestAnalyzePdf:
    def _upload(self, client, name="audit.pdf", content=b"%PDF-1.4 fake", params=None):
        return client.post(
            "/analyze",
            files={"file": (name, content, "application/pdf")},
            params=params or {},
        )

    def test_extracted_questions_analyzed(self, client, tmp_path):
        engine = FakeEngine(
            {1: MET},
            extracted=[
                {"number": 1, "text": "Are urgent authorizations processed within 72 hours?"},
                {"number": 2, "text": "Are members notified of denials?"},
            ],
        )
        _override(engine)

        response = self._upload(client)

        assert response.status_code == 200
        body = response.json()
        assert [q["number"] for q in body["questions"]] == [1, 2]
        assert [q["status"] for q in body["questions"]] == ["met", "not-met"]
        # Upload is removed after parsing
        assert list(tmp_path.iterdir()) == []

    def test_max_questions_query(self, client):
        engine = FakeEngine({}, extracted=[
            {"number": 1, "text": "First question?"},
            {"number": 2, "text": "Second question?"},
        ])
        _override(engine)

        body = self._upload(client, params={"max_questions": 1}).json()

        assert engine.limits == [1]
        assert body["under_review_count"] == 1

    def test_non_pdf_rejected(self, client):
        _override(FakeEngine({}))
        assert self._upload(client, name="audit.docx").status_code == 400

    def test_empty_file_rejected(self, client):
        _override(FakeEngine({}))
        assert self._upload(client, content=b"").status_code == 400

    def test_oversized_file_rejected(self, client):
        _override(FakeEngine({}))
        with patch.object(settings, "max_upload_mb", 0):
            assert self._upload(client).status_code == 413

    def test_no_text_is_400(self, client):
        _override(FakeEngine({}), text="")
        assert self._upload(client).status_code == 400

    def test_unreadable_pdf_is_400(self, client):
        def broken(path):
            raise ValueError("corrupt")

        _override(FakeEngine({}))
        app.dependency_overrides[get_pdf_parser] = lambda: broken
        assert self._upload(client).status_code == 400

    def test_no_questions_is_422(self, client):
        _override(FakeEngine({}, extracted=[]))
        assert self._upload(client).status_code == 422
