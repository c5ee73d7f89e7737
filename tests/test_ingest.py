# =============================================================================
# Unit Tests — Policy Ingestion
# =============================================================================
#
# Runs against an in-memory SQLite database with a fake PDF parser, so
# neither PostgreSQL nor Docling models are needed.
# =============================================================================

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models import Base, PolicyDocumentRecord
from app.services.ingest import ingest_policies, policy_number_from_filename
from app.services.parser import ParsedDocument, ParsedElement


def _fake_parser(path: Path) -> ParsedDocument:
    if "corrupt" in path.name:
        raise ValueError("not a PDF")
    return ParsedDocument(
        elements=[
            ParsedElement(text=f"Text of {path.stem}", page_number=1, element_type="text"),
            ParsedElement(text="Second page", page_number=2, element_type="text"),
        ],
        page_count=2,
        filename=path.name,
    )


@pytest.fixture
def session_scope():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)

    @contextmanager
    def scope():
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    yield scope
    engine.dispose()


def _touch(root: Path, relative: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"%PDF-1.4 fake")
    return path


def _stored(session_scope) -> list[PolicyDocumentRecord]:
    with session_scope() as session:
        return list(session.execute(
            select(PolicyDocumentRecord).order_by(PolicyDocumentRecord.policy_number)
        ).scalars())


class TestPolicyNumber:
    def test_prefix_extracted(self):
        assert policy_number_from_filename("GG.1100 Hospice Services.pdf") == "GG.1100"

    def test_no_prefix_uses_filename(self):
        assert policy_number_from_filename("Member Handbook.pdf") == "Member Handbook.pdf"

    def test_lowercase_prefix_not_matched(self):
        assert policy_number_from_filename("gg.1100.pdf") == "gg.1100.pdf"


class TestIngestPolicies:
    def test_uploads_every_pdf(self, tmp_path, session_scope):
        _touch(tmp_path, "GG/GG.1100 Member Rights.pdf")
        _touch(tmp_path, "HH/HH.1102 Treatment Authorization.pdf")

        report = ingest_policies(tmp_path, session_scope=session_scope, parser=_fake_parser)

        assert (report.uploaded, report.skipped, report.failed) == (2, 0, 0)
        records = _stored(session_scope)
        assert [r.policy_number for r in records] == ["GG.1100", "HH.1102"]
        gg = records[0]
        assert gg.policy_category == "GG"
        assert gg.policy_name == "GG.1100 Member Rights"
        assert gg.content.startswith("Page 1 of 2")
        assert "Text of GG.1100 Member Rights" in gg.content
        assert gg.page_count == 2
        assert gg.file_size == len(b"%PDF-1.4 fake")

    def test_rerun_skips_existing(self, tmp_path, session_scope):
        _touch(tmp_path, "GG/GG.1100 Member Rights.pdf")
        ingest_policies(tmp_path, session_scope=session_scope, parser=_fake_parser)

        report = ingest_policies(tmp_path, session_scope=session_scope, parser=_fake_parser)

        assert (report.uploaded, report.skipped) == (0, 1)
        assert len(_stored(session_scope)) == 1

    def test_same_number_different_category_both_stored(self, tmp_path, session_scope):
        _touch(tmp_path, "GG/XX.1 Shared.pdf")
        _touch(tmp_path, "HH/XX.1 Shared.pdf")

        report = ingest_policies(tmp_path, session_scope=session_scope, parser=_fake_parser)

        assert report.uploaded == 2

    def test_bad_file_counted_and_run_continues(self, tmp_path, session_scope):
        _touch(tmp_path, "GG/GG.1000 corrupt.pdf")
        _touch(tmp_path, "GG/GG.1100 Member Rights.pdf")

        report = ingest_policies(tmp_path, session_scope=session_scope, parser=_fake_parser)

        assert (report.uploaded, report.failed) == (1, 1)
        assert [r.policy_number for r in _stored(session_scope)] == ["GG.1100"]

    def test_non_pdf_and_hidden_entries_ignored(self, tmp_path, session_scope):
        _touch(tmp_path, "GG/notes.txt")
        _touch(tmp_path, ".cache/GG.1.pdf")
        _touch(tmp_path, "README.pdf")

        report = ingest_policies(tmp_path, session_scope=session_scope, parser=_fake_parser)

        assert (report.uploaded, report.skipped, report.failed) == (0, 0, 0)

    def test_missing_directory(self, tmp_path, session_scope):
        with pytest.raises(FileNotFoundError):
            ingest_policies(tmp_path / "missing", session_scope=session_scope)
