# =============================================================================
# Policy Ingestion — PDF Directory → policy_documents Table
# =============================================================================
#
# Loads the policy corpus. The source directory is laid out by category:
#
#   policies/
#   ├── GG/
#   │   ├── GG.1100 Hospice Services.pdf
#   │   └── ...
#   ├── HH/
#   └── ...
#
# For every PDF:
#   1. Derive the policy number from the filename ("GG.1100 ..." → "GG.1100";
#      the whole filename when it does not start with one)
#   2. Skip it if (policy_number, category) is already stored
#   3. Extract text with Docling, including "Page N of M" page markers
#   4. Insert a PolicyDocumentRecord
#
# One bad file never stops the run: it is logged and counted as failed.
# Sequential and synchronous; uses the sync engine.
# =============================================================================

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import PolicyDocumentRecord
from app.services.parser import ParsedDocument, parse_pdf

logger = logging.getLogger(__name__)

POLICY_NUMBER_RE = re.compile(r"^([A-Z]+\.\d+)")


@dataclass
class IngestReport:
    uploaded: int = 0
    skipped: int = 0
    failed: int = 0


def policy_number_from_filename(filename: str) -> str:
    match = POLICY_NUMBER_RE.match(filename)
    return match.group(1) if match else filename


def ingest_policies(
    policies_dir: str | Path,
    session_scope: Callable[[], AbstractContextManager[Session]] | None = None,
    parser: Callable[[Path], ParsedDocument] = parse_pdf,
) -> IngestReport:
    """
    Ingest every category directory under `policies_dir`.

    Args:
        policies_dir: Root directory with one sub-directory per category.
        session_scope: Context manager factory yielding a committing
            session. Defaults to the sync engine's get_sync_session.
        parser: PDF parser; injected by tests.

    Raises:
        FileNotFoundError: If `policies_dir` does not exist.
    """
    root = Path(policies_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Policies directory not found: {root}")

    if session_scope is None:
        from app.db.engine import get_sync_session

        session_scope = get_sync_session

    report = IngestReport()

    for category_dir in sorted(root.iterdir()):
        if category_dir.name.startswith(".") or not category_dir.is_dir():
            continue

        category = category_dir.name
        pdfs = sorted(
            p for p in category_dir.iterdir()
            if p.is_file() and p.suffix.lower() == ".pdf"
        )
        logger.info("Processing category %s (%d files)", category, len(pdfs))

        for pdf in pdfs:
            try:
                stored = _ingest_file(pdf, category, session_scope, parser)
            except Exception as e:
                logger.error("Error processing %s: %s", pdf.name, e)
                report.failed += 1
                continue

            if stored:
                logger.info("Uploaded %s", pdf.name)
                report.uploaded += 1
            else:
                logger.info("Skipped %s (already exists)", pdf.name)
                report.skipped += 1

    logger.info(
        "Ingestion complete: %d uploaded, %d skipped, %d failed",
        report.uploaded, report.skipped, report.failed,
    )
    return report


def _ingest_file(
    pdf: Path,
    category: str,
    session_scope: Callable[[], AbstractContextManager[Session]],
    parser: Callable[[Path], ParsedDocument],
) -> bool:
    """Store one PDF. Returns False when it was already stored."""
    policy_number = policy_number_from_filename(pdf.name)

    with session_scope() as session:
        existing = session.execute(
            select(PolicyDocumentRecord.id).where(
                PolicyDocumentRecord.policy_number == policy_number,
                PolicyDocumentRecord.policy_category == category,
            )
        ).first()
        if existing is not None:
            return False

        parsed = parser(pdf)
        session.add(PolicyDocumentRecord(
            policy_number=policy_number,
            policy_name=pdf.stem,
            policy_category=category,
            content=parsed.to_text(),
            page_count=parsed.page_count or None,
            file_size=pdf.stat().st_size,
        ))
    return True
