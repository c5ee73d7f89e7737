# =============================================================================
# Corpus Store — Read Access to Policy Documents
# =============================================================================
#
# The engine needs one operation from the corpus: "list every document in
# these categories", in a deterministic order. Ordering is part of the
# contract: the scanner reports the FIRST qualifying document by position,
# so the same corpus snapshot must always come back in the same order.
#
# ARCHITECTURE:
#   CorpusStore (Protocol)
#   └── PgCorpusStore — PostgreSQL via async SQLAlchemy
#       └── list_documents() — optional category IN filter,
#                              ORDER BY category, policy_number
#
# No row limit: category routing keeps the candidate set small.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import PolicyDocumentRecord
from app.models.domain import PolicyDocument

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class CorpusStore(Protocol):
    """Read-only access to the policy corpus."""

    async def list_documents(
        self,
        categories: Iterable[str] | None = None,
    ) -> list[PolicyDocument]:
        """
        Return documents in the given categories (all when None or empty),
        ordered by (category, policy number).
        """
        ...


# ---------------------------------------------------------------------------
# Implementation: PostgreSQL
# ---------------------------------------------------------------------------


class PgCorpusStore:
    """Corpus store backed by the policy_documents table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        if session_factory is None:
            from app.db.engine import async_session_factory

            session_factory = async_session_factory
        self._session_factory = session_factory

    async def list_documents(
        self,
        categories: Iterable[str] | None = None,
    ) -> list[PolicyDocument]:
        stmt = select(PolicyDocumentRecord)

        # Category enum members and plain codes are both accepted
        category_list = sorted({getattr(c, "value", c) for c in categories or []})
        if category_list:
            stmt = stmt.where(
                PolicyDocumentRecord.policy_category.in_(category_list)
            )

        stmt = stmt.order_by(
            PolicyDocumentRecord.policy_category.asc(),
            PolicyDocumentRecord.policy_number.asc(),
        )

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()

        logger.debug(
            "Loaded %d policy documents (categories=%s)",
            len(records), category_list or "all",
        )
        return [record.to_domain() for record in records]


# Lazy singleton — one store (and one connection pool) per process
_store: PgCorpusStore | None = None


def get_corpus_store() -> PgCorpusStore:
    global _store
    if _store is None:
        _store = PgCorpusStore()
    return _store
