# =============================================================================
# Database Models — SQLAlchemy ORM
# =============================================================================
#
# The policy corpus lives in a single PostgreSQL table. Each row is one
# policy PDF, flattened to text at ingestion time.
#
# SCHEMA:
#
# ┌──────────────────────────────────────────┐
# │  policy_documents                        │
# ├──────────────────────────────────────────┤
# │ id (PK, uuid)                            │
# │ policy_number (text)   e.g. "GG.1100"    │
# │ policy_name (text)     full filename     │
# │ policy_category (text) e.g. "GG", "HH"   │
# │ content (text)         extracted text    │
# │ page_count (int, null)                   │
# │ file_size (int, null)                    │
# │ created_at / updated_at                  │
# └──────────────────────────────────────────┘
#
# Indexes on policy_number and policy_category: the engine always reads
# by category, ordered by (category, number); ingestion checks for an
# existing (number, category) pair before inserting.
# =============================================================================

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, Text, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.models.domain import PolicyDocument


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


class PolicyDocumentRecord(Base):
    """A stored policy document (one PDF's extracted text)."""

    __tablename__ = "policy_documents"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )

    policy_number: Mapped[str] = mapped_column(Text, nullable=False)

    # Full filename without the .pdf extension; used as the display name
    policy_name: Mapped[str] = mapped_column(Text, nullable=False)

    # Category code. Routing only ever selects codes from the Category enum.
    policy_category: Mapped[str] = mapped_column(Text, nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_policy_number", "policy_number"),
        Index("idx_category", "policy_category"),
    )

    def to_domain(self) -> PolicyDocument:
        return PolicyDocument(
            id=str(self.id),
            policy_number=self.policy_number,
            policy_name=self.policy_name,
            category=self.policy_category,
            content=self.content or "",
        )

    def __repr__(self) -> str:
        return (
            f"<PolicyDocumentRecord(number={self.policy_number!r}, "
            f"category={self.policy_category!r})>"
        )
