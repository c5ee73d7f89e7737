# =============================================================================
# Database Engines — Corpus Reads (async) and Ingestion Writes (sync)
# =============================================================================
#
#   API process  ── async_session_factory ──▶ asyncpg   (PgCorpusStore reads)
#   upload script ── get_sync_session()   ──▶ psycopg2  (ingest_policies writes)
#
# Every question of a submission reads the corpus concurrently, so the API
# side must not block the event loop. Ingestion is a sequential batch job
# and stays synchronous.
#
# The sync engine is created on first use: the API never loads psycopg2,
# and the upload script never opens an asyncpg pool.
# =============================================================================

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings

# Concurrent corpus reads beyond pool_size + max_overflow wait for a
# pooled connection.
async_engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=5,
    max_overflow=10,
)

# Rows are mapped to PolicyDocument after the session closes
async_session_factory = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


_sync_engine: Engine | None = None
_sync_session_factory: sessionmaker[Session] | None = None


def get_sync_engine() -> Engine:
    """Sync engine for ingestion and table creation."""
    global _sync_engine
    if _sync_engine is None:
        _sync_engine = create_engine(settings.database_url_sync, echo=settings.debug)
    return _sync_engine


@contextmanager
def get_sync_session() -> Generator[Session, None, None]:
    """
    Session scope for one ingestion step: commits on success, rolls back
    and re-raises on error.

        with get_sync_session() as session:
            session.add(record)
    """
    global _sync_session_factory
    if _sync_session_factory is None:
        _sync_session_factory = sessionmaker(bind=get_sync_engine(), expire_on_commit=False)

    session = _sync_session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
