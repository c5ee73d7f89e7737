# =============================================================================
# Evidence Cache — Time-Bounded (question, document) → Verdict Memo
# =============================================================================
#
# Every document evaluation costs one inference call per page. Audit
# submissions repeat questions (and re-uploads repeat whole submissions),
# so verdicts are memoised per (question fingerprint, document id).
#
# KEY: first `key_chars` characters of the question, lower-cased and
# trimmed, plus the document id. Questions that differ only beyond the
# prefix share an entry. This collision is accepted.
#
# EXPIRY: entries older than `ttl_seconds` are ignored on read and
# overwritten by the next put. There is no background sweep.
#
# CONCURRENCY: a single lock guards the dict. Evaluations for many
# questions and documents read and write concurrently; racing writes to
# the same key resolve last-write-wins.
#
# The cache lives in process memory only and is empty after a restart.
# =============================================================================

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from app.config import settings
from app.models.domain import MatchVerdict


@dataclass(frozen=True)
class CacheEntry:
    verdict: MatchVerdict
    created_at: float


class EvidenceCache:
    """
    Process-wide verdict cache with lazy TTL expiry.

    Args:
        ttl_seconds: Entry lifetime.
        key_chars: Question prefix length used for the fingerprint.
        clock: Returns the current time in seconds. Injected by tests.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        key_chars: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self._key_chars = key_chars if key_chars is not None else settings.cache_key_chars
        self._clock = clock
        self._entries: dict[tuple[str, str], CacheEntry] = {}
        self._lock = threading.Lock()

    def key(self, question: str, document_id: str) -> tuple[str, str]:
        return question[: self._key_chars].lower().strip(), str(document_id)

    def get(self, question: str, document_id: str) -> MatchVerdict | None:
        """Return the cached verdict, or None on a miss or a stale entry."""
        key = self.key(question, document_id)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.created_at >= self._ttl:
            return None
        return entry.verdict

    def put(self, question: str, document_id: str, verdict: MatchVerdict) -> None:
        key = self.key(question, document_id)
        entry = CacheEntry(verdict=verdict, created_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
