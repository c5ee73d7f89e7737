# =============================================================================
# Unit Tests — Evidence Cache
# =============================================================================
#
# Expiry is tested with an injected clock instead of sleeping.
# =============================================================================

from app.models.domain import MatchVerdict
from app.services.evidence_cache import EvidenceCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


FOUND = MatchVerdict(found=True, excerpt="within 72 hours", confidence=0.9, page_label="2 of 5")


class TestCacheKey:
    def test_normalised_prefix(self):
        cache = EvidenceCache(key_chars=10)
        assert cache.key("ARE Urgent requests", "d1") == ("are urgent", "d1")

    def test_prefix_taken_before_trimming(self):
        cache = EvidenceCache(key_chars=8)
        assert cache.key("  Urgent requests", "d1") == ("urgent", "d1")

    def test_document_id_stringified(self):
        cache = EvidenceCache()
        assert cache.key("q", 42) == ("q", "42")

    def test_questions_sharing_prefix_collide(self):
        cache = EvidenceCache(key_chars=5, clock=FakeClock())
        cache.put("Hello world", "d1", FOUND)
        assert cache.get("hello there", "d1") == FOUND


class TestCacheGetPut:
    def test_miss_returns_none(self):
        cache = EvidenceCache(clock=FakeClock())
        assert cache.get("question", "d1") is None

    def test_put_then_get(self):
        cache = EvidenceCache(clock=FakeClock())
        cache.put("question", "d1", FOUND)
        assert cache.get("question", "d1") == FOUND
        assert len(cache) == 1

    def test_negative_verdicts_cached(self):
        cache = EvidenceCache(clock=FakeClock())
        cache.put("question", "d1", MatchVerdict.not_found())
        cached = cache.get("question", "d1")
        assert cached is not None
        assert cached.found is False

    def test_documents_are_separate_entries(self):
        cache = EvidenceCache(clock=FakeClock())
        cache.put("question", "d1", FOUND)
        assert cache.get("question", "d2") is None

    def test_last_write_wins(self):
        cache = EvidenceCache(clock=FakeClock())
        cache.put("question", "d1", FOUND)
        cache.put("question", "d1", MatchVerdict.not_found())
        assert cache.get("question", "d1").found is False
        assert len(cache) == 1


class TestCacheExpiry:
    def test_fresh_entry_returned(self):
        clock = FakeClock()
        cache = EvidenceCache(ttl_seconds=3600, clock=clock)
        cache.put("question", "d1", FOUND)
        clock.advance(3599)
        assert cache.get("question", "d1") == FOUND

    def test_entry_expires_at_ttl(self):
        clock = FakeClock()
        cache = EvidenceCache(ttl_seconds=3600, clock=clock)
        cache.put("question", "d1", FOUND)
        clock.advance(3600)
        assert cache.get("question", "d1") is None

    def test_expired_entry_replaced_by_put(self):
        clock = FakeClock()
        cache = EvidenceCache(ttl_seconds=10, clock=clock)
        cache.put("question", "d1", MatchVerdict.not_found())
        clock.advance(20)
        cache.put("question", "d1", FOUND)
        assert cache.get("question", "d1") == FOUND
