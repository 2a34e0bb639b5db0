from __future__ import annotations

from whatsalarm.core.config import DedupConfig
from whatsalarm.core.dedup import DuplicateCache, candidate_fingerprints, fingerprint
from whatsalarm.core.models import MessageCandidate


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _candidate(text: str, timestamp_ms: int | None = 1_000, identity_key: str | None = None) -> MessageCandidate:
    return MessageCandidate(text=text, timestamp_ms=timestamp_ms, identity_key=identity_key)


def test_fingerprint_is_deterministic_and_short() -> None:
    assert fingerprint("hello") == fingerprint("hello")
    assert fingerprint("hello") != fingerprint("hello!")
    assert len(fingerprint("hello")) == 16


def test_candidate_fingerprints_include_identity_when_present() -> None:
    assert len(candidate_fingerprints(_candidate("hello"))) == 1
    assert len(candidate_fingerprints(_candidate("hello", identity_key="msg-1"))) == 2


def test_first_sighting_is_new_and_replay_is_duplicate() -> None:
    cache = DuplicateCache(DedupConfig(), clock=FakeClock())
    candidate = _candidate("urgent call", identity_key="msg-1")

    assert cache.is_duplicate(candidate) is False
    assert cache.is_duplicate(candidate) is True


def test_same_text_with_different_timestamp_is_new() -> None:
    cache = DuplicateCache(DedupConfig(), clock=FakeClock())

    assert cache.is_duplicate(_candidate("urgent call", timestamp_ms=1_000)) is False
    assert cache.is_duplicate(_candidate("urgent call", timestamp_ms=61_000)) is False


def test_text_fingerprint_catches_rerender_without_identity() -> None:
    cache = DuplicateCache(DedupConfig(), clock=FakeClock())

    assert cache.is_duplicate(_candidate("urgent call", identity_key="msg-1")) is False
    assert cache.is_duplicate(_candidate("urgent call", identity_key=None)) is True


def test_entry_expires_after_ttl() -> None:
    clock = FakeClock()
    cache = DuplicateCache(DedupConfig(ttl_ms=1_000), clock=clock)
    candidate = _candidate("urgent call")

    assert cache.is_duplicate(candidate) is False
    clock.now += 999
    assert cache.is_duplicate(candidate) is True
    clock.now += 1_000
    assert cache.is_duplicate(candidate) is False


def test_purge_expired_removes_only_old_entries() -> None:
    clock = FakeClock()
    cache = DuplicateCache(DedupConfig(ttl_ms=1_000), clock=clock)
    cache.is_duplicate(_candidate("old message"))
    clock.now += 600
    cache.is_duplicate(_candidate("new message"))
    clock.now += 600

    assert cache.purge_expired() == 1
    assert len(cache) == 1
    assert fingerprint("new message1000") in cache


def test_cache_stays_bounded_after_many_inserts() -> None:
    clock = FakeClock()
    cache = DuplicateCache(DedupConfig(ttl_ms=1_000, soft_cap=1_000), clock=clock)

    for index in range(1_001):
        cache.is_duplicate(_candidate(f"message {index}"))
        clock.now += 1

    # Inserting past the soft cap triggers a sweep of everything older than the TTL.
    assert len(cache) <= 1_000


def test_cache_never_exceeds_twice_the_soft_cap() -> None:
    cache = DuplicateCache(DedupConfig(soft_cap=10), clock=FakeClock())

    for index in range(100):
        cache.is_duplicate(_candidate(f"message {index}"))
        assert len(cache) <= 20


def test_clear_forgets_everything() -> None:
    cache = DuplicateCache(DedupConfig(), clock=FakeClock())
    candidate = _candidate("urgent call")
    cache.is_duplicate(candidate)

    cache.clear()

    assert len(cache) == 0
    assert cache.is_duplicate(candidate) is False
