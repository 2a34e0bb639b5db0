"""Deduplication helpers (core domain)."""

from __future__ import annotations

import hashlib
import logging
import time
from typing import Callable, Dict, List, Optional

from whatsalarm.core.config import DedupConfig
from whatsalarm.core.models import MessageCandidate

LOGGER = logging.getLogger(__name__)

FINGERPRINT_CHARS = 16


def now_ms() -> int:
    return int(time.time() * 1000)


def fingerprint(text: str) -> str:
    """Return a short, deterministic fingerprint for duplicate lookup only."""

    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:FINGERPRINT_CHARS]


def candidate_fingerprints(candidate: MessageCandidate) -> List[str]:
    """Return the text-based fingerprint and, when possible, the identity-based one."""

    timestamp = "" if candidate.timestamp_ms is None else str(candidate.timestamp_ms)
    fingerprints = [fingerprint(f"{candidate.text}{timestamp}")]
    if candidate.identity_key:
        fingerprints.append(fingerprint(f"{candidate.identity_key}{timestamp}{candidate.text}"))
    return fingerprints


class DuplicateCache:
    """Time-windowed set of fingerprints already seen by the watcher.

    Entries map fingerprint -> last seen epoch ms. Once the cache grows past
    soft_cap, expired entries are swept. If that is not enough to get back
    under twice the soft cap, the oldest entries are evicted.
    """

    def __init__(self, config: DedupConfig, clock: Optional[Callable[[], int]] = None) -> None:
        self._ttl_ms = config.ttl_ms
        self._soft_cap = config.soft_cap
        self._clock = clock or now_ms
        self._entries: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, value: str) -> bool:
        return value in self._entries

    def is_duplicate(self, candidate: MessageCandidate) -> bool:
        """Check candidate against the window, recording it when it is new."""

        now = self._clock()
        fingerprints = candidate_fingerprints(candidate)
        for value in fingerprints:
            last_seen = self._entries.get(value)
            if last_seen is not None and now - last_seen < self._ttl_ms:
                return True

        for value in fingerprints:
            self._entries[value] = now
        if len(self._entries) > self._soft_cap:
            self._sweep(now)
        return False

    def purge_expired(self) -> int:
        """Drop entries older than the TTL and return how many were removed."""

        return self._sweep(self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def _sweep(self, now: int) -> int:
        expired = [key for key, seen in self._entries.items() if now - seen >= self._ttl_ms]
        for key in expired:
            del self._entries[key]

        evicted = 0
        if len(self._entries) > self._soft_cap * 2:
            oldest = sorted(self._entries.items(), key=lambda item: item[1])
            evicted = len(self._entries) - self._soft_cap
            for key, _ in oldest[:evicted]:
                del self._entries[key]

        if expired or evicted:
            LOGGER.debug(
                "Duplicate cache sweep: expired=%s evicted=%s size=%s",
                len(expired),
                evicted,
                len(self._entries),
            )
        return len(expired) + evicted
