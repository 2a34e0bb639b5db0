"""Recency filter (core domain).

A message fires only when its timestamp falls between the watcher's
watermark (floored to the minute) and now.
"""

from __future__ import annotations

from typing import Optional

from whatsalarm.core.models import KNOWN_OLD

MINUTE_MS = 60_000


def floor_to_minute(value_ms: int) -> int:
    return value_ms - (value_ms % MINUTE_MS)


def is_recent(timestamp_ms: Optional[int], startup_time_ms: int, now_ms: int) -> bool:
    """Return True when timestamp_ms is inside [floor(startup), now].

    WhatsApp only shows minute precision, so a message sent in the same
    minute the watcher started still counts as new.
    """

    if timestamp_ms is None or timestamp_ms == KNOWN_OLD:
        return False
    if timestamp_ms > now_ms:
        return False
    return timestamp_ms >= floor_to_minute(startup_time_ms)
