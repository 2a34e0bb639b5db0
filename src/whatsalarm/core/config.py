"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

CHAT_FILTER_MODES = ("whitelist", "active")


@dataclass(frozen=True)
class ChatFilterConfig:
    """Chat scoping settings for detections."""

    enabled: bool = False
    mode: str = "whitelist"
    whitelisted_chats: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DedupConfig:
    """Duplicate suppression settings for the watcher."""

    enabled: bool = True
    ttl_ms: int = 60 * 60 * 1000
    soft_cap: int = 1000


@dataclass(frozen=True)
class DetectionConfig:
    """Everything the detection pipeline reads. Passive data only."""

    keywords: Tuple[str, ...]
    case_sensitive: bool = False
    whole_word_match: bool = False
    dedup: DedupConfig = field(default_factory=DedupConfig)
    chat_filter: ChatFilterConfig = field(default_factory=ChatFilterConfig)
    poll_interval_ms: int = 500
    grace_period_ms: int = 2000
    min_message_length: int = 2
    # Numeric dates such as 03/04/2026 are read day-first unless disabled.
    day_first: bool = True
