"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Sentinel timestamp for messages the page explicitly marks as old ("yesterday").
KNOWN_OLD = 0


class Direction(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class WatcherState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PREPARING = "preparing"
    ACTIVE = "active"
    STOPPED = "stopped"


@dataclass(frozen=True)
class MessageCandidate:
    """A parsed, provisional message awaiting filtering decisions.

    timestamp_ms is None when unknown and KNOWN_OLD (0) when the page says the
    message is old. identity_key is the host's stable id for the container.
    """

    text: str
    timestamp_ms: Optional[int]
    identity_key: Optional[str]
    direction: Direction = Direction.INCOMING


@dataclass(frozen=True)
class DetectionEvent:
    """Emitted once per message that passes every pipeline stage."""

    keyword: str
    text: str
    chat_name: str
    timestamp_iso: str
    identity_key: Optional[str] = None
    message_timestamp_ms: Optional[int] = None
