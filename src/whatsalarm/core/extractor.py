"""Message identity extraction (core domain).

Turns an added DOM node into a MessageCandidate, or None when the node is not
a usable incoming message. Works on any DomNode so the same logic runs on
decoded browser snapshots and on hand-built test trees.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from whatsalarm.core.dom import (
    FALLBACK_ANCESTOR_LEVELS,
    PRE_PLAIN_TEXT_ATTR,
    STABLE_ID_ATTR,
    TIMESTAMP_SHAPES,
    DomNode,
    ancestors,
    closest,
    find_descendant,
    get_attr,
    has_stable_id,
    is_message_container,
    is_outgoing_marker,
    is_timestamp_element,
)
from whatsalarm.core.models import Direction, MessageCandidate
from whatsalarm.core.timeparse import parse_timestamp

LOGGER = logging.getLogger(__name__)

# Attributes checked before visible text, most explicit first.
TIMESTAMP_ATTRS = (PRE_PLAIN_TEXT_ATTR, "datetime", "title")


@dataclass(frozen=True)
class ExtractOptions:
    min_message_length: int = 2
    day_first: bool = True


def resolve_container(node: DomNode) -> Optional[DomNode]:
    """Find the element that represents the whole message for node."""

    container = closest(node, has_stable_id)
    if container is not None:
        return container
    container = closest(node, is_message_container)
    if container is not None:
        return container

    candidates = [node, *ancestors(node, FALLBACK_ANCESTOR_LEVELS)]
    for candidate in candidates:
        if find_descendant(candidate, is_timestamp_element) is not None:
            return candidate
    return None


def find_timestamp_element(container: DomNode) -> Optional[DomNode]:
    for shape in TIMESTAMP_SHAPES:
        if shape(container):
            return container
        element = find_descendant(container, shape)
        if element is not None:
            return element
    return None


def _raw_timestamps(element: DomNode) -> Iterator[str]:
    for name in TIMESTAMP_ATTRS:
        value = get_attr(element, name)
        if value and value.strip():
            yield value
    if element.text and element.text.strip():
        yield element.text


def extract_timestamp(container: DomNode, now_ms: int, day_first: bool = True) -> Optional[int]:
    element = find_timestamp_element(container)
    if element is None:
        return None
    for raw in _raw_timestamps(element):
        parsed = parse_timestamp(raw, now_ms, day_first)
        if parsed is not None:
            return parsed
    return None


def is_outgoing(node: DomNode, container: DomNode) -> bool:
    return closest(node, is_outgoing_marker) is not None or closest(container, is_outgoing_marker) is not None


def identity_key_for(container: DomNode) -> Optional[str]:
    holder = closest(container, has_stable_id)
    if holder is None:
        return None
    return get_attr(holder, STABLE_ID_ATTR)


def extract_candidate(
    node: DomNode,
    now_ms: int,
    options: ExtractOptions = ExtractOptions(),
) -> Optional[MessageCandidate]:
    """Build a candidate for node, or None if it is not a new incoming message.

    Never raises: any failure is logged at DEBUG and treated as "not a message".
    """

    try:
        container = resolve_container(node)
        if container is None:
            return None

        text = (container.text or "").strip()
        if len(text) <= options.min_message_length:
            return None

        if is_outgoing(node, container):
            LOGGER.debug("Skipping outgoing message: %.40r", text)
            return None

        return MessageCandidate(
            text=text,
            timestamp_ms=extract_timestamp(container, now_ms, options.day_first),
            identity_key=identity_key_for(container),
            direction=Direction.INCOMING,
        )
    except Exception:
        LOGGER.debug("Candidate extraction failed", exc_info=True)
        return None
