"""Decode in-page node snapshots into SnapshotNode trees.

The observer script cannot hand live DOM elements to Python, so for every
added element it serialises the ancestor chain:

    {"chain": [
        {"tag": "div", "attrs": {...}, "text": "...", "stamp": {...} | null},
        ...                      # chain[0] is the added element, then parents
    ]}

"stamp" is the first timestamp-shaped descendant of that chain entry. The
decoder links parents and attaches each stamp as a child so the core DOM
helpers can walk the result like a real page.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Union

from whatsalarm.core.dom import SnapshotNode

MAX_CHAIN_LENGTH = 14
SNAPSHOT_ATTRS = ("data-id", "data-testid", "class", "data-pre-plain-text", "title", "datetime")


def _node_from(entry: Mapping[str, Any]) -> SnapshotNode:
    if not isinstance(entry, Mapping):
        raise ValueError(f"Snapshot entry must be an object, got {type(entry).__name__}")
    raw_attrs = entry.get("attrs") or {}
    if not isinstance(raw_attrs, Mapping):
        raise ValueError("Snapshot attrs must be an object")
    attrs: Dict[str, str] = {
        str(key): str(value) for key, value in raw_attrs.items() if value is not None
    }
    return SnapshotNode(
        tag=str(entry.get("tag") or "div").lower(),
        attributes=attrs,
        text=str(entry.get("text") or "").strip(),
    )


def decode_snapshot(payload: Union[str, Mapping[str, Any]]) -> SnapshotNode:
    """Rebuild the snapshot tree and return the node for the added element."""

    if isinstance(payload, str):
        payload = json.loads(payload)
    if not isinstance(payload, Mapping):
        raise ValueError("Snapshot payload must be an object")
    chain = payload.get("chain")
    if not isinstance(chain, list) or not chain:
        raise ValueError("Snapshot payload has no chain")

    nodes = [_node_from(entry) for entry in chain[:MAX_CHAIN_LENGTH]]
    for entry, node in zip(chain, nodes):
        stamp = entry.get("stamp")
        if stamp:
            node.append(_node_from(stamp))

    child: Optional[SnapshotNode] = None
    for node in nodes:
        if child is not None:
            node.children.insert(0, child)
            child.parent = node
        child = node
    return nodes[0]
