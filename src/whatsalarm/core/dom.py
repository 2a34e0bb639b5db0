"""Abstract DOM tree used by the message extractor.

The extractor only needs attribute reads, text, and ancestor / descendant
walks, so it works on anything satisfying DomNode. The browser host decodes
in-page snapshots into SnapshotNode trees; tests build them by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple

STABLE_ID_ATTR = "data-id"
PRE_PLAIN_TEXT_ATTR = "data-pre-plain-text"

# Max ancestor levels walked when no container shape matches.
FALLBACK_ANCESTOR_LEVELS = 12
# Descendant searches are bounded so a stray match on <body> stays cheap.
MAX_DESCENDANT_VISITS = 2000


class DomNode(Protocol):
    """Minimal node capabilities the core relies on."""

    @property
    def tag(self) -> str:
        ...

    @property
    def attributes(self) -> Mapping[str, str]:
        ...

    @property
    def parent(self) -> Optional["DomNode"]:
        ...

    @property
    def children(self) -> Sequence["DomNode"]:
        ...

    @property
    def text(self) -> str:
        ...


NodePredicate = Callable[[DomNode], bool]


@dataclass(eq=False)
class SnapshotNode:
    """Plain in-memory DOM node."""

    tag: str = "div"
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: List["SnapshotNode"] = field(default_factory=list)
    parent: Optional["SnapshotNode"] = field(default=None, repr=False)

    def append(self, child: "SnapshotNode") -> "SnapshotNode":
        child.parent = self
        self.children.append(child)
        return child


def get_attr(node: DomNode, name: str) -> Optional[str]:
    value = node.attributes.get(name)
    if value is None:
        return None
    return str(value)


def class_list(node: DomNode) -> List[str]:
    return (get_attr(node, "class") or "").split()


def has_class(node: DomNode, name: str) -> bool:
    return name in class_list(node)


def ancestors(node: DomNode, limit: Optional[int] = None) -> Iterator[DomNode]:
    """Yield parents from nearest to farthest, at most limit of them."""

    current = node.parent
    depth = 0
    while current is not None and (limit is None or depth < limit):
        yield current
        current = current.parent
        depth += 1


def closest(
    node: DomNode,
    predicate: NodePredicate,
    include_self: bool = True,
    max_depth: Optional[int] = None,
) -> Optional[DomNode]:
    """Return the nearest node (self first, then ancestors) matching predicate."""

    if include_self and predicate(node):
        return node
    for ancestor in ancestors(node, max_depth):
        if predicate(ancestor):
            return ancestor
    return None


def find_descendant(
    node: DomNode,
    predicate: NodePredicate,
    max_visits: int = MAX_DESCENDANT_VISITS,
) -> Optional[DomNode]:
    """Depth-first search below node (node itself excluded)."""

    stack = list(reversed(node.children))
    visits = 0
    while stack and visits < max_visits:
        current = stack.pop()
        visits += 1
        if predicate(current):
            return current
        stack.extend(reversed(current.children))
    return None


# WhatsApp Web shapes


def has_stable_id(node: DomNode) -> bool:
    return bool(get_attr(node, STABLE_ID_ATTR))


def is_message_container(node: DomNode) -> bool:
    test_id = get_attr(node, "data-testid") or ""
    if "msg-container" in test_id:
        return True
    classes = class_list(node)
    return "message-in" in classes or "message-out" in classes


def _has_pre_plain_text(node: DomNode) -> bool:
    return get_attr(node, PRE_PLAIN_TEXT_ATTR) is not None


def _is_msg_meta(node: DomNode) -> bool:
    return get_attr(node, "data-testid") == "msg-meta"


def _is_msg_time_span(node: DomNode) -> bool:
    return node.tag.lower() == "span" and get_attr(node, "data-testid") == "msg-time"


def _is_time_class_span(node: DomNode) -> bool:
    return node.tag.lower() == "span" and any("time" in name for name in class_list(node))


# Ordered by how reliable the timestamp each shape carries is.
TIMESTAMP_SHAPES: Tuple[NodePredicate, ...] = (
    _has_pre_plain_text,
    _is_msg_meta,
    _is_msg_time_span,
    _is_time_class_span,
)


def is_timestamp_element(node: DomNode) -> bool:
    return any(shape(node) for shape in TIMESTAMP_SHAPES)


def is_outgoing_marker(node: DomNode) -> bool:
    if has_class(node, "message-out"):
        return True
    # Message ids are prefixed "true_" for messages sent from this account.
    return (get_attr(node, STABLE_ID_ATTR) or "").startswith("true_")
