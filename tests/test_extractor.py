from __future__ import annotations

from datetime import datetime

from whatsalarm.core.dom import SnapshotNode, closest, find_descendant, has_stable_id
from whatsalarm.core.extractor import (
    ExtractOptions,
    extract_candidate,
    find_timestamp_element,
    resolve_container,
)
from whatsalarm.core.models import KNOWN_OLD, Direction

TEXT = "في حالة الغياب اتصل بي"
NOW = int(datetime(2024, 5, 12, 10, 33).timestamp() * 1000)
SENT = int(datetime(2024, 5, 12, 10, 32).timestamp() * 1000)


def _message_tree(data_id: str = "false_201001234567@c.us_3EB0A1", text: str = TEXT) -> SnapshotNode:
    """body > row[data-id] > copyable[data-pre-plain-text] > span(text)."""

    body = SnapshotNode(tag="body", text=f"Chats {text} 10:32")
    row = body.append(
        SnapshotNode(attributes={"data-id": data_id, "class": "message-in focusable-list-item"}, text=f"{text}10:32")
    )
    copyable = row.append(
        SnapshotNode(
            attributes={"class": "copyable-text", "data-pre-plain-text": "[10:32, 12/05/2024] Ahmed: "},
            text=text,
        )
    )
    copyable.append(SnapshotNode(tag="span", attributes={"dir": "rtl"}, text=text))
    row.append(SnapshotNode(tag="span", attributes={"data-testid": "msg-time"}, text="10:32"))
    return body


def _leaf(node: SnapshotNode) -> SnapshotNode:
    while node.children:
        node = node.children[0]
    return node


def test_dom_helpers_walk_snapshot_trees() -> None:
    body = _message_tree()
    leaf = _leaf(body)

    row = closest(leaf, has_stable_id)
    assert row is not None and row.attributes["data-id"].endswith("3EB0A1")
    assert closest(leaf, has_stable_id, max_depth=1) is None
    assert find_descendant(body, lambda node: node.tag == "span") is leaf


def test_extracts_incoming_message_with_identity_and_timestamp() -> None:
    candidate = extract_candidate(_leaf(_message_tree()), NOW)

    assert candidate is not None
    assert candidate.text == f"{TEXT}10:32"
    assert candidate.identity_key == "false_201001234567@c.us_3EB0A1"
    assert candidate.timestamp_ms == SENT
    assert candidate.direction is Direction.INCOMING


def test_container_prefers_stable_id_over_shapes() -> None:
    body = _message_tree()
    container = resolve_container(_leaf(body))
    assert container is body.children[0]


def test_pre_plain_text_wins_over_time_span() -> None:
    row = _message_tree().children[0]
    element = find_timestamp_element(row)
    assert element is not None
    assert "data-pre-plain-text" in element.attributes


def test_outgoing_by_id_prefix_is_dropped() -> None:
    body = _message_tree(data_id="true_201001234567@c.us_3EB0A1")
    body.children[0].attributes["class"] = "focusable-list-item"
    assert extract_candidate(_leaf(body), NOW) is None


def test_outgoing_by_class_is_dropped() -> None:
    body = _message_tree()
    body.children[0].attributes["class"] = "message-out"
    assert extract_candidate(_leaf(body), NOW) is None


def test_short_text_is_dropped() -> None:
    body = SnapshotNode(tag="body")
    row = body.append(SnapshotNode(attributes={"data-id": "false_x"}, text="ok"))
    assert extract_candidate(row, NOW) is None
    assert extract_candidate(row, NOW, ExtractOptions(min_message_length=1)) is not None


def test_container_shape_without_stable_id() -> None:
    body = SnapshotNode(tag="body")
    container = body.append(SnapshotNode(attributes={"data-testid": "msg-container"}, text="urgent call me"))
    inner = container.append(SnapshotNode(text="urgent call me"))

    candidate = extract_candidate(inner, NOW)

    assert candidate is not None
    assert candidate.identity_key is None
    assert candidate.timestamp_ms is None


def test_fallback_walks_up_to_an_ancestor_with_a_timestamp() -> None:
    wrapper = SnapshotNode(text="urgent call me10:32")
    inner = wrapper.append(SnapshotNode(text="urgent call me"))
    wrapper.append(SnapshotNode(tag="span", attributes={"class": "x1rg5ohu time-stamp"}, text="10:32"))

    assert resolve_container(inner) is wrapper
    candidate = extract_candidate(inner, NOW)
    assert candidate is not None
    assert candidate.timestamp_ms == SENT


def test_fallback_is_bounded_to_twelve_levels() -> None:
    def build(depth: int) -> SnapshotNode:
        root = SnapshotNode(text="urgent call me 10:32")
        root.append(SnapshotNode(tag="span", attributes={"data-testid": "msg-time"}, text="10:32"))
        current = root
        for _ in range(depth):
            current = current.append(SnapshotNode(text="urgent call me"))
        return current

    assert resolve_container(build(12)) is not None
    assert resolve_container(build(13)) is None


def test_node_without_any_message_shape_is_ignored() -> None:
    lonely = SnapshotNode(text="just some sidebar text")
    assert extract_candidate(lonely, NOW) is None


def test_relative_timestamp_marks_candidate_old() -> None:
    body = SnapshotNode(tag="body")
    row = body.append(SnapshotNode(attributes={"data-id": "false_y"}, text="urgent call me Yesterday"))
    row.append(SnapshotNode(tag="span", attributes={"data-testid": "msg-time"}, text="Yesterday"))

    candidate = extract_candidate(row, NOW)

    assert candidate is not None
    assert candidate.timestamp_ms == KNOWN_OLD


def test_broken_node_never_raises() -> None:
    class BrokenNode:
        tag = "div"
        text = "urgent"
        children: list = []

        @property
        def attributes(self):
            raise RuntimeError("detached")

        @property
        def parent(self):
            return None

    assert extract_candidate(BrokenNode(), NOW) is None
