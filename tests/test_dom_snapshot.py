from __future__ import annotations

import json
from datetime import datetime

import pytest

from whatsalarm.adapters.dom_snapshot import MAX_CHAIN_LENGTH, decode_snapshot
from whatsalarm.core.extractor import extract_candidate

NOW = int(datetime(2024, 5, 12, 10, 33).timestamp() * 1000)


def _payload() -> dict:
    return {
        "chain": [
            {"tag": "SPAN", "attrs": {"dir": "rtl"}, "text": "urgent call me", "stamp": None},
            {
                "tag": "div",
                "attrs": {"class": "copyable-text", "data-pre-plain-text": "[10:32, 12/05/2024] Ahmed: "},
                "text": "urgent call me",
                "stamp": None,
            },
            {
                "tag": "div",
                "attrs": {"data-id": "false_201001234567@c.us_3EB0A1", "class": "message-in"},
                "text": "urgent call me10:32",
                "stamp": {"tag": "span", "attrs": {"data-testid": "msg-time"}, "text": "10:32"},
            },
            {"tag": "body", "attrs": {}, "text": "", "stamp": None},
        ]
    }


def test_decode_links_the_ancestor_chain() -> None:
    node = decode_snapshot(_payload())

    assert node.tag == "span"
    assert node.parent is not None and node.parent.attributes["class"] == "copyable-text"
    row = node.parent.parent
    assert row is not None and row.attributes["data-id"].startswith("false_")
    assert row.children[0] is node.parent
    assert row.children[1].attributes == {"data-testid": "msg-time"}
    assert row.parent is not None and row.parent.tag == "body"
    assert row.parent.parent is None


def test_decode_accepts_json_strings() -> None:
    node = decode_snapshot(json.dumps(_payload()))
    assert node.text == "urgent call me"


def test_decoded_snapshot_feeds_the_extractor() -> None:
    candidate = extract_candidate(decode_snapshot(_payload()), NOW)

    assert candidate is not None
    assert candidate.identity_key == "false_201001234567@c.us_3EB0A1"
    assert candidate.timestamp_ms == int(datetime(2024, 5, 12, 10, 32).timestamp() * 1000)


def test_chain_is_truncated() -> None:
    payload = {"chain": [{"tag": "div", "attrs": {}, "text": str(index)} for index in range(MAX_CHAIN_LENGTH + 5)]}
    node = decode_snapshot(payload)

    depth = 0
    while node.parent is not None:
        node = node.parent
        depth += 1
    assert depth == MAX_CHAIN_LENGTH - 1


def test_null_attribute_values_are_dropped() -> None:
    node = decode_snapshot({"chain": [{"tag": "div", "attrs": {"title": None, "class": "x"}}]})
    assert node.attributes == {"class": "x"}


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"chain": []},
        {"chain": "nope"},
        {"chain": ["not an object"]},
        {"chain": [{"tag": "div", "attrs": ["class"]}]},
    ],
)
def test_malformed_payloads_raise_value_error(payload) -> None:
    with pytest.raises(ValueError):
        decode_snapshot(payload)


def test_invalid_json_raises_value_error() -> None:
    with pytest.raises(ValueError):
        decode_snapshot("{not json")
