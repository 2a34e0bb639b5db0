from __future__ import annotations

import asyncio

import pytest

from whatsalarm.adapters.playwright_host import (
    BINDING_NAME,
    CHAT_NAME_SCRIPT,
    DETACH_SCRIPT,
    DRAIN_SCRIPT,
    OBSERVER_SCRIPT,
    PlaywrightObservationHost,
)
from whatsalarm.core.chat_filter import UNKNOWN_CHAT


def _payload(text: str) -> dict:
    return {"chain": [{"tag": "div", "attrs": {"data-id": "false_1@c.us_A"}, "text": text, "stamp": None}]}


class FakePage:
    def __init__(self) -> None:
        self.bindings: dict = {}
        self.evaluated: list[tuple[str, object]] = []
        self.queue: list = []
        self.chat_name = "Family"
        self.has_body = True
        self.closed = False

    async def expose_binding(self, name, callback) -> None:
        self.bindings[name] = callback

    async def evaluate(self, script, arg=None):
        self.evaluated.append((script, arg))
        if script == OBSERVER_SCRIPT:
            return self.has_body
        if script == DRAIN_SCRIPT:
            queued, self.queue = self.queue, []
            return queued
        if script == CHAT_NAME_SCRIPT:
            return self.chat_name
        return None

    def is_closed(self) -> bool:
        return self.closed


def test_observe_exposes_binding_once_and_delivers_nodes() -> None:
    page = FakePage()
    host = PlaywrightObservationHost(page)
    received = []

    async def scenario() -> None:
        await host.observe(received.append)
        await host.observe(received.append)

    asyncio.run(scenario())

    assert list(page.bindings) == [BINDING_NAME]
    observer_calls = [arg for script, arg in page.evaluated if script == OBSERVER_SCRIPT]
    assert len(observer_calls) == 2
    assert observer_calls[0]["binding"] == BINDING_NAME
    assert "[data-id]" in observer_calls[0]["messageSelector"]

    binding = page.bindings[BINDING_NAME]
    binding({"page": page}, _payload("urgent call me"))
    binding({"page": page}, {"chain": "broken"})

    assert [node.text for node in received] == ["urgent call me"]


def test_observe_without_body_raises() -> None:
    page = FakePage()
    page.has_body = False
    host = PlaywrightObservationHost(page)

    with pytest.raises(RuntimeError):
        asyncio.run(host.observe(lambda _node: None))


def test_drain_queue_decodes_and_skips_malformed() -> None:
    page = FakePage()
    page.queue = [_payload("first message"), {"nope": 1}, _payload("second message")]
    host = PlaywrightObservationHost(page)

    nodes = asyncio.run(host.drain_queue())

    assert [node.text for node in nodes] == ["first message", "second message"]
    assert page.queue == []


def test_current_chat_name_falls_back_to_unknown() -> None:
    page = FakePage()
    host = PlaywrightObservationHost(page)

    assert asyncio.run(host.current_chat_name()) == "Family"
    page.chat_name = "   "
    assert asyncio.run(host.current_chat_name()) == UNKNOWN_CHAT
    page.chat_name = None
    assert asyncio.run(host.current_chat_name()) == UNKNOWN_CHAT


def test_detach_stops_delivery_and_skips_closed_pages() -> None:
    page = FakePage()
    host = PlaywrightObservationHost(page)
    received = []

    async def scenario() -> None:
        await host.observe(received.append)
        await host.detach()

    asyncio.run(scenario())
    page.bindings[BINDING_NAME](None, _payload("late message"))

    assert received == []
    assert any(script == DETACH_SCRIPT for script, _arg in page.evaluated)

    page.evaluated.clear()
    page.closed = True
    asyncio.run(host.detach())
    assert page.evaluated == []
