from __future__ import annotations

import asyncio

import pytest

from whatsalarm import login


class FakeElement:
    def __init__(self, attributes: dict) -> None:
        self.attributes = attributes

    async def get_attribute(self, name: str):
        return self.attributes.get(name)


class FakePage:
    def __init__(self, present: dict | None = None) -> None:
        self.present = present or {}
        self.queries: list[str] = []

    async def query_selector(self, selector: str):
        self.queries.append(selector)
        return self.present.get(selector)


def test_is_logged_in_checks_known_selectors() -> None:
    assert asyncio.run(login.is_logged_in(FakePage())) is False
    page = FakePage({'[data-testid="chat-list"]': FakeElement({})})
    assert asyncio.run(login.is_logged_in(page)) is True


def test_read_qr_payload() -> None:
    page = FakePage({login.QR_SELECTOR: FakeElement({"data-ref": "2@abc,def"})})
    assert asyncio.run(login.read_qr_payload(page)) == "2@abc,def"
    assert asyncio.run(login.read_qr_payload(FakePage())) is None


def test_wait_for_login_returns_once_logged_in() -> None:
    page = FakePage({'div[role="application"]': FakeElement({})})
    asyncio.run(login.wait_for_login(page, timeout_ms=1000))


def test_wait_for_login_times_out_and_prints_qr_once(monkeypatch) -> None:
    printed: list[str] = []
    monkeypatch.setattr(login, "_print_qr", printed.append)
    page = FakePage({login.QR_SELECTOR: FakeElement({"data-ref": "2@abc,def"})})

    with pytest.raises(TimeoutError):
        asyncio.run(login.wait_for_login(page, timeout_ms=50, poll_interval_s=0.01))

    assert printed == ["2@abc,def"]


def test_wait_for_login_headless_skips_qr(monkeypatch) -> None:
    printed: list[str] = []
    monkeypatch.setattr(login, "_print_qr", printed.append)
    page = FakePage({login.QR_SELECTOR: FakeElement({"data-ref": "2@abc,def"})})

    with pytest.raises(TimeoutError):
        asyncio.run(login.wait_for_login(page, timeout_ms=0, show_qr=False))

    assert printed == []
