from __future__ import annotations

import pytest

from whatsalarm.core.chat_filter import UNKNOWN_CHAT, ChatFilter
from whatsalarm.core.config import ChatFilterConfig


def test_disabled_filter_allows_everything() -> None:
    chat_filter = ChatFilter(ChatFilterConfig(enabled=False, whitelisted_chats=("Mom",)))

    assert chat_filter.is_allowed("Mom") is True
    assert chat_filter.is_allowed("Dad") is True
    assert chat_filter.is_allowed(None) is True


def test_whitelist_uses_exact_names() -> None:
    chat_filter = ChatFilter(ChatFilterConfig(enabled=True, mode="whitelist", whitelisted_chats=("Mom",)))

    assert chat_filter.is_allowed("Mom") is True
    assert chat_filter.is_allowed("  Mom ") is True
    assert chat_filter.is_allowed("Dad") is False
    assert chat_filter.is_allowed("mom") is False
    assert chat_filter.is_allowed("Mom & Dad") is False
    assert chat_filter.should_filter("Dad") is True


def test_whitelist_ignores_blank_entries() -> None:
    chat_filter = ChatFilter(ChatFilterConfig(enabled=True, whitelisted_chats=("", "  ")))

    assert chat_filter.is_allowed("") is False


def test_active_mode_requires_a_resolved_chat_name() -> None:
    chat_filter = ChatFilter(ChatFilterConfig(enabled=True, mode="active"))

    assert chat_filter.is_allowed("Anyone") is True
    assert chat_filter.is_allowed(UNKNOWN_CHAT) is False
    assert chat_filter.is_allowed("") is False
    assert chat_filter.is_allowed(None) is False


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        ChatFilter(ChatFilterConfig(enabled=True, mode="substring"))
