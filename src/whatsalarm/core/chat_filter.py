"""Chat scoping for detections (core domain)."""

from __future__ import annotations

import logging
from typing import Optional

from whatsalarm.core.config import CHAT_FILTER_MODES, ChatFilterConfig

LOGGER = logging.getLogger(__name__)

UNKNOWN_CHAT = "Unknown"


class ChatFilter:
    """Decides whether a detection in a given chat may fire.

    whitelist: the chat name must equal a configured name (surrounding
    whitespace ignored, otherwise exact).
    active: any chat whose name could be resolved.
    """

    def __init__(self, config: ChatFilterConfig) -> None:
        if config.mode not in CHAT_FILTER_MODES:
            raise ValueError(
                f"Unknown chat filter mode {config.mode!r}, expected one of {', '.join(CHAT_FILTER_MODES)}"
            )
        self._config = config
        self._whitelist = frozenset(name.strip() for name in config.whitelisted_chats if name.strip())

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def mode(self) -> str:
        return self._config.mode

    def is_allowed(self, chat_name: Optional[str]) -> bool:
        if not self._config.enabled:
            return True
        name = (chat_name or "").strip()
        if self._config.mode == "active":
            return bool(name) and name != UNKNOWN_CHAT
        return name in self._whitelist

    def should_filter(self, chat_name: Optional[str]) -> bool:
        allowed = self.is_allowed(chat_name)
        if not allowed:
            LOGGER.debug("Chat %r filtered out (mode=%s)", chat_name, self._config.mode)
        return not allowed
