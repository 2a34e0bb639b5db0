"""Detection orchestrator.

This module is integration-agnostic. It only relies on the ObservationHost and
AlarmPort ports, so the same watcher runs against Playwright or test fakes.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from whatsalarm.core.channel import DEFAULT_MAX_ITEMS, ObservationChannel
from whatsalarm.core.chat_filter import UNKNOWN_CHAT, ChatFilter
from whatsalarm.core.config import DetectionConfig
from whatsalarm.core.dedup import DuplicateCache, now_ms
from whatsalarm.core.dom import DomNode
from whatsalarm.core.extractor import ExtractOptions, extract_candidate
from whatsalarm.core.matcher import KeywordMatcher, MatchOptions
from whatsalarm.core.models import DetectionEvent, MessageCandidate, WatcherState
from whatsalarm.core.ports import AlarmPort, ObservationHost
from whatsalarm.core.recency import is_recent

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], int]
Sleep = Callable[[float], Awaitable[None]]


class Watcher:
    """Runs added DOM nodes through extraction, recency, dedup, matching and
    chat scoping, and hands each surviving message to the alarm exactly once."""

    def __init__(
        self,
        config: DetectionConfig,
        host: ObservationHost,
        alarm: AlarmPort,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
        channel_size: int = DEFAULT_MAX_ITEMS,
    ) -> None:
        self._config = config
        self._host = host
        self._alarm = alarm
        self._clock = clock or now_ms
        self._sleep = sleep or asyncio.sleep
        self._matcher = KeywordMatcher(
            config.keywords,
            MatchOptions(case_sensitive=config.case_sensitive, whole_word=config.whole_word_match),
        )
        self._chat_filter = ChatFilter(config.chat_filter)
        self._dedup = DuplicateCache(config.dedup, clock=self._clock)
        self._extract_options = ExtractOptions(
            min_message_length=config.min_message_length,
            day_first=config.day_first,
        )
        self._channel: ObservationChannel[DomNode] = ObservationChannel(channel_size)
        self._state = WatcherState.UNINITIALIZED
        self._active = False
        self._detached = False
        self.startup_time_ms = 0
        self.detections = 0

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def duplicate_cache(self) -> DuplicateCache:
        return self._dedup

    async def initialize(self) -> bool:
        """Attach to the host, wait out the grace period, then go ACTIVE."""

        self._state = WatcherState.PREPARING
        self.startup_time_ms = self._clock()
        LOGGER.info("Watcher starting at %s", _iso_local(self.startup_time_ms))
        try:
            await self._host.observe(self._channel.send)
        except Exception:
            LOGGER.exception("Failed to attach message observer")
            self._state = WatcherState.STOPPED
            return False

        # Nodes rendered while the chat list settles are not new messages.
        await self._sleep(self._config.grace_period_ms / 1000)
        if self._channel.closed or self._state is not WatcherState.PREPARING:
            self._state = WatcherState.STOPPED
            return False
        skipped = self._channel.discard()
        try:
            skipped += len(await self._host.drain_queue())
        except Exception:
            LOGGER.debug("Draining the page queue failed", exc_info=True)
        if skipped:
            LOGGER.debug("Skipped %s node(s) rendered during startup", skipped)
        self._state = WatcherState.ACTIVE
        self._active = True
        LOGGER.info(
            "Watching %s keyword(s), chat filter %s",
            len(self._matcher.keywords),
            self._chat_filter.mode if self._chat_filter.enabled else "off",
        )
        return True

    async def run(self) -> None:
        """Consume observations until stop() or cleanup()."""

        poll_timeout = self._config.poll_interval_ms / 1000
        while self._active:
            batch = await self._channel.receive(poll_timeout)
            if not self._active or self._channel.closed:
                break
            try:
                batch.extend(await self._host.drain_queue())
            except Exception:
                LOGGER.debug("Draining the page queue failed", exc_info=True)
            for node in batch:
                if not self._active:
                    break
                await self.process(node)

    async def process(self, node: DomNode) -> Optional[DetectionEvent]:
        """Run one added node through the pipeline; never raises."""

        try:
            candidate = extract_candidate(node, self._clock(), self._extract_options)
            if candidate is None:
                return None
            if not is_recent(candidate.timestamp_ms, self.startup_time_ms, self._clock()):
                LOGGER.debug("Dropping stale or undated message: %.40r", candidate.text)
                return None
            if self._config.dedup.enabled and self._dedup.is_duplicate(candidate):
                LOGGER.debug("Duplicate message ignored: %.40r", candidate.text)
                return None
            keyword = self._matcher.find(candidate.text)
            if keyword is None:
                return None
            chat_name = await self._resolve_chat_name()
            return self._gate_and_emit(candidate, keyword, chat_name)
        except Exception:
            LOGGER.exception("Unexpected error while processing an observed node")
            return None

    def process_candidate(self, candidate: MessageCandidate, chat_name: str) -> Optional[DetectionEvent]:
        """Same pipeline as process() for an already-extracted candidate; never raises."""

        try:
            if not is_recent(candidate.timestamp_ms, self.startup_time_ms, self._clock()):
                return None
            if self._config.dedup.enabled and self._dedup.is_duplicate(candidate):
                return None
            keyword = self._matcher.find(candidate.text)
            if keyword is None:
                return None
            return self._gate_and_emit(candidate, keyword, chat_name)
        except Exception:
            LOGGER.exception("Unexpected error while processing a message candidate")
            return None

    def stop(self) -> None:
        if self._active:
            LOGGER.info("Watcher stop requested")
        self._active = False
        self._channel.close()

    async def cleanup(self) -> None:
        """Release the observer and forget everything seen. Safe to call twice."""

        self._active = False
        self._channel.close()
        self._dedup.clear()
        self._state = WatcherState.STOPPED
        if self._detached:
            return
        self._detached = True
        try:
            await self._host.detach()
        except Exception:
            LOGGER.warning("Detaching the page observer failed", exc_info=True)
        LOGGER.info("Watcher stopped after %s detection(s)", self.detections)

    async def _resolve_chat_name(self) -> str:
        try:
            name = await self._host.current_chat_name()
        except Exception:
            LOGGER.debug("Could not read the current chat name", exc_info=True)
            return UNKNOWN_CHAT
        return name or UNKNOWN_CHAT

    def _gate_and_emit(
        self,
        candidate: MessageCandidate,
        keyword: str,
        chat_name: str,
    ) -> Optional[DetectionEvent]:
        if self._chat_filter.should_filter(chat_name):
            LOGGER.info("Keyword %r matched in filtered chat %r, not alerting", keyword, chat_name)
            return None
        # A late candidate after stop/cleanup must not ring.
        if not self._active:
            return None

        now = self._clock()
        self.startup_time_ms = now
        event = DetectionEvent(
            keyword=keyword,
            text=candidate.text,
            chat_name=chat_name,
            timestamp_iso=_iso_local(now),
            identity_key=candidate.identity_key,
            message_timestamp_ms=candidate.timestamp_ms,
        )
        self.detections += 1
        try:
            self._alarm.on_detection(event)
        except Exception:
            LOGGER.exception("Alarm failed to handle detection")
        return event


def _iso_local(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000).astimezone().isoformat(timespec="milliseconds")
