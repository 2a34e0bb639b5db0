"""Bounded host -> watcher channel (core domain)."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Deque, Generic, List, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ITEMS = 500


class ObservationChannel(Generic[T]):
    """Single-loop buffer between the page observer and the watcher.

    send() never blocks: when the buffer is full the oldest item is dropped.
    close() wakes a pending receive(), which then returns an empty batch.
    """

    def __init__(self, max_items: int = DEFAULT_MAX_ITEMS) -> None:
        if max_items <= 0:
            raise ValueError("max_items must be positive")
        self._max_items = max_items
        self._items: Deque[T] = deque()
        self._ready = asyncio.Event()
        self._closed = False
        self.dropped = 0

    def __len__(self) -> int:
        return len(self._items)

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, item: T) -> bool:
        if self._closed:
            return False
        if len(self._items) >= self._max_items:
            self._items.popleft()
            self.dropped += 1
            if self.dropped == 1 or self.dropped % 100 == 0:
                LOGGER.warning(
                    "Observation channel full (%s items), dropped %s so far",
                    self._max_items,
                    self.dropped,
                )
        self._items.append(item)
        self._ready.set()
        return True

    async def receive(self, timeout_s: float) -> List[T]:
        """Return every buffered item, waiting up to timeout_s for the first."""

        if self._closed:
            return []
        if not self._items:
            self._ready.clear()
            try:
                await asyncio.wait_for(self._ready.wait(), timeout=timeout_s)
            except asyncio.TimeoutError:
                return []
        if self._closed:
            return []
        batch = list(self._items)
        self._items.clear()
        self._ready.clear()
        return batch

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._items.clear()
        self._ready.set()

    def discard(self) -> int:
        """Drop everything buffered so far and return how many items that was."""

        count = len(self._items)
        self._items.clear()
        self._ready.clear()
        return count
