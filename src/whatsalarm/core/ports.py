"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the page observer and the alarm so
that the watcher can be driven by a real browser or by test fakes.
"""

from __future__ import annotations

from typing import Callable, List, Protocol

from whatsalarm.core.dom import DomNode
from whatsalarm.core.models import DetectionEvent

NodeCallback = Callable[[DomNode], object]


class ObservationHost(Protocol):
    """Source of added DOM nodes for the open WhatsApp Web page."""

    async def observe(self, callback: NodeCallback) -> None:
        ...

    async def drain_queue(self) -> List[DomNode]:
        ...

    async def current_chat_name(self) -> str:
        ...

    async def detach(self) -> None:
        ...


class AlarmPort(Protocol):
    """Alarm operations required by the watcher."""

    def on_detection(self, event: DetectionEvent) -> None:
        ...

    def stop(self) -> None:
        ...
