"""Playwright-backed observation host for WhatsApp Web.

A MutationObserver injected into the page serialises every added element
into a snapshot (see dom_snapshot) and pushes it to Python through an exposed
binding. When the binding is unavailable (e.g. mid-reload) snapshots land in
a bounded in-page queue that the watcher drains on every poll.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from playwright.async_api import Page

from whatsalarm.adapters.dom_snapshot import MAX_CHAIN_LENGTH, SNAPSHOT_ATTRS, decode_snapshot
from whatsalarm.core.chat_filter import UNKNOWN_CHAT
from whatsalarm.core.dom import DomNode
from whatsalarm.core.ports import NodeCallback

LOGGER = logging.getLogger(__name__)

BINDING_NAME = "__whatsalarmOnNode"
QUEUE_LIMIT = 500

CHAT_HEADER_SELECTORS = (
    '[data-testid="conversation-info-header-chat-title"]',
    'header [dir="auto"]',
    "header span[title]",
)

MESSAGE_SELECTORS = (
    "[data-id]",
    '[data-testid*="msg-container"]',
    ".message-in",
    ".message-out",
)

TIMESTAMP_SELECTORS = (
    "[data-pre-plain-text]",
    '[data-testid="msg-meta"]',
    'span[data-testid="msg-time"]',
    'span[class*="time"]',
)

OBSERVER_SCRIPT = """
({binding, queueLimit, maxDepth, attrs, messageSelector, stampSelector}) => {
  if (!document.body) {
    return false;
  }
  if (window.__whatsalarmObserver) {
    window.__whatsalarmObserver.disconnect();
  }

  // Everything already rendered counts as history.
  const seen = new WeakSet();
  document.querySelectorAll(messageSelector).forEach((el) => seen.add(el));

  const describe = (el) => {
    const values = {};
    for (const name of attrs) {
      const value = el.getAttribute(name);
      if (value !== null) {
        values[name] = value;
      }
    }
    return {
      tag: el.tagName.toLowerCase(),
      attrs: values,
      text: (el.textContent || "").trim().slice(0, 4000),
    };
  };

  const snapshot = (el) => {
    const chain = [];
    let current = el;
    while (current && current.nodeType === Node.ELEMENT_NODE && chain.length < maxDepth) {
      const entry = describe(current);
      const stamp = current.matches(stampSelector) ? null : current.querySelector(stampSelector);
      entry.stamp = stamp ? describe(stamp) : null;
      chain.push(entry);
      if (current === document.body) {
        break;
      }
      current = current.parentElement;
    }
    return { chain };
  };

  const deliver = (payload) => {
    try {
      if (typeof window[binding] === "function") {
        window[binding](payload);
        return;
      }
    } catch (err) {
      // fall through to the queue
    }
    const queue = window.__whatsalarmQueue || (window.__whatsalarmQueue = []);
    queue.push(payload);
    if (queue.length > queueLimit) {
      queue.splice(0, queue.length - queueLimit);
    }
  };

  const targetsFor = (el) => {
    if (el.matches(messageSelector)) {
      return [el];
    }
    const nested = Array.from(el.querySelectorAll("[data-id]")).slice(0, 50);
    return nested.length ? nested : [el];
  };

  const observer = new MutationObserver((mutations) => {
    for (const mutation of mutations) {
      for (const node of mutation.addedNodes) {
        if (node.nodeType !== Node.ELEMENT_NODE) {
          continue;
        }
        for (const target of targetsFor(node)) {
          if (seen.has(target)) {
            continue;
          }
          seen.add(target);
          if ((target.textContent || "").trim().length === 0) {
            continue;
          }
          deliver(snapshot(target));
        }
      }
    }
  });
  observer.observe(document.body, { childList: true, subtree: true });
  window.__whatsalarmObserver = observer;
  window.__whatsalarmQueue = window.__whatsalarmQueue || [];
  return true;
}
"""

DRAIN_SCRIPT = """
() => {
  const queue = window.__whatsalarmQueue || [];
  window.__whatsalarmQueue = [];
  return queue;
}
"""

DETACH_SCRIPT = """
() => {
  if (window.__whatsalarmObserver) {
    window.__whatsalarmObserver.disconnect();
    window.__whatsalarmObserver = null;
  }
  window.__whatsalarmQueue = [];
}
"""

CHAT_NAME_SCRIPT = """
(selectors) => {
  for (const selector of selectors) {
    const element = document.querySelector(selector);
    if (element) {
      return (element.textContent || "").trim() || element.getAttribute("title") || "";
    }
  }
  return "";
}
"""


class PlaywrightObservationHost:
    """ObservationHost implementation for a logged-in WhatsApp Web page."""

    def __init__(self, page: Page, binding_name: str = BINDING_NAME, queue_limit: int = QUEUE_LIMIT) -> None:
        self._page = page
        self._binding_name = binding_name
        self._queue_limit = queue_limit
        self._callback: Optional[NodeCallback] = None
        self._bound = False

    async def observe(self, callback: NodeCallback) -> None:
        self._callback = callback
        if not self._bound:
            await self._page.expose_binding(self._binding_name, self._on_snapshot)
            self._bound = True
        attached = await self._page.evaluate(
            OBSERVER_SCRIPT,
            {
                "binding": self._binding_name,
                "queueLimit": self._queue_limit,
                "maxDepth": MAX_CHAIN_LENGTH,
                "attrs": list(SNAPSHOT_ATTRS),
                "messageSelector": ", ".join(MESSAGE_SELECTORS),
                "stampSelector": ", ".join(TIMESTAMP_SELECTORS),
            },
        )
        if not attached:
            raise RuntimeError("WhatsApp Web page has no document body to observe")
        LOGGER.info("Message observer attached")

    async def drain_queue(self) -> List[DomNode]:
        payloads = await self._page.evaluate(DRAIN_SCRIPT)
        nodes: List[DomNode] = []
        for payload in payloads or []:
            node = self._decode(payload)
            if node is not None:
                nodes.append(node)
        if nodes:
            LOGGER.debug("Drained %s queued node(s) from the page", len(nodes))
        return nodes

    async def current_chat_name(self) -> str:
        name = await self._page.evaluate(CHAT_NAME_SCRIPT, list(CHAT_HEADER_SELECTORS))
        return (name or "").strip() or UNKNOWN_CHAT

    async def detach(self) -> None:
        self._callback = None
        if self._page.is_closed():
            return
        await self._page.evaluate(DETACH_SCRIPT)
        LOGGER.info("Message observer detached")

    def _on_snapshot(self, source: Any, payload: Any) -> None:
        callback = self._callback
        if callback is None:
            return
        node = self._decode(payload)
        if node is not None:
            callback(node)

    @staticmethod
    def _decode(payload: Any) -> Optional[DomNode]:
        try:
            return decode_snapshot(payload)
        except ValueError:
            LOGGER.debug("Discarding malformed node snapshot", exc_info=True)
            return None
