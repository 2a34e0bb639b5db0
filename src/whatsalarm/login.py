"""WhatsApp Web login handling."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import qrcode

LOGGER = logging.getLogger(__name__)

LOGIN_SELECTORS = (
    'div[role="application"]',
    '[data-testid="chat-list"]',
    'div[aria-label="Chat list"]',
)

# The login QR canvas sits inside an element carrying the pairing payload.
QR_SELECTOR = "div[data-ref]"


def _print_qr(payload: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(payload)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


async def is_logged_in(page: Any) -> bool:
    for selector in LOGIN_SELECTORS:
        if await page.query_selector(selector) is not None:
            return True
    return False


async def read_qr_payload(page: Any) -> Optional[str]:
    element = await page.query_selector(QR_SELECTOR)
    if element is None:
        return None
    return await element.get_attribute("data-ref")


async def wait_for_login(
    page: Any,
    timeout_ms: int,
    show_qr: bool = True,
    poll_interval_s: float = 1.0,
) -> None:
    """Block until the chat list is visible.

    While waiting, every new pairing QR is printed to the terminal when
    show_qr is set (WhatsApp rotates it every ~20 seconds). Raises
    TimeoutError if the user has not logged in within timeout_ms.
    """

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    last_payload: Optional[str] = None
    announced = False

    while True:
        if await is_logged_in(page):
            LOGGER.info("WhatsApp Web session is logged in")
            return
        if not announced:
            LOGGER.info("Waiting for WhatsApp Web login (scan the QR code with your phone)")
            announced = True
        if show_qr:
            payload = await read_qr_payload(page)
            if payload and payload != last_payload:
                print("")
                print("Scan with WhatsApp > Linked devices > Link a device:")
                _print_qr(payload)
                last_payload = payload
        if loop.time() >= deadline:
            raise TimeoutError(f"WhatsApp Web login not completed within {timeout_ms} ms")
        await asyncio.sleep(poll_interval_s)
