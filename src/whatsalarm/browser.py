"""Persistent Chromium session for WhatsApp Web.

The profile directory keeps the WhatsApp login between runs, so the QR code
only has to be scanned once per profile.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import BrowserContext, Page, Playwright, async_playwright

LOGGER = logging.getLogger(__name__)

BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
    "--start-maximized",
)

# WhatsApp Web refuses some browsers it does not recognise.
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class BrowserConfig:
    user_data_dir: str
    headless: bool = False
    timeout_ms: int = 120000
    whatsapp_url: str = "https://web.whatsapp.com"


class BrowserSession:
    """Owns the Playwright driver, the persistent context and its page."""

    def __init__(self, config: BrowserConfig) -> None:
        self._config = config
        self._playwright: Optional[Playwright] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser session is not launched")
        return self._page

    async def launch(self) -> Page:
        if self._page is not None:
            return self._page
        os.makedirs(self._config.user_data_dir, exist_ok=True)
        self._playwright = await async_playwright().start()
        self._context = await self._playwright.chromium.launch_persistent_context(
            user_data_dir=self._config.user_data_dir,
            headless=self._config.headless,
            user_agent=USER_AGENT,
            args=list(BROWSER_ARGS),
            no_viewport=not self._config.headless,
        )
        self._context.set_default_timeout(self._config.timeout_ms)
        self._page = self._context.pages[0] if self._context.pages else await self._context.new_page()
        LOGGER.info(
            "Browser launched (%s, profile %s)",
            "headless" if self._config.headless else "headful",
            self._config.user_data_dir,
        )
        return self._page

    async def navigate(self) -> None:
        LOGGER.info("Opening %s", self._config.whatsapp_url)
        await self.page.goto(
            self._config.whatsapp_url,
            wait_until="domcontentloaded",
            timeout=self._config.timeout_ms,
        )

    async def close(self) -> None:
        if self._context is not None:
            try:
                await self._context.close()
            except Exception:
                LOGGER.debug("Browser context already closed", exc_info=True)
            self._context = None
            self._page = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
            LOGGER.info("Browser closed")
