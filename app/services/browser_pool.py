import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from patchright.async_api import Browser, BrowserContext, Error as PlaywrightError, Page, async_playwright

from app.config import settings

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
]

VIEWPORT = {"width": 1350, "height": 940}


class BrowserPool:
    """One shared Chrome, handing out at most ``browser_max_concurrent`` contexts."""

    def __init__(self) -> None:
        self._playwright = None
        self._browser: Browser | None = None
        self._semaphore = asyncio.Semaphore(settings.browser_max_concurrent)
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        await self._launch()
        logger.info("Browser pool started (max concurrent pages: %d)", settings.browser_max_concurrent)

    async def _launch(self) -> None:
        self._browser = await self._playwright.chromium.launch(
            headless=True,
            channel="chrome",
            args=BROWSER_ARGS,
        )
        logger.info("Chrome browser launched")

    async def _close_browser(self) -> None:
        if self._browser is None:
            return
        try:
            await self._browser.close()
        except PlaywrightError as e:
            logger.debug("Browser already closed: %s", e)
        self._browser = None

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            if self._browser is None or not self._browser.is_connected():
                logger.warning("Browser not connected, relaunching...")
                await self._close_browser()
                await self._launch()
            return self._browser

    async def _new_context(self) -> BrowserContext:
        for attempt in range(2):
            browser = await self._ensure_browser()
            try:
                return await browser.new_context(viewport=VIEWPORT)
            except PlaywrightError:
                if attempt == 1:
                    raise
                logger.warning("Context creation failed, relaunching browser...")
                async with self._lock:
                    await self._close_browser()

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator[Page]:
        """Yield a fresh page in its own context, closed on exit."""
        async with self._semaphore:
            context = await self._new_context()
            try:
                yield await context.new_page()
            finally:
                try:
                    await context.close()
                except PlaywrightError as e:
                    logger.debug("Context already closed: %s", e)

    async def stop(self) -> None:
        await self._close_browser()
        if self._playwright:
            await self._playwright.stop()
        logger.info("Browser pool stopped")


browser_pool = BrowserPool()
