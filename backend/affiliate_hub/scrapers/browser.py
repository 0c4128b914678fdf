"""Headless browser capability for the program directory.

Patchright (anti-detection Playwright fork) drives Chromium. A browser is
owned by exactly one scrape job and is always closed on the way out of
``get_browser()``, whether the listing loaded or not.
"""

import asyncio
import logging
import random
from contextlib import asynccontextmanager

from affiliate_hub.config import get_settings
from affiliate_hub.exceptions import ExtractionError

logger = logging.getLogger(__name__)
settings = get_settings()

STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
Object.defineProperty(navigator, 'platform', { get: () => 'Win32' });
window.chrome = { runtime: {}, loadTimes: () => ({}), csi: () => ({}) };
"""

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--no-first-run",
    "--window-size=1920,1080",
]

OUTER_HTML_JS = "nodes => nodes.map(node => node.outerHTML)"


class StealthBrowser:
    """One Chromium instance plus the page helpers the directory scraper needs."""

    def __init__(self, headless: bool = True, timeout_ms: int = 30000):
        self.headless = headless
        self.timeout_ms = timeout_ms
        self.browser = None
        self.playwright = None

    async def launch(self) -> None:
        """Start Chromium. Any launch fault surfaces as ExtractionError."""
        try:
            from patchright.async_api import async_playwright
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
        except Exception as e:
            logger.error(f"Failed to launch browser: {e}")
            raise ExtractionError(f"Failed to launch browser: {e}") from e
        logger.info("Launched Patchright Chromium")

    async def new_page(self):
        if not self.browser:
            raise RuntimeError("Browser not launched")

        context = await self.browser.new_context(
            viewport={"width": 1920, "height": 1080},
            locale="en-US",
            user_agent=settings.user_agent,
            accept_downloads=False,
        )
        page = await context.new_page()
        page.set_default_timeout(self.timeout_ms)
        return page

    async def outer_html(self, url: str, selector: str) -> list[str]:
        """Load ``url``, wait for ``selector`` and return the HTML of every match.

        Raises ExtractionError when nothing matching appears in time.
        """
        from patchright.async_api import TimeoutError as BrowserTimeoutError

        page = await self.new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            # Init scripts break navigation under patchright, so stealth goes in after load
            await page.evaluate(STEALTH_INIT_SCRIPT)
            await page.wait_for_selector(selector, timeout=self.timeout_ms)
        except BrowserTimeoutError as e:
            raise ExtractionError(
                f"'{selector}' did not appear within {self.timeout_ms // 1000}s on {url}"
            ) from e

        await human_delay(500, 1000)
        return await page.eval_on_selector_all(selector, OUTER_HTML_JS)

    async def close(self):
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()


@asynccontextmanager
async def get_browser(headless: bool = True, timeout_ms: int = 30000):
    """Launched browser for the duration of the block."""
    browser = StealthBrowser(headless=headless, timeout_ms=timeout_ms)
    try:
        await browser.launch()
        yield browser
    finally:
        await browser.close()


async def human_delay(min_ms: int = 100, max_ms: int = 500) -> None:
    await asyncio.sleep(random.uniform(min_ms, max_ms) / 1000)
