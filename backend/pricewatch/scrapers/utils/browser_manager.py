"""Playwright browser lifecycle manager with anti-detection.

One shared browser process; every fetch attempt gets a fresh context carrying
its own identity (user agent and proxy), so nothing leaks between attempts.
"""

import asyncio
import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import urlparse

import structlog
from playwright.async_api import async_playwright, Browser, Page, Playwright, Route

from pricewatch.config import settings
from pricewatch.scrapers.base import Identity

logger = structlog.get_logger(__name__)


BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})


async def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


class BrowserManager:
    """Manages the Playwright browser and per-attempt contexts.

    Contexts get:
    - the attempt's user agent and optional authenticated proxy
    - stealth JS masking automation signals
    - image/stylesheet/font/media blocking
    - a random session cookie so the first request looks like a returning visitor
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        block_resources: bool = True,
        locale: Optional[str] = None,
        timezone_id: Optional[str] = None,
    ):
        self._headless = settings.BROWSER_HEADLESS if headless is None else headless
        self._block_resources = block_resources
        self._locale = locale or settings.BROWSER_LOCALE
        self._timezone_id = timezone_id or settings.BROWSER_TIMEZONE
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    async def start(self) -> None:
        """Launch the browser. Safe to call repeatedly."""
        async with self._lock:
            if self._browser:
                return
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._headless,
                args=[
                    "--disable-blink-features=AutomationControlled",
                    "--disable-dev-shm-usage",
                    "--no-sandbox",
                ],
            )
            logger.info("browser_started", headless=self._headless)

    async def stop(self) -> None:
        """Close the browser and Playwright driver."""
        async with self._lock:
            if self._browser:
                await self._browser.close()
                self._browser = None
            if self._playwright:
                await self._playwright.stop()
                self._playwright = None
            logger.info("browser_stopped")

    @asynccontextmanager
    async def session(self, identity: Identity, url: str) -> AsyncIterator[Page]:
        """Open an isolated context for one attempt and yield a page in it.

        The context is closed on exit whatever happens inside.
        """
        if not self._browser:
            await self.start()

        proxy_config = identity.proxy.to_playwright() if identity.proxy else None
        context = await self._browser.new_context(
            user_agent=identity.user_agent,
            viewport={"width": 1920, "height": 1080},
            locale=self._locale,
            timezone_id=self._timezone_id,
            proxy=proxy_config,
            java_script_enabled=True,
            bypass_csp=True,
            extra_http_headers={"Accept-Language": f"{self._locale},{self._locale.split('-')[0]};q=0.9,en;q=0.8"},
        )
        try:
            await context.add_init_script(STEALTH_JS)
            if self._block_resources:
                await context.route("**/*", _block_heavy_resources)

            hostname = urlparse(url).hostname
            if hostname:
                await context.add_cookies([{
                    "name": "session-id",
                    "value": secrets.token_hex(16),
                    "domain": hostname,
                    "path": "/",
                }])

            page = await context.new_page()
            logger.debug("browser_context_created", has_proxy=bool(proxy_config))
            yield page
        finally:
            try:
                await context.close()
            except Exception as e:
                logger.debug("browser_context_close_failed", error=str(e))


# Minimal stealth JS to mask automation signals
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['it-IT', 'it', 'en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = { runtime: {} };
const originalQuery = window.navigator.permissions.query;
window.navigator.permissions.query = (parameters) =>
  parameters.name === 'notifications'
    ? Promise.resolve({ state: Notification.permission })
    : originalQuery(parameters);
"""


# Singleton instance
_browser_manager: Optional[BrowserManager] = None


def get_browser_manager() -> BrowserManager:
    """Get the global BrowserManager singleton."""
    global _browser_manager
    if _browser_manager is None:
        _browser_manager = BrowserManager()
    return _browser_manager
