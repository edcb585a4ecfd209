"""Playwright connection lifecycle for the browse plugin.

One CDP connection is opened lazily and cached for the life of the process.
It comes from one of three places:

- an explicit CDP URL (``BROWSE_CDP_URL``),
- a Browserbase cloud session, when Browserbase credentials are set,
- a local Chrome on the debugging port, launched on demand.

The session also owns the ref table of each open tab, so refs issued by a
snapshot of one tab are never resolved against another.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from browse_plugin.core.refs import RefTable
from browse_plugin.services.browserbase import BrowserbaseSessionProvider
from browse_plugin.utils.chrome import (
    find_local_chrome,
    get_ws_url,
    is_chrome_running,
    kill_recorded_chrome,
    launch_local_chrome,
    prepare_chrome_profile,
)
from browse_plugin.utils.config import AppConfig
from browse_plugin.utils.exceptions import CDPConnectionError, ConfigurationError

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)

READY_POLL_ATTEMPTS = 30
READY_POLL_INTERVAL = 0.1  # seconds
CHROME_EXIT_WAIT = 2.0  # seconds


class BrowserSession:
    """Cached browser connection plus per-tab ref tables.

    Attributes:
        config: Application configuration.
        browserbase: Provider for cloud sessions (used in Browserbase mode).
    """

    def __init__(
        self,
        config: AppConfig,
        browserbase: BrowserbaseSessionProvider | None = None,
    ) -> None:
        self.config = config
        self.browserbase = browserbase or BrowserbaseSessionProvider(config)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._refs: dict[int, RefTable] = {}

    @property
    def mode(self) -> str:
        """Where the connection comes from: ``cdp``, ``browserbase`` or ``local``."""
        if self.config.cdp_url:
            return "cdp"
        if self.config.browserbase_mode:
            return "browserbase"
        return "local"

    @property
    def is_connected(self) -> bool:
        return self._page is not None and not self._page.is_closed()

    @property
    def current_page(self) -> Page | None:
        return self._page

    async def get_page(self) -> Page:
        """Return the active page, reconnecting if it has gone away.

        Raises:
            CDPConnectionError: If the browser cannot be reached.
            ConfigurationError: If local mode has no Chrome to launch.
            BrowserbaseSessionError: If a cloud session cannot be created.
        """
        if self._page is not None and not self._page.is_closed():
            return self._page

        # Whatever we held is stale; drop it before reconnecting.
        self._browser = None
        self._context = None
        self._page = None
        self._refs.clear()

        await self._connect()
        assert self._page is not None
        await self._wait_until_ready(self._page)
        return self._page

    async def _connect(self) -> None:
        if self._playwright is None:
            self._playwright = await async_playwright().start()

        url = await self._resolve_cdp_url()
        try:
            browser = await self._playwright.chromium.connect_over_cdp(url)
        except Exception as e:
            raise CDPConnectionError(url) from e

        self._browser = browser
        contexts = browser.contexts
        self._context = contexts[0] if contexts else await browser.new_context()
        pages = self._context.pages
        self._page = pages[0] if pages else await self._context.new_page()

    async def _resolve_cdp_url(self) -> str:
        if self.config.cdp_url:
            return self.config.cdp_url
        if self.config.browserbase_mode:
            session = await asyncio.to_thread(self.browserbase.get_or_create)
            logger.info("Connecting to Browserbase session %s", session.id)
            return session.connect_url
        return await asyncio.to_thread(self._ensure_local_chrome)

    def _ensure_local_chrome(self) -> str:
        """Reuse Chrome on the debugging port or launch one; return its WS URL."""
        port = self.config.cdp_port
        if is_chrome_running(port):
            logger.info("Reusing existing Chrome instance on port %d", port)
            return get_ws_url(port)

        chrome_path = find_local_chrome()
        if not chrome_path:
            raise ConfigurationError(
                "Chrome not found. Install Google Chrome or set "
                "BROWSERBASE_API_KEY + BROWSERBASE_PROJECT_ID for cloud mode."
            )
        profile_dir = prepare_chrome_profile(self.config.plugin_root)
        launch_local_chrome(
            chrome_path,
            profile_dir,
            self.config.pid_file,
            port=port,
            timeout=self.config.launch_timeout,
        )
        return get_ws_url(port)

    async def _wait_until_ready(self, page: Page) -> None:
        for _ in range(READY_POLL_ATTEMPTS):
            try:
                await page.evaluate("document.readyState")
                return
            except PlaywrightError:
                await asyncio.sleep(READY_POLL_INTERVAL)

    def refs_for(self, page: Page) -> RefTable:
        """Ref table from the latest snapshot of a tab (empty if none)."""
        return self._refs.get(id(page), RefTable())

    def set_refs(self, page: Page, refs: RefTable) -> None:
        """Replace a tab's ref table with the one from a new snapshot."""
        self._refs[id(page)] = refs

    def forget_page(self, page: Page) -> None:
        self._refs.pop(id(page), None)

    def set_current(self, page: Page) -> None:
        """Make a tab the target of subsequent tool calls."""
        self._page = page

    async def close(self) -> None:
        """Close the connection and release the browser.

        Cleanup is best-effort: failures while closing are logged and do not
        stop the rest of the teardown.
        """
        for closable in (self._context, self._browser):
            if closable is None:
                continue
            try:
                await closable.close()
            except PlaywrightError as e:
                logger.debug("Ignoring error while closing browser: %s", e)

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.debug("Ignoring error while stopping Playwright: %s", e)

        if self.mode == "local":
            await asyncio.to_thread(self._stop_local_chrome)

        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        self._refs.clear()
        self.browserbase.clear()

    def _stop_local_chrome(self) -> None:
        pid_file = self.config.pid_file
        if not pid_file.exists():
            return
        still_running = is_chrome_running(self.config.cdp_port)
        if still_running:
            # Chrome may still be shutting down after its contexts closed.
            time.sleep(CHROME_EXIT_WAIT)
            still_running = is_chrome_running(self.config.cdp_port)
        kill_recorded_chrome(pid_file, force=still_running)
