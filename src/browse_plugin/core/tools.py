"""Browser tool operations exposed to the agent.

Each method performs one tool call against the session's current page and
returns a JSON-serializable dict. Errors propagate; the MCP layer turns them
into failure payloads.
"""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError

from browse_plugin.core.browser import BrowserSession
from browse_plugin.core.network import NetworkCapture
from browse_plugin.core.refs import RefToken
from browse_plugin.core.resolver import click_ref, fill_ref, locate, select_ref
from browse_plugin.core.snapshot import take_snapshot
from browse_plugin.utils.config import AppConfig
from browse_plugin.utils.exceptions import NavigationError, RefNotFound
from browse_plugin.utils.screenshots import take_screenshot

logger = logging.getLogger(__name__)

GET_TARGETS = ("url", "title", "text", "html", "value", "box")
WAIT_KINDS = ("load", "selector", "timeout")
LOAD_STATES = ("load", "domcontentloaded", "networkidle")
NETWORK_ACTIONS = ("on", "off", "path", "clear")


class BrowserTools:
    """Tool implementations on top of a BrowserSession.

    Attributes:
        session: The cached browser connection.
        config: Application configuration (timeouts, paths, ref policy).
        capture: Network capture for the session's browser context.
    """

    def __init__(self, session: BrowserSession, config: AppConfig) -> None:
        self.session = session
        self.config = config
        self.capture = NetworkCapture(config.network_dir)

    # Navigation

    async def navigate(self, url: str) -> dict[str, Any]:
        """Go to a URL and report the resulting title and URL.

        Raises:
            NavigationError: If the page does not load in time.
        """
        page = await self.session.get_page()
        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout,
            )
        except PlaywrightError as e:
            raise NavigationError(f"Failed to navigate to {url}: {e}") from e
        await page.wait_for_timeout(1000)
        return {"title": await page.title(), "url": page.url}

    async def back(self) -> dict[str, Any]:
        page = await self.session.get_page()
        await page.go_back(wait_until="domcontentloaded")
        return {"url": page.url}

    async def forward(self) -> dict[str, Any]:
        page = await self.session.get_page()
        await page.go_forward(wait_until="domcontentloaded")
        return {"url": page.url}

    async def reload(self) -> dict[str, Any]:
        page = await self.session.get_page()
        await page.reload(wait_until="domcontentloaded")
        return {"url": page.url}

    # Ref-based actions

    async def snapshot(self, compact: bool = True) -> dict[str, Any]:
        """Capture the accessibility tree and issue fresh refs for this tab."""
        page = await self.session.get_page()
        cdp = await page.context.new_cdp_session(page)
        try:
            result = await cdp.send("Accessibility.getFullAXTree")
        finally:
            try:
                await cdp.detach()
            except PlaywrightError as e:
                logger.debug("Ignoring CDP detach error: %s", e)

        snapshot = take_snapshot(result.get("nodes", []), compact=compact)
        self.session.set_refs(page, snapshot.refs)
        return {"snapshot": snapshot.text}

    async def click(self, ref: str) -> dict[str, Any]:
        page = await self.session.get_page()
        await click_ref(
            page,
            self.session.refs_for(page),
            ref,
            policy=self.config.ref_fallback,
            timeout=self.config.action_timeout,
        )
        await page.wait_for_timeout(500)
        return {"clicked": ref}

    async def fill(self, ref: str, value: str, press_enter: bool = True) -> dict[str, Any]:
        page = await self.session.get_page()
        await fill_ref(
            page,
            self.session.refs_for(page),
            ref,
            value,
            press_enter=press_enter,
            policy=self.config.ref_fallback,
            timeout=self.config.action_timeout,
        )
        return {"filled": ref, "value": value}

    async def select(self, ref: str, values: list[str]) -> dict[str, Any]:
        page = await self.session.get_page()
        await select_ref(
            page,
            self.session.refs_for(page),
            ref,
            values,
            policy=self.config.ref_fallback,
            timeout=self.config.action_timeout,
        )
        return {"selected": ref, "values": values}

    async def highlight(self, target: str) -> dict[str, Any]:
        """Highlight an element given either a ref or a CSS selector."""
        page = await self.session.get_page()
        refs = self.session.refs_for(page)
        try:
            RefToken.parse(target)
        except RefNotFound:
            await page.locator(target).highlight()
        else:
            locator = await locate(page, refs, target, self.config.ref_fallback)
            await locator.highlight()
        return {"highlighted": target}

    # Coordinate and keyboard input

    async def click_xy(self, x: float, y: float) -> dict[str, Any]:
        page = await self.session.get_page()
        await page.mouse.click(x, y)
        await page.wait_for_timeout(300)
        return {"clicked": {"x": x, "y": y}}

    async def type_text(self, text: str, delay: float | None = None) -> dict[str, Any]:
        page = await self.session.get_page()
        if delay:
            await page.keyboard.type(text, delay=delay)
        else:
            await page.keyboard.type(text)
        return {"typed": text}

    async def press(self, key: str) -> dict[str, Any]:
        page = await self.session.get_page()
        await page.keyboard.press(key)
        return {"pressed": key}

    async def scroll(
        self, x: float, y: float, delta_x: float = 0, delta_y: float = 500
    ) -> dict[str, Any]:
        page = await self.session.get_page()
        await page.mouse.move(x, y)
        await page.mouse.wheel(delta_x, delta_y)
        await page.wait_for_timeout(300)
        return {"scrolled": {"x": x, "y": y, "deltaX": delta_x, "deltaY": delta_y}}

    async def hover(self, x: float, y: float) -> dict[str, Any]:
        page = await self.session.get_page()
        await page.mouse.move(x, y)
        return {"hovered": {"x": x, "y": y}}

    async def drag(
        self, from_x: float, from_y: float, to_x: float, to_y: float
    ) -> dict[str, Any]:
        page = await self.session.get_page()
        await page.mouse.move(from_x, from_y)
        await page.mouse.down()
        await page.mouse.move(to_x, to_y, steps=10)
        await page.mouse.up()
        return {"dragged": {"fromX": from_x, "fromY": from_y, "toX": to_x, "toY": to_y}}

    # Page inspection

    async def screenshot(
        self, path: str | None = None, full_page: bool = False
    ) -> dict[str, Any]:
        page = await self.session.get_page()
        saved = await take_screenshot(
            page,
            self.config.screenshot_dir,
            max_size=self.config.screenshot_max_size,
            path=path,
            full_page=full_page,
        )
        return {"screenshot": str(saved)}

    async def evaluate(self, script: str) -> dict[str, Any]:
        page = await self.session.get_page()
        result = await page.evaluate(script)
        return {"result": result}

    async def get(self, what: str, selector: str | None = None) -> dict[str, Any]:
        """Read url, title, or text/html/value/box of a CSS selector.

        Raises:
            ValueError: If ``what`` is unknown or a required selector is missing.
        """
        if what not in GET_TARGETS:
            raise ValueError(
                f'Unknown "what": {what}. Use: {", ".join(GET_TARGETS)}'
            )
        page = await self.session.get_page()
        if what == "url":
            return {"url": page.url}
        if what == "title":
            return {"title": await page.title()}
        if not selector:
            raise ValueError(f'CSS selector required for "{what}"')

        locator = page.locator(selector)
        timeout = self.config.action_timeout
        if what == "text":
            return {"text": await locator.inner_text(timeout=timeout)}
        if what == "html":
            return {"html": await locator.inner_html(timeout=timeout)}
        if what == "value":
            return {"value": await locator.input_value(timeout=timeout)}
        return {"box": await locator.bounding_box(timeout=timeout)}

    async def wait(
        self, kind: str, value: str | None = None, timeout: int | None = None
    ) -> dict[str, Any]:
        """Wait for a load state, a CSS selector, or a fixed delay.

        Raises:
            ValueError: If the kind or load state is unknown, or a selector
                wait has no selector.
        """
        page = await self.session.get_page()
        limit = timeout if timeout is not None else self.config.navigation_timeout
        if kind == "load":
            state = value or "load"
            if state not in LOAD_STATES:
                raise ValueError(
                    f"Unknown load state: {state}. Use: {', '.join(LOAD_STATES)}"
                )
            await page.wait_for_load_state(state, timeout=limit)
            return {"waited": "load", "state": state}
        if kind == "selector":
            if not value:
                raise ValueError('CSS selector required for wait type "selector"')
            await page.wait_for_selector(value, timeout=limit)
            return {"waited": "selector", "selector": value}
        if kind == "timeout":
            ms = int(value) if value else (timeout if timeout is not None else 5000)
            await page.wait_for_timeout(ms)
            return {"waited": "timeout", "ms": ms}
        raise ValueError(f"Unknown wait type: {kind}. Use: {', '.join(WAIT_KINDS)}")

    async def network(self, action: str) -> dict[str, Any]:
        """Turn request capture on or off, report its directory, or clear it.

        Raises:
            ValueError: If the action is unknown.
        """
        if action not in NETWORK_ACTIONS:
            raise ValueError(
                f"Unknown network action: {action}. Use: {', '.join(NETWORK_ACTIONS)}"
            )
        if self.session.mode == "browserbase":
            return {"note": "Network capture not available in Browserbase cloud mode"}

        directory = str(self.capture.directory)
        if action == "on":
            page = await self.session.get_page()
            self.capture.start(page.context)
            return {"capturing": True, "path": directory}
        if action == "off":
            self.capture.stop()
            return {"capturing": False, "path": directory}
        if action == "path":
            return {"path": directory, "capturing": self.capture.is_capturing}
        return {"cleared": self.capture.clear(), "path": directory}

    # Tabs

    async def pages(self) -> dict[str, Any]:
        page = await self.session.get_page()
        entries = []
        for index, tab in enumerate(page.context.pages):
            try:
                title = await tab.title()
            except PlaywrightError:
                title = ""
            entries.append({"index": index, "url": tab.url, "title": title})
        return {"pages": entries}

    async def new_tab(self, url: str | None = None) -> dict[str, Any]:
        page = await self.session.get_page()
        tab = await page.context.new_page()
        if url:
            await tab.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout,
            )
        self.session.set_current(tab)
        return {"url": tab.url}

    async def switch_tab(self, index: int) -> dict[str, Any]:
        page = await self.session.get_page()
        tabs = page.context.pages
        _check_tab_index(index, len(tabs))
        self.session.set_current(tabs[index])
        return {"switched": index, "url": tabs[index].url}

    async def close_tab(self, index: int | None = None) -> dict[str, Any]:
        page = await self.session.get_page()
        context = page.context
        tabs = context.pages
        target = index if index is not None else len(tabs) - 1
        _check_tab_index(target, len(tabs))

        closing = tabs[target]
        await closing.close()
        self.session.forget_page(closing)

        remaining = context.pages
        if remaining:
            self.session.set_current(remaining[-1])
        return {"closed": target}

    # Lifecycle

    async def status(self) -> dict[str, Any]:
        page = self.session.current_page
        connected = self.session.is_connected
        result: dict[str, Any] = {"mode": self.session.mode, "connected": connected}
        if connected and page is not None:
            result["url"] = page.url
        return result

    async def close(self) -> dict[str, Any]:
        self.capture.stop()
        await self.session.close()
        return {"message": "Browser closed"}


def _check_tab_index(index: int, count: int) -> None:
    if index < 0 or index >= count:
        raise IndexError(f"Tab index {index} out of range (0-{count - 1})")
