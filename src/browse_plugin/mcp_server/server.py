"""MCP server exposing the browser tools over stdio.

The Playwright connection lives in this process for as long as the server
runs. That keeps Browserbase sessions alive (they end when the last client
disconnects) and lets snapshot refs survive between tool calls.

Every tool answers with pretty-printed JSON. Failures are answered, not
raised, and the result is flagged with ``isError``::

    {"success": false, "error": "...", "kind": "ref_not_found"}
"""

import json
import logging
from collections.abc import Awaitable
from typing import Annotated, Any, Literal

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent
from pydantic import Field

from browse_plugin import __version__
from browse_plugin.core.browser import BrowserSession
from browse_plugin.core.tools import BrowserTools
from browse_plugin.utils.config import AppConfig
from browse_plugin.utils.exceptions import ElementNotFound, RefNotFound

logger = logging.getLogger(__name__)

SERVER_NAME = "browser"

REF_DESCRIPTION = "Element ref from snapshot (e.g., @0-5)"


def to_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, default=str)


def tool_result(payload: dict[str, Any], is_error: bool = False) -> CallToolResult:
    """Wrap a payload as a single JSON text block, flagged if it is a failure."""
    return CallToolResult(
        content=[TextContent(type="text", text=to_json(payload))],
        isError=is_error,
    )


def failure(error: Exception) -> dict[str, Any]:
    """Build the failure payload for an exception raised by a tool."""
    if isinstance(error, RefNotFound):
        kind = "ref_not_found"
    elif isinstance(error, ElementNotFound):
        kind = "element_not_found"
    else:
        kind = "error"
    return {"success": False, "error": str(error), "kind": kind}


async def run_tool(name: str, operation: Awaitable[dict[str, Any]]) -> CallToolResult:
    """Await a tool operation and serialize its result or its failure."""
    try:
        result = await operation
    except Exception as e:
        logger.warning("Tool %s failed: %s", name, e)
        return tool_result(failure(e), is_error=True)
    return tool_result(result)


def create_server(tools: BrowserTools) -> FastMCP:
    """Register every browser tool on a new FastMCP server.

    Args:
        tools: Operations backed by the process's browser session.

    Returns:
        A FastMCP server ready to ``run()``.
    """
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(
        name="browser_navigate",
        description=(
            "Navigate to a URL in the browser. Launches Chrome automatically on "
            "first call. Returns page title and URL."
        ),
    )
    async def browser_navigate(
        url: Annotated[str, Field(description="The URL to navigate to (include https://)")],
    ) -> CallToolResult:
        return await run_tool("browser_navigate", tools.navigate(url))

    @mcp.tool(
        name="browser_click",
        description=(
            "Click an element on the page by ref. Use browser_snapshot first to "
            "get element refs. Refs look like @0-5."
        ),
    )
    async def browser_click(
        ref: Annotated[str, Field(description=REF_DESCRIPTION)],
    ) -> CallToolResult:
        return await run_tool("browser_click", tools.click(ref))

    @mcp.tool(name="browser_click_xy", description="Click at exact page coordinates.")
    async def browser_click_xy(
        x: Annotated[float, Field(description="X coordinate")],
        y: Annotated[float, Field(description="Y coordinate")],
    ) -> CallToolResult:
        return await run_tool("browser_click_xy", tools.click_xy(x, y))

    @mcp.tool(
        name="browser_type",
        description=(
            "Type text into the currently focused element. Use browser_click or "
            "browser_fill to focus an element first."
        ),
    )
    async def browser_type(
        text: Annotated[str, Field(description="Text to type")],
        delay: Annotated[
            float | None, Field(description="Delay between keystrokes in ms")
        ] = None,
    ) -> CallToolResult:
        return await run_tool("browser_type", tools.type_text(text, delay))

    @mcp.tool(
        name="browser_fill",
        description=(
            "Fill an input field by ref. Clears the field first. Presses Enter "
            "after by default."
        ),
    )
    async def browser_fill(
        ref: Annotated[str, Field(description=REF_DESCRIPTION)],
        value: Annotated[str, Field(description="Value to fill")],
        press_enter: Annotated[
            bool,
            Field(description="Whether to press Enter after filling (default: true)"),
        ] = True,
    ) -> CallToolResult:
        return await run_tool("browser_fill", tools.fill(ref, value, press_enter))

    @mcp.tool(
        name="browser_press",
        description=(
            "Press a key or key combination. Examples: Enter, Tab, Escape, "
            "Meta+A, Shift+Tab."
        ),
    )
    async def browser_press(
        key: Annotated[str, Field(description="Key to press (e.g., Enter, Tab, Meta+A)")],
    ) -> CallToolResult:
        return await run_tool("browser_press", tools.press(key))

    @mcp.tool(
        name="browser_select",
        description="Select option(s) in a <select> element by ref.",
    )
    async def browser_select(
        ref: Annotated[str, Field(description=REF_DESCRIPTION)],
        values: Annotated[list[str], Field(description="Value(s) to select")],
    ) -> CallToolResult:
        return await run_tool("browser_select", tools.select(ref, values))

    @mcp.tool(
        name="browser_snapshot",
        description=(
            "Get the accessibility tree snapshot with element refs. Use refs from "
            "the output to target elements in browser_click, browser_fill, and "
            "browser_select. Refs from an earlier snapshot stop working."
        ),
    )
    async def browser_snapshot(
        compact: Annotated[
            bool,
            Field(description="Collapse unnamed wrapper nodes (default: true)"),
        ] = True,
    ) -> CallToolResult:
        return await run_tool("browser_snapshot", tools.snapshot(compact))

    @mcp.tool(
        name="browser_screenshot",
        description="Take a screenshot of the current page. Returns the file path.",
    )
    async def browser_screenshot(
        path: Annotated[
            str | None, Field(description="File path to save screenshot to")
        ] = None,
        full_page: Annotated[
            bool, Field(description="Capture the full scrollable page")
        ] = False,
    ) -> CallToolResult:
        return await run_tool("browser_screenshot", tools.screenshot(path, full_page))

    @mcp.tool(name="browser_scroll", description="Scroll the page at given coordinates.")
    async def browser_scroll(
        x: Annotated[float, Field(description="X coordinate to scroll at")],
        y: Annotated[float, Field(description="Y coordinate to scroll at")],
        delta_x: Annotated[
            float, Field(description="Horizontal scroll amount (default: 0)")
        ] = 0,
        delta_y: Annotated[
            float, Field(description="Vertical scroll amount (default: 500)")
        ] = 500,
    ) -> CallToolResult:
        return await run_tool("browser_scroll", tools.scroll(x, y, delta_x, delta_y))

    @mcp.tool(name="browser_hover", description="Hover at exact page coordinates.")
    async def browser_hover(
        x: Annotated[float, Field(description="X coordinate")],
        y: Annotated[float, Field(description="Y coordinate")],
    ) -> CallToolResult:
        return await run_tool("browser_hover", tools.hover(x, y))

    @mcp.tool(name="browser_drag", description="Drag from one point to another.")
    async def browser_drag(
        from_x: Annotated[float, Field(description="Start X coordinate")],
        from_y: Annotated[float, Field(description="Start Y coordinate")],
        to_x: Annotated[float, Field(description="End X coordinate")],
        to_y: Annotated[float, Field(description="End Y coordinate")],
    ) -> CallToolResult:
        return await run_tool("browser_drag", tools.drag(from_x, from_y, to_x, to_y))

    @mcp.tool(
        name="browser_evaluate",
        description=(
            "Run JavaScript in the browser page context. Returns the result as JSON."
        ),
    )
    async def browser_evaluate(
        script: Annotated[
            str, Field(description="JavaScript code to execute in the page context")
        ],
    ) -> CallToolResult:
        return await run_tool("browser_evaluate", tools.evaluate(script))

    @mcp.tool(
        name="browser_get",
        description=(
            "Get page info: url, title, text, html, value, or box. For "
            "text/html/value/box, provide a CSS selector."
        ),
    )
    async def browser_get(
        what: Annotated[
            Literal["url", "title", "text", "html", "value", "box"],
            Field(description="What to get"),
        ],
        selector: Annotated[
            str | None,
            Field(description="CSS selector (required for text, html, value, box)"),
        ] = None,
    ) -> CallToolResult:
        return await run_tool("browser_get", tools.get(what, selector))

    @mcp.tool(
        name="browser_wait",
        description="Wait for a load state, CSS selector, or fixed timeout.",
    )
    async def browser_wait(
        type: Annotated[
            Literal["load", "selector", "timeout"],
            Field(description="What to wait for: load state, CSS selector, or timeout"),
        ],
        value: Annotated[
            str | None,
            Field(
                description=(
                    "For load: state name (load/domcontentloaded/networkidle). "
                    "For selector: CSS selector. For timeout: milliseconds."
                )
            ),
        ] = None,
        timeout: Annotated[
            int | None, Field(description="Maximum wait time in milliseconds")
        ] = None,
    ) -> CallToolResult:
        return await run_tool("browser_wait", tools.wait(type, value, timeout))

    @mcp.tool(name="browser_back", description="Go back in browser history.")
    async def browser_back() -> CallToolResult:
        return await run_tool("browser_back", tools.back())

    @mcp.tool(name="browser_forward", description="Go forward in browser history.")
    async def browser_forward() -> CallToolResult:
        return await run_tool("browser_forward", tools.forward())

    @mcp.tool(name="browser_reload", description="Reload the current page.")
    async def browser_reload() -> CallToolResult:
        return await run_tool("browser_reload", tools.reload())

    @mcp.tool(name="browser_pages", description="List all open browser tabs.")
    async def browser_pages() -> CallToolResult:
        return await run_tool("browser_pages", tools.pages())

    @mcp.tool(
        name="browser_new_tab",
        description="Open a new browser tab, optionally navigating to a URL.",
    )
    async def browser_new_tab(
        url: Annotated[str | None, Field(description="URL to open in the new tab")] = None,
    ) -> CallToolResult:
        return await run_tool("browser_new_tab", tools.new_tab(url))

    @mcp.tool(name="browser_switch_tab", description="Switch to a browser tab by index.")
    async def browser_switch_tab(
        index: Annotated[int, Field(description="Tab index (from browser_pages)")],
    ) -> CallToolResult:
        return await run_tool("browser_switch_tab", tools.switch_tab(index))

    @mcp.tool(
        name="browser_close_tab",
        description="Close a browser tab by index. Defaults to the last tab.",
    )
    async def browser_close_tab(
        index: Annotated[
            int | None, Field(description="Tab index to close (defaults to last)")
        ] = None,
    ) -> CallToolResult:
        return await run_tool("browser_close_tab", tools.close_tab(index))

    @mcp.tool(
        name="browser_highlight",
        description="Highlight an element on the page for visual debugging.",
    )
    async def browser_highlight(
        ref: Annotated[str, Field(description="Element ref or CSS selector to highlight")],
    ) -> CallToolResult:
        return await run_tool("browser_highlight", tools.highlight(ref))

    @mcp.tool(
        name="browser_network",
        description=(
            "Network capture: on (start), off (stop), path (get capture dir), "
            "clear (delete captures)."
        ),
    )
    async def browser_network(
        action: Annotated[
            Literal["on", "off", "path", "clear"],
            Field(description="Network capture action"),
        ],
    ) -> CallToolResult:
        return await run_tool("browser_network", tools.network(action))

    @mcp.tool(
        name="browser_status",
        description="Report the connection mode and whether a page is open.",
    )
    async def browser_status() -> CallToolResult:
        return await run_tool("browser_status", tools.status())

    @mcp.tool(
        name="browser_close",
        description=(
            "Close the browser and free resources. Call this when done with "
            "browser automation."
        ),
    )
    async def browser_close() -> CallToolResult:
        return await run_tool("browser_close", tools.close())

    return mcp


def run_server(config: AppConfig) -> None:
    """Build the browser session and serve tools over stdio until EOF."""
    session = BrowserSession(config)
    tools = BrowserTools(session, config)
    server = create_server(tools)
    if session.mode == "browserbase":
        logger.info("Browserbase cloud mode, version %s", __version__)
    else:
        logger.info("%s Chrome mode, version %s", session.mode.capitalize(), __version__)
    server.run()
