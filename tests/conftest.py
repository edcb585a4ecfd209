"""Shared pytest fixtures for browse-plugin tests.

Fixtures include a config rooted in a temporary directory, a factory for raw
CDP accessibility nodes, and mocks for Playwright pages and locators.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from browse_plugin.utils.config import AppConfig

AXNodeFactory = Callable[..., dict[str, Any]]


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Config whose plugin root is a fresh temporary directory.

    Returns:
        AppConfig: Local mode, default timeouts.
    """
    return AppConfig(plugin_root=tmp_path)


@pytest.fixture
def ax_node() -> AXNodeFactory:
    """Factory for raw nodes shaped like ``Accessibility.getFullAXTree`` output.

    Usage::

        ax_node("2", "button", "Save", properties={"focused": True})

    Returns:
        A callable building one raw node dict.
    """

    def make(
        node_id: str,
        role: str | None,
        name: str | None = None,
        children: tuple[str, ...] = (),
        ignored: bool = False,
        value: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        node: dict[str, Any] = {
            "nodeId": node_id,
            "ignored": ignored,
            "childIds": list(children),
        }
        if role is not None:
            node["role"] = {"type": "role", "value": role}
        if name is not None:
            node["name"] = {"type": "computedString", "value": name}
        if value is not None:
            node["value"] = {"type": "string", "value": value}
        if properties:
            node["properties"] = [
                {"name": key, "value": {"type": "booleanOrUndefined", "value": val}}
                for key, val in properties.items()
            ]
        return node

    return make


@pytest.fixture
def make_locator() -> Callable[[int], MagicMock]:
    """Factory for a mock Locator reporting a given match count.

    ``nth(i)`` returns a distinct child mock per index and ``first`` is its
    own mock, so tests can check which element an action landed on.
    """

    def make(count: int) -> MagicMock:
        locator = MagicMock(name="locator")
        locator.count = AsyncMock(return_value=count)
        nth_children: dict[int, MagicMock] = {}

        def nth(index: int) -> MagicMock:
            if index not in nth_children:
                child = MagicMock(name=f"locator.nth({index})")
                child.click = AsyncMock()
                child.fill = AsyncMock()
                child.select_option = AsyncMock(return_value=[])
                child.highlight = AsyncMock()
                nth_children[index] = child
            return nth_children[index]

        locator.nth = MagicMock(side_effect=nth)
        locator.first = MagicMock(name="locator.first")
        locator.first.click = AsyncMock()
        locator.first.fill = AsyncMock()
        locator.first.select_option = AsyncMock(return_value=[])
        locator.first.highlight = AsyncMock()
        return locator

    return make


@pytest.fixture
def mock_page() -> MagicMock:
    """Mock Playwright Page with async methods configured as AsyncMock.

    Returns:
        MagicMock: Open page at https://example.com titled "Example".
    """
    page = MagicMock(name="page")
    page.url = "https://example.com"
    page.is_closed = MagicMock(return_value=False)
    page.title = AsyncMock(return_value="Example")
    page.goto = AsyncMock()
    page.go_back = AsyncMock()
    page.go_forward = AsyncMock()
    page.reload = AsyncMock()
    page.evaluate = AsyncMock(return_value="complete")
    page.screenshot = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.close = AsyncMock()
    page.keyboard.press = AsyncMock()
    page.keyboard.type = AsyncMock()
    page.mouse.click = AsyncMock()
    page.mouse.move = AsyncMock()
    page.mouse.down = AsyncMock()
    page.mouse.up = AsyncMock()
    page.mouse.wheel = AsyncMock()
    page.get_by_role = MagicMock()
    return page
