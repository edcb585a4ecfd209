"""Resolve snapshot refs to live Playwright locators and act on them.

A RefEntry only remembers role, name and a disambiguation index, so the
element is looked up again on the live page at action time. When several
elements share role and name, the stored index picks among them; if the page
has fewer matches than before, the fallback policy decides whether to take
the first match or give up.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from browse_plugin.core.refs import RefTable
from browse_plugin.utils.config import RefFallbackPolicy
from browse_plugin.utils.exceptions import ElementNotFound

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)

DEFAULT_ACTION_TIMEOUT = 10000  # ms


async def locate(
    page: Page,
    refs: RefTable,
    ref: str,
    policy: RefFallbackPolicy = RefFallbackPolicy.FIRST,
) -> Locator:
    """Find the live element for a ref.

    Args:
        page: The page to search.
        refs: Table from the most recent snapshot of this page.
        ref: Caller-supplied ref (``0-5``, ``@0-5`` or ``ref=0-5``).
        policy: What to do if the stored index is past the current matches.

    Returns:
        A locator narrowed to a single element.

    Raises:
        RefNotFound: If the ref is not in the table.
        ElementNotFound: If nothing on the page matches the ref's role and
            name, or the index is out of range under the strict policy.
    """
    entry = refs.lookup(ref)
    # exact=False gives the same substring name match the AX tree uses.
    locator = page.get_by_role(
        cast(Any, entry.role), name=entry.name or None, exact=False
    )
    count = await locator.count()
    if count == 0:
        raise ElementNotFound(ref, entry.role, entry.name)

    if entry.index > 0:
        if entry.index < count:
            return locator.nth(entry.index)
        if policy is RefFallbackPolicy.STRICT:
            raise ElementNotFound(
                ref,
                entry.role,
                entry.name,
                f"expected match #{entry.index + 1} but only {count} found",
            )
        logger.debug(
            "Ref %s index %d out of range (%d matches), using first match",
            ref,
            entry.index,
            count,
        )
    return locator.first


async def click_ref(
    page: Page,
    refs: RefTable,
    ref: str,
    policy: RefFallbackPolicy = RefFallbackPolicy.FIRST,
    timeout: int = DEFAULT_ACTION_TIMEOUT,
) -> None:
    """Click the element a ref points to."""
    target = await locate(page, refs, ref, policy)
    await target.click(timeout=timeout)


async def fill_ref(
    page: Page,
    refs: RefTable,
    ref: str,
    value: str,
    press_enter: bool = True,
    policy: RefFallbackPolicy = RefFallbackPolicy.FIRST,
    timeout: int = DEFAULT_ACTION_TIMEOUT,
) -> None:
    """Focus an input by ref, replace its contents and optionally submit."""
    target = await locate(page, refs, ref, policy)
    await target.click(timeout=timeout)
    await target.fill(value, timeout=timeout)
    if press_enter:
        await page.keyboard.press("Enter")


async def select_ref(
    page: Page,
    refs: RefTable,
    ref: str,
    values: list[str],
    policy: RefFallbackPolicy = RefFallbackPolicy.FIRST,
    timeout: int = DEFAULT_ACTION_TIMEOUT,
) -> list[str]:
    """Select one or more options in a select element by ref.

    Returns:
        The option values Playwright reports as selected.
    """
    target = await locate(page, refs, ref, policy)
    return await target.select_option(values, timeout=timeout)
