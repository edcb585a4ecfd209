"""Screenshot capture with size capping."""

from __future__ import annotations

import io
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image

if TYPE_CHECKING:
    from playwright.async_api import Page

DEFAULT_MAX_SIZE = 2000  # px


def resize_png(data: bytes, max_size: int = DEFAULT_MAX_SIZE) -> bytes:
    """Shrink a PNG to fit inside max_size x max_size.

    Images already within bounds are returned unchanged; images are never
    enlarged and keep their aspect ratio.
    """
    with Image.open(io.BytesIO(data)) as image:
        width, height = image.size
        if width <= max_size and height <= max_size:
            return data
        image.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
        out = io.BytesIO()
        image.save(out, format="PNG")
        return out.getvalue()


def screenshot_filename(now: datetime | None = None) -> str:
    """``screenshot-<ISO timestamp>.png`` with ``:`` and ``.`` made safe."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"
    return f"screenshot-{stamp}.png"


async def take_screenshot(
    page: Page,
    directory: Path,
    max_size: int = DEFAULT_MAX_SIZE,
    path: str | Path | None = None,
    full_page: bool = False,
) -> Path:
    """Capture the page as PNG and write it to disk.

    Args:
        page: Page to capture.
        directory: Where to save when no explicit path is given.
        max_size: Longest allowed side in pixels.
        path: Explicit destination file.
        full_page: Capture the full scrollable page.

    Returns:
        Absolute path of the written file.
    """
    raw = await page.screenshot(type="png", full_page=full_page)
    data = resize_png(raw, max_size)

    if path is None:
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / screenshot_filename()
    else:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return target.resolve()
