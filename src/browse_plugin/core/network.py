"""Network capture for the current browser context.

While capture is on, every finished or failed request is written to the
capture directory as one JSON file, numbered in completion order.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Request, Response

logger = logging.getLogger(__name__)


class NetworkCapture:
    """Records requests of one browser context to disk.

    Attributes:
        directory: Where capture files are written.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self._context: BrowserContext | None = None
        self._count = 0

    @property
    def is_capturing(self) -> bool:
        return self._context is not None

    def start(self, context: BrowserContext) -> None:
        """Begin recording requests of a context. A running capture moves over."""
        if self._context is context:
            return
        self.stop()
        self.directory.mkdir(parents=True, exist_ok=True)
        context.on("response", self._on_response)
        context.on("requestfailed", self._on_request_failed)
        self._context = context
        logger.info("Network capture started in %s", self.directory)

    def stop(self) -> None:
        if self._context is None:
            return
        self._context.remove_listener("response", self._on_response)
        self._context.remove_listener("requestfailed", self._on_request_failed)
        self._context = None
        logger.info("Network capture stopped")

    def clear(self) -> int:
        """Delete all capture files; return how many were removed."""
        if not self.directory.is_dir():
            return 0
        removed = 0
        for path in self.directory.glob("*.json"):
            path.unlink()
            removed += 1
        self._count = 0
        return removed

    def _on_response(self, response: Response) -> None:
        request = response.request
        record = _request_record(request)
        record["status"] = response.status
        record["responseHeaders"] = response.headers
        self._write(record)

    def _on_request_failed(self, request: Request) -> None:
        record = _request_record(request)
        record["failure"] = request.failure
        self._write(record)

    def _write(self, record: dict[str, Any]) -> None:
        self._count += 1
        method = record["method"].lower()
        path = self.directory / f"{self._count:05d}-{method}.json"
        try:
            path.write_text(json.dumps(record, indent=2, default=str))
        except OSError as e:
            logger.warning("Could not write network capture %s: %s", path, e)


def _request_record(request: Request) -> dict[str, Any]:
    return {
        "url": request.url,
        "method": request.method,
        "resourceType": request.resource_type,
        "requestHeaders": request.headers,
        "postData": request.post_data,
    }
