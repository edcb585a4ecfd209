"""Remote browser services."""

from .browserbase import BrowserbaseSession, BrowserbaseSessionProvider

__all__ = [
    "BrowserbaseSession",
    "BrowserbaseSessionProvider",
]
