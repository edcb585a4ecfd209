"""Browserbase cloud browser sessions.

Browserbase sessions end as soon as every CDP client disconnects, so one
session is created per process and cached; the browser connection that uses
it has to stay open across tool calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from browse_plugin.utils.config import AppConfig
from browse_plugin.utils.exceptions import (
    BrowserbaseSessionError,
    ConfigurationError,
)

logger = logging.getLogger(__name__)

SESSIONS_URL = "https://api.browserbase.com/v1/sessions"
REQUEST_TIMEOUT = 30  # seconds


@dataclass(frozen=True)
class BrowserbaseSession:
    """A remote browser session.

    Attributes:
        id: Browserbase session id.
        connect_url: CDP WebSocket URL for the remote Chrome.
    """

    id: str
    connect_url: str


class BrowserbaseSessionProvider:
    """Creates a Browserbase session on first use and caches it."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self._session: BrowserbaseSession | None = None

    @property
    def cached(self) -> BrowserbaseSession | None:
        return self._session

    def get_or_create(self) -> BrowserbaseSession:
        """Return the cached session, creating one if needed.

        Raises:
            ConfigurationError: If the API key or project id is missing.
            BrowserbaseSessionError: If Browserbase rejects the request.
        """
        if self._session is not None:
            return self._session

        api_key = self.config.browserbase_api_key
        project_id = self.config.browserbase_project_id
        if not api_key or not project_id:
            raise ConfigurationError(
                "Browserbase cloud mode requires BROWSERBASE_API_KEY and "
                "BROWSERBASE_PROJECT_ID environment variables."
            )

        response = requests.post(
            SESSIONS_URL,
            headers={"Content-Type": "application/json", "x-bb-api-key": api_key},
            json={"projectId": project_id},
            timeout=REQUEST_TIMEOUT,
        )
        if not response.ok:
            raise BrowserbaseSessionError(response.status_code, response.text)

        data = response.json()
        self._session = BrowserbaseSession(id=data["id"], connect_url=data["connectUrl"])
        logger.info("Created Browserbase session %s", self._session.id)
        return self._session

    def clear(self) -> None:
        """Forget the cached session (e.g. after the browser is closed)."""
        self._session = None
