"""Unit tests for Browserbase session creation and caching."""

from unittest.mock import MagicMock, patch

import pytest

from browse_plugin.services.browserbase import (
    REQUEST_TIMEOUT,
    SESSIONS_URL,
    BrowserbaseSession,
    BrowserbaseSessionProvider,
)
from browse_plugin.utils.config import AppConfig
from browse_plugin.utils.exceptions import BrowserbaseSessionError, ConfigurationError


@pytest.fixture
def cloud_config(tmp_path) -> AppConfig:
    return AppConfig(
        plugin_root=tmp_path,
        browserbase_api_key="bb_live_key",
        browserbase_project_id="proj-123",
    )


def ok_response(session_id: str = "sess-1") -> MagicMock:
    response = MagicMock()
    response.ok = True
    response.status_code = 201
    response.json.return_value = {
        "id": session_id,
        "connectUrl": f"wss://connect.browserbase.com?sessionId={session_id}",
    }
    return response


class TestGetOrCreate:
    """Tests for BrowserbaseSessionProvider.get_or_create."""

    def test_creates_session(self, cloud_config) -> None:
        """A POST with the API key header and project id creates a session."""
        provider = BrowserbaseSessionProvider(cloud_config)
        with patch(
            "browse_plugin.services.browserbase.requests.post",
            return_value=ok_response(),
        ) as mock_post:
            session = provider.get_or_create()

        assert session == BrowserbaseSession(
            id="sess-1",
            connect_url="wss://connect.browserbase.com?sessionId=sess-1",
        )
        mock_post.assert_called_once_with(
            SESSIONS_URL,
            headers={"Content-Type": "application/json", "x-bb-api-key": "bb_live_key"},
            json={"projectId": "proj-123"},
            timeout=REQUEST_TIMEOUT,
        )

    def test_session_is_cached(self, cloud_config) -> None:
        """The second call reuses the first session."""
        provider = BrowserbaseSessionProvider(cloud_config)
        with patch(
            "browse_plugin.services.browserbase.requests.post",
            return_value=ok_response(),
        ) as mock_post:
            first = provider.get_or_create()
            second = provider.get_or_create()

        assert first is second
        assert provider.cached is first
        assert mock_post.call_count == 1

    def test_clear_forces_new_session(self, cloud_config) -> None:
        """After clear() a new session is requested."""
        provider = BrowserbaseSessionProvider(cloud_config)
        with patch(
            "browse_plugin.services.browserbase.requests.post",
            side_effect=[ok_response("a"), ok_response("b")],
        ):
            first = provider.get_or_create()
            provider.clear()
            assert provider.cached is None
            second = provider.get_or_create()

        assert (first.id, second.id) == ("a", "b")

    def test_error_status_raises(self, cloud_config) -> None:
        """Non-2xx responses carry status and body."""
        response = MagicMock()
        response.ok = False
        response.status_code = 401
        response.text = '{"error":"invalid api key"}'
        provider = BrowserbaseSessionProvider(cloud_config)

        with patch(
            "browse_plugin.services.browserbase.requests.post",
            return_value=response,
        ):
            with pytest.raises(BrowserbaseSessionError) as exc_info:
                provider.get_or_create()

        assert exc_info.value.status == 401
        assert "invalid api key" in str(exc_info.value)
        assert provider.cached is None

    def test_missing_credentials_raise_configuration_error(self, tmp_path) -> None:
        """Without credentials nothing is sent."""
        provider = BrowserbaseSessionProvider(AppConfig(plugin_root=tmp_path))
        with patch("browse_plugin.services.browserbase.requests.post") as mock_post:
            with pytest.raises(ConfigurationError, match="BROWSERBASE_API_KEY"):
                provider.get_or_create()
        mock_post.assert_not_called()
