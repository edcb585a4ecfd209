"""Unit tests for network capture.

Tests cover:
- Listener registration and removal on the browser context
- One JSON file per finished or failed request
- Clearing captures
"""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from browse_plugin.core.network import NetworkCapture


def mock_request(url: str = "https://example.com/api", method: str = "GET") -> MagicMock:
    request = MagicMock(name="request")
    request.url = url
    request.method = method
    request.resource_type = "fetch"
    request.headers = {"accept": "application/json"}
    request.post_data = None
    request.failure = None
    return request


def handler_for(context: MagicMock, event: str):
    for call in context.on.call_args_list:
        if call.args[0] == event:
            return call.args[1]
    raise AssertionError(f"no handler registered for {event}")


@pytest.fixture
def capture(tmp_path: Path) -> NetworkCapture:
    return NetworkCapture(tmp_path / "network")


class TestStartStop:
    """Tests for start() and stop()."""

    def test_start_creates_directory_and_listens(self, capture) -> None:
        context = MagicMock(name="context")

        capture.start(context)

        assert capture.directory.is_dir()
        assert capture.is_capturing
        assert context.on.call_count == 2

    def test_start_twice_on_same_context_registers_once(self, capture) -> None:
        context = MagicMock(name="context")
        capture.start(context)
        capture.start(context)
        assert context.on.call_count == 2

    def test_start_on_new_context_moves_listeners(self, capture) -> None:
        old, new = MagicMock(name="old"), MagicMock(name="new")
        capture.start(old)

        capture.start(new)

        assert old.remove_listener.call_count == 2
        assert new.on.call_count == 2

    def test_stop_without_start_is_a_no_op(self, capture) -> None:
        capture.stop()
        assert not capture.is_capturing


class TestRecording:
    """Tests for the files written per request."""

    def test_response_is_written(self, capture) -> None:
        context = MagicMock(name="context")
        capture.start(context)
        response = MagicMock(name="response")
        response.request = mock_request(method="POST")
        response.status = 201
        response.headers = {"content-type": "application/json"}

        handler_for(context, "response")(response)

        written = capture.directory / "00001-post.json"
        record = json.loads(written.read_text())
        assert record["url"] == "https://example.com/api"
        assert record["status"] == 201
        assert record["responseHeaders"] == {"content-type": "application/json"}

    def test_failed_request_is_written(self, capture) -> None:
        context = MagicMock(name="context")
        capture.start(context)
        request = mock_request()
        request.failure = "net::ERR_CONNECTION_REFUSED"

        handler_for(context, "requestfailed")(request)

        record = json.loads((capture.directory / "00001-get.json").read_text())
        assert record["failure"] == "net::ERR_CONNECTION_REFUSED"
        assert "status" not in record

    def test_files_are_numbered_in_order(self, capture) -> None:
        context = MagicMock(name="context")
        capture.start(context)
        failed = handler_for(context, "requestfailed")

        failed(mock_request(url="https://a.example"))
        failed(mock_request(url="https://b.example"))

        names = sorted(p.name for p in capture.directory.iterdir())
        assert names == ["00001-get.json", "00002-get.json"]


class TestClear:
    """Tests for clear()."""

    def test_clear_removes_captures_and_restarts_numbering(self, capture) -> None:
        context = MagicMock(name="context")
        capture.start(context)
        handler_for(context, "requestfailed")(mock_request())

        assert capture.clear() == 1
        assert list(capture.directory.iterdir()) == []

        handler_for(context, "requestfailed")(mock_request())
        assert (capture.directory / "00001-get.json").exists()

    def test_clear_without_directory(self, capture) -> None:
        assert capture.clear() == 0
