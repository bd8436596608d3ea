"""Tests for the urllib transport and cooperative cancellation."""

import http.client
import io
import urllib.error
from email.message import Message

import pytest

from sendgrid_cli.core.client import APIClient
from sendgrid_cli.core.errors import APIError, ErrorKind
from sendgrid_cli.core.request import Endpoint
from sendgrid_cli.core.transport import CancellationToken, TransportResponse, UrllibTransport


class CancellingStream(io.BytesIO):
    """Body stream that fires a token on its first read."""

    def __init__(self, payload: bytes, token: CancellationToken):
        super().__init__(payload)
        self.token = token

    def read(self, size: int = -1) -> bytes:
        self.token.cancel()
        return super().read(size)


class FakeHTTPResponse(io.BytesIO):
    status = 200
    reason = "OK"

    def __init__(self, payload: bytes):
        super().__init__(payload)
        self.headers = Message()
        self.headers["Content-Type"] = "application/json"


# =============================================================================
# CancellationToken
# =============================================================================


def test_token_runs_callbacks_once():
    token = CancellationToken()
    calls = []
    token.add_callback(lambda: calls.append("a"))

    token.cancel()
    token.cancel()

    assert token.is_cancelled
    assert calls == ["a"]


def test_callback_added_after_cancel_runs_immediately():
    token = CancellationToken()
    token.cancel()
    calls = []

    token.add_callback(lambda: calls.append("late"))

    assert calls == ["late"]


def test_removed_callback_does_not_run():
    token = CancellationToken()
    calls = []

    def callback() -> None:
        calls.append("x")

    token.add_callback(callback)
    token.remove_callback(callback)
    token.cancel()

    assert calls == []


def test_raise_if_cancelled():
    token = CancellationToken()
    token.raise_if_cancelled()
    token.cancel()

    with pytest.raises(APIError) as exc_info:
        token.raise_if_cancelled()

    assert exc_info.value.kind == ErrorKind.CANCELLED


# =============================================================================
# TransportResponse
# =============================================================================


def test_read_returns_body_and_closes_stream():
    stream = io.BytesIO(b'{"ok": true}')
    response = TransportResponse(200, "OK", {}, stream)

    assert response.read() == b'{"ok": true}'
    assert response.read() == b'{"ok": true}'
    assert stream.closed
    assert response.ok


def test_cancel_mid_read_aborts_and_closes():
    token = CancellationToken()
    stream = CancellingStream(b"x" * 10, token)
    response = TransportResponse(200, "OK", {}, stream, cancellation=token)

    with pytest.raises(APIError) as exc_info:
        response.read()

    assert exc_info.value.kind == ErrorKind.CANCELLED
    assert stream.closed


def test_response_without_stream_has_empty_body():
    assert TransportResponse(204, "No Content", {}, None).read() == b""


def test_body_shorter_than_content_length_is_a_transport_failure():
    stream = io.BytesIO(b'{"ok"')
    response = TransportResponse(200, "OK", {"Content-Length": "100"}, stream)

    with pytest.raises(APIError) as exc_info:
        response.read()

    assert exc_info.value.kind == ErrorKind.TRANSPORT_FAILURE
    assert exc_info.value.message == "Connection closed before the full response was read"
    assert stream.closed


def test_body_matching_content_length_is_returned():
    response = TransportResponse(200, "OK", {"content-length": "2"}, io.BytesIO(b"[]"))

    assert response.read() == b"[]"


def test_incomplete_read_is_a_transport_failure():
    class BrokenStream(io.BytesIO):
        def read(self, size: int = -1) -> bytes:
            raise http.client.IncompleteRead(b"{", 10)

    with pytest.raises(APIError) as exc_info:
        TransportResponse(200, "OK", {}, BrokenStream()).read()

    assert exc_info.value.kind == ErrorKind.TRANSPORT_FAILURE


# =============================================================================
# UrllibTransport
# =============================================================================


def test_urllib_success(monkeypatch):
    seen = {}

    def fake_urlopen(request, timeout):
        seen["method"] = request.get_method()
        seen["url"] = request.full_url
        seen["auth"] = request.get_header("Authorization")
        seen["timeout"] = timeout
        return FakeHTTPResponse(b"[]")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    response = UrllibTransport(timeout=7).send(
        "GET", "https://api.sendgrid.test/v3/scopes", {"Authorization": "Bearer k"}, None
    )

    assert response.status == 200
    assert response.read() == b"[]"
    assert seen == {
        "method": "GET",
        "url": "https://api.sendgrid.test/v3/scopes",
        "auth": "Bearer k",
        "timeout": 7,
    }


def test_urllib_http_error_is_returned_as_response(monkeypatch):
    def fake_urlopen(request, timeout):
        headers = Message()
        raise urllib.error.HTTPError(
            request.full_url, 404, "NOT FOUND", headers, io.BytesIO(b'{"errors": [{"message": "not found"}]}')
        )

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    response = UrllibTransport().send("DELETE", "https://api.sendgrid.test/v3/api_keys/x", {}, None)

    assert response.status == 404
    assert response.reason == "NOT FOUND"
    assert b"not found" in response.read()


def test_urllib_connection_error(monkeypatch):
    def fake_urlopen(request, timeout):
        raise urllib.error.URLError("Name or service not known")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(APIError) as exc_info:
        UrllibTransport().send("GET", "https://nowhere.invalid/", {}, None)

    assert exc_info.value.kind == ErrorKind.TRANSPORT_FAILURE
    assert "Name or service not known" in exc_info.value.message


def test_urllib_timeout(monkeypatch):
    def fake_urlopen(request, timeout):
        raise TimeoutError()

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(APIError) as exc_info:
        UrllibTransport(timeout=3).send("GET", "https://api.sendgrid.test/", {}, None)

    assert exc_info.value.kind == ErrorKind.TRANSPORT_FAILURE
    assert exc_info.value.message == "Request timed out after 3 seconds"


@pytest.mark.parametrize(
    "error",
    [
        http.client.RemoteDisconnected("Remote end closed connection without response"),
        ConnectionResetError(104, "Connection reset by peer"),
        http.client.BadStatusLine("garbage"),
    ],
)
def test_urllib_unwrapped_connection_faults(monkeypatch, error):
    def fake_urlopen(request, timeout):
        raise error

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(APIError) as exc_info:
        UrllibTransport().send("GET", "https://api.sendgrid.test/v3/api_keys", {}, None)

    assert exc_info.value.kind == ErrorKind.TRANSPORT_FAILURE
    assert exc_info.value.message.startswith("Connection error: ")


def test_dropped_connection_is_a_failed_result(monkeypatch):
    def fake_urlopen(request, timeout):
        raise http.client.RemoteDisconnected("Remote end closed connection without response")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    client = APIClient(api_key="SG.test", base_url="https://api.sendgrid.test")

    result = client.execute(Endpoint("GET", "/v3/api_keys"))

    assert not result.ok
    assert result.error.kind == ErrorKind.TRANSPORT_FAILURE
    assert "Remote end closed connection" in result.error.message


def test_truncated_success_body_is_a_failed_result(monkeypatch):
    raw = FakeHTTPResponse(b'{"res')
    raw.headers["Content-Length"] = "100"
    monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout: raw)
    client = APIClient(api_key="SG.test", base_url="https://api.sendgrid.test")

    result = client.execute(Endpoint("GET", "/v3/api_keys"))

    assert result.error.kind == ErrorKind.TRANSPORT_FAILURE
    assert result.error.message == "Connection closed before the full response was read"


def test_urllib_not_called_when_already_cancelled(monkeypatch):
    def fake_urlopen(request, timeout):
        raise AssertionError("must not send")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(APIError) as exc_info:
        UrllibTransport().send("POST", "https://api.sendgrid.test/", {}, b"{}", cancellation=token)

    assert exc_info.value.kind == ErrorKind.CANCELLED


def test_cancel_closes_in_flight_response(monkeypatch):
    raw = FakeHTTPResponse(b"{}")
    monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout: raw)
    token = CancellationToken()

    response = UrllibTransport().send("GET", "https://api.sendgrid.test/", {}, None, cancellation=token)
    token.cancel()

    assert raw.closed
    with pytest.raises(APIError) as exc_info:
        response.read()
    assert exc_info.value.kind == ErrorKind.CANCELLED
