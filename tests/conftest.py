"""Pytest configuration - loads .env for live tests and provides a scripted transport."""

import io
import json
import urllib.parse
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv

from sendgrid_cli.core.classifier import reason_phrase
from sendgrid_cli.core.client import APIClient
from sendgrid_cli.core.transport import CancellationToken, TransportResponse
from sendgrid_cli.sdk import SendGridClient

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

BASE_URL = "https://api.sendgrid.test"
API_KEY = "SG.test.key"


# =============================================================================
# Scripted Transport
# =============================================================================


@dataclass
class SentRequest:
    """A request as seen by the transport."""

    method: str
    url: str
    headers: dict[str, str]
    body: bytes | None

    @property
    def path(self) -> str:
        return urllib.parse.urlsplit(self.url).path

    @property
    def query(self) -> list[tuple[str, str]]:
        return urllib.parse.parse_qsl(urllib.parse.urlsplit(self.url).query)

    def json(self) -> Any:
        assert self.body is not None, "request has no body"
        return json.loads(self.body)


@dataclass
class ScriptedResponse:
    status: int
    body: bytes
    reason: str | None = None
    on_send: Callable[[], None] | None = None


class FakeTransport:
    """Transport that replays queued responses and records every request."""

    def __init__(self) -> None:
        self.queue: list[ScriptedResponse | Exception] = []
        self.requests: list[SentRequest] = []
        self.streams: list[io.BytesIO] = []

    def add(
        self,
        status: int = 200,
        body: Any = None,
        reason: str | None = None,
        on_send: Callable[[], None] | None = None,
    ) -> "FakeTransport":
        if body is None:
            raw = b""
        elif isinstance(body, bytes):
            raw = body
        elif isinstance(body, str):
            raw = body.encode("utf-8")
        else:
            raw = json.dumps(body).encode("utf-8")
        self.queue.append(ScriptedResponse(status, raw, reason, on_send))
        return self

    def fail(self, error: Exception) -> "FakeTransport":
        self.queue.append(error)
        return self

    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        cancellation: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> TransportResponse:
        self.requests.append(SentRequest(method, url, dict(headers), body))
        if not self.queue:
            raise AssertionError(f"Unexpected request: {method} {url}")

        scripted = self.queue.pop(0)
        if isinstance(scripted, Exception):
            raise scripted
        if scripted.on_send is not None:
            scripted.on_send()
        if cancellation is not None:
            cancellation.raise_if_cancelled()

        stream = io.BytesIO(scripted.body)
        self.streams.append(stream)
        return TransportResponse(
            status=scripted.status,
            reason=scripted.reason or reason_phrase(scripted.status),
            headers={"Content-Type": "application/json"},
            stream=stream,
            cancellation=cancellation,
        )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport) -> APIClient:
    return APIClient(api_key=API_KEY, base_url=BASE_URL, transport=transport)


@pytest.fixture
def sendgrid(transport: FakeTransport) -> SendGridClient:
    return SendGridClient(api_key=API_KEY, base_url=BASE_URL, transport=transport)
