"""
HTTP transport boundary and cooperative cancellation.

The dispatch core only needs `send(...)` returning a TransportResponse. The
default implementation uses urllib from the standard library; TLS and
connection handling are its concern.
"""

import http.client
import logging
import threading
import urllib.error
import urllib.request
from collections.abc import Callable, Mapping
from typing import IO, Protocol

from sendgrid_cli.core.errors import cancelled_error, transport_error

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class CancellationToken:
    """
    Cooperative cancellation signal shared between a caller and one or more calls.

    Callbacks registered while a request is in flight run on `cancel()`; the
    urllib transport uses one to close the open response.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Fire the token. Idempotent."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:  # noqa: BLE001
                logger.debug("Cancellation callback failed", exc_info=True)

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run callback on cancel, immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def raise_if_cancelled(self) -> None:
        """Raise a CANCELLED APIError if the token has fired."""
        if self.is_cancelled:
            raise cancelled_error()


class TransportResponse:
    """
    Status, headers and body stream of one HTTP exchange.

    The body is read fully at most once; `read()` always closes the stream.
    """

    def __init__(
        self,
        status: int,
        reason: str,
        headers: Mapping[str, str],
        stream: IO[bytes] | None,
        cancellation: CancellationToken | None = None,
    ):
        self.status = status
        self.reason = reason
        self.headers = dict(headers)
        self._stream = stream
        self._cancellation = cancellation
        self._body: bytes | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299

    def _check_cancelled(self) -> None:
        if self._cancellation is not None and self._cancellation.is_cancelled:
            self.close()
            raise cancelled_error()

    def _content_length(self) -> int | None:
        for name, value in self.headers.items():
            if name.lower() == "content-length":
                try:
                    return int(value)
                except ValueError:
                    return None
        return None

    def read(self) -> bytes:
        """
        Read the whole body and close the stream.

        Raises:
            APIError: CANCELLED if the token fires mid-read, TRANSPORT_FAILURE
                on a connection fault or a body shorter than its Content-Length

        """
        if self._body is not None:
            return self._body
        self._check_cancelled()
        if self._stream is None:
            self._body = b""
            return self._body

        chunks: list[bytes] = []
        received = 0
        try:
            while True:
                self._check_cancelled()
                try:
                    chunk = self._stream.read(READ_CHUNK_SIZE)
                except (http.client.HTTPException, OSError, ValueError) as e:
                    self._check_cancelled()
                    raise transport_error(f"Connection error while reading response: {e}") from e
                if not chunk:
                    break
                chunks.append(chunk)
                received += len(chunk)
            self._check_cancelled()

            expected = self._content_length()
            if expected is not None and received < expected:
                raise transport_error("Connection closed before the full response was read")
        finally:
            self.close()

        self._body = b"".join(chunks)
        return self._body

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()
        if self._cancellation is not None:
            self._cancellation.remove_callback(self.close)

    def __enter__(self) -> "TransportResponse":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Transport(Protocol):
    """Anything that can perform one HTTP exchange."""

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
        cancellation: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> TransportResponse: ...


class UrllibTransport:
    """Transport backed by urllib.request."""

    def __init__(self, timeout: float = 60):
        self.timeout = timeout

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
        cancellation: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> TransportResponse:
        """
        Perform the request.

        HTTP error statuses are returned as responses, not raised.

        Raises:
            APIError: CANCELLED or TRANSPORT_FAILURE

        """
        if cancellation is not None:
            cancellation.raise_if_cancelled()

        request_timeout = timeout or self.timeout
        req = urllib.request.Request(url, data=body, headers=dict(headers), method=method)

        try:
            raw = urllib.request.urlopen(req, timeout=request_timeout)  # noqa: S310
            status = raw.status
        except urllib.error.HTTPError as e:
            raw = e
            status = e.code
        except urllib.error.URLError as e:
            if cancellation is not None:
                cancellation.raise_if_cancelled()
            raise transport_error(f"Connection error: {e.reason}") from e
        except TimeoutError as e:
            raise transport_error(f"Request timed out after {request_timeout} seconds") from e
        except (http.client.HTTPException, OSError) as e:
            if cancellation is not None:
                cancellation.raise_if_cancelled()
            raise transport_error(f"Connection error: {e}") from e

        response = TransportResponse(
            status=status,
            reason=str(raw.reason or ""),
            headers=dict(raw.headers.items()) if raw.headers else {},
            stream=raw,
            cancellation=cancellation,
        )
        if cancellation is not None:
            cancellation.add_callback(response.close)
            if cancellation.is_cancelled:
                response.close()
                raise cancelled_error()
        return response
