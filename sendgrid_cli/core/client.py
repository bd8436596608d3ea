"""
Core HTTP client for the SendGrid v3 API.

Every resource operation funnels through `APIClient.execute`, which builds the
request, sends it, classifies failures and maps success payloads.
"""

import json
import logging
import os
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from sendgrid_cli.core.classifier import classify
from sendgrid_cli.core.errors import APIError, ErrorKind
from sendgrid_cli.core.pagination import PaginationStrategy, Paginator
from sendgrid_cli.core.request import Endpoint, QueryParams, build_request
from sendgrid_cli.core.serialization import ResponseShape, deserialize
from sendgrid_cli.core.transport import CancellationToken, Transport, UrllibTransport
from sendgrid_cli.core.types import Result

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_BASE_URL = "https://api.sendgrid.com"
DEFAULT_TIMEOUT = 60

T = TypeVar("T")


class APIClient:
    """
    Low-level HTTP client for the SendGrid v3 API.

    Handles:
    - Bearer token authentication
    - Request building and response mapping
    - Error classification
    - Pagination for list endpoints

    The client keeps no per-call state, so one instance can serve concurrent
    calls from several threads.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: Transport | None = None,
    ):
        """
        Initialize the API client.

        Args:
            api_key: SendGrid API key (or SENDGRID_API_KEY env var)
            base_url: API base URL (or SENDGRID_BASE_URL env var)
            timeout: Request timeout in seconds (or SENDGRID_TIMEOUT env var)
            transport: HTTP transport (defaults to urllib)

        """
        self.api_key = api_key or os.environ.get("SENDGRID_API_KEY")
        self.base_url = (base_url or os.environ.get("SENDGRID_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        env_timeout = os.environ.get("SENDGRID_TIMEOUT")
        self.timeout = timeout or (float(env_timeout) if env_timeout else DEFAULT_TIMEOUT)
        self.transport = transport or UrllibTransport(timeout=self.timeout)

    def _headers(self, api_key: str, has_body: bool, json_body: bool) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }
        if has_body and json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def execute(
        self,
        endpoint: Endpoint,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: QueryParams | None = None,
        body: Any = None,
        parser: Callable[[Any], T] | None = None,
        shape: ResponseShape = ResponseShape.OBJECT,
        cancellation: CancellationToken | None = None,
    ) -> Result[Any]:
        """
        Perform one API call.

        Args:
            endpoint: Method and path template
            path_params: Values for the path template
            query: Query parameters (None values omitted)
            body: Request body (None fields omitted, NULL sent as null)
            parser: Function to build each returned object
            shape: Expected shape of a success payload
            cancellation: Token that aborts the call when fired

        Returns:
            Result holding the mapped value or an APIError

        Raises:
            ResponseShapeError: If a success payload does not match `shape`

        """
        if not self.api_key:
            return Result.failure(
                APIError("SENDGRID_API_KEY environment variable not set", kind=ErrorKind.AUTHORIZATION)
            )

        try:
            request = build_request(endpoint, path_params, query, body)
        except APIError as e:
            return Result.failure(e)

        url = request.url(self.base_url)
        headers = self._headers(self.api_key, request.body is not None, endpoint.json_body)

        try:
            if cancellation is not None:
                cancellation.raise_if_cancelled()
            logger.debug("%s %s", request.method, request.path_with_query)
            response = self.transport.send(
                request.method,
                url,
                headers,
                request.body,
                cancellation=cancellation,
                timeout=self.timeout,
            )
            try:
                payload = response.read()
            finally:
                response.close()
        except APIError as e:
            logger.debug("%s %s failed: %s", request.method, request.path, e.kind.value)
            return Result.failure(e)

        logger.debug("%s %s -> %s", request.method, request.path, response.status)

        if not response.ok:
            return Result.failure(classify(response.status, payload, response.reason))

        try:
            value = deserialize(payload, shape, parser)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Result.failure(
                APIError(f"Invalid JSON response: {e}", kind=ErrorKind.UNKNOWN, status=response.status)
            )
        except APIError as e:
            return Result.failure(e)
        return Result.success(value)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def request(
        self,
        method: str,
        path: str,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: QueryParams | None = None,
        body: Any = None,
        parser: Callable[[Any], T] | None = None,
        shape: ResponseShape = ResponseShape.OBJECT,
        cancellation: CancellationToken | None = None,
    ) -> Any:
        """Make a request and return the mapped value, raising APIError on failure."""
        return self.execute(
            Endpoint(method, path),
            path_params=path_params,
            query=query,
            body=body,
            parser=parser,
            shape=shape,
            cancellation=cancellation,
        ).unwrap()

    def get(self, path: str, **kwargs: Any) -> Any:
        """Make a GET request."""
        return self.request("GET", path, **kwargs)

    def post(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Make a POST request."""
        return self.request("POST", path, body=body, **kwargs)

    def put(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Make a PUT request."""
        return self.request("PUT", path, body=body, **kwargs)

    def patch(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Make a PATCH request."""
        return self.request("PATCH", path, body=body, **kwargs)

    def delete(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Make a DELETE request."""
        kwargs.setdefault("shape", ResponseShape.NONE)
        return self.request("DELETE", path, body=body, **kwargs)

    # =========================================================================
    # Pagination
    # =========================================================================

    def paginate(
        self,
        path: str,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: QueryParams | None = None,
        page_size: int = 100,
        parser: Callable[[Any], T] | None = None,
        shape: ResponseShape = ResponseShape.ARRAY,
        strategy: PaginationStrategy = PaginationStrategy.OFFSET,
        cancellation: CancellationToken | None = None,
    ) -> Paginator[T]:
        """
        Iterate lazily through all pages of a list endpoint.

        Args:
            path: API path template
            path_params: Values for the path template
            query: Extra query parameters sent with every page
            page_size: Items per page
            parser: Optional function to parse each item
            shape: Shape of each page (bare array or result envelope)
            strategy: Offset/limit or cursor paging
            cancellation: Token checked before each page fetch

        Returns:
            Restartable iterable over all items

        """
        return Paginator(
            self,
            Endpoint("GET", path),
            path_params=path_params,
            query=query,
            page_size=page_size,
            parser=parser,
            shape=shape,
            strategy=strategy,
            cancellation=cancellation,
        )

    def paginate_all(self, path: str, **kwargs: Any) -> list[Any]:
        """Fetch all items from a paginated endpoint."""
        return list(self.paginate(path, **kwargs))
