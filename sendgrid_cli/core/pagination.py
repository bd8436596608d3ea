"""
Lazy pagination over list endpoints.

A Paginator is a restartable iterable: every `iter()` starts again from the
first page, and a page is only fetched once the previous one is used up.
"""

import logging
import urllib.parse
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sendgrid_cli.core.request import Endpoint, QueryParams, encode_query
from sendgrid_cli.core.serialization import ResponseShape, from_document
from sendgrid_cli.core.transport import CancellationToken

if TYPE_CHECKING:
    from sendgrid_cli.core.client import APIClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PaginationStrategy(str, Enum):
    OFFSET = "offset"
    CURSOR = "cursor"


@dataclass
class PageCursor:
    """Position of a paginator within a listing. Only the paginator mutates it."""

    limit: int
    offset: int = 0
    token: str | None = None
    pages_fetched: int = 0


@dataclass
class Page(Generic[T]):
    """One fetched page."""

    items: list[T] = field(default_factory=list)
    next_token: str | None = None


def metadata_next_cursor(document: Any, cursor_param: str) -> str | None:
    """Read the continuation token from a `_metadata.next` link, if any."""
    if not isinstance(document, dict):
        return None
    metadata = document.get("_metadata")
    if not isinstance(metadata, dict) or not metadata.get("next"):
        return None
    query = urllib.parse.urlparse(str(metadata["next"])).query
    values = urllib.parse.parse_qs(query).get(cursor_param)
    return values[0] if values else None


class Paginator(Generic[T]):
    """
    Walk every page of a list endpoint.

    Iteration stops after a page shorter than `page_size`, or, for cursor
    paging, when no continuation token comes back. A failed page fetch raises
    its APIError; items already yielded stay delivered.
    """

    def __init__(
        self,
        client: "APIClient",
        endpoint: Endpoint,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: QueryParams | None = None,
        page_size: int = 100,
        parser: Callable[[Any], T] | None = None,
        shape: ResponseShape = ResponseShape.ARRAY,
        strategy: PaginationStrategy = PaginationStrategy.OFFSET,
        limit_param: str | None = None,
        offset_param: str = "offset",
        cursor_param: str = "page_token",
        next_cursor: Callable[[Any], str | None] | None = None,
        cancellation: CancellationToken | None = None,
    ):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        if shape not in (ResponseShape.ARRAY, ResponseShape.ENVELOPE):
            raise ValueError(f"Pages must be arrays or result envelopes, not {shape.value}")
        self._client = client
        self._endpoint = endpoint
        self._path_params = dict(path_params or {})
        self._query = encode_query(query)
        self.page_size = page_size
        self._parser = parser
        self._shape = shape
        self.strategy = strategy
        if limit_param is None:
            limit_param = "page_size" if strategy == PaginationStrategy.CURSOR else "limit"
        self._limit_param = limit_param
        self._offset_param = offset_param
        self._cursor_param = cursor_param
        self._next_cursor = next_cursor or (lambda document: metadata_next_cursor(document, cursor_param))
        self._cancellation = cancellation

    def _page_query(self, cursor: PageCursor) -> list[tuple[str, Any]]:
        query: list[tuple[str, Any]] = list(self._query)
        query.append((self._limit_param, cursor.limit))
        if self.strategy == PaginationStrategy.OFFSET:
            query.append((self._offset_param, cursor.offset))
        elif cursor.token is not None:
            query.append((self._cursor_param, cursor.token))
        return query

    def fetch_page(self, cursor: PageCursor) -> Page[T]:
        """
        Fetch the page at `cursor`.

        Raises:
            APIError: If the page could not be fetched

        """
        logger.debug(
            "Fetching page %d of %s (offset=%d, token=%s)",
            cursor.pages_fetched + 1,
            self._endpoint.path,
            cursor.offset,
            cursor.token,
        )
        document = self._client.execute(
            self._endpoint,
            path_params=self._path_params,
            query=self._page_query(cursor),
            shape=ResponseShape.RAW,
            cancellation=self._cancellation,
        ).unwrap()

        items = from_document(document, self._shape, self._parser)
        next_token = self._next_cursor(document) if self.strategy == PaginationStrategy.CURSOR else None
        return Page(items=items, next_token=next_token)

    def _advance(self, cursor: PageCursor, page: Page[T]) -> bool:
        """Move the cursor past `page`; False when it was the last one."""
        cursor.pages_fetched += 1
        cursor.offset += len(page.items)
        if len(page.items) < cursor.limit:
            return False
        if self.strategy == PaginationStrategy.CURSOR:
            if not page.next_token:
                return False
            cursor.token = page.next_token
        return True

    def pages(self) -> Iterator[Page[T]]:
        """Yield whole pages, fetching each one on demand."""
        cursor = PageCursor(limit=self.page_size)
        while True:
            page = self.fetch_page(cursor)
            yield page
            if not self._advance(cursor, page):
                return

    def __iter__(self) -> Iterator[T]:
        for page in self.pages():
            yield from page.items
