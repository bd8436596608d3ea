"""
Request construction: endpoint descriptors, path templates, query strings and
JSON bodies.
"""

import string
import urllib.parse
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from sendgrid_cli.core.errors import ValidationError
from sendgrid_cli.core.serialization import serialize

QueryParams = Mapping[str, Any] | Sequence[tuple[str, Any]]


@dataclass(frozen=True)
class Endpoint:
    """An API operation: HTTP method plus path template, e.g. /v3/api_keys/{key_id}."""

    method: str
    path: str
    json_body: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())


@dataclass(frozen=True)
class PreparedRequest:
    """A fully resolved request, ready for the transport."""

    method: str
    path: str
    query: tuple[tuple[str, str], ...] = ()
    body: bytes | None = None

    @property
    def path_with_query(self) -> str:
        if not self.query:
            return self.path
        separator = "&" if "?" in self.path else "?"
        return f"{self.path}{separator}{urllib.parse.urlencode(self.query)}"

    def url(self, base_url: str) -> str:
        """Build full URL from the base URL."""
        return f"{base_url.rstrip('/')}{self.path_with_query}"


def _template_fields(template: str) -> list[str]:
    return [name for _, name, _, _ in string.Formatter().parse(template) if name is not None]


def resolve_path(template: str, path_params: Mapping[str, Any] | None = None) -> str:
    """
    Substitute {name} placeholders in a path template.

    Raises:
        ValidationError: If a parameter is missing or empty

    """
    params = path_params or {}
    values: dict[str, str] = {}
    for name in _template_fields(template):
        if not name:
            raise ValueError(f"Positional placeholders are not supported: {template}")
        value = params.get(name)
        if value is None or str(value).strip() == "":
            raise ValidationError(f"Path parameter '{name}' must not be empty", field=name)
        values[name] = urllib.parse.quote(str(value), safe="@")
    return template.format(**values)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return str(int(value.timestamp()))
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def encode_query(query: QueryParams | None) -> tuple[tuple[str, str], ...]:
    """Flatten query parameters into ordered pairs, dropping None values."""
    if not query:
        return ()
    items = query.items() if isinstance(query, Mapping) else query
    pairs: list[tuple[str, str]] = []
    for key, value in items:
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            pairs.extend((key, _query_value(v)) for v in value if v is not None)
        else:
            pairs.append((key, _query_value(value)))
    return tuple(pairs)


def build_request(
    endpoint: Endpoint,
    path_params: Mapping[str, Any] | None = None,
    query: QueryParams | None = None,
    body: Any = None,
) -> PreparedRequest:
    """
    Assemble a request for an endpoint.

    Args:
        endpoint: Method and path template
        path_params: Values for the template placeholders
        query: Query parameters; None values are omitted
        body: Request body; None fields are omitted, NULL is sent as null

    Returns:
        PreparedRequest

    Raises:
        ValidationError: If a path parameter is missing or empty

    """
    path = resolve_path(endpoint.path, path_params)
    encoded_body = None
    if body is not None:
        if endpoint.json_body:
            encoded_body = serialize(body)
        else:
            encoded_body = body if isinstance(body, bytes) else str(body).encode("utf-8")
    return PreparedRequest(
        method=endpoint.method,
        path=path,
        query=encode_query(query),
        body=encoded_body,
    )
