"""
Conversion between Python values and the SendGrid JSON wire format.

Outgoing bodies drop fields that hold None and send NULL as an explicit JSON
null, so partial updates can tell "leave untouched" from "clear". Incoming
payloads are mapped with a caller-chosen shape; nothing is inferred.
"""

import dataclasses
import json
from collections.abc import Callable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, TypeVar

from sendgrid_cli.core.errors import ResponseShapeError, ValidationError

T = TypeVar("T")

Parser = Callable[[Any], T]


class _Null:
    """Sentinel serialized as an explicit JSON null."""

    _instance = None

    def __new__(cls) -> "_Null":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NULL"

    def __bool__(self) -> bool:
        return False


NULL: Any = _Null()


class ResponseShape(str, Enum):
    """Shape a success payload is expected to have."""

    OBJECT = "object"  # a single JSON object
    ARRAY = "array"  # a bare JSON array
    ENVELOPE = "envelope"  # {"result": [...]}
    NONE = "none"  # body ignored
    RAW = "raw"  # parsed document, unmapped


# =============================================================================
# Outgoing
# =============================================================================


def to_wire(value: Any) -> Any:
    """Convert a value into JSON-compatible data, omitting None fields."""
    if value is NULL:
        return None
    if hasattr(value, "to_dict"):
        return to_wire(value.to_dict())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_wire({f.name: getattr(value, f.name) for f in dataclasses.fields(value)})
    if isinstance(value, Mapping):
        return {str(k): to_wire(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_wire(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, date):
        return value.isoformat()
    return value


def serialize(value: Any) -> bytes:
    """Serialize a request body to JSON bytes."""
    return json.dumps(to_wire(value)).encode("utf-8")


# =============================================================================
# Incoming
# =============================================================================


def parse_document(payload: bytes | None) -> Any | None:
    """
    Parse a success body.

    Returns None for an absent or blank body. Raises json.JSONDecodeError for
    a body that is not JSON.
    """
    if not payload or not payload.strip():
        return None
    return json.loads(payload.decode("utf-8"))


def _map_items(items: list[Any], parser: Parser[T] | None) -> list[Any]:
    if parser is None:
        return list(items)
    return [parser(item) for item in items]


def from_document(document: Any, shape: ResponseShape, parser: Parser[T] | None = None) -> Any:
    """
    Map a parsed document onto the requested shape.

    Args:
        document: Parsed JSON (None when the body was empty)
        shape: Expected shape of the payload
        parser: Optional function to build each object (e.g. ApiKey.from_dict)

    Returns:
        Parsed object, list of parsed items, or None

    Raises:
        ResponseShapeError: If the document does not have the requested shape
        ValidationError: If an object is expected for `parser` but the body was empty

    """
    if shape == ResponseShape.NONE:
        return None
    if shape == ResponseShape.RAW:
        return document

    if shape == ResponseShape.OBJECT:
        if document is None:
            if parser is not None:
                raise ValidationError("Response body is empty, expected a JSON object")
            return None
        if not isinstance(document, dict):
            raise ResponseShapeError(f"Expected a JSON object, got {type(document).__name__}")
        return parser(document) if parser else document

    if shape == ResponseShape.ARRAY:
        if document is None:
            return []
        if not isinstance(document, list):
            raise ResponseShapeError(f"Expected a JSON array, got {type(document).__name__}")
        return _map_items(document, parser)

    if shape == ResponseShape.ENVELOPE:
        if document is None:
            return []
        if not isinstance(document, dict):
            raise ResponseShapeError(f"Expected a result envelope, got {type(document).__name__}")
        items = document.get("result")
        if items is None:
            return []
        if not isinstance(items, list):
            raise ResponseShapeError(f"Expected 'result' to be an array, got {type(items).__name__}")
        return _map_items(items, parser)

    raise ValueError(f"Unsupported response shape: {shape}")


def deserialize(payload: bytes | None, shape: ResponseShape, parser: Parser[T] | None = None) -> Any:
    """Parse a success body and map it onto the requested shape."""
    if shape == ResponseShape.NONE:
        return None
    return from_document(parse_document(payload), shape, parser)


def require_field(data: dict[str, Any], key: str) -> Any:
    """Get a field that later operations depend on."""
    value = data.get(key)
    if value is None or value == "":
        raise ValidationError(f"Response is missing required field '{key}'", field=key)
    return value
