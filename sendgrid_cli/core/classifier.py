"""
Translate non-success HTTP responses into APIError values.

SendGrid reports failures as:

    {"errors": [{"message": "...", "field": "...", "help": "..."}]}

Anything else (HTML error pages, empty bodies, truncated JSON) falls back to
"{status}: {reason}".
"""

import json
from http import HTTPStatus
from typing import Any

from sendgrid_cli.core.errors import APIError, ErrorKind


def reason_phrase(status_code: int) -> str:
    """Standard reason phrase for a status code, or "" when unknown."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


def try_parse_json(body: bytes | str | None) -> Any | None:
    """Parse a JSON body, returning None instead of raising when it is not JSON."""
    if not body:
        return None
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return None


def kind_for_status(status_code: int) -> ErrorKind:
    """Map an HTTP status code to an error kind."""
    if status_code in (401, 403):
        return ErrorKind.AUTHORIZATION
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code in (400, 422):
        return ErrorKind.VALIDATION
    if 500 <= status_code <= 599:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


def classify(status_code: int, body: bytes | str | None, reason: str | None = None) -> APIError:
    """
    Build the APIError for a non-success response.

    Args:
        status_code: HTTP status code
        body: Raw response body
        reason: Reason phrase from the response line (looked up when missing)

    Returns:
        APIError whose kind depends only on the status code when the body
        carries a well-formed errors array, and is UNKNOWN otherwise

    """
    default_message = f"{status_code}: {reason or reason_phrase(status_code)}"

    document = try_parse_json(body)
    errors = document.get("errors") if isinstance(document, dict) else None
    if not isinstance(errors, list) or not errors:
        return APIError(default_message, kind=ErrorKind.UNKNOWN, status=status_code)

    first = errors[0] if isinstance(errors[0], dict) else {}
    message = first.get("message")
    return APIError(
        str(message) if message is not None else default_message,
        kind=kind_for_status(status_code),
        status=status_code,
        field=first.get("field"),
        help=first.get("help"),
        details={"errors": errors},
    )
