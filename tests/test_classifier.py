"""Tests for error classification of non-success responses."""

import json

import pytest

from sendgrid_cli.core.classifier import classify, kind_for_status, try_parse_json
from sendgrid_cli.core.errors import ErrorKind


def _errors(*entries: dict) -> bytes:
    return json.dumps({"errors": list(entries)}).encode()


@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (400, ErrorKind.VALIDATION),
        (401, ErrorKind.AUTHORIZATION),
        (403, ErrorKind.AUTHORIZATION),
        (404, ErrorKind.NOT_FOUND),
        (409, ErrorKind.UNKNOWN),
        (422, ErrorKind.VALIDATION),
        (429, ErrorKind.RATE_LIMITED),
        (500, ErrorKind.SERVER_ERROR),
        (503, ErrorKind.SERVER_ERROR),
    ],
)
def test_first_error_message_with_kind_from_status(status, kind):
    error = classify(status, _errors({"message": "boom"}, {"message": "second"}))

    assert error.message == "boom"
    assert error.kind == kind
    assert error.status == status


def test_field_and_help_are_carried():
    error = classify(
        400,
        _errors({"message": "name is required", "field": "name", "help": "https://sendgrid.com/docs"}),
    )

    assert error.kind == ErrorKind.VALIDATION
    assert error.field == "name"
    assert error.help == "https://sendgrid.com/docs"
    assert error.details["errors"][0]["field"] == "name"


@pytest.mark.parametrize(
    "body",
    [
        b"",
        None,
        b"<html>Bad Gateway</html>",
        b'{"errors": [',
        b'{"error": "something"}',
        b'{"errors": []}',
        b'{"errors": "nope"}',
        b"[1, 2, 3]",
        b"\xff\xfe",
    ],
)
def test_fallback_message_for_unusable_bodies(body):
    error = classify(502, body)

    assert error.message == "502: Bad Gateway"
    assert error.kind == ErrorKind.UNKNOWN
    assert error.status == 502


def test_fallback_uses_response_reason_when_given():
    error = classify(404, b"", reason="Not Here")

    assert error.message == "404: Not Here"
    assert error.kind == ErrorKind.UNKNOWN


def test_fallback_for_unknown_status_code():
    error = classify(599, None)

    assert error.message == "599: "
    assert error.kind == ErrorKind.UNKNOWN


def test_entry_without_message_uses_default_text():
    error = classify(400, _errors({"field": "email"}))

    assert error.message == "400: Bad Request"
    assert error.kind == ErrorKind.VALIDATION
    assert error.field == "email"


def test_try_parse_json_never_raises():
    assert try_parse_json(b'{"a": 1}') == {"a": 1}
    assert try_parse_json("not json") is None
    assert try_parse_json(b"") is None


def test_rate_limited_and_server_errors_are_retryable():
    assert classify(429, _errors({"message": "slow down"})).is_retryable
    assert classify(500, _errors({"message": "oops"})).is_retryable
    assert not classify(400, _errors({"message": "bad"})).is_retryable
    assert kind_for_status(302) == ErrorKind.UNKNOWN
