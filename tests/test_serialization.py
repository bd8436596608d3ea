"""Tests for the JSON serialization adapter."""

import json
from dataclasses import dataclass

import pytest

from sendgrid_cli.core.errors import ResponseShapeError, ValidationError
from sendgrid_cli.core.serialization import NULL, ResponseShape, deserialize, serialize, to_wire
from sendgrid_cli.core.types import ApiKey, DomainUpdate, SpamReport


@pytest.mark.parametrize("payload", [b'{"result": []}', b"{}", b'{"result": null}', b"", None])
def test_empty_envelope_is_an_empty_list(payload):
    assert deserialize(payload, ResponseShape.ENVELOPE, ApiKey.from_dict) == []


@pytest.mark.parametrize("payload", [b"[]", b"", b"  \n", None])
def test_empty_bare_array_is_an_empty_list(payload):
    assert deserialize(payload, ResponseShape.ARRAY, SpamReport.from_dict) == []


def test_envelope_items_are_parsed():
    payload = json.dumps(
        {
            "result": [
                {"name": "A New Hope", "api_key_id": "xxxxxxxx"},
                {"name": "Another key", "api_key_id": "yyyyyyyy"},
            ]
        }
    ).encode()

    keys = deserialize(payload, ResponseShape.ENVELOPE, ApiKey.from_dict)

    assert [k.key_id for k in keys] == ["xxxxxxxx", "yyyyyyyy"]
    assert keys[0].name == "A New Hope"
    assert keys[0].scopes == []


def test_unknown_fields_are_ignored_and_missing_fields_default():
    key = deserialize(
        b'{"api_key_id": "k", "brand_new_field": {"nested": true}}',
        ResponseShape.OBJECT,
        ApiKey.from_dict,
    )

    assert key == ApiKey(key_id="k", name="", key=None, scopes=[])


def test_missing_required_field_is_a_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        deserialize(b'{"name": "no id"}', ResponseShape.OBJECT, ApiKey.from_dict)

    assert exc_info.value.field == "api_key_id"


def test_empty_body_cannot_build_an_object():
    with pytest.raises(ValidationError):
        deserialize(b"", ResponseShape.OBJECT, ApiKey.from_dict)


@pytest.mark.parametrize(
    ("payload", "shape"),
    [
        (b"[]", ResponseShape.OBJECT),
        (b"{}", ResponseShape.ARRAY),
        (b"[]", ResponseShape.ENVELOPE),
        (b'{"result": {"a": 1}}', ResponseShape.ENVELOPE),
    ],
)
def test_shape_mismatch_raises(payload, shape):
    with pytest.raises(ResponseShapeError):
        deserialize(payload, shape)


def test_none_and_raw_shapes():
    assert deserialize(b"not even json", ResponseShape.NONE) is None
    assert deserialize(b'{"result": [1]}', ResponseShape.RAW) == {"result": [1]}
    assert deserialize(b"", ResponseShape.OBJECT) is None


def test_invalid_json_raises_decode_error():
    with pytest.raises(json.JSONDecodeError):
        deserialize(b"{oops", ResponseShape.OBJECT)


def test_unset_optional_field_round_trips_as_absent():
    original = ApiKey(key_id="xxxxxxxx", name="My API Key")

    payload = serialize(original)

    assert json.loads(payload) == {"api_key_id": "xxxxxxxx", "name": "My API Key"}
    assert deserialize(payload, ResponseShape.OBJECT, ApiKey.from_dict) == original


def test_explicit_null_is_distinct_from_unset():
    assert json.loads(serialize(DomainUpdate(default=True))) == {"default": True}
    assert json.loads(serialize(DomainUpdate(default=NULL))) == {"default": None}
    assert json.loads(serialize(DomainUpdate())) == {}


def test_to_wire_handles_nested_values():
    @dataclass
    class Inner:
        value: int
        note: str | None = None

    assert to_wire({"items": (Inner(1), Inner(2, "x")), "skip": None, "keep": [None]}) == {
        "items": [{"value": 1}, {"value": 2, "note": "x"}],
        "keep": [None],
    }


def test_null_sentinel_is_falsy_singleton():
    assert not NULL
    assert repr(NULL) == "NULL"
    assert type(NULL)() is NULL
