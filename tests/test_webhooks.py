"""Tests for Event Webhook envelope parsing."""

import json
from datetime import datetime, timezone

import pytest

from sendgrid_cli.core.errors import ValidationError
from sendgrid_cli.webhooks import DeliveredEvent, Event, parse_events

DELIVERED = {
    "email": "example@test.com",
    "timestamp": 1513299569,
    "smtp-id": "<14c5d75ce93.dfd.64b469@ismtpd-555>",
    "event": "delivered",
    "category": "cat facts",
    "sg_event_id": "sg_event_id",
    "sg_message_id": "sg_message_id",
    "response": "250 OK",
    "asm_group_id": 42,
    "newsletter": {"newsletter_id": "1943530", "newsletter_send_id": "2308608", "newsletter_user_list_id": "10557865"},
    "customer_id": "c-1",
}
OPENED = {
    "email": "example@test.com",
    "timestamp": 1513299569,
    "event": "open",
    "category": ["welcome", "onboarding"],
    "sg_event_id": "open_event",
    "useragent": "Mozilla/4.0",
    "ip": "255.255.255.255",
}


def test_delivered_event_fields():
    (event,) = parse_events(json.dumps([DELIVERED]))

    assert isinstance(event, DeliveredEvent)
    assert event.email == "example@test.com"
    assert event.timestamp == datetime(2017, 12, 15, 0, 59, 29, tzinfo=timezone.utc)
    assert event.smtp_id == "<14c5d75ce93.dfd.64b469@ismtpd-555>"
    assert event.categories == ["cat facts"]
    assert event.response == "250 OK"
    assert event.asm_group_id == 42
    assert event.newsletter.send_id == "2308608"
    assert event.unique_args == {"customer_id": "c-1"}


def test_other_events_keep_the_envelope():
    (event,) = parse_events(json.dumps([OPENED]).encode())

    assert type(event) is Event
    assert event.event == "open"
    assert event.categories == ["welcome", "onboarding"]
    assert event.unique_args == {"useragent": "Mozilla/4.0", "ip": "255.255.255.255"}


def test_events_keep_payload_order():
    events = parse_events(json.dumps([OPENED, DELIVERED]))

    assert [e.event for e in events] == ["open", "delivered"]


@pytest.mark.parametrize("body", ["{not json", '{"event": "delivered"}', "[1]", b"\xff\xfe[]", b'[{"email": "\xe9"}]'])
def test_malformed_payloads(body):
    with pytest.raises(ValidationError):
        parse_events(body)


def test_empty_payload():
    assert parse_events("[]") == []
