"""
Parsing of Event Webhook payloads.

SendGrid POSTs a JSON array of events. Every event shares an envelope
(recipient, timestamp, event type, ids, categories); only the `delivered`
event's extra fields are mapped here, other types stay generic Events.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sendgrid_cli.core.errors import ValidationError
from sendgrid_cli.core.types import from_timestamp

ENVELOPE_FIELDS = frozenset(
    {
        "email",
        "timestamp",
        "event",
        "sg_event_id",
        "sg_message_id",
        "smtp-id",
        "category",
    }
)


@dataclass
class Event:
    """Fields common to every webhook event."""

    email: str
    event: str
    timestamp: datetime | None = None
    sg_event_id: str | None = None
    sg_message_id: str | None = None
    smtp_id: str | None = None
    categories: list[str] = field(default_factory=list)
    unique_args: dict[str, Any] = field(default_factory=dict)

    # Keys consumed by the subclass, so they are not reported as unique args
    extra_fields = frozenset()

    @classmethod
    def _envelope(cls, data: dict[str, Any]) -> dict[str, Any]:
        category = data.get("category")
        if category is None:
            categories = []
        elif isinstance(category, list):
            categories = [str(c) for c in category]
        else:
            categories = [str(category)]

        known = ENVELOPE_FIELDS | cls.extra_fields
        return {
            "email": data.get("email", ""),
            "event": data.get("event", ""),
            "timestamp": from_timestamp(data.get("timestamp")),
            "sg_event_id": data.get("sg_event_id"),
            "sg_message_id": data.get("sg_message_id"),
            "smtp_id": data.get("smtp-id"),
            "categories": categories,
            "unique_args": {k: v for k, v in data.items() if k not in known},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Event":
        """Create from a webhook event dict."""
        return cls(**cls._envelope(data))


@dataclass
class Newsletter:
    id: str | None = None
    send_id: str | None = None
    user_list_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Newsletter":
        return cls(
            id=data.get("newsletter_id"),
            send_id=data.get("newsletter_send_id"),
            user_list_id=data.get("newsletter_user_list_id"),
        )


@dataclass
class DeliveredEvent(Event):
    """The receiving server accepted the message."""

    response: str | None = None
    asm_group_id: int | None = None
    newsletter: Newsletter | None = None

    extra_fields = frozenset({"response", "asm_group_id", "newsletter"})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeliveredEvent":
        newsletter = data.get("newsletter")
        return cls(
            **cls._envelope(data),
            response=data.get("response"),
            asm_group_id=data.get("asm_group_id"),
            newsletter=Newsletter.from_dict(newsletter) if isinstance(newsletter, dict) else None,
        )


EVENT_TYPES: dict[str, type[Event]] = {
    "delivered": DeliveredEvent,
}


def parse_event(data: dict[str, Any]) -> Event:
    """Parse one event, choosing the class from its `event` field."""
    event_class = EVENT_TYPES.get(str(data.get("event", "")), Event)
    return event_class.from_dict(data)


def parse_events(body: bytes | str) -> list[Event]:
    """
    Parse an Event Webhook request body.

    Args:
        body: Raw POST body (a JSON array of events)

    Returns:
        List of events, in payload order

    Raises:
        ValidationError: If the body is not a JSON array of objects

    """
    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        data = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Invalid webhook payload: {e}")

    if not isinstance(data, list):
        raise ValidationError("Webhook payload must be a JSON array of events")

    events = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValidationError(f"Webhook event {index} is not an object", details={"index": index})
        events.append(parse_event(item))
    return events
