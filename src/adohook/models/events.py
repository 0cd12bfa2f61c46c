"""Pydantic models for ADO service-hook notifications and events.

Wire JSON is camelCase. Unknown fields are ignored so that new ADO releases do
not break decoding, and every field that is not needed to identify or route
an event is optional.

https://learn.microsoft.com/en-us/rest/api/azure/devops/hooks/notifications/get?view=azure-devops-rest-7.1
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

from adohook.errors.exceptions import MalformedPayload

# ADO emits .NET tick precision (7 fractional digits); datetime holds 6.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _trim_fraction(value: Any) -> Any:
    if isinstance(value, str):
        return _FRACTION_RE.sub(r"\1", value, count=1)
    return value


AdoDateTime = Annotated[datetime, BeforeValidator(_trim_fraction)]


class WireModel(BaseModel):
    """Immutable camelCase model that tolerates unknown fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Link(WireModel):
    href: str


class Container(WireModel):
    id: uuid.UUID
    base_url: str | None = None


class Message(WireModel):
    """Human-readable rendering of an event. Decorative only."""

    text: str | None = None
    html: str | None = None
    markdown: str | None = None


class Event(WireModel):
    """The semantic payload describing what happened.

    ``subscription_id`` and ``notification_id`` are only present on the
    variant delivered directly to the hook endpoint. They stay ``None`` when
    absent: verification depends on telling "absent" apart from "empty".
    """

    id: uuid.UUID
    subscription_id: uuid.UUID | None = None
    notification_id: int | None = None
    event_type: str
    publisher_id: str | None = None
    message: Message | None = None
    detailed_message: Message | None = None
    # Shape depends on event_type; see adohook.models.resources.
    resource: Any = None
    resource_version: str | None = None
    resource_containers: dict[str, Container] | None = None
    created_date: AdoDateTime | None = None


class NotificationDetails(WireModel):
    event_type: str | None = None
    # Documented as always present; ADO omits it in practice.
    event: Event | None = None
    publisher_id: str | None = None
    consumer_id: str | None = None
    consumer_action_id: str | None = None
    queued_date: AdoDateTime | None = None
    request_attempts: int | None = None


class Notification(WireModel):
    """Delivery record ADO keeps for each subscription event."""

    id: int
    subscription_id: uuid.UUID | None = None
    subscriber_id: uuid.UUID | None = None
    event_id: uuid.UUID
    status: str | None = None
    result: str | None = None
    created_date: AdoDateTime | None = None
    modified_date: AdoDateTime | None = None
    details: NotificationDetails | None = None

    @model_validator(mode="after")
    def _event_id_matches_nested_event(self) -> Notification:
        nested = self.details.event if self.details else None
        if nested is not None and nested.id != self.event_id:
            raise ValueError(
                f"eventId {self.event_id} does not match nested event id {nested.id}"
            )
        return self


def _validate(model: type[WireModel], data: str | bytes | dict) -> Any:
    if isinstance(data, (str, bytes, bytearray)):
        return model.model_validate_json(data)
    return model.model_validate(data)


def decode_event(data: str | bytes | dict, *, check_resource: bool = True) -> Event:
    """Decode an inbound event.

    Raises:
        MalformedPayload: a required field is missing or ill-typed.
        ResourcePayloadMismatch: ``resource`` does not fit the event type
            (only when ``check_resource`` is set).
    """
    try:
        event = _validate(Event, data)
    except ValidationError as exc:
        raise MalformedPayload(
            "failed to decode event",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc

    if check_resource and event.resource is not None:
        from adohook.models.resources import decode_resource

        decode_resource(event.event_type, event.resource)
    return event


def decode_notification(data: str | bytes | dict) -> Notification:
    """Decode a notification record.

    Raises:
        MalformedPayload: the document is not a Notification.
    """
    try:
        return _validate(Notification, data)
    except ValidationError as exc:
        raise MalformedPayload(
            "failed to decode notification",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc


def encode_event(event: Event) -> dict[str, Any]:
    """Encode an event back to wire JSON, keeping only fields that were set."""
    return event.model_dump(mode="json", by_alias=True, exclude_unset=True)
