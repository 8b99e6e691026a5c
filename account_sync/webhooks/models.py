"""Webhook event envelope and the account record built from it."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError


class EventKind(str, Enum):
    """Account lifecycle events the service acts on, plus a catch-all."""

    ACCOUNT_CREATED = "account.created"
    ACCOUNT_UPDATED = "account.updated"
    ACCOUNT_DELETED = "account.deleted"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, event_type: str) -> EventKind:
        """Map an envelope ``type`` string to a kind (UNKNOWN if unrecognized)."""
        event_type = _PROVIDER_ALIASES.get(event_type, event_type)
        if event_type == cls.UNKNOWN.value:
            return cls.UNKNOWN
        try:
            return cls(event_type)
        except ValueError:
            return cls.UNKNOWN


# Clerk's native event names
_PROVIDER_ALIASES: dict[str, str] = {
    "user.created": EventKind.ACCOUNT_CREATED.value,
    "user.updated": EventKind.ACCOUNT_UPDATED.value,
    "user.deleted": EventKind.ACCOUNT_DELETED.value,
}


class InvalidEnvelope(ValueError):
    """Body is not JSON, or not shaped like an event envelope."""


class EmailAddress(BaseModel):
    email_address: str

    model_config = {"extra": "ignore"}


class EventData(BaseModel):
    """The ``data`` object of an account event. Unknown fields are ignored."""

    id: str | None = None
    email_addresses: list[EmailAddress] = []
    image_url: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None

    model_config = {"extra": "ignore"}


class EventEnvelope(BaseModel):
    """Outer shape shared by every event: only ``type`` is checked here."""

    type: str
    data: Any = None

    model_config = {"extra": "ignore"}


@dataclass
class AccountRecord:
    """Normalized profile fields forwarded to the account-management API."""

    external_id: str | None
    email: str | None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    photo_url: str | None = None

    @classmethod
    def from_event_data(cls, data: EventData) -> AccountRecord:
        email = data.email_addresses[0].email_address if data.email_addresses else None
        return cls(
            external_id=data.id,
            email=email,
            username=data.username,
            first_name=data.first_name,
            last_name=data.last_name,
            photo_url=data.image_url,
        )


@dataclass
class WebhookEvent:
    """A verified, parsed webhook delivery ready for dispatch.

    ``data`` is the validated account payload for the account kinds and None
    for UNKNOWN, whose payload shape is not ours to check; ``raw_data`` always
    holds the ``data`` value as delivered.
    """

    delivery_id: str
    kind: EventKind
    event_type: str
    data: EventData | None
    raw_data: Any
    body: str

    @property
    def account_id(self) -> str | None:
        if self.data is not None:
            return self.data.id or None
        if isinstance(self.raw_data, dict) and self.raw_data.get("id") is not None:
            return str(self.raw_data["id"]) or None
        return None


def parse_event(delivery_id: str, body: bytes) -> WebhookEvent:
    """Parse a verified request body into a WebhookEvent.

    Raises:
        InvalidEnvelope: body is not JSON, lacks a string ``type``, or is an
            account event whose ``data`` does not match the account fields
    """
    try:
        text = body.decode("utf-8")
        payload: Any = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidEnvelope(f"body is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise InvalidEnvelope("body is not a JSON object")

    try:
        envelope = EventEnvelope.model_validate(payload)
    except ValidationError as e:
        raise InvalidEnvelope(f"body is not an event envelope: {e.error_count()} errors") from e

    kind = EventKind.from_type(envelope.type)
    data = None
    if kind is not EventKind.UNKNOWN:
        try:
            data = EventData.model_validate(envelope.data if envelope.data is not None else {})
        except ValidationError as e:
            raise InvalidEnvelope(
                f"{envelope.type} data is not an account payload: {e.error_count()} errors"
            ) from e

    return WebhookEvent(
        delivery_id=delivery_id,
        kind=kind,
        event_type=envelope.type,
        data=data,
        raw_data=envelope.data,
        body=text,
    )
