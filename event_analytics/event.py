"""Typed analytics events.

An event is a tagged union: the `type` field names the variant, and the other
fields belong to that variant only.

    {"type": "Order Completed", "timestamp": "...", "userId": "u1", "revenue": 9.99}

Raw payloads are validated against the JSON schema before they are stored, so
this module is only used to turn stored payloads into something convenient to
compute with (and to build events on the client side).
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

EVENT_TYPE_PAGE_VIEWED = "Page Viewed"
EVENT_TYPE_ORDER_COMPLETED = "Order Completed"
EVENT_TYPE_HEARTBEAT = "Heartbeat"


class EventDecodeError(ValueError):
    """Raised when a payload cannot be turned into a typed event."""


class UnknownVariantError(EventDecodeError):
    """Raised when the `type` tag does not name a known variant."""

    def __init__(self, tag: Any) -> None:
        super().__init__(f"event: unknown discriminator tag value: {tag!r}")
        self.tag = tag


class BaseEvent(BaseModel):
    # Events are never mutated once built.
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    userId: str


class PageViewed(BaseEvent):
    type: Literal["Page Viewed"] = EVENT_TYPE_PAGE_VIEWED
    url: str


class OrderCompleted(BaseEvent):
    type: Literal["Order Completed"] = EVENT_TYPE_ORDER_COMPLETED
    revenue: float


class Heartbeat(BaseEvent):
    type: Literal["Heartbeat"] = EVENT_TYPE_HEARTBEAT


Event = Annotated[
    Union[PageViewed, OrderCompleted, Heartbeat], Field(discriminator="type")
]

# Tag -> variant model. Both directions of the codec dispatch through this.
VARIANTS: dict[str, type[BaseEvent]] = {
    EVENT_TYPE_PAGE_VIEWED: PageViewed,
    EVENT_TYPE_ORDER_COMPLETED: OrderCompleted,
    EVENT_TYPE_HEARTBEAT: Heartbeat,
}


def _variant_for(tag: Any) -> type[BaseEvent]:
    variant = VARIANTS.get(tag) if isinstance(tag, str) else None
    if variant is None:
        raise UnknownVariantError(tag)
    return variant


def event_to_dict(event: BaseEvent) -> dict[str, Any]:
    """Return the JSON-compatible form of an event: its tag plus its variant's fields."""
    variant = _variant_for(getattr(event, "type", None))
    if not isinstance(event, variant):
        raise UnknownVariantError(event.type)

    data = event.model_dump(mode="json")
    # Keep the tag first so stored documents read naturally.
    return {"type": variant.model_fields["type"].default, **data}


def encode_event(event: BaseEvent) -> str:
    """Serialize an event to JSON text.

    Raises:
        UnknownVariantError: the event's tag is not a registered variant.
    """
    return json.dumps(event_to_dict(event))


def decode_event(raw: str | bytes | bytearray | dict[str, Any]) -> Event:
    """Decode JSON text (or an already-parsed object) into the matching variant.

    The tag is read first; the remaining fields are then validated against that
    variant only. Unknown extra fields are ignored.

    Raises:
        UnknownVariantError: `type` is missing or names no variant.
        EventDecodeError: malformed JSON, or fields that do not fit the variant.
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            obj = json.loads(raw)
        except ValueError as e:
            raise EventDecodeError(f"event: invalid JSON: {e}") from e
    else:
        obj = raw

    if not isinstance(obj, dict):
        raise EventDecodeError("event: payload must be a JSON object")

    variant = _variant_for(obj.get("type"))
    try:
        return variant.model_validate(obj)
    except ValidationError as e:
        raise EventDecodeError(f"event: invalid {variant.__name__} payload: {e}") from e
