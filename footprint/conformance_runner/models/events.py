"""Event types exchanged through the webhook channel."""

from enum import Enum


class EventKind(str, Enum):
    """Version independent classification of an event type."""

    CREATED = "created"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"
    PUBLISHED = "published"


V2_EVENT_TYPES: dict[EventKind, str] = {
    EventKind.CREATED: "org.wbcsd.pathfinder.ProductFootprintRequest.Created.v1",
    EventKind.FULFILLED: "org.wbcsd.pathfinder.ProductFootprintRequest.Fulfilled.v1",
    EventKind.REJECTED: "org.wbcsd.pathfinder.ProductFootprintRequest.Rejected.v1",
    EventKind.PUBLISHED: "org.wbcsd.pathfinder.ProductFootprint.Published.v1",
}

V3_EVENT_TYPES: dict[EventKind, str] = {
    EventKind.CREATED: "org.wbcsd.pact.ProductFootprint.RequestCreatedEvent.3",
    EventKind.FULFILLED: "org.wbcsd.pact.ProductFootprint.RequestFulfilledEvent.3",
    EventKind.REJECTED: "org.wbcsd.pact.ProductFootprint.RequestRejectedEvent.3",
    EventKind.PUBLISHED: "org.wbcsd.pact.ProductFootprint.PublishedEvent.3",
}

_KIND_BY_TYPE: dict[str, EventKind] = {
    wire_type: kind
    for table in (V2_EVENT_TYPES, V3_EVENT_TYPES)
    for kind, wire_type in table.items()
}


def classify_event_type(event_type: object) -> EventKind | None:
    """Map a wire event type of either version family to its kind.

    Returns None for types this runner does not know.
    """
    if not isinstance(event_type, str):
        return None
    return _KIND_BY_TYPE.get(event_type)
