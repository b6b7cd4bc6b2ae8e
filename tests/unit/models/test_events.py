"""Tests for event type classification."""

import pytest

from footprint.conformance_runner.models.events import EventKind, classify_event_type


@pytest.mark.parametrize(
    ("event_type", "kind"),
    [
        ("org.wbcsd.pathfinder.ProductFootprintRequest.Fulfilled.v1", EventKind.FULFILLED),
        ("org.wbcsd.pathfinder.ProductFootprintRequest.Rejected.v1", EventKind.REJECTED),
        ("org.wbcsd.pathfinder.ProductFootprint.Published.v1", EventKind.PUBLISHED),
        ("org.wbcsd.pact.ProductFootprint.RequestFulfilledEvent.3", EventKind.FULFILLED),
        ("org.wbcsd.pact.ProductFootprint.RequestRejectedEvent.3", EventKind.REJECTED),
        ("org.wbcsd.pact.ProductFootprint.RequestCreatedEvent.3", EventKind.CREATED),
    ],
)
def test_classify_known_types(event_type: str, kind: EventKind) -> None:
    """Both version families map to the same event kinds."""
    assert classify_event_type(event_type) == kind


@pytest.mark.parametrize("event_type", ["unknown.type", "", None, 42])
def test_classify_unknown_types(event_type: object) -> None:
    """Unknown or non-string types are not classified."""
    assert classify_event_type(event_type) is None
