"""Building blocks shared by the version specific case catalogues."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from footprint.conformance_runner.auth import random_string
from footprint.conformance_runner.models.events import EventKind
from footprint.conformance_runner.models.test_case import ApiVersion, TestCase
from footprint.conformance_runner.versions import VersionProfile, get_profile

CLOUDEVENTS_CONTENT_TYPE = "application/cloudevents+json; charset=UTF-8"
REJECTED_PRODUCT_ID = "urn:pact:null"
PUBLISHED_PF_ID = "3a6c14a7-4deb-498a-b5ea-16ce2535b576"

ASYNC_REQUEST_SUFFIX = "tc12"
REJECTED_REQUEST_SUFFIX = "tc14a"
CORRELATION_SUFFIXES = (ASYNC_REQUEST_SUFFIX, REJECTED_REQUEST_SUFFIX)

_NON_SLUG = re.compile(r"[^a-z0-9\s-]")
_SPACES = re.compile(r"[\s-]+")


def doc_anchor(name: str) -> str:
    """Anchor of a case on the expected-results page, derived from its name."""
    slug = _NON_SLUG.sub("", name.lower())
    return _SPACES.sub("-", slug).strip("-")


def correlation_id(test_run_id: str, suffix: str) -> str:
    """Event id of an outbound request whose answer comes back as a webhook."""
    return f"{test_run_id}-{suffix}"


def invalid_bearer() -> str:
    return f"Bearer very-invalid-access-token-{random_string(16)}"


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


def to_iso(value: datetime) -> str:
    """Render a UTC timestamp with millisecond precision and a Z suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, None when it is missing or malformed."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class CatalogueContext:
    """Everything the catalogues need to know about a starting run."""

    test_run_id: str
    version: ApiVersion
    base_url: str
    auth_base_url: str
    client_id: str
    client_secret: str
    auth_request_data: str
    webhook_url: str
    footprints: dict[str, Any]
    pagination_links: dict[str, str] = field(default_factory=dict)
    oid_auth_url: str | None = None

    @property
    def profile(self) -> VersionProfile:
        return get_profile(self.version)

    @property
    def first_footprint(self) -> dict[str, Any]:
        return self.footprints["data"][0]

    @property
    def token_url(self) -> str:
        return self.oid_auth_url or f"{self.auth_base_url}/auth/token"

    def cloud_event(self, kind: EventKind, event_id: str, data: dict[str, Any]) -> dict:
        """Envelope of an event sent to the system under test."""
        return {
            "type": self.profile.event_types[kind],
            "specversion": "1.0",
            "id": event_id,
            "source": self.webhook_url,
            "time": now_iso(),
            "data": data,
        }


@dataclass(frozen=True)
class CallbackCase:
    """A case whose result is delivered later by a webhook callback."""

    name: str
    test_key: str
    anchor: str
    mandatory_versions: tuple[ApiVersion, ...]

    def documentation_url(self, version: ApiVersion | str) -> str:
        return get_profile(version).doc_url(self.anchor)

    def placeholder(self, profile: VersionProfile) -> TestCase:
        """Case description that makes the executor record a PENDING result."""
        return TestCase(
            name=self.name,
            test_key=self.test_key,
            method="POST",
            endpoint=profile.events_path,
            callback=True,
            mandatory_versions=list(self.mandatory_versions),
            documentation_url=profile.doc_url(self.anchor),
        )


_CALLBACK_VERSIONS = (ApiVersion.V2_2, ApiVersion.V2_3, ApiVersion.V3_0)

FULFILLED_CASE = CallbackCase(
    name="Test Case 13: Respond to Asynchronous PCF Request",
    test_key="TESTCASE#13",
    anchor="test-case-13-respond-to-pcf-request-fulfilled-event",
    mandatory_versions=_CALLBACK_VERSIONS,
)

REJECTED_CASE = CallbackCase(
    name="Test Case 14.B: Handle Rejected PCF Request",
    test_key="TESTCASE#14.B",
    anchor="test-case-14-respond-to-pcf-request-rejected-event",
    mandatory_versions=_CALLBACK_VERSIONS,
)


def error_code_is(expected: str):
    """Condition passing when the response carries the given error code."""

    def condition(body: Any, messages: list[str]) -> bool:
        return isinstance(body, dict) and body.get("code") == expected

    return condition


def has_no_data(body: Any, messages: list[str]) -> bool:
    """Condition passing when a refused request leaked no data."""
    return not (isinstance(body, dict) and body.get("data"))


def has_no_data_or_token(body: Any, messages: list[str]) -> bool:
    return not (
        isinstance(body, dict) and (body.get("data") or body.get("access_token"))
    )


def is_empty_list(body: Any, messages: list[str]) -> bool:
    return isinstance(body, dict) and body.get("data") == []


def plain_http(url: str) -> str:
    """The same URL over plain HTTP."""
    return url.replace("https", "http", 1)
