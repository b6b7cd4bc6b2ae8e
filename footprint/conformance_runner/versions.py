"""Per-version behaviour of the footprint exchange API, looked up once."""

from dataclasses import dataclass
from typing import Any

from footprint.conformance_runner import schemas
from footprint.conformance_runner.errors import ValidationError
from footprint.conformance_runner.models.events import (
    V2_EVENT_TYPES,
    V3_EVENT_TYPES,
    EventKind,
)
from footprint.conformance_runner.models.test_case import ApiVersion

DOCS_ROOT = "https://docs.carbon-transparency.org/pact-conformance-service"


@dataclass(frozen=True)
class VersionProfile:
    """Everything that differs between version families."""

    version: ApiVersion
    family: str
    events_path: str
    footprints_path: str
    event_types: dict[EventKind, str]
    list_footprints_schema: dict[str, Any]
    single_footprint_schema: dict[str, Any]
    fulfilled_event_schema: dict[str, Any]
    docs_page: str

    def doc_url(self, anchor: str) -> str:
        """Documentation link for a test case anchor on the family page."""
        return f"{self.docs_page}#{anchor}"


def _v2(version: ApiVersion) -> VersionProfile:
    return VersionProfile(
        version=version,
        family="2",
        events_path="/2/events",
        footprints_path="/2/footprints",
        event_types=V2_EVENT_TYPES,
        list_footprints_schema=schemas.list_footprints_schema(
            schemas.V2_PRODUCT_FOOTPRINT
        ),
        single_footprint_schema=schemas.single_footprint_schema(
            schemas.V2_PRODUCT_FOOTPRINT
        ),
        fulfilled_event_schema=schemas.fulfilled_event_schema(
            schemas.V2_PRODUCT_FOOTPRINT
        ),
        docs_page=f"{DOCS_ROOT}/v2-test-cases-expected-results.html",
    )


def _v3(version: ApiVersion) -> VersionProfile:
    return VersionProfile(
        version=version,
        family="3",
        events_path="/3/events",
        footprints_path="/3/footprints",
        event_types=V3_EVENT_TYPES,
        list_footprints_schema=schemas.list_footprints_schema(
            schemas.V3_PRODUCT_FOOTPRINT
        ),
        single_footprint_schema=schemas.single_footprint_schema(
            schemas.V3_PRODUCT_FOOTPRINT
        ),
        fulfilled_event_schema=schemas.fulfilled_event_schema(
            schemas.V3_PRODUCT_FOOTPRINT
        ),
        docs_page=f"{DOCS_ROOT}/v3-test-cases-expected-results.html",
    )


PROFILES: dict[ApiVersion, VersionProfile] = {
    ApiVersion.V2_0: _v2(ApiVersion.V2_0),
    ApiVersion.V2_1: _v2(ApiVersion.V2_1),
    ApiVersion.V2_2: _v2(ApiVersion.V2_2),
    ApiVersion.V2_3: _v2(ApiVersion.V2_3),
    ApiVersion.V3_0: _v3(ApiVersion.V3_0),
}


def parse_version(version: str | ApiVersion) -> ApiVersion:
    """Parse a version string such as ``"V2.3"`` into an ApiVersion."""
    try:
        return ApiVersion(version)
    except ValueError:
        supported = ", ".join(v.value for v in ApiVersion)
        raise ValidationError(
            f"Unsupported version: {version}. Must be one of: {supported}"
        )


def get_profile(version: str | ApiVersion) -> VersionProfile:
    """Return the behaviour profile of a version."""
    return PROFILES[parse_version(version)]
