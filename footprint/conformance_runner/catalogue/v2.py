"""Test cases for the V2.x family of the footprint exchange API."""

from typing import Any
from urllib.parse import quote
from uuid import uuid4

from footprint.conformance_runner import schemas
from footprint.conformance_runner.auth import (
    get_correct_auth_headers,
    get_incorrect_auth_headers,
    random_string,
)
from footprint.conformance_runner.catalogue.common import (
    ASYNC_REQUEST_SUFFIX,
    CLOUDEVENTS_CONTENT_TYPE,
    FULFILLED_CASE,
    PUBLISHED_PF_ID,
    REJECTED_CASE,
    REJECTED_PRODUCT_ID,
    REJECTED_REQUEST_SUFFIX,
    CatalogueContext,
    correlation_id,
    doc_anchor,
    error_code_is,
    has_no_data,
    has_no_data_or_token,
    invalid_bearer,
    plain_http,
)
from footprint.conformance_runner.models.events import EventKind
from footprint.conformance_runner.models.test_case import ApiVersion, TestCase

ALL_V2 = [ApiVersion.V2_0, ApiVersion.V2_1, ApiVersion.V2_2, ApiVersion.V2_3]
EVENTS_V2 = [ApiVersion.V2_2, ApiVersion.V2_3]


def _case(ctx: CatalogueContext, name: str, test_key: str, **kwargs: Any) -> TestCase:
    return TestCase(
        name=name,
        test_key=test_key,
        documentation_url=ctx.profile.doc_url(doc_anchor(name)),
        **kwargs,
    )


def build_test_cases(ctx: CatalogueContext) -> list[TestCase]:
    """Build the ordered V2 case list for a run."""
    profile = ctx.profile
    footprint = ctx.first_footprint
    footprint_id = footprint["id"]
    all_footprints = ctx.footprints["data"]
    events = profile.events_path
    correct_auth = get_correct_auth_headers(
        ctx.base_url, ctx.client_id, ctx.client_secret
    )
    cloudevents = {"Content-Type": CLOUDEVENTS_CONTENT_TYPE}

    def matches_requested(body: Any, messages: list[str]) -> bool:
        return body["data"]["id"] == footprint_id

    def same_count(body: Any, messages: list[str]) -> bool:
        return len(body["data"]) == len(all_footprints)

    created = footprint.get("created", "")

    def created_after(body: Any, messages: list[str]) -> bool:
        return all(fp.get("created", "") >= created for fp in body["data"])

    pagination = next(iter(ctx.pagination_links.values()), None)
    published_data = {"pfIds": [PUBLISHED_PF_ID]}

    return [
        _case(
            ctx,
            "Test Case 1: Obtain auth token with valid credentials",
            "TESTCASE#1",
            method="POST",
            custom_url=ctx.token_url,
            request_data=ctx.auth_request_data,
            expected_status_codes=[200],
            response_schema=schemas.AUTH_TOKEN_RESPONSE,
            headers=correct_auth,
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 2: Obtain auth token with invalid credentials",
            "TESTCASE#2",
            method="POST",
            custom_url=ctx.token_url,
            request_data=ctx.auth_request_data,
            expected_status_codes=[400, 401],
            headers=get_incorrect_auth_headers(ctx.base_url),
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 3: Get PCF using GetFootprint",
            "TESTCASE#3",
            method="GET",
            endpoint=f"{profile.footprints_path}/{footprint_id}",
            expected_status_codes=[200],
            response_schema=profile.single_footprint_schema,
            condition=matches_requested,
            condition_error_message=(
                "Returned footprint does not match the requested footprint "
                f"with id {footprint_id}"
            ),
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 4: Get all PCFs using ListFootprints",
            "TESTCASE#4",
            method="GET",
            endpoint=profile.footprints_path,
            expected_status_codes=[200, 202],
            response_schema=profile.list_footprints_schema,
            condition=same_count,
            condition_error_message="Number of footprints does not match",
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 5: Pagination link implementation of Action ListFootprints",
            "TESTCASE#5",
            method="GET",
            endpoint=pagination.replace(ctx.base_url, "") if pagination else None,
            expected_status_codes=[200],
            response_schema=schemas.SIMPLE_LIST_RESPONSE,
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 6: Attempt ListFootPrints with Invalid Token",
            "TESTCASE#6",
            method="GET",
            endpoint=profile.footprints_path,
            expected_status_codes=[400, 401],
            condition=error_code_is("BadRequest"),
            condition_error_message="Expected error code BadRequest in response.",
            headers={"Authorization": invalid_bearer()},
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 7: Attempt GetFootprint with Invalid Token",
            "TESTCASE#7",
            method="GET",
            endpoint=f"{profile.footprints_path}/{footprint_id}",
            expected_status_codes=[400, 401],
            condition=error_code_is("BadRequest"),
            condition_error_message="Expected error code BadRequest in response.",
            headers={"Authorization": invalid_bearer()},
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 8: Attempt GetFootprint with Non-Existent PfId",
            "TESTCASE#8",
            method="GET",
            endpoint=(
                f"{profile.footprints_path}/random-string-as-id-{random_string(16)}"
            ),
            expected_status_codes=[400, 404],
            condition=error_code_is("NoSuchFootprint"),
            condition_error_message="Expected error code NoSuchFootprint in response.",
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 9: Attempt Authentication through HTTP (non-HTTPS)",
            "TESTCASE#9",
            method="POST",
            custom_url=plain_http(ctx.token_url),
            request_data=ctx.auth_request_data,
            headers=correct_auth,
            expect_http_error=True,
            condition=has_no_data_or_token,
            condition_error_message=(
                "Expected response to not include data or access_token property"
            ),
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 10: Attempt ListFootprints through HTTP (non-HTTPS)",
            "TESTCASE#10",
            method="GET",
            custom_url=plain_http(f"{ctx.base_url}{profile.footprints_path}"),
            expect_http_error=True,
            condition=has_no_data,
            condition_error_message="Expected response to not include data property",
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 11: Attempt GetFootprint through HTTP (non-HTTPS)",
            "TESTCASE#11",
            method="GET",
            custom_url=plain_http(
                f"{ctx.base_url}{profile.footprints_path}/{footprint_id}"
            ),
            expect_http_error=True,
            condition=has_no_data,
            condition_error_message="Expected response to not include data property",
            mandatory_versions=ALL_V2,
        ),
        _case(
            ctx,
            "Test Case 12: Receive Asynchronous PCF Request",
            "TESTCASE#12",
            method="POST",
            endpoint=events,
            headers=cloudevents,
            expected_status_codes=[200],
            request_data=ctx.cloud_event(
                EventKind.CREATED,
                correlation_id(ctx.test_run_id, ASYNC_REQUEST_SUFFIX),
                {
                    "pf": {"productIds": footprint.get("productIds", [])},
                    "comment": "Please send PCF data for this year.",
                },
            ),
            mandatory_versions=EVENTS_V2,
        ),
        FULFILLED_CASE.placeholder(profile),
        _case(
            ctx,
            "Test Case 14.A: Send Asynchronous Request to be Rejected",
            "TESTCASE#14.A",
            method="POST",
            endpoint=events,
            headers=cloudevents,
            expected_status_codes=[200],
            request_data=ctx.cloud_event(
                EventKind.CREATED,
                correlation_id(ctx.test_run_id, REJECTED_REQUEST_SUFFIX),
                {
                    "pf": {"productIds": [REJECTED_PRODUCT_ID]},
                    "comment": "Please send PCF data for this year.",
                },
            ),
            mandatory_versions=EVENTS_V2,
        ),
        REJECTED_CASE.placeholder(profile),
        _case(
            ctx,
            "Test Case 15: Receive Notification of PCF Update (Published Event)",
            "TESTCASE#15",
            method="POST",
            endpoint=events,
            headers=cloudevents,
            expected_status_codes=[200],
            request_data=ctx.cloud_event(
                EventKind.PUBLISHED, str(uuid4()), published_data
            ),
            mandatory_versions=EVENTS_V2,
        ),
        _case(
            ctx,
            "Test Case 16: Attempt Action Events with Invalid Token",
            "TESTCASE#16",
            method="POST",
            endpoint=events,
            headers={**cloudevents, "Authorization": invalid_bearer()},
            expected_status_codes=[400, 401],
            request_data=ctx.cloud_event(
                EventKind.PUBLISHED, str(uuid4()), published_data
            ),
            condition=error_code_is("BadRequest"),
            condition_error_message="Expected error code BadRequest in response.",
            mandatory_versions=EVENTS_V2,
        ),
        _case(
            ctx,
            "Test Case 17: Attempt Action Events through HTTP (non-HTTPS)",
            "TESTCASE#17",
            method="POST",
            custom_url=plain_http(f"{ctx.base_url}{events}"),
            headers=cloudevents,
            request_data=ctx.cloud_event(
                EventKind.PUBLISHED, str(uuid4()), published_data
            ),
            expect_http_error=True,
            condition=has_no_data,
            condition_error_message="Expected response to not include data property",
            mandatory_versions=EVENTS_V2,
        ),
        _case(
            ctx,
            "Test Case 18: OpenId Connect-based Authentication Flow",
            "TESTCASE#18",
            method="POST",
            custom_url=ctx.oid_auth_url,
            request_data=ctx.auth_request_data,
            expected_status_codes=[200],
            response_schema=schemas.AUTH_TOKEN_RESPONSE,
            headers=correct_auth,
        ),
        _case(
            ctx,
            "Test Case 19: OpenId connect-based authentication flow with "
            "incorrect credentials",
            "TESTCASE#19",
            method="POST",
            custom_url=ctx.oid_auth_url,
            request_data=ctx.auth_request_data,
            expected_status_codes=[400, 401],
            headers=get_incorrect_auth_headers(ctx.base_url),
        ),
        _case(
            ctx,
            "Test Case 20: Get Filtered List of Footprints",
            "TESTCASE#20",
            method="GET",
            endpoint=(
                f"{profile.footprints_path}?$filter="
                + quote(f"created ge '{created}'", safe="")
            ),
            expected_status_codes=[200],
            response_schema=schemas.SIMPLE_LIST_RESPONSE,
            condition=created_after,
            condition_error_message=(
                "One or more footprints do not match the condition: "
                f"'created date >= {created}'"
            ),
        ),
        _case(
            ctx,
            "Test Case 21: Failed to Receive Notification of PCF Update "
            "(Published Event) - Malformed Request",
            "TESTCASE#21",
            method="POST",
            endpoint=events,
            headers=cloudevents,
            expected_status_codes=[400],
            request_data=ctx.cloud_event(
                EventKind.PUBLISHED, str(uuid4()), {"pfIds": ["urn:gtin:4712345060507"]}
            ),
            mandatory_versions=EVENTS_V2,
        ),
    ]
