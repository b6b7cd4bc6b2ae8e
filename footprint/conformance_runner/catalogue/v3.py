"""Test cases for the V3.x family of the footprint exchange API."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
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
    is_empty_list,
    parse_iso,
    plain_http,
    to_iso,
)
from footprint.conformance_runner.models.events import EventKind
from footprint.conformance_runner.models.test_case import ApiVersion, TestCase

logger = logging.getLogger(__name__)

V3 = [ApiVersion.V3_0]
FAR_PAST = "1900-01-01T00:00:00Z"
FAR_FUTURE = "2099-12-31T23:59:59Z"


def _plus_years(value: datetime, years: int) -> datetime:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # Feb 29 into a non-leap year
        return value.replace(year=value.year + years, day=28)


def _validity(footprint: dict[str, Any]) -> tuple[datetime, datetime] | None:
    """Validity period of a footprint, falling back to the reference period.

    Without explicit validity dates a footprint is valid for three years
    after the end of its reference period.
    """
    start = parse_iso(footprint.get("validityPeriodStart"))
    end = parse_iso(footprint.get("validityPeriodEnd"))
    if start is not None and end is not None:
        return start, end

    pcf = footprint.get("pcf") or {}
    reference_end = parse_iso(pcf.get("referencePeriodEnd"))
    if reference_end is None:
        return None
    return reference_end, _plus_years(reference_end, 3)


@dataclass(frozen=True)
class FilterParameters:
    """Filter values derived from the first reference footprint."""

    id: str
    product_id: str
    product_ids: list[str]
    company_id: str
    geography: str
    classification: str
    valid_on: str
    valid_after: str
    valid_before: str
    status: str


def get_filter_parameters(footprints: dict[str, Any]) -> FilterParameters:
    """Derive the filter values the V3 filtering cases query with.

    Raises:
        RuntimeError: If the reference footprint lacks the required fields

    """
    data = footprints.get("data") or []
    if not data:
        raise RuntimeError(
            "Invalid footprints data: Missing required data structure. "
            "Please check the API response."
        )
    first = data[0]

    validity = _validity(first)
    if validity is None:
        raise RuntimeError(
            "Invalid footprints data: Missing validityPeriod dates and "
            "pcf.referencePeriodEnd. Please check the API response."
        )
    start, end = validity
    if parse_iso(first.get("validityPeriodStart")) and parse_iso(
        first.get("validityPeriodEnd")
    ):
        valid_on = first["validityPeriodStart"]
    else:
        valid_on = first["pcf"]["referencePeriodEnd"]

    pcf = first.get("pcf") or {}
    classifications = first.get("productClassifications") or []
    product_ids = first.get("productIds") or []
    company_ids = first.get("companyIds") or []
    return FilterParameters(
        id=first["id"],
        product_id=product_ids[0] if product_ids else "",
        product_ids=product_ids,
        company_id=company_ids[0] if company_ids else "",
        geography=(
            pcf.get("geographyCountry")
            or pcf.get("geographyRegionOrSubregion")
            or pcf.get("geographyCountrySubdivision")
            or ""
        ),
        classification=classifications[0] if classifications else "",
        valid_on=valid_on,
        valid_after=to_iso(start - timedelta(days=1)),
        valid_before=to_iso(end + timedelta(days=1)),
        status=first.get("status", ""),
    )


def _case(ctx: CatalogueContext, name: str, test_key: str, **kwargs: Any) -> TestCase:
    return TestCase(
        name=name,
        test_key=test_key,
        documentation_url=ctx.profile.doc_url(kwargs.pop("anchor", doc_anchor(name))),
        **kwargs,
    )


def _filter_case(
    ctx: CatalogueContext,
    number: int,
    label: str,
    query: str,
    condition: Any,
    message: str,
    negative: bool = False,
    anchor: str | None = None,
) -> TestCase:
    name = (
        f"Test Case {number}: V3 Filtering Functionality: "
        f"Get Filtered List of Footprints by {label}"
    )
    if negative:
        name += " (negative test case)"
    return _case(
        ctx,
        name,
        f"TESTCASE#{number}",
        method="GET",
        endpoint=f"{ctx.profile.footprints_path}?{query}",
        expected_status_codes=[200],
        response_schema=(
            schemas.EMPTY_LIST_RESPONSE if negative else schemas.SIMPLE_LIST_RESPONSE
        ),
        condition=condition,
        condition_error_message=message,
        mandatory_versions=V3,
        anchor=anchor or doc_anchor(name),
    )


def _all(predicate):
    def condition(body: Any, messages: list[str]) -> bool:
        return all(predicate(fp) for fp in body["data"])

    return condition


def build_test_cases(ctx: CatalogueContext) -> list[TestCase]:
    """Build the ordered V3 case list for a run."""
    profile = ctx.profile
    params = get_filter_parameters(ctx.footprints)
    all_footprints = ctx.footprints["data"]
    events = profile.events_path
    correct_auth = get_correct_auth_headers(
        ctx.base_url, ctx.client_id, ctx.client_secret
    )
    cloudevents = {"Content-Type": CLOUDEVENTS_CONTENT_TYPE}
    pagination = next(iter(ctx.pagination_links.values()), None)
    published_data = {"pfIds": ["urn:gtin:4712345060507"]}

    def matches_requested(body: Any, messages: list[str]) -> bool:
        return body["data"]["id"] == params.id

    def same_count(body: Any, messages: list[str]) -> bool:
        return len(body["data"]) == len(all_footprints)

    def geography_matches(fp: dict[str, Any]) -> bool:
        pcf = fp.get("pcf") or {}
        return params.geography in (
            pcf.get("geographyCountry"),
            pcf.get("geographyRegionOrSubregion"),
            pcf.get("geographyCountrySubdivision"),
        )

    def classification_matches(body: Any, messages: list[str]) -> bool:
        if params.classification == "":
            return len(body["data"]) == len(all_footprints)
        return all(
            params.classification in (fp.get("productClassifications") or [])
            for fp in body["data"]
        )

    def valid_on(fp: dict[str, Any]) -> bool:
        validity = _validity(fp)
        target = parse_iso(params.valid_on)
        return validity is not None and validity[0] <= target <= validity[1]

    def valid_after(fp: dict[str, Any]) -> bool:
        validity = _validity(fp)
        return validity is not None and validity[0] > parse_iso(params.valid_after)

    def valid_before(fp: dict[str, Any]) -> bool:
        validity = _validity(fp)
        return validity is not None and validity[1] < parse_iso(params.valid_before)

    def bogus(prefix: str, length: int = 16) -> str:
        return f"urn:bogus:{prefix}:{random_string(length)}"

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
            mandatory_versions=V3,
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
            mandatory_versions=V3,
        ),
        _case(
            ctx,
            "Test Case 3: Get PCF using GetFootprint",
            "TESTCASE#3",
            method="GET",
            endpoint=f"{profile.footprints_path}/{params.id}",
            expected_status_codes=[200],
            response_schema=profile.single_footprint_schema,
            condition=matches_requested,
            condition_error_message=(
                "Returned footprint does not match the requested footprint "
                f"with id {params.id}"
            ),
            mandatory_versions=V3,
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
            mandatory_versions=V3,
        ),
        _case(
            ctx,
            "Test Case 5: Pagination link implementation of Action ListFootprints",
            "TESTCASE#5",
            method="GET",
            endpoint=pagination.replace(ctx.base_url, "") if pagination else None,
            expected_status_codes=[200],
            response_schema=schemas.SIMPLE_LIST_RESPONSE,
            mandatory_versions=V3,
        ),
        _case(
            ctx,
            "Test Case 6: Attempt ListFootPrints with Invalid Token",
            "TESTCASE#6",
            method="GET",
            endpoint=profile.footprints_path,
            expected_status_codes=[400],
            condition=error_code_is("BadRequest"),
            condition_error_message="Expected error code BadRequest in response.",
            headers={"Authorization": invalid_bearer()},
            mandatory_versions=V3,
        ),
        _case(
            ctx,
            "Test Case 7: Attempt GetFootprint with Invalid Token",
            "TESTCASE#7",
            method="GET",
            endpoint=f"{profile.footprints_path}/{params.id}",
            expected_status_codes=[400],
            condition=error_code_is("BadRequest"),
            condition_error_message="Expected error code BadRequest in response.",
            headers={"Authorization": invalid_bearer()},
            mandatory_versions=V3,
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
            condition=error_code_is("NotFound"),
            condition_error_message="Expected error code NotFound in response.",
            mandatory_versions=V3,
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
            mandatory_versions=V3,
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
            mandatory_versions=V3,
        ),
        _case(
            ctx,
            "Test Case 11: Attempt GetFootprint through HTTP (non-HTTPS)",
            "TESTCASE#11",
            method="GET",
            custom_url=plain_http(
                f"{ctx.base_url}{profile.footprints_path}/{params.id}"
            ),
            expect_http_error=True,
            condition=has_no_data,
            condition_error_message="Expected response to not include data property",
            mandatory_versions=V3,
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
                    "productId": params.product_ids,
                    "comment": "Please send PCF data for this year.",
                },
            ),
            mandatory_versions=V3,
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
                    "productId": [REJECTED_PRODUCT_ID],
                    "comment": "Please send PCF data for this year.",
                },
            ),
            mandatory_versions=V3,
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
            mandatory_versions=V3,
        ),
        _case(
            ctx,
            "Test Case 16: Attempt Action Events with Invalid Token",
            "TESTCASE#16",
            method="POST",
            endpoint=events,
            headers={**cloudevents, "Authorization": invalid_bearer()},
            expected_status_codes=[400],
            request_data=ctx.cloud_event(
                EventKind.PUBLISHED, str(uuid4()), published_data
            ),
            condition=error_code_is("BadRequest"),
            condition_error_message="Expected error code BadRequest in response.",
            mandatory_versions=V3,
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
            mandatory_versions=V3,
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
        _filter_case(
            ctx,
            20,
            '"productId" parameter',
            f"productId={params.product_id}",
            _all(lambda fp: params.product_id in (fp.get("productIds") or [])),
            "One or more footprints do not match the condition: "
            f"'productIds contains {params.product_id}'",
        ),
        _filter_case(
            ctx,
            21,
            '"companyId" parameter',
            f"companyId={params.company_id}",
            _all(lambda fp: params.company_id in (fp.get("companyIds") or [])),
            "One or more footprints do not match the condition: "
            f"'companyIds contains {params.company_id}'",
        ),
        _filter_case(
            ctx,
            22,
            '"geography" parameter',
            f"geography={params.geography}",
            _all(geography_matches),
            "One or more footprints do not match the condition: "
            f"'pcf.geographyCountry = {params.geography}'",
        ),
        _filter_case(
            ctx,
            23,
            '"classification" parameter',
            f"classification={params.classification}",
            classification_matches,
            "One or more footprints do not match the condition: "
            f"'productClassifications contains {params.classification}'",
        ),
        _filter_case(
            ctx,
            24,
            '"validOn" parameter',
            f"validOn={params.valid_on}",
            _all(valid_on),
            "One or more footprints do not match the condition: "
            f"'validityPeriodStart <= {params.valid_on} <= validityPeriodEnd' "
            "or fallback reference period logic",
        ),
        _filter_case(
            ctx,
            25,
            '"validAfter" parameter',
            f"validAfter={params.valid_after}",
            _all(valid_after),
            "One or more footprints do not match the condition: "
            f"'validityPeriodStart > {params.valid_after}' "
            "or fallback reference period logic",
        ),
        _filter_case(
            ctx,
            26,
            '"validBefore" parameter',
            f"validBefore={params.valid_before}",
            _all(valid_before),
            "One or more footprints do not match the condition: "
            f"'validityPeriodEnd < {params.valid_before}' "
            "or fallback reference period logic",
        ),
        _filter_case(
            ctx,
            27,
            '"status" parameter',
            f"status={params.status}",
            _all(lambda fp: fp.get("status") == params.status),
            "One or more footprints do not match the condition: "
            f"'status = {params.status}'",
        ),
        _filter_case(
            ctx,
            28,
            'both "status" and "productId" parameters',
            f"status={params.status}&productId={params.product_id}",
            _all(
                lambda fp: fp.get("status") == params.status
                and params.product_id in (fp.get("productIds") or [])
            ),
            "One or more footprints do not match the condition: "
            f"'status = {params.status} AND productIds contains "
            f"{params.product_id}'",
        ),
        _filter_case(
            ctx,
            29,
            "multiple filter parameters using OR logic",
            f"companyId={params.company_id}&companyId={bogus('company', 8)}",
            _all(lambda fp: params.company_id in (fp.get("companyIds") or [])),
            "One or more footprints do not match the companyId filter in OR "
            f"logic test: {params.company_id}",
            anchor=(
                "test-case-29-v3-filtering-functionality-get-filtered-list-of-"
                "footprints-by-multiple-filter-parameters-using-or-logic-positive-"
                "test-case"
            ),
        ),
        _filter_case(
            ctx,
            30,
            '"productId" parameter',
            f"productId={bogus('product')}",
            is_empty_list,
            "Expected empty data array for bogus productId filter",
            negative=True,
        ),
        _filter_case(
            ctx,
            31,
            '"companyId" parameter',
            f"companyId={bogus('company')}",
            is_empty_list,
            "Expected empty data array for bogus companyId filter",
            negative=True,
        ),
        _filter_case(
            ctx,
            32,
            '"geography" parameter',
            "geography=XX",
            is_empty_list,
            "Expected empty data array for bogus geography filter",
            negative=True,
        ),
        _filter_case(
            ctx,
            33,
            '"classification" parameter',
            f"classification={bogus('classification')}",
            is_empty_list,
            "Expected empty data array for bogus classification filter",
            negative=True,
        ),
        _filter_case(
            ctx,
            34,
            '"validOn" parameter',
            f"validOn={FAR_PAST}",
            is_empty_list,
            "Expected empty data array for bogus validOn filter "
            f"(date in the past: {FAR_PAST})",
            negative=True,
        ),
        _filter_case(
            ctx,
            35,
            '"validAfter" parameter',
            f"validAfter={FAR_FUTURE}",
            is_empty_list,
            "Expected empty data array for bogus validAfter filter "
            f"(date in the future: {FAR_FUTURE})",
            negative=True,
        ),
        _filter_case(
            ctx,
            36,
            '"validBefore" parameter',
            f"validBefore={FAR_PAST}",
            is_empty_list,
            "Expected empty data array for bogus validBefore filter "
            f"(date in the past: {FAR_PAST})",
            negative=True,
        ),
        _filter_case(
            ctx,
            37,
            '"status" parameter',
            f"status=BogusStatus{random_string(8)}",
            is_empty_list,
            "Expected empty data array for bogus status filter",
            negative=True,
        ),
        _filter_case(
            ctx,
            38,
            "multiple filter parameters using AND logic",
            f"companyId={bogus('company', 8)}&productId={bogus('product')}",
            is_empty_list,
            "Expected empty data array for bogus companyId and productId filters",
            negative=True,
        ),
        _filter_case(
            ctx,
            39,
            "multiple filter parameters using OR logic",
            "&".join(f"companyId={bogus('company', 8)}" for _ in range(3)),
            is_empty_list,
            "Expected empty data array for bogus companyId filters in OR logic test",
            negative=True,
        ),
    ]
