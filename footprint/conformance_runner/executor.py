"""Execution of a single declarative test case against the tested API."""

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from footprint.conformance_runner import schemas
from footprint.conformance_runner.models.test_case import ApiVersion, TestCase
from footprint.conformance_runner.models.test_result import (
    TestCaseResult,
    TestCaseStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
PLACEHOLDER_TOKEN = "TOKEN"  # noqa: S105


def is_mandatory(
    mandatory_versions: list[ApiVersion] | None, version: ApiVersion | str
) -> bool:
    """Check whether a case counts towards the verdict for a version."""
    if not mandatory_versions:
        return False
    return ApiVersion(version) in mandatory_versions


def build_curl_command(
    url: str, method: str, headers: Mapping[str, str], body: str | None = None
) -> str:
    """Render an equivalent curl invocation of an HTTP request."""
    curl_cmd = f"curl -X {method} '{url}'"
    for key, value in headers.items():
        curl_cmd += f" -H '{key}: {value}'"
    if body:
        curl_cmd += f" -d '{body}'"
    return curl_cmd


def _encode_body(request_data: Any) -> str | None:
    if request_data is None:
        return None
    if isinstance(request_data, str):
        return request_data
    return json.dumps(request_data)


def _base_result(
    test_case: TestCase, version: ApiVersion | str, curl_request: str
) -> dict[str, Any]:
    return {
        "name": test_case.name,
        "test_key": test_case.test_key,
        "mandatory": is_mandatory(test_case.mandatory_versions, version),
        "curl_request": curl_request,
        "documentation_url": test_case.documentation_url,
    }


def _pending_result(
    test_case: TestCase, version: ApiVersion | str, webhook_url: str
) -> TestCaseResult:
    """Placeholder for a case whose outcome arrives through a webhook.

    The reproduction command never carries the real access token.
    """
    url = f"{webhook_url.rstrip('/')}{test_case.endpoint or ''}"
    curl_cmd = build_curl_command(
        url,
        test_case.method,
        {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {PLACEHOLDER_TOKEN}",
        },
        "{ 'todo': '<TODO>' }",
    )
    return TestCaseResult(
        status=TestCaseStatus.PENDING, **_base_result(test_case, version, curl_cmd)
    )


def _check_condition(test_case: TestCase, body: Any) -> str | None:
    """Run the case condition and return the failure message, if any."""
    if test_case.condition is None:
        return None

    messages: list[str] = []
    try:
        passed = test_case.condition(body, messages)
    except Exception as e:  # noqa: BLE001
        passed = False
        messages.append(f"Condition could not be evaluated: {type(e).__name__}: {e}")

    if passed:
        return None

    parts = [test_case.condition_error_message, *messages]
    return ", ".join(part for part in parts if part) or "Condition check failed"


async def run_test_case(
    base_url: str,
    test_case: TestCase,
    access_token: str,
    version: ApiVersion | str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    webhook_url: str = "",
) -> TestCaseResult:
    """Run one test case and produce exactly one result.

    Args:
        base_url: Base URL of the tested API, joined with the case endpoint
        test_case: Declarative description of the request and its checks
        access_token: Bearer token obtained for the run
        version: API version of the run, decides the mandatory flag
        timeout: Request timeout in seconds
        webhook_url: Public URL of the event listener, used in placeholders

    Returns:
        The case result. Network failures and timeouts are reported as
        results, never raised.

    """
    if test_case.callback:
        return _pending_result(test_case, version, webhook_url)

    if not test_case.endpoint and not test_case.custom_url:
        return TestCaseResult(
            status=TestCaseStatus.FAILURE,
            error_message="Either endpoint or custom_url must be provided",
            **_base_result(test_case, version, "N/A - Missing URL"),
        )

    url = test_case.custom_url or f"{base_url}{test_case.endpoint}"
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {access_token}",
        **test_case.headers,
    }
    body = _encode_body(test_case.request_data)
    curl_cmd = build_curl_command(url, test_case.method, headers, body)
    base = _base_result(test_case, version, curl_cmd)

    try:
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout)
        ) as session:
            async with session.request(
                test_case.method, url, headers=headers, data=body
            ) as response:
                status = response.status
                raw_response = await response.text(errors="replace")
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        if isinstance(e, asyncio.TimeoutError):
            error_message = f"Request timeout after {timeout}s"
        else:
            error_message = f"{type(e).__name__}: {e}"
        logger.info(f"Request for {test_case.test_key} failed: {error_message}")

        if test_case.expect_http_error:
            return TestCaseResult(status=TestCaseStatus.SUCCESS, **base)
        return TestCaseResult(
            status=TestCaseStatus.FAILURE, error_message=error_message, **base
        )

    is_success_status = 200 <= status < 300

    if test_case.expect_http_error:
        if is_success_status:
            return TestCaseResult(
                status=TestCaseStatus.FAILURE,
                error_message=f"Expected the request to fail, but got {status}",
                **base,
            )
        return TestCaseResult(status=TestCaseStatus.SUCCESS, **base)

    expected = test_case.expected_status_codes
    if expected and status not in expected:
        codes = ",".join(str(code) for code in expected)
        return TestCaseResult(
            status=TestCaseStatus.FAILURE,
            error_message=f"Expected status [{codes}], but got {status}",
            **base,
        )

    try:
        response_data: Any = json.loads(raw_response) if raw_response else ""
    except json.JSONDecodeError as e:
        return TestCaseResult(
            status=TestCaseStatus.FAILURE,
            error_message=f"Response body is not valid JSON: {e}",
            api_response=raw_response,
            **base,
        )

    logger.debug(f"Test response data from {url}: {raw_response}")

    if test_case.response_schema is not None:
        schema_errors = schemas.validate(response_data, test_case.response_schema)
        if schema_errors:
            logger.info(f"Schema validation failed: {', '.join(schema_errors)}")
            return TestCaseResult(
                status=TestCaseStatus.FAILURE,
                error_message=f"Schema validation failed: {json.dumps(schema_errors)}",
                api_response=json.dumps(response_data),
                **base,
            )

    condition_error = _check_condition(test_case, response_data)
    if condition_error is not None:
        return TestCaseResult(
            status=TestCaseStatus.FAILURE,
            error_message=condition_error,
            api_response=json.dumps(response_data),
            **base,
        )

    return TestCaseResult(status=TestCaseStatus.SUCCESS, **base)
