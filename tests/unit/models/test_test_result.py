"""Tests for result, run and parameter models."""

import pytest
from pydantic import ValidationError

from footprint.conformance_runner.models import (
    ApiVersion,
    TestCase,
    TestCaseResult,
    TestCaseStatus,
    TestData,
    TestRun,
    TestRunParams,
    TestRunStatus,
    TestRunWithResults,
)


def test_test_case_result_minimal() -> None:
    """TestCaseResult accepts minimal required fields."""
    result = TestCaseResult(
        name="Test Case 1: Obtain auth token with valid credentials",
        test_key="TESTCASE#1",
        status=TestCaseStatus.SUCCESS,
    )
    assert result.mandatory is False
    assert result.error_message is None
    assert result.api_response is None
    assert result.curl_request is None
    assert result.documentation_url is None


def test_test_case_result_invalid_status() -> None:
    """TestCaseResult rejects unknown statuses."""
    with pytest.raises(ValidationError):
        TestCaseResult(name="x", test_key="TESTCASE#1", status="skipped")


def test_test_run_defaults_to_fail() -> None:
    """A new run is created with status FAIL and no percentage."""
    run = TestRun(test_run_id="r1", tech_spec_version="V2.3")
    assert run.status == TestRunStatus.FAIL
    assert run.passing_percentage is None
    assert run.timestamp.tzinfo is not None


def test_test_run_with_results_defaults_to_empty() -> None:
    """TestRunWithResults starts without results."""
    run = TestRunWithResults(test_run_id="r1", tech_spec_version="V3.0")
    assert run.results == []


def test_test_data_round_trips_through_json() -> None:
    """TestData survives a JSON dump and reload."""
    data = TestData(product_ids=["urn:gtin:1"], version="V2.2")
    assert TestData.model_validate(data.model_dump(mode="json")) == data


def test_test_case_defaults() -> None:
    """TestCase defaults to a synchronous optional check."""
    case = TestCase(name="x", test_key="TESTCASE#1", method="GET", endpoint="/x")
    assert case.callback is False
    assert case.expect_http_error is False
    assert case.mandatory_versions == []
    assert case.headers == {}


def test_test_case_rejects_unknown_method() -> None:
    """TestCase only accepts the supported HTTP methods."""
    with pytest.raises(ValidationError):
        TestCase(name="x", test_key="TESTCASE#1", method="PATCH", endpoint="/x")


def test_run_params_auth_base_url_falls_back_to_base_url() -> None:
    """Token discovery uses the API host unless a custom auth URL is set."""
    params = TestRunParams(base_url="https://api.example.com", version="V2.3")
    assert params.auth_base_url == "https://api.example.com"

    custom = params.model_copy(
        update={"custom_auth_base_url": "https://auth.example.com"}
    )
    assert custom.auth_base_url == "https://auth.example.com"


def test_run_params_allow_missing_credentials() -> None:
    """Missing credentials are left to the orchestrator to report."""
    params = TestRunParams(version=ApiVersion.V3_0)
    assert params.base_url == ""
    assert params.client_id == ""
    assert params.client_secret == ""


def test_run_params_reject_unknown_version() -> None:
    """TestRunParams rejects unsupported versions."""
    with pytest.raises(ValidationError):
        TestRunParams(version="V4.0")
