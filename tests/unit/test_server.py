"""Tests for the HTTP front end."""

import base64
from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock

import jwt
import pytest
from aiohttp.test_utils import TestClient, TestServer

from footprint.conformance_runner.config import Settings
from footprint.conformance_runner.errors import ValidationError
from footprint.conformance_runner.models.test_case import ApiVersion
from footprint.conformance_runner.models.test_result import (
    TestCaseResult,
    TestCaseStatus,
    TestData,
    TestRun,
    TestRunStatus,
    TestRunWithResults,
)
from footprint.conformance_runner.server import ORCHESTRATOR_KEY, create_app
from footprint.conformance_runner.storage.memory import InMemoryResultStore


@pytest.fixture
def settings() -> Settings:
    """Create settings with known listener credentials."""
    return Settings(
        jwt_secret="s3cret",
        listener_client_id="listener",
        listener_client_secret="listener-secret",
    )


@pytest.fixture
def store() -> InMemoryResultStore:
    """Create an empty in-memory store."""
    return InMemoryResultStore()


@pytest.fixture
def orchestrator() -> AsyncMock:
    """Create a mocked orchestrator."""
    return AsyncMock()


@pytest.fixture
async def client(
    store: InMemoryResultStore, settings: Settings, orchestrator: AsyncMock
) -> AsyncIterator[TestClient]:
    """Create a test client around the application."""
    app = create_app(store, settings)
    app[ORCHESTRATOR_KEY] = orchestrator
    async with TestClient(TestServer(app)) as test_client:
        yield test_client


def _basic(client_id: str, client_secret: str) -> str:
    raw = f"{client_id}:{client_secret}".encode()
    return f"Basic {base64.b64encode(raw).decode()}"


def _result(key: str, status: TestCaseStatus, mandatory: bool) -> TestCaseResult:
    return TestCaseResult(
        name=f"Test Case {key}: check",
        test_key=f"TESTCASE#{key}",
        status=status,
        mandatory=mandatory,
    )


async def test_health_check(client: TestClient) -> None:
    """Health check answers OK."""
    response = await client.get("/health-check")

    assert response.status == 200
    assert (await response.json())["status"] == "OK"


async def test_auth_token_issues_jwt(client: TestClient) -> None:
    """Valid Basic credentials get a signed token."""
    response = await client.post(
        "/auth/token", headers={"Authorization": _basic("listener", "listener-secret")}
    )

    assert response.status == 200
    token = (await response.json())["access_token"]
    claims = jwt.decode(token, "s3cret", algorithms=["HS256"])
    assert claims["clientId"] == "listener"


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer abc"},
        {"Authorization": _basic("listener", "wrong")},
    ],
)
async def test_auth_token_rejects_bad_credentials(
    client: TestClient, headers: dict[str, str]
) -> None:
    """Missing or wrong credentials answer 400 BadRequest."""
    response = await client.post("/auth/token", headers=headers)

    assert response.status == 400
    assert await response.json() == {"code": "BadRequest"}


async def test_event_is_reconciled(
    client: TestClient, store: InMemoryResultStore
) -> None:
    """A rejected event updates the callback case of its run."""
    await store.save_test_run(TestRun(test_run_id="r1", tech_spec_version="V2.3"))
    await store.save_test_data("r1", TestData(product_ids=["p"], version="V2.3"))

    response = await client.post(
        "/2/events",
        json={
            "type": "org.wbcsd.pathfinder.ProductFootprintRequest.Rejected.v1",
            "specversion": "1.0",
            "id": "evt",
            "source": "https://sut.example.com",
            "data": {
                "requestEventId": "r1-tc14a",
                "error": {"code": "NotFound", "message": "Unknown product"},
            },
        },
    )

    assert response.status == 200
    run = await store.get_test_results("r1")
    assert run is not None
    assert run.results[0].test_key == "TESTCASE#14.B"
    assert run.results[0].status == TestCaseStatus.SUCCESS
    assert run.status == TestRunStatus.PASS


async def test_event_for_unknown_run_is_404(client: TestClient) -> None:
    """Events for unknown runs answer 404 NotFound."""
    response = await client.post(
        "/3/events", json={"type": "x", "data": {"requestEventId": "nope-tc12"}}
    )

    assert response.status == 404
    assert (await response.json())["code"] == "NotFound"


async def test_event_without_request_event_id_is_400(client: TestClient) -> None:
    """Events without a correlation id answer 400."""
    response = await client.post("/2/events", json={"type": "x", "data": {}})

    assert response.status == 400
    body = await response.json()
    assert body["code"] == "BadRequest"
    assert "requestEventId" in body["message"]


async def test_event_with_invalid_json_is_400(client: TestClient) -> None:
    """A body that is not JSON answers 400."""
    response = await client.post(
        "/2/events", data="{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status == 400


async def test_event_with_invalid_utf8_is_400(client: TestClient) -> None:
    """A body that is not UTF-8 answers 400."""
    response = await client.post(
        "/2/events", data=b"\xff\xfe{}", headers={"Content-Type": "application/json"}
    )

    assert response.status == 400
    assert (await response.json())["code"] == "BadRequest"


async def test_get_unknown_run_is_404(client: TestClient) -> None:
    """Unknown run ids answer 404."""
    response = await client.get("/testruns/missing")

    assert response.status == 404
    assert (await response.json())["code"] == "NotFound"


async def test_get_run_reports_percentages(
    client: TestClient, store: InMemoryResultStore
) -> None:
    """Stored runs come back with mandatory and optional percentages."""
    await store.save_test_run(
        TestRun(
            test_run_id="r1",
            organization_name="Acme Corp",
            tech_spec_version="V2.3",
            status=TestRunStatus.FAIL,
        )
    )
    await store.save_test_case_results(
        "r1",
        [
            _result("1", TestCaseStatus.SUCCESS, True),
            _result("2", TestCaseStatus.FAILURE, True),
            _result("18", TestCaseStatus.SUCCESS, False),
            _result("19", TestCaseStatus.SUCCESS, False),
        ],
    )

    response = await client.get("/testruns/r1")

    assert response.status == 200
    body = await response.json()
    assert body["testRunId"] == "r1"
    assert body["organizationName"] == "Acme Corp"
    assert body["passingPercentage"] == 50
    assert body["nonMandatoryPassingPercentage"] == 100
    assert [r["testKey"] for r in body["results"]] == [
        "TESTCASE#1",
        "TESTCASE#2",
        "TESTCASE#18",
        "TESTCASE#19",
    ]


async def test_list_runs(client: TestClient, store: InMemoryResultStore) -> None:
    """Runs are listed newest first with a count."""
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    for i, email in enumerate(["a@x.test", "b@x.test", "a@x.test"]):
        await store.save_test_run(
            TestRun(
                test_run_id=f"r{i}",
                admin_email=email,
                tech_spec_version="V3.0",
                timestamp=now + timedelta(minutes=i),
            )
        )

    response = await client.get("/testruns", params={"adminEmail": "a@x.test"})

    assert response.status == 200
    body = await response.json()
    assert body["count"] == 2
    assert [r["testRunId"] for r in body["testRuns"]] == ["r2", "r0"]
    assert "results" not in body["testRuns"][0]


@pytest.mark.parametrize("page_size", ["0", "201", "abc"])
async def test_list_runs_rejects_bad_page_size(
    client: TestClient, page_size: str
) -> None:
    """pageSize outside 1..200 answers 400."""
    response = await client.get("/testruns", params={"pageSize": page_size})

    assert response.status == 400


async def test_create_test_run(client: TestClient, orchestrator: AsyncMock) -> None:
    """The camelCase body becomes run parameters."""
    orchestrator.start_test_run.return_value = TestRunWithResults(
        test_run_id="r1",
        organization_name="Acme Corp",
        tech_spec_version="V2.3",
        status=TestRunStatus.PASS,
        passing_percentage=100,
        results=[_result("1", TestCaseStatus.SUCCESS, True)],
    )

    response = await client.post(
        "/testruns",
        json={
            "baseUrl": "https://api.example.com",
            "clientId": "id",
            "clientSecret": "secret",
            "version": "V2.3",
            "companyName": "Acme Corp",
            "adminEmail": "admin@acme.test",
            "scope": "read",
        },
    )

    assert response.status == 200
    body: dict[str, Any] = await response.json()
    assert body["status"] == "PASS"
    assert body["results"][0]["status"] == "SUCCESS"

    params = orchestrator.start_test_run.call_args.args[0]
    assert params.base_url == "https://api.example.com"
    assert params.version == ApiVersion.V2_3
    assert params.organization_name == "Acme Corp"
    assert params.scope == "read"
    assert params.audience is None


async def test_create_test_run_with_unknown_version(
    client: TestClient, orchestrator: AsyncMock
) -> None:
    """Unsupported versions answer 400 without starting a run."""
    response = await client.post("/testruns", json={"version": "V9.9"})

    assert response.status == 400
    assert "Unsupported version" in (await response.json())["message"]
    orchestrator.start_test_run.assert_not_called()


async def test_create_test_run_validation_error(
    client: TestClient, orchestrator: AsyncMock
) -> None:
    """Validation errors of the orchestrator answer 400."""
    orchestrator.start_test_run.side_effect = ValidationError(
        "Missing required parameters: baseUrl, clientId, and clientSecret "
        "are mandatory."
    )

    response = await client.post("/testruns", json={"version": "V3.0"})

    assert response.status == 400
    assert (await response.json())["message"].startswith("Missing required")


async def test_unexpected_error_is_500(
    client: TestClient, orchestrator: AsyncMock
) -> None:
    """Unexpected failures answer 500 with a JSON body."""
    orchestrator.start_test_run.side_effect = RuntimeError(
        "Failed to fetch footprints: 500 boom"
    )

    response = await client.post("/testruns", json={"version": "V3.0"})

    assert response.status == 500
    assert (await response.json())["message"] == "Failed to fetch footprints: 500 boom"
