"""HTTP front end: webhook listener, listener auth and test run API."""

import json
import logging
from typing import Any

from aiohttp import web

from footprint.conformance_runner.config import Settings
from footprint.conformance_runner.errors import (
    AuthenticationError,
    ConformanceError,
    ValidationError,
)
from footprint.conformance_runner.listener_auth import (
    issue_access_token,
    parse_basic_auth,
)
from footprint.conformance_runner.metrics import (
    calculate_optional_passing_percentage,
    calculate_test_run_metrics,
)
from footprint.conformance_runner.models.run_config import TestRunParams
from footprint.conformance_runner.models.test_result import (
    TestCaseResult,
    TestRun,
    TestRunWithResults,
)
from footprint.conformance_runner.orchestrator import TestRunOrchestrator
from footprint.conformance_runner.reconciler import EventReconciler
from footprint.conformance_runner.storage.base import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ResultStore,
)
from footprint.conformance_runner.versions import parse_version

logger = logging.getLogger(__name__)

STORE_KEY = web.AppKey("store", ResultStore)
SETTINGS_KEY = web.AppKey("settings", Settings)
RECONCILER_KEY = web.AppKey("reconciler", EventReconciler)
ORCHESTRATOR_KEY = web.AppKey("orchestrator", TestRunOrchestrator)


def result_to_json(result: TestCaseResult) -> dict[str, Any]:
    return {
        "name": result.name,
        "testKey": result.test_key,
        "status": result.status.value,
        "mandatory": result.mandatory,
        "errorMessage": result.error_message,
        "apiResponse": result.api_response,
        "curlRequest": result.curl_request,
        "documentationUrl": result.documentation_url,
    }


def run_to_json(run: TestRun) -> dict[str, Any]:
    """Wire representation of a run, camelCase like the rest of the API."""
    body: dict[str, Any] = {
        "testRunId": run.test_run_id,
        "organizationName": run.organization_name,
        "adminEmail": run.admin_email,
        "adminName": run.admin_name,
        "techSpecVersion": run.tech_spec_version,
        "status": run.status.value if run.status else None,
        "passingPercentage": run.passing_percentage,
        "timestamp": run.timestamp.isoformat(),
    }
    if isinstance(run, TestRunWithResults):
        body["results"] = [result_to_json(r) for r in run.results]
    return body


async def _json_body(request: web.Request) -> Any:
    if not request.can_read_body:
        raise ValidationError("Request body is missing")
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body is not valid JSON")


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Map domain errors to JSON error responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except ConformanceError as e:
        logger.warning(f"{request.method} {request.path} failed: {e}")
        return web.json_response(
            {"code": e.code, "message": str(e)}, status=e.status_code
        )
    except Exception as e:
        logger.exception(f"{request.method} {request.path} failed")
        return web.json_response(
            {"code": ConformanceError.code, "message": str(e)},
            status=ConformanceError.status_code,
        )


async def handle_event(request: web.Request) -> web.Response:
    """Accept a webhook event and reconcile it with its run."""
    payload = await _json_body(request)
    await request.app[RECONCILER_KEY].process_event(payload, request.path)
    return web.Response(status=200)


async def handle_auth_token(request: web.Request) -> web.Response:
    """Issue a listener token for Basic client credentials."""
    try:
        client_id, client_secret = parse_basic_auth(
            request.headers.get("Authorization")
        )
        token = issue_access_token(
            client_id, client_secret, request.app[SETTINGS_KEY]
        )
    except (ValidationError, AuthenticationError) as e:
        logger.info(f"Rejected token request: {e}")
        return web.json_response({"code": "BadRequest"}, status=400)
    return web.json_response({"access_token": token})


def _params_from_body(body: Any) -> TestRunParams:
    if not isinstance(body, dict):
        raise ValidationError("Request body is missing")
    version = body.get("version")
    if not version:
        raise ValidationError("Missing required parameters: version")
    return TestRunParams(
        base_url=body.get("baseUrl") or "",
        client_id=body.get("clientId") or "",
        client_secret=body.get("clientSecret") or "",
        version=parse_version(version),
        organization_name=body.get("organizationName") or body.get("companyName") or "",
        admin_email=body.get("adminEmail") or "",
        admin_name=body.get("adminName") or "",
        custom_auth_base_url=body.get("customAuthBaseUrl") or None,
        scope=body.get("scope") or None,
        audience=body.get("audience") or None,
        resource=body.get("resource") or None,
    )


async def handle_create_test_run(request: web.Request) -> web.Response:
    """Run the conformance suite and return its outcome."""
    params = _params_from_body(await _json_body(request))
    run = await request.app[ORCHESTRATOR_KEY].start_test_run(params)
    return web.json_response(run_to_json(run))


async def handle_get_test_run(request: web.Request) -> web.Response:
    """Stored results of a run with mandatory and optional percentages."""
    test_run_id = request.match_info["test_run_id"]
    run = await request.app[STORE_KEY].get_test_results(test_run_id)
    if run is None:
        return web.json_response(
            {"code": "NotFound", "message": f"Test run {test_run_id} not found"},
            status=404,
        )

    body = run_to_json(run)
    body["passingPercentage"] = calculate_test_run_metrics(
        run.results
    ).passing_percentage
    body["nonMandatoryPassingPercentage"] = calculate_optional_passing_percentage(
        run.results
    )
    return web.json_response(body)


def _int_query(request: web.Request, name: str, default: int) -> int:
    raw = request.query.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Invalid {name} parameter: {raw}")


async def handle_list_test_runs(request: web.Request) -> web.Response:
    """List runs, optionally filtered by contact e-mail or a search term."""
    page = _int_query(request, "page", 1)
    page_size = _int_query(request, "pageSize", DEFAULT_PAGE_SIZE)
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError(
            "Invalid pageSize parameter. Must be a positive integer between "
            f"1 and {MAX_PAGE_SIZE}."
        )

    runs = await request.app[STORE_KEY].list_test_runs(
        admin_email=request.query.get("adminEmail") or None,
        query=request.query.get("query") or None,
        page=max(1, page),
        page_size=page_size,
    )
    return web.json_response(
        {"testRuns": [run_to_json(run) for run in runs], "count": len(runs)}
    )


async def handle_health_check(request: web.Request) -> web.Response:
    return web.json_response({"status": "OK", "service": "conformance-runner"})


async def _init_store(app: web.Application) -> None:
    await app[STORE_KEY].initialize()


async def _close_store(app: web.Application) -> None:
    await app[STORE_KEY].close()


def create_app(store: ResultStore, settings: Settings) -> web.Application:
    """Build the web application around a result store."""
    app = web.Application(middlewares=[error_middleware])
    app[STORE_KEY] = store
    app[SETTINGS_KEY] = settings
    app[RECONCILER_KEY] = EventReconciler(store)
    app[ORCHESTRATOR_KEY] = TestRunOrchestrator(store, settings)

    app.router.add_post("/2/events", handle_event)
    app.router.add_post("/3/events", handle_event)
    app.router.add_post("/auth/token", handle_auth_token)
    app.router.add_post("/testruns", handle_create_test_run)
    app.router.add_get("/testruns", handle_list_test_runs)
    app.router.add_get("/testruns/{test_run_id}", handle_get_test_run)
    app.router.add_get("/health-check", handle_health_check)

    app.on_startup.append(_init_store)
    app.on_cleanup.append(_close_store)
    return app
