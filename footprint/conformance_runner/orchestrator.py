"""Test run orchestrator driving one conformance run end to end."""

import logging
from uuid import uuid4

from footprint.conformance_runner.auth import (
    build_auth_request_data,
    get_access_token,
    resolve_token_endpoint,
)
from footprint.conformance_runner.catalogue import CatalogueContext, build_test_cases
from footprint.conformance_runner.config import Settings
from footprint.conformance_runner.errors import ValidationError
from footprint.conformance_runner.executor import run_test_case
from footprint.conformance_runner.footprints import (
    fetch_footprints,
    first_footprint,
    get_pagination_links,
)
from footprint.conformance_runner.metrics import calculate_test_run_metrics
from footprint.conformance_runner.models.run_config import TestRunParams
from footprint.conformance_runner.models.test_result import (
    TestCaseResult,
    TestCaseStatus,
    TestData,
    TestRun,
    TestRunStatus,
    TestRunWithResults,
)
from footprint.conformance_runner.storage.base import MAX_PAGE_SIZE, ResultStore
from footprint.conformance_runner.versions import get_profile

logger = logging.getLogger(__name__)


class TestRunOrchestrator:
    """Runs the case catalogue of one version against a target system."""

    __test__ = False

    def __init__(self, store: ResultStore, settings: Settings) -> None:
        """Initialize orchestrator with a result store and settings."""
        self.store = store
        self.settings = settings

    async def start_test_run(self, params: TestRunParams) -> TestRunWithResults:
        """Execute a full test run and return its stored outcome.

        Cases run strictly one after another in catalogue order. Each result
        is persisted as soon as it is known, without overwriting a result a
        webhook callback may already have written.

        Raises:
            ValidationError: If base URL or client credentials are missing
            RuntimeError: If authentication or the reference fetch fails

        """
        test_run_id = str(uuid4())
        logger.info(
            f"Executing test run {test_run_id} for organization "
            f"{params.organization_name}"
        )

        if not params.base_url or not params.client_id or not params.client_secret:
            raise ValidationError(
                "Missing required parameters: baseUrl, clientId, and clientSecret "
                "are mandatory."
            )
        profile = get_profile(params.version)

        await self.store.save_test_run(
            TestRun(
                test_run_id=test_run_id,
                organization_name=params.organization_name,
                admin_email=params.admin_email,
                admin_name=params.admin_name,
                tech_spec_version=params.version.value,
                status=TestRunStatus.FAIL,
            )
        )

        timeout = self.settings.testcase_timeout
        token_url, oid_url = await resolve_token_endpoint(
            params.auth_base_url, timeout=timeout
        )
        auth_request_data = build_auth_request_data(params)
        access_token = await get_access_token(
            token_url,
            params.client_id,
            params.client_secret,
            auth_request_data,
            timeout=timeout,
        )

        footprints = await fetch_footprints(
            params.base_url, access_token, profile, timeout=timeout
        )
        pagination_links = await get_pagination_links(
            params.base_url, access_token, profile, timeout=timeout
        )

        await self.store.save_test_data(
            test_run_id,
            TestData(
                product_ids=first_footprint(footprints).get("productIds", []),
                version=params.version.value,
            ),
        )

        test_cases = build_test_cases(
            CatalogueContext(
                test_run_id=test_run_id,
                version=params.version,
                base_url=params.base_url,
                auth_base_url=params.auth_base_url,
                client_id=params.client_id,
                client_secret=params.client_secret,
                auth_request_data=auth_request_data,
                webhook_url=self.settings.conformance_api,
                footprints=footprints,
                pagination_links=pagination_links,
                oid_auth_url=oid_url,
            )
        )
        logger.info(f"Built {len(test_cases)} test cases for {params.version.value}")

        results: list[TestCaseResult] = []
        for test_case in test_cases:
            logger.info(f"Running test case: {test_case.name}")
            result = await run_test_case(
                params.base_url,
                test_case,
                access_token,
                params.version,
                timeout=timeout,
                webhook_url=self.settings.conformance_api,
            )
            if result.status == TestCaseStatus.SUCCESS:
                logger.info(f'Test case "{test_case.name}" passed.')
            elif result.status == TestCaseStatus.PENDING:
                logger.info(f'Test case "{test_case.name}" awaits a callback.')
            else:
                logger.error(
                    f'Test case "{test_case.name}" failed: {result.error_message}'
                )
            await self.store.save_test_case_result(test_run_id, result, False)
            results.append(result)

        # Callbacks may have overwritten placeholders while cases were running.
        stored = await self.store.get_test_results(test_run_id)
        latest = stored.results if stored and stored.results else results

        metrics = calculate_test_run_metrics(latest)
        await self.store.update_test_run_status(
            test_run_id, metrics.status, metrics.passing_percentage
        )
        logger.info(
            f"Test run {test_run_id} finished: {metrics.status.value} "
            f"({metrics.passing_percentage}% mandatory passing)"
        )

        if stored is not None:
            return stored.model_copy(
                update={
                    "status": metrics.status,
                    "passing_percentage": metrics.passing_percentage,
                    "results": latest,
                }
            )
        return TestRunWithResults(
            test_run_id=test_run_id,
            organization_name=params.organization_name,
            admin_email=params.admin_email,
            admin_name=params.admin_name,
            tech_spec_version=params.version.value,
            status=metrics.status,
            passing_percentage=metrics.passing_percentage,
            results=latest,
        )


async def backfill_run_statuses(store: ResultStore) -> int:
    """Recompute status and percentage of stored runs that have no status.

    Returns:
        Number of runs updated

    """
    updated = 0
    processed = 0
    page = 1
    while True:
        runs = await store.list_test_runs(page=page, page_size=MAX_PAGE_SIZE)
        if not runs:
            break
        for run in runs:
            processed += 1
            if run.status is not None:
                continue
            logger.info(f"Processing test run {run.test_run_id} - missing status")
            stored = await store.get_test_results(run.test_run_id)
            if stored is None or not stored.results:
                logger.warning(f"No test results found for run {run.test_run_id}")
                continue
            metrics = calculate_test_run_metrics(stored.results)
            await store.update_test_run_status(
                run.test_run_id, metrics.status, metrics.passing_percentage
            )
            updated += 1
        page += 1

    logger.info(f"Backfill completed: processed {processed}, updated {updated}")
    return updated
