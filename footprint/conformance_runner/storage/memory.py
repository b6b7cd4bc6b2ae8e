"""Result store kept in process memory."""

import asyncio
import logging

from footprint.conformance_runner.models.test_result import (
    TestCaseResult,
    TestData,
    TestRun,
    TestRunStatus,
    TestRunWithResults,
)
from footprint.conformance_runner.storage.base import (
    DEFAULT_PAGE_SIZE,
    ResultStore,
    sort_results,
)

logger = logging.getLogger(__name__)


class InMemoryResultStore(ResultStore):
    """Dictionary backed store for one-off runs and tests."""

    def __init__(self) -> None:
        """Initialize empty tables."""
        self._runs: dict[str, TestRun] = {}
        self._results: dict[str, dict[str, TestCaseResult]] = {}
        self._test_data: dict[str, TestData] = {}
        self._lock = asyncio.Lock()

    async def save_test_run(self, run: TestRun) -> None:
        """Upsert run metadata by run id."""
        async with self._lock:
            self._runs[run.test_run_id] = run.model_copy()
        logger.info(f"Test run {run.test_run_id} saved successfully")

    async def update_test_run_status(
        self, test_run_id: str, status: TestRunStatus, passing_percentage: int
    ) -> None:
        """Upsert the aggregate status fields of a run."""
        async with self._lock:
            run = self._runs.get(test_run_id)
            if run is None:
                logger.warning(f"No test run found with ID {test_run_id} to update")
                return
            self._runs[test_run_id] = run.model_copy(
                update={"status": status, "passing_percentage": passing_percentage}
            )
        logger.info(
            f"Test run {test_run_id} status updated to {status.value} "
            f"with {passing_percentage}% passing"
        )

    async def save_test_case_result(
        self, test_run_id: str, result: TestCaseResult, overwrite_existing: bool
    ) -> None:
        """Upsert one case result keyed by its test key."""
        async with self._lock:
            results = self._results.setdefault(test_run_id, {})
            if not overwrite_existing and result.test_key in results:
                logger.debug(
                    f"Result {result.test_key} of {test_run_id} exists, no action taken"
                )
                return
            results[result.test_key] = result.model_copy()

    async def get_test_results(self, test_run_id: str) -> TestRunWithResults | None:
        """Load a run with all of its results."""
        async with self._lock:
            run = self._runs.get(test_run_id)
            if run is None:
                return None
            results = list(self._results.get(test_run_id, {}).values())
        return TestRunWithResults(**run.model_dump(), results=sort_results(results))

    async def save_test_data(self, test_run_id: str, data: TestData) -> None:
        """Upsert the side data of a run."""
        async with self._lock:
            self._test_data[test_run_id] = data.model_copy(deep=True)

    async def get_test_data(self, test_run_id: str) -> TestData | None:
        """Load the side data of a run."""
        async with self._lock:
            data = self._test_data.get(test_run_id)
            return data.model_copy(deep=True) if data is not None else None

    async def list_test_runs(
        self,
        admin_email: str | None = None,
        query: str | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[TestRun]:
        """List runs, newest first."""
        async with self._lock:
            runs = list(self._runs.values())

        if admin_email:
            runs = [run for run in runs if run.admin_email == admin_email]
        term = (query or "").strip().lower()
        if term:
            runs = [
                run
                for run in runs
                if term in run.organization_name.lower()
                or term in run.admin_email.lower()
                or term in run.admin_name.lower()
            ]

        runs.sort(key=lambda run: run.timestamp, reverse=True)
        offset = (max(1, page) - 1) * page_size
        return runs[offset : offset + page_size]
