"""Abstract base class for result stores."""

import re
from abc import ABC, abstractmethod

from footprint.conformance_runner.models.test_result import (
    TestCaseResult,
    TestData,
    TestRun,
    TestRunStatus,
    TestRunWithResults,
)

MAX_PAGE_SIZE = 200
DEFAULT_PAGE_SIZE = 50

_NUMBER = re.compile(r"\d+")


def _case_number_key(result: TestCaseResult) -> tuple[int, float, str]:
    match = _NUMBER.search(result.name)
    if match is None:
        return (1, 0.0, result.name)
    return (0, float(match.group()), result.name)


def sort_results(results: list[TestCaseResult]) -> list[TestCaseResult]:
    """Order results by the case number in their name, unnumbered last."""
    return sorted(results, key=_case_number_key)


class ResultStore(ABC):
    """Durable keyed storage for runs, case results and run side data.

    Every write is a single upsert keyed by run id, or by run id and case
    key, and must be atomic on its own. Callers never hold locks across
    calls.
    """

    async def initialize(self) -> None:
        """Prepare the backing storage. No-op unless overridden."""

    async def close(self) -> None:
        """Release held resources. No-op unless overridden."""

    @abstractmethod
    async def save_test_run(self, run: TestRun) -> None:
        """Upsert run metadata by run id."""

    @abstractmethod
    async def update_test_run_status(
        self, test_run_id: str, status: TestRunStatus, passing_percentage: int
    ) -> None:
        """Upsert the aggregate status fields of a run."""

    @abstractmethod
    async def save_test_case_result(
        self, test_run_id: str, result: TestCaseResult, overwrite_existing: bool
    ) -> None:
        """Upsert one case result.

        Args:
            test_run_id: Run the result belongs to
            result: Result to store under its test key
            overwrite_existing: When False an existing result with the same
                key is left untouched and the call is a no-op

        """

    async def save_test_case_results(
        self, test_run_id: str, results: list[TestCaseResult]
    ) -> None:
        """Store several results without overwriting existing keys."""
        for result in results:
            await self.save_test_case_result(test_run_id, result, False)

    @abstractmethod
    async def get_test_results(self, test_run_id: str) -> TestRunWithResults | None:
        """Load a run with all of its results, or None if it does not exist."""

    @abstractmethod
    async def save_test_data(self, test_run_id: str, data: TestData) -> None:
        """Upsert the side data of a run."""

    @abstractmethod
    async def get_test_data(self, test_run_id: str) -> TestData | None:
        """Load the side data of a run, or None if absent."""

    @abstractmethod
    async def list_test_runs(
        self,
        admin_email: str | None = None,
        query: str | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[TestRun]:
        """List runs, newest first.

        Args:
            admin_email: Only runs of this contact e-mail
            query: Case-insensitive match on organization, e-mail or name
            page: 1-based page number
            page_size: Runs per page

        Returns:
            Run metadata without results

        """
