"""Aggregate run status from a list of test case results."""

import math
from collections.abc import Iterable

from footprint.conformance_runner.models.test_result import (
    RunMetrics,
    TestCaseResult,
    TestCaseStatus,
    TestRunStatus,
)


def _percentage(total: int, failed: int) -> int:
    if total == 0:
        return 0
    # Half-up, so 12.5 rounds to 13 rather than to the even 12.
    return math.floor(100 * (total - failed) / total + 0.5)


def calculate_test_run_metrics(results: Iterable[TestCaseResult]) -> RunMetrics:
    """Compute run status and mandatory passing percentage.

    A mandatory result counts as failed unless it is SUCCESS, so a PENDING
    callback case holds the run at FAIL until it is reconciled.
    """
    mandatory = [result for result in results if result.mandatory]
    failed = [r for r in mandatory if r.status != TestCaseStatus.SUCCESS]

    return RunMetrics(
        status=TestRunStatus.FAIL if failed else TestRunStatus.PASS,
        passing_percentage=_percentage(len(mandatory), len(failed)),
        failed_mandatory_tests=failed,
    )


def calculate_optional_passing_percentage(results: Iterable[TestCaseResult]) -> int:
    """Passing percentage over the non-mandatory results only."""
    optional = [result for result in results if not result.mandatory]
    failed = [r for r in optional if r.status != TestCaseStatus.SUCCESS]
    return _percentage(len(optional), len(failed))
