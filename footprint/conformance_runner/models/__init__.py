"""Data models for test cases, run configuration, results and events."""

from footprint.conformance_runner.models.events import EventKind, classify_event_type
from footprint.conformance_runner.models.run_config import TestRunParams
from footprint.conformance_runner.models.test_case import ApiVersion, TestCase
from footprint.conformance_runner.models.test_result import (
    RunMetrics,
    TestCaseResult,
    TestCaseStatus,
    TestData,
    TestRun,
    TestRunStatus,
    TestRunWithResults,
)

__all__ = [
    "ApiVersion",
    "EventKind",
    "RunMetrics",
    "TestCase",
    "TestCaseResult",
    "TestCaseStatus",
    "TestData",
    "TestRun",
    "TestRunParams",
    "TestRunStatus",
    "TestRunWithResults",
    "classify_event_type",
]
