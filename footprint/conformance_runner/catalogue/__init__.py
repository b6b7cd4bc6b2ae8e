"""Ordered test case catalogues per API version family."""

from footprint.conformance_runner.catalogue import v2, v3
from footprint.conformance_runner.catalogue.common import (
    ASYNC_REQUEST_SUFFIX,
    CORRELATION_SUFFIXES,
    FULFILLED_CASE,
    REJECTED_CASE,
    REJECTED_REQUEST_SUFFIX,
    CallbackCase,
    CatalogueContext,
    correlation_id,
)
from footprint.conformance_runner.models.test_case import TestCase


def build_test_cases(ctx: CatalogueContext) -> list[TestCase]:
    """Build the case list of the run's version family, in execution order."""
    if ctx.profile.family == "2":
        return v2.build_test_cases(ctx)
    return v3.build_test_cases(ctx)


__all__ = [
    "ASYNC_REQUEST_SUFFIX",
    "CORRELATION_SUFFIXES",
    "FULFILLED_CASE",
    "REJECTED_CASE",
    "REJECTED_REQUEST_SUFFIX",
    "CallbackCase",
    "CatalogueContext",
    "build_test_cases",
    "correlation_id",
]
