"""Reconciliation of webhook callbacks with the runs that triggered them."""

import json
import logging
from collections.abc import Mapping
from typing import Any

from footprint.conformance_runner import schemas
from footprint.conformance_runner.catalogue import (
    CORRELATION_SUFFIXES,
    FULFILLED_CASE,
    REJECTED_CASE,
    CallbackCase,
)
from footprint.conformance_runner.errors import NotFoundError, ValidationError
from footprint.conformance_runner.executor import is_mandatory
from footprint.conformance_runner.metrics import calculate_test_run_metrics
from footprint.conformance_runner.models.events import EventKind, classify_event_type
from footprint.conformance_runner.models.test_result import (
    TestCaseResult,
    TestCaseStatus,
    TestData,
)
from footprint.conformance_runner.storage.base import ResultStore
from footprint.conformance_runner.versions import VersionProfile, get_profile

logger = logging.getLogger(__name__)

REJECTED_ERROR_MESSAGE = (
    "Rejected event must contain an error object with a code and message"
)


def parse_correlation_id(data: Mapping[str, Any]) -> str:
    """Recover the run id an event refers to.

    An explicit ``testRunId`` wins. Otherwise a known case suffix is stripped
    from ``requestEventId``, and ids without one are taken as the run id.

    Only the ``tc12`` and ``tc14a`` suffixes are recognized. An echoed id of the
    form ``<run id>-<other>`` is not shortened and so matches no run, since run
    ids contain hyphens themselves.
    """
    explicit = data.get("testRunId")
    if isinstance(explicit, str) and explicit:
        return explicit

    request_event_id = str(data["requestEventId"])
    head, sep, suffix = request_event_id.rpartition("-")
    if sep and head and suffix in CORRELATION_SUFFIXES:
        return head
    return request_event_id


def _path_error(profile: VersionProfile, request_path: str) -> str | None:
    if request_path == profile.events_path:
        return None
    return (
        f"Invalid request path: expected {profile.events_path}, "
        f"but received {request_path}"
    )


def _received_product_ids(data: Mapping[str, Any]) -> list[str]:
    pfs = data.get("pfs")
    if not isinstance(pfs, list):
        return []
    return [
        product_id
        for pf in pfs
        if isinstance(pf, Mapping) and isinstance(pf.get("productIds"), list)
        for product_id in pf["productIds"]
    ]


def _format_ids(ids: list[str]) -> str:
    return ",".join(str(i) for i in ids)


class EventReconciler:
    """Turns inbound webhook events into results of callback cases."""

    def __init__(self, store: ResultStore) -> None:
        """Initialize the reconciler on a result store."""
        self.store = store

    async def process_event(self, payload: Any, request_path: str) -> None:
        """Validate an inbound event and record the callback case result.

        Args:
            payload: Decoded event envelope
            request_path: Path the event was posted to

        Raises:
            ValidationError: If the body or its correlation id is missing
            NotFoundError: If no run is known for the correlation id

        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Request body is missing")
        data = payload.get("data")
        if not isinstance(data, Mapping) or not data.get("requestEventId"):
            raise ValidationError("Missing requestEventId in event data")

        event_type = payload.get("type")
        logger.info(
            f"Processing event {event_type} on {request_path} "
            f"for requestEventId {data['requestEventId']}"
        )

        test_run_id = parse_correlation_id(data)
        test_data = await self.store.get_test_data(test_run_id)
        if test_data is None:
            raise NotFoundError(
                f"Test data not found for requestEventId: {data['requestEventId']}"
            )

        kind = classify_event_type(event_type)
        if kind == EventKind.FULFILLED:
            errors = self._check_fulfilled(payload, test_data, request_path)
            case = FULFILLED_CASE
        elif kind == EventKind.REJECTED:
            errors = self._check_rejected(data, test_data, request_path)
            case = REJECTED_CASE
        else:
            logger.info(f"Ignoring event of type {event_type}")
            return

        result = self._result(case, test_data, errors)
        await self._save_and_update(test_run_id, result)

    def _check_fulfilled(
        self, payload: Mapping[str, Any], test_data: TestData, request_path: str
    ) -> list[str]:
        profile = get_profile(test_data.version)
        errors = []

        schema_errors = schemas.validate(payload, profile.fulfilled_event_schema)
        if schema_errors:
            errors.append(f"Event validation failed: {json.dumps(schema_errors)}")

        path_error = _path_error(profile, request_path)
        if path_error:
            errors.append(path_error)

        received = _received_product_ids(payload["data"])
        if not any(product_id in received for product_id in test_data.product_ids):
            errors.append(
                "Product IDs do not match, the request was made for productIds "
                f"[{_format_ids(test_data.product_ids)}] but received data for "
                f"productIds [{_format_ids(received)}]"
            )
        return errors

    def _check_rejected(
        self, data: Mapping[str, Any], test_data: TestData, request_path: str
    ) -> list[str]:
        profile = get_profile(test_data.version)
        errors = []

        error = data.get("error")
        if not (
            isinstance(error, Mapping) and error.get("code") and error.get("message")
        ):
            errors.append(REJECTED_ERROR_MESSAGE)

        path_error = _path_error(profile, request_path)
        if path_error:
            errors.append(path_error)
        return errors

    def _result(
        self, case: CallbackCase, test_data: TestData, errors: list[str]
    ) -> TestCaseResult:
        return TestCaseResult(
            name=case.name,
            test_key=case.test_key,
            status=TestCaseStatus.FAILURE if errors else TestCaseStatus.SUCCESS,
            mandatory=is_mandatory(list(case.mandatory_versions), test_data.version),
            error_message="; ".join(errors) if errors else None,
            documentation_url=case.documentation_url(test_data.version),
        )

    async def _save_and_update(self, test_run_id: str, result: TestCaseResult) -> None:
        await self.store.save_test_case_result(test_run_id, result, True)

        run = await self.store.get_test_results(test_run_id)
        if run is None or not run.results:
            logger.warning(f"No stored results for test run {test_run_id}")
            return

        metrics = calculate_test_run_metrics(run.results)
        await self.store.update_test_run_status(
            test_run_id, metrics.status, metrics.passing_percentage
        )
        logger.info(
            f"Updated test run status: {metrics.status.value}, "
            f"passing percentage: {metrics.passing_percentage}%"
        )
