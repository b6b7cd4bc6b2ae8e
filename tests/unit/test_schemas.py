"""Tests for response and event schemas."""

from footprint.conformance_runner import schemas


def test_valid_list_response(v2_footprint: dict) -> None:
    """A well-formed list response has no violations."""
    schema = schemas.list_footprints_schema(schemas.V2_PRODUCT_FOOTPRINT)

    assert schemas.validate({"data": [v2_footprint]}, schema) == []


def test_violations_carry_paths(v2_footprint: dict) -> None:
    """Violations are reported with JSON paths."""
    schema = schemas.list_footprints_schema(schemas.V2_PRODUCT_FOOTPRINT)
    broken = {**v2_footprint, "status": "Gone", "version": "1"}

    errors = schemas.validate({"data": [broken]}, schema)

    assert len(errors) == 2
    assert all(error.startswith("$.data[0].") for error in errors)


def test_v3_footprint_has_no_version(v3_footprint: dict) -> None:
    """V3 footprints validate without a version field."""
    schema = schemas.single_footprint_schema(schemas.V3_PRODUCT_FOOTPRINT)

    assert schemas.validate({"data": v3_footprint}, schema) == []


def test_fulfilled_event_requires_footprints() -> None:
    """A fulfilled event needs at least one footprint."""
    schema = schemas.fulfilled_event_schema(schemas.V2_PRODUCT_FOOTPRINT)
    event = {
        "type": "t",
        "specversion": "1.0",
        "id": "e",
        "source": "s",
        "data": {"requestEventId": "r1-tc12", "pfs": []},
    }

    errors = schemas.validate(event, schema)

    assert len(errors) == 1
    assert errors[0].startswith("$.data.pfs: ")


def test_empty_list_response() -> None:
    """Negative filter cases expect an empty data array."""
    assert schemas.validate({"data": []}, schemas.EMPTY_LIST_RESPONSE) == []
    assert schemas.validate({"data": [{"id": "x"}]}, schemas.EMPTY_LIST_RESPONSE)


def test_root_violation_path() -> None:
    """Violations at the root use the bare root path."""
    assert schemas.validate([], schemas.SIMPLE_LIST_RESPONSE) == [
        "$: [] is not of type 'object'"
    ]
