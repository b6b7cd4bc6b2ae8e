"""JSON-Schemas for responses and events, and a validator helper."""

from typing import Any

from jsonschema import Draft7Validator

_DRAFT7 = "http://json-schema.org/draft-07/schema#"

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

V2_PRODUCT_FOOTPRINT: dict[str, Any] = {
    "type": "object",
    "required": [
        "id",
        "specVersion",
        "version",
        "created",
        "status",
        "companyName",
        "companyIds",
        "productIds",
        "pcf",
    ],
    "properties": {
        "id": {"type": "string"},
        "specVersion": {"type": "string"},
        "version": {"type": "integer", "minimum": 0},
        "created": {"type": "string"},
        "status": {"type": "string", "enum": ["Active", "Deprecated"]},
        "companyName": {"type": "string", "minLength": 1},
        "companyIds": {**_STRING_LIST, "minItems": 1},
        "productIds": {**_STRING_LIST, "minItems": 1},
        "pcf": {"type": "object"},
    },
}

V3_PRODUCT_FOOTPRINT: dict[str, Any] = {
    "type": "object",
    "required": [
        "id",
        "specVersion",
        "created",
        "status",
        "companyName",
        "companyIds",
        "productIds",
        "pcf",
    ],
    "properties": {
        "id": {"type": "string"},
        "specVersion": {"type": "string"},
        "created": {"type": "string"},
        "status": {"type": "string", "enum": ["Active", "Deprecated"]},
        "companyName": {"type": "string", "minLength": 1},
        "companyIds": {**_STRING_LIST, "minItems": 1},
        "productIds": {**_STRING_LIST, "minItems": 1},
        "productClassifications": _STRING_LIST,
        "validityPeriodStart": {"type": "string"},
        "validityPeriodEnd": {"type": "string"},
        "pcf": {"type": "object"},
    },
}


def list_footprints_schema(footprint: dict[str, Any]) -> dict[str, Any]:
    """Schema of a ListFootprints response for the given footprint schema."""
    return {
        "$schema": _DRAFT7,
        "title": "ListFootprintsResponse",
        "type": "object",
        "required": ["data"],
        "properties": {"data": {"type": "array", "items": footprint}},
    }


def single_footprint_schema(footprint: dict[str, Any]) -> dict[str, Any]:
    """Schema of a GetFootprint response for the given footprint schema."""
    return {
        "$schema": _DRAFT7,
        "title": "SingleFootprintResponse",
        "type": "object",
        "required": ["data"],
        "properties": {"data": footprint},
    }


def fulfilled_event_schema(footprint: dict[str, Any]) -> dict[str, Any]:
    """Schema of a request fulfilled CloudEvent carrying footprints."""
    return {
        "$schema": _DRAFT7,
        "title": "RequestFulfilledEvent",
        "type": "object",
        "required": ["type", "specversion", "id", "source", "data"],
        "properties": {
            "type": {"type": "string"},
            "specversion": {"type": "string", "const": "1.0"},
            "id": {"type": "string", "minLength": 1},
            "source": {"type": "string", "minLength": 1},
            "time": {"type": "string"},
            "data": {
                "type": "object",
                "required": ["requestEventId", "pfs"],
                "properties": {
                    "requestEventId": {"type": "string", "minLength": 1},
                    "pfs": {"type": "array", "minItems": 1, "items": footprint},
                },
            },
        },
    }


SIMPLE_LIST_RESPONSE: dict[str, Any] = {
    "type": "object",
    "required": ["data"],
    "properties": {
        "data": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["id"],
                "properties": {"id": {"type": "string"}},
            },
        }
    },
}

EMPTY_LIST_RESPONSE: dict[str, Any] = {
    "type": "object",
    "required": ["data"],
    "properties": {"data": {"type": "array", "maxItems": 0}},
}

AUTH_TOKEN_RESPONSE: dict[str, Any] = {
    "type": "object",
    "required": ["access_token"],
    "properties": {"access_token": {"type": "string"}},
}


def _json_path(error: Any) -> str:
    path = getattr(error, "absolute_path", None)
    if not path:
        return "$"
    out = "$"
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}"
    return out


def validate(instance: Any, schema: dict[str, Any]) -> list[str]:
    """Validate an instance and return every violation as ``"$.path: message"``."""
    validator = Draft7Validator(schema)
    errors = sorted(
        validator.iter_errors(instance),
        key=lambda e: [str(p) for p in e.absolute_path],
    )
    return [f"{_json_path(e)}: {e.message}" for e in errors]
