"""Shared fixtures for unit tests."""

from typing import Any

import pytest


@pytest.fixture
def v2_footprint() -> dict[str, Any]:
    """Create a V2 product footprint."""
    return {
        "id": "91715e5e-fd0b-4d1c-8fab-76290c46e6ed",
        "specVersion": "2.2.0",
        "version": 1,
        "created": "2024-03-01T00:00:00Z",
        "status": "Active",
        "companyName": "Acme Corp",
        "companyIds": ["urn:uuid:51131FB5-42A2-4267-A402-0ECFEFAD1619"],
        "productIds": ["urn:gtin:4712345060507"],
        "pcf": {"declaredUnit": "kilogram", "referencePeriodEnd": "2023-12-31T00:00:00Z"},
    }


@pytest.fixture
def v3_footprint() -> dict[str, Any]:
    """Create a V3 product footprint."""
    return {
        "id": "b1f8c0d2-3d4e-4f5a-9b6c-7d8e9f0a1b2c",
        "specVersion": "3.0.0",
        "created": "2024-03-01T00:00:00Z",
        "status": "Active",
        "companyName": "Acme Corp",
        "companyIds": ["urn:pact:company:acme"],
        "productIds": ["urn:pact:product:widget"],
        "productClassifications": ["urn:pact:productclassification:un-cpc:011"],
        "validityPeriodStart": "2024-01-01T00:00:00Z",
        "validityPeriodEnd": "2026-12-31T00:00:00Z",
        "pcf": {"geographyCountry": "DE", "referencePeriodEnd": "2023-12-31T00:00:00Z"},
    }
