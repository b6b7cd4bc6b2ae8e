"""Tests for fetching reference footprints."""

from unittest.mock import patch

import aiohttp
import pytest
from aioresponses import aioresponses

from footprint.conformance_runner.footprints import (
    fetch_footprints,
    first_footprint,
    get_pagination_links,
)
from footprint.conformance_runner.versions import get_profile

BASE_URL = "https://api.example.com"


async def test_fetch_footprints(v2_footprint: dict) -> None:
    """The list body is returned as is."""
    with aioresponses() as m:
        m.get(f"{BASE_URL}/2/footprints", payload={"data": [v2_footprint]})

        body = await fetch_footprints(BASE_URL, "tok", get_profile("V2.3"))

    assert first_footprint(body) == v2_footprint


async def test_fetch_footprints_uses_v3_path(v3_footprint: dict) -> None:
    """V3 runs fetch from the V3 path."""
    with aioresponses() as m:
        m.get(f"{BASE_URL}/3/footprints", status=202, payload={"data": [v3_footprint]})

        body = await fetch_footprints(BASE_URL, "tok", get_profile("V3.0"))

    assert body["data"][0]["id"] == v3_footprint["id"]


async def test_fetch_footprints_error_status() -> None:
    """A failed request raises with status and body."""
    with aioresponses() as m:
        m.get(f"{BASE_URL}/2/footprints", status=403, body="forbidden")

        with pytest.raises(RuntimeError, match="Failed to fetch footprints: 403 forbidden"):
            await fetch_footprints(BASE_URL, "tok", get_profile("V2.2"))


async def test_fetch_footprints_empty_list() -> None:
    """An empty list raises, since no case can be built from it."""
    with aioresponses() as m:
        m.get(f"{BASE_URL}/2/footprints", payload={"data": []})

        with pytest.raises(RuntimeError, match="no footprints returned"):
            await fetch_footprints(BASE_URL, "tok", get_profile("V2.2"))


async def test_pagination_links() -> None:
    """Link header targets are returned by rel."""
    link = (
        f'<{BASE_URL}/2/footprints?limit=1&offset=1>; rel="next", '
        f'<{BASE_URL}/2/footprints?limit=1&offset=0>; rel="first"'
    )
    with aioresponses() as m:
        m.get(
            f"{BASE_URL}/2/footprints?limit=1",
            payload={"data": []},
            headers={"Link": link},
        )

        links = await get_pagination_links(BASE_URL, "tok", get_profile("V2.3"))

    assert links == {
        "next": f"{BASE_URL}/2/footprints?limit=1&offset=1",
        "first": f"{BASE_URL}/2/footprints?limit=1&offset=0",
    }


async def test_pagination_links_absent() -> None:
    """Implementations without pagination yield no links."""
    with aioresponses() as m:
        m.get(f"{BASE_URL}/3/footprints?limit=1", payload={"data": []})

        links = await get_pagination_links(BASE_URL, "tok", get_profile("V3.0"))

    assert links == {}


async def test_footprint_requests_use_timeout(v2_footprint: dict) -> None:
    """List and pagination requests carry the given timeout."""
    profile = get_profile("V2.3")
    with (
        aioresponses() as m,
        patch("aiohttp.ClientSession", wraps=aiohttp.ClientSession) as session_cls,
    ):
        m.get(f"{BASE_URL}/2/footprints", payload={"data": [v2_footprint]})
        m.get(f"{BASE_URL}/2/footprints?limit=1", payload={"data": []})

        await fetch_footprints(BASE_URL, "tok", profile, timeout=2.5)
        await get_pagination_links(BASE_URL, "tok", profile, timeout=2.5)

    timeouts = [c.kwargs["timeout"].total for c in session_cls.call_args_list]
    assert timeouts == [2.5, 2.5]
