"""Reference footprints fetched from the system under test before a run."""

import logging
from typing import Any

import aiohttp

from footprint.conformance_runner.executor import DEFAULT_TIMEOUT
from footprint.conformance_runner.versions import VersionProfile

logger = logging.getLogger(__name__)

PAGINATION_PAGE_SIZE = 1


def _headers(access_token: str) -> dict[str, str]:
    return {
        "Accept": "application/json",
        "Authorization": f"Bearer {access_token}",
    }


async def fetch_footprints(
    base_url: str,
    access_token: str,
    profile: VersionProfile,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    """Fetch the footprint list the test cases are derived from.

    Raises:
        RuntimeError: If the request fails or the list is empty

    """
    url = f"{base_url}{profile.footprints_path}"
    async with aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout)
    ) as session:
        async with session.get(url, headers=_headers(access_token)) as response:
            if response.status not in (200, 202):
                text = await response.text()
                raise RuntimeError(
                    f"Failed to fetch footprints: {response.status} {text}"
                )
            body = await response.json(content_type=None)

    data = body.get("data") if isinstance(body, dict) else None
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise RuntimeError(
            f"Failed to fetch footprints: no footprints returned by {url}"
        )
    logger.info(f"Fetched {len(data)} reference footprints from {url}")
    return body


async def get_pagination_links(
    base_url: str,
    access_token: str,
    profile: VersionProfile,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, str]:
    """Request a one-item page and return the Link header targets by rel.

    An implementation without pagination yields an empty mapping.
    """
    url = f"{base_url}{profile.footprints_path}"
    params = {"limit": str(PAGINATION_PAGE_SIZE)}
    async with aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout)
    ) as session:
        async with session.get(
            url, headers=_headers(access_token), params=params
        ) as response:
            if response.status not in (200, 202):
                text = await response.text()
                raise RuntimeError(
                    f"Failed to fetch pagination links: {response.status} {text}"
                )
            links = {
                str(rel): str(link["url"]) for rel, link in response.links.items()
            }

    if not links:
        logger.info(f"No pagination links returned by {url}")
    return links


def first_footprint(footprints: dict[str, Any]) -> dict[str, Any]:
    """The footprint most test cases are built around."""
    return footprints["data"][0]
