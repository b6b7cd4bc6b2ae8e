"""Client-credentials authentication against the system under test."""

import asyncio
import base64
import logging
import secrets
import string
from urllib.parse import urlencode, urlparse

import aiohttp

from footprint.conformance_runner.executor import DEFAULT_TIMEOUT
from footprint.conformance_runner.models.run_config import TestRunParams

logger = logging.getLogger(__name__)

_ALPHABET = string.ascii_letters + string.digits


def random_string(length: int = 16) -> str:
    """Return a random alphanumeric string."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def _basic(client_id: str, client_secret: str) -> str:
    credentials = f"{client_id}:{client_secret}".encode()
    return "Basic " + base64.b64encode(credentials).decode()


def get_correct_auth_headers(
    url: str, client_id: str, client_secret: str
) -> dict[str, str]:
    """Headers of a token request carrying the run's credentials."""
    return {
        "host": urlparse(url).hostname or "",
        "Accept": "application/json",
        "Content-Type": "application/x-www-form-urlencoded",
        "Authorization": _basic(client_id, client_secret),
    }


def get_incorrect_auth_headers(url: str) -> dict[str, str]:
    """Headers of a token request carrying random credentials."""
    return {
        "host": urlparse(url).hostname or "",
        "Accept": "application/json",
        "Content-Type": "application/x-www-form-urlencoded",
        "Authorization": _basic(random_string(16), random_string(16)),
    }


def build_auth_request_data(params: TestRunParams) -> str:
    """Form-encode the client-credentials grant, optional fields only if set."""
    form = {"grant_type": "client_credentials"}
    for key in ("scope", "audience", "resource"):
        value = getattr(params, key)
        if value:
            form[key] = value
    return urlencode(form)


async def fetch_openid_token_endpoint(
    auth_base_url: str, timeout: float = DEFAULT_TIMEOUT
) -> str | None:
    """Look up the token endpoint in the OpenID discovery document.

    Returns None when no discovery document is served.
    """
    url = f"{auth_base_url}/.well-known/openid-configuration"
    try:
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout)
        ) as session:
            async with session.get(url) as response:
                if response.status == 200:
                    data = await response.json(content_type=None)
                    if isinstance(data, dict) and data.get("token_endpoint"):
                        return str(data["token_endpoint"])
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.debug(f"OpenID discovery at {url} failed: {e}")

    logger.info(f"No OpenID configuration found at {url}")
    return None


async def resolve_token_endpoint(
    auth_base_url: str, timeout: float = DEFAULT_TIMEOUT
) -> tuple[str, str | None]:
    """Return the token URL to use and the discovered OpenID endpoint, if any."""
    oid_url = await fetch_openid_token_endpoint(auth_base_url, timeout)
    return oid_url or f"{auth_base_url}/auth/token", oid_url


async def get_access_token(
    token_url: str,
    client_id: str,
    client_secret: str,
    auth_request_data: str,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Obtain an access token with the client-credentials grant.

    Args:
        token_url: Token endpoint of the system under test
        client_id: OAuth client id
        client_secret: OAuth client secret
        auth_request_data: Form-encoded grant body
        timeout: Request timeout in seconds

    Returns:
        The access token

    Raises:
        RuntimeError: If the endpoint rejects the request or returns no token

    """
    logger.info(f"Requesting access token from {token_url} with clientId: {client_id}")

    headers = {
        "Accept": "application/json",
        "Content-Type": "application/x-www-form-urlencoded",
        "Authorization": _basic(client_id, client_secret),
    }
    async with aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout)
    ) as session:
        async with session.post(
            token_url, headers=headers, data=auth_request_data
        ) as response:
            if not 200 <= response.status < 300:
                text = await response.text()
                logger.error(
                    f"Failed to obtain access token from {token_url}. "
                    f"Status: {response.status}"
                )
                raise RuntimeError(
                    f"Failed to obtain access token from {token_url}: "
                    f"{response.status} {text}"
                )
            data = await response.json(content_type=None)

    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        raise RuntimeError("Access token not present in response")
    return str(token)
