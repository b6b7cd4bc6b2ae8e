"""Tests for client-credentials authentication."""

import asyncio
import base64
from unittest.mock import patch
from urllib.parse import parse_qs

import aiohttp
import pytest
from aioresponses import aioresponses

from footprint.conformance_runner.auth import (
    build_auth_request_data,
    get_access_token,
    get_correct_auth_headers,
    get_incorrect_auth_headers,
    random_string,
    resolve_token_endpoint,
)
from footprint.conformance_runner.models.run_config import TestRunParams
from footprint.conformance_runner.models.test_case import ApiVersion

AUTH_BASE = "https://auth.example.com"
TOKEN_URL = f"{AUTH_BASE}/auth/token"
DISCOVERY_URL = f"{AUTH_BASE}/.well-known/openid-configuration"


def test_random_string() -> None:
    """Random strings are alphanumeric and of the requested length."""
    value = random_string(24)

    assert len(value) == 24
    assert value.isalnum()
    assert random_string() != random_string()


def test_correct_auth_headers() -> None:
    """Correct headers carry the run credentials as Basic auth."""
    headers = get_correct_auth_headers(TOKEN_URL, "id", "secret")

    assert headers["host"] == "auth.example.com"
    assert headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert headers["Authorization"] == "Basic " + base64.b64encode(b"id:secret").decode()


def test_incorrect_auth_headers() -> None:
    """Incorrect headers carry random credentials."""
    headers = get_incorrect_auth_headers(TOKEN_URL)
    encoded = headers["Authorization"].removeprefix("Basic ")
    client_id, _, client_secret = base64.b64decode(encoded).decode().partition(":")

    assert len(client_id) == 16
    assert len(client_secret) == 16


def test_build_auth_request_data() -> None:
    """Optional OAuth fields are sent only when set."""
    params = TestRunParams(version=ApiVersion.V2_3, scope="read", resource="")

    form = parse_qs(build_auth_request_data(params))

    assert form == {"grant_type": ["client_credentials"], "scope": ["read"]}


async def test_resolve_uses_openid_discovery() -> None:
    """A discovered token endpoint wins over the default path."""
    with aioresponses() as m:
        m.get(DISCOVERY_URL, payload={"token_endpoint": "https://idp.example.com/t"})

        token_url, oid_url = await resolve_token_endpoint(AUTH_BASE)

    assert token_url == "https://idp.example.com/t"
    assert oid_url == "https://idp.example.com/t"


@pytest.mark.parametrize(
    "mock_kwargs",
    [
        {"status": 404},
        {"status": 200, "body": "not json"},
        {"status": 200, "payload": {"issuer": AUTH_BASE}},
        {"exception": aiohttp.ClientConnectionError("refused")},
        {"exception": asyncio.TimeoutError()},
    ],
)
async def test_resolve_falls_back_to_default(mock_kwargs: dict) -> None:
    """Without a usable discovery document the default path is used."""
    with aioresponses() as m:
        m.get(DISCOVERY_URL, **mock_kwargs)

        token_url, oid_url = await resolve_token_endpoint(AUTH_BASE)

    assert token_url == TOKEN_URL
    assert oid_url is None


async def test_get_access_token() -> None:
    """The token is read from the response body."""
    with aioresponses() as m:
        m.post(TOKEN_URL, payload={"access_token": "abc", "token_type": "bearer"})

        token = await get_access_token(
            TOKEN_URL, "id", "secret", "grant_type=client_credentials"
        )

        call = next(iter(m.requests.values()))[0]

    assert token == "abc"
    assert call.kwargs["data"] == "grant_type=client_credentials"
    assert call.kwargs["headers"]["Authorization"].startswith("Basic ")


async def test_get_access_token_rejected() -> None:
    """A non-2xx answer raises with status and body."""
    with aioresponses() as m:
        m.post(TOKEN_URL, status=401, body="invalid_client")

        with pytest.raises(RuntimeError) as exc_info:
            await get_access_token(TOKEN_URL, "id", "bad", "grant_type=client_credentials")

    assert str(exc_info.value) == (
        f"Failed to obtain access token from {TOKEN_URL}: 401 invalid_client"
    )


async def test_get_access_token_missing_token() -> None:
    """A 2xx answer without a token raises."""
    with aioresponses() as m:
        m.post(TOKEN_URL, payload={"token_type": "bearer"})

        with pytest.raises(RuntimeError, match="Access token not present"):
            await get_access_token(TOKEN_URL, "id", "secret", "")


async def test_auth_requests_use_timeout() -> None:
    """Discovery and token requests carry the given timeout."""
    with (
        aioresponses() as m,
        patch("aiohttp.ClientSession", wraps=aiohttp.ClientSession) as session_cls,
    ):
        m.get(DISCOVERY_URL, status=404)
        m.post(TOKEN_URL, payload={"access_token": "abc"})

        token_url, _ = await resolve_token_endpoint(AUTH_BASE, timeout=2.5)
        await get_access_token(token_url, "id", "secret", "", timeout=2.5)

    timeouts = [c.kwargs["timeout"].total for c in session_cls.call_args_list]
    assert timeouts == [2.5, 2.5]
