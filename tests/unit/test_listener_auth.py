"""Tests for listener token issuing."""

import base64

import jwt
import pytest

from footprint.conformance_runner.config import Settings
from footprint.conformance_runner.errors import AuthenticationError, ValidationError
from footprint.conformance_runner.listener_auth import (
    issue_access_token,
    parse_basic_auth,
)


@pytest.fixture
def settings() -> Settings:
    """Create settings with listener credentials."""
    return Settings(
        jwt_secret="s3cret",
        listener_client_id="listener",
        listener_client_secret="pw",
    )


def _basic(raw: str) -> str:
    return "Basic " + base64.b64encode(raw.encode()).decode()


def test_parse_basic_auth() -> None:
    """Client id and secret are split at the first colon."""
    assert parse_basic_auth(_basic("id:sec:ret")) == ("id", "sec:ret")


@pytest.mark.parametrize(
    "header",
    [None, "", "Bearer abc", "Basic !!!", _basic("no-colon"), _basic(":secret")],
)
def test_parse_basic_auth_rejects_malformed(header: str | None) -> None:
    """Missing or malformed headers are rejected."""
    with pytest.raises(ValidationError):
        parse_basic_auth(header)


def test_issue_and_decode(settings: Settings) -> None:
    """Issued tokens decode with the configured secret."""
    token = issue_access_token("listener", "pw", settings)

    claims = jwt.decode(token, "s3cret", algorithms=["HS256"])

    assert claims["clientId"] == "listener"
    assert claims["exp"] - claims["iat"] == 3600


def test_issue_rejects_wrong_credentials(settings: Settings) -> None:
    """Credentials other than the configured ones are rejected."""
    with pytest.raises(AuthenticationError):
        issue_access_token("listener", "wrong", settings)


def test_issue_rejects_missing_credentials(settings: Settings) -> None:
    """Empty credentials are a validation error."""
    with pytest.raises(ValidationError):
        issue_access_token("", "pw", settings)

