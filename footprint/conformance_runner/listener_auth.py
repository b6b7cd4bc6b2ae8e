"""Token issuing for systems under test that post events to this service."""

import base64
import binascii
from datetime import datetime, timedelta, timezone

import jwt

from footprint.conformance_runner.config import Settings
from footprint.conformance_runner.errors import AuthenticationError, ValidationError

TOKEN_LIFETIME = timedelta(hours=1)
ALGORITHM = "HS256"


def parse_basic_auth(header: str | None) -> tuple[str, str]:
    """Split a Basic Authorization header into client id and secret.

    Raises:
        ValidationError: If the header is missing or malformed

    """
    if not header or not header.startswith("Basic "):
        raise ValidationError("Missing or invalid Authorization header")

    encoded = header[len("Basic ") :].strip()
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise ValidationError("Invalid Basic authentication format")

    client_id, _, client_secret = decoded.partition(":")
    if not client_id or not client_secret:
        raise ValidationError("Invalid Basic authentication format")
    return client_id, client_secret


def issue_access_token(client_id: str, client_secret: str, settings: Settings) -> str:
    """Issue a signed token for the configured listener credentials.

    Raises:
        ValidationError: If a credential is missing
        AuthenticationError: If the credentials do not match

    """
    if not client_id or not client_secret:
        raise ValidationError("Missing client credentials")
    if (
        client_id != settings.listener_client_id
        or client_secret != settings.listener_client_secret
    ):
        raise AuthenticationError("Invalid client credentials")

    now = datetime.now(timezone.utc)
    claims = {"clientId": client_id, "iat": now, "exp": now + TOKEN_LIFETIME}
    return jwt.encode(claims, settings.jwt_secret, algorithm=ALGORITHM)

