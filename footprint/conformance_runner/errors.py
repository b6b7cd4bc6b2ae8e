"""Error types raised by the conformance runner."""


class ConformanceError(Exception):
    """Base error carrying the HTTP status it maps to at the service edge."""

    status_code = 500
    code = "InternalError"


class ValidationError(ConformanceError):
    """Caller input is missing or malformed."""

    status_code = 400
    code = "BadRequest"


class NotFoundError(ConformanceError):
    """A referenced test run or its side data does not exist."""

    status_code = 404
    code = "NotFound"


class AuthenticationError(ConformanceError):
    """Client credentials were rejected."""

    status_code = 401
    code = "Unauthorized"
