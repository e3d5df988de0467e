"""Error taxonomy shared by the stores and the HTTP layer.

Each error carries the HTTP status it maps to, so handlers can translate any
PortalError without knowing which store raised it.
"""

from enum import StrEnum
from http import HTTPStatus


class PortalError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Missing or malformed input, rejected before any store is touched."""


class AuthFailure(StrEnum):
    NOT_FOUND = "not_found"
    BAD_PASSWORD = "bad_password"  # noqa: S105
    EXPIRED = "expired"


_AUTH_MESSAGES = {
    AuthFailure.NOT_FOUND: "User not found",
    AuthFailure.BAD_PASSWORD: "Invalid password",
    AuthFailure.EXPIRED: "User account has expired",
}


class AuthError(PortalError):
    """Credential check failed. Reasons are checked in declaration order."""

    status_code = HTTPStatus.UNAUTHORIZED

    def __init__(self, reason: AuthFailure) -> None:
        super().__init__(_AUTH_MESSAGES[reason])
        self.reason = reason


class SessionFailure(StrEnum):
    NO_SESSION = "no_session"
    BAD_TOKEN = "bad_token"  # noqa: S105
    EXPIRED = "expired"
    INVALID = "invalid"


_SESSION_MESSAGES = {
    SessionFailure.NO_SESSION: "No active session",
    SessionFailure.BAD_TOKEN: "Invalid session token",
    SessionFailure.EXPIRED: "Session expired",
    SessionFailure.INVALID: "Invalid session",
}


class SessionError(PortalError):
    status_code = HTTPStatus.UNAUTHORIZED

    def __init__(self, reason: SessionFailure, message: str | None = None) -> None:
        super().__init__(message or _SESSION_MESSAGES[reason])
        self.reason = reason


class ConflictError(PortalError):
    """Duplicate username (400), session in use (423) or a concurrent balance change (409)."""

    def __init__(self, message: str, status_code: int = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(PortalError):
    status_code = HTTPStatus.NOT_FOUND


class InternalError(PortalError):
    """Storage failure. Details are logged, never sent to the client."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self) -> None:
        super().__init__("Internal server error")
