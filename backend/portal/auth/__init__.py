"""Portal authentication: Starlette backend, user model, and route policy."""

from portal.auth.backend import SessionHeaderBackend
from portal.auth.models import AuthenticatedUser
from portal.auth.policy import admin_api, public_route, session_api, validate_route_auth_policy

__all__ = [
    "AuthenticatedUser",
    "SessionHeaderBackend",
    "admin_api",
    "public_route",
    "session_api",
    "validate_route_auth_policy",
]
