"""Starlette AuthenticationBackend that validates session headers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.authentication import AuthCredentials, AuthenticationBackend

from core.auth.models import Role
from portal.auth.models import AuthenticatedUser

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from core.auth.service import AuthService

SESSION_USER_HEADER = "x-session-user"
SESSION_TOKEN_HEADER = "x-session-token"  # noqa: S105


class SessionHeaderBackend(AuthenticationBackend):
    """Authenticate requests from the X-Session-User and X-Session-Token headers.

    Validation never refreshes the session: only an explicit heartbeat keeps
    a session alive. Admin sessions additionally get the "admin" scope.
    """

    def __init__(self, auth_service: AuthService) -> None:
        self._auth_service = auth_service

    async def authenticate(
        self,
        conn: HTTPConnection,
    ) -> tuple[AuthCredentials, AuthenticatedUser] | None:
        session = await self._auth_service.validate_session(
            conn.headers.get(SESSION_USER_HEADER),
            conn.headers.get(SESSION_TOKEN_HEADER),
        )
        if session is None:
            return None
        scopes = ["authenticated"]
        if session.role == Role.ADMIN:
            scopes.append("admin")
        return AuthCredentials(scopes), AuthenticatedUser(session.username, session.role)
