"""User model for Starlette AuthenticationMiddleware integration."""

from __future__ import annotations

from starlette.authentication import BaseUser

from core.auth.models import Role


class AuthenticatedUser(BaseUser):
    """request.user for a request carrying a live session in its headers."""

    def __init__(self, username: str, role: Role = Role.USER) -> None:
        self._username = username
        self._role = role

    @property
    def is_authenticated(self) -> bool:  # pragma: no cover
        return True

    @property
    def display_name(self) -> str:  # pragma: no cover
        return self._username

    @property
    def identity(self) -> str:  # pragma: no cover
        return self._username

    @property
    def username(self) -> str:
        return self._username

    @property
    def role(self) -> Role:
        return self._role

    @property
    def is_admin(self) -> bool:
        return self._role == Role.ADMIN
