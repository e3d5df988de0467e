"""Tests for the SessionHeaderBackend authentication backend."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.requests import HTTPConnection

from core.auth.models import Role, Session
from portal.auth.backend import SessionHeaderBackend
from portal.auth.models import AuthenticatedUser


def _conn(headers: dict[str, str]) -> HTTPConnection:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return HTTPConnection({"type": "http", "headers": raw})


def _session(clock, role: Role) -> Session:
    return Session(username="carol", token="tok", login_time=clock.now, last_seen=clock.now, role=role)


@pytest.fixture
def auth_service() -> MagicMock:
    svc = MagicMock()
    svc.validate_session = AsyncMock(return_value=None)
    return svc


class TestSessionHeaderBackend:
    async def test_no_headers_is_anonymous(self, auth_service):
        assert await SessionHeaderBackend(auth_service).authenticate(_conn({})) is None
        auth_service.validate_session.assert_awaited_once_with(None, None)

    async def test_user_session(self, auth_service, clock):
        auth_service.validate_session.return_value = _session(clock, Role.USER)

        creds, user = await SessionHeaderBackend(auth_service).authenticate(
            _conn({"X-Session-User": "carol", "X-Session-Token": "tok"}),
        )

        auth_service.validate_session.assert_awaited_once_with("carol", "tok")
        assert creds.scopes == ["authenticated"]
        assert isinstance(user, AuthenticatedUser)
        assert user.username == "carol"
        assert user.is_admin is False

    async def test_admin_session_gets_admin_scope(self, auth_service, clock):
        auth_service.validate_session.return_value = _session(clock, Role.ADMIN)

        creds, user = await SessionHeaderBackend(auth_service).authenticate(
            _conn({"X-Session-User": "carol", "X-Session-Token": "tok"}),
        )

        assert creds.scopes == ["authenticated", "admin"]
        assert user.is_admin is True

    async def test_invalid_session_is_anonymous(self, auth_service):
        result = await SessionHeaderBackend(auth_service).authenticate(
            _conn({"X-Session-User": "carol", "X-Session-Token": "wrong"}),
        )
        assert result is None
