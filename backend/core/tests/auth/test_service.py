"""Tests for AuthService flows and the periodic sweep."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from core.auth.account_store import AccountStore
from core.auth.errors import AuthError, AuthFailure, ConflictError, SessionError, SessionFailure
from core.auth.models import Role
from core.auth.password import SimpleHasher
from core.auth.search_log import SearchLog
from core.auth.service import AuthService
from core.auth.session_registry import SessionRegistry


@pytest.fixture
def service(tmp_path, clock) -> AuthService:
    accounts = AccountStore(
        tmp_path / "accounts.json",
        password_hasher=SimpleHasher(),
        clock=clock,
        admin_username="root",
        admin_password="secret",
    )
    sessions = SessionRegistry(tmp_path / "sessions.json", clock=clock)
    searches = SearchLog(tmp_path / "searches.json", clock=clock)
    return AuthService(accounts, sessions, searches, clock=clock, sweep_interval_seconds=0.01)


class TestLogin:
    async def test_returns_account_and_session(self, service):
        created = await service.accounts.create_account("alice", 10)

        account, session = await service.login("alice", created.password)

        assert account.username == "alice"
        assert session.username == "alice"
        assert session.role == Role.USER

    async def test_admin_login(self, service):
        account, session = await service.login("root", "secret")

        assert account.role == Role.ADMIN
        assert session.role == Role.ADMIN

    async def test_bad_password_opens_no_session(self, service):
        created = await service.accounts.create_account("alice", 10)

        with pytest.raises(AuthError) as exc_info:
            await service.login("alice", created.password + "9")
        assert exc_info.value.reason == AuthFailure.BAD_PASSWORD
        assert await service.sessions.list_active() == []

    async def test_second_login_is_locked(self, service):
        created = await service.accounts.create_account("alice", 10)
        await service.login("alice", created.password)

        with pytest.raises(ConflictError) as exc_info:
            await service.login("alice", created.password)
        assert exc_info.value.status_code == 423


class TestHeartbeat:
    async def test_refreshes_live_session(self, service, clock):
        created = await service.accounts.create_account("alice", 10)
        _, session = await service.login("alice", created.password)
        clock.advance(minutes=1)

        refreshed = await service.heartbeat("alice", session.token)

        assert refreshed.last_seen == clock.now

    async def test_expired_account_closes_session(self, service, clock):
        created = await service.accounts.create_account("bob", 1)
        _, session = await service.login("bob", created.password)
        # A lost wager drains the balance while the session is still fresh.
        await service.accounts.extend_or_reduce_expiration("bob", clock.now)

        with pytest.raises(SessionError, match="User account has expired") as exc_info:
            await service.heartbeat("bob", session.token)
        assert exc_info.value.reason == SessionFailure.EXPIRED
        assert await service.validate_session("bob", session.token) is None

    async def test_deleted_account_closes_session(self, service):
        created = await service.accounts.create_account("alice", 10)
        _, session = await service.login("alice", created.password)
        await service.accounts.delete_account("alice")

        with pytest.raises(SessionError):
            await service.heartbeat("alice", session.token)
        assert await service.sessions.list_active() == []


class TestValidateSession:
    @pytest.mark.parametrize(("username", "token"), [(None, "t"), ("alice", None), ("", ""), (None, None)])
    async def test_missing_credentials(self, service, username, token):
        assert await service.validate_session(username, token) is None

    async def test_live_session(self, service):
        _, session = await service.login("root", "secret")
        assert await service.validate_session("root", session.token) == session


class TestRecordSearch:
    async def test_requires_live_session(self, service):
        with pytest.raises(SessionError) as exc_info:
            await service.record_search("alice", "nope", "weather")
        assert exc_info.value.reason == SessionFailure.INVALID
        assert await service.searches.list_searches() == []

    async def test_records_for_live_session(self, service):
        created = await service.accounts.create_account("alice", 10)
        _, session = await service.login("alice", created.password)

        entry = await service.record_search("alice", session.token, "weather")

        assert entry.username == "alice"
        assert await service.searches.list_searches() == [entry]


class TestSweeps:
    async def test_run_sweeps_counts(self, service, clock):
        created = await service.accounts.create_account("bob", 1)
        await service.login("bob", created.password)
        await service.accounts.create_account("carol", 30)
        clock.advance(hours=25)

        assert await service.run_sweeps() == (1, 1)
        assert await service.run_sweeps() == (0, 0)

    async def test_background_loop_runs_sweeps(self, service):
        with patch.object(service, "run_sweeps", new=AsyncMock(return_value=(0, 0))) as run_sweeps:
            service.start_sweeps()
            await asyncio.sleep(0.05)
            await service.stop_sweeps()

        assert run_sweeps.await_count >= 1

    async def test_loop_survives_storage_errors(self, service):
        with patch.object(service, "run_sweeps", new=AsyncMock(side_effect=OSError("disk full"))) as run_sweeps:
            service.start_sweeps()
            await asyncio.sleep(0.05)
            await service.stop_sweeps()

        assert run_sweeps.await_count >= 2

    async def test_loop_survives_unexpected_errors(self, service):
        with patch.object(service, "run_sweeps", new=AsyncMock(side_effect=RuntimeError("boom"))) as run_sweeps:
            service.start_sweeps()
            await asyncio.sleep(0.05)
            assert not service._sweep_task.done()
            await service.stop_sweeps()

        assert run_sweeps.await_count >= 2
        assert service._sweep_task is None

    async def test_start_is_idempotent(self, service):
        service.start_sweeps()
        task = service._sweep_task
        service.start_sweeps()

        assert service._sweep_task is task
        await service.stop_sweeps()
        assert service._sweep_task is None

    async def test_stop_without_start(self, service):
        await service.stop_sweeps()
