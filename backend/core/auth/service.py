"""Auth service coordinating accounts, sessions, the search log and periodic sweeps."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import structlog

from core.auth.errors import SessionError, SessionFailure
from core.clock import utc_now

if TYPE_CHECKING:
    from datetime import datetime

    from core.auth.account_store import AccountStore
    from core.auth.models import AccountSummary, SearchEntry, Session
    from core.auth.search_log import SearchLog
    from core.auth.session_registry import SessionRegistry
    from core.clock import Clock

DEFAULT_SWEEP_INTERVAL_SECONDS = 60

logger = structlog.get_logger()


class AuthService:
    """Login, heartbeat and logout flows across the account store and session registry.

    Also owns the background sweep that removes expired accounts and stale
    sessions. Call start_sweeps() on app startup and stop_sweeps() on shutdown.
    """

    def __init__(
        self,
        accounts: AccountStore,
        sessions: SessionRegistry,
        searches: SearchLog,
        *,
        clock: Clock = utc_now,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self.accounts = accounts
        self.sessions = sessions
        self.searches = searches
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._sweep_task: asyncio.Task[None] | None = None

    async def login(self, username: str, password: str) -> tuple[AccountSummary, Session]:
        """Validate credentials, then claim the username's session slot."""
        account = await self.accounts.validate_credentials(username, password)
        session = await self.sessions.login(account.username, account.role)
        return account, session

    async def heartbeat(self, username: str, token: str) -> Session:
        """Keep a session alive, closing it as soon as the account is gone or expired."""
        session = await self.sessions.heartbeat(username, token)
        account = await self.accounts.get_account(username)
        if account is None or account.is_expired(self._clock()):
            await self.sessions.force_logout(username)
            raise SessionError(SessionFailure.EXPIRED, "User account has expired")
        return session

    async def validate_session(self, username: str | None, token: str | None) -> Session | None:
        """Return the live session for username/token without refreshing it."""
        if not username or not token:
            return None
        return await self.sessions.get_live(username, token)

    async def logout(self, username: str, token: str) -> None:
        await self.sessions.logout(username, token)

    async def force_logout(self, username: str) -> None:
        await self.sessions.force_logout(username)

    async def record_search(
        self,
        username: str,
        token: str,
        query: str,
        timestamp: datetime | None = None,
    ) -> SearchEntry:
        if not await self.sessions.validate(username, token):
            raise SessionError(SessionFailure.INVALID)
        return await self.searches.record(username, query, timestamp)

    async def run_sweeps(self) -> tuple[int, int]:
        """Run one account sweep and one session sweep. Returns (accounts, sessions) removed."""
        removed_accounts = await self.accounts.sweep_expired()
        removed_sessions = await self.sessions.sweep_stale()
        return removed_accounts, removed_sessions

    def start_sweeps(self) -> None:
        """Start the periodic sweep background task."""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop_sweeps(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self.run_sweeps()
            except Exception:
                logger.exception("periodic sweep failed")
