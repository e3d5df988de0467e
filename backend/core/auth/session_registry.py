"""Single-slot-per-username session registry with heartbeat liveness."""

from __future__ import annotations

import asyncio
import secrets
from datetime import timedelta
from http import HTTPStatus
from typing import TYPE_CHECKING

import structlog

from core.auth.errors import ConflictError, NotFoundError, SessionError, SessionFailure
from core.auth.models import Session
from core.clock import utc_now
from core.storage import JsonDocument

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from core.auth.models import Role
    from core.clock import Clock

DEFAULT_STALENESS_SECONDS = 300  # 5 minutes without a heartbeat
TOKEN_BYTES = 32

logger = structlog.get_logger()


def _token_matches(session: Session, token: str) -> bool:
    # compare_digest rejects non-ASCII str; JSON bodies may also carry lone surrogates.
    return secrets.compare_digest(session.token.encode("utf-8"), token.encode("utf-8", "surrogatepass"))


class SessionRegistry:
    """One session per username, kept alive by heartbeats.

    A session is live while now - last_seen <= staleness. A stale session no
    longer blocks a new login, but it is never revived: it is evicted by a
    sweep, by list_active(), by a rejected heartbeat, or by being replaced on
    the next login. Sessions are persisted write-through so a restart keeps
    users logged in.
    """

    def __init__(
        self,
        file_path: str | Path,
        *,
        clock: Clock = utc_now,
        staleness_seconds: float = DEFAULT_STALENESS_SECONDS,
    ) -> None:
        self._document = JsonDocument(file_path)
        self._clock = clock
        self._staleness = timedelta(seconds=staleness_seconds)
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()
        self._loaded = False

    async def _ensure_loaded(self) -> None:
        async with self._lock:
            if self._loaded:
                return
            data = self._document.load(dict) or {}
            try:
                self._sessions = {username: Session.model_validate(item) for username, item in data.items()}
            except ValueError as exc:
                msg = f"Failed to parse session data from {self._document.path}"
                raise OSError(msg) from exc
            self._loaded = True

    def _commit(self, previous: dict[str, Session]) -> None:
        try:
            self._document.save({username: s.model_dump(mode="json") for username, s in self._sessions.items()})
        except OSError:
            self._sessions = previous
            raise

    def _is_live(self, session: Session, now: datetime) -> bool:
        return session.is_live(now, self._staleness)

    async def login(self, username: str, role: Role) -> Session:
        """Open a session. Call only after the credentials were validated.

        Raises ConflictError(423) while another live session holds the slot.
        """
        await self._ensure_loaded()
        async with self._lock:
            now = self._clock()
            existing = self._sessions.get(username)
            if existing is not None and self._is_live(existing, now):
                raise ConflictError("Session currently in use", status_code=HTTPStatus.LOCKED)
            session = Session(
                username=username,
                token=secrets.token_urlsafe(TOKEN_BYTES),
                login_time=now,
                last_seen=now,
                role=role,
            )
            previous = dict(self._sessions)
            self._sessions[username] = session
            self._commit(previous)
        logger.info("session opened", username=username, replaced_stale=existing is not None)
        return session

    async def heartbeat(self, username: str, token: str) -> Session:
        """Refresh last_seen. A stale session is evicted and reported as EXPIRED."""
        await self._ensure_loaded()
        async with self._lock:
            session = self._sessions.get(username)
            if session is None:
                raise SessionError(SessionFailure.NO_SESSION)
            if not _token_matches(session, token):
                raise SessionError(SessionFailure.BAD_TOKEN)
            now = self._clock()
            previous = dict(self._sessions)
            if not self._is_live(session, now):
                del self._sessions[username]
                self._commit(previous)
                logger.info("stale session rejected on heartbeat", username=username)
                raise SessionError(SessionFailure.EXPIRED)
            refreshed = session.model_copy(update={"last_seen": now})
            self._sessions[username] = refreshed
            self._commit(previous)
        return refreshed

    async def get_live(self, username: str, token: str) -> Session | None:
        """Return the session if the token matches and it is live. Does not refresh it."""
        await self._ensure_loaded()
        session = self._sessions.get(username)
        if session is None or not _token_matches(session, token):
            return None
        if not self._is_live(session, self._clock()):
            return None
        return session

    async def validate(self, username: str, token: str) -> bool:
        return await self.get_live(username, token) is not None

    async def logout(self, username: str, token: str) -> None:
        await self._ensure_loaded()
        async with self._lock:
            session = self._sessions.get(username)
            if (
                session is None
                or not _token_matches(session, token)
                or not self._is_live(session, self._clock())
            ):
                raise SessionError(SessionFailure.INVALID)
            previous = dict(self._sessions)
            del self._sessions[username]
            self._commit(previous)
        logger.info("session closed", username=username)

    async def force_logout(self, username: str) -> None:
        """Drop any session for username regardless of token or liveness."""
        await self._ensure_loaded()
        async with self._lock:
            if username not in self._sessions:
                raise NotFoundError("Session not found")
            previous = dict(self._sessions)
            del self._sessions[username]
            self._commit(previous)
        logger.info("session force-closed", username=username)

    async def sweep_stale(self) -> int:
        """Evict every stale session. Returns the count evicted."""
        await self._ensure_loaded()
        async with self._lock:
            now = self._clock()
            stale = [username for username, s in self._sessions.items() if not self._is_live(s, now)]
            if not stale:
                return 0
            previous = dict(self._sessions)
            for username in stale:
                del self._sessions[username]
            self._commit(previous)
        logger.info("evicted stale sessions", count=len(stale), usernames=stale)
        return len(stale)

    async def list_active(self) -> list[Session]:
        """Evict stale sessions, then return the live ones."""
        await self.sweep_stale()
        return list(self._sessions.values())
