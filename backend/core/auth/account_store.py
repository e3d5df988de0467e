"""File-backed account store with write-through persistence."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog

from core.auth.errors import AuthError, AuthFailure, ConflictError, NotFoundError, ValidationError
from core.auth.models import Account, AccountSummary, CreatedAccount, Role
from core.auth.password import generate_access_code
from core.clock import utc_now
from core.storage import JsonDocument

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from core.auth.password import PasswordHasher
    from core.clock import Clock

logger = structlog.get_logger()


class AccountStore:
    """Owns every account record and its lifecycle.

    The collection is loaded on first access and rewritten in full before any
    mutating call returns. A failed write restores the previous in-memory
    state and re-raises, so callers never observe a change that is not on
    disk. Read-modify-write sequences run under an asyncio.Lock.

    When the accounts file does not exist yet and admin credentials are
    configured, the admin account is bootstrapped and persisted.
    """

    def __init__(
        self,
        file_path: str | Path,
        *,
        password_hasher: PasswordHasher,
        clock: Clock = utc_now,
        admin_username: str | None = None,
        admin_password: str | None = None,
    ) -> None:
        self._document = JsonDocument(file_path)
        self._hasher = password_hasher
        self._clock = clock
        self._admin_username = admin_username
        self._admin_password = admin_password
        self._accounts: dict[str, Account] = {}  # keyed by username, insertion ordered
        self._lock = asyncio.Lock()
        self._loaded = False

    async def _ensure_loaded(self) -> None:
        async with self._lock:
            if self._loaded:
                return
            data = self._document.load(list)
            if data is None:
                await self._bootstrap_admin()
            else:
                try:
                    accounts = [Account.model_validate(item) for item in data]
                except ValueError as exc:
                    msg = f"Failed to parse account data from {self._document.path}"
                    raise OSError(msg) from exc
                self._accounts = {account.username: account for account in accounts}
            self._loaded = True

    async def _bootstrap_admin(self) -> None:
        self._accounts = {}
        if not self._admin_username or not self._admin_password:
            return
        admin = Account(
            username=self._admin_username,
            password_hash=await self._hasher.hash(self._admin_password),
            role=Role.ADMIN,
            created_at=self._clock(),
        )
        self._accounts[admin.username] = admin
        self._save()
        logger.info("bootstrapped admin account", username=admin.username)

    def _save(self) -> None:
        self._document.save([account.model_dump(mode="json") for account in self._accounts.values()])

    def _commit(self, previous: dict[str, Account]) -> None:
        try:
            self._save()
        except OSError:
            self._accounts = previous
            raise

    async def create_account(self, username: str, expiration_days: int) -> CreatedAccount:
        """Create a user account expiring expiration_days from now.

        Returns the generated access code in plain text; it is not retrievable later.
        """
        if not username:
            raise ValidationError("Username is required")
        if isinstance(expiration_days, bool) or not isinstance(expiration_days, int) or expiration_days < 1:
            raise ValidationError("Expiration days must be a positive integer")

        await self._ensure_loaded()
        if username in self._accounts:
            raise ConflictError("Username already exists")

        password = generate_access_code()
        password_hash = await self._hasher.hash(password)

        async with self._lock:
            # Re-check: another request may have taken the name while we hashed.
            if username in self._accounts:
                raise ConflictError("Username already exists")
            now = self._clock()
            account = Account(
                username=username,
                password_hash=password_hash,
                role=Role.USER,
                created_at=now,
                expires_at=now + timedelta(days=expiration_days),
            )
            previous = dict(self._accounts)
            self._accounts[username] = account
            self._commit(previous)

        logger.info("account created", username=username, expires_at=account.expires_at)
        return CreatedAccount(username=username, password=password, expires_at=account.expires_at)

    async def delete_account(self, username: str) -> None:
        await self._ensure_loaded()
        async with self._lock:
            if username not in self._accounts:
                raise NotFoundError("User not found")
            previous = dict(self._accounts)
            del self._accounts[username]
            self._commit(previous)
        logger.info("account deleted", username=username)

    async def get_account(self, username: str) -> Account | None:
        await self._ensure_loaded()
        return self._accounts.get(username)

    async def list_accounts(self) -> list[AccountSummary]:
        """All accounts in creation order."""
        await self._ensure_loaded()
        now = self._clock()
        return [AccountSummary.of(account, now) for account in self._accounts.values()]

    async def validate_credentials(self, username: str, password: str) -> AccountSummary:
        """Check a login attempt.

        Failures are reported in a fixed precedence: unknown user, then wrong
        password, then expiry. A wrong password on an expired account reports
        BAD_PASSWORD so expiry is never revealed without the right password.
        """
        await self._ensure_loaded()
        account = self._accounts.get(username)
        if account is None:
            raise AuthError(AuthFailure.NOT_FOUND)
        if not await self._hasher.verify(password, account.password_hash):
            raise AuthError(AuthFailure.BAD_PASSWORD)
        now = self._clock()
        if account.is_expired(now):
            raise AuthError(AuthFailure.EXPIRED)
        return AccountSummary.of(account, now)

    async def extend_or_reduce_expiration(
        self,
        username: str,
        new_expires_at: datetime,
        *,
        expected_expires_at: datetime | None = None,
    ) -> Account:
        """Move a user's expiry to new_expires_at. Admins are left untouched.

        No bounds are enforced: an expiry in the past expires the account
        immediately. When expected_expires_at is given the update only applies
        if the stored expiry still matches it (compare-and-set), otherwise
        ConflictError(409) is raised so the caller can re-read and retry.
        """
        await self._ensure_loaded()
        async with self._lock:
            account = self._accounts.get(username)
            if account is None:
                raise NotFoundError("User not found")
            if account.is_admin:
                return account
            if expected_expires_at is not None and account.expires_at != expected_expires_at:
                raise ConflictError("Balance changed, retry", status_code=409)
            updated = account.model_copy(update={"expires_at": new_expires_at})
            previous = dict(self._accounts)
            self._accounts[username] = updated
            self._commit(previous)
        return updated

    async def sweep_expired(self) -> int:
        """Remove expired user accounts. Admins are never removed. Returns the count removed."""
        await self._ensure_loaded()
        async with self._lock:
            now = self._clock()
            expired = [
                username
                for username, account in self._accounts.items()
                if not account.is_admin and account.is_expired(now)
            ]
            if not expired:
                return 0
            previous = dict(self._accounts)
            for username in expired:
                del self._accounts[username]
            self._commit(previous)
        logger.info("swept expired accounts", count=len(expired), usernames=expired)
        return len(expired)
