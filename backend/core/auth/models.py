"""Account, session and search-log records."""

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Self

from pydantic import BaseModel, model_validator


class Role(StrEnum):
    ADMIN = "admin"
    USER = "user"


class Account(BaseModel, frozen=True):
    """Stored account. For users, expires_at doubles as the credit balance."""

    username: str
    password_hash: str
    role: Role = Role.USER
    created_at: datetime
    expires_at: datetime | None = None  # None only for admins (never expire)

    @model_validator(mode="after")
    def _validate_expiration(self) -> Self:
        if self.role == Role.ADMIN and self.expires_at is not None:
            raise ValueError("Admin accounts must not have an expiration")
        if self.role == Role.USER and self.expires_at is None:
            raise ValueError("User accounts must have an expiration")
        return self

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def is_expired(self, now: datetime) -> bool:
        """An account whose expiry equals now is already expired."""
        return self.expires_at is not None and self.expires_at <= now


class AccountSummary(BaseModel, frozen=True):
    """Public view of an account (no password hash)."""

    username: str
    role: Role
    created_at: datetime
    expires_at: datetime | None
    is_expired: bool

    @classmethod
    def of(cls, account: Account, now: datetime) -> Self:
        return cls(
            username=account.username,
            role=account.role,
            created_at=account.created_at,
            expires_at=account.expires_at,
            is_expired=account.is_expired(now),
        )


class CreatedAccount(BaseModel, frozen=True):
    """Result of account creation. The only place the plain password is ever exposed."""

    username: str
    password: str
    expires_at: datetime


class Session(BaseModel, frozen=True):
    """The single session slot of a username."""

    username: str
    token: str
    login_time: datetime
    last_seen: datetime
    role: Role

    def is_live(self, now: datetime, staleness: timedelta) -> bool:
        return now - self.last_seen <= staleness


class SearchEntry(BaseModel, frozen=True):
    username: str
    query: str
    timestamp: datetime
