"""Accounts, sessions, credits and the search log."""

from core.auth.account_store import AccountStore
from core.auth.credits import UNLIMITED, Unlimited, credits, format_credits, settle_wager
from core.auth.errors import (
    AuthError,
    AuthFailure,
    ConflictError,
    InternalError,
    NotFoundError,
    PortalError,
    SessionError,
    SessionFailure,
    ValidationError,
)
from core.auth.models import Account, AccountSummary, CreatedAccount, Role, SearchEntry, Session
from core.auth.password import get_hasher
from core.auth.search_log import SearchLog
from core.auth.service import AuthService
from core.auth.session_registry import SessionRegistry
from core.auth.settings import AuthSettings

__all__ = [
    "UNLIMITED",
    "Account",
    "AccountStore",
    "AccountSummary",
    "AuthError",
    "AuthFailure",
    "AuthService",
    "AuthSettings",
    "ConflictError",
    "CreatedAccount",
    "InternalError",
    "NotFoundError",
    "PortalError",
    "Role",
    "SearchEntry",
    "SearchLog",
    "Session",
    "SessionError",
    "SessionFailure",
    "SessionRegistry",
    "Unlimited",
    "ValidationError",
    "credits",
    "format_credits",
    "get_hasher",
    "settle_wager",
]
