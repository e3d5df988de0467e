"""Credits: whole days left before an account expires.

Credits are never stored. They are projected from expires_at on demand, and
spending or winning credits moves expires_at by whole days. Admin accounts
have unlimited credits and their expiry is never touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Final

from core.auth.errors import AuthError, AuthFailure, ValidationError

if TYPE_CHECKING:
    from datetime import datetime

    from core.auth.account_store import AccountStore
    from core.auth.models import Account

DAY = timedelta(days=1)


class Unlimited(Enum):
    UNLIMITED = "unlimited"

    def __str__(self) -> str:
        return "∞"


UNLIMITED: Final = Unlimited.UNLIMITED


def credits(account: Account, now: datetime) -> int | Unlimited:
    """max(0, ceil((expires_at - now) / 1 day)), or UNLIMITED for admins."""
    if account.is_admin or account.expires_at is None:
        return UNLIMITED
    remaining = account.expires_at - now
    return max(0, -(-remaining // DAY))


def format_credits(value: int | Unlimited) -> str:
    return str(value)


def shift_expiration(account: Account, delta_days: int) -> datetime | None:
    """expires_at moved by delta_days whole days; None for admins."""
    if account.is_admin or account.expires_at is None:
        return None
    return account.expires_at + timedelta(days=delta_days)


def check_wager(account: Account, bet: int, now: datetime) -> None:
    """Reject a bet the account cannot cover. Expired accounts cannot play at all."""
    if bet < 1:
        raise ValidationError("Bet must be at least 1 credit")
    if account.is_admin:
        return
    if account.is_expired(now):
        raise AuthError(AuthFailure.EXPIRED)
    if bet > credits(account, now):
        raise ValidationError("Insufficient credits")


@dataclass(frozen=True)
class WagerOutcome:
    bet: int
    winnings: int
    credits: int | Unlimited

    @property
    def delta_days(self) -> int:
        return self.winnings - self.bet


async def settle_wager(
    store: AccountStore,
    account: Account,
    bet: int,
    winnings: int,
    now: datetime,
) -> WagerOutcome:
    """Apply a wager's net result (winnings - bet days) to the account's expiry.

    The update is conditional on the expiry read by the caller, so two
    concurrent wagers cannot both spend the same balance; the loser of the
    race gets ConflictError(409).
    """
    check_wager(account, bet, now)
    new_expires_at = shift_expiration(account, winnings - bet)
    if new_expires_at is None:
        return WagerOutcome(bet=bet, winnings=winnings, credits=UNLIMITED)
    updated = await store.extend_or_reduce_expiration(
        account.username,
        new_expires_at,
        expected_expires_at=account.expires_at,
    )
    return WagerOutcome(bet=bet, winnings=winnings, credits=credits(updated, now))
