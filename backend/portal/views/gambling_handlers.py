"""Credit balance and wager endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pydantic
import structlog

from core.auth.credits import Unlimited, credits, format_credits, settle_wager
from core.auth.errors import NotFoundError, SessionError, SessionFailure, ValidationError
from portal.games.payouts import compute_payout, parse_game_data
from portal.views.common import describe_validation_error, parse_body, success
from portal.views.types import BetRequest

if TYPE_CHECKING:
    from typing import Any

    from starlette.requests import Request
    from starlette.responses import Response

    from core.auth.service import AuthService
    from core.clock import Clock

logger = structlog.get_logger()


def _credits_json(value: int | Unlimited) -> dict[str, Any]:
    unlimited = isinstance(value, Unlimited)
    return {"credits": None if unlimited else value, "unlimited": unlimited, "display": format_credits(value)}


async def get_credits(request: Request) -> Response:
    """GET /api/credits - balance of the session in the request headers."""
    auth_service: AuthService = request.app.state.auth_service
    clock: Clock = request.app.state.clock
    account = await auth_service.accounts.get_account(request.user.username)
    if account is None:
        raise NotFoundError("User not found")
    return success(**_credits_json(credits(account, clock())))


async def place_bet(request: Request) -> Response:
    """POST /api/gambling/bet {username, token, gameType, betAmount, gameData}

    The net result (winnings - bet) moves the account's expiry by that many days.
    """
    auth_service: AuthService = request.app.state.auth_service
    clock: Clock = request.app.state.clock
    body = await parse_body(request, BetRequest)

    if await auth_service.validate_session(body.username, body.token) is None:
        raise SessionError(SessionFailure.INVALID)

    account = await auth_service.accounts.get_account(body.username)
    if account is None:
        raise NotFoundError("User not found")

    try:
        game_data = parse_game_data(body.game_type, body.game_data)
    except pydantic.ValidationError as exc:
        raise ValidationError(describe_validation_error(exc)) from exc

    now = clock()
    payout = compute_payout(body.game_type, body.bet_amount, game_data)
    outcome = await settle_wager(auth_service.accounts, account, body.bet_amount, payout.winnings, now)
    logger.info(
        "wager settled",
        username=account.username,
        game_type=body.game_type,
        bet=outcome.bet,
        winnings=outcome.winnings,
        delta_days=outcome.delta_days,
    )

    new_credits = _credits_json(outcome.credits)
    return success(
        result={"winnings": payout.winnings, "multiplier": payout.multiplier},
        newCredits=new_credits["credits"],
        unlimited=new_credits["unlimited"],
    )
