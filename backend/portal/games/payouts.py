"""Server-side payout rules for the credit games.

The games themselves run in the browser; the client reports the final state
(tiles cleared, cash-out multiplier, hand totals, ...) and the server turns
it into a payout. Winnings are always floor(bet * multiplier).
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from portal.games.types import (
    GAME_DATA_MODELS,
    BlackjackData,
    CashoutData,
    GameType,
    MinesData,
    PayoutResult,
    PlinkoData,
    TowerData,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

    from pydantic import BaseModel

BLACKJACK_LIMIT = 21
TOWER_STEP_MULTIPLIER = 1.2
MINES_BOMB_FACTOR = 0.1


def _payout(bet: int, multiplier: float) -> PayoutResult:
    return PayoutResult(winnings=math.floor(bet * multiplier), multiplier=multiplier)


def _mines(bet: int, data: MinesData) -> PayoutResult:
    return _payout(bet, (1 + data.bombs * MINES_BOMB_FACTOR) ** data.safe_tiles)


def _cashout(bet: int, data: CashoutData) -> PayoutResult:
    return _payout(bet, data.cashout_multiplier)


def _blackjack(bet: int, data: BlackjackData) -> PayoutResult:
    # Order matters: a player bust loses even if the dealer also busts.
    if data.player_total > BLACKJACK_LIMIT:
        multiplier = 0.0
    elif data.dealer_total > BLACKJACK_LIMIT:
        multiplier = 2.0
    elif data.is_blackjack:
        multiplier = 2.5
    elif data.player_total > data.dealer_total:
        multiplier = 2.0
    elif data.player_total == data.dealer_total:
        multiplier = 1.0
    else:
        multiplier = 0.0
    return _payout(bet, multiplier)


def _tower(bet: int, data: TowerData) -> PayoutResult:
    return _payout(bet, TOWER_STEP_MULTIPLIER**data.level)


def _plinko(bet: int, data: PlinkoData) -> PayoutResult:
    return _payout(bet, data.multiplier)


_RULES: dict[GameType, Callable[[int, Any], PayoutResult]] = {
    GameType.MINES: _mines,
    GameType.CRASH: _cashout,
    GameType.BLACKJACK: _blackjack,
    GameType.TOWER: _tower,
    GameType.PLINKO: _plinko,
    GameType.AVIAMASTER: _cashout,
}


def parse_game_data(game_type: GameType, raw: dict[str, Any]) -> BaseModel:
    """Validate the client's game report. Raises pydantic.ValidationError."""
    return GAME_DATA_MODELS[game_type].model_validate(raw)


def compute_payout(game_type: GameType, bet: int, game_data: BaseModel) -> PayoutResult:
    return _RULES[game_type](bet, game_data)
