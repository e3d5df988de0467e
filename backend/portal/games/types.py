"""Game identifiers and the per-game payload each wager carries."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class GameType(StrEnum):
    MINES = "mines"
    CRASH = "crash"
    BLACKJACK = "blackjack"
    TOWER = "tower"
    PLINKO = "plinko"
    AVIAMASTER = "aviamaster"


class MinesData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    safe_tiles: int = Field(ge=0, le=25, alias="safeTiles")
    bombs: int = Field(ge=1, le=24)


class CashoutData(BaseModel):
    """Crash and aviamaster: the multiplier the player cashed out at (0 when crashed)."""

    model_config = ConfigDict(populate_by_name=True)

    cashout_multiplier: float = Field(ge=0, le=1_000, alias="cashoutMultiplier")


class BlackjackData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_total: int = Field(ge=0, alias="playerTotal")
    dealer_total: int = Field(ge=0, alias="dealerTotal")
    is_blackjack: bool = Field(default=False, alias="isBlackjack")


class TowerData(BaseModel):
    level: int = Field(ge=0, le=50)


class PlinkoData(BaseModel):
    multiplier: float = Field(ge=0, le=1_000)


GAME_DATA_MODELS: dict[GameType, type[BaseModel]] = {
    GameType.MINES: MinesData,
    GameType.CRASH: CashoutData,
    GameType.BLACKJACK: BlackjackData,
    GameType.TOWER: TowerData,
    GameType.PLINKO: PlinkoData,
    GameType.AVIAMASTER: CashoutData,
}


class PayoutResult(BaseModel, frozen=True):
    winnings: int
    multiplier: float
