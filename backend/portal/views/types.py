"""Request bodies for the JSON API. Wire names are camelCase."""

from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from portal.games.types import GameType

MAX_EXPIRATION_DAYS = 365


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateUserRequest(_Body):
    username: str = Field(min_length=1, max_length=64)
    expiration_days: int = Field(ge=1, le=MAX_EXPIRATION_DAYS, alias="expirationDays")


class LoginRequest(_Body):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SessionRequest(_Body):
    username: str = Field(min_length=1)
    token: str = Field(min_length=1)


class SearchRequest(SessionRequest):
    query: str = Field(min_length=1)
    timestamp: AwareDatetime | None = None


class BetRequest(SessionRequest):
    game_type: GameType = Field(alias="gameType")
    bet_amount: int = Field(ge=1, alias="betAmount")
    game_data: dict[str, Any] = Field(default_factory=dict, alias="gameData")
