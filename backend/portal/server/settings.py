"""Portal server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from core.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class PortalServerSettings(BaseSettings):
    model_config = {"env_prefix": "PORTAL_"}

    log_dir: str = "backend/logs/portal"
    static_dir: str = "public"
    cors_origins: list[str] = []

    # Per-client request budget: max_requests per window_seconds.
    rate_limit_window_seconds: float = Field(default=15 * 60, gt=0)
    rate_limit_max_requests: int = Field(default=25_000, gt=0)

    # Require an admin session for account, session and search-log administration.
    admin_api_auth: bool = True

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
