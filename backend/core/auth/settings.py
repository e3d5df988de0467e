"""Account, session and search-log settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class AuthSettings(BaseSettings):
    model_config = {"env_prefix": "AUTH_"}

    # Directory holding accounts.json, sessions.json and searches.json
    data_dir: str = "data"

    # Bootstrap admin, created only when no accounts file exists yet.
    # The application fails to start if AUTH_ADMIN_PASSWORD is not set.
    admin_username: str = Field(default="admin", min_length=1)
    admin_password: str = Field(min_length=1)

    # "bcrypt" in production, "simple" for tests
    password_hasher: str = "bcrypt"

    session_staleness_seconds: int = Field(default=300, gt=0)
    sweep_interval_seconds: float = Field(default=60, gt=0)
    # Advertised to clients in the login response; the server only enforces staleness.
    heartbeat_interval_seconds: int = Field(default=60, gt=0)
    search_log_max_entries: int = Field(default=5000, gt=0)

    @property
    def accounts_file(self) -> Path:
        return Path(self.data_dir) / "accounts.json"

    @property
    def sessions_file(self) -> Path:
        return Path(self.data_dir) / "sessions.json"

    @property
    def searches_file(self) -> Path:
        return Path(self.data_dir) / "searches.json"
