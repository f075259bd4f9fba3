from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic so the service starts without setup.
    - Every value can be overridden with an `APP_`-prefixed env var.
    - The signing secret is also read from a bare `JWT_SECRET` for existing deployments.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore", populate_by_name=True)

    environment: str = "development"

    db_url: str | None = None
    security_config_path: str | None = None
    log_level: str = "INFO"
    seed_demo_data: bool = True

    jwt_secret: str | None = Field(default=None, validation_alias=AliasChoices("APP_JWT_SECRET", "JWT_SECRET"))
    session_ttl_seconds: int = 8 * 60 * 60
    session_cookie_name: str = "session"
    bcrypt_rounds: int = 12

    quran_api_base_url: str = "https://equran.id/api/v2"
    prayer_api_base_url: str = "https://api.myquran.com/v2"
    content_cache_ttl_seconds: int = 3600
    upstream_timeout_seconds: float = 15.0
    upstream_max_retries: int = 3
    upstream_backoff_seconds: float = 1.0

    # Wall-clock offset used to place attendance timestamps on a calendar day (WIB).
    report_utc_offset_minutes: int = 7 * 60

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "app.db"
        return f"sqlite:///{db_path}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "security_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
