"""
Application configuration loaded from environment variables.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

DEFAULT_SESSION_SECRET = "CHANGE_ME_IN_PRODUCTION"


class Settings(BaseSettings):
    """Portfolio server configuration."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    # Database
    db_driver: str = "postgresql+asyncpg"
    db_host: str = "localhost"
    db_port: Optional[int] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_name: Optional[str] = None
    db_pool_size: int = 10
    # DATABASE_URL, when set, wins over the DB_* parts.
    database_url_override: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("database_url", "database_url_override"),
    )
    auto_create_tables: bool = False

    # Sessions
    session_secret: str = DEFAULT_SESSION_SECRET
    session_cookie_name: str = "portfolio_session"
    session_max_age_seconds: int = 14 * 24 * 60 * 60
    session_cookie_secure: bool = False
    redis_url: Optional[str] = None

    # OAuth (Google)
    google_client_id: str = ""
    google_client_secret: str = ""

    # Logging
    log_level: str = "info"
    log_format: Literal["json", "text"] = "text"

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        url = URL.create(
            self.db_driver,
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )
        return url.render_as_string(hide_password=False)

    @property
    def google_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    @property
    def uses_default_secret(self) -> bool:
        return self.session_secret == DEFAULT_SESSION_SECRET


@lru_cache
def get_settings() -> Settings:
    return Settings()
