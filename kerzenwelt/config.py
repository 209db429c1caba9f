"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Kerzenwelt"
    app_env: Literal["development", "staging", "production"] = "development"
    app_secret_key: str
    app_base_url: str = "http://localhost:8000"
    app_debug: bool = False
    app_log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./kerzenwelt.db"
    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_auto_create: bool = True

    # JWT Authentication (admin writes)
    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 1440  # 24 hours

    # Settings API client
    api_base_url: str = "http://localhost:8000"
    api_token: str | None = None
    settings_stale_time_seconds: float = 300.0  # 5 minutes
    settings_refetch_interval_seconds: float | None = 2.0

    @field_validator("settings_refetch_interval_seconds", mode="before")
    @classmethod
    def parse_refetch_interval(cls, v):
        """An empty value, "none", "off" or a non-positive interval disables polling."""
        if v is None:
            return None
        if isinstance(v, str):
            v = v.strip()
            if v.lower() in ("", "none", "null", "off"):
                return None
        if float(v) <= 0:
            return None
        return v

    @property
    def effective_jwt_secret(self) -> str:
        """Get the JWT secret key, falling back to app secret key."""
        return self.jwt_secret_key or self.app_secret_key

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    @property
    def async_database_url(self) -> str:
        """Get database URL with an async driver for SQLAlchemy."""
        url = self.database_url
        # Convert postgresql:// to postgresql+asyncpg://
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        return url


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config()


# Global configuration instance
config = get_config()
