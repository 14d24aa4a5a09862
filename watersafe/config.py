"""
WaterSafe Hub - Configuration Management
Centralized configuration using pydantic-settings.
"""
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    log_level: str = "INFO"

    # Database - PostgreSQL in production, SQLite locally
    database_url: str = "sqlite:///./watersafe.db"
    db_echo: bool = False

    # API
    api_prefix: str = "/api"
    cors_origins: List[str] = ["*"]

    # Report intake
    report_code_prefix: str = "WS"
    report_code_max_attempts: int = 5

    # Lifecycle policy: False keeps any-to-any status moves
    forward_only_transitions: bool = False

    seed_demo_data: bool = False

    @field_validator("database_url")
    @classmethod
    def fix_postgres_scheme(cls, value: str) -> str:
        # Render/Heroku hand out postgres:// but SQLAlchemy needs postgresql://
        if value.startswith("postgres://"):
            return value.replace("postgres://", "postgresql://", 1)
        return value

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
