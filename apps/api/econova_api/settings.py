"""Application settings and configuration."""

from datetime import date
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = None
    sqlite_path: str = "./econova.db"
    database_pool_size: int = 10
    database_max_overflow: int = 20

    # API
    api_port: int = 8000
    api_host: str = "0.0.0.0"
    secret_key: str = "dev-secret-key-change-in-production"
    admin_token: str = "dev-admin-token"
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Entry plausibility
    earliest_entry_date: date = date(2000, 1, 1)
    max_future_days: int = 1
    max_entry_kg: float = 100000.0

    # Official ledger
    deviation_decimals: int = 2

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @property
    def database_url_computed(self) -> str:
        """Compute database URL if not explicitly set."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.sqlite_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url_computed.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"

    def validate_production_settings(self):
        """Validate settings for production environment."""
        env = self.environment.lower()
        if env not in ("development", "test", "dev"):
            if self.secret_key == "dev-secret-key-change-in-production":
                raise ValueError(
                    "SECRET_KEY must be set outside development. "
                    "API key digests depend on it."
                )
            if self.admin_token == "dev-admin-token":
                raise ValueError("ADMIN_TOKEN must be set outside development.")
            if self.is_sqlite:
                raise ValueError(
                    "SQLite is not allowed outside development. "
                    "Set DATABASE_URL to a PostgreSQL instance."
                )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
