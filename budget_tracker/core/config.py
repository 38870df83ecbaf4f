# budget_tracker/core/config.py

from functools import lru_cache
from pathlib import Path

from fastapi import Request
from pydantic import EmailStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the project root directory (where .env should be located)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra="ignore"
    )

    # App Configuration
    APP_NAME: str = "Budget Tracker API"
    DEBUG: bool = False
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database Configuration
    DATABASE_URL: str
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30

    # JWT / Security Configuration
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080
    RESET_PASSWORD_TOKEN_LIFETIME_SECONDS: int = 3600

    # CORS Configuration
    FRONTEND_URL: str = "http://localhost:3000"

    # SendGrid Configuration
    SENDGRID_API_KEY: str = ""
    EMAIL_FROM: EmailStr = "no-reply@example.com"
    EMAIL_FROM_NAME: str = "Budget Tracker"

    # Create the built-in categories on startup
    SEED_DEFAULT_CATEGORIES: bool = True

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def is_memory_sqlite(self) -> bool:
        """In-memory SQLite needs a single shared connection."""
        return self.is_sqlite and (
            ":memory:" in self.DATABASE_URL or self.DATABASE_URL.rstrip("/").endswith(":")
        )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Build settings from the environment. Only used at startup and by Alembic."""
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """Dependency returning the settings the running app was created with."""
    return request.app.state.settings
