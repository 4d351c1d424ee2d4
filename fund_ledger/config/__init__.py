"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # ======================
    # Key-value store
    # ======================
    STORE_BACKEND: str = "memory"  # memory | redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_KEY_PREFIX: str = "portal:"

    # Per-entity locks
    LOCK_TIMEOUT_SECONDS: float = 10.0
    LOCK_BLOCKING_TIMEOUT_SECONDS: float = 5.0

    # ======================
    # Ledger
    # ======================
    PRICE_HISTORY_LIMIT: int = 100
    PORTFOLIO_HISTORY_LIMIT: int = 100

    # Reject trades on funds missing from the client's availableFunds
    ENFORCE_FUND_ACCESS: bool = False

    # ======================
    # Caller identity
    # ======================
    # Identities (set upstream in X-Caller-Id) allowed to run admin operations
    ADMIN_CALLER_IDS: List[str] = ["admin"]

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
