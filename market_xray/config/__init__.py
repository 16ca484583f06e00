"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


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
    APP_CONFIG_FILE: str = "config/app.yml"

    # ======================
    # Upstream (Yahoo Finance)
    # ======================
    YAHOO_QUOTE_PAGE_URL: str = "https://finance.yahoo.com/quote/{source}"
    YAHOO_OPTIONS_URL: str = "https://query1.finance.yahoo.com/v7/finance/options/{symbol}"
    HTTP_TIMEOUT_SECONDS: float = 5.0

    # ======================
    # Pipeline timings
    # ======================
    TOKEN_TTL_SECONDS: int = 1800
    RESULT_CACHE_TTL_SECONDS: int = 3600
    RESOLVE_TIMEOUT_SECONDS: float = 8.0
    RATE_LIMIT_BACKOFF_SECONDS: float = 5.0

    # ======================
    # Redis
    # ======================
    REDIS_ENABLED: bool = False
    REDIS_URL: str = "redis://localhost:6379/0"

    # ======================
    # Remote worker (compute sink + legacy cache)
    # ======================
    WORKER_BASE_URL: Optional[str] = None
    WORKER_COMPUTE_ENABLED: bool = False
    WORKER_CACHE_ENABLED: bool = False

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
