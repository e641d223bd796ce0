"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Retail Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    # postgresql://... for the multi-connection backend,
    # sqlite:///... for the single-writer embedded backend.
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./retail_ledger.db"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "")

    # Business rules
    # Every persisted date and timestamp is expressed in this timezone.
    BUSINESS_TIMEZONE: str = os.getenv("BUSINESS_TIMEZONE", "America/Sao_Paulo")
    INSTALLMENT_INTERVAL_DAYS: int = int(
        os.getenv("INSTALLMENT_INTERVAL_DAYS", "30")
    )
    OVERPAYMENT_EPSILON: Decimal = Decimal(
        os.getenv("OVERPAYMENT_EPSILON", "0.001")
    )
    DEFAULT_UPFRONT_METHOD: str = os.getenv("DEFAULT_UPFRONT_METHOD", "dinheiro")
    ACTIVITY_FEED_SIZE: int = int(os.getenv("ACTIVITY_FEED_SIZE", "500"))


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls. This avoids reading
    environment variables repeatedly.
    """
    return Settings()
