"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables (.env file).
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Project Info
    PROJECT_NAME: str = "Baby Tracker"
    VERSION: str = "0.1.0"
    PROJECT_URL: str = "https://github.com/baby-tracker/baby-tracker"

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./baby_tracker.db"
    INIT_DB_ON_STARTUP: bool = True

    # Day boundaries for the "today" statistics
    HOME_TIMEZONE: str = "Asia/Hong_Kong"

    # Known caregivers and event vocabulary
    ALLOWED_USERS: List[str] = ["Charie", "Angie", "Tim", "Mengyu"]
    ALLOWED_DIAPER_SUBTYPES: List[str] = ["pee", "poo", "both"]

    # Input validation
    MAX_MILK_AMOUNT: int = 500
    TIMESTAMP_MAX_PAST_DAYS: int = 365

    # Sleep duration thresholds (minutes)
    SLEEP_MIN_CONFIRM_MINUTES: int = 10
    SLEEP_MAX_UNCONFIRMED_MINUTES: int = 300
    SLEEP_HARD_MAX_MINUTES: int = 720

    # Transaction retry policy
    TRANSACTION_MAX_ATTEMPTS: int = 3
    TRANSACTION_BACKOFF_SECONDS: float = 0.1

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


# Global settings instance
settings = Settings()
