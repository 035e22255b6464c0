"""
Configuration management for DoseTrack
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "DoseTrack"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./dosetrack.db"
    DATABASE_ECHO: bool = False

    # Store behaviour
    STORE_TIMEOUT_SECONDS: float = 10.0
    STORE_MAX_ATTEMPTS: int = 3
    STORE_RETRY_BACKOFF_SECONDS: float = 0.2

    # Scheduling
    DEFAULT_TIMEZONE: str = "UTC"
    DAILY_WINDOW_START_HOUR: float = 8.0
    DAILY_WINDOW_END_HOUR: float = 20.0
    ON_TIME_THRESHOLD_HOURS: int = 4

    # Analytics
    MOST_MISSED_LIMIT: int = 5
    SUMMARY_DEFAULT_DAYS: int = 7
    MAX_RANGE_DAYS: int = 366
    REWARD_POINTS_PER_DOSE: int = 5

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class DoseTrackConfig:
    """Constants that are not environment driven"""

    # Reward badges, highest first: (name, minimum points)
    BADGE_TIERS: list[tuple[str, int]] = [
        ("gold", 100),
        ("silver", 50),
        ("bronze", 20),
    ]

    # How each screen names the grace-window status
    STATUS_LABELS: dict[str, dict[str, str]] = {
        "reminders": {
            "pending": "Upcoming",
            "due": "Due Now",
            "taken": "Taken",
            "missed": "Missed",
        },
        "logging": {
            "pending": "Pending",
            "due": "Late",
            "taken": "Taken",
            "missed": "Missed",
        },
    }


# Database table names
class TableNames:
    USERS = "users"
    CATEGORIES = "categories"
    MEDICATIONS = "medications"
    DOSE_LOGS = "dose_logs"


settings = get_settings()
dosetrack_config = DoseTrackConfig()
