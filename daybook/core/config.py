import os
import pytz
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "Daybook - Daily Diary Service"
    API_V1_STR: str = "/api/v1"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Database
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "postgres")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "daybook")
    DATABASE_URL: Optional[str] = None
    AUTO_CREATE_TABLES: bool = False

    # Telegram delivery for reminders
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_API_URL: str = "https://api.telegram.org"

    # Application defaults
    DEFAULT_TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"
    ENTRY_TEXT_MAX_LENGTH: int = 4000
    ENTRIES_PAGE_SIZE: int = 10

    # Reminder scheduler
    SCHEDULER_ENABLED: bool = True
    REMINDER_INTERVAL_SECONDS: int = 60

    model_config = SettingsConfigDict(env_file=os.path.join(os.path.dirname(__file__), "..", "..", ".env"), case_sensitive=True, extra="ignore")

    def __init__(self, **data):
        super().__init__(**data)
        if not self.DATABASE_URL:
             self.DATABASE_URL = f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}/{self.POSTGRES_DB}"

    @field_validator("DEFAULT_TIMEZONE")
    def timezone_must_be_known(cls, v):
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator("LOG_LEVEL")
    def log_level_must_be_valid(cls, v):
        level = v.upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("REMINDER_INTERVAL_SECONDS")
    def interval_must_be_positive(cls, v):
        if v < 1:
            raise ValueError("Reminder interval must be at least 1 second")
        return v

settings = Settings()
