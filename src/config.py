"""
Yangon Reminder Bot — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # SQLite
    DATABASE_PATH: str = "data/reminders.db"

    # Timezone used for users who never ran /timezone
    DEFAULT_TIMEZONE: str = "Asia/Yangon"

    # Reminder scheduler
    SCHEDULER_INTERVAL_SECONDS: int = 10
    QUIET_HOURS_START: str = "00:05"   # inclusive
    QUIET_HOURS_END: str = "06:30"     # exclusive
    DEDUP_TTL_SECONDS: int = 60

    # Holiday digest
    HOLIDAY_NOTIFY_HOUR: int = 9
    HOLIDAY_MARKER_TTL_SECONDS: int = 3600
    HOLIDAY_COUNTRY: str = "MM"

    # Calendarific holiday API (optional — /syncholidays is disabled without it)
    CALENDARIFIC_API_KEY: str = ""

    @field_validator("SCHEDULER_INTERVAL_SECONDS", mode="before")
    @classmethod
    def parse_positive_int(cls, v: str | int) -> int:
        value = int(v)
        if value <= 0:
            raise ValueError(f"must be positive, got {value}")
        return value

    # A dedup key must outlive the minute it guards, a holiday marker the hour
    @field_validator("DEDUP_TTL_SECONDS", mode="before")
    @classmethod
    def parse_dedup_ttl(cls, v: str | int) -> int:
        value = int(v)
        if value < 60:
            raise ValueError(f"must be at least 60 seconds, got {value}")
        return value

    @field_validator("HOLIDAY_MARKER_TTL_SECONDS", mode="before")
    @classmethod
    def parse_marker_ttl(cls, v: str | int) -> int:
        value = int(v)
        if value < 3600:
            raise ValueError(f"must be at least 3600 seconds, got {value}")
        return value

    @field_validator("HOLIDAY_NOTIFY_HOUR", mode="before")
    @classmethod
    def parse_hour(cls, v: str | int) -> int:
        hour = int(v)
        if not 0 <= hour <= 23:
            raise ValueError(f"hour must be in 0..23, got {hour}")
        return hour

    @field_validator("QUIET_HOURS_START", "QUIET_HOURS_END")
    @classmethod
    def parse_hhmm(cls, v: str) -> str:
        v = v.strip()
        datetime.strptime(v, "%H:%M")
        return v


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/reminders.db"),
        DEFAULT_TIMEZONE=os.getenv("DEFAULT_TIMEZONE", "Asia/Yangon"),
        SCHEDULER_INTERVAL_SECONDS=os.getenv("SCHEDULER_INTERVAL_SECONDS", "10"),
        QUIET_HOURS_START=os.getenv("QUIET_HOURS_START", "00:05"),
        QUIET_HOURS_END=os.getenv("QUIET_HOURS_END", "06:30"),
        DEDUP_TTL_SECONDS=os.getenv("DEDUP_TTL_SECONDS", "60"),
        HOLIDAY_NOTIFY_HOUR=os.getenv("HOLIDAY_NOTIFY_HOUR", "9"),
        HOLIDAY_MARKER_TTL_SECONDS=os.getenv("HOLIDAY_MARKER_TTL_SECONDS", "3600"),
        HOLIDAY_COUNTRY=os.getenv("HOLIDAY_COUNTRY", "MM"),
        CALENDARIFIC_API_KEY=os.getenv("CALENDARIFIC_API_KEY", ""),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
