"""Configuration management from environment variables."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Database
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./data/taskping.db"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Time zone for wall-clock rules; empty means the process's local zone
    TIMEZONE: str | None = os.getenv("TIMEZONE") or None

    # Background jobs (seconds)
    RECURRENCE_SWEEP_INTERVAL: int = int(os.getenv("RECURRENCE_SWEEP_INTERVAL", "3600"))
    PRIORITY_RECOMPUTE_INTERVAL: int = int(os.getenv("PRIORITY_RECOMPUTE_INTERVAL", "1800"))
    RECURRENCE_STARTUP_DELAY: int = int(os.getenv("RECURRENCE_STARTUP_DELAY", "5"))
    PRIORITY_STARTUP_DELAY: int = int(os.getenv("PRIORITY_STARTUP_DELAY", "2"))

    # Materializer
    LOOKAHEAD_DAYS: int = int(os.getenv("LOOKAHEAD_DAYS", "7"))

    @classmethod
    def validate(cls) -> None:
        """Validate configuration."""
        if cls.RECURRENCE_SWEEP_INTERVAL <= 0 or cls.PRIORITY_RECOMPUTE_INTERVAL <= 0:
            raise ValueError("Background job intervals must be positive")

        if cls.RECURRENCE_STARTUP_DELAY < 0 or cls.PRIORITY_STARTUP_DELAY < 0:
            raise ValueError("Startup delays cannot be negative")

        if cls.LOOKAHEAD_DAYS <= 0:
            raise ValueError("LOOKAHEAD_DAYS must be positive")

        if cls.TIMEZONE:
            try:
                ZoneInfo(cls.TIMEZONE)
            except ZoneInfoNotFoundError:
                raise ValueError(f"Unknown TIMEZONE: {cls.TIMEZONE}")

        if cls.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL: {cls.LOG_LEVEL}")

        # Ensure database directory exists
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
