"""Configuration loading for the billing services.

Loads settings from .env file and environment variables with sensible defaults.
Validates values and provides clear error messages.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./hostel_billing.db"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class BillingConfig:
    """Configuration for billing services and batch jobs."""

    database_url: str = DEFAULT_DATABASE_URL
    """SQLAlchemy database URL (default: local SQLite)"""

    log_file: str = "logs/billing.log"
    """Path to log file (default: logs/billing.log)"""

    rent_due_day: int = 5
    """Day of month on which each period's rent falls due"""

    log_level: int = logging.INFO
    """Level for both log handlers, from LOG_LEVEL (default: INFO)"""


def load_config() -> BillingConfig:
    """
    Load configuration from .env file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (DATABASE_URL, LOG_FILE, LOG_LEVEL, RENT_DUE_DAY)
    2. .env file in project root
    3. Default values

    Returns:
        BillingConfig with all settings

    Raises:
        ValueError: If a configured value is invalid
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL).strip()
    log_file = os.getenv("LOG_FILE", "logs/billing.log")
    raw_due_day = os.getenv("RENT_DUE_DAY", "5")
    level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    if not database_url:
        raise ValueError("DATABASE_URL is empty. Unset it or provide a SQLAlchemy URL")

    try:
        rent_due_day = int(raw_due_day)
    except ValueError as e:
        raise ValueError(f"RENT_DUE_DAY must be an integer, got {raw_due_day!r}") from e

    # Day 28 exists in every month
    if not 1 <= rent_due_day <= 28:
        raise ValueError(f"RENT_DUE_DAY must be between 1 and 28, got {rent_due_day}")

    if level_name not in LOG_LEVELS:
        raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {level_name!r}")

    return BillingConfig(
        database_url=database_url,
        log_file=log_file,
        rent_due_day=rent_due_day,
        log_level=getattr(logging, level_name),
    )


__all__ = ["BillingConfig", "DEFAULT_DATABASE_URL", "LOG_LEVELS", "load_config"]
