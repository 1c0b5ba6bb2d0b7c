"""
Centralized configuration with environment variable overrides.

Schedule rules, stock-level thresholds, and contact validation settings
are configurable here. Nothing is hardcoded in booking or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _is_clock_time(value: str) -> bool:
    try:
        datetime.strptime(value, "%H:%M")
        return True
    except ValueError:
        return False


@dataclass(frozen=True)
class ScheduleConfig:
    """Bookable time slots and the same-day booking cutoff."""

    slot_start: str = os.getenv("SLOT_START", "10:00")
    slot_end: str = os.getenv("SLOT_END", "14:30")
    slot_interval_minutes: int = _safe_int("SLOT_INTERVAL_MINUTES", "30")
    same_day_cutoff: str = os.getenv("SAME_DAY_CUTOFF", "14:30")


@dataclass(frozen=True)
class InventoryConfig:
    """Stock-level thresholds (percent of total inventory) and display currency."""

    low_stock_percent: int = _safe_int("LOW_STOCK_PERCENT", "25")
    limited_stock_percent: int = _safe_int("LIMITED_STOCK_PERCENT", "50")
    currency: str = os.getenv("CURRENCY", "CHF")


@dataclass(frozen=True)
class ContactConfig:
    """Contact-detail validation settings."""

    # Empty means phone numbers must carry a +country-code prefix.
    default_phone_region: str = os.getenv("DEFAULT_PHONE_REGION", "")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    inventory: InventoryConfig = field(default_factory=InventoryConfig)
    contact: ContactConfig = field(default_factory=ContactConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "raft-booking")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    for name, value in [
        ("SLOT_START", config.schedule.slot_start),
        ("SLOT_END", config.schedule.slot_end),
        ("SAME_DAY_CUTOFF", config.schedule.same_day_cutoff),
    ]:
        if not _is_clock_time(value):
            raise ValueError(f"{name} must be in HH:MM format, got {value!r}")

    if config.schedule.slot_start > config.schedule.slot_end:
        raise ValueError(
            f"SLOT_START must not be after SLOT_END, got "
            f"{config.schedule.slot_start} > {config.schedule.slot_end}"
        )
    if config.schedule.slot_interval_minutes < 1:
        raise ValueError(
            "SLOT_INTERVAL_MINUTES must be >= 1, "
            f"got {config.schedule.slot_interval_minutes}"
        )

    for name, value in [
        ("LOW_STOCK_PERCENT", config.inventory.low_stock_percent),
        ("LIMITED_STOCK_PERCENT", config.inventory.limited_stock_percent),
    ]:
        if not 0 <= value <= 100:
            raise ValueError(f"{name} must be between 0 and 100, got {value}")

    if config.inventory.low_stock_percent > config.inventory.limited_stock_percent:
        raise ValueError(
            "LOW_STOCK_PERCENT must not exceed LIMITED_STOCK_PERCENT, got "
            f"{config.inventory.low_stock_percent} > {config.inventory.limited_stock_percent}"
        )

    region = config.contact.default_phone_region
    if region and (len(region) != 2 or not region.isalpha()):
        raise ValueError(
            f"DEFAULT_PHONE_REGION must be a two-letter region code, got {region!r}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
