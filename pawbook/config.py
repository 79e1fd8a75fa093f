"""
Centralized configuration with environment variable overrides.

Working hours, billing thresholds, buffers and the platform commission are
configurable here. Nothing is hardcoded in pricing or scheduling logic;
per-service values on ``ServiceConfig`` take precedence over these defaults.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from pawbook.logging_context import AttemptIdFilter

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(attempt_id)s] %(levelname)s: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _is_hhmm(value: str) -> bool:
    parts = value.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        return False
    hours, minutes = int(parts[0]), int(parts[1])
    return 0 <= hours <= 24 and 0 <= minutes < 60 and (hours < 24 or minutes == 0)


@dataclass(frozen=True)
class PricingDefaults:
    """Billing thresholds shared by every announcer."""

    workday_hours: float = _safe_float("WORKDAY_HOURS", "8")
    half_day_hours: float = _safe_float("HALF_DAY_HOURS", "0")
    commission_rate: float = _safe_float("COMMISSION_RATE", "15")

    def effective_half_day_hours(self, workday_hours: Optional[float] = None) -> float:
        """Half-day threshold; defaults to half of ``workday_hours``."""
        return self.half_day_hours or (workday_hours or self.workday_hours) / 2


@dataclass(frozen=True)
class ScheduleDefaults:
    """Fallback working window and slot generation settings."""

    day_start_time: str = os.getenv("DAY_START_TIME", "08:00")
    day_end_time: str = os.getenv("DAY_END_TIME", "20:00")
    buffer_before: int = _safe_int("BUFFER_BEFORE", "0")
    buffer_after: int = _safe_int("BUFFER_AFTER", "0")
    time_step_minutes: int = _safe_int("TIME_STEP_MINUTES", "30")
    min_booking_lead_time_hours: int = _safe_int("MIN_BOOKING_LEAD_TIME_HOURS", "2")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    pricing: PricingDefaults = field(default_factory=PricingDefaults)
    schedule: ScheduleDefaults = field(default_factory=ScheduleDefaults)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    platform_name: str = os.getenv("PLATFORM_NAME", "pawbook")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0 < config.pricing.workday_hours <= 24:
        raise ValueError(
            f"WORKDAY_HOURS must be between 0 and 24, got {config.pricing.workday_hours}"
        )
    if config.pricing.half_day_hours < 0:
        raise ValueError(
            f"HALF_DAY_HOURS must be >= 0, got {config.pricing.half_day_hours}"
        )
    if config.pricing.half_day_hours > config.pricing.workday_hours:
        raise ValueError(
            "HALF_DAY_HOURS must not exceed WORKDAY_HOURS, "
            f"got {config.pricing.half_day_hours}"
        )
    if not 0.0 <= config.pricing.commission_rate <= 100.0:
        raise ValueError(
            f"COMMISSION_RATE must be between 0 and 100, got {config.pricing.commission_rate}"
        )

    for name, value in [
        ("DAY_START_TIME", config.schedule.day_start_time),
        ("DAY_END_TIME", config.schedule.day_end_time),
    ]:
        if not _is_hhmm(value):
            raise ValueError(f"{name} must be in HH:MM format, got {value!r}")
    if config.schedule.day_start_time >= config.schedule.day_end_time:
        raise ValueError(
            "DAY_START_TIME must be before DAY_END_TIME, "
            f"got {config.schedule.day_start_time}-{config.schedule.day_end_time}"
        )

    for name, value in [
        ("BUFFER_BEFORE", config.schedule.buffer_before),
        ("BUFFER_AFTER", config.schedule.buffer_after),
        ("MIN_BOOKING_LEAD_TIME_HOURS", config.schedule.min_booking_lead_time_hours),
    ]:
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")

    if config.schedule.time_step_minutes < 1:
        raise ValueError(
            f"TIME_STEP_MINUTES must be >= 1, got {config.schedule.time_step_minutes}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Every record reaching a root handler carries the attempt id
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, AttemptIdFilter) for f in handler.filters):
            handler.addFilter(AttemptIdFilter())
    logger.info(
        "Configuration loaded for '%s' (workday %sh)",
        config.platform_name, config.pricing.workday_hours,
    )
    return config


# Singleton instance
settings = load_config()
