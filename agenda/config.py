"""
Centralized configuration with environment variable overrides.

Business policy values (timezone, grace margin, payment window) are
configurable here. Salon operating hours are NOT: they live in the
persisted key-value settings and are resolved per request by
``agenda.tools.schedule_settings``.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from agenda.logging_context import RequestIdFilter

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


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag (1/0, true/false, yes/no, on/off)."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class BusinessConfig:
    """Business identity and locale."""

    name: str = os.getenv("BUSINESS_NAME", "Ricardo Cabeleireiro")
    timezone: str = os.getenv("BUSINESS_TIMEZONE", "America/Sao_Paulo")


@dataclass(frozen=True)
class BookingPolicyConfig:
    """Rules applied when a client books a slot."""

    grace_margin_minutes: int = _safe_int("GRACE_MARGIN_MINUTES", "15")
    require_guarantee_fee: bool = _safe_bool("REQUIRE_GUARANTEE_FEE", "false")
    payment_window_minutes: int = _safe_int("PAYMENT_WINDOW_MINUTES", "15")


@dataclass(frozen=True)
class ScheduleDefaults:
    """Fallback operating hours used when persisted settings are missing."""

    opening_time: str = "08:00"
    closing_time: str = "18:00"
    break_start: str = "12:00"
    break_end: str = "13:00"
    slot_duration_minutes: int = 30
    working_days: str = "segunda,terca,quarta,quinta,sexta,sabado"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    booking: BookingPolicyConfig = field(default_factory=BookingPolicyConfig)
    schedule_defaults: ScheduleDefaults = field(default_factory=ScheduleDefaults)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.booking.grace_margin_minutes < 0:
        raise ValueError(
            f"GRACE_MARGIN_MINUTES must be >= 0, got {config.booking.grace_margin_minutes}"
        )
    if config.booking.payment_window_minutes < 1:
        raise ValueError(
            "PAYMENT_WINDOW_MINUTES must be >= 1, "
            f"got {config.booking.payment_window_minutes}"
        )
    if not config.business.timezone.strip():
        raise ValueError("BUSINESS_TIMEZONE must not be empty")
    if config.schedule_defaults.slot_duration_minutes < 1:
        raise ValueError(
            "Default slot duration must be >= 1, "
            f"got {config.schedule_defaults.slot_duration_minutes}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Every record reaching the root handlers carries request_id for the format
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
