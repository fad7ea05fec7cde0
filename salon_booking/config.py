"""
Centralized configuration with environment variable overrides.

Scheduling rules, business identity, and retention windows are
configurable here. Nothing is hardcoded in the scheduling or booking logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from salon_booking.logging_context import ActorIdFilter

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


@dataclass(frozen=True)
class BusinessConfig:
    """Salon identity used in notifications and message threads."""

    name: str = os.getenv("BUSINESS_NAME", "Silky Hair Straightening")
    owner_id: str = os.getenv("OWNER_ID", "owner-1")
    owner_name: str = os.getenv("OWNER_NAME", "Laura Assuncao")


@dataclass(frozen=True)
class SchedulingConfig:
    """Rules that turn open hours into a proposable slot."""

    stagger_interval_minutes: int = _safe_int("STAGGER_INTERVAL_MINUTES", "150")
    marker_step_minutes: int = _safe_int("MARKER_STEP_MINUTES", "60")
    session_padding_minutes: int = _safe_int("SESSION_PADDING_MINUTES", "60")


@dataclass(frozen=True)
class MessagingConfig:
    """Message retention settings, in calendar years."""

    retention_years: int = _safe_int("MESSAGE_RETENTION_YEARS", "1")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    messaging: MessagingConfig = field(default_factory=MessagingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    for name, value in [
        ("STAGGER_INTERVAL_MINUTES", config.scheduling.stagger_interval_minutes),
        ("MARKER_STEP_MINUTES", config.scheduling.marker_step_minutes),
        ("SESSION_PADDING_MINUTES", config.scheduling.session_padding_minutes),
        ("MESSAGE_RETENTION_YEARS", config.messaging.retention_years),
    ]:
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")

    if config.scheduling.marker_step_minutes > 24 * 60:
        raise ValueError(
            "MARKER_STEP_MINUTES must be <= 1440, "
            f"got {config.scheduling.marker_step_minutes}"
        )
    if not config.business.owner_id.strip():
        raise ValueError("OWNER_ID must not be empty")


LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [actor=%(actor_id)s]: %(message)s"


def _build_log_handler() -> logging.Handler:
    """Console handler that stamps every record, from any logger, with the actor id."""
    handler = logging.StreamHandler()
    handler.addFilter(ActorIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[_build_log_handler()],
    )
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
