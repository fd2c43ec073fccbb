"""
Centralized logging configuration for the click-analytics service.

This module sets up structured logging with:
- Environment-based configuration (dev vs production)
- JSON formatting for production, pretty console for development
- IP hashing for GDPR compliance in production
- Sampling rate configuration for high-frequency events

Nothing is configured at import time; ``setup_logging()`` is called from the
application factory with the loaded ``LoggingSettings``.
"""

from __future__ import annotations

import hashlib
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from config import LoggingSettings


# Mutable runtime state, populated by setup_logging()
_state: dict = {"is_production": False}

# Sampling rates for high-frequency events
SAMPLING_RATES: dict[str, float] = {
    "click_tracked": 0.05,
    "rollup_query": 0.20,
    "analytics_export": 0.80,
}

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "password",
    "token",
    "api_key",
    "Authorization",
    "Cookie",
    "secret",
    "key",
}

# Keys that look sensitive but carry no secrets
_SAFE_KEYS = {"level", "event", "timestamp", "logger", "visitor_key_hash"}


def hash_ip(ip_address: str) -> str:
    """
    Hash IP address for privacy in production.

    In production, returns SHA-256 hash (first 16 chars) for GDPR compliance.
    In development, returns the original IP for easier debugging.
    """
    if _state["is_production"] and ip_address:
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _SAFE_KEYS:
            continue
        if key.lower() in REDACTED_FIELDS or any(
            sensitive in key.lower() for sensitive in ["password", "token", "secret"]
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str) -> None:
    """
    Configure structlog with appropriate processors for the environment.

    Production: JSON formatting for easy parsing
    Development: Pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str) -> None:
    """
    Configure standard library logging to work with structlog.

    Sets up the log level, a stdout handler and quiets chatty third-party
    loggers.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    # Silence pymongo debug logs (connection pool, server monitoring, etc.)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("pymongo.connection").setLevel(logging.WARNING)
    logging.getLogger("pymongo.serverSelection").setLevel(logging.WARNING)
    logging.getLogger("pymongo.command").setLevel(logging.WARNING)
    logging.getLogger("pymongo.topology").setLevel(logging.WARNING)


def setup_logging(
    settings: Optional["LoggingSettings"] = None, env: str = "development"
) -> None:
    """
    Initialize logging system for the application.

    This is the main entry point for logging configuration; call it early in
    application startup.
    """
    is_production = env == "production"
    _state["is_production"] = is_production

    log_level = settings.log_level if settings else ("INFO" if is_production else "DEBUG")
    log_format = settings.log_format if settings else ("json" if is_production else "console")

    if settings is not None:
        SAMPLING_RATES.update(
            {
                "click_tracked": settings.sample_rate_click,
                "rollup_query": settings.sample_rate_rollup,
                "analytics_export": settings.sample_rate_export,
            }
        )

    configure_stdlib_logging(log_level)
    configure_structlog(log_format)

    structlog.get_logger(__name__).info(
        "logging_initialized",
        env=env,
        log_level=log_level,
        log_format=log_format,
    )
