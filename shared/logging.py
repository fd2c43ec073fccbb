"""
Logger factory and utility functions.

Provides:
- get_logger(): Get a configured logger instance
- should_sample(): Determine if an event should be logged based on sampling rate
- hash_ip(): Hash IP addresses for privacy
"""

from __future__ import annotations

import random
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger

from shared.logging_config import SAMPLING_RATES, setup_logging
from shared.logging_config import hash_ip as _hash_ip

__all__ = [
    "get_logger",
    "hash_ip",
    "should_sample",
    "SAMPLING_RATES",
    "setup_logging",
]


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("click_recorded", subject_id="abc")
    """
    return structlog.get_logger(name)


def should_sample(event_type: str) -> bool:
    """
    Determine if an event should be logged based on sampling rate.

    Event types without a configured rate are always logged.
    """
    sample_rate = SAMPLING_RATES.get(event_type, 1.0)

    if sample_rate >= 1.0:
        return True
    if sample_rate <= 0.0:
        return False

    return random.random() < sample_rate


def hash_ip(ip_address: Optional[str]) -> Optional[str]:
    """
    Hash IP address for privacy in production.

    Wrapper around logging_config.hash_ip() that handles None values.
    """
    if ip_address is None:
        return None
    return _hash_ip(ip_address)
