import os
import time
import json
import logging
from contextlib import contextmanager
from typing import Dict, Any, Iterator, Optional
from datetime import datetime, timezone

import sentry_sdk

logger = logging.getLogger(__name__)


class TimingContext:
    """Wall-clock duration of a block, in milliseconds once the block exits."""

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self._started: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def get_duration_ms(self) -> Optional[float]:
        return self.duration_ms


@contextmanager
def timing(operation_name: str) -> Iterator[TimingContext]:
    """Time the enclosed block; the duration is recorded even if it raises."""
    context = TimingContext(operation_name)
    context._started = time.perf_counter()
    try:
        yield context
    finally:
        context.duration_ms = (time.perf_counter() - context._started) * 1000


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _emit(level: int, entry: Dict[str, Any]) -> None:
    # One JSON object per line; datetimes and enums go through str()
    payload = json.dumps({"timestamp": _utc_timestamp(), **entry}, separators=(',', ':'), default=str)
    logger.log(level, payload)


def mask_email(email: str) -> str:
    """
    Mask the local part of an email address for logging.

    Args:
        email: The original address

    Returns:
        Address with all but the first character of the local part hidden
    """
    if not email or "@" not in email:
        return "[REDACTED]"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def log_event(
    action: str,
    meeting_id: str,
    recipients_count: int = 0,
    driver: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> None:
    """
    Log a structured meeting event.

    Args:
        action: The action performed (e.g., 'created', 'submitted', 'completed', 'sent')
        meeting_id: The meeting the event belongs to
        recipients_count: Number of recipients involved, if any
        driver: Optional email driver used (e.g., 'console', 'smtp', 'sendgrid')
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields to include in the log
    """
    entry: Dict[str, Any] = {
        "action": action,
        "meeting_id": meeting_id,
        "recipients_count": recipients_count,
    }
    if driver is not None:
        entry["driver"] = driver
    if duration_ms is not None:
        entry["duration_ms"] = round(duration_ms, 2)

    # Never log raw addresses
    if "recipient" in kwargs:
        kwargs["recipient"] = mask_email(str(kwargs["recipient"]))
    entry.update(kwargs)

    _emit(logging.INFO, entry)


def init_sentry() -> bool:
    """
    Initialize Sentry when OBS_ENABLED is true and SENTRY_DSN is set.

    Returns:
        True if Sentry was initialized, False otherwise
    """
    if os.getenv("OBS_ENABLED", "false").lower() != "true":
        return False

    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info("Sentry DSN not provided, skipping Sentry initialization")
        return False

    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[
                FastApiIntegration(),
                # Structured error lines become Sentry events
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
            environment=os.getenv("ENVIRONMENT", "development"),
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False

    logger.info("Sentry initialized")
    return True


def log_error(error: Exception, context: Dict[str, Any] = None) -> None:
    """Log an exception with its type and optional context."""
    _emit(logging.ERROR, {
        "level": "ERROR",
        "error": str(error),
        "error_type": type(error).__name__,
        **(context or {}),
    })


def log_warning(message: str, context: Dict[str, Any] = None) -> None:
    _emit(logging.WARNING, {"level": "WARNING", "message": message, **(context or {})})


def log_info(message: str, context: Dict[str, Any] = None) -> None:
    _emit(logging.INFO, {"level": "INFO", "message": message, **(context or {})})
