"""
Degraded-response helpers.

Sourced tags a result with where it came from. FALLBACK_POLICY states per
endpoint what happens when the store fails, and store_failed applies it.
log_store_failure_once keeps repeated permission warnings from flooding the log.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Literal, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.errors import AppError

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRIMARY = "primary"
FALLBACK = "fallback"


@dataclass
class Sourced(Generic[T]):
    """A result tagged with the path that produced it."""
    source: Literal["primary", "fallback"]
    data: T

    @property
    def is_fallback(self) -> bool:
        return self.source == FALLBACK


# What each endpoint does when the store is unavailable:
#   mock  - serve bundled sample data
#   local - report success without persisting
#   error - surface the failure to the client
FALLBACK_POLICY: Dict[str, str] = {
    "colleges": "mock",
    "saved_colleges": "local",
    "skills": "local",
    "quiz": "local",
    "activity": "local",
    "job_hunting": "local",
    "roadmap": "local",
    "achievements": "local",
    "recommendations": "local",
    "dashboard": "error",
    "checkout": "error",
}


def allows_fallback(endpoint: str) -> bool:
    """Whether an endpoint may answer with degraded data instead of an error."""
    return FALLBACK_POLICY.get(endpoint, "error") != "error"


PERMISSION_LOG_COOLDOWN_SECONDS = 5.0

_last_logged: Dict[str, float] = {}
_log_lock = threading.Lock()


def log_store_failure_once(context: str, error: Optional[Exception] = None) -> bool:
    """
    Warn that the store rejected a request, at most once per context per cooldown.

    Returns True when a warning was emitted.
    """
    now = time.monotonic()
    with _log_lock:
        last = _last_logged.get(context)
        if last is not None and now - last < PERMISSION_LOG_COOLDOWN_SECONDS:
            return False
        _last_logged[context] = now
    logger.warning(
        f"{context}: database unavailable or permission denied, serving degraded response"
        + (f" ({error})" if error else "")
    )
    return True


def store_failed(db: Session, endpoint: str, error: SQLAlchemyError, context: Optional[str] = None) -> None:
    """
    Roll back after a store failure and apply the endpoint's fallback policy.

    Returns when the endpoint may answer with degraded data.

    Raises:
        AppError: The endpoint never falls back (500 Database query failed)
    """
    db.rollback()
    context = context or endpoint
    if not allows_fallback(endpoint):
        logger.error(f"{context}: store failure with no fallback allowed: {error}")
        raise AppError("Database query failed", original_error=error)
    log_store_failure_once(context, error)


def settled(db: Session, context: str, read: Callable[[], T], default: T) -> T:
    """
    Run one independent read, degrading to default if the store fails.

    The session is rolled back so sibling reads can still run.
    """
    try:
        return read()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"{context} read failed, using empty result: {e}")
        return default


def reset_store_failure_log() -> None:
    """Forget cooldown state (used by tests)."""
    with _log_lock:
        _last_logged.clear()
