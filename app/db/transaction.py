"""
Atomic unit-of-work helper.

``run_in_transaction`` runs a callable inside ``with db.begin()`` so every
write it makes commits together or not at all. Lock timeouts, deadlocks and
serialization failures roll the attempt back and are retried with
exponential backoff; once the attempts are exhausted the caller gets a
``Conflict``. Any other storage error is logged and surfaced as a
``StorageFault``.
"""

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import settings
from app.core.errors import Conflict, StorageFault

logger = logging.getLogger(__name__)

T = TypeVar("T")

# lock_not_available, serialization_failure, deadlock_detected
_TRANSIENT_PGCODES = {"55P03", "40001", "40P01"}
_TRANSIENT_MESSAGES = ("database is locked", "database is busy", "deadlock")


def is_transient(exc: BaseException) -> bool:
    if not isinstance(exc, DBAPIError):
        return False
    pgcode = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    if pgcode in _TRANSIENT_PGCODES:
        return True
    if isinstance(exc, OperationalError):
        text = str(exc.orig).lower()
        return any(marker in text for marker in _TRANSIENT_MESSAGES)
    return False


def run_in_transaction(db: Session, fn: Callable[..., T], *args, **kwargs) -> T:
    def _attempt() -> T:
        with db.begin():
            return fn(*args, **kwargs)

    retrying = Retrying(
        stop=stop_after_attempt(settings.TX_MAX_ATTEMPTS),
        wait=wait_exponential(
            multiplier=settings.TX_RETRY_MIN_WAIT,
            min=settings.TX_RETRY_MIN_WAIT,
            max=settings.TX_RETRY_MAX_WAIT,
        ),
        retry=retry_if_exception(is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

    try:
        return retrying(_attempt)
    except SQLAlchemyError as exc:
        if is_transient(exc):
            logger.warning("Giving up on %s after %d attempts: %s",
                           getattr(fn, "__name__", fn), settings.TX_MAX_ATTEMPTS, exc)
            raise Conflict() from exc
        logger.exception("Storage failure in %s", getattr(fn, "__name__", fn))
        raise StorageFault() from exc
