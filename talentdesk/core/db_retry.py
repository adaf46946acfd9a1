"""
Fixed-count retry wrapper for database calls.
"""
import logging
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from talentdesk.core import config

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DatabaseRetryError(RuntimeError):
    """Raised when every attempt of a database operation failed."""

    def __init__(self, attempts: int, last_error: Exception):
        super().__init__(f"Database operation failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def execute_with_retry(
    query_fn: Callable[[], T],
    db: Optional[Session] = None,
    max_retries: Optional[int] = None,
    retry_delay: Optional[float] = None,
) -> T:
    """
    Run a database operation, retrying on SQLAlchemy errors.

    Integrity errors are raised immediately since repeating the same write
    cannot succeed. When a session is given it is rolled back between
    attempts so the next try starts from a clean transaction.

    Args:
        query_fn: Zero-argument callable performing the database work
        db: Session to roll back after a failed attempt
        max_retries: Attempts before giving up (default DB_RETRY_ATTEMPTS)
        retry_delay: Seconds to wait between attempts (default DB_RETRY_DELAY_SECONDS)

    Raises:
        DatabaseRetryError: If all attempts failed
    """
    attempts = max_retries if max_retries is not None else config.DB_RETRY_ATTEMPTS
    delay = retry_delay if retry_delay is not None else config.DB_RETRY_DELAY_SECONDS
    last_error: Optional[Exception] = None

    for attempt in range(1, attempts + 1):
        try:
            return query_fn()
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            last_error = e
            logger.warning(f"Database attempt {attempt}/{attempts} failed: {e}")
            if db is not None:
                db.rollback()
            if attempt < attempts:
                time.sleep(delay)

    logger.error(f"All {attempts} database attempts failed")
    raise DatabaseRetryError(attempts, last_error)
