"""Utility helpers for running units of work against the SQLAlchemy session.

SQLite places a write lock on the database for the duration of a
transaction, which occasionally surfaces as ``database is locked`` when two
requests write at roughly the same time. :func:`run_in_transaction` treats
that as a transient failure: the whole unit of work is rolled back and run
again with exponential backoff. Any other error rolls back and propagates,
so a partially applied unit of work is never committed.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.session import Session

LOCKED_MESSAGES = {"database is locked", "database is busy"}

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_lock_error(error: OperationalError) -> bool:
    """Return ``True`` if the OperationalError was caused by a lock."""

    message = str(error).lower()
    return any(token in message for token in LOCKED_MESSAGES)


def run_in_transaction(
    session: Session,
    work: Callable[[], T],
    retries: int = 3,
    initial_delay: float = 0.1,
) -> T:
    """Run ``work`` and commit, as one all-or-nothing transaction.

    Args:
        session: The SQLAlchemy session ``work`` writes through.
        work: Callable performing the reads and writes; its return value is
            returned after a successful commit.
        retries: Maximum number of attempts when SQLite reports a lock.
        initial_delay: The delay (in seconds) before the first retry. The
            delay is doubled after every attempt.

    Raises:
        Whatever ``work`` or the commit raised, after rolling back.
    """

    delay = initial_delay
    for attempt in range(retries):
        try:
            result = work()
            session.commit()
            return result
        except OperationalError as exc:
            session.rollback()
            if attempt == retries - 1 or not _is_lock_error(exc):
                raise
            logger.warning("Database locked, retrying transaction (attempt %s/%s)", attempt + 1, retries)
            time.sleep(delay)
            delay *= 2
        except Exception:
            session.rollback()
            raise


# Largest value a signed 64-bit INTEGER primary key can hold.
MAX_ROW_ID = 2 ** 63 - 1


def is_row_id(value) -> bool:
    """Return ``True`` if ``value`` can be looked up as a primary key."""

    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= MAX_ROW_ID
