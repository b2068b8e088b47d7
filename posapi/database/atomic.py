"""
Atomic units with optimistic concurrency.

Every row that takes part in an atomic unit carries a ``version`` column
(SQLAlchemy ``version_id_col``). An UPDATE issued for a stale version matches
zero rows and SQLAlchemy raises ``StaleDataError`` at flush time. A racing
INSERT against a unique key (one savings account per customer) surfaces as
``IntegrityError``. Both are treated as transient conflicts: the unit is
rolled back and ``fn`` is re-run from scratch against fresh state.

Business errors raised by ``fn`` roll the unit back and propagate unchanged.
"""

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from posapi.config import settings
from posapi.core.exceptions import TransactionConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS = (StaleDataError, IntegrityError)


def _reset_session(db: Session) -> None:
    """
    Roll back whatever the session has open and expire cached rows.

    Sessions use ``expire_on_commit=False``; rows loaded by an earlier unit
    must be reloaded, not served from the identity map.
    """
    if db.in_transaction():
        db.rollback()
    db.expire_all()


def atomic(
    db: Session,
    fn: Callable[[Session], T],
    max_retries: Optional[int] = None,
    name: str = "atomic",
) -> T:
    """
    Run ``fn(db)`` as one all-or-nothing unit and commit it.

    Args:
        db: session the unit runs on
        fn: reads current state, validates, stages writes on ``db``
        max_retries: attempts before giving up (default TRANSACTION_MAX_RETRIES)
        name: label used in logs

    Returns:
        whatever ``fn`` returned on the attempt that committed

    Raises:
        TransactionConflictError: every attempt hit a concurrent writer
        Exception: anything else ``fn`` raised, after rollback
    """
    attempts = max_retries or settings.TRANSACTION_MAX_RETRIES
    last_error: Optional[Exception] = None

    for attempt in range(1, attempts + 1):
        _reset_session(db)
        try:
            result = fn(db)
            db.commit()
            if attempt > 1:
                logger.info(f"[{name}] committed after {attempt} attempts")
            return result
        except RETRYABLE_ERRORS as e:
            db.rollback()
            last_error = e
            logger.warning(
                f"[{name}] conflict on attempt {attempt}/{attempts}: {type(e).__name__}"
            )
        except Exception:
            db.rollback()
            raise

    logger.error(f"[{name}] giving up after {attempts} attempts: {last_error}")
    raise TransactionConflictError(
        details={"operation": name, "attempts": attempts}
    )
