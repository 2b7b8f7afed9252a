# backend/utils/transaction.py
import logging
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from utils.errors import StoreError, TransactionError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, lock_timeout_ms: int = None):
    """
    Run a block of writes as a single transaction.

    Commits when the block exits cleanly. A StoreError raised inside the
    block rolls back and propagates unchanged; any database failure (lock
    timeout, deadlock, serialization failure, constraint violation) rolls
    back and is re-raised as a retryable TransactionError. Nothing is retried
    here, the caller decides.
    """
    timeout = settings.LOCK_TIMEOUT_MS if lock_timeout_ms is None else lock_timeout_ms
    try:
        # lock_timeout is scoped to the current transaction on PostgreSQL
        if timeout and db.get_bind().dialect.name == "postgresql":
            db.execute(text(f"SET LOCAL lock_timeout = {int(timeout)}"))
        yield db
        db.commit()
    except StoreError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Transaction aborted: %s", e)
        raise TransactionError("Transaction aborted, no changes were saved. Please retry.") from e
    except Exception:
        db.rollback()
        raise
