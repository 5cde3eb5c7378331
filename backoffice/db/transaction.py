import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.errors import DomainError, TransactionError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session, failure_message: str = "Transaction failed") -> Iterator[Session]:
    """
    Scope a unit of work on ``db``: commit on normal exit, roll back on every
    failure path.

    - Domain errors raised inside the block propagate unchanged after the rollback.
    - Store errors (SQLAlchemyError) are logged and re-raised as TransactionError.

    Repositories used inside the block must flush, never commit.
    """
    try:
        yield db
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s; transaction rolled back", failure_message)
        raise TransactionError(failure_message) from exc
    except BaseException:
        db.rollback()
        raise
