"""Transaction helpers shared by the action services."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.core.broker import discard_pending, publish_pending
from portal.core.errors import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, failure_message: str) -> Iterator[Session]:
    """
    Run the block as one transaction: primary write, audit entry and
    notifications commit together or not at all.

    SQLAlchemyError is rolled back, logged, and re-raised as PersistenceError
    carrying `failure_message`. Other exceptions roll back and propagate.
    Notification recipients are published only after a successful commit.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        discard_pending(db)
        logger.exception("%s", failure_message)
        raise PersistenceError(failure_message, cause=e) from e
    except BaseException:
        db.rollback()
        discard_pending(db)
        raise
    publish_pending(db)


@contextmanager
def best_effort(db: Session, what: str, **log_extra: object) -> Iterator[None]:
    """
    Run a secondary write (audit entry, notification) inside a SAVEPOINT.

    Failure rolls back to the savepoint and is logged; the caller's primary
    write is unaffected and nothing is raised.
    """
    try:
        with db.begin_nested():
            yield
    except Exception:
        logger.exception("Best-effort write failed: %s", what, extra=log_extra)
