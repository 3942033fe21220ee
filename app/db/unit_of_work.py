"""
Transaction management for the durable store.

:class:`SqlUnitOfWork` opens one SQLModel session per transaction and
translates driver errors into the domain taxonomy:

- constraint violations (a lost race on the open-session index)
  become :class:`ConcurrentUpdateError`;
- serialization failures, deadlocks, lock timeouts and SQLite's
  "database is locked" become a *transient* :class:`TransactionError`;
- any other driver error becomes a non-transient :class:`TransactionError`.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlmodel import Session

from app.core.exceptions import ConcurrentUpdateError, TransactionError
from app.db.repositories.base import EventStore
from app.db.repositories.event import EventRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected, lock_not_available
TRANSIENT_PGCODES = frozenset({"40001", "40P01", "55P03"})


def is_transient(error: DBAPIError) -> bool:
    """Whether *error* belongs to the retryable class of store failures."""
    pgcode = getattr(error.orig, "pgcode", None) or getattr(error.orig, "sqlstate", None)
    if pgcode in TRANSIENT_PGCODES:
        return True
    return "database is locked" in str(error.orig)


class SqlUnitOfWork:
    """Unit of work backed by a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def transaction(self) -> Iterator[EventStore]:
        # expire_on_commit=False keeps returned rows readable after the session closes
        with Session(self.engine, expire_on_commit=False) as session:
            try:
                yield EventRepository(session)
                session.commit()
            except IntegrityError as e:
                session.rollback()
                logger.warning("Constraint violation, rolling back: %s", e.orig)
                raise ConcurrentUpdateError(cause=e) from e
            except OperationalError as e:
                session.rollback()
                raise TransactionError("Transaction failed, please try again", transient=is_transient(e),
                                       cause=e) from e
            except DBAPIError as e:
                session.rollback()
                raise TransactionError("Database error occurred", cause=e) from e
            except Exception:
                session.rollback()
                raise

    def run_transaction(self, fn: Callable[[EventStore], T]) -> T:
        with self.transaction() as store:
            return fn(store)
