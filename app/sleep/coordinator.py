"""
Transaction coordinator.

Makes every check-then-act sleep transition atomic against concurrent
callers for the same user:

1. open a transaction on the unit of work,
2. lock the user's sleep resource and read the open session,
3. run the transition with that locked snapshot,
4. commit (or roll back on any exception).

Transient store failures are retried with exponential backoff up to a
fixed number of attempts.  Validation failures, state-machine
precondition failures and :class:`ConcurrentUpdateError` are never
retried: they are deterministic or indicate a real conflict.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from app.core.exceptions import TransactionError
from app.db.repositories.base import EventStore, UnitOfWork
from app.models.event import Event

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.1


class TransactionCoordinator:
    """Runs store work in transactions with bounded retry."""

    def __init__(self, unit_of_work: UnitOfWork, max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 backoff_seconds: float = DEFAULT_BACKOFF_SECONDS, sleep: Callable[[float], None] = time.sleep, ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.unit_of_work = unit_of_work
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def run(self, fn: Callable[[EventStore], T]) -> T:
        """Run *fn* in a transaction, retrying transient store failures."""
        last_error: Optional[TransactionError] = None
        for attempt in range(self.max_attempts):
            try:
                return self.unit_of_work.run_transaction(fn)
            except TransactionError as e:
                if not e.transient:
                    raise
                last_error = e
                if attempt + 1 < self.max_attempts:
                    delay = self.backoff_seconds * (2 ** attempt)
                    logger.warning("Transaction failed on attempt %d/%d, retrying in %.2fs: %s", attempt + 1,
                                   self.max_attempts, delay, e.message)
                    self._sleep(delay)

        logger.error("Transaction failed after %d attempts: %s", self.max_attempts, last_error.message)
        raise last_error

    def run_exclusive(self, user_name: str, fn: Callable[[EventStore, Optional[Event]], T]) -> T:
        """Run *fn* holding the user's sleep lock.

        *fn* receives the transaction handle and the user's open
        session (``None`` if there is none), read under the lock.
        """

        def locked(store: EventStore) -> T:
            open_session = store.get_open_session_for_update(user_name)
            return fn(store, open_session)

        return self.run(locked)
