"""
In-memory record store.

Implements the same :class:`~app.db.repositories.base.EventStore` /
:class:`~app.db.repositories.base.UnitOfWork` contract as the SQLModel
repository, for tests and database-less development runs.

Semantics mirror the durable store closely enough for the sleep core
not to notice the difference:

- writes are staged per transaction and only become visible on commit;
- :meth:`InMemoryTransaction.get_open_session_for_update` takes a
  per-user blocking lock held until commit or rollback;
- commit re-checks the single-open-session constraint and raises
  :class:`ConcurrentUpdateError` on violation, like the partial unique
  index does in the database.
"""

from __future__ import annotations

import datetime
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

from app.core.clock import utcnow
from app.core.exceptions import ConcurrentUpdateError, EventNotFoundError
from app.models.event import Event
from app.models.profile import BabyMeasurement, BabyProfile

T = TypeVar("T")
M = TypeVar("M", Event, BabyProfile, BabyMeasurement)

_DELETED = None
_UNCHANGED = object()


def _copy(row: M) -> M:
    return type(row)(**row.model_dump())


class InMemoryProfileStore:
    """Profile half of an :class:`InMemoryTransaction`; staged the same way."""

    def __init__(self, owner: InMemoryUnitOfWork):
        self._owner = owner
        self.staged_profile: Any = _UNCHANGED
        self.staged_measurements: list[BabyMeasurement] = []

    def get_profile(self) -> Optional[BabyProfile]:
        if self.staged_profile is not _UNCHANGED:
            return _copy(self.staged_profile)
        return self._owner._profile_snapshot()

    def save_profile(self, name: str, date_of_birth: datetime.date) -> BabyProfile:
        profile = self.get_profile()
        if profile is None:
            profile = BabyProfile(id=1, name=name, date_of_birth=date_of_birth)
        else:
            profile.name = name
            profile.date_of_birth = date_of_birth
            profile.updated_at = utcnow()
        self.staged_profile = profile
        return _copy(profile)

    def add_measurement(self, measurement: BabyMeasurement) -> BabyMeasurement:
        stored = _copy(measurement)
        stored.id = self._owner._allocate_id()
        self.staged_measurements.append(stored)
        return _copy(stored)

    def list_measurements(self) -> list[BabyMeasurement]:
        rows = self._owner._measurements_snapshot() + [_copy(m) for m in self.staged_measurements]
        return sorted(rows, key=lambda m: (m.measurement_date, m.id), reverse=True)


class InMemoryTransaction:
    """A single transaction against an :class:`InMemoryUnitOfWork`."""

    def __init__(self, owner: InMemoryUnitOfWork):
        self._owner = owner
        self._staged: dict[int, Optional[Event]] = {}
        self._held_locks: list[threading.Lock] = []
        self.profiles = InMemoryProfileStore(owner)

    # ------------------------------------------------------------------
    # Sleep session lookups
    # ------------------------------------------------------------------

    def get_open_session_for_update(self, user_name: str) -> Optional[Event]:
        lock = self._owner._user_lock(user_name)
        if lock not in self._held_locks:
            lock.acquire()
            self._held_locks.append(lock)
        return self.get_open_session(user_name)

    def get_open_session(self, user_name: str) -> Optional[Event]:
        open_rows = [e for e in self._visible() if e.user_name == user_name and e.is_open_session]
        open_rows.sort(key=lambda e: e.timestamp, reverse=True)
        return open_rows[0] if open_rows else None

    def list_open_sessions(self) -> list[Event]:
        return sorted((e for e in self._visible() if e.is_open_session), key=lambda e: e.user_name)

    def list_closed_sleep_sessions(self, user_name: str, exclude_id: Optional[int] = None) -> list[Event]:
        rows = [e for e in self._visible() if e.user_name == user_name and e.is_closed_session and e.id != exclude_id]
        return sorted(rows, key=lambda e: e.sleep_start_time)

    # ------------------------------------------------------------------
    # Generic reads
    # ------------------------------------------------------------------

    def get_by_id(self, event_id: int) -> Optional[Event]:
        for event in self._visible():
            if event.id == event_id:
                return event
        return None

    def list_events(self, event_type: Optional[str] = None, start: Optional[datetime.datetime] = None,
                    end: Optional[datetime.datetime] = None, ) -> list[Event]:
        rows = self._visible()
        if event_type is not None:
            rows = [e for e in rows if e.type == event_type]
        if start is not None:
            rows = [e for e in rows if e.timestamp >= start]
        if end is not None:
            rows = [e for e in rows if e.timestamp <= end]
        return sorted(rows, key=lambda e: (e.timestamp, e.id), reverse=True)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create(self, event: Event) -> Event:
        stored = _copy(event)
        stored.id = self._owner._allocate_id()
        self._staged[stored.id] = stored
        return _copy(stored)

    def update(self, event_id: int, **fields: Any) -> Event:
        current = self.get_by_id(event_id)
        if current is None:
            raise EventNotFoundError(event_id)
        for name, value in fields.items():
            setattr(current, name, value)
        current.updated_at = utcnow()
        self._staged[event_id] = current
        return _copy(current)

    def delete(self, event_id: int) -> bool:
        if self.get_by_id(event_id) is None:
            return False
        self._staged[event_id] = _DELETED
        return True

    # ------------------------------------------------------------------
    # Transaction control (called by the unit of work)
    # ------------------------------------------------------------------

    def commit(self) -> None:
        try:
            self._owner._apply(self._staged, self.profiles)
        finally:
            self._release()

    def rollback(self) -> None:
        self._staged.clear()
        self.profiles = InMemoryProfileStore(self._owner)
        self._release()

    def _release(self) -> None:
        while self._held_locks:
            self._held_locks.pop().release()

    def _visible(self) -> list[Event]:
        rows = self._owner._snapshot()
        for event_id, staged in self._staged.items():
            if staged is _DELETED:
                rows.pop(event_id, None)
            else:
                rows[event_id] = _copy(staged)
        return list(rows.values())


class InMemoryUnitOfWork:
    """Thread-safe in-memory event store."""

    def __init__(self) -> None:
        self._rows: dict[int, Event] = {}
        self._next_id = 1
        self._guard = threading.Lock()
        self._user_locks: dict[str, threading.Lock] = {}
        self._profile: Optional[BabyProfile] = None
        self._measurements: list[BabyMeasurement] = []

    @contextmanager
    def transaction(self) -> Iterator[InMemoryTransaction]:
        tx = InMemoryTransaction(self)
        try:
            yield tx
        except BaseException:
            tx.rollback()
            raise
        tx.commit()

    def run_transaction(self, fn: Callable[[InMemoryTransaction], T]) -> T:
        with self.transaction() as store:
            return fn(store)

    def reset(self) -> None:
        with self._guard:
            self._rows.clear()
            self._profile = None
            self._measurements = []
            self._next_id = 1

    # ------------------------------------------------------------------
    # Internals shared with InMemoryTransaction
    # ------------------------------------------------------------------

    def _user_lock(self, user_name: str) -> threading.Lock:
        with self._guard:
            return self._user_locks.setdefault(user_name, threading.Lock())

    def _allocate_id(self) -> int:
        with self._guard:
            event_id = self._next_id
            self._next_id += 1
            return event_id

    def _snapshot(self) -> dict[int, Event]:
        with self._guard:
            return {event_id: _copy(event) for event_id, event in self._rows.items()}

    def _profile_snapshot(self) -> Optional[BabyProfile]:
        with self._guard:
            return _copy(self._profile) if self._profile is not None else None

    def _measurements_snapshot(self) -> list[BabyMeasurement]:
        with self._guard:
            return [_copy(m) for m in self._measurements]

    def _apply(self, staged: dict[int, Optional[Event]], profiles: InMemoryProfileStore) -> None:
        with self._guard:
            merged = dict(self._rows)
            for event_id, event in staged.items():
                if event is _DELETED:
                    merged.pop(event_id, None)
                else:
                    merged[event_id] = _copy(event)

            open_users = [e.user_name for e in merged.values() if e.is_open_session]
            if len(open_users) != len(set(open_users)):
                raise ConcurrentUpdateError("Another sleep session was opened concurrently")
            self._rows = merged
            if profiles.staged_profile is not _UNCHANGED:
                self._profile = _copy(profiles.staged_profile)
            self._measurements.extend(_copy(m) for m in profiles.staged_measurements)
