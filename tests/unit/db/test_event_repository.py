"""
Tests for the SQLModel record store.

Runs against SQLite: an in-memory database shared through a single
connection for most tests, so the partial unique index and transaction
rollback are exercised for real, and a file database for the races.
"""

import datetime
import threading
import time

import pytest
from sqlalchemy import DateTime
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, select

import app.db.base  # noqa: F401
from app.core.exceptions import ConcurrentUpdateError, OverlapDetectedError, SessionAlreadyOpenError, TrackerError
from app.db.init_db import seed_caregivers
from app.db.repositories.event import EventRepository
from app.db.session import build_engine
from app.db.unit_of_work import SqlUnitOfWork, is_transient
from app.models.caregiver import Caregiver
from app.models.event import Event, EventType
from app.models.profile import BabyMeasurement, BabyProfile
from app.services.event_service import EventService
from tests.helpers import NOW, minutes_ago


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_uow(engine) -> SqlUnitOfWork:
    return SqlUnitOfWork(engine)


@pytest.fixture
def sql_service(sql_uow, config) -> EventService:
    return EventService(sql_uow, config=config, clock=lambda: NOW, sleep=lambda _: None)


class TestSleepLifecycle:

    def test_round_trip(self, sql_service):
        opened = sql_service.fall_asleep("Tim", minutes_ago(60))
        closed = sql_service.wake_up("Tim", minutes_ago(15))
        assert closed.id == opened.id
        assert closed.amount == 45
        assert closed.sleep_start_time == minutes_ago(60)
        assert closed.sleep_end_time == minutes_ago(15)

    def test_second_fall_asleep_rejected(self, sql_service):
        sql_service.fall_asleep("Tim", minutes_ago(60))
        with pytest.raises(SessionAlreadyOpenError):
            sql_service.fall_asleep("Tim", minutes_ago(30))

    def test_auto_completion(self, sql_service):
        sql_service.fall_asleep("Tim", minutes_ago(30))
        sql_service.record_foreign_event("Tim", EventType.MILK, NOW, amount=100)
        sleep = sql_service.list_events(EventType.SLEEP)[0]
        assert sleep.sleep_end_time == NOW
        assert sleep.amount == 30

    def test_list_events_newest_first(self, sql_service):
        sql_service.record_foreign_event("Tim", EventType.BATH, minutes_ago(60))
        sql_service.record_foreign_event("Tim", EventType.BATH, minutes_ago(10))
        events = sql_service.list_events()
        assert [e.timestamp for e in events] == [minutes_ago(10), minutes_ago(60)]


class TestRepository:

    def test_caregiver_created_on_demand(self, sql_uow, engine):
        with sql_uow.transaction() as store:
            assert store.get_open_session_for_update("Mengyu") is None
        with Session(engine) as session:
            names = session.exec(select(Caregiver.name)).all()
        assert names == ["Mengyu"]

    def test_seed_caregivers_idempotent(self, engine):
        assert seed_caregivers(engine, ["Tim", "Angie"]) == 2
        assert seed_caregivers(engine, ["Tim", "Angie", "Charie"]) == 1

    def test_second_open_row_is_concurrent_update(self, sql_uow):
        # Simulates a writer that skipped the lock: the partial unique index catches it
        with pytest.raises(ConcurrentUpdateError):
            with sql_uow.transaction() as store:
                store.create(Event(type="sleep", user_name="Tim", timestamp=minutes_ago(30),
                                   sleep_start_time=minutes_ago(30)))
                store.create(Event(type="sleep", user_name="Tim", timestamp=minutes_ago(20),
                                   sleep_start_time=minutes_ago(20)))

        with sql_uow.transaction() as store:
            assert store.list_events() == []

    def test_closed_rows_do_not_hit_open_index(self, sql_uow):
        with sql_uow.transaction() as store:
            for offset in (300, 200):
                store.create(Event(type="sleep", user_name="Tim", timestamp=minutes_ago(offset - 30),
                                   sleep_start_time=minutes_ago(offset), sleep_end_time=minutes_ago(offset - 30),
                                   amount=30, ))
            assert len(store.list_closed_sleep_sessions("Tim")) == 2

    def test_exclude_id(self, sql_uow):
        with sql_uow.transaction() as store:
            event = store.create(Event(type="sleep", user_name="Tim", timestamp=minutes_ago(10),
                                       sleep_start_time=minutes_ago(40), sleep_end_time=minutes_ago(10), amount=30, ))
            assert store.list_closed_sleep_sessions("Tim", exclude_id=event.id) == []

    def test_rollback_on_error(self, sql_uow):
        with pytest.raises(RuntimeError):
            with sql_uow.transaction() as store:
                store.create(Event(type="bath", user_name="Tim", timestamp=NOW))
                raise RuntimeError("boom")
        with sql_uow.transaction() as store:
            assert store.list_events() == []

    def test_delete_missing(self, sql_uow):
        with sql_uow.transaction() as store:
            assert store.delete(99) is False


class TestProfileRepository:

    def test_save_profile_overwrites_single_row(self, sql_uow, engine):
        sql_uow.run_transaction(lambda store: store.profiles.save_profile("Mia", datetime.date(2026, 1, 10)))
        saved = sql_uow.run_transaction(lambda store: store.profiles.save_profile("Mia Rose",
                                                                                  datetime.date(2026, 1, 11)))
        assert saved.name == "Mia Rose"
        with Session(engine) as session:
            assert len(session.exec(select(BabyProfile)).all()) == 1

    def test_measurements_newest_first(self, sql_uow):
        for day in (3, 20, 10):
            sql_uow.run_transaction(lambda store: store.profiles.add_measurement(
                BabyMeasurement(measurement_date=datetime.date(2026, 2, day), weight_kg=4.0)))
        measurements = sql_uow.run_transaction(lambda store: store.profiles.list_measurements())
        assert [m.measurement_date.day for m in measurements] == [20, 10, 3]

    def test_profile_write_rolls_back_with_transaction(self, sql_uow):
        with pytest.raises(RuntimeError):
            with sql_uow.transaction() as store:
                store.profiles.save_profile("Mia", datetime.date(2026, 1, 10))
                raise RuntimeError("boom")
        assert sql_uow.run_transaction(lambda store: store.profiles.get_profile()) is None


@pytest.mark.parametrize("model", [Event, Caregiver, BabyProfile, BabyMeasurement])
def test_datetime_columns_are_naive(model):
    columns = [c for c in model.__table__.columns if isinstance(c.type, DateTime)]
    assert columns
    assert all(type(c.type) is DateTime and not c.type.timezone for c in columns)


# ============================================================================
# Concurrent writers on a file database
# ============================================================================


@pytest.fixture
def file_service(tmp_path, config):
    engine = build_engine(f"sqlite:///{tmp_path / 'tracker.db'}")
    SQLModel.metadata.create_all(engine)
    seed_caregivers(engine, config.ALLOWED_USERS)
    yield EventService(SqlUnitOfWork(engine), config=config, clock=lambda: NOW, sleep=lambda _: None)
    engine.dispose()


def _slowed(method):
    """Wrap a read so the other writer gets a chance to run in between."""

    def wrapper(self, *args, **kwargs):
        result = method(self, *args, **kwargs)
        time.sleep(0.2)
        return result

    return wrapper


def _race(*calls):
    barrier = threading.Barrier(len(calls))
    outcomes = []
    guard = threading.Lock()

    def worker(call):
        barrier.wait()
        try:
            result = call()
        except TrackerError as e:
            result = e
        with guard:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(call,)) for call in calls]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


class TestConcurrentWriters:

    def test_overlapping_entries_one_wins(self, file_service, monkeypatch):
        monkeypatch.setattr(EventRepository, "list_closed_sleep_sessions",
                            _slowed(EventRepository.list_closed_sleep_sessions))

        outcomes = _race(lambda: file_service.record_legacy_sleep("Tim", minutes_ago(120), 60),
                         lambda: file_service.record_legacy_sleep("Tim", minutes_ago(100), 60))

        assert {type(o) for o in outcomes} == {Event, OverlapDetectedError}
        assert len(file_service.list_events(EventType.SLEEP)) == 1

    def test_second_fall_asleep_sees_open_session(self, file_service, monkeypatch):
        monkeypatch.setattr(EventRepository, "get_open_session_for_update",
                            _slowed(EventRepository.get_open_session_for_update))

        outcomes = _race(lambda: file_service.fall_asleep("Tim", minutes_ago(30)),
                         lambda: file_service.fall_asleep("Tim", minutes_ago(20)))

        assert {type(o) for o in outcomes} == {Event, SessionAlreadyOpenError}
        assert len(file_service.active_sessions()) == 1

    def test_different_caregivers_both_commit(self, file_service):
        outcomes = _race(lambda: file_service.fall_asleep("Tim", minutes_ago(30)),
                         lambda: file_service.fall_asleep("Angie", minutes_ago(20)))

        assert all(isinstance(o, Event) for o in outcomes)
        assert {s.user_name for s in file_service.active_sessions()} == {"Tim", "Angie"}


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__(f"error {pgcode}")
        self.pgcode = pgcode


class TestIsTransient:

    @pytest.mark.parametrize("pgcode,expected", [
        ("40001", True),
        ("40P01", True),
        ("55P03", True),
        ("23505", False),
    ])
    def test_postgres_codes(self, pgcode, expected):
        error = OperationalError("SELECT 1", {}, _PgError(pgcode))
        assert is_transient(error) is expected

    def test_sqlite_locked(self):
        error = OperationalError("SELECT 1", {}, Exception("database is locked"))
        assert is_transient(error)
