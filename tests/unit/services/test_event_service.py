"""
Tests for the event service.

End-to-end behaviour of the sleep lifecycle through the public
operations, against the in-memory store.
"""

import threading

import pytest

from app.core.exceptions import (EventNotFoundError, EventValidationError, InvalidDurationError,
                                 NoOpenSessionError, OverlapDetectedError, SessionAlreadyOpenError, )
from app.models.event import EventType
from app.schemas.event import EventUpdate
from app.schemas.sleep import ConfirmationRequired
from tests.helpers import NOW, minutes_ago


def _closed_sessions(service, user):
    return [e for e in service.list_events(EventType.SLEEP) if e.user_name == user and e.sleep_end_time]


# ======================================================================
# Single open session
# ======================================================================


class TestSingleOpenSession:

    def test_only_first_fall_asleep_succeeds(self, service):
        service.fall_asleep("Tim", minutes_ago(120))
        for offset in (110, 100, 90):
            with pytest.raises(SessionAlreadyOpenError):
                service.fall_asleep("Tim", minutes_ago(offset))
        assert len(service.list_events(EventType.SLEEP)) == 1

    def test_concurrent_fall_asleep(self, uow, config):
        from app.services.event_service import EventService

        results = []
        barrier = threading.Barrier(2)

        def attempt():
            svc = EventService(uow, config=config, clock=lambda: NOW, sleep=lambda _: None)
            barrier.wait()
            try:
                svc.fall_asleep("Tim", minutes_ago(30))
                results.append("ok")
            except SessionAlreadyOpenError:
                results.append("already_open")

        threads = [threading.Thread(target=attempt) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert sorted(results) == ["already_open", "ok"]

    def test_fall_asleep_after_wake_up(self, service):
        service.fall_asleep("Tim", minutes_ago(120))
        service.wake_up("Tim", minutes_ago(60))
        event = service.fall_asleep("Tim", minutes_ago(30))
        assert event.sleep_end_time is None


# ======================================================================
# Wake up
# ======================================================================


class TestWakeUp:

    def test_round_trip(self, service):
        opened = service.fall_asleep("Tim", minutes_ago(60))
        closed = service.wake_up("Tim", minutes_ago(15))
        assert closed.id == opened.id
        assert closed.amount == 45
        assert closed.sleep_start_time == minutes_ago(60)
        assert closed.sleep_end_time == minutes_ago(15)

    def test_defaults_to_now(self, service):
        service.fall_asleep("Tim", minutes_ago(50))
        closed = service.wake_up("Tim")
        assert closed.sleep_end_time == NOW
        assert closed.amount == 50

    @pytest.mark.parametrize("duration,expected", [
        (9, "too_short"),
        (10, None),
        (300, None),
        (301, "too_long"),
    ])
    def test_confirmation_boundary(self, service, duration, expected):
        service.fall_asleep("Tim", minutes_ago(duration))
        outcome = service.wake_up("Tim", NOW)
        if expected is None:
            assert outcome.amount == duration
        else:
            assert isinstance(outcome, ConfirmationRequired)
            assert outcome.reason == expected

    def test_confirmation_then_confirmed(self, service):
        service.fall_asleep("Tim", minutes_ago(400))
        assert isinstance(service.wake_up("Tim", NOW), ConfirmationRequired)
        closed = service.wake_up("Tim", NOW, confirmed=True)
        assert closed.amount == 400

    def test_hard_limit_even_when_confirmed(self, service):
        service.fall_asleep("Tim", minutes_ago(721))
        with pytest.raises(InvalidDurationError):
            service.wake_up("Tim", NOW, confirmed=True)

    def test_no_open_session(self, service):
        with pytest.raises(NoOpenSessionError):
            service.wake_up("Tim")

    def test_rejection_is_repeatable(self, service):
        service.record_legacy_sleep("Tim", minutes_ago(100), 60)
        service.fall_asleep("Tim", minutes_ago(120))
        errors = []
        for _ in range(2):
            with pytest.raises(OverlapDetectedError) as exc_info:
                service.wake_up("Tim", minutes_ago(30))
            errors.append((type(exc_info.value), exc_info.value.message))
        assert errors[0] == errors[1]


# ======================================================================
# Legacy entries
# ======================================================================


class TestLegacySleep:

    def test_records_closed_session(self, service):
        event = service.record_legacy_sleep("Tim", minutes_ago(90), 60)
        assert event.sleep_end_time == minutes_ago(30)
        assert event.amount == 60

    def test_overlap_rejected(self, service):
        service.record_legacy_sleep("Tim", minutes_ago(240), 120)
        with pytest.raises(OverlapDetectedError):
            service.record_legacy_sleep("Tim", minutes_ago(180), 90)
        assert len(_closed_sessions(service, "Tim")) == 1

    def test_confirmation(self, service):
        outcome = service.record_legacy_sleep("Tim", minutes_ago(600), 5)
        assert isinstance(outcome, ConfirmationRequired)
        assert service.list_events() == []

    def test_end_in_future_rejected(self, service):
        with pytest.raises(EventValidationError) as exc_info:
            service.record_legacy_sleep("Tim", minutes_ago(10), 60)
        assert exc_info.value.field == "amount"
        assert service.list_events() == []

    def test_ending_now_accepted(self, service):
        event = service.record_legacy_sleep("Tim", minutes_ago(60), 60)
        assert event.timestamp == NOW

    def test_future_entry_does_not_block_wake_up(self, service):
        with pytest.raises(EventValidationError):
            service.record_legacy_sleep("Tim", minutes_ago(10), 60)
        service.fall_asleep("Tim", minutes_ago(45))
        assert service.wake_up("Tim").amount == 45


# ======================================================================
# Foreign events and auto-completion
# ======================================================================


class TestForeignEvents:

    def test_milk_closes_open_session(self, service):
        service.fall_asleep("Tim", minutes_ago(30))
        milk = service.record_foreign_event("Tim", EventType.MILK, NOW, amount=120)
        assert milk.amount == 120

        sleep = _closed_sessions(service, "Tim")[0]
        assert sleep.sleep_end_time == NOW
        assert sleep.amount == 30

    def test_recorded_despite_unusual_duration(self, service):
        service.fall_asleep("Tim", minutes_ago(5))
        milk = service.record_foreign_event("Tim", EventType.MILK, NOW, amount=90)
        assert milk.id is not None
        assert _closed_sessions(service, "Tim")[0].amount == 5

    def test_recorded_despite_overlap(self, service):
        service.record_legacy_sleep("Tim", minutes_ago(60), 30)
        service.fall_asleep("Tim", minutes_ago(90))
        bath = service.record_foreign_event("Tim", EventType.BATH, NOW)
        assert bath.type == "bath"
        assert len(service.active_sessions()) == 1

    def test_other_users_session_untouched(self, service):
        service.fall_asleep("Angie", minutes_ago(30))
        service.record_foreign_event("Tim", EventType.DIAPER, NOW, subtype="pee")
        assert [s.user_name for s in service.active_sessions()] == ["Angie"]

    def test_sleep_type_rejected(self, service):
        with pytest.raises(EventValidationError):
            service.record_foreign_event("Tim", EventType.SLEEP, NOW)

    @pytest.mark.parametrize("amount", [None, 0, 501])
    def test_milk_amount_validated(self, service, amount):
        with pytest.raises(EventValidationError):
            service.record_foreign_event("Tim", EventType.MILK, NOW, amount=amount)

    def test_diaper_subtype_required(self, service):
        with pytest.raises(EventValidationError):
            service.record_foreign_event("Tim", EventType.DIAPER, NOW)

    def test_poo_subtype(self, service):
        assert service.record_foreign_event("Tim", EventType.POO, NOW).subtype == "poo"

    def test_failed_foreign_event_leaves_session_open(self, service):
        service.fall_asleep("Tim", minutes_ago(30))
        with pytest.raises(EventValidationError):
            service.record_foreign_event("Tim", EventType.MILK, NOW, amount=9000)
        assert len(service.active_sessions()) == 1


# ======================================================================
# Input validation
# ======================================================================


class TestValidation:

    def test_unknown_user(self, service):
        with pytest.raises(EventValidationError) as exc_info:
            service.fall_asleep("Nobody")
        assert exc_info.value.field == "user_name"

    def test_future_timestamp(self, service):
        with pytest.raises(EventValidationError):
            service.fall_asleep("Tim", minutes_ago(-5))

    def test_ancient_timestamp(self, service):
        with pytest.raises(EventValidationError):
            service.fall_asleep("Tim", minutes_ago(60 * 24 * 400))


# ======================================================================
# Reads and corrections
# ======================================================================


class TestCorrections:

    def test_get_missing(self, service):
        with pytest.raises(EventNotFoundError):
            service.get_event(42)

    def test_delete(self, service):
        event = service.record_foreign_event("Tim", EventType.BATH, NOW)
        service.delete_event(event.id)
        with pytest.raises(EventNotFoundError):
            service.delete_event(event.id)

    def test_amend_sleep(self, service):
        event = service.record_legacy_sleep("Tim", minutes_ago(120), 60)
        updated = service.update_event(event.id, EventUpdate(timestamp=minutes_ago(200), amount=30))
        assert updated.sleep_start_time == minutes_ago(200)
        assert updated.sleep_end_time == minutes_ago(170)
        assert updated.amount == 30

    def test_amend_sleep_overlap(self, service):
        first = service.record_legacy_sleep("Tim", minutes_ago(300), 60)
        service.record_legacy_sleep("Tim", minutes_ago(120), 60)
        with pytest.raises(OverlapDetectedError):
            service.update_event(first.id, EventUpdate(timestamp=minutes_ago(150), amount=61))

    def test_amend_sleep_end_in_future(self, service):
        event = service.record_legacy_sleep("Tim", minutes_ago(120), 60)
        with pytest.raises(EventValidationError):
            service.update_event(event.id, EventUpdate(amount=150))
        assert service.get_event(event.id).amount == 60

    def test_update_milk(self, service):
        event = service.record_foreign_event("Tim", EventType.MILK, NOW, amount=100)
        updated = service.update_event(event.id, EventUpdate(amount=150))
        assert updated.amount == 150

    def test_update_milk_invalid(self, service):
        event = service.record_foreign_event("Tim", EventType.MILK, NOW, amount=100)
        with pytest.raises(EventValidationError):
            service.update_event(event.id, EventUpdate(amount=-1))

    def test_active_sessions_elapsed(self, service):
        service.fall_asleep("Tim", minutes_ago(75))
        [session] = service.active_sessions()
        assert session.elapsed_minutes == 75
        assert session.elapsed_formatted == "1h 15m"

    def test_active_session_for_one_caregiver(self, service):
        service.fall_asleep("Tim", minutes_ago(20))
        service.fall_asleep("Angie", minutes_ago(50))
        [session] = service.active_sessions("Angie")
        assert session.user_name == "Angie"
        assert session.elapsed_minutes == 50
        assert service.active_sessions("Mengyu") == []

    def test_active_session_unknown_caregiver(self, service):
        with pytest.raises(EventValidationError):
            service.active_sessions("Nobody")
