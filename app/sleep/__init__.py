"""Sleep session core: duration verifier, overlap detector, state machine, coordinator."""

from app.sleep.coordinator import TransactionCoordinator
from app.sleep.overlap import find_overlap, intervals_overlap, overlaps
from app.sleep.state_machine import SleepOutcome, SleepSessionStateMachine
from app.sleep.verifier import DurationThresholds, DurationVerdict, verify_duration

__all__ = [
    "TransactionCoordinator",
    "find_overlap",
    "intervals_overlap",
    "overlaps",
    "SleepOutcome",
    "SleepSessionStateMachine",
    "DurationThresholds",
    "DurationVerdict",
    "verify_duration",
]
