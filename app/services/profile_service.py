"""
Profile service.

Stores the baby's profile and growth measurements.  Dates are calendar
dates in ``HOME_TIMEZONE``; "in the future" means after today there.
"""

import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.clock import Clock, utcnow
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import EventValidationError
from app.db.repositories.base import UnitOfWork
from app.models.profile import BabyMeasurement, BabyProfile
from app.schemas.profile import BabyAge, BabyProfileRead, BabyProfileResponse, MeasurementCreate, MeasurementRead
from app.sleep.coordinator import TransactionCoordinator

# (min, max, unit) per measured value
MEASUREMENT_RANGES = {
    "weight_kg": (1.5, 20, "kg"),
    "height_cm": (40, 100, "cm"),
    "head_circumference_cm": (30, 55, "cm"),
}

_LABELS = {
    "weight_kg": "Weight",
    "height_cm": "Height",
    "head_circumference_cm": "Head circumference",
}


def baby_age(date_of_birth: datetime.date, today: datetime.date) -> BabyAge:
    total_days = max(0, (today - date_of_birth).days)
    return BabyAge(weeks=total_days // 7, days=total_days % 7, total_days=total_days)


def validate_measurement_value(field: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    low, high, unit = MEASUREMENT_RANGES[field]
    if not low <= value <= high:
        raise EventValidationError(f"{_LABELS[field]} must be between {low} and {high} {unit}", field=field)
    return value


class ProfileService:
    """Service for the baby profile and growth measurements."""

    def __init__(self, unit_of_work: UnitOfWork, config: Settings = default_settings, clock: Clock = utcnow):
        self.config = config
        self.clock = clock
        self.coordinator = TransactionCoordinator(unit_of_work, max_attempts=config.TRANSACTION_MAX_ATTEMPTS,
                                                  backoff_seconds=config.TRANSACTION_BACKOFF_SECONDS, )

    def get_profile(self) -> BabyProfileResponse:
        def load(store):
            measurements = store.profiles.list_measurements()
            return store.profiles.get_profile(), measurements[0] if measurements else None

        profile, latest = self.coordinator.run(load)
        latest = MeasurementRead.model_validate(latest) if latest is not None else None
        if profile is None:
            return BabyProfileResponse(latest_measurement=latest)
        return BabyProfileResponse(profile=BabyProfileRead.model_validate(profile), latest_measurement=latest,
                                   age=baby_age(profile.date_of_birth, self._today()))

    def save_profile(self, name: str, date_of_birth: datetime.date) -> BabyProfile:
        if not name.strip():
            raise EventValidationError("Name and date of birth are required", field="name")
        if date_of_birth > self._today():
            raise EventValidationError("Date of birth cannot be in the future", field="date_of_birth")
        return self.coordinator.run(lambda store: store.profiles.save_profile(name.strip(), date_of_birth))

    def add_measurement(self, data: MeasurementCreate) -> BabyMeasurement:
        if data.measurement_date > self._today():
            raise EventValidationError("Measurement date cannot be in the future", field="measurement_date")

        values = {field: validate_measurement_value(field, getattr(data, field)) for field in MEASUREMENT_RANGES}
        if all(value is None for value in values.values()):
            raise EventValidationError(
                "At least one measurement (weight, height, or head circumference) is required")

        measurement = BabyMeasurement(measurement_date=data.measurement_date, notes=data.notes or None, **values)
        return self.coordinator.run(lambda store: store.profiles.add_measurement(measurement))

    def list_measurements(self) -> list[BabyMeasurement]:
        return self.coordinator.run(lambda store: store.profiles.list_measurements())

    def _today(self) -> datetime.date:
        now = self.clock().replace(tzinfo=datetime.timezone.utc)
        return now.astimezone(ZoneInfo(self.config.HOME_TIMEZONE)).date()
