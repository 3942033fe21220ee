"""
Profile repository.

SQLModel implementation of :class:`~app.db.repositories.base.ProfileStore`.
Shares the session of the enclosing :class:`EventRepository`, so it
flushes but never commits.
"""

import datetime
from typing import Optional

from sqlmodel import Session, select

from app.core.clock import utcnow
from app.models.profile import BabyMeasurement, BabyProfile


class ProfileRepository:
    """Repository for the baby profile and its measurements."""

    def __init__(self, session: Session):
        self.session = session

    def get_profile(self) -> Optional[BabyProfile]:
        return self.session.exec(select(BabyProfile).order_by(BabyProfile.id)).first()

    def save_profile(self, name: str, date_of_birth: datetime.date) -> BabyProfile:
        profile = self.get_profile()
        if profile is None:
            profile = BabyProfile(name=name, date_of_birth=date_of_birth)
        else:
            profile.name = name
            profile.date_of_birth = date_of_birth
            profile.updated_at = utcnow()
        self.session.add(profile)
        self.session.flush()
        self.session.refresh(profile)
        return profile

    def add_measurement(self, measurement: BabyMeasurement) -> BabyMeasurement:
        self.session.add(measurement)
        self.session.flush()
        self.session.refresh(measurement)
        return measurement

    def list_measurements(self) -> list[BabyMeasurement]:
        statement = select(BabyMeasurement).order_by(BabyMeasurement.measurement_date.desc(),
                                                     BabyMeasurement.id.desc())
        return list(self.session.exec(statement).all())
