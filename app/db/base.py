"""
Base database configuration.

Import all models here so Alembic can detect them for migrations.
"""

# Import all models for Alembic autogenerate
from app.models.caregiver import Caregiver  # noqa: F401
from app.models.event import Event  # noqa: F401
from app.models.profile import BabyMeasurement, BabyProfile  # noqa: F401
