"""
Database initialization.

Creates all tables and seeds the known caregivers.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from app.core.config import settings
from app.models.caregiver import Caregiver

logger = logging.getLogger(__name__)


def seed_caregivers(engine: Engine, names: Iterable[str]) -> int:
    """Insert a caregiver row for every name not yet present.  Returns the number added."""
    added = 0
    with Session(engine) as session:
        existing = set(session.exec(select(Caregiver.name)).all())
        for name in names:
            if name not in existing:
                session.add(Caregiver(name=name))
                existing.add(name)
                added += 1
        session.commit()
    return added


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Initialize database schema.

    - Creates all SQLModel tables
    - Seeds one caregiver row per configured user
    """
    if engine is None:
        from app.db.session import engine

    # Import all models so SQLModel.metadata has them
    import app.db.base  # noqa: F401

    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)

    added = seed_caregivers(engine, settings.ALLOWED_USERS)
    logger.info("Seeded %d caregiver(s)", added)
    logger.info("Database initialization complete")


if __name__ == "__main__":
    from app.core.logging import configure_logging

    configure_logging(settings.LOG_LEVEL)
    init_db()
