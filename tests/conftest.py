"""
Shared test fixtures.

Services run against the in-memory store with a frozen clock, so
timestamps in tests are expressed relative to ``tests.helpers.NOW``.
"""

import pytest

from app.core.config import Settings
from app.db.repositories.memory import InMemoryUnitOfWork
from app.services.event_service import EventService
from tests.helpers import NOW


@pytest.fixture
def config() -> Settings:
    return Settings(TRANSACTION_BACKOFF_SECONDS=0.0, HOME_TIMEZONE="UTC", INIT_DB_ON_STARTUP=False)


@pytest.fixture
def uow() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()


@pytest.fixture
def service(uow, config) -> EventService:
    return EventService(uow, config=config, clock=lambda: NOW, sleep=lambda _: None)
