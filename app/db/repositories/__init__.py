"""Database repositories."""

from app.db.repositories.base import EventStore, UnitOfWork
from app.db.repositories.event import EventRepository
from app.db.repositories.memory import InMemoryUnitOfWork

__all__ = [
    "EventStore",
    "UnitOfWork",
    "EventRepository",
    "InMemoryUnitOfWork",
]
