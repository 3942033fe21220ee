"""
Database session management.

Provides the SQLModel engine and the unit-of-work dependency.
"""

from typing import Any, Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import create_engine

from app.core.config import settings
from app.db.unit_of_work import SqlUnitOfWork


def build_engine(database_url: str, echo: bool = False, **kwargs: Any) -> Engine:
    """Create an engine for *database_url*.

    SQLite connections are shared across request threads, so the
    same-thread check is disabled there; other backends get a pool.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, echo=echo, connect_args={"check_same_thread": False}, **kwargs)
        use_immediate_transactions(engine)
        return engine
    return create_engine(
        database_url,
        echo=echo,            # Log SQL queries in debug mode
        pool_pre_ping=True,   # Verify connections before using
        pool_size=5,          # Connection pool size
        max_overflow=10,      # Max connections beyond pool_size
        **kwargs
    )


def use_immediate_transactions(engine: Engine) -> None:
    """Start every SQLite transaction with ``BEGIN IMMEDIATE``.

    SQLite ignores ``FOR UPDATE`` and pysqlite defers ``BEGIN`` until
    the first write, so the open-session and overlap reads would run
    outside the transaction.  Taking the write lock at BEGIN makes each
    transaction see the rows of the previous one and blocks the next
    until commit (up to the driver's busy timeout).
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


# Create database engine
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def get_unit_of_work() -> Generator[SqlUnitOfWork, None, None]:
    """
    Dependency for FastAPI endpoints to get a unit of work.

    Each operation opens its own transaction through it.

    Example:
        @app.get("/items")
        def get_items(uow: SqlUnitOfWork = Depends(get_unit_of_work)):
            return uow.run_transaction(lambda store: store.list_events())
    """
    yield SqlUnitOfWork(engine)
