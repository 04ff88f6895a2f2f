"""
Database session management.

Creates the engine and session factory and provides scoped sessions.
Import runs are synchronous; each record commits on its own.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:  # type: ignore[no-untyped-def]
    """
    Create a SQLAlchemy engine.

    SQLite connections get foreign key enforcement turned on.

    Args:
        database_url: Database connection URL.
        echo: Log emitted SQL.

    Returns:
        Configured engine.
    """
    engine = create_engine(database_url, echo=echo, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_database(database_url: str, echo: bool = False) -> Engine:
    """
    Initialize the global engine and session factory.

    Args:
        database_url: Database connection URL.
        echo: Log emitted SQL.

    Returns:
        The initialized engine.
    """
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = create_db_engine(database_url, echo=echo)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
    return _engine


def create_tables(engine: Engine | None = None) -> None:
    """Create all tables that do not exist yet."""
    target = engine or _engine
    if target is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    Base.metadata.create_all(target)


def get_session() -> Generator[Session, None, None]:
    """
    Yield a database session.

    Yields:
        Session bound to the global engine.
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    with _session_factory() as session:
        yield session


@contextmanager
def get_session_context() -> Generator[Session, None, None]:
    """Session context manager for commands and tasks."""
    yield from get_session()


def dispose_database() -> None:
    """Dispose the global engine."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
