"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the Library Catalog API.

Storage Context
===============
All database access goes through a single `StorageContext`:
- built once by `create_storage()` when the application is created
- stored on `app.state.storage` and injected with FastAPI's Depends()
- owns the engine, the session factory and the unit of work

There is no module-level engine. Tests build their own StorageContext
against a throwaway database and override the `get_storage` dependency.

Unit of Work
============
`StorageContext.run(fn)` wraps `fn(session)` in one transaction:
1. Open a session and begin a transaction
2. Call fn(session)
3. Commit on success, roll back on any exception
4. Translate driver errors into the service error taxonomy
5. Retry on write conflicts when asked to

Multi-statement writes that must be seen as a single unit (vote
reconciliation, user deletion) are expressed as one function passed to
run(), never as hand-written BEGIN/COMMIT pairs.

Supported Databases
===================
- PostgreSQL (psycopg2): production
- SQLite: development and tests. SQLite does not support SELECT ... FOR
  UPDATE, so the unit of work opens its transaction with BEGIN IMMEDIATE
  and writers serialize at transaction start instead.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from catalog.config import Settings
from catalog.services.exceptions import (
    CatalogError,
    StorageUnavailableError,
    TransactionConflictError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fragments of driver error messages that mean "another transaction got in
# the way" rather than "the database is broken".
CONFLICT_MARKERS = (
    "database is locked",
    "deadlock detected",
    "could not serialize access",
    "could not obtain lock",
    "lock timeout",
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Storage Context
# =============================================================================
class StorageContext:
    """
    Owns the engine and session factory, and runs units of work.

    Args:
        engine: SQLAlchemy engine for the catalog database
        session_factory: Optional sessionmaker; defaults to one bound to engine

    Usage:
        storage = create_storage(get_settings())

        def rename(session: Session) -> None:
            session.get(Book, 1).title = "New title"

        storage.run(rename)
    """

    def __init__(
        self,
        engine: Engine,
        session_factory: sessionmaker | None = None,
    ) -> None:
        self.engine = engine
        self.session_factory = session_factory or sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.engine.dialect.name == "sqlite"

    def session(self) -> Session:
        """Create a new session (caller is responsible for closing it)."""
        return self.session_factory()

    def run(
        self,
        fn: Callable[[Session], T],
        retries: int = 0,
        readonly: bool = False,
    ) -> T:
        """
        Execute fn(session) inside one atomic transaction.

        Args:
            fn: Unit of work; receives an open session inside a transaction
            retries: How many times to re-run fn after a TransactionConflictError
            readonly: fn only reads; skip taking the SQLite write lock

        Returns:
            Whatever fn returns, after the transaction committed

        Raises:
            TransactionConflictError: Conflict persisted after all retries
            StorageUnavailableError: Connection or driver failure
            CatalogError: Any service error raised by fn (transaction rolled back)
        """
        attempt = 0
        while True:
            try:
                return self._run_once(fn, readonly)
            except TransactionConflictError:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.warning(
                    f"Transaction conflict, retrying ({attempt}/{retries})"
                )

    def _run_once(self, fn: Callable[[Session], T], readonly: bool) -> T:
        session = self.session()
        try:
            with session.begin():
                if self.is_sqlite and not readonly:
                    # Take the write lock up front; pysqlite would otherwise
                    # defer it to the first INSERT/UPDATE.
                    session.execute(text("BEGIN IMMEDIATE"))
                return fn(session)
        except CatalogError:
            raise
        except IntegrityError as exc:
            logger.warning(f"Integrity conflict, transaction rolled back: {exc.orig}")
            raise TransactionConflictError() from exc
        except OperationalError as exc:
            if is_conflict_error(exc):
                logger.warning(f"Lock conflict, transaction rolled back: {exc.orig}")
                raise TransactionConflictError() from exc
            logger.error(f"Storage failure, transaction rolled back: {exc}")
            raise StorageUnavailableError() from exc
        except SQLAlchemyError as exc:
            logger.error(f"Storage failure, transaction rolled back: {exc}")
            raise StorageUnavailableError() from exc
        finally:
            session.close()

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.warning(f"Database ping failed: {exc}")
            return False

    def create_all(self) -> None:
        """
        Create all database tables.

        WARNING: In production, use Alembic migrations instead!
        """
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        """Drop all database tables. Only for development and tests."""
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()


def is_conflict_error(exc: OperationalError) -> bool:
    """Whether an OperationalError reports lock contention or a serialization failure."""
    message = str(exc.orig).lower()
    return any(marker in message for marker in CONFLICT_MARKERS)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_storage(settings: Settings) -> StorageContext:
    """
    Build the StorageContext for the configured database.

    Key engine parameters:
    - pool_size / max_overflow: connection pool bounds (server databases)
    - pool_pre_ping: test connection health before use
    - timeout: how long SQLite waits on a locked database file
    - echo: log SQL in debug mode

    Args:
        settings: Application settings

    Returns:
        A StorageContext ready for use (no connection is opened yet)
    """
    if settings.is_sqlite:
        engine = create_engine(
            settings.database_url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.db_busy_timeout,
            },
            echo=settings.debug,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
            echo=settings.debug,
        )

    return StorageContext(engine)
