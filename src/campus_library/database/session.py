"""
Engine and session handling for the Campus Library API.

A ``DatabaseManager`` owns the engine for one database URL. The HTTP
layer gets one session per request from ``request_session``; a request
that changes state commits once, and whatever it leaves uncommitted is
rolled back when the session closes.

How SQLite connections are pooled depends on where the database lives.
An in-memory database exists only inside its connection, so every
session shares that one connection. A file database hands each session
its own connection, so concurrent requests run in separate SQLite
transactions and a writer waits up to ``SQLITE_BUSY_TIMEOUT`` seconds
for the write lock instead of failing.
"""

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..errors import LibraryError
from .schema import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT = 30


def _is_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _enable_foreign_keys(dbapi_connection, connection_record):  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    """Create an engine with the pooling this database needs."""
    url = make_url(database_url)

    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)

    if _is_memory_sqlite(url):
        engine = create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        # Default pool: one connection, and one transaction, per session
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        )

    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


class DatabaseManager:
    """
    Owns the engine and session factory for one database.

    Args:
        database_url: SQLAlchemy URL; defaults to the configured SQLite file
    """

    def __init__(self, database_url: str | None = None):
        self.database_url = database_url or get_config().get_database_url()
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = build_engine(self.database_url)
            logger.info("Database engine created: %s", self._engine.url)
        return self._engine

    def create_session(self) -> Session:
        """Open a new session. The caller closes it."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                # Repositories return models built from rows after commit
                expire_on_commit=False,
            )
        return self._session_factory()

    def request_session(self) -> Generator[Session, None, None]:
        """Yield the session for one HTTP request and close it afterwards."""
        session = self.create_session()
        try:
            yield session
        finally:
            session.close()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Run a block of work that commits on success and rolls back on error."""
        session = self.create_session()
        try:
            yield session
            session.commit()
        except Exception:
            logger.debug("Rolling back database transaction")
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self, drop_existing: bool = False) -> None:
        """Create every table, optionally dropping the existing ones first."""
        if drop_existing:
            logger.warning("Dropping all existing tables...")
            Base.metadata.drop_all(bind=self.engine)

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ready")

    def verify_connection(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database connection failed")
            return False
        return True

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


_db_manager: DatabaseManager | None = None


def get_db_manager(database_url: str | None = None) -> DatabaseManager:
    """Return the process-wide manager, creating it on first use."""
    global _db_manager  # noqa: PLW0603

    if _db_manager is None:
        _db_manager = DatabaseManager(database_url)
    return _db_manager


def reset_db_manager() -> None:
    """Dispose of and forget the process-wide manager."""
    global _db_manager  # noqa: PLW0603

    if _db_manager is not None:
        _db_manager.close()
    _db_manager = None


def safe_commit(session: Session, operation: str) -> None:
    """
    Commit, or roll back and raise LibraryError naming ``operation``.
    """
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise LibraryError(f"Database operation '{operation}' failed: {e!s}") from e


T = TypeVar("T")


def safe_query(session: Session, query_func: Callable[[Session], T], error_msg: str) -> T:
    """Run ``query_func`` and report database errors as LibraryError."""
    try:
        return query_func(session)
    except SQLAlchemyError as e:
        logger.exception("Query failed")
        raise LibraryError(f"{error_msg}: Database query failed") from e
