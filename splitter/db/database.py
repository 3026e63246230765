"""
==============================================================================
Database Connection Module
==============================================================================

Engine and session handling for the single Splitter database.

All services (identity, expenses, transactions, translation store and
localization) share one database. DatabaseManager owns the engine and the
session factory; request handlers get their session from `get_db`.

Timestamps:
----------
All timestamps are stored as naive UTC datetimes. Use `utcnow()` when
comparing against stored values.

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from splitter.config import get_settings


logger = logging.getLogger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DatabaseManager:
    """
    Process-wide owner of the SQLAlchemy engine.

    The engine is built on first use so tests and scripts can change
    DATABASE_URL before anything connects.

    Example:
        >>> with DatabaseManager().session_scope() as session:
        ...     session.query(Expense).count()
    """

    _instance: Optional[DatabaseManager] = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._engine = None
            cls._instance._session_factory = None
        return cls._instance

    @property
    def database_url(self) -> str:
        return get_settings().database_url

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = build_engine(self.database_url)
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def get_session(self) -> Session:
        """New session; the caller closes it."""
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Commit on success, roll back on error, always close."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created/verified")

    def verify_connection(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {e}")
            return False

    def dispose(self) -> None:
        """Release pooled connections on shutdown."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection pool disposed")


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the configured URL.

    SQLite gets cross-thread access and enforced foreign keys (expense
    splits rely on cascades); every other backend gets a checked pool.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, connect_args={"check_same_thread": False})
        enable_sqlite_foreign_keys(engine)
        logger.info(f"Created SQLite engine: {database_url}")
        return engine

    logger.info("Created pooled database engine")
    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding a request-scoped session.

    Usage:
        @router.get("/expenses")
        async def list_expenses(db: Session = Depends(get_db)):
            ...
    """
    session = DatabaseManager().get_session()
    try:
        yield session
    finally:
        session.close()
