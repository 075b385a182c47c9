"""
Database connection and session management.
Provides the scoped transaction every ledger operation runs in.
"""

from contextlib import contextmanager
from typing import Generator, Optional
import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from ceart_api.core.config import config
from ceart_api.models.event import Base
# Registers the remaining tables on Base.metadata
from ceart_api.models import booking as _booking_models  # noqa: F401
from ceart_api.models import settings as _settings_models  # noqa: F401

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Database manager for ledger operations.
    Handles connection pooling and transaction management.
    """

    def __init__(self):
        self.engine = None
        self.session_factory = None
        self.database_url: Optional[str] = None
        self._initialized = False

    @property
    def is_sqlite(self) -> bool:
        return bool(self.database_url) and self.database_url.startswith("sqlite")

    async def initialize(self):
        """Initialize the engine from service configuration."""
        if self._initialized:
            return

        try:
            db_url = await config.get_database_url()
            db_config = await config.get_database_config()
            self.configure(db_url, **db_config)
        except Exception as e:
            logger.error(f"Failed to initialize database manager: {e}")
            raise

    def configure(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 20,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        lock_timeout_ms: int = 5000,
        statement_timeout_ms: int = 30000,
    ):
        """
        Create the engine and session factory for ``database_url``.

        PostgreSQL runs at READ COMMITTED with lock and statement timeouts;
        SQLite opens every transaction with BEGIN IMMEDIATE so that writers
        are serialised.
        """
        self.database_url = database_url

        if self.is_sqlite:
            self.engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False, "timeout": 30},
                echo=False,
            )
        else:
            self.engine = create_engine(
                database_url,
                poolclass=QueuePool,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=True,
                isolation_level="READ COMMITTED",
                echo=False,
            )

        self.session_factory = sessionmaker(
            bind=self.engine,
            class_=Session,
            autoflush=False,
            expire_on_commit=False,
        )

        self._setup_event_listeners(lock_timeout_ms, statement_timeout_ms)

        self._initialized = True
        logger.info(f"Database manager initialized ({self.engine.dialect.name})")

    def _setup_event_listeners(self, lock_timeout_ms: int, statement_timeout_ms: int):
        """Set up per-connection settings and checkout logging."""

        if self.is_sqlite:
            @event.listens_for(self.engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                # pysqlite's own transaction handling is replaced by the begin hook
                dbapi_connection.isolation_level = None
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

            @event.listens_for(self.engine, "begin")
            def do_begin(conn):
                conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            @event.listens_for(self.engine, "connect")
            def set_session_timeouts(dbapi_connection, connection_record):
                with dbapi_connection.cursor() as cursor:
                    cursor.execute(f"SET lock_timeout TO {int(lock_timeout_ms)}")
                    cursor.execute(f"SET statement_timeout TO {int(statement_timeout_ms)}")
                dbapi_connection.commit()

        @event.listens_for(self.engine, "checkout")
        def receive_checkout(dbapi_connection, connection_record, connection_proxy):
            logger.debug("Database connection checked out")

        @event.listens_for(self.engine, "checkin")
        def receive_checkin(dbapi_connection, connection_record):
            logger.debug("Database connection checked in")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Get a database session with automatic transaction management.
        Ensures proper rollback on exceptions.
        """
        if not self._initialized:
            raise RuntimeError("Database manager not initialized")

        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.debug(f"Database session rolled back: {e}")
            raise
        finally:
            session.close()

    @contextmanager
    def get_transaction_session(self) -> Generator[Session, None, None]:
        """
        Scoped transaction: begins on entry, commits when the block exits
        normally, rolls back on any exception, and always releases the
        connection.
        """
        if not self._initialized:
            raise RuntimeError("Database manager not initialized")

        session = self.session_factory()
        try:
            session.begin()
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.debug(f"Transaction rolled back: {e}")
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create all database tables."""
        if not self._initialized:
            raise RuntimeError("Database manager not initialized")

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created successfully")

    def drop_tables(self):
        """Drop all database tables (use with caution)."""
        if not self._initialized:
            raise RuntimeError("Database manager not initialized")

        Base.metadata.drop_all(bind=self.engine)
        logger.info("Database tables dropped successfully")

    def health_check(self) -> bool:
        """Check database health."""
        if not self._initialized:
            return False

        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def close(self):
        """Close all database connections."""
        if self.engine:
            self.engine.dispose()
        self._initialized = False
        logger.info("Database connections closed")


# Global database manager instance
db_manager = DatabaseManager()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency for getting database session."""
    with db_manager.get_session() as session:
        yield session
