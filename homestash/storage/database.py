"""Database connection and configuration management."""

import threading
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from homestash.config import get_settings
from homestash.models.base import Base

# Key under which every session carries its database's spot-code lock
SPOT_CODE_LOCK_KEY = "spot_code_lock"


class Database:
    """Database connection manager with connection pooling and transaction handling.

    One instance is built by each entry point and handed to the components
    that need it; there is no process-wide instance.
    """

    def __init__(self, database_url: str | None = None, pool_size: int | None = None, max_overflow: int | None = None):
        """
        Initialize database connection.

        Args:
            database_url: Database connection URL. If None, reads from settings.
                         Supports PostgreSQL and SQLite.
            pool_size: Number of connections to maintain in the pool. If None, uses settings.
            max_overflow: Maximum number of connections to allow beyond pool_size. If None, uses settings.
        """
        settings = get_settings()

        if database_url is None:
            database_url = settings.get_database_url()

        if pool_size is None:
            pool_size = settings.db_pool_size

        if max_overflow is None:
            max_overflow = settings.db_max_overflow

        self.database_url = database_url

        engine_args: dict[str, Any] = {
            "pool_pre_ping": True,  # Verify connections before using
            "echo": settings.sql_echo,
        }
        is_sqlite = database_url.startswith("sqlite")
        in_memory = is_sqlite and (database_url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in database_url)
        if is_sqlite:
            engine_args["connect_args"] = {"check_same_thread": False}
        if not in_memory:
            engine_args.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=settings.db_pool_timeout,
            )

        self.engine = create_engine(database_url, **engine_args)

        if is_sqlite:
            # Cascading deletes rely on foreign key enforcement
            @event.listens_for(self.engine, "connect")
            def set_sqlite_pragma(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        # Serializes read-existing-codes / insert-spot sequences
        self.spot_code_lock = threading.RLock()

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            info={SPOT_CODE_LOCK_KEY: self.spot_code_lock},
        )

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables."""
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions with automatic transaction handling.

        Usage:
            with db.session() as session:
                # Use session here
                session.commit()
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def execute_raw_sql(self, sql: str, params: dict | None = None) -> Any:
        """
        Execute raw SQL query.

        Args:
            sql: SQL query string
            params: Query parameters

        Returns:
            Query result rows, or the affected row count for statements
            that return no rows
        """
        with self.session() as session:
            result = session.execute(text(sql), params or {})
            if result.returns_rows:
                return result.fetchall()
            return result.rowcount
