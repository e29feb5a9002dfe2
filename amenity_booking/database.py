"""
Database configuration and session management.

Provides:
- Database engine creation with proper configuration
- SessionLocal factory for creating database sessions
- get_db() dependency for FastAPI request-scoped sessions
- Database initialization utilities
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event, make_url, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from amenity_booking.config import get_settings

logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

# Validate production configuration
if settings.is_production:
    settings.validate_production_config()

# Configure engine based on database type
if "sqlite" in settings.database_url.lower():
    # SQLite-specific configuration
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},  # Allow multiple threads (needed for FastAPI)
        poolclass=StaticPool,
        echo=settings.log_level == "DEBUG",
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign key constraints and let SQLAlchemy own transactions."""
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        # pysqlite defers BEGIN until the first DML, which breaks SAVEPOINT
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

else:
    # PostgreSQL-specific configuration
    engine = create_engine(
        settings.database_url,
        pool_size=5,
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,
        echo=settings.log_level == "DEBUG",
    )


# Session factory
SessionLocal = sessionmaker(
    autocommit=False,  # Explicit commits required
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for request-scoped database sessions.

    Commits when the request succeeds, rolls back on exception.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside FastAPI.

    Usage for scripts and maintenance tasks:
        with get_db_context() as db:
            store = DatabaseBookingStore(db)
            store.insert_cancellation(series_id, day)
            # Automatic commit on context exit

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """
    Create all tables.

    For development and tests. In production, run `alembic upgrade head`.
    """
    from amenity_booking.models import Base

    database = make_url(settings.database_url).database
    if not settings.uses_postgresql and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def check_connection() -> bool:
    """
    Test database connection.

    Returns:
        bool: True if connection successful, False otherwise
    """
    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
        logger.info("Database connection successful")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
