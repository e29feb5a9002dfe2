"""
Pytest configuration and fixtures for Amenity Booking tests.

Provides database session fixtures and sample buildings, amenities and
bookings for testing.
"""

import uuid
from typing import Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from amenity_booking.integrations.sql import DatabaseBookingStore
from amenity_booking.models import Base, Amenity, Building
from amenity_booking.services.events import Resource


def make_engine():
    """In-memory SQLite engine shared by every session (StaticPool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Enable foreign key constraints for SQLite connections."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture(scope="function")
def db_engine():
    """
    Create a clean database for each test.

    Tables are created up front and dropped after the test.
    """
    engine = make_engine()
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Session over the test database.

    Yields:
        Session: SQLAlchemy session for database operations
    """
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def store(db_session: Session) -> DatabaseBookingStore:
    return DatabaseBookingStore(db_session)


@pytest.fixture
def building(db_session: Session) -> Building:
    building = Building(name="Harbour Tower", address="1 Harbour St")
    db_session.add(building)
    db_session.commit()
    db_session.refresh(building)
    return building


@pytest.fixture
def amenity(db_session: Session) -> Amenity:
    amenity = Amenity(name="Party Room", description="Ground floor party room")
    db_session.add(amenity)
    db_session.commit()
    db_session.refresh(amenity)
    return amenity


@pytest.fixture
def other_amenity(db_session: Session) -> Amenity:
    amenity = Amenity(name="Gym")
    db_session.add(amenity)
    db_session.commit()
    db_session.refresh(amenity)
    return amenity


@pytest.fixture
def party_room(building: Building, amenity: Amenity) -> Resource:
    """Stored (building, amenity) resource."""
    return Resource(building.id, amenity.id)


@pytest.fixture
def gym(building: Building, other_amenity: Amenity) -> Resource:
    """Second amenity in the same building."""
    return Resource(building.id, other_amenity.id)


@pytest.fixture
def room() -> Resource:
    """Resource for tests that never touch the database."""
    return Resource(uuid.uuid4(), uuid.uuid4())

