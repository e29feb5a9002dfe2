"""
FastAPI dependency injection providers.

Provides database sessions and the request-scoped booking service.
"""

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from amenity_booking.database import get_db
from amenity_booking.integrations.sql import DatabaseBookingStore
from amenity_booking.services.booking_service import BookingService


def get_db_session() -> Generator[Session, None, None]:
    """
    Dependency injection for database session.

    Commits when the request succeeds, rolls back when it raises.
    """
    yield from get_db()


def get_booking_service(db: Session = Depends(get_db_session)) -> BookingService:
    """Booking service bound to this request's session."""
    return BookingService(DatabaseBookingStore(db))
