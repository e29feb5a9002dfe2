"""
SQL database integration for Amenity Booking.

Provides the local SQLAlchemy database as the booking store.
"""

from amenity_booking.integrations.sql.adapter import SqlRowAdapter
from amenity_booking.integrations.sql.store import DatabaseBookingStore

__all__ = [
    "DatabaseBookingStore",
    "SqlRowAdapter",
]
