"""
SQLAlchemy models for Amenity Booking.

This module exports all database models for easy importing and
ensures Alembic can discover them for migrations.
"""

# Import base classes
from amenity_booking.models.base import Base, BaseModel, GUID, get_json_type

# Import all models (must be imported for Alembic autogenerate)
from amenity_booking.models.facilities import Building, Amenity
from amenity_booking.models.events import RecurringPattern, Event
from amenity_booking.models.occurrences import CancelledOccurrence, ModifiedOccurrence

# Export all for easy importing
__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    "GUID",
    "get_json_type",
    # Facility models
    "Building",
    "Amenity",
    # Booking models
    "RecurringPattern",
    "Event",
    # Exception models
    "CancelledOccurrence",
    "ModifiedOccurrence",
]
