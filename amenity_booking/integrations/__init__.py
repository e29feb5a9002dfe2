"""
Storage integrations for Amenity Booking.

Provides the abstraction layer between the booking engine and its store.
"""

from amenity_booking.integrations.base import BookingStore

__all__ = ["BookingStore"]
