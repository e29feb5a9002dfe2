"""
Service layer for Amenity Booking.

Provides the booking engine:
- Recurrence patterns and occurrence date generation
- Per-occurrence exceptions (cancelled / modified)
- Expansion of bookings into occurrences
- Conflict detection and booking creation
- Series editing

Note: The engine functions are pure. BookingService binds them to a store.
"""

from amenity_booking.services.recurrence import (
    Frequency,
    Weekday,
    RecurrencePattern,
    generate_occurrence_dates,
)

from amenity_booking.services.events import (
    ContactInfo,
    DateRange,
    Event,
    Resource,
)

from amenity_booking.services.occurrence_exceptions import (
    Cancelled,
    Modified,
    ExceptionRecord,
    ExceptionStore,
)

from amenity_booking.services.expansion import (
    Occurrence,
    expand_event,
    expand_for_display,
    filter_occurrences,
)

from amenity_booking.services.conflicts import (
    ConflictCandidate,
    ConflictEntry,
    ConflictReport,
    ConflictingOccurrence,
    find_conflicts,
    intervals_overlap,
)

from amenity_booking.services.booking import (
    BookingCreator,
    BookingMode,
    BookingPlan,
    BookingResult,
    CreatedBooking,
    validate_booking,
)

from amenity_booking.services.booking_service import BookingService

__all__ = [
    # Recurrence
    "Frequency",
    "Weekday",
    "RecurrencePattern",
    "generate_occurrence_dates",
    # Values
    "ContactInfo",
    "DateRange",
    "Event",
    "Resource",
    # Exceptions
    "Cancelled",
    "Modified",
    "ExceptionRecord",
    "ExceptionStore",
    # Expansion
    "Occurrence",
    "expand_event",
    "expand_for_display",
    "filter_occurrences",
    # Conflicts
    "ConflictCandidate",
    "ConflictEntry",
    "ConflictReport",
    "ConflictingOccurrence",
    "find_conflicts",
    "intervals_overlap",
    # Booking creation
    "BookingCreator",
    "BookingMode",
    "BookingPlan",
    "BookingResult",
    "CreatedBooking",
    "validate_booking",
    # Service
    "BookingService",
]
