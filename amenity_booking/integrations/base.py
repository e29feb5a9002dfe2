"""
Booking store protocol.

Defines the interface the engine expects from the persistence layer. The
engine only reads snapshots through it and hands it the writes decided by
the booking creator.
"""

from abc import abstractmethod
from datetime import date
from typing import Optional, Protocol, Sequence
from uuid import UUID

from amenity_booking.services.events import DateRange, Event, Resource
from amenity_booking.services.occurrence_exceptions import ExceptionRecord, Modified
from amenity_booking.services.recurrence import RecurrencePattern


class BookingStore(Protocol):
    """
    Protocol for booking storage backends.

    Implementations:
    - DatabaseBookingStore: SQLAlchemy session over the local database

    Read failures raise StoreReadError, write failures StoreWriteError.
    """

    @abstractmethod
    def list_events(
        self,
        resource: Optional[Resource],
        date_range: DateRange,
    ) -> Sequence[Event]:
        """
        Get one-time bookings and series that can occur in a date range.

        Exceptions are not applied.

        Args:
            resource: Only events on this resource (None for all)
            date_range: Dates of interest

        Returns:
            Sequence of events
        """
        ...

    @abstractmethod
    def get_event(self, event_id: UUID) -> Optional[Event]:
        """Get one stored event, or None if missing or cancelled."""
        ...

    @abstractmethod
    def list_exceptions(
        self,
        series_ids: Sequence[UUID],
        date_range: DateRange,
    ) -> Sequence[ExceptionRecord]:
        """
        Get cancellations and modifications of series inside a date range.

        Args:
            series_ids: Series to fetch exceptions for
            date_range: Dates of interest

        Returns:
            Sequence of Cancelled and Modified records
        """
        ...

    @abstractmethod
    def get_recurrence_pattern(self, pattern_id: UUID) -> RecurrencePattern:
        """
        Get a stored recurrence pattern.

        Raises:
            BookingNotFoundError: If the pattern does not exist
        """
        ...

    @abstractmethod
    def insert_event(self, event: Event) -> UUID:
        """
        Store a new booking.

        Returns:
            Id assigned to the event
        """
        ...

    @abstractmethod
    def update_event(self, event: Event) -> None:
        """Replace the stored fields of an existing booking."""
        ...

    @abstractmethod
    def insert_cancellation(self, series_id: UUID, day: date) -> bool:
        """
        Cancel one occurrence of a series.

        Idempotent: cancelling an already cancelled date is a no-op.

        Returns:
            True if a new record was written, False if it already existed
        """
        ...

    @abstractmethod
    def upsert_modification(self, modification: Modified) -> None:
        """Create or replace the modification of one occurrence."""
        ...

    @abstractmethod
    def clear_modifications(self, series_id: UUID) -> int:
        """
        Remove every modification of a series.

        Returns:
            Number of records removed
        """
        ...

    @abstractmethod
    def clear_cancellations(self, series_id: UUID) -> int:
        """
        Remove every cancellation of a series.

        Returns:
            Number of records removed
        """
        ...

    @abstractmethod
    def cancel_event(self, event_id: UUID) -> bool:
        """
        Cancel a whole booking (every occurrence of a series).

        Returns:
            True if cancelled, False if not found
        """
        ...
