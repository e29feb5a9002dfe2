"""
Booking service - request-scoped facade over the booking engine.

Each call loads a fresh snapshot (events + exceptions) from the store for
the dates it needs, runs the pure engine functions on it, and hands the
resulting writes back to the store. Nothing is cached between calls.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Optional, Sequence, TYPE_CHECKING
from uuid import UUID

from amenity_booking.config import get_settings
from amenity_booking.exceptions import BookingNotFoundError, BookingUsageError
from amenity_booking.services.booking import BookingCreator, BookingMode, BookingResult, ensure_valid
from amenity_booking.services.conflicts import ConflictReport, candidate_from_event, find_conflicts
from amenity_booking.services.events import DateRange, Event, Resource
from amenity_booking.services.expansion import Occurrence, expand_for_display
from amenity_booking.services.occurrence_exceptions import ExceptionStore, Modified
from amenity_booking.services import series as series_ops

# Avoid circular imports for type hints
if TYPE_CHECKING:
    from amenity_booking.integrations.base import BookingStore

logger = logging.getLogger(__name__)


class BookingService:
    """
    Entry point used by the API layer.

    Wraps a BookingStore; construct one per request with that request's
    store.
    """

    def __init__(self, store: "BookingStore", max_window_days: Optional[int] = None):
        """
        Initialize the service.

        Args:
            store: Request-scoped booking store
            max_window_days: Largest window accepted (defaults to settings)
        """
        self._store = store
        self._creator = BookingCreator(store)
        self._max_window_days = max_window_days or get_settings().max_window_days

    @property
    def store(self) -> "BookingStore":
        return self._store

    def load_snapshot(
        self,
        window: DateRange,
        resource: Optional[Resource] = None,
    ) -> tuple[Sequence[Event], ExceptionStore]:
        """
        Fetch the events and exceptions relevant to a window.

        Args:
            window: Dates of interest
            resource: Only events stored on this resource (None for all)

        Returns:
            Tuple of (events, exception index for those events)
        """
        events = self._store.list_events(resource, window)
        series_ids = [e.id for e in events if e.is_recurring and e.id is not None]
        exceptions = ExceptionStore(self._store.list_exceptions(series_ids, window))
        logger.debug(
            f"Snapshot {window.start}..{window.end}: {len(events)} events, "
            f"{len(exceptions)} exceptions"
        )
        return events, exceptions

    # =========================================================================
    # Reads
    # =========================================================================

    def expand_for_display(
        self,
        window: DateRange,
        resource: Optional[Resource] = None,
    ) -> list[Occurrence]:
        """
        Occurrences of every booking in a window, sorted for a calendar view.

        When a resource is given, occurrences relocated onto it by a
        modification are included and those relocated away are not.
        """
        self._check_window(window)
        # Relocations can cross resources, so load every resource
        events, exceptions = self.load_snapshot(window)
        return expand_for_display(events, window, exceptions, resource=resource)

    def bookings_on(self, day: date, resource: Resource) -> list[Occurrence]:
        """Bookings of one resource on one day."""
        window = DateRange(day, day)
        events, exceptions = self.load_snapshot(window)
        return series_ops.occurrences_on(day, resource, events, exceptions)

    def detect_conflicts(
        self,
        candidate: Event,
        window: Optional[DateRange] = None,
    ) -> ConflictReport:
        """
        Check a candidate booking against every stored booking.

        Args:
            candidate: Booking to check (stored bookings exclude themselves)
            window: Restrict the check to these dates (defaults to the
                candidate's whole span)

        Raises:
            BookingValidationError: If the candidate is malformed
        """
        ensure_valid(candidate)
        span = candidate.span
        if window is not None:
            if not window.overlaps(span):
                return ConflictReport()
            span = DateRange(max(window.start, span.start), min(window.end, span.end))

        self._check_window(span)
        check = candidate_from_event(candidate)
        check = replace(check, dates=tuple(d for d in check.dates if d in span))

        events, exceptions = self.load_snapshot(span)
        return find_conflicts(check, events, window=span, exceptions=exceptions)

    def series_occurrences(
        self,
        event_id: UUID,
        window: Optional[DateRange] = None,
    ) -> list[Occurrence]:
        """Occurrences of one booking, after its exceptions."""
        event = self.get_booking(event_id)
        window = window or event.span
        if window is None:
            return []
        self._check_window(window)
        exceptions = ExceptionStore()
        if event.is_recurring:
            exceptions = ExceptionStore(self._store.list_exceptions([event_id], window))
        return series_ops.series_occurrences(event, window, exceptions)

    def get_booking(self, event_id: UUID) -> Event:
        """
        Raises:
            BookingNotFoundError: If the booking does not exist or was cancelled
        """
        event = self._store.get_event(event_id)
        if event is None:
            raise BookingNotFoundError(f"Booking {event_id} not found")
        return event

    # =========================================================================
    # Writes
    # =========================================================================

    def create_booking(
        self,
        candidate: Event,
        mode: BookingMode = BookingMode.STRICT,
    ) -> BookingResult:
        """
        Validate, conflict check and store a new booking.

        Raises:
            BookingValidationError: If the candidate is malformed
            BookingUsageError: If skip_conflicts is requested for a one-time booking
            CancellationWriteError: If the series was stored but some
                skipped dates could not be cancelled
        """
        ensure_valid(candidate)
        events, exceptions = self.load_snapshot(candidate.span)
        return self._creator.create(candidate, events, exceptions, mode)

    def retry_cancellations(self, series_id: UUID, dates: Sequence[date]) -> list[date]:
        """Re-run the cancellation writes a partial failure reported."""
        series = self.get_booking(series_id)
        if not series.is_recurring:
            raise BookingUsageError("Only recurring bookings have cancellations to retry")
        return self._creator.retry_cancellations(series_id, dates)

    def cancel_occurrence(self, series_id: UUID, day: date) -> bool:
        return series_ops.cancel_occurrence(self._store, self.get_booking(series_id), day)

    def modify_occurrence(self, modification: Modified) -> ConflictReport:
        series = self.get_booking(modification.series_id)
        events, exceptions = self.load_snapshot(DateRange(modification.date, modification.date))
        return series_ops.modify_occurrence(self._store, series, modification, events, exceptions)

    def update_booking(self, event: Event) -> ConflictReport:
        """
        Replace a booking's definition ("edit entire series").

        Raises:
            BookingNotFoundError: If the booking does not exist
            BookingValidationError: If the new definition is malformed
        """
        if event.id is None:
            raise BookingUsageError("Cannot update a booking without an id")
        self.get_booking(event.id)
        ensure_valid(event)
        events, exceptions = self.load_snapshot(event.span)
        return series_ops.update_series(self._store, event, events, exceptions)

    def cancel_booking(self, event_id: UUID) -> None:
        """
        Raises:
            BookingNotFoundError: If the booking does not exist
        """
        if not series_ops.cancel_series(self._store, event_id):
            raise BookingNotFoundError(f"Booking {event_id} not found")

    def _check_window(self, window: DateRange) -> None:
        if window.days > self._max_window_days:
            raise BookingUsageError(
                f"Window of {window.days} days exceeds the limit of {self._max_window_days}"
            )
