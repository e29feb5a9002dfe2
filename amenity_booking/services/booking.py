"""
Booking creation.

Flow:
1. Validate the candidate's structure (fails fast, before any store access)
2. Detect conflicts against the existing bookings snapshot
3. Decide: reject (strict), create, or create while skipping the
   conflicting dates (skip_conflicts, recurring bookings only)
4. Execute the decided writes against the store

Steps 1-3 are pure (see BookingCreator.plan); only step 4 writes.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Sequence, TYPE_CHECKING
from uuid import UUID

from amenity_booking.exceptions import (
    BookingUsageError,
    BookingValidationError,
    CancellationWriteError,
    StoreWriteError,
)
from amenity_booking.services.conflicts import (
    ConflictReport,
    candidate_dates,
    candidate_from_event,
    find_conflicts,
)
from amenity_booking.services.events import Event
from amenity_booking.services.occurrence_exceptions import ExceptionStore

# Avoid circular imports for type hints
if TYPE_CHECKING:
    from amenity_booking.integrations.base import BookingStore

logger = logging.getLogger(__name__)


class BookingMode(str, Enum):
    """What to do when the candidate conflicts with existing bookings."""

    STRICT = "strict"
    SKIP_CONFLICTS = "skip_conflicts"


def validate_booking(event: Event) -> list[str]:
    """
    Check a booking's structural invariants.

    Returns:
        List of problems (empty if the booking is valid)
    """
    errors = []

    if event.resource is None:
        errors.append("Building and amenity are required")
    if not event.title or not event.title.strip():
        errors.append("Title is required")
    if event.start_time is None or event.end_time is None:
        errors.append("Start and end time are required")
    elif event.end_time <= event.start_time:
        errors.append("End time must be after start time")
    if event.cost is not None and event.cost < 0:
        errors.append("Cost cannot be negative")

    if event.is_recurring:
        if event.recurring_range is None:
            errors.append("Recurring booking requires a start and end date")
        if event.pattern is None:
            errors.append("Recurring booking requires a recurrence pattern")
        else:
            errors.extend(event.pattern.validate())
        if event.one_time_date is not None:
            errors.append("Recurring booking cannot have a one-time date")
    else:
        if event.one_time_date is None:
            errors.append("One-time booking requires a date")
        if event.recurring_range is not None or event.pattern is not None:
            errors.append("One-time booking cannot have a recurring range or pattern")

    return errors


def ensure_valid(event: Event) -> None:
    """
    Raise if the booking is malformed.

    Raises:
        BookingValidationError: Listing every problem found
    """
    errors = validate_booking(event)
    if errors:
        raise BookingValidationError(errors)


@dataclass(frozen=True)
class BookingPlan:
    """
    Writes decided for a candidate, before they are performed.

    ``event`` is None when the booking is rejected.
    """

    candidate: Event
    mode: BookingMode
    all_dates: tuple[date, ...]
    conflicts: ConflictReport
    event: Optional[Event] = None
    cancellations: tuple[date, ...] = ()

    @property
    def rejected(self) -> bool:
        return self.event is None


@dataclass(frozen=True)
class CreatedBooking:
    """A stored booking and the dates it actually occupies."""

    event_id: UUID
    is_recurring: bool
    created_dates: tuple[date, ...]
    skipped_dates: tuple[date, ...] = ()


@dataclass(frozen=True)
class BookingResult:
    """Either the created booking, or the conflicts that prevented it."""

    created: Optional[CreatedBooking] = None
    conflicts: ConflictReport = field(default_factory=ConflictReport)

    @property
    def is_success(self) -> bool:
        return self.created is not None


class BookingCreator:
    """
    Validates, conflict checks and creates bookings.

    The existing bookings snapshot (events and exceptions) is passed in per
    call; the creator keeps no booking data between calls.
    """

    def __init__(self, store: "BookingStore"):
        self._store = store

    def plan(
        self,
        candidate: Event,
        existing_events: Sequence[Event],
        exceptions: Optional[ExceptionStore] = None,
        mode: BookingMode = BookingMode.STRICT,
    ) -> BookingPlan:
        """
        Decide what to write for a candidate without writing anything.

        Raises:
            BookingValidationError: If the candidate is malformed
            BookingUsageError: If skip_conflicts is requested for a one-time booking
        """
        ensure_valid(candidate)
        if mode is BookingMode.SKIP_CONFLICTS and not candidate.is_recurring:
            raise BookingUsageError("skip_conflicts mode is only valid for recurring bookings")

        dates = candidate_dates(candidate)
        conflicts = find_conflicts(
            candidate_from_event(candidate, dates),
            existing_events,
            window=candidate.span,
            exceptions=exceptions,
        )

        if not conflicts.has_conflicts:
            return BookingPlan(candidate, mode, tuple(dates), conflicts, event=candidate)

        if mode is BookingMode.STRICT:
            logger.info(
                f"Rejecting booking '{candidate.title}': {len(conflicts)} conflicting date(s)"
            )
            return BookingPlan(candidate, mode, tuple(dates), conflicts)

        return BookingPlan(
            candidate,
            mode,
            tuple(dates),
            conflicts,
            event=candidate,
            cancellations=tuple(conflicts.dates),
        )

    def execute(self, plan: BookingPlan) -> BookingResult:
        """
        Perform the writes of a plan.

        Raises:
            StoreWriteError: If the event insert fails (nothing was created)
            CancellationWriteError: If the event was created but some
                cancellations failed; carries the failed dates
        """
        if plan.rejected:
            return BookingResult(conflicts=plan.conflicts)

        event_id = self._store.insert_event(plan.event)
        logger.info(f"Created booking {event_id} '{plan.event.title}'")

        if plan.cancellations:
            self._write_cancellations(event_id, plan.cancellations)
            logger.info(
                f"Booking {event_id} skips {len(plan.cancellations)} conflicting date(s)"
            )

        skipped = set(plan.cancellations)
        return BookingResult(
            created=CreatedBooking(
                event_id=event_id,
                is_recurring=plan.event.is_recurring,
                created_dates=tuple(d for d in plan.all_dates if d not in skipped),
                skipped_dates=plan.cancellations,
            ),
            conflicts=plan.conflicts,
        )

    def create(
        self,
        candidate: Event,
        existing_events: Sequence[Event],
        exceptions: Optional[ExceptionStore] = None,
        mode: BookingMode = BookingMode.STRICT,
    ) -> BookingResult:
        """
        Validate, conflict check and store a booking.

        Args:
            candidate: Booking to create (id is ignored)
            existing_events: Stored bookings overlapping the candidate's span
            exceptions: Exceptions of those bookings
            mode: STRICT rejects on any conflict; SKIP_CONFLICTS creates the
                series and cancels the conflicting dates

        Returns:
            BookingResult with the created booking or the conflicts
        """
        return self.execute(self.plan(candidate, existing_events, exceptions, mode))

    def retry_cancellations(self, series_id: UUID, dates: Sequence[date]) -> list[date]:
        """
        Re-run cancellation writes that failed during a skip_conflicts create.

        Safe to call with dates that were already written.

        Returns:
            Dates that did not exist before and were written now

        Raises:
            CancellationWriteError: If some dates still fail
        """
        return self._write_cancellations(series_id, dates)

    def _write_cancellations(self, series_id: UUID, dates: Sequence[date]) -> list[date]:
        written: list[date] = []
        failed: list[date] = []
        last_error: Optional[Exception] = None
        inserted: list[date] = []

        for day in dates:
            try:
                if self._store.insert_cancellation(series_id, day):
                    inserted.append(day)
                written.append(day)
            except StoreWriteError as e:
                logger.error(f"Failed to cancel {day} of series {series_id}: {e}")
                failed.append(day)
                last_error = e

        if failed:
            raise CancellationWriteError(series_id, failed, written, last_error)
        return inserted
