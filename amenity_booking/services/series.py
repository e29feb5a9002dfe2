"""
Editing and cancelling stored bookings.

Staff can act on "this occurrence" or on "the entire series":
- cancel_occurrence: drop one date of a series
- modify_occurrence: override fields of one date of a series
- update_series: change the series itself (clears per-occurrence edits)
- cancel_series: remove a booking and all its occurrences

Edits that move a booking in time or space are conflict checked first,
excluding the booking itself.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Optional, Sequence, TYPE_CHECKING
from uuid import UUID

from amenity_booking.exceptions import BookingUsageError
from amenity_booking.services.booking import ensure_valid
from amenity_booking.services.conflicts import (
    ConflictCandidate,
    ConflictReport,
    candidate_from_event,
    find_conflicts,
)
from amenity_booking.services.events import DateRange, Event, Resource
from amenity_booking.services.expansion import Occurrence, expand_event, expand_for_display
from amenity_booking.services.occurrence_exceptions import ExceptionStore, Modified
from amenity_booking.services.recurrence import generate_occurrence_dates

# Avoid circular imports for type hints
if TYPE_CHECKING:
    from amenity_booking.integrations.base import BookingStore

logger = logging.getLogger(__name__)


def _require_series(series: Event) -> None:
    if not series.is_recurring or series.id is None:
        raise BookingUsageError("Occurrence edits are only valid for stored recurring bookings")


def _is_generated(series: Event, day: date) -> bool:
    """Whether the series' pattern produces ``day`` at all."""
    return day in generate_occurrence_dates(
        series.pattern,
        series.recurring_range.start,
        series.recurring_range.end,
        day,
        day,
        anchor_time=series.start_time,
    )


def _slot(event: Event) -> tuple:
    return (event.resource, event.start_time, event.end_time)


def _current_slot(series: Event, day: date, exceptions: Optional[ExceptionStore]) -> tuple:
    """Resource and times an occurrence occupies with its stored modification applied."""
    current = exceptions.modification(series.id, day) if exceptions is not None else None
    if current is None:
        return _slot(series)
    return (
        current.resource or series.resource,
        current.start_time or series.start_time,
        current.end_time or series.end_time,
    )


def cancel_occurrence(store: "BookingStore", series: Event, day: date) -> bool:
    """
    Cancel one occurrence of a series.

    Returns:
        True if a new cancellation was written, False if already cancelled

    Raises:
        BookingUsageError: If the booking is not a series or the date is not
            one of its occurrences
    """
    _require_series(series)
    if not _is_generated(series, day):
        raise BookingUsageError(f"{day} is not an occurrence of series {series.id}")

    written = store.insert_cancellation(series.id, day)
    logger.info(f"Cancelled occurrence {day} of series {series.id}")
    return written


def modify_occurrence(
    store: "BookingStore",
    series: Event,
    modification: Modified,
    existing_events: Sequence[Event],
    exceptions: Optional[ExceptionStore] = None,
) -> ConflictReport:
    """
    Override fields of one occurrence of a series.

    The modification replaces any earlier one for the date. When that leaves
    the occurrence in a different time or resource than it holds now, the
    resulting slot is checked against every other booking and refused on
    conflict.

    Returns:
        Empty report if stored, otherwise the conflicts that prevented it
    """
    _require_series(series)
    if modification.series_id != series.id:
        raise BookingUsageError("Modification does not belong to this series")
    if not _is_generated(series, modification.date):
        raise BookingUsageError(f"{modification.date} is not an occurrence of series {series.id}")

    if exceptions is not None and modification.date in exceptions.cancelled_dates(series.id):
        raise BookingUsageError(f"Occurrence {modification.date} of series {series.id} is cancelled")

    merged = replace(
        series,
        resource=modification.resource or series.resource,
        start_time=modification.start_time or series.start_time,
        end_time=modification.end_time or series.end_time,
        title=modification.title or series.title,
    )
    ensure_valid(merged)

    # The new record replaces any earlier one, so compare against where the
    # occurrence sits now, not against the series' base slot
    if _slot(merged) != _current_slot(series, modification.date, exceptions):
        report = find_conflicts(
            ConflictCandidate(
                resource=merged.resource,
                start_time=merged.start_time,
                end_time=merged.end_time,
                dates=(modification.date,),
                exclude_event_id=series.id,
            ),
            existing_events,
            exceptions=exceptions,
        )
        if report.has_conflicts:
            logger.info(f"Refusing to modify {modification.date} of series {series.id}: conflict")
            return report

    store.upsert_modification(modification)
    logger.info(f"Modified occurrence {modification.date} of series {series.id}")
    return ConflictReport()


def update_series(
    store: "BookingStore",
    event: Event,
    existing_events: Sequence[Event],
    exceptions: Optional[ExceptionStore] = None,
) -> ConflictReport:
    """
    Replace a stored booking's fields ("edit entire series").

    Per-occurrence modifications of a series are discarded, cancellations
    are kept. A series turned into a one-time booking loses both, since a
    one-time booking has no occurrences to cancel or modify.

    Returns:
        Empty report if stored, otherwise the conflicts that prevented it

    Raises:
        BookingValidationError: If the updated booking is malformed
    """
    if event.id is None:
        raise BookingUsageError("Cannot update a booking that has not been stored")
    ensure_valid(event)

    candidate = candidate_from_event(event)
    if event.is_recurring and exceptions is not None:
        # The series' own cancellations still apply to the new definition
        own_cancelled = exceptions.cancelled_dates(event.id)
        candidate = replace(candidate, dates=tuple(d for d in candidate.dates if d not in own_cancelled))

    report = find_conflicts(candidate, existing_events, window=event.span, exceptions=exceptions)
    if report.has_conflicts:
        logger.info(f"Refusing to update booking {event.id}: {len(report)} conflicting date(s)")
        return report

    removed = store.clear_modifications(event.id)
    if removed:
        logger.info(f"Cleared {removed} occurrence modification(s) of booking {event.id}")
    if not event.is_recurring:
        removed = store.clear_cancellations(event.id)
        if removed:
            logger.info(f"Cleared {removed} occurrence cancellation(s) of booking {event.id}")
    store.update_event(event)
    logger.info(f"Updated booking {event.id}")
    return ConflictReport()


def cancel_series(store: "BookingStore", event_id: UUID) -> bool:
    """
    Cancel a booking and every one of its occurrences.

    Returns:
        True if cancelled, False if the booking does not exist
    """
    cancelled = store.cancel_event(event_id)
    if cancelled:
        logger.info(f"Cancelled booking {event_id}")
    return cancelled


def occurrences_on(
    day: date,
    resource: Resource,
    events: Sequence[Event],
    exceptions: Optional[ExceptionStore] = None,
) -> list[Occurrence]:
    """Bookings of one resource on one day, in start time order."""
    return expand_for_display(events, DateRange(day, day), exceptions, resource=resource)


def series_occurrences(
    series: Event,
    window: Optional[DateRange] = None,
    exceptions: Optional[ExceptionStore] = None,
) -> list[Occurrence]:
    """Occurrences of one booking, over its whole span by default."""
    window = window or series.span
    if window is None:
        return []
    return expand_event(series, window, exceptions)
